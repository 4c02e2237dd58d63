import argparse
import sys

from exposurescanner.core.engine import Engine
from exposurescanner.core.exceptions import InvalidDomainError
from exposurescanner.reporters.console import Log, print_report
from exposurescanner.reporters.json_report import to_json, write_json


def main(argv=None):
    p = argparse.ArgumentParser(
        description="Exposed API / sensitive file / SQL injection scanner")
    p.add_argument("domain", nargs="?", help="Target domain (ej: example.com)")
    p.add_argument("--proxy", help="Proxy (ej: http://127.0.0.1:8080)")
    p.add_argument("--timeout", type=float, default=None,
                   help="Per-request timeout in seconds (default 10)")
    p.add_argument("--json", action="store_true",
                   help="Print the JSON report on stdout")
    p.add_argument("--output", help="Write the JSON report to this file")
    p.add_argument("--serve", action="store_true",
                   help="Run the HTTP API (POST /scan) instead of a single scan")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8787)
    p.add_argument("-v", "--verbose", action="count", default=1,
                   help="-v, -vv")
    p.add_argument("-q", "--quiet", action="store_true")
    args = p.parse_args(argv)

    log = Log(verbose=0 if args.quiet else args.verbose)

    if args.serve:
        from exposurescanner.server import create_app
        app = create_app(lambda: Engine(proxy=args.proxy, timeout=args.timeout, logger=log),
                         logger=log)
        app.run(host=args.host, port=args.port)
        return 0

    if not args.domain:
        p.error("domain is required unless --serve is given")

    engine = Engine(proxy=args.proxy, timeout=args.timeout, logger=log)
    try:
        report = engine.scan(args.domain)
    except InvalidDomainError as exc:
        log.fail(f"{exc}: {args.domain!r}")
        return 2
    except Exception as exc:
        log.fail(f"Scan failed: {exc!r}")
        return 1

    if args.output:
        write_json(report, args.output)
        log.ok(f"Report written to {args.output}")
    if args.json:
        print(to_json(report))
    else:
        print_report(report, log)
    return 0


if __name__ == "__main__":
    sys.exit(main())
