import sys
from colorama import init as colorama_init, Fore, Style
from datetime import datetime
colorama_init(autoreset=True)


class Log:
    """Leveled, colored log lines on stderr; verbose 0 quiet, 1 info, 2 debug."""

    def __init__(self, verbose: int = 1, stream=None):
        self.verbose = verbose
        self.stream = stream or sys.stderr
        self.PAY = Fore.MAGENTA

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def _emit(self, line: str):
        print(line, file=self.stream)

    def info(self, msg: str):
        if self.verbose >= 1:
            self._emit(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 1:
            self._emit(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def ok(self, msg: str):
        if self.verbose >= 1:
            self._emit(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def fail(self, msg: str):
        self._emit(f"{self._fmt('FAIL', Fore.RED)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            self._emit(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def finding(self, sev: str, kind: str, url: str, detail: str = ""):
        sev_col = {"high": Fore.RED, "medium": Fore.YELLOW,
                   "low": Fore.GREEN}.get(sev, Fore.WHITE)
        extra = f" {Style.DIM}{detail}{Style.RESET_ALL}" if detail else ""
        self._emit(f"{self._fmt(sev.upper(), sev_col)} {kind} "
                   f"{Fore.MAGENTA}{url}{Style.RESET_ALL}{extra}")


def print_report(report, log: Log):
    """Render a ScanReport as finding lines plus a summary."""
    for r in report.open_apis:
        log.finding("medium", "Open API", r.url,
                    f"(HTTP {r.status}, {r.data_type or '?'}, {r.found_in})")
    for f in report.exposed_sensitive_files:
        log.finding("high", "Exposed file", f.url, f"(HTTP {f.status})")
    for v in report.sql_injection_vulnerabilities:
        for p in v.vulnerable_params:
            log.finding((v.severity or "high").lower(), "SQL Injection", v.url,
                        f"{p.parameter}={log.PAY}{p.payload}{Style.RESET_ALL} "
                        f"[{p.evidence_type}]")

    s = report.scan_summary
    log.ok(f"{report.domain}: {s.total_open_apis} open APIs, "
           f"{s.total_exposed_files} exposed files, "
           f"{s.total_sql_injection_vulns} SQLi findings "
           f"({s.common_endpoints_open}/{s.common_endpoints_checked} common endpoints open, "
           f"{s.urls_discovered} URLs discovered, {s.pages_crawled} pages crawled)")
