"""HTTP shell: one POST /scan route returning the JSON scan report."""

from typing import Callable, Optional

from flask import Flask, Response, jsonify, request

from exposurescanner.core.engine import Engine
from exposurescanner.parsers.domain import is_valid_domain, normalize_domain


def _cors(resp: Response) -> Response:
    resp.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin") or "*"
    return resp


def _error(error: str, status: int, **extra):
    return jsonify({"error": error, **extra}), status


def create_app(engine_factory: Optional[Callable[[], Engine]] = None,
               logger=None) -> Flask:
    """Build the Flask app; engine_factory returns a fresh Engine per request."""
    app = Flask(__name__)
    make_engine = engine_factory or (lambda: Engine(logger=logger))

    @app.before_request
    def preflight():
        if request.method == "OPTIONS":
            resp = Response(status=204)
            resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
            resp.headers["Access-Control-Max-Age"] = "86400"
            return resp
        return None

    @app.after_request
    def add_cors(resp: Response):
        return _cors(resp)

    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(_exc):
        return _error("Not found. Use POST /scan", 404)

    @app.route("/scan", methods=["POST"])
    def scan():
        body = request.get_json(silent=True)
        domain = body.get("domain") if isinstance(body, dict) else None
        if not domain or not isinstance(domain, str):
            return _error("Domain is required", 400)

        domain = normalize_domain(domain)
        if not is_valid_domain(domain):
            return _error("Invalid domain format", 400)

        try:
            report = make_engine().scan(domain)
            return jsonify(report.to_dict()), 200
        except Exception as exc:
            if logger:
                logger.fail(f"Error processing scan for {domain}: {exc!r}")
            return _error("Internal server error", 500, message=str(exc))

    return app
