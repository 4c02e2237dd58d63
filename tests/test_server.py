import pytest

from exposurescanner.core.models import (
    EndpointResult, ScanReport, ScanSummary, SensitiveFileResult,
)
from exposurescanner.server import create_app


class StubEngine:
    def __init__(self, error=None):
        self.error = error
        self.domains = []

    def scan(self, domain):
        self.domains.append(domain)
        if self.error:
            raise self.error
        return ScanReport(
            domain=domain,
            open_apis=[EndpointResult(url=f"https://{domain}/api/users", status=200,
                                      open=True, sample="{}", data_type="JSON",
                                      structure={"keys": [], "key_count": 0})],
            exposed_sensitive_files=[SensitiveFileResult(url=f"https://{domain}/.env",
                                                         status=200, exposed=True)],
            sql_injection_vulnerabilities=[],
            scan_summary=ScanSummary(total_open_apis=1, total_exposed_files=1,
                                     common_endpoints_checked=18, common_endpoints_open=1),
        )


@pytest.fixture
def engine():
    return StubEngine()


@pytest.fixture
def http(engine):
    app = create_app(engine_factory=lambda: engine)
    app.config["TESTING"] = True
    return app.test_client()


def test_scan_returns_report(http, engine):
    resp = http.post("/scan", json={"domain": "https://Example.com/"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert set(body) == {"domain", "open_apis", "exposed_sensitive_files",
                         "sql_injection_vulnerabilities", "scan_summary"}
    assert body["domain"] == "example.com"
    assert body["scan_summary"]["total_open_apis"] == 1
    assert engine.domains == ["example.com"]
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_origin_is_echoed(http):
    resp = http.post("/scan", json={"domain": "example.com"},
                     headers={"Origin": "https://dashboard.example.org"})

    assert resp.headers["Access-Control-Allow-Origin"] == "https://dashboard.example.org"


def test_preflight(http, engine):
    resp = http.open("/scan", method="OPTIONS")

    assert resp.status_code == 204
    assert resp.headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS"
    assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type"
    assert resp.headers["Access-Control-Max-Age"] == "86400"
    assert engine.domains == []


@pytest.mark.parametrize("method, path", [("get", "/scan"), ("post", "/other"), ("get", "/")])
def test_unknown_routes_are_404(http, method, path):
    resp = getattr(http, method)(path)

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not found. Use POST /scan"}


@pytest.mark.parametrize("kwargs", [
    {"json": {}},
    {"json": {"domain": ""}},
    {"json": {"domain": 42}},
    {"data": "not json", "content_type": "text/plain"},
])
def test_missing_domain_is_400(http, engine, kwargs):
    resp = http.post("/scan", **kwargs)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Domain is required"}
    assert engine.domains == []


def test_invalid_domain_never_reaches_engine(http, engine):
    resp = http.post("/scan", json={"domain": "not a domain"})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid domain format"}
    assert engine.domains == []


def test_engine_failure_is_500():
    app = create_app(engine_factory=lambda: StubEngine(error=RuntimeError("resolver down")))

    resp = app.test_client().post("/scan", json={"domain": "example.com"})

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error", "message": "resolver down"}
