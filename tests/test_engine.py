import httpx
import pytest

from exposurescanner.core.config import COMMON_ENDPOINTS
from exposurescanner.core.crawler import Crawler
from exposurescanner.core.engine import Engine, merge_open_endpoints
from exposurescanner.core.exceptions import InvalidDomainError
from exposurescanner.core.models import DEEP_CRAWL, EndpointResult, HOMEPAGE_HTML
from exposurescanner.reporters.json_report import to_json


@pytest.fixture
def target(site):
    site.add("https://example.com/",
             '<a href="/api/users">users</a><a href="https://other.com/x">out</a>'
             '<a href="/api/stats">stats</a>')
    site.add("https://example.com/api/users", {"users": [{"id": 1}]})
    site.add("https://example.com/api/stats", {"visits": 10})
    site.add("https://example.com/.env", "SECRET_KEY=abc", content_type="text/plain")
    return site


def test_merge_keeps_first_occurrence_and_open_only():
    common = [EndpointResult(url="https://e.com/api/users", status=200, open=True),
              EndpointResult(url="https://e.com/api/", status=404)]
    found = [EndpointResult(url="https://e.com/api/users", status=200, open=True,
                            found_in=DEEP_CRAWL, source=HOMEPAGE_HTML),
             EndpointResult(url="https://e.com/api/x", status=200, open=True,
                            found_in=DEEP_CRAWL, source=HOMEPAGE_HTML)]

    merged = merge_open_endpoints(common, found)

    assert [r.url for r in merged] == ["https://e.com/api/users", "https://e.com/api/x"]
    assert merged[0].found_in == "common"


def test_full_scan_report(target):
    report = Engine(transport=target.transport()).scan("example.com")
    s = report.scan_summary

    assert report.domain == "example.com"
    assert s.common_endpoints_checked == len(COMMON_ENDPOINTS)
    assert s.common_endpoints_open == sum(1 for r in report.open_apis if r.found_in == "common")
    assert s.total_open_apis == len(report.open_apis)
    assert s.total_exposed_files == 1
    assert s.total_sql_injection_vulns == 0
    assert s.pages_crawled >= 1
    assert s.urls_discovered >= 3

    assert [f.url for f in report.exposed_sensitive_files] == ["https://example.com/.env"]

    users = [r for r in report.open_apis if r.url == "https://example.com/api/users"]
    assert len(users) == 1 and users[0].found_in == "common"

    stats = [r for r in report.open_apis if r.url == "https://example.com/api/stats"]
    assert len(stats) == 1
    assert stats[0].found_in == DEEP_CRAWL and stats[0].source == HOMEPAGE_HTML


def test_scan_never_leaves_the_domain(target):
    Engine(transport=target.transport()).scan("https://Example.com/")

    assert target.requests
    assert all(httpx.URL(u).host == "example.com" for u in target.requests)


def test_report_serializes_with_stable_keys(target):
    report = Engine(transport=target.transport()).scan("example.com")

    d = report.to_dict()

    assert set(d) == {"domain", "open_apis", "exposed_sensitive_files",
                      "sql_injection_vulnerabilities", "scan_summary"}
    assert set(d["open_apis"][0]) >= {"url", "status", "open", "sample", "data_type",
                                      "structure", "found_in"}
    assert '"total_open_apis"' in to_json(report)


def test_invalid_domain_sends_no_requests(site):
    with pytest.raises(InvalidDomainError):
        Engine(transport=site.transport()).scan("not a domain")

    assert site.requests == []


def test_failed_discovery_still_produces_report(target, monkeypatch):
    async def broken(self, base_url):
        raise RuntimeError("crawler exploded")

    monkeypatch.setattr(Crawler, "discover", broken)

    report = Engine(transport=target.transport()).scan("example.com")

    assert report.scan_summary.urls_discovered == 0
    assert report.scan_summary.pages_crawled == 0
    assert report.scan_summary.common_endpoints_checked == len(COMMON_ENDPOINTS)
    assert report.scan_summary.total_exposed_files == 1


def test_sql_injection_found_through_cms_template(site):
    def index(request):
        if "'" in request.url.params.get("id", ""):
            return httpx.Response(200, request=request,
                                  text="PDOException: SQLSTATE[42000]: Syntax error")
        return httpx.Response(200, request=request, text="<h1>Welcome</h1>")

    site.route("/index.php", index)

    report = Engine(transport=site.transport()).scan("example.com")

    vulns = report.sql_injection_vulnerabilities
    assert [v.url for v in vulns] == ["https://example.com/index.php?id=1"]
    assert vulns[0].severity == "HIGH"
    assert vulns[0].vulnerable_params[0].parameter == "id"
    assert report.scan_summary.total_sql_injection_vulns == 1
