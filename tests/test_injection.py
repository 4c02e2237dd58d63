import httpx
import pytest

from exposurescanner.checkers.sqli import SQLi
from exposurescanner.core.config import ScanConfig
from exposurescanner.core.injection import (
    InjectionProbe, is_injection_candidate, with_param,
)
from exposurescanner.core.models import (
    BaselineData, ERROR_SIGNATURE, LENGTH_DIVERGENCE,
)

TAUTOLOGY = "' OR '1'='1"


def _stable(request):
    return httpx.Response(200, request=request, text="<p>stable page</p>")


# ── Full payload runs ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_length_divergence_is_flagged(site, prober):
    def item(request):
        if request.url.params.get("id") == TAUTOLOGY:
            return httpx.Response(200, request=request, text="r" * 1500)
        return httpx.Response(200, request=request, text="n" * 1200)

    site.route("/item", item)

    finding = await InjectionProbe(prober).test_injection("https://example.com/item?id=1")

    assert finding.vulnerable
    assert finding.severity == "HIGH"
    assert len(finding.vulnerable_params) == 1
    hit = finding.vulnerable_params[0]
    assert hit.parameter == "id"
    assert hit.payload == TAUTOLOGY
    assert hit.evidence_type == LENGTH_DIVERGENCE
    assert len(hit.evidence) <= 500


@pytest.mark.asyncio
async def test_driver_error_is_flagged(site, prober):
    def item(request):
        if "'" in request.url.params.get("id", ""):
            return httpx.Response(200, request=request, text=(
                "<b>Warning</b>: You have an error in your SQL syntax; check the "
                "manual that corresponds to your MySQL server version"))
        return httpx.Response(200, request=request, text="<p>item 1</p>")

    site.route("/item", item)

    finding = await InjectionProbe(prober).test_injection("https://example.com/item?id=1")

    assert finding.vulnerable
    hit = finding.vulnerable_params[0]
    assert hit.evidence_type == ERROR_SIGNATURE
    assert "SQL syntax" in hit.evidence


@pytest.mark.asyncio
async def test_url_without_params_sends_nothing(site, prober):
    finding = await InjectionProbe(prober).test_injection("https://example.com/about")

    assert not finding.vulnerable
    assert finding.severity is None
    assert site.requests == []


@pytest.mark.asyncio
async def test_missing_page_is_skipped_after_one_request(site, prober):
    finding = await InjectionProbe(prober).test_injection("https://example.com/gone.php?id=1")

    assert not finding.vulnerable
    assert len(site.requests) == 1


@pytest.mark.asyncio
async def test_stops_at_first_hit_per_param(site, prober):
    def reacts(request):
        if TAUTOLOGY in request.url.params.values():
            return httpx.Response(200, request=request, text="x" * 2000)
        return httpx.Response(200, request=request, text="short")

    site.route("/list", reacts)

    finding = await InjectionProbe(prober).test_injection("https://example.com/list?a=1&b=2")

    assert [p.parameter for p in finding.vulnerable_params] == ["a", "b"]
    # pre-check, then one mutated + one baseline request per param
    assert len(site.requests) == 5


@pytest.mark.asyncio
async def test_only_first_three_params_are_tested(site, prober):
    site.route("/list", _stable)

    finding = await InjectionProbe(prober).test_injection(
        "https://example.com/list?a=1&b=1&c=1&d=1")

    assert not finding.vulnerable
    assert len(site.requests) == 1 + 3 * 5 * 2
    assert all(httpx.URL(u).params.get("d") == "1" for u in site.requests)


@pytest.mark.asyncio
async def test_run_returns_only_vulnerable_findings(site, prober):
    def item(request):
        if request.url.params.get("id") == TAUTOLOGY:
            return httpx.Response(200, request=request, text="r" * 1500)
        return httpx.Response(200, request=request, text="n" * 1200)

    site.route("/item", item)
    site.route("/list", _stable)

    probe = InjectionProbe(prober, templates=())
    findings = await probe.run("https://example.com", [
        "https://example.com/item?id=1",
        "https://example.com/list?page_id=2",
        "https://example.com/about",
    ])

    assert [f.url for f in findings] == ["https://example.com/item?id=1"]
    assert site.count("/about") == 0


# ── Candidate selection ────────────────────────────────────────

def test_templates_come_first_and_duplicates_collapse():
    probe = InjectionProbe(prober=None, templates=("/index.php?id=1", "/search.php?q=1"))

    picked = probe.select_candidates("https://example.com/", [
        "https://example.com/about",
        "https://example.com/index.php?id=1",
        "https://example.com/x?foo=1",
        "https://example.com/p?product_id=3",
    ])

    assert picked == [
        "https://example.com/index.php?id=1",
        "https://example.com/search.php?q=1",
        "https://example.com/p?product_id=3",
    ]


def test_candidate_list_is_capped():
    probe = InjectionProbe(prober=None, config=ScanConfig(injection_max_candidates=12))
    urls = [f"https://example.com/view?id={i}" for i in range(20)]

    picked = probe.select_candidates("https://example.com", urls)

    assert len(picked) == 12
    assert picked[0] == "https://example.com/index.php?id=1"


@pytest.mark.parametrize("url, expected", [
    ("https://example.com/index.php?foo=1", True),
    ("https://example.com/list?user_id=4", True),
    ("https://example.com/find?q=shoes", True),
    ("https://example.com/list?sort=asc", False),
    ("https://example.com/page.php", False),
])
def test_is_injection_candidate(url, expected):
    assert is_injection_candidate(url) is expected


def test_with_param_replaces_only_named_param():
    url = with_param("https://example.com/a?x=1&y=2", "y", "' OR 1")

    assert url == "https://example.com/a?x=1&y=%27+OR+1"


def test_checker_ignores_small_length_changes():
    checker = SQLi()
    baseline = BaselineData(status_code=200, body="a" * 1000, body_length=1000)
    resp = httpx.Response(200, text="a" * 1050)

    assert checker.check("id", baseline, resp, TAUTOLOGY) is None
