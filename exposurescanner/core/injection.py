"""Differential SQL injection probe over discovered parameterized URLs."""

import asyncio
import re
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from exposurescanner.checkers.base import BaseChecker
from exposurescanner.checkers.sqli import SQLi
from exposurescanner.core.batch import gather_in_batches
from exposurescanner.core.config import CMS_TEMPLATES, DEFAULT_CONFIG, ScanConfig
from exposurescanner.core.models import BaselineData, InjectionFinding
from exposurescanner.core.prober import Prober


ID_PARAMS = frozenset({
    "id", "pid", "uid", "cid", "aid", "nid", "sid", "tid",
    "user_id", "userid", "product_id", "productid", "item_id", "itemid",
    "cat_id", "catid", "category_id", "article_id", "post_id", "news_id",
    "page_id", "order_id",
})

_GENERIC_PARAM_RX = re.compile(
    r"^(?:\w*_)?(?:id|user|product|page|cat|item|search|q|query)(?:_?id)?$", re.I)


def query_params(url: str) -> List[Tuple[str, str]]:
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def is_injection_candidate(url: str) -> bool:
    """Heuristic pick of URLs worth a full payload run."""
    params = query_params(url)
    if not params:
        return False
    if urlsplit(url).path.lower().endswith(".php"):
        return True
    names = [name.lower() for name, _ in params]
    return any(n in ID_PARAMS or _GENERIC_PARAM_RX.match(n) for n in names)


def with_param(url: str, param: str, value: str) -> str:
    """Return url with the first occurrence of param replaced by value."""
    parts = urlsplit(url)
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    mutated, done = [], False
    for k, v in pairs:
        if k == param and not done:
            mutated.append((k, value))
            done = True
        else:
            mutated.append((k, v))
    return urlunsplit((parts.scheme, parts.netloc, parts.path,
                       urlencode(mutated), parts.fragment))


class InjectionProbe:
    """
    Replays parameterized URLs with SQL payloads and diffs against a baseline.

    Usage:
        probe = InjectionProbe(prober, logger)
        findings = await probe.run("https://example.com", discovered_urls)
    """

    def __init__(self, prober: Prober, logger=None,
                 checker: Optional[BaseChecker] = None,
                 templates: Sequence[str] = CMS_TEMPLATES,
                 config: ScanConfig = DEFAULT_CONFIG):
        self.prober = prober
        self.logger = logger
        self.config = config
        self.templates = tuple(templates)
        self.checker = checker or SQLi(length_threshold=config.length_threshold,
                                       evidence_limit=config.evidence_limit)

    def select_candidates(self, base_url: str, urls: Iterable[str]) -> List[str]:
        """CMS templates first, then discovered candidates; unique and capped."""
        base_url = base_url.rstrip("/")
        picked = [f"{base_url}{t}" for t in self.templates]
        picked.extend(u for u in urls if is_injection_candidate(u))
        unique = list(dict.fromkeys(picked))
        return unique[:self.config.injection_max_candidates]

    async def run(self, base_url: str, urls: Iterable[str]) -> List[InjectionFinding]:
        candidates = self.select_candidates(base_url, urls)
        if self.logger:
            self.logger.info(f"Testing {len(candidates)} URLs for {self.checker.name}")
        findings = await gather_in_batches(
            candidates, self.config.injection_batch_size, self.test_injection)
        vulnerable = [f for f in findings if f.vulnerable]
        if self.logger and not vulnerable:
            self.logger.info(f"No findings for {self.checker.name}")
        return vulnerable

    async def _baseline(self, url: str) -> Optional[BaselineData]:
        response = await self.prober.fetch(url)
        if response is None:
            return None
        body = response.text or ""
        return BaselineData(status_code=response.status_code, body=body,
                            body_length=len(body))

    async def test_injection(self, url: str) -> InjectionFinding:
        finding = InjectionFinding(url=url)

        names = list(dict.fromkeys(name for name, _ in query_params(url)))
        if not names:
            return finding

        # Existence pre-check before committing to the payload matrix
        first = await self._baseline(url)
        if first is None or first.status_code == 404:
            if self.logger:
                self.logger.debug(f"Skipping {url} (unreachable or 404)")
            return finding

        payloads = self.checker.get_payloads()[:self.config.injection_max_payloads]
        for param in names[:self.config.injection_max_params]:
            if self.logger:
                self.logger.debug(f"Param query: {param} @ {url}")
            for payload in payloads:
                mutated = with_param(url, param, payload)
                response, baseline = await asyncio.gather(
                    self.prober.fetch(mutated), self._baseline(url))
                if response is None or baseline is None:
                    continue
                hit = self.checker.check(param, baseline, response, payload)
                if hit:
                    finding.vulnerable_params.append(hit)
                    if self.logger:
                        self.logger.finding("high", self.checker.name, url, str(hit))
                    break

        if finding.vulnerable_params:
            finding.vulnerable = True
            finding.severity = "HIGH"
        return finding
