import asyncio
from typing import Dict, List, Optional

import httpx

from exposurescanner.core.config import DEFAULT_CONFIG, ScanConfig
from exposurescanner.core.crawler import Crawler, DiscoveryResult
from exposurescanner.core.exceptions import InvalidDomainError
from exposurescanner.core.injection import InjectionProbe
from exposurescanner.core.models import (
    EndpointResult, ScanReport, ScanSummary, SensitiveFileResult,
)
from exposurescanner.core.prober import Prober, scope_guard
from exposurescanner.core.targets import FixedTargetScanner
from exposurescanner.parsers.domain import is_valid_domain, normalize_domain


def merge_open_endpoints(common: List[EndpointResult],
                         discovered: List[EndpointResult]) -> List[EndpointResult]:
    """Open results deduplicated by URL; the first occurrence wins, common first."""
    merged: Dict[str, EndpointResult] = {}
    for r in list(common) + list(discovered):
        if r.open and r.url not in merged:
            merged[r.url] = r
    return list(merged.values())


class Engine:
    def __init__(self, proxy: str | None = None, timeout: float | None = None,
                 logger=None, config: ScanConfig = DEFAULT_CONFIG,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.name = "ExposureScanner"
        self.version = "1.0.0"
        self.proxy = proxy
        self.config = config
        self.timeout = timeout if timeout is not None else config.timeout
        self.logger = logger
        self.transport = transport

    def _client(self, domain: str) -> httpx.AsyncClient:
        kwargs = {}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        elif self.proxy:
            kwargs["proxy"] = self.proxy
        return httpx.AsyncClient(
            verify=False, follow_redirects=True, timeout=self.timeout,
            headers={"User-Agent": self.config.user_agent},
            event_hooks={"request": [scope_guard(domain)]},
            **kwargs)

    def scan(self, domain: str) -> ScanReport:
        """Blocking wrapper around run() for the CLI and the HTTP shell."""
        return asyncio.run(self.run(domain))

    async def run(self, domain: str) -> ScanReport:
        domain = normalize_domain(domain)
        if not is_valid_domain(domain):
            raise InvalidDomainError(domain)

        base_url = f"https://{domain}"
        if self.logger:
            self.logger.info(f"Scanning {domain} ({self.name} {self.version})")

        async with self._client(domain) as client:
            prober = Prober(client, domain=domain, timeout=self.timeout,
                            logger=self.logger, config=self.config)
            fixed = FixedTargetScanner(prober, self.logger, config=self.config)
            crawler = Crawler(prober, domain, self.logger, config=self.config)
            injection = InjectionProbe(prober, self.logger, config=self.config)

            common, discovery, sensitive = await asyncio.gather(
                fixed.scan_common_endpoints(base_url),
                crawler.discover(base_url),
                fixed.check_sensitive_files(base_url),
                return_exceptions=True,
            )
            common = self._phase_result("common endpoints", common, [])
            discovery = self._phase_result("discovery", discovery, DiscoveryResult())
            sensitive = self._phase_result("sensitive files", sensitive, [])

            # Needs the full discovered set, so it runs after discovery
            vulns = await injection.run(base_url, [d.url for d in discovery.discovered])

        return self._assemble(domain, common, discovery, sensitive, vulns)

    def _phase_result(self, phase: str, result, fallback):
        if isinstance(result, BaseException):
            if isinstance(result, (KeyboardInterrupt, SystemExit, asyncio.CancelledError)):
                raise result
            if self.logger:
                self.logger.fail(f"Phase '{phase}' failed: {result!r}")
            return fallback
        return result

    def _assemble(self, domain: str, common: List[EndpointResult],
                  discovery: DiscoveryResult, sensitive: List[SensitiveFileResult],
                  vulns) -> ScanReport:
        open_common = [r for r in common if r.open]
        open_apis = merge_open_endpoints(open_common, discovery.open_endpoints)
        exposed = [f for f in sensitive if f.exposed]

        summary = ScanSummary(
            total_open_apis=len(open_apis),
            total_exposed_files=len(exposed),
            total_sql_injection_vulns=len(vulns),
            common_endpoints_checked=len(common),
            common_endpoints_open=len(open_common),
            urls_discovered=len(discovery.discovered),
            pages_crawled=discovery.pages_crawled,
        )
        if self.logger:
            self.logger.ok(f"Scan of {domain} complete: {summary.total_open_apis} open APIs, "
                           f"{summary.total_exposed_files} exposed files, "
                           f"{summary.total_sql_injection_vulns} SQLi findings")
        return ScanReport(
            domain=domain,
            open_apis=open_apis,
            exposed_sensitive_files=exposed,
            sql_injection_vulnerabilities=vulns,
            scan_summary=summary,
        )
