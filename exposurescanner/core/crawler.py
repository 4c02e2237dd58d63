"""Budgeted BFS discovery of same-domain URLs and API endpoints."""

import asyncio
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Deque, Dict, List, Optional, Tuple

import httpx

from exposurescanner.core.batch import gather_in_batches
from exposurescanner.core.config import DEFAULT_CONFIG, ScanConfig
from exposurescanner.core.models import (
    DEEP_CRAWL, HOMEPAGE_HTML, SCRIPT_FILE,
    DiscoveredUrl, EndpointResult,
)
from exposurescanner.core.prober import Prober
from exposurescanner.core.seeds import SeedCollector
from exposurescanner.parsers.extract import extract_script_urls, extract_urls
from exposurescanner.parsers.urls import (
    has_api_path, is_api_like, is_static_asset, normalize_url,
)


@dataclass
class DiscoveryResult:
    discovered: List[DiscoveredUrl] = field(default_factory=list)
    open_endpoints: List[EndpointResult] = field(default_factory=list)
    pages_crawled: int = 0
    rounds: int = 0


def _is_html(response: Optional[httpx.Response]) -> bool:
    if response is None or response.status_code != 200:
        return False
    ctype = response.headers.get("content-type", "").lower()
    return "text/html" in ctype or "application/xhtml" in ctype


def _crawlable(url: str) -> bool:
    """Pages worth fetching as HTML; scripts and static assets are not."""
    path = url.split("?", 1)[0].lower()
    return not path.endswith((".js", ".mjs", ".map")) and not is_static_asset(url)


class Crawler:
    """
    Seeds from sitemap/robots and the homepage, then crawls a FIFO frontier.

    Each round dequeues at most crawl_batch_size URLs and fetches them together.
    Three budgets hold at once: at most max_pages pages fetched, at most
    max_depth rounds, and at most crawl_batch_size pages per round.
    Everything fetched is cached so no URL is requested twice in a scan.

    Usage:
        crawler = Crawler(prober, "example.com", logger)
        result = await crawler.discover("https://example.com")
    """

    def __init__(self, prober: Prober, domain: str, logger=None,
                 config: ScanConfig = DEFAULT_CONFIG,
                 seeder: Optional[SeedCollector] = None):
        self.prober = prober
        self.domain = domain
        self.logger = logger
        self.config = config
        self.seeder = seeder or SeedCollector(prober, domain, logger, config,
                                              fetch=self._fetch)

        self._discovered: Dict[str, DiscoveredUrl] = {}
        self._results: Dict[str, EndpointResult] = {}
        self._homepage = ""
        self.pages_crawled = 0

    # ── Discovery set ──────────────────────────────────────────

    def _add(self, url: str, provenance: str) -> bool:
        """Record url; True only when it was not already known."""
        if url in self._discovered:
            return False
        if len(self._discovered) >= self.config.max_discovered:
            return False
        self._discovered[url] = DiscoveredUrl(url, provenance)
        return True

    async def _fetch(self, url: str) -> Optional[httpx.Response]:
        response = await self.prober.fetch(url)
        if response is None:
            self._results[url] = EndpointResult(url=url, status=0, error="fetch failed")
        else:
            self._results[url] = self.prober.describe(url, response)
        return response

    # ── Main entry ─────────────────────────────────────────────

    async def discover(self, base_url: str) -> DiscoveryResult:
        base_url = base_url.rstrip("/")
        self._homepage = normalize_url(base_url + "/")
        self._add(self._homepage, HOMEPAGE_HTML)

        # SEEDING
        frontier: Deque[str] = deque([self._homepage])
        seeds = await self.seeder.collect(base_url)
        for url, provenance in seeds.items():
            if self._add(url, provenance) and _crawlable(url):
                frontier.append(url)

        if self.logger:
            self.logger.info(f"Crawling {base_url} (max depth: {self.config.max_depth}, "
                             f"max pages: {self.config.max_pages}, {len(frontier)} seeds)")

        # CRAWLING
        rounds = 0
        while (frontier and rounds < self.config.max_depth
               and self.pages_crawled < self.config.max_pages):
            if not await self._crawl_round(frontier, rounds):
                break
            rounds += 1

        # DONE
        if self.logger:
            self.logger.ok(f"Crawl complete: {self.pages_crawled} pages visited, "
                           f"{len(self._discovered)} URLs discovered in {rounds} rounds")

        open_endpoints = await self._probe_api_urls()
        return DiscoveryResult(
            discovered=list(self._discovered.values()),
            open_endpoints=open_endpoints,
            pages_crawled=self.pages_crawled,
            rounds=rounds,
        )

    # ── Rounds ─────────────────────────────────────────────────

    def _dequeue(self, frontier: Deque[str]) -> List[str]:
        """Up to crawl_batch_size unfetched URLs, never past the page budget."""
        limit = min(self.config.crawl_batch_size,
                    self.config.max_pages - self.pages_crawled)
        batch: List[str] = []
        while frontier and len(batch) < limit:
            url = frontier.popleft()
            # A script fetched in an earlier round may also sit in the frontier
            if url not in self._results and url not in batch:
                batch.append(url)
        return batch

    async def _crawl_round(self, frontier: Deque[str], round_no: int) -> bool:
        """One round: a single concurrent batch of pages, then their scripts."""
        batch = self._dequeue(frontier)
        if not batch:
            return False
        queue_children = round_no + 1 < self.config.max_depth

        pages = await asyncio.gather(*(self._crawl_page(u, round_no) for u in batch))

        scripts: Dict[str, str] = {}
        for links, page_scripts in pages:
            if queue_children:
                frontier.extend(u for u in links if _crawlable(u))
            for script_url, page_url in page_scripts:
                scripts.setdefault(script_url, page_url)
        await self._crawl_scripts(scripts)
        return True

    async def _crawl_page(self, url: str, round_no: int) -> Tuple[List[str], List[Tuple[str, str]]]:
        """Fetch one page; return (new links, [(script url, page url)])."""
        if self.logger:
            self.logger.debug(f"Visiting [{round_no}] {url}")
        response = await self._fetch(url)
        self.pages_crawled += 1
        if not _is_html(response):
            return [], []

        html = response.text or ""
        provenance = HOMEPAGE_HTML if url == self._homepage else DEEP_CRAWL
        new_links = [u for u in extract_urls(html, url, self.domain)
                     if self._add(u, provenance)]

        script_urls = extract_script_urls(html, url, self.domain,
                                          limit=self.config.max_scripts_per_page)
        fresh = [s for s in script_urls if s not in self._results]
        return new_links, [(s, url) for s in fresh[:self.config.max_script_fetches]]

    async def _crawl_scripts(self, scripts: Dict[str, str]):
        todo = [(s, page) for s, page in scripts.items() if s not in self._results]
        if not todo:
            return
        if self.logger:
            self.logger.debug(f"Fetching {len(todo)} script files")
        await gather_in_batches(todo, self.config.crawl_batch_size, self._crawl_script)

    async def _crawl_script(self, item: Tuple[str, str]):
        script_url, page_url = item
        self._add(script_url, HOMEPAGE_HTML if page_url == self._homepage else DEEP_CRAWL)
        response = await self._fetch(script_url)
        if response is None or response.status_code != 200:
            return
        # Relative references in scripts resolve against the including page
        for u in extract_urls(response.text or "", page_url, self.domain):
            self._add(u, SCRIPT_FILE)

    # ── API probing ────────────────────────────────────────────

    def api_candidates(self) -> List[DiscoveredUrl]:
        picked = [d for d in self._discovered.values()
                  if (is_api_like(d.url) or has_api_path(d.url))
                  and not is_static_asset(d.url)]
        return picked[:self.config.max_probe_urls]

    async def _probe_api_urls(self) -> List[EndpointResult]:
        candidates = self.api_candidates()
        if self.logger:
            self.logger.info(f"Probing {len(candidates)} API-like discovered URLs")
        results = await gather_in_batches(
            candidates, self.config.probe_batch_size, self._probe_discovered)
        opened = [r for r in results if r.open]
        if self.logger:
            for r in opened:
                self.logger.debug(f"Open discovered endpoint: {r.url} ({r.source})")
        return opened

    async def _probe_discovered(self, item: DiscoveredUrl) -> EndpointResult:
        result = self._results.get(item.url)
        if result is None:
            result = await self.prober.probe(item.url)
            self._results[item.url] = result
        return replace(result, found_in=DEEP_CRAWL, source=item.provenance)
