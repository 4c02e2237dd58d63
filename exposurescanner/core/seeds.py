"""Crawl seeding from sitemap.xml and robots.txt."""

import re
from typing import Awaitable, Callable, Dict, Optional, Set

import httpx

from exposurescanner.core.config import DEFAULT_CONFIG, ScanConfig
from exposurescanner.core.models import ROBOTS, SITEMAP
from exposurescanner.core.prober import Prober
from exposurescanner.parsers.urls import in_scope, normalize_url, resolve


_LOC_RX = re.compile(r"<loc>\s*(?:<!\[CDATA\[)?\s*(.*?)\s*(?:\]\]>)?\s*</loc>", re.I | re.S)
_INDEX_RX = re.compile(r"<sitemapindex\b", re.I)


def parse_sitemap(xml: str):
    """Return (is_index, locs). Tolerates broken XML by matching <loc> only."""
    locs = [_unescape(m.group(1)) for m in _LOC_RX.finditer(xml or "")]
    return bool(_INDEX_RX.search(xml or "")), [l for l in locs if l]


def parse_robots(text: str):
    """Return (sitemap_urls, paths) from a robots.txt body.

    Paths come from Allow/Disallow lines; wildcard rules and the bare root
    are skipped.
    """
    sitemaps, paths = [], []
    for line in (text or "").splitlines():
        line = line.split("#", 1)[0].strip()
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key, value = key.strip().lower(), value.strip()
        if key == "sitemap" and value:
            sitemaps.append(value)
        elif key in ("allow", "disallow"):
            if value and value != "/" and "*" not in value and "$" not in value:
                paths.append(value)
    return sitemaps, paths


def _unescape(s: str) -> str:
    return (s.replace("&amp;", "&").replace("&lt;", "<").replace("&gt;", ">")
            .replace("&quot;", '"').replace("&apos;", "'"))


class SeedCollector:
    """
    Collects the initial crawl frontier for one scan.

    Nested sitemap indexes are followed recursively; a visited set plus depth
    and fetch caps keep sitemap indexes that reference each other from
    looping.
    """

    def __init__(self, prober: Prober, domain: str, logger=None,
                 config: ScanConfig = DEFAULT_CONFIG,
                 fetch: Optional[Callable[[str], Awaitable[Optional[httpx.Response]]]] = None):
        self.prober = prober
        self.fetch = fetch or prober.fetch
        self.domain = domain
        self.logger = logger
        self.max_sitemaps = config.max_sitemaps
        self.max_depth = config.max_sitemap_depth
        self._visited: Set[str] = set()

    async def collect(self, base_url: str) -> Dict[str, str]:
        """Return {normalized url: provenance} from sitemap.xml and robots.txt."""
        base_url = base_url.rstrip("/")
        found: Dict[str, str] = {}

        await self._follow_sitemap(f"{base_url}/sitemap.xml", 0, found)

        response = await self.fetch(f"{base_url}/robots.txt")
        if response is not None and response.status_code == 200:
            sitemaps, paths = parse_robots(response.text)
            for path in paths:
                self._add(resolve(path, base_url + "/"), ROBOTS, found)
            for sm in sitemaps:
                sm_url = resolve(sm, base_url + "/")
                if sm_url:
                    await self._follow_sitemap(sm_url, 0, found)

        if self.logger:
            self.logger.info(f"Seeding: {len(found)} URLs from sitemap/robots "
                             f"({len(self._visited)} sitemaps read)")
        return found

    async def _follow_sitemap(self, url: str, depth: int, found: Dict[str, str]):
        if not in_scope(url, self.domain):
            return
        norm = normalize_url(url)
        if (norm in self._visited or depth >= self.max_depth
                or len(self._visited) >= self.max_sitemaps):
            return
        self._visited.add(norm)

        response = await self.fetch(norm)
        if response is None or response.status_code != 200:
            return
        is_index, locs = parse_sitemap(response.text)
        if self.logger:
            self.logger.debug(f"Sitemap {norm}: {len(locs)} entries"
                              f"{' (index)' if is_index else ''}")

        for loc in locs:
            loc_url = resolve(loc, norm)
            if not loc_url:
                continue
            if is_index:
                await self._follow_sitemap(loc_url, depth + 1, found)
            else:
                self._add(loc_url, SITEMAP, found)

    def _add(self, url, provenance: str, found: Dict[str, str]):
        if url and in_scope(url, self.domain):
            found.setdefault(normalize_url(url), provenance)
