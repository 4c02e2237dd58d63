"""Network prober: one GET per call, hard timeout, classified content sample."""

import asyncio
import json
import re
from typing import Optional

import httpx

from exposurescanner.core.config import DEFAULT_CONFIG, ScanConfig
from exposurescanner.core.exceptions import OutOfScopeError
from exposurescanner.core.models import EndpointResult, SensitiveFileResult
from exposurescanner.parsers.urls import in_scope

# Failures that end a single probe; reported as status 0, never raised
NETWORK_ERRORS = (
    httpx.HTTPError,
    httpx.InvalidURL,
    asyncio.TimeoutError,
    OSError,
    OutOfScopeError,
)

_TITLE_RX = re.compile(r"<title[^>]*>(.*?)</title>", re.I | re.S)


def scope_guard(domain: str):
    """httpx request hook refusing any request (redirects included) off domain."""
    async def hook(request: httpx.Request):
        url = str(request.url)
        if not in_scope(url, domain):
            raise OutOfScopeError(url, domain)
    return hook


class Prober:
    """
    Issues single GET requests against in-scope URLs.

    Usage:
        prober = Prober(client, domain="example.com")
        result = await prober.probe("https://example.com/api/users")
    """

    def __init__(self, client: httpx.AsyncClient, domain: Optional[str] = None,
                 timeout: Optional[float] = None, logger=None,
                 config: ScanConfig = DEFAULT_CONFIG):
        self.client = client
        self.domain = domain
        self.config = config
        self.timeout = timeout if timeout is not None else config.timeout
        self.logger = logger

    async def _get(self, url: str) -> httpx.Response:
        if self.domain and not in_scope(url, self.domain):
            raise OutOfScopeError(url, self.domain)
        return await asyncio.wait_for(self.client.get(url), timeout=self.timeout)

    async def fetch(self, url: str) -> Optional[httpx.Response]:
        """GET url once; None on timeout, network error or out-of-scope URL."""
        try:
            return await self._get(url)
        except NETWORK_ERRORS as exc:
            if self.logger:
                self.logger.debug(f"Fetch failed: {url}: {_describe_error(exc)}")
            return None

    async def probe(self, url: str) -> EndpointResult:
        try:
            response = await self._get(url)
        except NETWORK_ERRORS as exc:
            if self.logger:
                self.logger.debug(f"Probe failed: {url}: {_describe_error(exc)}")
            return EndpointResult(url=url, status=0, error=_describe_error(exc))
        return self.describe(url, response)

    async def check_exposure(self, url: str) -> SensitiveFileResult:
        response = await self.fetch(url)
        if response is None:
            return SensitiveFileResult(url=url, status=0, exposed=False)
        return SensitiveFileResult(url=url, status=response.status_code,
                                   exposed=response.status_code == 200)

    # ── Classification ─────────────────────────────────────────

    def describe(self, url: str, response: httpx.Response) -> EndpointResult:
        """Turn a completed response into an EndpointResult."""
        status = response.status_code
        ctype = response.headers.get("content-type", "")
        content = response.content or b""
        length = _content_length(response, content)

        if status != 200:
            return EndpointResult(url=url, status=status, open=False,
                                  content_type=ctype, content_length=length)

        text = response.text or ""
        limit = self.config.sample_limit
        structure = None
        lower = ctype.lower()

        if "application/json" in lower:
            try:
                data = json.loads(text)
            except ValueError:
                data_type, sample, source = "Text (JSON-like)", text[:limit], text
            else:
                rendered = json.dumps(data, indent=2, ensure_ascii=False)
                data_type, sample, source = "JSON", rendered[:limit], rendered
                structure = self._structure(data)
        elif "text/html" in lower:
            data_type = "HTML"
            m = _TITLE_RX.search(text)
            title = m.group(1).strip() if m else ""
            if title:
                limit = self.config.html_sample_limit
                sample = f"Title: {title}\n\n{text[:limit]}"
            else:
                sample = text[:limit]
            source = text
        elif "xml" in lower:
            data_type, sample, source = "XML", text[:limit], text
        elif lower.startswith("text/"):
            data_type, sample, source = "Text", text[:limit], text
        else:
            data_type, sample, source = ctype or "unknown", text[:limit], text

        if len(source) > limit:
            sample += f"\n... [truncated, {len(content)} bytes total]"

        return EndpointResult(url=url, status=status, open=True, sample=sample,
                              data_type=data_type, structure=structure,
                              content_type=ctype, content_length=length)

    def _structure(self, data):
        if isinstance(data, dict):
            keys = list(data.keys())
            return {"keys": keys[:self.config.max_summary_keys],
                    "key_count": len(keys)}
        if isinstance(data, list):
            return {"type": "array", "length": len(data)}
        return None


def _content_length(response: httpx.Response, content: bytes) -> int:
    try:
        return int(response.headers.get("content-length", ""))
    except ValueError:
        return len(content)


def _describe_error(exc: Exception) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "Request timeout"
    return str(exc) or exc.__class__.__name__
