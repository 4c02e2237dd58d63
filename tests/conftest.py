"""Shared fixtures: an in-memory fake website served through httpx.MockTransport."""

import json
from typing import Callable, Dict, List, Optional, Union

import httpx
import pytest
import pytest_asyncio

from exposurescanner.core.prober import Prober


Route = Union[tuple, Callable[[httpx.Request], httpx.Response]]


class FakeSite:
    """Maps URLs or paths to canned responses and records every request."""

    def __init__(self, default_status: int = 404):
        self.urls: Dict[str, Route] = {}
        self.paths: Dict[str, Route] = {}
        self.requests: List[str] = []
        self.default_status = default_status
        self.fallback: Optional[Callable[[httpx.Request], httpx.Response]] = None

    def add(self, url: str, body="", status: int = 200,
            content_type: str = "text/html", headers=None):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
            content_type = "application/json"
        self.urls[url] = (status, body, content_type, headers or {})

    def route(self, path: str, fn: Callable[[httpx.Request], httpx.Response]):
        self.paths[path] = fn

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        entry = self.urls.get(url)
        if entry is None:
            entry = self.paths.get(request.url.path)
        if entry is None:
            entry = self.fallback
        if entry is None:
            return httpx.Response(self.default_status, request=request, text="not found")
        if callable(entry):
            return entry(request)
        status, body, ctype, headers = entry
        return httpx.Response(status, request=request, text=body,
                              headers={"content-type": ctype, **headers})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport(), **kwargs)

    def count(self, fragment: str) -> int:
        return sum(1 for u in self.requests if fragment in u)


@pytest.fixture
def site():
    return FakeSite()


@pytest_asyncio.fixture
async def client(site):
    c = site.client()
    try:
        yield c
    finally:
        await c.aclose()


@pytest.fixture
def prober(client):
    return Prober(client, domain="example.com", timeout=5)
