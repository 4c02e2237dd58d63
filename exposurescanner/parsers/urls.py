"""URL scoping, normalization and API-likeness heuristics."""

import re
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit


_SKIP_SCHEMES = ("javascript:", "mailto:", "tel:", "data:", "blob:", "#")

_STATIC_EXT = (".css", ".png", ".jpg", ".jpeg", ".gif", ".svg",
               ".ico", ".woff", ".woff2", ".ttf", ".eot", ".otf", ".pdf",
               ".zip", ".tar", ".gz", ".mp4", ".mp3", ".webp", ".avi", ".mov")

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Endpoint-suggestive path segment names
API_VOCABULARY = (
    "endpoint", "rest", "swagger", "openapi", "webhook", "callback", "oauth",
    "auth", "token", "user", "admin", "dashboard", "data", "query",
)

_API_PATTERNS = [
    re.compile(r"/api/", re.I),
    re.compile(r"/graphql", re.I),
    re.compile(r"\.json$", re.I),
    re.compile(r"/v\d+/", re.I),
    re.compile(r"/(?:" + "|".join(API_VOCABULARY) + r")", re.I),
]

_API_PATH_RX = re.compile(r"/api|/rest/|/graphql", re.I)
_API_EXT = (".json", ".xml", ".yaml", ".yml")


def host_of(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def in_scope(url: str, domain: str) -> bool:
    """True when url's host is domain itself or one of its subdomains."""
    host = host_of(url)
    domain = domain.lower()
    return bool(host) and (host == domain or host.endswith("." + domain))


def normalize_url(url: str) -> str:
    """Lowercase scheme/host, drop default port and fragment; query is kept."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    netloc = host
    if parts.port and parts.port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{parts.port}"
    path = parts.path or "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def resolve(candidate: str, base_url: str) -> Optional[str]:
    """Resolve a raw reference against base_url; None for non-HTTP or junk."""
    candidate = candidate.strip()
    if not candidate or should_skip(candidate):
        return None
    try:
        absolute = urljoin(base_url, candidate)
        parts = urlsplit(absolute)
        _ = parts.port  # raises on a malformed port
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None
    return absolute


def should_skip(candidate: str) -> bool:
    """Skip non-HTTP references and things that are clearly not URLs."""
    lower = candidate.lower()
    if any(lower.startswith(s) for s in _SKIP_SCHEMES):
        return True
    return any(c in candidate for c in (" ", "\n", "\t", "<", ">", "{", "}"))


def is_static_asset(url: str) -> bool:
    path = urlsplit(url).path.lower()
    return any(path.endswith(ext) for ext in _STATIC_EXT)


def is_api_like(url: str) -> bool:
    """Heuristic: does this URL probably serve programmatic data?"""
    path = urlsplit(url).path
    return any(rx.search(path) for rx in _API_PATTERNS)


def has_api_path(url: str) -> bool:
    """Syntactic check for an API-style path or data-file extension."""
    path = urlsplit(url).path.lower()
    return bool(_API_PATH_RX.search(path)) or path.endswith(_API_EXT)
