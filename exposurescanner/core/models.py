"""Shared data models for the exposure scanner."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


# Provenance tags of a discovered URL
HOMEPAGE_HTML = "homepage-html"
SCRIPT_FILE = "script-file"
SITEMAP = "sitemap"
ROBOTS = "robots"
DEEP_CRAWL = "deep-crawl"

# Evidence kinds of an injection finding
ERROR_SIGNATURE = "error-signature"
LENGTH_DIVERGENCE = "length-divergence"


@dataclass(frozen=True)
class EndpointResult:
    """Outcome of probing one URL."""
    url: str
    status: int                          # 0 when the request never completed
    open: bool = False                   # status == 200
    sample: Optional[str] = None         # truncated body, only for open endpoints
    data_type: Optional[str] = None      # "JSON", "HTML", "XML", "Text", ...
    structure: Optional[Dict[str, Any]] = None
    content_type: str = ""
    content_length: int = 0
    error: Optional[str] = None
    found_in: str = "common"             # "common" or "deep-crawl"
    source: Optional[str] = None         # provenance of a discovered URL

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SensitiveFileResult:
    """Outcome of requesting one well-known sensitive file."""
    url: str
    status: int
    exposed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DiscoveredUrl:
    """A normalized in-scope URL and where it was first seen."""
    url: str
    provenance: str


@dataclass
class BaselineData:
    """Captured data from a clean (payloadless) request."""
    status_code: int = 0
    body: str = ""
    body_length: int = 0


@dataclass(frozen=True)
class VulnerableParam:
    """A single query parameter proven to react to an injection payload."""
    parameter: str
    payload: str
    evidence_type: str     # ERROR_SIGNATURE or LENGTH_DIVERGENCE
    evidence: str = ""     # Short proof snippet

    def __str__(self):
        return (f"{self.parameter} = {self.payload!r} "
                f"({self.evidence_type})")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InjectionFinding:
    url: str
    vulnerable: bool = False
    vulnerable_params: List[VulnerableParam] = field(default_factory=list)
    severity: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "vulnerable": self.vulnerable,
            "vulnerable_params": [p.to_dict() for p in self.vulnerable_params],
            "severity": self.severity,
        }


@dataclass(frozen=True)
class ScanSummary:
    total_open_apis: int = 0
    total_exposed_files: int = 0
    total_sql_injection_vulns: int = 0
    common_endpoints_checked: int = 0
    common_endpoints_open: int = 0
    urls_discovered: int = 0
    pages_crawled: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScanReport:
    """Everything a scan returns at the boundary."""
    domain: str
    open_apis: List[EndpointResult]
    exposed_sensitive_files: List[SensitiveFileResult]
    sql_injection_vulnerabilities: List[InjectionFinding]
    scan_summary: ScanSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "open_apis": [r.to_dict() for r in self.open_apis],
            "exposed_sensitive_files": [r.to_dict() for r in self.exposed_sensitive_files],
            "sql_injection_vulnerabilities": [
                f.to_dict() for f in self.sql_injection_vulnerabilities],
            "scan_summary": self.scan_summary.to_dict(),
        }
