"""Fixed-target scanners: well-known API paths and sensitive files."""

from typing import List, Sequence

from exposurescanner.core.batch import gather_in_batches
from exposurescanner.core.config import (
    COMMON_ENDPOINTS, DEFAULT_CONFIG, SENSITIVE_FILES, ScanConfig,
)
from exposurescanner.core.models import EndpointResult, SensitiveFileResult
from exposurescanner.core.prober import Prober


class FixedTargetScanner:

    def __init__(self, prober: Prober, logger=None,
                 endpoints: Sequence[str] = COMMON_ENDPOINTS,
                 sensitive_files: Sequence[str] = SENSITIVE_FILES,
                 config: ScanConfig = DEFAULT_CONFIG):
        self.prober = prober
        self.logger = logger
        self.endpoints = tuple(endpoints)
        self.sensitive_files = tuple(sensitive_files)
        self.batch_size = config.fixed_batch_size

    async def scan_common_endpoints(self, base_url: str) -> List[EndpointResult]:
        """Probe every common API path; returns one result per path."""
        base_url = base_url.rstrip("/")
        if self.logger:
            self.logger.info(f"Checking {len(self.endpoints)} common endpoints on {base_url}")
        results = await gather_in_batches(
            [f"{base_url}{path}" for path in self.endpoints],
            self.batch_size, self.prober.probe)
        if self.logger:
            opened = sum(1 for r in results if r.open)
            self.logger.info(f"Common endpoints: {opened}/{len(results)} open")
        return results

    async def check_sensitive_files(self, base_url: str) -> List[SensitiveFileResult]:
        base_url = base_url.rstrip("/")
        if self.logger:
            self.logger.info(f"Checking {len(self.sensitive_files)} sensitive files on {base_url}")
        results = await gather_in_batches(
            [f"{base_url}{path}" for path in self.sensitive_files],
            self.batch_size, self.prober.check_exposure)
        if self.logger:
            for r in results:
                if r.exposed:
                    self.logger.warn(f"Sensitive file exposed: {r.url}")
        return results
