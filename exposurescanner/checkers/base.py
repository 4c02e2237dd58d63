"""Abstract base for query-parameter injection checkers."""

from abc import ABC, abstractmethod
from typing import Optional, List

import httpx

from exposurescanner.core.models import BaselineData, VulnerableParam


class BaseChecker(ABC):
    """A checker owns its payload list and judges one mutated response at a time."""

    name: str = "Unnamed Checker"

    @abstractmethod
    def get_payloads(self) -> List[str]:
        """Payloads in the order they are tried; callers may only use a prefix."""
        ...

    @abstractmethod
    def check(self, param: str, baseline: BaselineData,
              response: httpx.Response, payload: str) -> Optional[VulnerableParam]:
        """VulnerableParam when *response* to *payload* in *param* deviates from *baseline*."""
        ...

    @staticmethod
    def snippet(body: str, start: int = 0, limit: int = 500) -> str:
        """Evidence excerpt of at most limit characters starting near start."""
        start = max(0, start - limit // 5)
        return body[start:start + limit]
