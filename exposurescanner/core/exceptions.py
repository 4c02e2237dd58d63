"""Scanner exception hierarchy."""


class ScannerError(Exception):
    """Base class for scanner errors."""


class InvalidDomainError(ScannerError, ValueError):
    """Raised before any network activity when the target domain is malformed."""

    def __init__(self, domain: str, message: str = "Invalid domain format"):
        super().__init__(message)
        self.domain = domain


class OutOfScopeError(ScannerError):
    """Raised when a request would leave the target domain."""

    def __init__(self, url: str, domain: str):
        super().__init__(f"{url} is outside {domain}")
        self.url = url
        self.domain = domain
