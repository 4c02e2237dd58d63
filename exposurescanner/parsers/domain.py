import re

_DOMAIN_RX = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*\.)+[a-z]{2,}$", re.I)


def normalize_domain(domain: str) -> str:
    """Strip scheme and a trailing slash: "https://Example.com/" -> "example.com"."""
    d = re.sub(r"^https?://", "", domain.strip(), flags=re.I)
    d = re.sub(r"/$", "", d)
    return d.strip().lower()


def is_valid_domain(domain: str) -> bool:
    return bool(_DOMAIN_RX.match(domain))
