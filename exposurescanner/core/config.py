"""Compiled-in scan tunables and static target tables."""

from dataclasses import dataclass


USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# Probed on every scan, relative to https://<domain>
COMMON_ENDPOINTS = (
    "/api/",
    "/api/v1/",
    "/api/users",
    "/api/auth",
    "/api/admin",
    "/api-docs",
    "/api/v1/auth",
    "/graphql",
    "/swagger.json",
    "/openapi.json",
    "/wp-json/",
    "/config.json",
    "/settings.json",
    "/env",
    "/.env",
    "/.git/HEAD",
    "/debug",
    "/phpinfo.php",
)

SENSITIVE_FILES = (
    "/.env",
    "/env",
    "/config.json",
    "/config.js",
    "/settings.json",
    "/.git/HEAD",
    "/phpinfo.php",
    "/.git/config",
    "/.env.local",
    "/.DS_Store",
    "/backup.sql",
    "/wp-config.php.bak",
)

# Guessable parameterized entry points, tried even if the crawler never sees them
CMS_TEMPLATES = (
    "/index.php?id=1",
    "/product.php?id=1",
    "/item.php?id=1",
    "/news.php?id=1",
    "/article.php?id=1",
    "/page.php?id=1",
    "/category.php?cat=1",
    "/view.php?id=1",
    "/profile.php?user_id=1",
    "/search.php?q=1",
)


@dataclass(frozen=True)
class ScanConfig:
    """Every budget and limit of one scan."""
    timeout: float = 10.0
    user_agent: str = USER_AGENT

    # Prober sampling
    sample_limit: int = 1000
    html_sample_limit: int = 500
    max_summary_keys: int = 10

    # Fixed targets
    fixed_batch_size: int = 5

    # Discovery
    max_pages: int = 50
    max_depth: int = 3
    crawl_batch_size: int = 10
    max_scripts_per_page: int = 20
    max_script_fetches: int = 15
    max_sitemaps: int = 10
    max_sitemap_depth: int = 3
    max_discovered: int = 5000
    max_probe_urls: int = 200
    probe_batch_size: int = 10

    # Injection
    injection_max_candidates: int = 50
    injection_batch_size: int = 5
    injection_max_params: int = 3
    injection_max_payloads: int = 5
    length_threshold: int = 100
    evidence_limit: int = 500


DEFAULT_CONFIG = ScanConfig()
