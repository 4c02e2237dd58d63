"""URL extraction from HTML and script payloads.

Each rule is a plain function ``(text, base_url) -> List[str]`` that returns
absolute candidate URLs for one call-site idiom. ``extract_urls`` runs a
sequence of rules, keeps what is in scope and deduplicates on the normalized
form. Adding or removing a heuristic means editing ``DEFAULT_RULES`` only.
"""

import re
from typing import Callable, Iterable, List, Sequence

from exposurescanner.parsers.urls import in_scope, normalize_url, resolve


Rule = Callable[[str, str], List[str]]

_Q = r"[\"']"            # attribute / string quote
_QT = r"[\"'`]"          # string quote incl. template literal


def _pattern_rule(rx: re.Pattern, group: int = 1) -> Rule:
    def rule(text: str, base_url: str) -> List[str]:
        found = []
        for m in rx.finditer(text):
            url = resolve(m.group(group), base_url)
            if url:
                found.append(url)
        return found
    return rule


# ── Markup rules ───────────────────────────────────────────────

_HREF_RX = re.compile(r"(?<![\w-])href\s*=\s*" + _Q + r"([^\"']+)" + _Q, re.I)
_SRC_RX = re.compile(
    r"\b(?:src|data-src|data-url|data-href|data-endpoint|data-api)\s*=\s*"
    + _Q + r"([^\"']+)" + _Q, re.I)
_ACTION_RX = re.compile(r"\baction\s*=\s*" + _Q + r"([^\"']+)" + _Q, re.I)
_SCRIPT_SRC_RX = re.compile(
    r"<script\b[^>]*\bsrc\s*=\s*" + _Q + r"([^\"']+)" + _Q, re.I)

link_rule = _pattern_rule(_HREF_RX)
resource_rule = _pattern_rule(_SRC_RX)
form_action_rule = _pattern_rule(_ACTION_RX)


# ── Script rules ───────────────────────────────────────────────

# apiUrl: "/x", "endpoint": '/y', baseURL = `/z`
_KEYED_RX = re.compile(
    r"\b\w*(?:url|uri|endpoint|api|path|href)\w*" + _Q + r"?\s*[:=]\s*"
    + _QT + r"((?:https?://|/|\./|\.\./)[^\"'`\s]*)" + _QT, re.I)
_FETCH_RX = re.compile(r"\bfetch\s*\(\s*" + _QT + r"([^\"'`]+)" + _QT, re.I)
_VERB_RX = re.compile(
    r"(?:\baxios|\$http|\bhttp|\bapi|\bclient|\brequest|\$)"
    r"\.(?:get|post|put|delete|patch|head|options|getJSON)\s*\(\s*"
    + _QT + r"([^\"'`]+)" + _QT, re.I)
_AJAX_RX = re.compile(
    r"\$\.ajax\s*\(\s*\{[^}]*?\burl\s*:\s*" + _QT + r"([^\"'`]+)" + _QT, re.I)
_XHR_RX = re.compile(
    r"\.open\s*\(\s*" + _Q + r"(?:GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)"
    + _Q + r"\s*,\s*" + _QT + r"([^\"'`]+)" + _QT, re.I)
_TEMPLATE_RX = re.compile(r"`([^`]*)`")
_API_HINT_RX = re.compile(r"/api/|/graphql|/v\d+/|\.json", re.I)
_API_STRING_RX = re.compile(
    _Q + r"([^\"'\s]*(?:/api/|/graphql|\.json)[^\"'\s]*)" + _Q, re.I)

keyed_literal_rule = _pattern_rule(_KEYED_RX)
fetch_rule = _pattern_rule(_FETCH_RX)
xhr_open_rule = _pattern_rule(_XHR_RX)
api_string_rule = _pattern_rule(_API_STRING_RX)
_verb_call = _pattern_rule(_VERB_RX)
_ajax_call = _pattern_rule(_AJAX_RX)


def verb_call_rule(text: str, base_url: str) -> List[str]:
    """axios.get('/x'), $http.post('/y'), $.getJSON('/z'), $.ajax({url: ...})."""
    return _verb_call(text, base_url) + _ajax_call(text, base_url)


def template_rule(text: str, base_url: str) -> List[str]:
    """`${BASE}/api/users/${id}` -> <base>/api/users/"""
    found = []
    for m in _TEMPLATE_RX.finditer(text):
        body = m.group(1)
        if not _API_HINT_RX.search(body):
            continue
        body = re.sub(r"^\$\{[^}]*\}", "", body)
        body = body.split("${", 1)[0]
        url = resolve(body, base_url)
        if url:
            found.append(url)
    return found


DEFAULT_RULES: Sequence[Rule] = (
    link_rule,
    resource_rule,
    form_action_rule,
    keyed_literal_rule,
    fetch_rule,
    verb_call_rule,
    xhr_open_rule,
    template_rule,
    api_string_rule,
)


# ── Public helpers ─────────────────────────────────────────────

def _scoped(urls: Iterable[str], domain: str) -> List[str]:
    seen = {}
    for url in urls:
        if not in_scope(url, domain):
            continue
        try:
            norm = normalize_url(url)
        except ValueError:
            continue
        seen.setdefault(norm, None)
    return list(seen)


def extract_urls(text: str, base_url: str, domain: str,
                 rules: Sequence[Rule] = DEFAULT_RULES) -> List[str]:
    """Run every rule over text and return unique in-scope normalized URLs."""
    if not text:
        return []
    candidates: List[str] = []
    for rule in rules:
        candidates.extend(rule(text, base_url))
    return _scoped(candidates, domain)


def extract_script_urls(html: str, base_url: str, domain: str,
                        limit: int = 20) -> List[str]:
    """Return up to limit in-scope <script src> URLs from html."""
    if not html:
        return []
    return _scoped(_pattern_rule(_SCRIPT_SRC_RX)(html, base_url), domain)[:limit]
