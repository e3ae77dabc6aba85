"""
Referrer normalization.

Turns the raw ``document.referrer`` value into a short display string and a
scheme code so that "top referrers" groups near-duplicates together instead
of producing a long tail of one-off URLs.
"""
import re
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit

from hitcount.models.dimensions import RefScheme

# Unparsable referrers are kept, but only this much of them
MAX_UNPARSED_LENGTH = 200

# Longest stored display string; keeps the unique index entry well under
# PostgreSQL's btree limit even for multibyte text
MAX_DISPLAY_LENGTH = 500

DEFAULT_PORTS = {"http": 80, "https": 443}

# Well-known referrers collapsed into one label
GROUPS = {
    # Hacker News (sends only the origin)
    "news.ycombinator.com": "Hacker News",
    "hn.algolia.com": "Hacker News",
    "hckrnews.com": "Hacker News",
    "hn.premii.com": "Hacker News",
    "hackerweb.app": "Hacker News",
    "quiethn.com": "Hacker News",
    # Mail
    "mail.google.com": "Email",
    "com.google.android.gm": "Email",
    "mail.yahoo.com": "Email",
    "outlook.live.com": "Email",
    # Feed readers
    "feedly.com": "RSS",
    "www.inoreader.com": "RSS",
    "usepanda.com": "RSS",
    # Android apps
    "com.google.android.googlequicksearchbox": "Google",
    "com.andrewshu.android.reddit": "www.reddit.com",
    "com.laurencedawson.reddit_sync": "www.reddit.com",
    "org.telegram.messenger": "Telegram",
    "com.slack": "Slack",
    # Facebook link shims
    "m.facebook.com": "www.facebook.com",
    "l.facebook.com": "www.facebook.com",
    "lm.facebook.com": "www.facebook.com",
    # Baidu
    "baidu.com": "Baidu",
    "m.baidu.com": "Baidu",
    "www.baidu.com": "Baidu",
    "tieba.baidu.com": "Baidu",
}

# Mobile and legacy hosts -> canonical host
HOST_ALIASES = {
    "en.m.wikipedia.org": "en.wikipedia.org",
    "m.facebook.com": "www.facebook.com",
    "old.reddit.com": "www.reddit.com",
    "i.reddit.com": "www.reddit.com",
    "np.reddit.com": "www.reddit.com",
}

# Search engines matched on part of the host
DOMAIN_FAMILIES = (
    ("Yandex", "yandex."),
    ("Yahoo", "search.yahoo."),
    ("Bing", "bing.com"),
    ("DuckDuckGo", "duckduckgo."),
)

CAMPAIGN_PARAMS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
)

# Click identifiers and share markers that never help group referrers
CLICK_PARAMS = (
    "fbclid",
    "gclid",
    "msclkid",
    "dclid",
    "mc_cid",
    "mc_eid",
    "__cf_chl_captcha_tk__",
    "__cf_chl_jschl_tk__",
    "ref",
    "source",
    "share",
)

TRACKING_PARAMS = frozenset(CAMPAIGN_PARAMS + CLICK_PARAMS)

SPAM_DOMAINS = (
    "semalt.com",
    "buttons-for-website.com",
    "event-tracking.com",
    "free-social-buttons.com",
    "get-free-traffic-now.com",
    "best-seo-offer.com",
    "best-seo-solution.com",
    "buy-cheap-online.info",
    "success-seo.com",
    "theguardlan.com",
    "fix-website-errors.com",
)

REDDIT_SUFFIXES = ("/top", "/new", "/search", ".compact")

_HAS_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_HTTP_PREFIX = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedRef:
    display: str
    scheme: RefScheme


DIRECT = ParsedRef(display="", scheme=RefScheme.OTHER)


def strip_query_params(query: str, drop: Iterable[str]) -> str:
    """Remove the named parameters from a query string, keeping the rest in order."""
    dropped = set(drop)
    kept = [(k, v) for k, v in parse_qsl(query, keep_blank_values=True) if k not in dropped]
    return urlencode(kept)


def _with_query(base: str, query: str) -> str:
    return f"{base}?{query}" if query else base


def _strip_protocol(ref: str) -> str:
    return _HTTP_PREFIX.sub("", ref)


def _clean_campaign(ref: str) -> str:
    """Drop click identifiers from a campaign referrer, keeping its utm_* tags."""
    ref = _strip_protocol(ref)
    base, sep, rest = ref.partition("?")
    if not sep:
        return ref
    query, _, _ = rest.partition("#")
    return _with_query(base, strip_query_params(query, CLICK_PARAMS))


def _is_spam(ref: str) -> bool:
    lower_ref = ref.lower()
    return any(domain in lower_ref for domain in SPAM_DOMAINS)


def _host_with_port(url: SplitResult) -> Optional[str]:
    """Lowercased host, keeping the port unless it is the scheme's default."""
    if not url.hostname:
        return None
    host = url.netloc.rpartition("@")[2].lower().rstrip(":")
    port = url.port
    if port is not None and DEFAULT_PORTS.get(url.scheme.lower()) == port:
        host = host.rpartition(":")[0]
    return host


def _clean_url(raw_host: str, url: SplitResult) -> str:
    """Display string for a parsed referrer URL."""
    host = HOST_ALIASES.get(raw_host, raw_host)
    path = url.path

    label = GROUPS.get(raw_host) or GROUPS.get(host)
    if label:
        return label

    if host.startswith("www.google.") or host.startswith("google."):
        return "Google"
    for name, fragment in DOMAIN_FAMILIES:
        if fragment in host:
            return name

    # Shortened tweet links: the best we can do is a search for the link
    if host == "t.co" and len(path) > 1:
        return f"twitter.com/search?q=https://t.co{path}"

    # Only story pages are interesting
    if host == "lobste.rs" and not path.startswith("/s/"):
        return "lobste.rs"

    if host in ("www.reddit.com", "reddit.com"):
        for suffix in REDDIT_SUFFIXES:
            if path.endswith(suffix):
                path = path[: -len(suffix)]
                break
        return f"www.reddit.com{path}"

    if host in ("getpocket.com", "app.getpocket.com"):
        return "getpocket.com"

    return _with_query(host + (path or "/"), strip_query_params(url.query, TRACKING_PARAMS))


def normalize(raw: Optional[str]) -> ParsedRef:
    """
    Normalize a raw referrer into ``(display, scheme)``.

    Never raises: spam and empty values map to the direct referrer,
    anything that does not parse as a URL is kept truncated with the
    "other" scheme.
    """
    ref = (raw or "").strip()
    if not ref:
        return DIRECT

    if _is_spam(ref):
        return DIRECT

    if "utm_" in ref or "campaign" in ref:
        display = _clean_campaign(ref)[:MAX_DISPLAY_LENGTH]
        return ParsedRef(display=display, scheme=RefScheme.CAMPAIGN)

    unparsed = ParsedRef(display=ref[:MAX_UNPARSED_LENGTH], scheme=RefScheme.OTHER)
    candidate = ref if _HAS_SCHEME.match(ref) else f"https://{ref}"
    try:
        url = urlsplit(candidate)
        host = _host_with_port(url)
    except ValueError:
        return unparsed
    if not host or any(ch.isspace() for ch in host):
        return unparsed

    scheme = RefScheme.HTTP if url.scheme.lower() in ("http", "https") else RefScheme.OTHER
    return ParsedRef(display=_clean_url(host, url)[:MAX_DISPLAY_LENGTH], scheme=scheme)


def extract_campaign(url: str) -> Optional[str]:
    """``campaign / source / medium`` from a URL's utm_* parameters, if any."""
    candidate = url if _HAS_SCHEME.match(url) else f"https://{url}"
    try:
        params = dict(parse_qsl(urlsplit(candidate).query))
    except ValueError:
        return None

    parts = [
        params.get(key)
        for key in ("utm_campaign", "utm_source", "utm_medium")
        if params.get(key)
    ]
    return " / ".join(parts) if parts else None
