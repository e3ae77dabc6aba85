"""
User-Agent classification - browser and operating system detection.

Ordered, first-match-wins pattern tables. Several browsers embed each
other's tokens (Edge and Opera both claim Chrome, Chrome claims Safari),
so the more specific signatures come first.
"""
import re
from dataclasses import dataclass
from typing import Callable, Optional

from user_agents import parse as parse_ua

from hitcount.core.logging import get_logger

logger = get_logger(__name__)

# Longest User-Agent we pattern-match against; real ones are well under this
MAX_UA_LENGTH = 2048

_VERSION = r"(\d+(?:\.\d+)?)"


@dataclass(frozen=True)
class ParsedUA:
    browser_name: str = ""
    browser_version: str = ""
    os_name: str = ""
    os_version: str = ""


def _token(pattern: str) -> Callable[[str], Optional[str]]:
    """Matcher returning the first capture group, or None."""
    regex = re.compile(pattern)

    def match(ua: str) -> Optional[str]:
        found = regex.search(ua)
        return found.group(1) if found else None

    return match


_chrome_version = _token(r"Chrome/" + _VERSION)


def _brave(ua: str) -> Optional[str]:
    return _chrome_version(ua) if "Brave" in ua else None


def _chrome(ua: str) -> Optional[str]:
    return None if "Chromium" in ua else _chrome_version(ua)


def _bare_safari(ua: str) -> Optional[str]:
    return "" if "Safari" in ua and "Chrome" not in ua else None


_ie_version = _token(r"(?:MSIE |rv:)" + _VERSION)


def _internet_explorer(ua: str) -> Optional[str]:
    return _ie_version(ua) if "Trident" in ua else None


BROWSER_PATTERNS: tuple[tuple[str, Callable[[str], Optional[str]]], ...] = (
    ("Edge", _token(r"Edg(?:e|A|iOS)?/" + _VERSION)),
    ("Opera", _token(r"(?:OPR|Opera)/" + _VERSION)),
    ("Samsung Browser", _token(r"SamsungBrowser/" + _VERSION)),
    ("UC Browser", _token(r"UCBrowser/" + _VERSION)),
    ("Brave", _brave),
    ("Firefox", _token(r"Firefox/" + _VERSION)),
    ("Chrome", _chrome),
    ("Chromium", _token(r"Chromium/" + _VERSION)),
    ("Safari", _token(r"Version/" + _VERSION + r".*Safari")),
    ("Safari", _bare_safari),
    ("Internet Explorer", _internet_explorer),
    ("curl", _token(r"curl/" + _VERSION)),
    ("Wget", _token(r"Wget/" + _VERSION)),
)

# Windows NT kernel version -> marketing name
WINDOWS_NT_VERSIONS = {
    "10.0": "10",
    "6.3": "8.1",
    "6.2": "8",
    "6.1": "7",
    "6.0": "Vista",
    "5.1": "XP",
    "5.0": "2000",
}

_IOS = re.compile(r"(?:iPhone|iPad|iPod).*OS (\d+[_\d]*)")
_ANDROID = re.compile(r"Android " + _VERSION)
_WINDOWS_NT = re.compile(r"Windows NT (\d+\.\d+)")
_MACOS = re.compile(r"Mac OS X (\d+[_\d]*)")
_UBUNTU = re.compile(r"Ubuntu/" + _VERSION)


def major_minor(version: str) -> str:
    """Normalize ``17_2_1`` or ``17.2.1`` to ``17.2``."""
    parts = [part for part in version.replace("_", ".").split(".") if part]
    return ".".join(parts[:2])


def browser_version(version: str) -> str:
    """Drop a zero minor: ``122.0`` reads as ``122``, ``17.2`` stays."""
    return version[:-2] if version.endswith(".0") else version


def parse_browser(ua: str) -> tuple[str, str]:
    for name, matcher in BROWSER_PATTERNS:
        version = matcher(ua)
        if version is not None:
            return name, browser_version(version)
    return "", ""


def parse_os(ua: str) -> tuple[str, str]:
    # iOS user agents also say "like Mac OS X"
    match = _IOS.search(ua)
    if match:
        return "iOS", major_minor(match.group(1))

    match = _ANDROID.search(ua)
    if match:
        return "Android", match.group(1)

    match = _WINDOWS_NT.search(ua)
    if match:
        nt_version = match.group(1)
        return "Windows", WINDOWS_NT_VERSIONS.get(nt_version, nt_version)
    if "Windows" in ua:
        return "Windows", ""

    match = _MACOS.search(ua)
    if match:
        return "macOS", major_minor(match.group(1))
    if "Macintosh" in ua or "Mac OS" in ua:
        return "macOS", ""

    if "Ubuntu" in ua:
        match = _UBUNTU.search(ua)
        return "Ubuntu", match.group(1) if match else ""
    if "Fedora" in ua:
        return "Fedora", ""
    if "Linux" in ua:
        return "Linux", ""

    if "CrOS" in ua:
        return "Chrome OS", ""
    if "FreeBSD" in ua:
        return "FreeBSD", ""

    return "", ""


def classify(user_agent: str) -> ParsedUA:
    """
    Parse a User-Agent header into browser and OS name/version.

    Never raises; anything unrecognised comes back as empty strings,
    which the dimension registry maps to the "unknown" row.
    """
    if not user_agent:
        return ParsedUA()

    ua = user_agent[:MAX_UA_LENGTH]
    browser_name, browser_version = parse_browser(ua)
    os_name, os_version = parse_os(ua)
    return ParsedUA(
        browser_name=browser_name,
        browser_version=browser_version,
        os_name=os_name,
        os_version=os_version,
    )


BOT_PATTERNS = (
    "bot", "crawler", "spider", "scraper", "http",
    "curl", "wget", "python", "java/", "php/",
    "headless", "phantom", "selenium", "puppeteer",
    "googlebot", "bingbot", "yandex", "baidu",
    "facebookexternalhit", "twitterbot", "linkedinbot",
    "slackbot", "whatsapp", "telegram",
    "preview", "validator", "checker", "monitor",
)

BOT_SCORE_CERTAIN = 150
BOT_SCORE_SUSPICIOUS = 100
BOT_SCORE_UNUSUAL = 50
BOT_SCORE_THRESHOLD = 100


def _parsed_as_bot(user_agent: str) -> bool:
    try:
        return parse_ua(user_agent).is_bot
    except Exception as e:
        logger.warning("user_agent_parse_failed", error=str(e))
        return False


def detect_bot(user_agent: str) -> int:
    """
    Heuristic bot score for a User-Agent.

    Returns:
        0 for an ordinary browser, 50 for a UA without a browser token,
        100 for an empty or very short UA, 150 for a known bot or tool.
        Hits scoring above 100 are not recorded.
    """
    if not user_agent:
        return BOT_SCORE_SUSPICIOUS

    ua = user_agent[:MAX_UA_LENGTH]
    lower_ua = ua.lower()
    if any(pattern in lower_ua for pattern in BOT_PATTERNS) or _parsed_as_bot(ua):
        return BOT_SCORE_CERTAIN

    if len(ua) < 20:
        return BOT_SCORE_SUSPICIOUS

    if "mozilla" not in lower_ua and "opera" not in lower_ua:
        return BOT_SCORE_UNUSUAL

    return 0
