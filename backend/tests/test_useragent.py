"""
Tests for User-Agent classification and bot scoring.
"""
import pytest

from hitcount.services.useragent import (
    BOT_SCORE_CERTAIN,
    BOT_SCORE_SUSPICIOUS,
    BOT_SCORE_THRESHOLD,
    ParsedUA,
    classify,
    detect_bot,
    major_minor,
)
from tests.conftest import CHROME_MAC_UA, FIREFOX_UA, IPHONE_UA

EDGE_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91"
)
OPERA_UA = (
    "Mozilla/5.0 (Windows NT 6.1; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36 OPR/105.0.0.0"
)
SAMSUNG_UA = (
    "Mozilla/5.0 (Linux; Android 13; SM-S911B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) SamsungBrowser/23.0 Chrome/115.0.0.0 Mobile Safari/537.36"
)
IE11_UA = "Mozilla/5.0 (Windows NT 6.3; Trident/7.0; rv:11.0) like Gecko"
UBUNTU_FIREFOX_UA = (
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
)


class TestClassify:
    """Browser and OS detection."""

    def test_firefox_desktop(self):
        ua = classify(FIREFOX_UA)
        assert ua.browser_name == "Firefox"
        assert ua.browser_version == "122"
        assert ua.os_name == "Windows"
        assert ua.os_version == "10"

    def test_iphone_is_ios_not_macos(self):
        ua = classify(IPHONE_UA)
        assert ua.os_name == "iOS"
        assert ua.os_version == "17.2"
        assert ua.browser_name == "Safari"
        assert ua.browser_version == "17.2"

    def test_chrome_on_macos(self):
        ua = classify(CHROME_MAC_UA)
        assert ua.browser_name == "Chrome"
        assert ua.browser_version == "120"
        assert ua.os_name == "macOS"
        assert ua.os_version == "10.15"

    @pytest.mark.parametrize(
        "user_agent,browser",
        [
            (EDGE_UA, "Edge"),
            (OPERA_UA, "Opera"),
            (SAMSUNG_UA, "Samsung Browser"),
            (IE11_UA, "Internet Explorer"),
        ],
    )
    def test_overlapping_tokens_resolve_to_most_specific(self, user_agent, browser):
        assert classify(user_agent).browser_name == browser

    def test_windows_nt_marketing_names(self):
        assert classify(OPERA_UA).os_version == "7"
        assert classify(IE11_UA).os_version == "8.1"

    def test_android_version(self):
        ua = classify(SAMSUNG_UA)
        assert ua.os_name == "Android"
        assert ua.os_version == "13"

    def test_ubuntu(self):
        assert classify(UBUNTU_FIREFOX_UA).os_name == "Ubuntu"

    @pytest.mark.parametrize(
        "user_agent",
        ["", "   ", "garbage", "\x00\xff�", "Mozilla/5.0 (", "a" * 3_000_000],
    )
    def test_never_raises(self, user_agent):
        result = classify(user_agent)
        assert isinstance(result, ParsedUA)

    def test_unknown_is_empty(self):
        assert classify("") == ParsedUA("", "", "", "")
        assert classify("totally unknown agent") == ParsedUA("", "", "", "")

    def test_major_minor(self):
        assert major_minor("17_2_1") == "17.2"
        assert major_minor("10.15.7") == "10.15"
        assert major_minor("13") == "13"


class TestDetectBot:
    """Server-side bot scoring."""

    def test_browser_scores_zero(self):
        assert detect_bot(FIREFOX_UA) == 0
        assert detect_bot(IPHONE_UA) == 0

    @pytest.mark.parametrize(
        "user_agent",
        [
            "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
            "curl/8.4.0",
            "python-requests/2.31.0",
            "Mozilla/5.0 HeadlessChrome/120.0.0.0",
        ],
    )
    def test_known_bots_are_dropped(self, user_agent):
        assert detect_bot(user_agent) == BOT_SCORE_CERTAIN
        assert detect_bot(user_agent) > BOT_SCORE_THRESHOLD

    def test_empty_and_short_are_suspicious_but_kept(self):
        assert detect_bot("") == BOT_SCORE_SUSPICIOUS
        assert detect_bot("Mozilla/5.0") == BOT_SCORE_SUSPICIOUS
        assert detect_bot("Mozilla/5.0") <= BOT_SCORE_THRESHOLD

    def test_huge_input(self):
        assert detect_bot("Mozilla/5.0 " + "x" * 5_000_000) >= 0
