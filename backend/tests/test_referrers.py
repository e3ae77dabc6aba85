"""
Tests for referrer normalization.
"""
import pytest

from hitcount.models import RefScheme
from hitcount.services.referrers import (
    DIRECT,
    MAX_DISPLAY_LENGTH,
    MAX_UNPARSED_LENGTH,
    ParsedRef,
    extract_campaign,
    normalize,
    strip_query_params,
)


class TestNormalize:
    """Display string and scheme for raw referrers."""

    def test_empty_is_direct(self):
        assert normalize("") == DIRECT
        assert normalize(None) == DIRECT
        assert normalize("   ") == ParsedRef("", RefScheme.OTHER)

    def test_google_search(self):
        assert normalize("https://www.google.com/search?q=x") == ParsedRef(
            "Google", RefScheme.HTTP
        )

    def test_reddit_alias_and_listing_suffix(self):
        assert normalize("https://old.reddit.com/r/test/top") == ParsedRef(
            "www.reddit.com/r/test", RefScheme.HTTP
        )

    def test_spam_is_suppressed(self):
        assert normalize("https://evil.semalt.com/x") == ParsedRef("", RefScheme.OTHER)
        assert normalize("HTTP://Best-SEO-Offer.com") == DIRECT

    def test_campaign_keeps_tracking_tags(self):
        ref = normalize("?utm_source=newsletter&utm_campaign=launch")
        assert ref.scheme == RefScheme.CAMPAIGN
        assert "utm_source=newsletter" in ref.display
        assert "utm_campaign=launch" in ref.display

    def test_campaign_drops_click_ids(self):
        ref = normalize("https://example.com/?utm_source=ads&gclid=123")
        assert ref == ParsedRef("example.com/?utm_source=ads", RefScheme.CAMPAIGN)

    def test_generic_url_strips_tracking_params_and_protocol(self):
        ref = normalize("https://example.com/blog/post?id=3&fbclid=abc")
        assert ref == ParsedRef("example.com/blog/post?id=3", RefScheme.HTTP)

    def test_bare_host_gets_root_path(self):
        assert normalize("https://example.com").display == "example.com/"

    def test_missing_protocol_is_treated_as_web(self):
        assert normalize("example.com/page") == ParsedRef("example.com/page", RefScheme.HTTP)

    @pytest.mark.parametrize(
        "raw,display",
        [
            ("https://news.ycombinator.com/", "Hacker News"),
            ("https://mail.google.com/mail/u/0/", "Email"),
            ("https://feedly.com/i/latest", "RSS"),
            ("https://m.facebook.com/story.php", "www.facebook.com"),
            ("https://duckduckgo.com/", "DuckDuckGo"),
            ("https://www.bing.com/search?q=x", "Bing"),
            ("https://yandex.ru/search/?text=x", "Yandex"),
            ("https://lobste.rs/t/python", "lobste.rs"),
            ("https://lobste.rs/s/abc123/title", "lobste.rs/s/abc123/title"),
            ("https://t.co/abc123", "twitter.com/search?q=https://t.co/abc123"),
            ("https://getpocket.com/read/42", "getpocket.com"),
            ("https://www.reddit.com/r/python/.compact", "www.reddit.com/r/python/"),
            ("https://en.m.wikipedia.org/wiki/Python", "en.wikipedia.org/wiki/Python"),
        ],
    )
    def test_known_sites(self, raw, display):
        assert normalize(raw).display == display

    def test_port_is_part_of_the_referrer(self):
        assert normalize("http://example.com:8080/x").display == "example.com:8080/x"
        assert normalize("https://Example.com:443/x").display == "example.com/x"
        assert normalize("https://user:pw@example.com/x").display == "example.com/x"

    def test_app_referrer_keeps_other_scheme(self):
        assert normalize("android-app://com.slack") == ParsedRef("Slack", RefScheme.OTHER)

    def test_unparsable_is_kept_truncated(self):
        raw = "not a url " * 50
        ref = normalize(raw)
        assert ref.scheme == RefScheme.OTHER
        assert ref.display == raw.strip()[:MAX_UNPARSED_LENGTH]

    @pytest.mark.parametrize(
        "raw",
        ["http://[::1", "://", "https://", "\x00\x01", "h" * 100_000, "%%%%", "https://ex ample.com"],
    )
    def test_never_raises(self, raw):
        ref = normalize(raw)
        assert isinstance(ref.scheme, RefScheme)
        assert isinstance(ref.display, str)


class TestHelpers:
    def test_strip_query_params_keeps_order(self):
        assert strip_query_params("b=2&ref=x&a=1", ["ref"]) == "b=2&a=1"

    def test_display_is_bounded(self):
        generic = normalize("https://example.com/?" + "x=" + "a" * 5000)
        campaign = normalize("https://example.com/?utm_source=" + "\u00e9" * 5000)
        assert generic.scheme == RefScheme.HTTP
        assert len(generic.display) == MAX_DISPLAY_LENGTH
        assert campaign.scheme == RefScheme.CAMPAIGN
        assert len(campaign.display) == MAX_DISPLAY_LENGTH

    def test_extract_campaign(self):
        url = "https://example.com/?utm_source=nl&utm_medium=email&utm_campaign=launch"
        assert extract_campaign(url) == "launch / nl / email"

    def test_extract_campaign_without_tags(self):
        assert extract_campaign("https://example.com/?q=1") is None
