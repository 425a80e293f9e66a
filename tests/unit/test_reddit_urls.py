# tests/unit/test_reddit_urls.py
"""
Unit tests for reference validation and upstream URL building.
"""

import pytest

from app.services.reddit_sources import urls
from app.services.reddit_sources.errors import InvalidInputError


class TestExtractPostId:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.reddit.com/r/python/comments/abc123/some_title/", "abc123"),
            ("https://old.reddit.com/r/python/comments/ABC123/", "abc123"),
            ("https://www.reddit.com/comments/xyz789", "xyz789"),
            ("https://redd.it/q1w2e3", "q1w2e3"),
            ("  https://www.reddit.com/r/a/comments/abc123/t/?utm_source=share  ", "abc123"),
        ],
    )
    def test_valid_urls(self, url, expected):
        assert urls.extract_post_id(url) == expected

    @pytest.mark.parametrize("url", [None, "", "   ", 123])
    def test_missing_url(self, url):
        with pytest.raises(InvalidInputError) as exc_info:
            urls.extract_post_id(url)
        assert exc_info.value.code == "INVALID_INPUT"

    @pytest.mark.parametrize(
        "url",
        [
            "reddit.com/r/python/comments/abc123",
            "https://www.reddit.com/r/python/",
            "https://www.reddit.com/r/python/comments/",
            "https://www.reddit.com/r/python/comments/not-an-id!/",
        ],
    )
    def test_malformed_url(self, url):
        with pytest.raises(InvalidInputError) as exc_info:
            urls.extract_post_id(url)
        assert exc_info.value.code == "INVALID_URL_FORMAT"


class TestValidateUsername:
    @pytest.mark.parametrize("name", ["spez", "abc", "a_b-c", "x" * 20])
    def test_valid(self, name):
        assert urls.validate_username(name) == name

    @pytest.mark.parametrize("name", ["ab", "x" * 21, "has space", "bad$name", None])
    def test_invalid(self, name):
        with pytest.raises(InvalidInputError) as exc_info:
            urls.validate_username(name)
        assert exc_info.value.code == "INVALID_USERNAME"


class TestValidateSubredditName:
    @pytest.mark.parametrize("name", ["python", "AskReddit", "a", "x" * 21, "r_2"])
    def test_valid(self, name):
        assert urls.validate_subreddit_name(name) == name

    @pytest.mark.parametrize("name", ["", "x" * 22, "no-dash", "r/python", None])
    def test_invalid(self, name):
        with pytest.raises(InvalidInputError) as exc_info:
            urls.validate_subreddit_name(name)
        assert exc_info.value.code == "INVALID_SUBREDDIT_NAME"


class TestValidatePostId:
    def test_lowercases(self):
        assert urls.validate_post_id("ABC123") == "abc123"

    @pytest.mark.parametrize("post_id", ["", "abc-123", "x" * 13, None])
    def test_invalid(self, post_id):
        with pytest.raises(InvalidInputError):
            urls.validate_post_id(post_id)


class TestUrlBuilders:
    def test_post_url(self):
        assert urls.post_url("abc123") == "https://www.reddit.com/comments/abc123.json?limit=100"

    def test_oembed_url_quotes_target(self):
        built = urls.oembed_url("https://www.reddit.com/r/a/comments/abc123/?x=1&y=2")
        assert built.startswith("https://www.reddit.com/oembed?url=https%3A%2F%2F")
        assert "&y=2" not in built

    def test_subreddit_listing_urls(self):
        assert urls.subreddit_top_url("python").endswith("/r/python/top.json?limit=5&t=week")
        assert urls.subreddit_new_url("python").endswith("/r/python/new.json?limit=5")

    def test_user_urls(self):
        assert urls.user_about_url("spez") == "https://www.reddit.com/user/spez/about.json"
        assert urls.user_overview_url("spez").endswith("/user/spez/overview.json?limit=5")
