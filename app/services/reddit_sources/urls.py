# app/services/reddit_sources/urls.py
"""
Reference validation and upstream URL construction.
"""

import re
from typing import Any
from urllib.parse import quote, urlparse

from app.constants import InputLimits, RedditEndpoints
from app.services.reddit_sources.errors import InvalidInputError

_POST_ID_RE = re.compile(r"^[a-z0-9]{1,12}$", re.IGNORECASE)
_SUBREDDIT_RE = re.compile(InputLimits.SUBREDDIT_NAME_PATTERN)
_USERNAME_RE = re.compile(InputLimits.USERNAME_PATTERN)
_SHORT_LINK_HOSTS = {"redd.it", "www.redd.it"}


def extract_post_id(url: Any) -> str:
    """
    Pull the post id out of a Reddit post URL.

    Accepts .../comments/<id>/... links and redd.it/<id> short links.

    Raises:
        InvalidInputError: INVALID_INPUT for a non-string, INVALID_URL_FORMAT otherwise
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidInputError("Valid URL is required", code="INVALID_INPUT")

    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError("Invalid Reddit URL format", code="INVALID_URL_FORMAT")

    segments = [s for s in parsed.path.split("/") if s]
    host = parsed.netloc.lower()

    post_id = None
    if host in _SHORT_LINK_HOSTS and segments:
        post_id = segments[0]
    elif "comments" in segments:
        index = segments.index("comments")
        if index + 1 < len(segments):
            post_id = segments[index + 1]

    if not post_id or not _POST_ID_RE.match(post_id):
        raise InvalidInputError("Invalid Reddit URL format", code="INVALID_URL_FORMAT")
    return post_id.lower()


def validate_post_id(post_id: Any) -> str:
    """Bare post id, as used by the insight endpoint. Returned lowercased."""
    if not isinstance(post_id, str) or not _POST_ID_RE.match(post_id):
        raise InvalidInputError("Invalid post id", code="INVALID_INPUT")
    return post_id.lower()


def validate_username(username: Any) -> str:
    if (
        not isinstance(username, str)
        or not InputLimits.USERNAME_MIN_CHARS <= len(username) <= InputLimits.USERNAME_MAX_CHARS
        or not _USERNAME_RE.match(username)
    ):
        raise InvalidInputError("Invalid username format", code="INVALID_USERNAME")
    return username


def validate_subreddit_name(name: Any) -> str:
    if not isinstance(name, str) or not _SUBREDDIT_RE.match(name):
        raise InvalidInputError("Invalid subreddit name", code="INVALID_SUBREDDIT_NAME")
    return name


def post_url(post_id: str) -> str:
    return RedditEndpoints.POST.format(post_id=post_id)


def oembed_url(original_url: str) -> str:
    return RedditEndpoints.OEMBED.format(url=quote(original_url, safe=""))


def subreddit_about_url(name: str) -> str:
    return RedditEndpoints.SUBREDDIT_ABOUT.format(name=name)


def subreddit_top_url(name: str) -> str:
    return RedditEndpoints.SUBREDDIT_TOP.format(name=name)


def subreddit_new_url(name: str) -> str:
    return RedditEndpoints.SUBREDDIT_NEW.format(name=name)


def user_about_url(username: str) -> str:
    return RedditEndpoints.USER_ABOUT.format(username=username)


def user_overview_url(username: str) -> str:
    return RedditEndpoints.USER_OVERVIEW.format(username=username)
