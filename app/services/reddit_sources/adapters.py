# app/services/reddit_sources/adapters.py
"""
Typed extraction from raw Reddit JSON.

Each upstream shape has one parser that produces a fixed dataclass. Unknown
or missing fields fall back to defaults here, so the rest of the pipeline
never touches raw payloads. A payload that does not have the expected shape
at all raises PayloadShapeError.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Placeholders Reddit uses for removed content
_REMOVED_BODIES = {"[deleted]", "[removed]"}


class PayloadShapeError(ValueError):
    """Raised when a payload is not the shape its parser expects."""

    pass


# -----------------------------------------------------------------------------
# Field helpers
# -----------------------------------------------------------------------------


def _int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return default


def _float(value: Any, default: float | None = None) -> float | None:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return default


def _str(value: Any, default: str | None = None) -> str | None:
    if isinstance(value, str) and value:
        return value
    return default


def _image(value: Any) -> str | None:
    """Reddit HTML-escapes image URLs; non-URL placeholders like 'self' become None."""
    url = _str(value)
    if not url or not url.startswith("http"):
        return None
    return url.replace("&amp;", "&")


def _data(obj: dict[str, Any]) -> dict[str, Any]:
    """The `data` object of a Reddit thing; absent means empty."""
    data = obj.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PayloadShapeError(f"Expected an object under 'data', got {type(data).__name__}")
    return data


def _listing_children(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict) or payload.get("kind") != "Listing":
        raise PayloadShapeError("Expected a Listing")
    children = _data(payload).get("children")
    if not isinstance(children, list):
        raise PayloadShapeError("Listing has no children")
    return [c for c in children if isinstance(c, dict)]


# -----------------------------------------------------------------------------
# Posts
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class PostInfo:
    """A submission from /comments/{id}.json."""

    post_id: str
    title: str
    selftext: str
    author: str
    subreddit: str
    ups: int
    upvote_ratio: float | None
    num_comments: int
    awards: int
    created_utc: float | None
    is_video: bool
    domain: str
    url: str | None
    permalink: str | None
    thumbnail: str | None


def parse_post_listing(payload: Any) -> tuple[PostInfo, list[str]]:
    """
    Parse the two-element array returned by /comments/{id}.json.

    Returns:
        The post and the bodies of its top-level comments

    Raises:
        PayloadShapeError: If the first listing has no t3 submission
    """
    if not isinstance(payload, list) or not payload:
        raise PayloadShapeError("Expected [post_listing, comment_listing]")

    children = _listing_children(payload[0])
    posts = [c.get("data") for c in children if c.get("kind") == "t3" and isinstance(c.get("data"), dict)]
    if not posts:
        raise PayloadShapeError("Post listing is empty")
    data = posts[0]

    post = PostInfo(
        post_id=_str(data.get("id"), ""),
        title=_str(data.get("title"), ""),
        selftext=_str(data.get("selftext"), ""),
        author=_str(data.get("author"), "Unknown"),
        subreddit=_str(data.get("subreddit"), ""),
        ups=max(0, _int(data.get("ups"))),
        upvote_ratio=_float(data.get("upvote_ratio")),
        num_comments=max(0, _int(data.get("num_comments"))),
        awards=max(0, _int(data.get("total_awards_received"))),
        created_utc=_float(data.get("created_utc")),
        is_video=bool(data.get("is_video", False)),
        domain=_str(data.get("domain"), "self"),
        url=_str(data.get("url")),
        permalink=_str(data.get("permalink")),
        thumbnail=_image(data.get("thumbnail")),
    )

    comments: list[str] = []
    if len(payload) > 1:
        try:
            comments = parse_comment_bodies(payload[1])
        except PayloadShapeError as e:
            logger.debug(f"Comment listing for post {post.post_id} unreadable: {e}")
    return post, comments


def parse_comment_bodies(payload: Any) -> list[str]:
    """Bodies of t1 comments in a listing, skipping deleted/removed ones."""
    bodies = []
    for child in _listing_children(payload):
        if child.get("kind") != "t1":
            continue
        data = child.get("data")
        body = _str(data.get("body")) if isinstance(data, dict) else None
        if body and body.strip() not in _REMOVED_BODIES:
            bodies.append(body)
    return bodies


@dataclass(frozen=True)
class EmbedInfo:
    """Response of the oEmbed endpoint."""

    title: str | None = None
    author_name: str | None = None
    provider_name: str | None = None
    thumbnail_url: str | None = None


def parse_oembed(payload: Any) -> EmbedInfo:
    if not isinstance(payload, dict):
        raise PayloadShapeError("Expected an oEmbed object")
    return EmbedInfo(
        title=_str(payload.get("title")),
        author_name=_str(payload.get("author_name")),
        provider_name=_str(payload.get("provider_name")),
        thumbnail_url=_image(payload.get("thumbnail_url")),
    )


# -----------------------------------------------------------------------------
# Subreddits
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SubredditAbout:
    """A subreddit from /r/{name}/about.json."""

    name: str
    subscribers: int
    active_users: int
    description: str
    category: str
    rules: list[str]
    created_utc: float | None
    over18: bool = False
    quarantine: bool = False
    restrict_posting: bool = False
    restrict_commenting: bool = False
    icon: str | None = None
    banner: str | None = None
    banner_background_color: str | None = None
    key_color: str | None = None
    lang: str = "en"
    whitelist_status: str = "none"
    submission_type: str = "any"


def parse_subreddit_about(payload: Any) -> SubredditAbout:
    """
    Raises:
        PayloadShapeError: If the payload is not a t5 with a display name.
            Reddit answers some missing subreddits with 200 and a search
            listing, so callers treat this as not found.
    """
    if not isinstance(payload, dict) or payload.get("kind") != "t5":
        raise PayloadShapeError("Expected a t5 subreddit object")
    data = _data(payload)
    name = _str(data.get("display_name"))
    if not name:
        raise PayloadShapeError("Subreddit has no display_name")

    rules = data.get("rules") or []
    if not isinstance(rules, list):
        raise PayloadShapeError("Subreddit rules is not a list")
    return SubredditAbout(
        name=name,
        subscribers=max(0, _int(data.get("subscribers"))),
        active_users=max(0, _int(data.get("active_user_count") or data.get("accounts_active"))),
        description=_str(data.get("public_description"), ""),
        category=_str(data.get("advertiser_category"), "General"),
        rules=[r for r in rules if isinstance(r, str)],
        created_utc=_float(data.get("created_utc")),
        over18=bool(data.get("over18", False)),
        quarantine=bool(data.get("quarantine", False)),
        restrict_posting=bool(data.get("restrict_posting", False)),
        restrict_commenting=bool(data.get("restrict_commenting", False)),
        icon=_image(data.get("icon_img")) or _image(data.get("community_icon")),
        banner=_image(data.get("banner_img")),
        banner_background_color=_str(data.get("banner_background_color")),
        key_color=_str(data.get("key_color")),
        lang=_str(data.get("lang"), "en"),
        whitelist_status=_str(data.get("whitelist_status"), "none"),
        submission_type=_str(data.get("submission_type"), "any"),
    )


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class UserAbout:
    """A redditor from /user/{name}/about.json."""

    username: str
    created_utc: float | None
    total_karma: int
    link_karma: int
    comment_karma: int
    awardee_karma: int = 0
    awarder_karma: int = 0
    is_employee: bool = False
    is_gold: bool = False
    is_mod: bool = False
    verified: bool = False
    icon: str | None = None
    banner: str | None = None
    profile_subscribers: int = 0


def parse_user_about(payload: Any) -> UserAbout:
    if not isinstance(payload, dict) or payload.get("kind") != "t2":
        raise PayloadShapeError("Expected a t2 user object")
    data = _data(payload)
    name = _str(data.get("name"))
    if not name:
        raise PayloadShapeError("User has no name")

    link_karma = _int(data.get("link_karma"))
    comment_karma = _int(data.get("comment_karma"))
    profile = data.get("subreddit") if isinstance(data.get("subreddit"), dict) else {}
    return UserAbout(
        username=name,
        created_utc=_float(data.get("created_utc")),
        total_karma=_int(data.get("total_karma"), link_karma + comment_karma),
        link_karma=link_karma,
        comment_karma=comment_karma,
        awardee_karma=_int(data.get("awardee_karma")),
        awarder_karma=_int(data.get("awarder_karma")),
        is_employee=bool(data.get("is_employee", False)),
        is_gold=bool(data.get("is_gold", False)),
        is_mod=bool(data.get("is_mod", False)),
        verified=bool(data.get("verified", False)),
        icon=_image(data.get("icon_img")),
        banner=_image(profile.get("banner_img")),
        profile_subscribers=max(0, _int(profile.get("subscribers"))),
    )


# -----------------------------------------------------------------------------
# Listings (overview / top / new)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ListingItem:
    """A submission (t3) or comment (t1) inside a listing."""

    item_id: str
    kind: str
    text: str
    subreddit: str
    score: int
    num_comments: int = 0
    upvote_ratio: float | None = None
    awards: int = 0
    created_utc: float | None = None

    @property
    def is_submission(self) -> bool:
        return self.kind == "t3"


@dataclass(frozen=True)
class Listing:
    items: list[ListingItem] = field(default_factory=list)

    @property
    def submissions(self) -> list[ListingItem]:
        return [item for item in self.items if item.is_submission]


def parse_listing(payload: Any) -> Listing:
    items = []
    for child in _listing_children(payload):
        kind = child.get("kind")
        data = child.get("data")
        if kind not in ("t1", "t3") or not isinstance(data, dict):
            continue
        text = _str(data.get("title")) if kind == "t3" else _str(data.get("body"))
        items.append(
            ListingItem(
                item_id=_str(data.get("id"), ""),
                kind=kind,
                text=text or "",
                subreddit=_str(data.get("subreddit"), ""),
                score=_int(data.get("score")),
                num_comments=max(0, _int(data.get("num_comments"))),
                upvote_ratio=_float(data.get("upvote_ratio")),
                awards=max(0, _int(data.get("total_awards_received"))),
                created_utc=_float(data.get("created_utc")),
            )
        )
    return Listing(items=items)
