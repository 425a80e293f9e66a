# app/constants.py
"""
Centralized magic constants organized by domain.

All hardcoded numbers/strings used by the fetch, scoring and caching code
are defined here with a note on their purpose.
"""


# Stamped on every persisted record so historical rows stay comparable
# when a scoring formula changes.
SCORING_VERSION = "v1"


class RedditEndpoints:
    """Upstream Reddit URLs (format strings)."""

    BASE_URL = "https://www.reddit.com"
    POST = BASE_URL + "/comments/{post_id}.json?limit=100"
    OEMBED = BASE_URL + "/oembed?url={url}"
    SUBREDDIT_ABOUT = BASE_URL + "/r/{name}/about.json"
    SUBREDDIT_TOP = BASE_URL + "/r/{name}/top.json?limit=5&t=week"
    SUBREDDIT_NEW = BASE_URL + "/r/{name}/new.json?limit=5"
    USER_ABOUT = BASE_URL + "/user/{username}/about.json"
    USER_OVERVIEW = BASE_URL + "/user/{username}/overview.json?limit=5"


class FetchDefaults:
    """Retrying fetcher defaults."""

    MAX_ATTEMPTS = 3
    ATTEMPT_TIMEOUT_SECONDS = 10.0
    BACKOFF_BASE_SECONDS = 1.0          # 1000ms unit for both backoff policies
    USER_AGENT = "RedditPulse/1.0 (analytics backend)"


class RateLimits:
    """Shared upstream admission limits (process-wide)."""

    MAX_REQUESTS = 10                   # Per sliding window
    WINDOW_SECONDS = 60.0
    MAX_PER_SECOND = 1.0                # Sustained cap


class CacheDefaults:
    """Result cache settings."""

    TTL_SECONDS = 300
    MAX_ENTRIES = 10_000                # Memory guard only, eviction is by TTL
    INSIGHT_TTL_SECONDS = 3600


class SentimentThresholds:
    """Category cut-offs applied to every compound score (inclusive)."""

    POSITIVE = 0.05
    NEGATIVE = -0.05


class SentimentWeights:
    """Fixed blend weights per call-site."""

    POST_TITLE = 0.4
    POST_BODY = 0.3
    POST_COMMENTS = 0.3

    SUBREDDIT_TOP = 0.5
    SUBREDDIT_NEW = 0.5


class MetricWeights:
    """Constants behind the engagement/controversy/virality formulas."""

    # Engagement
    ENGAGEMENT_UPVOTE_WEIGHT = 70
    ENGAGEMENT_COMMENT_WEIGHT = 30
    ENGAGEMENT_SCALE = 100

    # Controversy
    CONTROVERSY_MIN_UPVOTES = 10
    CONTROVERSY_COMMENT_BASELINE = 0.1  # Expected comments per upvote

    # Virality
    VIRALITY_VELOCITY_WEIGHT = 0.4
    VIRALITY_COMMENT_WEIGHT = 0.3
    VIRALITY_AWARD_WEIGHT = 0.3
    VIRALITY_AWARD_POINTS = 5           # Bonus points per award
    VIRALITY_AWARD_CAP = 50
    VIRALITY_SIZE_LOG_DIVISOR = 7       # log10(10M subscribers) == 1.0

    SCORE_MIN = 0
    SCORE_MAX = 100


class InputLimits:
    """Validation bounds for caller-supplied references."""

    USERNAME_MIN_CHARS = 3
    USERNAME_MAX_CHARS = 20
    SUBREDDIT_NAME_PATTERN = r"^[A-Za-z0-9_]{1,21}$"
    USERNAME_PATTERN = r"^[A-Za-z0-9_-]+$"
    COMMENTS_TO_SCORE = 100
