# app/models.py
"""
Analytics Database Models

Tables:
- RedditPostRecord: Latest analytics per post, keyed by post_id
- RedditUserRecord: Latest analytics per user, keyed by username
- SubredditRecord: Latest analytics per subreddit, keyed by name

Each row is replaced wholesale by a later run (upsert on the key column).
The full analytics document lives in `payload`; a few counters are copied
into columns for querying.
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from app.database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class RedditPostRecord(Base):
    __tablename__ = "reddit_posts"

    post_id = Column(String(16), primary_key=True)
    subreddit = Column(String(32), nullable=True, index=True)
    upvotes = Column(Integer, nullable=False, default=0)
    comments = Column(Integer, nullable=False, default=0)
    sentiment_category = Column(String(16), nullable=True)
    scoring_version = Column(String(8), nullable=False)
    payload = Column(JSONType, nullable=False)
    analytics_timestamp = Column(DateTime(timezone=True), nullable=False)
    saved_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RedditUserRecord(Base):
    __tablename__ = "reddit_users"

    username = Column(String(32), primary_key=True)
    total_karma = Column(Integer, nullable=False, default=0)
    scoring_version = Column(String(8), nullable=False)
    payload = Column(JSONType, nullable=False)
    analytics_timestamp = Column(DateTime(timezone=True), nullable=False)
    saved_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SubredditRecord(Base):
    __tablename__ = "subreddits"

    name = Column(String(32), primary_key=True)
    subscribers = Column(Integer, nullable=False, default=0)
    scoring_version = Column(String(8), nullable=False)
    payload = Column(JSONType, nullable=False)
    analytics_timestamp = Column(DateTime(timezone=True), nullable=False)
    saved_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
