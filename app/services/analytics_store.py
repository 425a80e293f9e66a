# app/services/analytics_store.py
"""
Durable keyed storage for analytics records.

upsert() is insert-or-replace on the entity key, executed as a single
INSERT ... ON CONFLICT DO UPDATE statement so concurrent upserts of the same
key cannot lose updates. Every failure surfaces as StoreError; callers on
the read path treat it as non-fatal.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.models import RedditPostRecord, RedditUserRecord, SubredditRecord
from app.schemas.analytics import PostAnalytics, SubredditAnalytics, UserAnalytics
from app.services.reddit_sources.errors import StoreError

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AnalyticsStore:
    """Insert-or-replace persistence for post, user and subreddit analytics."""

    def __init__(self, session_factory: sessionmaker | None):
        """
        Args:
            session_factory: SQLAlchemy sessionmaker, or None when no database
                is configured (every upsert then raises StoreError)
        """
        self._session_factory = session_factory

    @property
    def enabled(self) -> bool:
        return self._session_factory is not None

    # -------------------------------------------------------------------------
    # Typed entry points
    # -------------------------------------------------------------------------

    def upsert_post(self, analytics: PostAnalytics) -> PostAnalytics:
        self.upsert(
            RedditPostRecord,
            "post_id",
            analytics.post_id,
            {
                "subreddit": analytics.subreddit,
                "upvotes": analytics.engagement.upvotes,
                "comments": analytics.engagement.comments,
                "sentiment_category": analytics.sentiment.category,
                **self._common_values(analytics),
            },
        )
        return analytics

    def upsert_user(self, analytics: UserAnalytics) -> UserAnalytics:
        self.upsert(
            RedditUserRecord,
            "username",
            analytics.username,
            {"total_karma": analytics.karma.total, **self._common_values(analytics)},
        )
        return analytics

    def upsert_subreddit(self, analytics: SubredditAnalytics) -> SubredditAnalytics:
        self.upsert(
            SubredditRecord,
            "name",
            analytics.name,
            {"subscribers": analytics.subscribers, **self._common_values(analytics)},
        )
        return analytics

    def get_post(self, post_id: str) -> PostAnalytics | None:
        """Latest stored analytics for a post, or None."""
        with self._session() as db:
            try:
                row = db.execute(select(RedditPostRecord).where(RedditPostRecord.post_id == post_id)).scalar_one_or_none()
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to load post {post_id}: {e}") from e
            if row is None:
                return None
            return PostAnalytics.model_validate(row.payload)

    # -------------------------------------------------------------------------
    # Generic upsert
    # -------------------------------------------------------------------------

    def upsert(self, model: type, key_column: str, key: str, values: dict[str, Any]) -> dict[str, Any]:
        """
        Insert or replace the row whose `key_column` equals `key`.

        Raises:
            StoreError: No database configured, constraint violation, or any
                other SQLAlchemy failure
        """
        row = {key_column: key, **values}
        with self._session() as db:
            try:
                insert = _DIALECT_INSERTS.get(db.get_bind().dialect.name)
                if insert is not None:
                    stmt = insert(model).values(**row)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[key_column],
                        set_={name: stmt.excluded[name] for name in values},
                    )
                    db.execute(stmt)
                else:
                    db.merge(model(**row))
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(f"Upsert into {model.__tablename__} failed for {key}: {e}")
                raise StoreError(f"Failed to save {model.__tablename__}[{key}]: {e}") from e

        logger.debug(f"Upserted {model.__tablename__}[{key}]")
        return row

    def _session(self) -> Session:
        if self._session_factory is None:
            raise StoreError("Database is not configured")
        try:
            return self._session_factory()
        except SQLAlchemyError as e:
            raise StoreError(f"Database unavailable: {e}") from e

    @staticmethod
    def _common_values(analytics: PostAnalytics | UserAnalytics | SubredditAnalytics) -> dict[str, Any]:
        return {
            "scoring_version": analytics.scoring_version,
            "payload": analytics.model_dump(mode="json"),
            "analytics_timestamp": analytics.analytics_timestamp,
            "saved_at": datetime.utcnow(),
        }
