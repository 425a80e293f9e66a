"""Reddit analytics schema

Revision ID: 001_reddit_analytics
Revises:
Create Date: 2026-10-19

One table per analyzed entity type. Rows are replaced on re-analysis
(upsert on the primary key); the full result document is kept in payload.
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001_reddit_analytics"
down_revision: str | None = None
branch_labels = None
depends_on = None


def _record_columns() -> list[sa.Column]:
    return [
        sa.Column("scoring_version", sa.String(8), nullable=False),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column("analytics_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("saved_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "reddit_posts",
        sa.Column("post_id", sa.String(16), primary_key=True),
        sa.Column("subreddit", sa.String(32), nullable=True),
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sentiment_category", sa.String(16), nullable=True),
        *_record_columns(),
    )
    op.create_index("ix_reddit_posts_subreddit", "reddit_posts", ["subreddit"])

    op.create_table(
        "reddit_users",
        sa.Column("username", sa.String(32), primary_key=True),
        sa.Column("total_karma", sa.Integer(), nullable=False, server_default="0"),
        *_record_columns(),
    )

    op.create_table(
        "subreddits",
        sa.Column("name", sa.String(32), primary_key=True),
        sa.Column("subscribers", sa.Integer(), nullable=False, server_default="0"),
        *_record_columns(),
    )


def downgrade() -> None:
    op.drop_table("subreddits")
    op.drop_table("reddit_users")
    op.drop_index("ix_reddit_posts_subreddit", table_name="reddit_posts")
    op.drop_table("reddit_posts")
