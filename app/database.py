from functools import lru_cache

from dotenv import load_dotenv
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings

# Load .env file (DATABASE_URL lives there)
load_dotenv()

Base = declarative_base()


@lru_cache(maxsize=1)
def get_engine() -> Engine | None:
    """
    SQLAlchemy engine for DATABASE_URL, or None when persistence is disabled.
    """
    url = get_settings().DATABASE_URL
    if not url:
        return None

    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection so every session sees the same in-memory DB
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True, echo=False)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker | None:
    engine = get_engine()
    if engine is None:
        return None
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """
    Import models and create tables if they don't exist.
    Alembic is the real migration tool, but this keeps local dev sane.
    """
    from app import models  # noqa: F401

    engine = get_engine()
    if engine is not None:
        Base.metadata.create_all(bind=engine)
