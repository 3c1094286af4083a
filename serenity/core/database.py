"""
Database configuration and session management for SQLAlchemy.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from serenity.core.config import DATABASE_URL

# Engine & Session
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)

# Declarative Base
Base = declarative_base()

# Import all models to register them with the Base metadata
import serenity.auth.models  # noqa: F401
import serenity.journals.models  # noqa: F401
import serenity.activities.models  # noqa: F401
import serenity.user_context.models  # noqa: F401
import serenity.chat.models  # noqa: F401
import serenity.telegram.models  # noqa: F401


# Dependency for FastAPI Routes
def get_db():
    """
    Yields a database session for use in FastAPI dependency injection.
    Ensures the session is closed after the request lifecycle.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """
    Returns the session factory for work that outlives the request session:
    concurrent context fetches, streamed responses and background tasks.
    """
    return SessionLocal
