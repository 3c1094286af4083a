import logging
from datetime import datetime, timezone
from typing import Dict, List
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, sessionmaker

from serenity.ai.ai_service import AIService
from serenity.journals.db import query_keywords
from serenity.user_context.models import UserContextItem

logger = logging.getLogger(__name__)


def get_recent_user_context(db: Session, user_id: UUID, limit: int = 10) -> List[UserContextItem]:
    return (
        db.query(UserContextItem)
        .filter(UserContextItem.user_id == user_id)
        .order_by(UserContextItem.updated_at.desc())
        .limit(limit)
        .all()
    )


def search_user_context(db: Session, user_id: UUID, query: str, limit: int = 10) -> List[UserContextItem]:
    """
    Facts whose entity name or information mention a query keyword, falling
    back to the most recently updated facts when nothing matches.
    """
    words = query_keywords(query)
    if words:
        clauses = []
        for word in words:
            clauses.append(func.lower(UserContextItem.entity_name).contains(word))
            clauses.append(func.lower(UserContextItem.information).contains(word))
        matches = (
            db.query(UserContextItem)
            .filter(UserContextItem.user_id == user_id, or_(*clauses))
            .order_by(UserContextItem.updated_at.desc())
            .limit(limit)
            .all()
        )
        if matches:
            return matches
    return get_recent_user_context(db, user_id, limit)


def upsert_user_context(db: Session, user_id: UUID, items: List[Dict[str, str]]) -> List[UserContextItem]:
    """
    Inserts new facts and refreshes the information of known ones.

    Args:
        db (Session): SQLAlchemy session.
        user_id (UUID): Owner of the facts.
        items (list): Dicts with entity_name, entity_type and information.

    Returns:
        List[UserContextItem]: The stored rows.
    """
    unique = {(item["entity_name"], item["entity_type"]): item for item in items}
    stored: List[UserContextItem] = []
    for item in unique.values():
        existing = db.query(UserContextItem).filter(
            UserContextItem.user_id == user_id,
            UserContextItem.entity_name == item["entity_name"],
            UserContextItem.entity_type == item["entity_type"],
        ).first()
        if existing:
            existing.information = item["information"]
            existing.updated_at = datetime.now(timezone.utc)
        else:
            existing = UserContextItem(user_id=user_id, **item)
            db.add(existing)
        stored.append(existing)
    db.commit()
    return stored


def extract_and_store_user_context(
    session_factory: sessionmaker, ai_service: AIService, user_id: UUID, message: str
) -> int:
    """
    Background step after a chat turn: extract facts from the user's message
    and store them. Failures are logged only.

    Returns:
        int: Number of facts stored.
    """
    items = ai_service.extract_user_context(message)
    if not items:
        return 0
    try:
        with session_factory() as db:
            stored = upsert_user_context(db, user_id, items)
    except Exception as e:
        logger.error(f"Failed to store user context for user {user_id}: {e}")
        return 0
    logger.info(f"Stored {len(stored)} user context items for user {user_id}: {[i['entity_name'] for i in items]}")
    return len(stored)
