import re
from uuid import UUID, uuid4
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from serenity.journals.models import JournalEntry
from serenity.journals.schemas import JournalEntryCreate, JournalWebhookPayload

SIMILARITY_THRESHOLD: float = 0.3  # cosine threshold for journal relevance
MAX_QUERY_KEYWORDS: int = 8

_WORD_RE = re.compile(r"[a-zA-Z0-9']+")


# Helpers
def _norm(vec: List[float]) -> float:
    return (sum(v * v for v in vec)) ** 0.5


def cosine(a: List[float], b: List[float]) -> float:
    da = _norm(a)
    db = _norm(b)
    if da == 0.0 or db == 0.0:
        return 0.0
    return sum(x * y for x, y in zip(a, b)) / (da * db)


def query_keywords(query: str) -> List[str]:
    """Distinct lowercase words longer than three characters, in query order."""
    seen: List[str] = []
    for word in _WORD_RE.findall(query.lower()):
        if len(word) > 3 and word not in seen:
            seen.append(word)
    return seen[:MAX_QUERY_KEYWORDS]


# Journal Entry CRUD
def get_journal(db: Session, journal_id: UUID, user_id: UUID) -> Optional[JournalEntry]:
    """
    Retrieves a journal entry by its ID for a given user.

    Args:
        db (Session): SQLAlchemy session.
        journal_id (UUID): ID of the journal.
        user_id (UUID): ID of the owner.

    Returns:
        Optional[JournalEntry]: The journal if found, else None.
    """
    return db.query(JournalEntry).filter(
        JournalEntry.id == journal_id,
        JournalEntry.user_id == user_id
    ).first()


def get_journal_by_id(db: Session, journal_id: UUID) -> Optional[JournalEntry]:
    return db.query(JournalEntry).filter(JournalEntry.id == journal_id).first()


def get_user_journals(db: Session, user_id: UUID, skip: int = 0, limit: int = 100) -> List[JournalEntry]:
    """
    Retrieves a paginated list of journal entries for a user, newest first.

    Args:
        db (Session): SQLAlchemy session.
        user_id (UUID): ID of the user.
        skip (int): Pagination offset.
        limit (int): Pagination limit.

    Returns:
        List[JournalEntry]: List of journal entries.
    """
    return (
        db.query(JournalEntry)
        .filter(JournalEntry.user_id == user_id)
        .order_by(JournalEntry.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_journal(db: Session, journal: JournalEntryCreate, user_id: UUID, tags: List[str]) -> JournalEntry:
    """
    Creates a new journal entry in the processing state.

    Args:
        db (Session): SQLAlchemy session.
        journal (JournalEntryCreate): Pydantic journal input.
        user_id (UUID): ID of the user.
        tags (List[str]): Tags generated for the content.

    Returns:
        JournalEntry: The created journal.
    """
    new_journal = JournalEntry(
        id=uuid4(),
        user_id=user_id,
        title=journal.title,
        content=journal.content,
        location=journal.location,
        tags=tags,
        is_processing=True,
    )
    db.add(new_journal)
    db.commit()
    db.refresh(new_journal)
    return new_journal


def apply_enrichment(journal: JournalEntry, data: JournalWebhookPayload) -> JournalEntry:
    """Copies enrichment fields onto the journal without committing."""
    update_data: Dict[str, Any] = data.model_dump(exclude={"journal_id"}, exclude_unset=True)
    for field, value in update_data.items():
        setattr(journal, field, value)
    return journal


def finalize_journal(db: Session, journal: JournalEntry, embedding: Optional[List[float]] = None) -> JournalEntry:
    """
    Stores the enriched journal and clears its processing flag.
    """
    journal.embedding = embedding
    journal.is_processing = False
    db.commit()
    db.refresh(journal)
    return journal


def delete_journal(db: Session, journal_id: UUID, user_id: UUID) -> Optional[JournalEntry]:
    journal = get_journal(db, journal_id, user_id)
    if journal:
        db.delete(journal)
        db.commit()
        return journal
    return None


# Relevance search
def get_recent_journals(db: Session, user_id: UUID, limit: int = 5) -> List[JournalEntry]:
    return get_user_journals(db, user_id, skip=0, limit=limit)


def search_journals_by_embedding(
    db: Session,
    user_id: UUID,
    query_embedding: List[float],
    limit: int = 5,
    threshold: float = SIMILARITY_THRESHOLD,
) -> List[JournalEntry]:
    """
    Ranks the user's finalized journals by cosine similarity to the query.

    Returns:
        List[JournalEntry]: Up to `limit` entries scoring at least `threshold`,
        best match first.
    """
    candidates = (
        db.query(JournalEntry)
        .filter(JournalEntry.user_id == user_id, JournalEntry.embedding.isnot(None))
        .all()
    )
    scored = [(cosine(query_embedding, entry.embedding or []), entry) for entry in candidates]
    scored = [pair for pair in scored if pair[0] >= threshold]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [entry for _, entry in scored[:limit]]


def search_journals_by_keywords(db: Session, user_id: UUID, query: str, limit: int = 5) -> List[JournalEntry]:
    words = query_keywords(query)
    if not words:
        return []
    clauses = []
    for word in words:
        clauses.append(JournalEntry.content.ilike(f"%{word}%"))
        clauses.append(JournalEntry.title.ilike(f"%{word}%"))
    return (
        db.query(JournalEntry)
        .filter(JournalEntry.user_id == user_id, or_(*clauses))
        .order_by(JournalEntry.created_at.desc())
        .limit(limit)
        .all()
    )
