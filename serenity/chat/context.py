"""
Context assembly for grounded chat.

Three independent fetches run concurrently, each in the threadpool with its
own database session: relevant journal entries, the activity catalog and the
user's extracted facts. A failing fetch degrades to an empty result so the
assistant can still answer.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import sessionmaker

from serenity.activities.db import get_activities, recommend_activities
from serenity.activities.models import Activity
from serenity.ai.ai_service import AIService
from serenity.chat.formatting import (
    format_activities,
    format_journal_entries,
    format_mood_analysis,
    format_recommendations,
    format_user_context,
)
from serenity.chat.prompt_builder import PromptContext
from serenity.journals.db import (
    get_recent_journals,
    search_journals_by_embedding,
    search_journals_by_keywords,
)
from serenity.journals.models import JournalEntry
from serenity.user_context.db import search_user_context
from serenity.user_context.models import UserContextItem

logger = logging.getLogger(__name__)

RELEVANT_JOURNAL_LIMIT = 5
DOMINANT_MOOD_COUNT = 3


@dataclass
class MoodAnalysis:
    mood_counts: Dict[str, int] = field(default_factory=dict)
    dominant_moods: List[str] = field(default_factory=list)
    entry_count: int = 0

    def ranked_moods(self) -> List[Tuple[str, int]]:
        return sorted(self.mood_counts.items(), key=lambda item: (-item[1], item[0]))


@dataclass
class AssembledContext:
    entries: List[JournalEntry] = field(default_factory=list)
    activities: List[Activity] = field(default_factory=list)
    user_context: List[UserContextItem] = field(default_factory=list)
    mood_analysis: MoodAnalysis = field(default_factory=MoodAnalysis)
    recommendations: List[Activity] = field(default_factory=list)

    def to_prompt_context(self, chat_history: str = "") -> PromptContext:
        return PromptContext(
            journal_context=format_journal_entries(self.entries),
            activities_context=format_activities(self.activities),
            user_context=format_user_context(self.user_context),
            mood_analysis=format_mood_analysis(self.mood_analysis),
            recommendations=format_recommendations(self.recommendations),
            chat_history=chat_history,
        )


def analyze_moods(entries: List[JournalEntry], top_n: int = DOMINANT_MOOD_COUNT) -> MoodAnalysis:
    """Mood-tag frequencies across entries; ties broken alphabetically."""
    counts = Counter(
        tag.strip().lower() for entry in entries for tag in (entry.mood_tags or []) if tag and tag.strip()
    )
    analysis = MoodAnalysis(mood_counts=dict(counts), entry_count=len(entries))
    analysis.dominant_moods = [mood for mood, _ in analysis.ranked_moods()[:top_n]]
    return analysis


def fetch_relevant_journals(
    session_factory: sessionmaker,
    ai_service: AIService,
    user_id: UUID,
    query: str,
    limit: int = RELEVANT_JOURNAL_LIMIT,
) -> List[JournalEntry]:
    """
    Semantic search when the query can be embedded, keyword search otherwise,
    and the most recent entries when neither finds anything.
    """
    query_embedding: Optional[List[float]] = None
    try:
        query_embedding = ai_service.embed(query)
    except Exception as e:
        logger.warning(f"Query embedding failed, using keyword search: {e}")

    with session_factory() as db:
        entries: List[JournalEntry] = []
        if query_embedding:
            entries = search_journals_by_embedding(db, user_id, query_embedding, limit)
        if not entries:
            entries = search_journals_by_keywords(db, user_id, query, limit)
        if not entries:
            entries = get_recent_journals(db, user_id, limit)
        return entries


def fetch_activities(session_factory: sessionmaker) -> List[Activity]:
    with session_factory() as db:
        return get_activities(db)


def fetch_user_context(session_factory: sessionmaker, user_id: UUID, query: str) -> List[UserContextItem]:
    with session_factory() as db:
        return search_user_context(db, user_id, query)


def _or_empty(name: str, result) -> list:
    if isinstance(result, BaseException):
        logger.warning(f"Context fetch '{name}' failed, continuing without it: {result}")
        return []
    return result


async def assemble_context(
    session_factory: sessionmaker, ai_service: AIService, user_id: UUID, query: str
) -> AssembledContext:
    """
    Gather journal, activity and user-fact context for one chat turn.

    Args:
        session_factory (sessionmaker): Opens one session per fetch.
        ai_service (AIService): Used to embed the query.
        user_id (UUID): Owner of the journals and facts.
        query (str): The user's message.

    Returns:
        AssembledContext: Fetched rows plus the derived mood analysis and
        activity recommendations.
    """
    journals, activities, facts = await asyncio.gather(
        run_in_threadpool(fetch_relevant_journals, session_factory, ai_service, user_id, query),
        run_in_threadpool(fetch_activities, session_factory),
        run_in_threadpool(fetch_user_context, session_factory, user_id, query),
        return_exceptions=True,
    )
    entries = _or_empty("journals", journals)
    activity_list = _or_empty("activities", activities)
    user_facts = _or_empty("user_context", facts)

    mood_analysis = analyze_moods(entries)
    recommendations = recommend_activities(activity_list, mood_analysis.dominant_moods)
    logger.info(
        f"Assembled context for user {user_id}: {len(entries)} journals, "
        f"{len(activity_list)} activities, {len(user_facts)} facts, moods={mood_analysis.dominant_moods}"
    )
    return AssembledContext(
        entries=entries,
        activities=activity_list,
        user_context=user_facts,
        mood_analysis=mood_analysis,
        recommendations=recommendations,
    )
