"""
Plain-text renderings of the context blocks fed to the assistant.

All functions are pure and return an empty string for empty input so the
prompt builder can skip the section.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from serenity.activities.models import Activity
    from serenity.chat.context import MoodAnalysis
    from serenity.journals.models import JournalEntry
    from serenity.telegram.models import TelegramMessage
    from serenity.user_context.models import UserContextItem


def _date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "unknown date"


def format_journal_entries(entries: Sequence["JournalEntry"]) -> str:
    blocks = []
    for entry in entries:
        lines = [
            f"Date: {_date(entry.created_at)}",
            f"Title: {entry.title or 'Untitled'}",
            f"Content: {entry.content}",
        ]
        if entry.summary:
            lines.append(f"Summary: {entry.summary}")
        if entry.mood_tags:
            lines.append(f"Mood: {', '.join(entry.mood_tags)}")
        if entry.keywords:
            lines.append(f"Keywords: {', '.join(entry.keywords)}")
        if entry.tags:
            lines.append(f"Tags: {', '.join(entry.tags)}")
        blocks.append("\n".join(lines))
    return "\n\n---\n\n".join(blocks)


def format_activities(activities: Sequence["Activity"]) -> str:
    lines = []
    for activity in activities:
        details = [d for d in (activity.category, f"{activity.duration_minutes} min" if activity.duration_minutes else None) if d]
        suffix = f" ({', '.join(details)})" if details else ""
        description = f": {activity.description}" if activity.description else ""
        lines.append(f"- {activity.name}{suffix}{description}")
    return "\n".join(lines)


def format_user_context(items: Sequence["UserContextItem"]) -> str:
    return "\n".join(f"- {item.entity_name} ({item.entity_type}): {item.information}" for item in items)


def format_mood_analysis(analysis: "MoodAnalysis") -> str:
    if not analysis.mood_counts:
        return ""
    ranked = ", ".join(f"{mood} ({count})" for mood, count in analysis.ranked_moods())
    return (
        f"Across {analysis.entry_count} relevant journal entries the recorded moods were: {ranked}. "
        f"Dominant moods: {', '.join(analysis.dominant_moods)}."
    )


def format_recommendations(activities: Sequence["Activity"]) -> str:
    return "\n".join(
        f"- {a.name}: {a.description}" if a.description else f"- {a.name}" for a in activities
    )


def format_chat_history(history: Sequence["TelegramMessage"]) -> str:
    """
    Renders a Telegram log fetched newest first as a chronological transcript.
    """
    chronological: List["TelegramMessage"] = list(reversed(history))
    return "\n\n".join(
        f"{'Assistant' if msg.is_bot else 'User'}: {msg.content}" for msg in chronological
    )
