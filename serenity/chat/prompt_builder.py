from dataclasses import dataclass
from typing import Dict, List, Sequence

import serenity.ai.prompts as prompts

Message = Dict[str, str]

# Order in which context sections appear in the system message
SECTIONS = (
    ("journal_context", "Relevant journal entries"),
    ("mood_analysis", "Mood analysis"),
    ("user_context", "What you know about the user"),
    ("activities_context", "Available wellness activities"),
    ("recommendations", "Recommended activities"),
    ("chat_history", "Recent conversation"),
)


@dataclass(frozen=True)
class PromptContext:
    journal_context: str = ""
    activities_context: str = ""
    user_context: str = ""
    mood_analysis: str = ""
    recommendations: str = ""
    chat_history: str = ""


def build_system_message(context: PromptContext) -> str:
    parts = [prompts.CHAT_SYSTEM_PROMPT]
    for attr, title in SECTIONS:
        text = getattr(context, attr).strip()
        if text:
            parts.append(f"## {title}\n{text}")
    return "\n\n".join(parts)


def build_prompt(context: PromptContext, user_message: str, history: Sequence[Message] = ()) -> List[Message]:
    """
    Assemble the role-tagged messages for one assistant turn.

    Args:
        context (PromptContext): Formatted context blocks; empty blocks are skipped.
        user_message (str): The new message from the user.
        history (Sequence[dict]): Prior turns as {"role", "content"} dicts, oldest first.

    Returns:
        List[dict]: system message, then history, then the new user message.
    """
    messages: List[Message] = [{"role": "system", "content": build_system_message(context)}]
    for turn in history:
        content = (turn.get("content") or "").strip()
        if not content:
            continue
        role = "assistant" if turn.get("role") in ("assistant", "model") else "user"
        messages.append({"role": role, "content": content})
    messages.append({"role": "user", "content": user_message})
    return messages
