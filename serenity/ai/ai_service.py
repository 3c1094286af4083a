import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List

import serenity.ai.prompts as prompts
from serenity.ai.parsing import TagResult, TagsFallback, parse_object_list, parse_tags

logger = logging.getLogger(__name__)

Message = Dict[str, str]

USER_CONTEXT_KEYS = ("entity_name", "entity_type", "information")


class AIService(ABC):
    """
    Generative-AI facade used by the journal and chat pipelines.

    Providers implement the three raw calls; tag generation and fact
    extraction are built on top of them and never raise.
    """

    @abstractmethod
    def complete(self, messages: List[Message], *, max_tokens: int = 1024, temperature: float = 0.7) -> str:
        """Single-shot chat completion returning the full text."""

    @abstractmethod
    def stream(self, messages: List[Message], *, max_tokens: int = 1024, temperature: float = 0.7) -> Iterator[str]:
        """Streaming chat completion yielding text chunks as they arrive."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embedding vector for one string."""

    def generate_tags(self, content: str) -> TagResult:
        """Ask the model for 3-5 tags. Best-effort: failures yield an empty fallback."""
        messages = [{"role": "user", "content": prompts.TAGS_PROMPT_TEMPLATE.format(content=content)}]
        try:
            raw = self.complete(messages, max_tokens=100, temperature=0.0)
        except Exception as e:
            logger.warning(f"Tag generation call failed: {e}")
            return TagsFallback(reason=f"completion failed: {e}")
        return parse_tags(raw)

    def extract_user_context(self, message: str) -> List[Dict[str, str]]:
        """Extract personal facts from a user message as entity dicts."""
        messages = [
            {"role": "user", "content": prompts.USER_CONTEXT_EXTRACTION_PROMPT.format(message=message)}
        ]
        try:
            raw = self.complete(messages, max_tokens=400, temperature=0.0)
        except Exception as e:
            logger.warning(f"User context extraction call failed: {e}")
            return []

        items = []
        for obj in parse_object_list(raw):
            item = {key: str(obj.get(key) or "").strip() for key in USER_CONTEXT_KEYS}
            if item["entity_name"] and item["information"]:
                item["entity_type"] = item["entity_type"].lower() or "other"
                items.append(item)
        return items
