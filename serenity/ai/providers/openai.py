from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Iterator, List, Optional

from openai import OpenAI

from serenity.ai.ai_service import AIService, Message
from serenity.core.config import OPENAI_API_KEY, OPENAI_CHAT_MODEL, OPENAI_EMBED_MODEL

logger = logging.getLogger(__name__)

EMBED_CACHE_SIZE = 256


class OpenAIService(AIService):
    """Facade around the OpenAI chat and embedding endpoints."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        chat_model: str = OPENAI_CHAT_MODEL,
        embed_model: str = OPENAI_EMBED_MODEL,
    ):
        self._client = client
        self.chat_model = chat_model
        self.embed_model = embed_model
        self._embed_cache: OrderedDict[str, List[float]] = OrderedDict()

    @property
    def client(self) -> OpenAI:
        # Created on first use so a missing key fails the call, not app startup.
        if self._client is None:
            if not OPENAI_API_KEY:
                raise RuntimeError("Missing OPENAI_API_KEY in environment")
            self._client = OpenAI(api_key=OPENAI_API_KEY)
        return self._client

    def complete(self, messages: List[Message], *, max_tokens: int = 1024, temperature: float = 0.7) -> str:
        resp = self.client.chat.completions.create(
            model=self.chat_model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return resp.choices[0].message.content or ""

    def stream(self, messages: List[Message], *, max_tokens: int = 1024, temperature: float = 0.7) -> Iterator[str]:
        stream = self.client.chat.completions.create(
            model=self.chat_model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stream=True,
        )
        chunk_count = 0
        for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                chunk_count += 1
                yield delta
        logger.debug(f"OpenAI stream finished after {chunk_count} chunks")

    def embed(self, text: str) -> List[float]:
        cached = self._embed_cache.get(text)
        if cached is not None:
            self._embed_cache.move_to_end(text)
            return cached
        resp = self.client.embeddings.create(model=self.embed_model, input=text)
        emb = resp.data[0].embedding
        self._embed_cache[text] = emb
        if len(self._embed_cache) > EMBED_CACHE_SIZE:
            self._embed_cache.popitem(last=False)
        return emb
