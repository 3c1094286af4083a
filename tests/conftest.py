import os
import tempfile

# Configure the environment before any serenity module reads it
_TMP_DIR = tempfile.mkdtemp(prefix="serenity-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/app.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["JOURNAL_PROCESSING_API_URL"] = "http://processing.test"
os.environ["TELEGRAM_BOT_TOKEN"] = "test-bot-token"
os.environ["JOURNAL_WEBHOOK_SECRET"] = ""
os.environ["TELEGRAM_WEBHOOK_SECRET"] = ""

from typing import Iterator, List
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from serenity.ai.ai_service import AIService
from serenity.auth.models import User
from serenity.auth.service import create_token, hash_password
from serenity.core.database import Base, get_db, get_session_factory
from serenity.core.dependency import get_ai_service, get_telegram_client
from serenity.main import app
from serenity.telegram.client import TelegramClient

DEFAULT_TAGS_RESPONSE = '```json\n["gratitude", "work", "family"]\n```'
DEFAULT_REPLY = "It sounds like a meaningful day."
DEFAULT_CHUNKS = ["It sounds ", "like a ", "meaningful day."]


class FakeAIService(AIService):
    """Records every call and answers by prompt type."""

    def __init__(self):
        self.tags_response = DEFAULT_TAGS_RESPONSE
        self.facts_response = "[]"
        self.reply = DEFAULT_REPLY
        self.chunks = list(DEFAULT_CHUNKS)
        self.embedding = None  # None makes embed() fail
        self.complete_calls: List[list] = []
        self.stream_calls: List[list] = []
        self.embed_calls: List[str] = []

    def complete(self, messages, *, max_tokens=1024, temperature=0.7):
        self.complete_calls.append(messages)
        prompt = messages[-1]["content"]
        if prompt.startswith("Generate 3-5 relevant tags"):
            response = self.tags_response
        elif prompt.startswith("Extract durable personal facts"):
            response = self.facts_response
        else:
            response = self.reply
        if isinstance(response, Exception):
            raise response
        return response

    def stream(self, messages, *, max_tokens=1024, temperature=0.7) -> Iterator[str]:
        self.stream_calls.append(messages)
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def embed(self, text):
        self.embed_calls.append(text)
        if self.embedding is None:
            raise RuntimeError("embeddings unavailable")
        if callable(self.embedding):
            return self.embedding(text)
        return self.embedding

    @property
    def chat_calls(self) -> List[list]:
        return [m for m in self.complete_calls if m[0]["role"] == "system"]

    @property
    def total_calls(self) -> int:
        return len(self.complete_calls) + len(self.stream_calls) + len(self.embed_calls)


class RecordingTelegramClient(TelegramClient):
    def __init__(self):
        super().__init__(token="test-bot-token")
        self.sent: List[tuple] = []

    def send_message(self, chat_id, text):
        self.sent.append((chat_id, text))
        return True


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path}/serenity.db", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def ai_service():
    return FakeAIService()


@pytest.fixture()
def telegram_client():
    return RecordingTelegramClient()


@pytest.fixture(autouse=True)
def processing_service():
    """Stands in for the journal processing service."""
    with patch("serenity.journals.enrichment.requests.post") as post:
        post.return_value = MagicMock(status_code=200, text='{"status": "accepted"}')
        yield post


@pytest.fixture()
def client(session_factory, ai_service, telegram_client):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_ai_service] = lambda: ai_service
    app.dependency_overrides[get_telegram_client] = lambda: telegram_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email: str = "ada@example.com", password: str = "s3cret-pass") -> User:
    user = User(id=uuid4(), email=email, name="Ada", password=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def user(db):
    return make_user(db)


@pytest.fixture()
def auth_headers(user):
    return {"Authorization": f"Bearer {create_token(user.id)}"}
