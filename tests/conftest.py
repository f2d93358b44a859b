import os
import tempfile

# Settings are read at import time
_tmp_dir = tempfile.mkdtemp(prefix="chatty-tests-")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/default.db"
os.environ["ENVIRONMENT"] = "testing"
os.environ["ENABLE_RATE_LIMITING"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["GEMINI_API_KEY"] = ""
os.environ["AI_MOCK_MODE"] = "false"
os.environ["CHAT_OWNERSHIP_POLICY"] = "silent_fallback"

from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage
from sqlalchemy import create_engine as sa_create_engine, func, select
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from chatty.db.base import Base
from chatty.db.session import create_engine, create_sessionmaker, get_db
from chatty.main import app
from chatty.models.users import User
from chatty.services.gateway import ModelGateway, get_model_gateway

TEST_MODEL = "gemini-test"

class FakeChatModel:
    """Stands in for a provider chat model; records every call."""

    def __init__(self, reply="Real model reply", usage=None, error: Optional[Exception] = None, on_call=None):
        self.reply = reply
        self.usage = usage
        self.error = error
        self.on_call = on_call
        self.calls: List[list] = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.on_call is not None:
            await self.on_call(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply, usage_metadata=self.usage)

def make_gateway(llm: Optional[FakeChatModel] = None) -> ModelGateway:
    if llm is None:
        return ModelGateway(TEST_MODEL, api_key=None)
    return ModelGateway(TEST_MODEL, api_key="test-key", model_factory=lambda name, key: llm)

def usage(total: int) -> dict:
    return {"input_tokens": total - 5, "output_tokens": 5, "total_tokens": total}

@pytest.fixture
def sync_engine(tmp_path):
    """Plain sqlite3 engine on the test database, for setup and assertions outside the event loop."""
    engine = sa_create_engine(f"sqlite:///{tmp_path}/chatty.db")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def engine(sync_engine, tmp_path):
    return create_engine(f"sqlite+aiosqlite:///{tmp_path}/chatty.db", poolclass=NullPool)

@pytest.fixture
def session_factory(engine):
    return create_sessionmaker(engine)

@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session

async def create_user(db, username="alice", email="alice@example.com") -> User:
    user = User(username=username, email=email, hashed_password="not-a-real-hash")
    db.add(user)
    await db.commit()
    return user

def count_rows(sync_engine, model, *criteria) -> int:
    stmt = select(func.count()).select_from(model)
    if criteria:
        stmt = stmt.where(*criteria)
    with Session(sync_engine) as session:
        return session.execute(stmt).scalar_one()

@pytest.fixture
def make_client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    def factory(gateway: Optional[ModelGateway] = None) -> TestClient:
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_model_gateway] = lambda: gateway or make_gateway()
        return TestClient(app)

    yield factory
    app.dependency_overrides.clear()

@pytest.fixture
def client(make_client):
    return make_client()

def register(client, username="alice", email="alice@example.com", password="secret123", **extra) -> dict:
    response = client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()

def auth_headers(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}
