from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from pydantic import Field
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyplanner.api import create_app
from studyplanner.api.deps import get_llm_factory, get_storage
from studyplanner.config import settings
from studyplanner.database import get_db, init_db
from studyplanner.storage import LocalObjectStorage

LONG_TEXT = (
    "Photosynthesis converts light energy into chemical energy. Chlorophyll absorbs light "
    "in the thylakoid membranes, and the Calvin cycle fixes carbon dioxide into sugars."
)


class RecordingChatModel(FakeListChatModel):
    """Fake chat model that keeps the messages it was called with"""
    prompts: list = Field(default_factory=list)

    def _call(self, messages, stop=None, run_manager=None, **kwargs):
        self.prompts.append("\n".join(str(message.content) for message in messages))
        return super()._call(messages, stop=stop, run_manager=run_manager, **kwargs)


class FakeLLMFactory:
    """Stands in for get_llm; records the kwargs of every call and every model it hands out"""

    def __init__(self, responses=None):
        self.responses = list(responses or ["{}"])
        self.calls = []
        self.models = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        model = RecordingChatModel(responses=self.responses)
        self.models.append(model)
        return model


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(str(tmp_path / "objects"))


@pytest.fixture
def llm_factory():
    return FakeLLMFactory()


@pytest.fixture
def client(session_factory, storage, llm_factory):
    app = create_app(init_database=False)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_llm_factory] = lambda: llm_factory

    with TestClient(app) as test_client:
        yield test_client


def make_token(user_id: str = "user-1") -> str:
    return jwt.encode({"sub": user_id}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def future():
    """Date n days from today"""
    return lambda days: date.today() + timedelta(days=days)
