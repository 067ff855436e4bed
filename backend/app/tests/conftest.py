import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LLM_API_KEY", "dummy_key")

import pytest  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.db import build_engine  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    db_engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    SQLModel.metadata.create_all(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as db_session:
        yield db_session


@pytest.fixture(autouse=True)
def fast_status_retries(monkeypatch):
    monkeypatch.setattr(settings, "STATUS_UPDATE_RETRY_DELAY_SECONDS", 0)
