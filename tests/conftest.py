import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tracker_api.core.config import settings
from tracker_api.core.db import get_db
from tracker_api.main import app
from tracker_api.models.base import Base
from tracker_api.models import entities  # noqa: F401
from tracker_api.models.entities import BoardColumnEnum, RoadmapItem


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(settings, "db_retry_backoff_ms", 0)
    monkeypatch.setattr(settings, "db_retry_backoff_max_ms", 0)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def assert_board_contiguous(db_session):
    """Check that every (project, column) holds positions 0..n-1."""

    def _check(project_id: int) -> None:
        rows = db_session.execute(
            select(RoadmapItem.column, RoadmapItem.position).where(RoadmapItem.project_id == project_id)
        ).all()
        for column in BoardColumnEnum:
            positions = sorted(position for row_column, position in rows if row_column == column)
            assert positions == list(range(len(positions))), f"{column.value}: {positions}"

    return _check
