"""
Transaction boundary for every mutating board and merge operation.

An operation is a zero-argument callable that only flushes; ``run_atomic``
commits it once, or rolls everything back. Storage contention (lock timeout,
deadlock, serialization failure) reaches us as SQLAlchemy ``OperationalError``
and is retried from scratch with exponential backoff. Anything else propagates
after the rollback, so a half-applied shift sequence is never committed.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterable
from typing import TypeVar

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from tracker_api.core.config import settings
from tracker_api.core.errors import NotFoundError, StorageBusyError
from tracker_api.models.entities import Project, Request

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _backoff_seconds(attempt: int) -> float:
    base = max(0, settings.db_retry_backoff_ms)
    ceiling = max(base, settings.db_retry_backoff_max_ms)
    delay_ms = min(ceiling, base * (2 ** (attempt - 1)))
    return (delay_ms + random.uniform(0, base / 2)) / 1000.0


def run_atomic(db: Session, operation: Callable[[], T], *, label: str) -> T:
    attempts = max(1, settings.db_retry_attempts)
    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except OperationalError as exc:
            db.rollback()
            if attempt == attempts:
                logger.error("%s: storage contention after %d attempts: %s", label, attempts, exc.orig)
                raise StorageBusyError() from exc
            delay = _backoff_seconds(attempt)
            logger.warning("%s: storage contention (attempt %d/%d), retrying in %.3fs", label, attempt, attempts, delay)
            time.sleep(delay)
        except Exception:
            db.rollback()
            raise
    raise AssertionError("unreachable")


def _set_lock_timeout(db: Session) -> None:
    if db.get_bind().dialect.name == "postgresql":
        # SET does not accept bind parameters.
        db.execute(text(f"SET LOCAL lock_timeout = {int(settings.db_lock_timeout_ms)}"))


def lock_board(db: Session, project_id: int) -> Project:
    """Serialize writers of a project's board columns, empty columns included."""
    _set_lock_timeout(db)
    project = db.execute(select(Project).where(Project.id == project_id).with_for_update()).scalar_one_or_none()
    if project is None:
        raise NotFoundError("project")
    # Anything loaded before the lock (access checks, 404 lookups) may hold stale positions.
    db.expire_all()
    return project


def lock_requests(db: Session, request_ids: Iterable[int]) -> dict[int, Request]:
    # Ascending id order keeps two opposite merges from deadlocking each other.
    _set_lock_timeout(db)
    ids = sorted(set(request_ids))
    rows = db.execute(
        select(Request)
        .where(Request.id.in_(ids))
        .order_by(Request.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalars().all()
    return {row.id: row for row in rows}
