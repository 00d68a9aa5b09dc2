"""
Per-column positional ordering for roadmap items.

Positions inside one (project, column) are always exactly ``0..n-1``. Every
mutation is expressed as a list of ``Shift``s (pure planning, no I/O) which
``apply_shifts`` turns into range ``UPDATE``s. Callers run the shifts and the
moved item's own write inside one ``run_atomic`` unit after ``lock_board``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from tracker_api.core.errors import ValidationError
from tracker_api.models.entities import BoardColumnEnum, RoadmapItem


@dataclass(frozen=True)
class Shift:
    column: BoardColumnEnum
    start: int  # inclusive
    end: int | None  # inclusive, None means open-ended
    delta: int

    def covers(self, position: int) -> bool:
        return position >= self.start and (self.end is None or position <= self.end)


def next_position(existing: Iterable[int]) -> int:
    return max(existing, default=-1) + 1


def is_contiguous(positions: Iterable[int]) -> bool:
    ordered = sorted(positions)
    return ordered == list(range(len(ordered)))


def check_target_position(target_position: int, slots: int) -> None:
    """``slots`` is the number of items already in the target column, excluding the one being placed."""
    if target_position < 0 or target_position > slots:
        raise ValidationError(f"position must be between 0 and {slots}")


def plan_insert(column: BoardColumnEnum, position: int) -> list[Shift]:
    return [Shift(column, position, None, 1)]


def plan_removal(column: BoardColumnEnum, position: int) -> list[Shift]:
    return [Shift(column, position + 1, None, -1)]


def plan_move(
    from_column: BoardColumnEnum,
    from_position: int,
    to_column: BoardColumnEnum,
    to_position: int,
) -> list[Shift]:
    if from_column == to_column:
        if to_position > from_position:
            return [Shift(from_column, from_position + 1, to_position, -1)]
        if to_position < from_position:
            return [Shift(from_column, to_position, from_position - 1, 1)]
        return []
    return plan_removal(from_column, from_position) + plan_insert(to_column, to_position)


def apply_to_positions(positions: dict[int, tuple[BoardColumnEnum, int]], shifts: list[Shift]) -> dict[int, tuple[BoardColumnEnum, int]]:
    """In-memory counterpart of ``apply_shifts`` over ``{item_id: (column, position)}``."""
    result = dict(positions)
    for shift in shifts:
        for item_id, (column, position) in list(result.items()):
            if column == shift.column and shift.covers(position):
                result[item_id] = (column, position + shift.delta)
    return result


def column_positions(db: Session, project_id: int, column: BoardColumnEnum) -> list[int]:
    return list(
        db.execute(
            select(RoadmapItem.position)
            .where(RoadmapItem.project_id == project_id, RoadmapItem.column == column)
            .order_by(RoadmapItem.position)
        ).scalars()
    )


def column_count(db: Session, project_id: int, column: BoardColumnEnum) -> int:
    return db.execute(
        select(func.count(RoadmapItem.id)).where(RoadmapItem.project_id == project_id, RoadmapItem.column == column)
    ).scalar_one()


def apply_shifts(db: Session, project_id: int, shifts: list[Shift]) -> None:
    for shift in shifts:
        criteria = [
            RoadmapItem.project_id == project_id,
            RoadmapItem.column == shift.column,
            RoadmapItem.position >= shift.start,
        ]
        if shift.end is not None:
            criteria.append(RoadmapItem.position <= shift.end)
        db.execute(
            update(RoadmapItem)
            .where(*criteria)
            .values(position=RoadmapItem.position + shift.delta)
            .execution_options(synchronize_session="fetch")
        )
