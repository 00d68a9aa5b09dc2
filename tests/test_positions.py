import pytest

from tracker_api.core.errors import ValidationError
from tracker_api.models.entities import BoardColumnEnum
from tracker_api.services.positions import (
    Shift,
    apply_to_positions,
    check_target_position,
    is_contiguous,
    next_position,
    plan_insert,
    plan_move,
    plan_removal,
)

BACKLOG = BoardColumnEnum.backlog
IN_PROGRESS = BoardColumnEnum.in_progress


def _ordered(positions, column):
    return [item_id for item_id, (col, _) in sorted(positions.items(), key=lambda kv: kv[1][1]) if col == column]


def _move(positions, item_id, column, position):
    old_column, old_position = positions[item_id]
    shifted = apply_to_positions(positions, plan_move(old_column, old_position, column, position))
    shifted[item_id] = (column, position)
    return shifted


def test_next_position_appends_and_starts_empty_column_at_zero():
    assert next_position([]) == 0
    assert next_position([0, 1, 2]) == 3


def test_move_to_top_of_same_column_shifts_earlier_items_down():
    positions = {1: (BACKLOG, 0), 2: (BACKLOG, 1), 3: (BACKLOG, 2)}

    assert plan_move(BACKLOG, 2, BACKLOG, 0) == [Shift(BACKLOG, 0, 1, 1)]
    moved = _move(positions, 3, BACKLOG, 0)
    assert _ordered(moved, BACKLOG) == [3, 1, 2]
    assert is_contiguous(pos for _, pos in moved.values())


def test_move_down_same_column_closes_the_range_behind_it():
    positions = {1: (BACKLOG, 0), 2: (BACKLOG, 1), 3: (BACKLOG, 2), 4: (BACKLOG, 3)}

    assert plan_move(BACKLOG, 0, BACKLOG, 2) == [Shift(BACKLOG, 1, 2, -1)]
    moved = _move(positions, 1, BACKLOG, 2)
    assert _ordered(moved, BACKLOG) == [2, 3, 1, 4]


def test_cross_column_move_closes_gap_and_opens_slot():
    positions = {1: (BACKLOG, 0), 2: (BACKLOG, 1), 9: (IN_PROGRESS, 0)}

    moved = _move(positions, 2, IN_PROGRESS, 0)
    assert _ordered(moved, BACKLOG) == [1]
    assert _ordered(moved, IN_PROGRESS) == [2, 9]
    assert moved[9] == (IN_PROGRESS, 1)


def test_same_position_is_a_no_op():
    assert plan_move(BACKLOG, 1, BACKLOG, 1) == []


def test_insert_and_removal_plans():
    assert plan_insert(BACKLOG, 2) == [Shift(BACKLOG, 2, None, 1)]
    assert plan_removal(BACKLOG, 2) == [Shift(BACKLOG, 3, None, -1)]

    positions = {1: (BACKLOG, 0), 2: (BACKLOG, 1), 3: (BACKLOG, 2)}
    after = apply_to_positions(positions, plan_removal(BACKLOG, 1))
    del after[2]
    assert sorted(pos for _, pos in after.values()) == [0, 1]


@pytest.mark.parametrize("target", [0, 3])
def test_check_target_position_accepts_inclusive_bounds(target):
    check_target_position(target, 3)


@pytest.mark.parametrize("target", [-1, 4])
def test_check_target_position_rejects_out_of_range(target):
    with pytest.raises(ValidationError) as exc_info:
        check_target_position(target, 3)
    assert exc_info.value.status_code == 400


def test_is_contiguous_detects_gaps_and_duplicates():
    assert is_contiguous([])
    assert is_contiguous([2, 0, 1])
    assert not is_contiguous([0, 2])
    assert not is_contiguous([0, 1, 1])
