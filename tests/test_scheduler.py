"""
Test Suite for the Rotation Scheduler

Covers the off-day role rotation, the balance-scored shift assignment,
tie-breaking order and the schedule-level invariants.
"""

import pytest
import sys
from pathlib import Path

# Setup import path for src
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rotation_scheduler.calendar_partition import month_weeks
from rotation_scheduler.data_manager import DaySchedule, ScheduleRequest, SHIFT_IDS
from rotation_scheduler.scheduler_logic import (
    OFF_PATTERNS,
    TIEBREAK_WEIGHT,
    RotationScheduler,
    ShiftCounts,
    assign_shifts,
    choose_ordering,
    generate_schedule,
    off_days_for_role,
    off_worker_for,
    permutations,
    role_for,
    score_ordering,
    validate_schedule,
)


@pytest.fixture
def scheduler():
    return RotationScheduler()


@pytest.fixture
def february_2026():
    return generate_schedule(2026, 2)


def test_off_patterns_partition_the_week():
    covered = [dow for pattern in OFF_PATTERNS for dow in pattern]
    assert sorted(covered) == list(range(7))
    assert off_days_for_role(3) == frozenset({6})


@pytest.mark.parametrize("week_index", range(8))
def test_role_rotation(week_index):
    roles = [role_for(w, week_index) for w in range(4)]
    assert roles == [(w + week_index) % 4 for w in range(4)]
    assert sorted(roles) == [0, 1, 2, 3]


@pytest.mark.parametrize("week_index", range(8))
def test_worker_off_exactly_on_role_days(week_index):
    for worker in range(4):
        pattern = OFF_PATTERNS[role_for(worker, week_index)]
        for dow in range(7):
            assert (off_worker_for(dow, week_index) == worker) == (dow in pattern)


@pytest.mark.parametrize("week_index", range(8))
def test_saturday_rest_rolls_into_sunday_monday(week_index):
    """Whoever rests on Saturday rests Sunday and Monday of the next week."""
    saturday_worker = off_worker_for(6, week_index)
    assert role_for(saturday_worker, week_index) == 3
    assert role_for(saturday_worker, week_index + 1) == 0
    assert off_worker_for(0, week_index + 1) == saturday_worker
    assert off_worker_for(1, week_index + 1) == saturday_worker


def test_four_week_cycle_totals():
    off_days = {w: 0 for w in range(4)}
    for week_index in range(4):
        for dow in range(7):
            off_days[off_worker_for(dow, week_index)] += 1
    assert off_days == {0: 7, 1: 7, 2: 7, 3: 7}
    assert all(28 - off == 21 for off in off_days.values())


def test_permutation_enumeration_order():
    assert permutations([1, 2, 3]) == [
        (1, 2, 3), (1, 3, 2),
        (2, 1, 3), (2, 3, 1),
        (3, 1, 2), (3, 2, 1),
    ]
    assert permutations([5]) == [(5,)]


def test_score_includes_spread_penalty():
    counts = ShiftCounts.from_rows([[0, 0, 0], [2, 0, 0], [0, 0, 0], [0, 1, 0]])
    # base: counts[1][0] + counts[2][1] + counts[3][2] = 2
    # penalty: (2 - 0) + 0 + (1 - 0) spread, weighted
    assert score_ordering((1, 2, 3), counts) == pytest.approx(2 + 3 * TIEBREAK_WEIGHT)


def test_all_zero_counts_pick_first_ordering():
    assert choose_ordering([1, 2, 3], ShiftCounts()) == (1, 2, 3)
    assert choose_ordering([0, 2, 3], ShiftCounts()) == (0, 2, 3)


def test_tie_goes_to_first_enumerated_ordering():
    """
    After Feb 1 2026 the counts make (2, 3, 1) and (3, 1, 2) both score 0.3;
    (2, 3, 1) comes first in enumeration order and must win.
    """
    counts = ShiftCounts.from_rows([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    assert score_ordering((2, 3, 1), counts) == score_ordering((3, 1, 2), counts)
    assert choose_ordering([1, 2, 3], counts) == (2, 3, 1)


def test_assign_shifts_commits_one_increment_per_pair():
    counts = ShiftCounts()
    shifts = assign_shifts(0, counts)
    assert shifts == {1: 7, 2: 9, 3: 13}
    assert counts.snapshot() == [[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]]


def test_february_2026_first_days(february_2026):
    """Feb 1 2026 is a Sunday: worker 0 (role 0) rests days 1 and 2."""
    assert february_2026[1] == DaySchedule(off=0, shifts={1: 7, 2: 9, 3: 13})
    assert february_2026[2] == DaySchedule(off=0, shifts={2: 7, 3: 9, 1: 13})
    assert [february_2026[d].off for d in range(1, 8)] == [0, 0, 1, 1, 2, 2, 3]


def test_february_2026_three_day_rest(february_2026):
    """Worker 3 rests Saturday of week 0 and Sunday/Monday of week 1."""
    assert [february_2026[d].off for d in (7, 8, 9)] == [3, 3, 3]


def test_every_day_has_one_off_and_three_distinct_shifts(february_2026):
    assert sorted(february_2026) == list(range(1, 29))
    for day, entry in february_2026.items():
        assert entry.off not in entry.shifts
        assert sorted(entry.shifts) == [w for w in range(4) if w != entry.off]
        assert sorted(entry.shifts.values()) == sorted(SHIFT_IDS)
    assert validate_schedule(february_2026, 2026, 2) == []


@pytest.mark.parametrize("year, month", [(2026, 1), (2026, 4), (2024, 2), (2025, 12)])
def test_off_worker_follows_week_role(year, month):
    schedule = generate_schedule(year, month)
    for week_index, week in enumerate(month_weeks(year, month)):
        for day in week:
            off = schedule[day.date].off
            assert day.day_of_week in OFF_PATTERNS[role_for(off, week_index)]
    assert validate_schedule(schedule, year, month) == []


def test_short_first_week_is_week_index_zero():
    """January 2026 opens on Thursday; the partial week still uses week index 0."""
    schedule = generate_schedule(2026, 1)
    # Thu/Fri -> role 2 -> worker 2 in week 0; Sat -> role 3 -> worker 3
    assert [schedule[d].off for d in (1, 2, 3)] == [2, 2, 3]
    # Week 1 starts Sunday the 4th; worker 3 now holds role 0
    assert [schedule[d].off for d in (4, 5)] == [3, 3]


def test_four_full_weeks_give_seven_off_days_each(february_2026):
    for worker in range(4):
        off_days = sum(1 for entry in february_2026.values() if entry.off == worker)
        assert off_days == 7
        assert len(february_2026) - off_days == 21


def test_each_shift_covered_once_per_day_and_spread_across_workers(february_2026):
    for shift_id in SHIFT_IDS:
        holders = [entry.worker_for_shift(shift_id) for entry in february_2026.values()]
        assert len(holders) == 28
        assert set(holders) == {0, 1, 2, 3}


def test_generation_is_deterministic():
    assert generate_schedule(2026, 3) == generate_schedule(2026, 3)
    assert generate_schedule(2024, 2) == generate_schedule(2024, 2)


def test_validate_schedule_reports_broken_days():
    schedule = generate_schedule(2026, 2)
    del schedule[5]
    schedule[6] = DaySchedule(off=1, shifts={0: 7, 1: 9, 2: 9})
    violations = validate_schedule(schedule, 2026, 2)
    assert any("Day 5" in v for v in violations)
    assert any("Day 6" in v for v in violations)


def test_rotation_scheduler_result(scheduler):
    request = ScheduleRequest(2026, 2, names=("Ann", "Ben", "Cho", "Dee"))
    result = scheduler.generate(request)

    assert result.success
    assert result.request is request
    assert len(result.schedule) == 28
    assert result.roles[0] == [0, 1, 2, 3]
    assert result.roles[1] == [1, 2, 3, 0]
    assert len(result.roles) == 4
    assert result.statistics[0]["name"] == "Ann"
    assert result.statistics[0]["off_days"] == 7
    assert "28 days" in result.message


def test_rotation_scheduler_does_not_carry_counts_between_calls(scheduler):
    first = scheduler.generate(ScheduleRequest(2026, 2))
    scheduler.generate(ScheduleRequest(2026, 3))
    again = scheduler.generate(ScheduleRequest(2026, 2))
    assert first.schedule == again.schedule
