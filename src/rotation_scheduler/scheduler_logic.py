"""
Scheduler Logic for the Rotation Scheduler

Implements the weekly off-day role rotation and the balance-scored
assignment of the three on-duty workers to the 7/9/13 shifts.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Sequence, Tuple, Any
import logging
import time

from .calendar_partition import Day, month_weeks, days_in_month
from .data_manager import (
    DaySchedule,
    Schedule,
    ScheduleRequest,
    SHIFT_IDS,
    WORKER_COUNT,
)
from .worker_stats import calculate_worker_stats

logger = logging.getLogger(__name__)


# Role -> days of week (0=Sunday) on which the role holder rests.
# Role 3 rests Saturday only; the next week it becomes role 0 (Sun+Mon),
# giving a Sat-Sun-Mon rest across the week boundary.
OFF_PATTERNS: Tuple[FrozenSet[int], ...] = (
    frozenset({0, 1}),
    frozenset({2, 3}),
    frozenset({4, 5}),
    frozenset({6}),
)

# Weight of the per-worker spread penalty (max - min of a worker's shift counts)
TIEBREAK_WEIGHT = 0.1


class RotationInvariantError(RuntimeError):
    """Raised if no worker's role covers a day; OFF_PATTERNS make this unreachable"""
    pass


class ShiftCounts:
    """Running per-worker, per-slot assignment tally for one generation"""

    def __init__(self, workers: int = WORKER_COUNT, slots: int = len(SHIFT_IDS)):
        self._counts = [[0] * slots for _ in range(workers)]

    def get(self, worker: int, slot: int) -> int:
        return self._counts[worker][slot]

    def row(self, worker: int) -> List[int]:
        return list(self._counts[worker])

    def increment(self, worker: int, slot: int):
        self._counts[worker][slot] += 1

    def snapshot(self) -> List[List[int]]:
        return [list(row) for row in self._counts]

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> 'ShiftCounts':
        counts = cls(workers=len(rows), slots=len(rows[0]))
        counts._counts = [list(row) for row in rows]
        return counts


@dataclass(frozen=True)
class ScheduleResult:
    """Result of schedule generation"""
    request: ScheduleRequest
    schedule: Schedule
    roles: List[List[int]]  # roles[week_index][worker]
    violations: List[str] = field(default_factory=list)
    statistics: Dict[int, Dict[str, Any]] = field(default_factory=dict)  # keyed by worker index
    message: str = ""

    @property
    def success(self) -> bool:
        return not self.violations


def role_for(worker: int, week_index: int) -> int:
    return (worker + week_index) % WORKER_COUNT


def off_days_for_role(role: int) -> FrozenSet[int]:
    return OFF_PATTERNS[role]


def off_worker_for(day_of_week: int, week_index: int) -> int:
    """Return the first worker (0..3) whose role this week rests on the given weekday"""
    for worker in range(WORKER_COUNT):
        if day_of_week in OFF_PATTERNS[role_for(worker, week_index)]:
            return worker
    raise RotationInvariantError(
        f"No worker is off on weekday {day_of_week} in week {week_index}"
    )


def permutations(items: Sequence[int]) -> List[Tuple[int, ...]]:
    """
    All orderings of items, built by recursively picking each remaining
    element in ascending index order. The order of the returned list is
    what breaks score ties, so it must stay stable.
    """
    if len(items) <= 1:
        return [tuple(items)]
    result = []
    for i, head in enumerate(items):
        rest = list(items[:i]) + list(items[i + 1:])
        for perm in permutations(rest):
            result.append((head,) + perm)
    return result


def score_ordering(ordering: Sequence[int], counts: ShiftCounts) -> float:
    """
    Score assigning ordering[slot] to SHIFT_IDS[slot]; lower is better.

    Base score is the sum of each candidate's current count for its slot.
    The penalty adds TIEBREAK_WEIGHT * (max - min) of each candidate's
    counts so that a worker stuck on one shift is pulled toward variety.
    """
    score = 0
    for slot, worker in enumerate(ordering):
        score += counts.get(worker, slot)
    for worker in ordering:
        row = counts.row(worker)
        score += (max(row) - min(row)) * TIEBREAK_WEIGHT
    return score


def choose_ordering(candidates: Sequence[int], counts: ShiftCounts) -> Tuple[int, ...]:
    """Pick the lowest scoring ordering; on ties the first enumerated wins"""
    orderings = permutations(candidates)
    best = orderings[0]
    best_score = float("inf")
    for ordering in orderings:
        score = score_ordering(ordering, counts)
        if score < best_score:
            best_score = score
            best = ordering
    return best


def assign_shifts(off_worker: int, counts: ShiftCounts) -> Dict[int, int]:
    """Assign the three on-duty workers to shifts and commit the counts"""
    candidates = [w for w in range(WORKER_COUNT) if w != off_worker]
    ordering = choose_ordering(candidates, counts)

    shifts = {}
    for slot, worker in enumerate(ordering):
        shifts[worker] = SHIFT_IDS[slot]
        counts.increment(worker, slot)
    return shifts


def schedule_week(week: List[Day], week_index: int, counts: ShiftCounts) -> Dict[int, DaySchedule]:
    entries = {}
    for day in week:
        off_worker = off_worker_for(day.day_of_week, week_index)
        entries[day.date] = DaySchedule(off=off_worker, shifts=assign_shifts(off_worker, counts))
    return entries


def generate_schedule(year: int, month: int) -> Schedule:
    """
    Generate the full month's schedule.

    Week index 0 is the month's first (possibly short) week. ShiftCounts
    live only for this call, so repeated calls give identical results.
    """
    counts = ShiftCounts()
    schedule = {}
    for week_index, week in enumerate(month_weeks(year, month)):
        schedule.update(schedule_week(week, week_index, counts))
    return schedule


def week_roles(year: int, month: int) -> List[List[int]]:
    """roles[week_index][worker] for every week of the month"""
    return [
        [role_for(worker, week_index) for worker in range(WORKER_COUNT)]
        for week_index in range(len(month_weeks(year, month)))
    ]


def validate_schedule(schedule: Schedule, year: int, month: int) -> List[str]:
    """Return descriptions of every broken day invariant (empty when valid)"""
    violations = []
    expected_days = days_in_month(year, month)

    for day in range(1, expected_days + 1):
        entry = schedule.get(day)
        if entry is None:
            violations.append(f"Day {day}: missing from schedule")
            continue
        if entry.off not in range(WORKER_COUNT):
            violations.append(f"Day {day}: invalid off worker {entry.off}")
        if entry.off in entry.shifts:
            violations.append(f"Day {day}: off worker {entry.off} also holds a shift")
        on_duty = [w for w in range(WORKER_COUNT) if w != entry.off]
        if sorted(entry.shifts) != on_duty:
            violations.append(f"Day {day}: on-duty workers {sorted(entry.shifts)} != {on_duty}")
        if sorted(entry.shifts.values()) != sorted(SHIFT_IDS):
            violations.append(f"Day {day}: shifts {sorted(entry.shifts.values())} are not one each of {list(SHIFT_IDS)}")

    extra = sorted(set(schedule) - set(range(1, expected_days + 1)))
    if extra:
        violations.append(f"Days outside the month: {extra}")

    return violations


class RotationScheduler:
    """Application-facing scheduler producing a ScheduleResult per request"""

    def generate(self, request: ScheduleRequest) -> ScheduleResult:
        start_time = time.time()
        logger.info(f"Starting schedule generation for {request.month_key}")

        schedule = generate_schedule(request.year, request.month)
        violations = validate_schedule(schedule, request.year, request.month)
        for violation in violations:
            logger.error(f"Schedule invariant broken: {violation}")

        statistics = calculate_worker_stats(schedule, request.year, request.month, request.names)
        message = f"Schedule generated for {len(schedule)} days"
        if violations:
            message += f" with {len(violations)} invariant violations"

        duration = time.time() - start_time
        logger.info(f"Generation for {request.month_key} completed in {duration:.3f}s")

        return ScheduleResult(
            request=request,
            schedule=schedule,
            roles=week_roles(request.year, request.month),
            violations=violations,
            statistics=statistics,
            message=message
        )
