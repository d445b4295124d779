"""
Worker Statistics for the Rotation Scheduler

Summarises a generated schedule per worker: work and off days, hours,
shift distribution and off-day streaks.
"""

from typing import Dict, List, Optional, Sequence, Any

from .calendar_partition import month_days, SUNDAY
from .data_manager import Schedule, SHIFT_IDS, SHIFT_HOURS, WORKER_COUNT, DEFAULT_NAMES


def count_weeks(year: int, month: int) -> int:
    """Number of Sunday-started weeks touched by the month, counting a partial first week"""
    days = month_days(year, month)
    weeks = sum(1 for day in days if day.day_of_week == SUNDAY)
    if days[0].day_of_week != SUNDAY:
        weeks += 1
    return weeks


def worker_stats(schedule: Schedule, worker: int, weeks: int) -> Dict[str, Any]:
    """Statistics for a single worker, scanning the schedule in day order"""
    stats = {
        "work_days": 0,
        "off_days": 0,
        "max_off_streak": 0,
        "off_blocks_2plus": 0,
    }
    stats.update({f"shift_{shift_id}": 0 for shift_id in SHIFT_IDS})

    streak = 0
    for day in sorted(schedule):
        entry = schedule[day]
        if entry.is_off(worker):
            stats["off_days"] += 1
            streak += 1
            stats["max_off_streak"] = max(stats["max_off_streak"], streak)
            continue

        if streak >= 2:
            stats["off_blocks_2plus"] += 1
        streak = 0
        stats["work_days"] += 1
        shift_id = entry.shift_for(worker)
        if shift_id in SHIFT_IDS:
            stats[f"shift_{shift_id}"] += 1

    # An off run may reach the end of the month
    if streak >= 2:
        stats["off_blocks_2plus"] += 1

    stats["total_hours"] = stats["work_days"] * SHIFT_HOURS
    stats["weekly_average_hours"] = round(stats["total_hours"] / weeks, 1) if weeks else 0.0
    return stats


def calculate_worker_stats(schedule: Schedule, year: int, month: int,
                           names: Optional[Sequence[str]] = None) -> Dict[int, Dict[str, Any]]:
    """Statistics for all four workers, keyed by worker index (names may repeat)"""
    names = names or DEFAULT_NAMES
    weeks = count_weeks(year, month)

    stats = {}
    for worker in range(WORKER_COUNT):
        emp_stats = {"name": names[worker], "worker": worker}
        emp_stats.update(worker_stats(schedule, worker, weeks))
        stats[worker] = emp_stats
    return stats


def team_totals(statistics: Dict[int, Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate per-worker statistics into team-level numbers"""
    hours: List[int] = [s["total_hours"] for s in statistics.values()]
    totals = {
        "total_workers": len(statistics),
        "total_work_days": sum(s["work_days"] for s in statistics.values()),
        "total_off_days": sum(s["off_days"] for s in statistics.values()),
        "total_hours": sum(hours),
        "hours_spread": (max(hours) - min(hours)) if hours else 0,
    }
    for shift_id in SHIFT_IDS:
        totals[f"shift_{shift_id}"] = sum(s[f"shift_{shift_id}"] for s in statistics.values())
    return totals
