"""
Calendar Partitioning for the Rotation Scheduler

Turns a (year, month) pair into the month's days tagged with a
Sunday-based day-of-week, grouped into weeks that start on Sunday.
"""

from dataclasses import dataclass
from datetime import date
from typing import List
import calendar


SUNDAY = 0
SATURDAY = 6

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


@dataclass(frozen=True)
class Day:
    """A single calendar day of the target month"""
    date: int
    day_of_week: int  # 0=Sunday .. 6=Saturday

    @property
    def name(self) -> str:
        return DAY_NAMES[self.day_of_week]


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def day_of_week(year: int, month: int, day: int) -> int:
    """Sunday-based weekday (0=Sunday); date.weekday() is Monday-based"""
    return (date(year, month, day).weekday() + 1) % 7


def month_days(year: int, month: int) -> List[Day]:
    """Build the ordered list of days for the month"""
    return [
        Day(date=d, day_of_week=day_of_week(year, month, d))
        for d in range(1, days_in_month(year, month) + 1)
    ]


def partition_weeks(days: List[Day]) -> List[List[Day]]:
    """
    Group consecutive days into weeks.

    A new week starts right before every Sunday, except before the first
    day, so the first and last weeks may be shorter than seven days.
    """
    weeks = []
    current_week = []
    for day in days:
        if day.day_of_week == SUNDAY and current_week:
            weeks.append(current_week)
            current_week = []
        current_week.append(day)
    if current_week:
        weeks.append(current_week)
    return weeks


def month_weeks(year: int, month: int) -> List[List[Day]]:
    return partition_weeks(month_days(year, month))
