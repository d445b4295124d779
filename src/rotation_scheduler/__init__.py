"""
Four-Worker Rotation Scheduler

Generates monthly duty rosters for four workers on three daily shifts
with a weekly off-day rotation that guarantees every worker a three-day
rest once every four weeks.
"""

from .scheduler_logic import generate_schedule

__version__ = "1.0.0"
__author__ = "Rotation Scheduler Team"
