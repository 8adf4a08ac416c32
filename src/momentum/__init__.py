"""Momentum: streaks, per-check-in chart points and weekly completion tiers."""

from .layout import assign_slots
from .models import DayMomentum, MomentumPoint, WeekMomentum
from .points import build_points, week_days, y_axis_max
from .streak import StreakCalculator, StreakDataLoader
from .week import WeekMomentumCalculator

__all__ = [
    "assign_slots",
    "DayMomentum",
    "MomentumPoint",
    "WeekMomentum",
    "build_points",
    "week_days",
    "y_axis_max",
    "StreakCalculator",
    "StreakDataLoader",
    "WeekMomentumCalculator",
]
