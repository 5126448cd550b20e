# -*- coding: utf-8 -*-
import math
import typing as t

from gradebook.aggregation import course_metrics
from gradebook.models import Course


def format_gpa(value: t.Optional[float]) -> str:
    """Two decimals; '0.00' when there is no GPA yet."""
    if value is None or not math.isfinite(value):
        return "0.00"
    return f"{value:.2f}"


def format_percent(value: t.Optional[float]) -> str:
    """Round to one decimal and drop a trailing '.0' (82.0 -> '82', 82.25 -> '82.3')."""
    if value is None or not math.isfinite(value):
        return "0"
    rounded = math.floor(value * 10 + 0.5) / 10
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.1f}"


def format_grade(course: Course) -> str:
    """Letter and percentage for a course card, e.g. 'B+ (82%)'."""
    metrics = course_metrics(course)
    if metrics.current_percent is None:
        return "—"
    return f"{metrics.letter} ({format_percent(metrics.current_percent)}%)"
