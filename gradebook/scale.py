# -*- coding: utf-8 -*-
import math
import typing as t

from gradebook.models import GradeResult, GradeTier


# Ordered high to low. The last tier has min 0 so every non-negative
# percentage finds a row. No upper clamp: extra credit above 100 is an "A".
GRADE_SCALE: tuple[GradeTier, ...] = (
    GradeTier(min=90, letter="A", gpa=4.0),
    GradeTier(min=85, letter="A-", gpa=3.7),
    GradeTier(min=80, letter="B+", gpa=3.3),
    GradeTier(min=75, letter="B", gpa=3.0),
    GradeTier(min=70, letter="B-", gpa=2.7),
    GradeTier(min=65, letter="C+", gpa=2.3),
    GradeTier(min=60, letter="C", gpa=2.0),
    GradeTier(min=55, letter="D", gpa=1.0),
    GradeTier(min=0, letter="F", gpa=0.0),
)


def grade_for(percent: t.Optional[float]) -> t.Optional[GradeResult]:
    """Map a percentage to its letter grade and GPA point.

    :param percent: Course percentage, or None when nothing is graded.
    :return: The first tier whose threshold is <= percent, or None.
    """
    if percent is None or not math.isfinite(percent):
        return None
    for tier in GRADE_SCALE:
        if tier.min <= percent:
            return GradeResult(letter=tier.letter, gpa=tier.gpa)
    lowest = GRADE_SCALE[-1]
    return GradeResult(letter=lowest.letter, gpa=lowest.gpa)
