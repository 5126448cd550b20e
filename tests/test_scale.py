"""Tests for the letter grade scale."""
import pytest

from gradebook.models import GradeResult
from gradebook.scale import GRADE_SCALE, grade_for


def test_grade_boundaries_are_inclusive_at_the_minimum() -> None:
    """A percentage exactly on a threshold belongs to that tier."""
    assert grade_for(90) == GradeResult(letter="A", gpa=4.0)
    assert grade_for(89.999) == GradeResult(letter="A-", gpa=3.7)
    assert grade_for(55) == GradeResult(letter="D", gpa=1.0)
    assert grade_for(54.99) == GradeResult(letter="F", gpa=0.0)
    assert grade_for(0) == GradeResult(letter="F", gpa=0.0)


def test_no_percent_means_no_grade() -> None:
    assert grade_for(None) is None
    assert grade_for(float("nan")) is None


def test_extra_credit_above_100_still_maps_to_a() -> None:
    assert grade_for(112.5) == GradeResult(letter="A", gpa=4.0)


def test_negative_percent_falls_back_to_f() -> None:
    assert grade_for(-5) == GradeResult(letter="F", gpa=0.0)


@pytest.mark.parametrize("percent,letter,gpa", [
    (95, "A", 4.0),
    (86, "A-", 3.7),
    (82, "B+", 3.3),
    (77.5, "B", 3.0),
    (70, "B-", 2.7),
    (66, "C+", 2.3),
    (61, "C", 2.0),
    (58, "D", 1.0),
    (30, "F", 0.0),
])
def test_every_tier_is_reachable(percent: float, letter: str, gpa: float) -> None:
    assert grade_for(percent) == GradeResult(letter=letter, gpa=gpa)


def test_scale_is_ordered_high_to_low() -> None:
    minimums = [tier.min for tier in GRADE_SCALE]
    assert minimums == sorted(minimums, reverse=True)
    assert minimums[-1] == 0
