"""Constructors for new semesters, courses and assessments.

These sit at the data-entry boundary: they trim text, coerce numbers and
refuse blank names, so anything they return is safe to hand to
``gradebook.mutations``.
"""
from __future__ import annotations

import typing as t
import uuid

from gradebook.models import STATUSES, TERMS, Assessment, Course, GradeDistribution, Semester
from gradebook.parsing import parse_credits, parse_weight, parse_year


MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def new_id() -> str:
    return uuid.uuid4().hex


def semester_id(term: str, year: int) -> str:
    return f"{term}-{year}"


def format_due_date(month: str, day: int, year: int) -> str:
    """Format a due date the way the date picker does: 'Jan 5, 2025'."""
    if month not in MONTHS:
        raise ValueError(f"Unknown month: {month!r}. Expected one of {', '.join(MONTHS)}.")
    return f"{month} {int(day)}, {int(year)}"


def new_semester(term: str, year: t.Any, status: str = "Planned", current: bool = False) -> Semester:
    """Create an empty semester identified by ``'<term>-<year>'``."""
    if term not in TERMS:
        raise ValueError(f"Unknown term: {term!r}. Expected one of {', '.join(TERMS)}.")
    if status not in STATUSES:
        raise ValueError(f"Unknown status: {status!r}. Expected one of {', '.join(STATUSES)}.")
    parsed_year = parse_year(year)
    return Semester(
        id=semester_id(term, parsed_year),
        term=term,
        year=parsed_year,
        status=status,
        gpa="0.00",
        courses=[],
        credits=0.0,
        current=bool(current),
    )


def new_course(
        name: str,
        code: str = "",
        credits: t.Any = 0,
        instructor: str = "",
        target_grade: str = "",
        notes: str = "",
        grade_distribution: t.Optional[GradeDistribution] = None,
) -> Course:
    """Create a course with no assessments.

    :raises ValueError: If the name is blank.
    """
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValueError("Course name is required.")
    distributions = []
    if grade_distribution is not None and grade_distribution.value:
        distributions.append(grade_distribution)
    return Course(
        id=new_id(),
        name=trimmed,
        code=(code or "").strip(),
        credits=parse_credits(credits),
        instructor=instructor or "",
        target_grade=target_grade or "",
        notes=notes or "",
        grade=None,
        grade_distributions=distributions,
        assessments=[],
    )


def new_assessment(
        name: str,
        type: str = "Assignment",
        weight: t.Any = 10,
        due_date: str = "",
        completed: bool = False,
) -> Assessment:
    """Create an ungraded assessment.

    :raises ValueError: If the name is blank.
    """
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValueError("Assessment name is required.")
    return Assessment(
        id=new_id(),
        name=trimmed,
        type=(type or "").strip() or "Assignment",
        weight=parse_weight(weight),
        due_date=due_date or "",
        completed=bool(completed),
        score=None,
    )
