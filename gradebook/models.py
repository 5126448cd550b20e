"""
Data models for semesters, courses and assessments.

This module contains the dataclasses used to represent a user's grade book.
Instances are frozen: every change goes through ``gradebook.mutations`` and
produces a new collection.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import typing as t


Term = t.Literal["Winter", "Summer", "Spring", "Fall"]
Status = t.Literal["Planned", "In Progress", "Completed"]

TERMS: tuple[str, ...] = ("Winter", "Summer", "Spring", "Fall")
STATUSES: tuple[str, ...] = ("Planned", "In Progress", "Completed")


@dataclass(frozen=True)
class Assessment:
    """
    A gradable item (assignment, quiz, exam) inside a course.

    ``weight`` is in percentage points of the course. ``score`` stays None
    until the item is graded.
    """
    id: str
    name: str = ""
    type: str = "Assignment"
    weight: float = 0.0
    due_date: str = ""              # "Jan 5, 2025"
    completed: bool = False
    score: t.Optional[float] = None


@dataclass(frozen=True)
class GradeDistribution:
    """One row of a class grade distribution, e.g. ("A", "25%")."""
    grade: str
    value: str


@dataclass(frozen=True)
class Course:
    """A single class within a semester."""
    id: str
    name: str = ""
    code: str = ""
    credits: float = 0.0
    instructor: str = ""
    target_grade: str = ""
    notes: str = ""
    grade: None = None              # legacy placeholder, never computed
    grade_distributions: list[GradeDistribution] = field(default_factory=list)
    assessments: list[Assessment] = field(default_factory=list)


@dataclass(frozen=True)
class Semester:
    """
    A term/year academic period.

    ``gpa`` and ``credits`` are cached display values carried over from
    stored data; use ``gradebook.aggregation.semester_stats`` for real numbers.
    """
    id: str
    term: str = "Fall"
    year: int = 0
    status: str = "Planned"
    gpa: str = "0.00"
    courses: list[Course] = field(default_factory=list)
    credits: float = 0.0
    current: bool = False


Collection = list[Semester]


@dataclass(frozen=True)
class GradeTier:
    """A row of the grade scale."""
    min: float
    letter: str
    gpa: float


@dataclass(frozen=True)
class GradeResult:
    """Letter grade and GPA point for a percentage."""
    letter: str
    gpa: float
