"""Shared builders for grade book tests."""
import typing as t

import pytest

from gradebook.models import Assessment, Course, Semester


def make_assessment(id: str, weight: float, score: t.Optional[float] = None, type: str = "Assignment") -> Assessment:
    """Build an assessment with just the fields the math cares about."""
    return Assessment(id=id, name=id.upper(), type=type, weight=weight, score=score)


def make_course(id: str, credits: float, assessments: list[Assessment]) -> Course:
    return Course(id=id, name=f"Course {id}", code=id.upper(), credits=credits, assessments=assessments)


def fully_graded(id: str, credits: float, percent: float) -> Course:
    """A course with a single 100-weight assessment scored at ``percent``."""
    return make_course(id, credits, [make_assessment(f"{id}-final", 100, percent)])


@pytest.fixture
def fall_2024() -> Semester:
    """The Fall 2024 scenario: one 3-credit course graded 60@90 and 40@70."""
    return Semester(
        id="fall-2024",
        term="Fall",
        year=2024,
        status="In Progress",
        courses=[
            make_course("c1", 3, [
                make_assessment("a1", 60, 90),
                make_assessment("a2", 40, 70),
            ]),
        ],
    )


@pytest.fixture
def collection() -> list[Semester]:
    """Two semesters, two courses each, mixed grading states."""
    return [
        Semester(
            id="Winter-2024",
            term="Winter",
            year=2024,
            status="Completed",
            courses=[
                make_course("w1", 3, [make_assessment("w1-a", 50, 80), make_assessment("w1-b", 50, None)]),
                make_course("w2", 4, [make_assessment("w2-a", 100, 92)]),
            ],
        ),
        Semester(
            id="Fall-2024",
            term="Fall",
            year=2024,
            status="In Progress",
            courses=[
                make_course("f1", 3, [make_assessment("f1-a", 30, 100), make_assessment("f1-b", 70, 60)]),
                make_course("f2", 1, []),
            ],
        ),
    ]
