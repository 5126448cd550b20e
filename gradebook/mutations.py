"""Copy-on-write updates of the semester collection.

Every function takes the full collection and returns a new one. The path
from the root to the changed node is rebuilt; untouched semesters, courses
and assessments are reused as-is. An id that is not found leaves the
collection equal in value to the input.

Deleting a semester removes its courses and their assessments with it, and
deleting a course removes its assessments. That cascade is part of the
contract, not a side effect.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, replace
import logging
import typing as t

from gradebook.models import Assessment, Collection, Course, GradeDistribution, Semester
from gradebook.parsing import (as_list, parse_bool, parse_credits, parse_score, parse_text, parse_weight,
                               parse_year)

logger = logging.getLogger(__name__)

Node = t.TypeVar("Node", Semester, Course, Assessment)


class SemesterPatch(t.TypedDict, total=False):
    term: str
    year: int
    status: str
    gpa: str
    credits: float
    current: bool


class CoursePatch(t.TypedDict, total=False):
    name: str
    code: str
    credits: float
    instructor: str
    target_grade: str
    notes: str
    grade_distributions: list[GradeDistribution]


class AssessmentPatch(t.TypedDict, total=False):
    name: str
    type: str
    weight: float
    due_date: str
    completed: bool
    score: t.Optional[float]


# Structural fields are changed through the add/delete operations only.
_PROTECTED = frozenset({"id", "courses", "assessments"})

_COERCE: dict[str, t.Callable[[t.Any], t.Any]] = {
    "weight": parse_weight,
    "credits": parse_credits,
    "score": parse_score,
    "year": parse_year,
    "completed": parse_bool,
    "current": parse_bool,
    "name": parse_text,
    "code": parse_text,
    "type": parse_text,
    "instructor": parse_text,
    "target_grade": parse_text,
    "notes": parse_text,
    "due_date": parse_text,
    "gpa": parse_text,
}


def _coerce_distributions(value: t.Any) -> list[GradeDistribution]:
    items = []
    for item in as_list(value):
        if isinstance(item, GradeDistribution):
            items.append(item)
        elif isinstance(item, Mapping):
            items.append(GradeDistribution(grade=parse_text(item.get("grade")),
                                           value=parse_text(item.get("value"))))
    return items


def merge(node: Node, patch: t.Mapping[str, t.Any]) -> Node:
    """Return ``node`` with the fields in ``patch`` replaced (patch wins).

    Unknown keys and structural keys (id, child lists) are ignored.
    """
    allowed = {f.name for f in fields(node)} - _PROTECTED
    changes: dict[str, t.Any] = {}
    for key, value in patch.items():
        if key not in allowed:
            logger.debug("Ignoring patch key %r for %s", key, type(node).__name__)
            continue
        if key == "grade_distributions":
            changes[key] = _coerce_distributions(value)
        elif key in _COERCE:
            changes[key] = _COERCE[key](value)
        else:
            changes[key] = value
    if not changes:
        return node
    return replace(node, **changes)


def _map_semester(collection: Collection, semester_id: str,
                  fn: t.Callable[[Semester], Semester]) -> Collection:
    return [fn(s) if s.id == semester_id else s for s in as_list(collection)]


def _map_course(collection: Collection, semester_id: str, course_id: str,
                fn: t.Callable[[Course], Course]) -> Collection:
    def on_semester(semester: Semester) -> Semester:
        courses = as_list(semester.courses)
        return replace(semester, courses=[fn(c) if c.id == course_id else c for c in courses])

    return _map_semester(collection, semester_id, on_semester)


# -----------------------------
# Semesters
# -----------------------------

def add_semester(collection: Collection, new_semester: Semester) -> Collection:
    return as_list(collection) + [new_semester]


def delete_semester(collection: Collection, semester_id: str) -> Collection:
    """Remove a semester together with its courses and assessments."""
    return [s for s in as_list(collection) if s.id != semester_id]


def update_semester(collection: Collection, semester_id: str, patch: SemesterPatch) -> Collection:
    return _map_semester(collection, semester_id, lambda s: merge(s, patch))


def set_current_semester(collection: Collection, semester_id: str) -> Collection:
    """Flag one semester as current and clear the flag on the others.

    Unknown ids leave every flag as it was.
    """
    semesters = as_list(collection)
    if not any(s.id == semester_id for s in semesters):
        return semesters
    return [
        s if s.current == (s.id == semester_id) else replace(s, current=s.id == semester_id)
        for s in semesters
    ]


def clear_all(collection: Collection) -> Collection:
    """Drop every semester, course and assessment."""
    return []


# -----------------------------
# Courses
# -----------------------------

def add_course(collection: Collection, semester_id: str, new_course: Course) -> Collection:
    return _map_semester(
        collection,
        semester_id,
        lambda s: replace(s, courses=as_list(s.courses) + [new_course]),
    )


def delete_course(collection: Collection, semester_id: str, course_id: str) -> Collection:
    """Remove a course together with its assessments."""
    return _map_semester(
        collection,
        semester_id,
        lambda s: replace(s, courses=[c for c in as_list(s.courses) if c.id != course_id]),
    )


def update_course(collection: Collection, semester_id: str, course_id: str,
                  patch: CoursePatch) -> Collection:
    return _map_course(collection, semester_id, course_id, lambda c: merge(c, patch))


# -----------------------------
# Assessments
# -----------------------------

def add_assessment(collection: Collection, semester_id: str, course_id: str,
                   new_assessment: Assessment) -> Collection:
    return _map_course(
        collection,
        semester_id,
        course_id,
        lambda c: replace(c, assessments=as_list(c.assessments) + [new_assessment]),
    )


def delete_assessment(collection: Collection, semester_id: str, course_id: str,
                      assessment_id: str) -> Collection:
    return _map_course(
        collection,
        semester_id,
        course_id,
        lambda c: replace(c, assessments=[a for a in as_list(c.assessments) if a.id != assessment_id]),
    )


def update_assessment(collection: Collection, semester_id: str, course_id: str,
                      assessment_id: str, patch: AssessmentPatch) -> Collection:
    def on_course(course: Course) -> Course:
        assessments = as_list(course.assessments)
        return replace(
            course,
            assessments=[merge(a, patch) if a.id == assessment_id else a for a in assessments],
        )

    return _map_course(collection, semester_id, course_id, on_course)


# -----------------------------
# Grade distribution rows
# -----------------------------

def upsert_grade_distribution(items: t.Sequence[GradeDistribution], grade: str,
                              value: str) -> list[GradeDistribution]:
    """Set the value for ``grade``, replacing an existing row in place.

    A blank value leaves the rows unchanged.
    """
    rows = list(items)
    if not value:
        return rows
    entry = GradeDistribution(grade=grade, value=value)
    for index, row in enumerate(rows):
        if row.grade == grade:
            rows[index] = entry
            return rows
    rows.append(entry)
    return rows


def remove_grade_distribution(items: t.Sequence[GradeDistribution], index: int) -> list[GradeDistribution]:
    return [row for i, row in enumerate(items) if i != index]
