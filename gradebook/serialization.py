"""
JSON codec for the semester collection.

Stored documents use the camelCase keys of the mobile client (``dueDate``,
``targetGrade``, ``gradeDistributions``). Reading is forgiving: missing or
non-list ``courses``/``assessments`` become empty lists, entries that are not
objects are skipped, and numbers are coerced through ``gradebook.parsing``.
"""
from __future__ import annotations

from collections.abc import Mapping
import json
import typing as t

from gradebook.models import Assessment, Collection, Course, GradeDistribution, Semester
from gradebook.parsing import (as_list, parse_bool, parse_credits, parse_number, parse_score, parse_text,
                               parse_weight, parse_year)


def _mappings(value: t.Any) -> list[Mapping]:
    return [item for item in as_list(value) if isinstance(item, Mapping)]


def assessment_from_json(data: Mapping) -> Assessment:
    return Assessment(
        id=parse_text(data.get("id")),
        name=parse_text(data.get("name")),
        type=parse_text(data.get("type"), "Assignment") or "Assignment",
        weight=parse_weight(data.get("weight")),
        due_date=parse_text(data.get("dueDate")),
        completed=parse_bool(data.get("completed", False)),
        score=parse_score(data.get("score")),
    )


def assessment_to_json(assessment: Assessment) -> dict[str, t.Any]:
    return {
        "id": assessment.id,
        "name": assessment.name,
        "type": assessment.type,
        "weight": assessment.weight,
        "dueDate": assessment.due_date,
        "completed": assessment.completed,
        "score": assessment.score,
    }


def _distributions_from_json(data: Mapping) -> list[GradeDistribution]:
    rows = _mappings(data.get("gradeDistributions"))
    if not rows and isinstance(data.get("gradeDistribution"), Mapping):
        # Courses created before the list existed carry one entry
        legacy = data["gradeDistribution"]
        rows = [legacy] if parse_text(legacy.get("value")) else []
    return [
        GradeDistribution(grade=parse_text(row.get("grade")), value=parse_text(row.get("value")))
        for row in rows
    ]


def course_from_json(data: Mapping) -> Course:
    return Course(
        id=parse_text(data.get("id")),
        name=parse_text(data.get("name")),
        code=parse_text(data.get("code")),
        credits=parse_credits(data.get("credits")),
        instructor=parse_text(data.get("instructor")),
        target_grade=parse_text(data.get("targetGrade")),
        notes=parse_text(data.get("notes")),
        grade=None,
        grade_distributions=_distributions_from_json(data),
        assessments=[assessment_from_json(a) for a in _mappings(data.get("assessments"))],
    )


def course_to_json(course: Course) -> dict[str, t.Any]:
    return {
        "id": course.id,
        "name": course.name,
        "code": course.code,
        "credits": course.credits,
        "instructor": course.instructor,
        "targetGrade": course.target_grade,
        "notes": course.notes,
        "grade": None,
        "gradeDistributions": [{"grade": d.grade, "value": d.value} for d in course.grade_distributions],
        "assessments": [assessment_to_json(a) for a in as_list(course.assessments)],
    }


def semester_from_json(data: Mapping) -> Semester:
    return Semester(
        id=parse_text(data.get("id")),
        term=parse_text(data.get("term"), "Fall") or "Fall",
        year=parse_year(data.get("year")),
        status=parse_text(data.get("status"), "Planned") or "Planned",
        gpa=parse_text(data.get("gpa"), "0.00"),
        courses=[course_from_json(c) for c in _mappings(data.get("courses"))],
        credits=parse_number(data.get("credits"), 0.0),
        current=parse_bool(data.get("current", False)),
    )


def semester_to_json(semester: Semester) -> dict[str, t.Any]:
    return {
        "id": semester.id,
        "term": semester.term,
        "year": semester.year,
        "status": semester.status,
        "gpa": semester.gpa,
        "courses": [course_to_json(c) for c in as_list(semester.courses)],
        "credits": semester.credits,
        "current": semester.current,
    }


def collection_from_json(data: t.Any) -> Collection:
    """Build a collection from decoded JSON; anything that is not a list is empty."""
    return [semester_from_json(s) for s in _mappings(data)]


def collection_to_json(collection: Collection) -> list[dict[str, t.Any]]:
    return [semester_to_json(s) for s in as_list(collection)]


def dumps(collection: Collection) -> str:
    return json.dumps(collection_to_json(collection), ensure_ascii=False)


def loads(text: t.Optional[str]) -> Collection:
    """Decode a stored blob. Raises ``json.JSONDecodeError`` on corrupt text."""
    if not text:
        return []
    return collection_from_json(json.loads(text))
