"""Builds REST summary models from a core collection."""
from __future__ import annotations

from gradebook.aggregation import (collection_stats, completed_weight, course_gpa_point, course_is_fully_graded,
                                   course_letter, course_percent, cumulative_gpa, current_semester, semester_stats)
from gradebook.models import Collection, Course, Semester
from services.shared.models import CollectionSummary, CourseSummary, SemesterSummary


def summarize_course(course: Course) -> CourseSummary:
    return CourseSummary(
        id=course.id,
        name=course.name,
        code=course.code,
        credits=course.credits,
        percent=course_percent(course),
        letter=course_letter(course),
        gpa_point=course_gpa_point(course),
        completed_weight=completed_weight(course),
        fully_graded=course_is_fully_graded(course),
    )


def summarize_semester(semester: Semester) -> SemesterSummary:
    stats = semester_stats(semester)
    return SemesterSummary(
        id=semester.id,
        title=f"{semester.term} {semester.year}",
        status=semester.status,
        current=semester.current,
        credits=stats.credits,
        course_count=stats.course_count,
        semester_gpa=stats.semester_gpa,
        courses=[summarize_course(c) for c in semester.courses],
    )


def summarize_collection(collection: Collection, key: str = "") -> CollectionSummary:
    stats = collection_stats(collection)
    current = current_semester(collection)
    return CollectionSummary(
        key=key,
        cumulative_gpa=cumulative_gpa(collection),
        current_semester_id=current.id if current else None,
        semester_count=stats.semester_count,
        course_count=stats.course_count,
        assessment_count=stats.assessment_count,
        semesters=[summarize_semester(s) for s in collection],
    )
