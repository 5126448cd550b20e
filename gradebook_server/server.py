# -*- coding: utf-8 -*-
import os
import typing as t

from fastmcp import FastMCP

from gradebook import mutations
from gradebook.aggregation import (collection_stats, course_metrics, find_assessment_by_type, semester_progress,
                                   semester_stats)
from gradebook.factories import new_assessment, new_course, new_semester
from gradebook.formatting import format_gpa, format_grade, format_percent
from gradebook.models import STATUSES, TERMS, Assessment, Course, Semester
from gradebook.validation import check_score
from gradebook_server.remote_store import SYNC_SERVICE_URL, RemoteStore
from gradebook_server.session import GradebookSession
from gradebook_server.store import JsonFileStore
from services.shared.models import CollectionSummary
from services.shared.summary import summarize_collection

mcp = FastMCP("GradeTrackServer")

# Configurable via environment variables
DATA_DIR = os.getenv("GRADETRACK_DATA_DIR", "~/.gradetrack")
USER_ID = os.getenv("GRADETRACK_USER") or None

_session: t.Optional[GradebookSession] = None


def build_session(
        data_dir: str = DATA_DIR,
        user_id: t.Optional[str] = USER_ID,
        sync_url: str = SYNC_SERVICE_URL,
) -> GradebookSession:
    """Create a session over a JSON file store and, when configured, the sync service."""
    remote = RemoteStore(sync_url) if sync_url else None
    return GradebookSession(JsonFileStore(data_dir), remote=remote, user_id=user_id)


async def get_session() -> GradebookSession:
    """Return the module session, loading it on first use."""
    global _session
    if _session is None:
        session = build_session()
        await session.start()
        _session = session
    return _session


def set_session(session: t.Optional[GradebookSession]) -> None:
    """Swap the module session (used by tests and embedding applications)."""
    global _session
    _session = session


def _require_semester(session: GradebookSession, semester_id: str) -> Semester:
    semester = session.get_semester(semester_id)
    if semester is None:
        raise ValueError(f"Semester '{semester_id}' not found.")
    return semester


def _require_course(session: GradebookSession, semester_id: str, course_id: str) -> Course:
    _require_semester(session, semester_id)
    course = session.get_course(semester_id, course_id)
    if course is None:
        raise ValueError(f"Course '{course_id}' not found in semester '{semester_id}'.")
    return course


def _require_assessment(session: GradebookSession, semester_id: str, course_id: str,
                        assessment_id: str) -> Assessment:
    course = _require_course(session, semester_id, course_id)
    assessment = next((a for a in course.assessments if a.id == assessment_id), None)
    if assessment is None:
        raise ValueError(f"Assessment '{assessment_id}' not found in course '{course_id}'.")
    return assessment


def _set_score(session: GradebookSession, semester_id: str, course_id: str, assessment_id: str,
               score: t.Any) -> Course:
    _require_assessment(session, semester_id, course_id, assessment_id)
    checked = check_score(score)
    if not checked.can_save:
        raise ValueError(f"Score {score!r} must be a number between 0 and 100.")
    session.update_assessment(semester_id, course_id, assessment_id, {"score": checked.value})
    return _require_course(session, semester_id, course_id)


# -----------------------------
# Semesters
# -----------------------------

@mcp.tool()
async def create_semester(
        term: str,
        year: int,
        status: str = "Planned",
        current: bool = False
) -> Semester:
    """Creates an empty semester.

    :param term: One of Winter, Summer, Spring, Fall.
    :param year: Calendar year.
    :param status: One of Planned, In Progress, Completed.
    :param current: Whether this is the active semester.
    :return: The created Semester.
    """
    session = await get_session()
    semester = new_semester(term, year, status=status, current=current)
    if session.get_semester(semester.id) is not None:
        raise ValueError(f"Semester '{semester.id}' already exists.")
    session.add_semester(semester)
    return semester


@mcp.tool()
async def delete_semester(semester_id: str) -> int:
    """Deletes a semester with all of its courses and assessments.

    :param semester_id: Id of the semester, e.g. "Fall-2024".
    :return: Number of semesters left.
    """
    session = await get_session()
    return len(session.delete_semester(semester_id))


@mcp.tool()
async def set_current_semester(semester_id: str) -> Semester:
    """Marks one semester as the active semester.

    :param semester_id: Id of the semester.
    :return: The updated Semester.
    """
    session = await get_session()
    _require_semester(session, semester_id)
    session.set_current_semester(semester_id)
    return _require_semester(session, semester_id)


@mcp.tool()
async def update_semester(
        semester_id: str,
        status: t.Optional[str] = None,
        term: t.Optional[str] = None,
        year: t.Optional[int] = None
) -> Semester:
    """Edits a semester's status, term or year. The id is not changed.

    :param semester_id: Id of the semester.
    :param status: One of Planned, In Progress, Completed (optional).
    :return: The updated Semester.
    """
    session = await get_session()
    _require_semester(session, semester_id)
    if status is not None and status not in STATUSES:
        raise ValueError(f"Unknown status: {status!r}. Expected one of {', '.join(STATUSES)}.")
    if term is not None and term not in TERMS:
        raise ValueError(f"Unknown term: {term!r}. Expected one of {', '.join(TERMS)}.")
    patch = {k: v for k, v in {"status": status, "term": term, "year": year}.items() if v is not None}
    session.update_semester(semester_id, patch)
    return _require_semester(session, semester_id)


@mcp.tool()
async def list_semesters() -> list[Semester]:
    """Lists all semesters with their courses and assessments.

    :return: A list of Semester objects.
    """
    session = await get_session()
    return session.collection


# -----------------------------
# Courses
# -----------------------------

@mcp.tool()
async def create_course(
        semester_id: str,
        name: str,
        code: str = "",
        credits: float = 0,
        instructor: str = "",
        target_grade: str = "",
        notes: str = ""
) -> Course:
    """Adds a course to a semester.

    :param semester_id: Id of the semester.
    :param name: Course name.
    :param code: Course code, e.g. "COMP 2140" (optional).
    :param credits: Credit hours (optional).
    :param instructor: Instructor name (optional).
    :param target_grade: Letter grade the student is aiming for (optional).
    :param notes: Free-form notes (optional).
    :return: The created Course.
    """
    session = await get_session()
    _require_semester(session, semester_id)
    course = new_course(name, code=code, credits=credits, instructor=instructor,
                        target_grade=target_grade, notes=notes)
    session.add_course(semester_id, course)
    return course


@mcp.tool()
async def delete_course(semester_id: str, course_id: str) -> Semester:
    """Deletes a course and its assessments.

    :return: The updated Semester.
    """
    session = await get_session()
    session.delete_course(semester_id, course_id)
    return _require_semester(session, semester_id)


@mcp.tool()
async def update_course(
        semester_id: str,
        course_id: str,
        name: t.Optional[str] = None,
        code: t.Optional[str] = None,
        credits: t.Optional[float] = None,
        instructor: t.Optional[str] = None,
        target_grade: t.Optional[str] = None,
        notes: t.Optional[str] = None
) -> Course:
    """Edits course details. Fields left out keep their current value.

    :return: The updated Course.
    """
    session = await get_session()
    _require_course(session, semester_id, course_id)
    if name is not None and not name.strip():
        raise ValueError("Course name is required.")
    values = {"name": name, "code": code, "credits": credits, "instructor": instructor,
              "target_grade": target_grade, "notes": notes}
    session.update_course(semester_id, course_id, {k: v for k, v in values.items() if v is not None})
    return _require_course(session, semester_id, course_id)


@mcp.tool()
async def set_grade_distribution(semester_id: str, course_id: str, grade: str, value: str) -> Course:
    """Records the share of the class that received a letter grade.

    An existing row for the same grade is replaced.

    :param grade: Letter grade, e.g. "A".
    :param value: Share of the class, e.g. "25%".
    :return: The updated Course.
    """
    session = await get_session()
    course = _require_course(session, semester_id, course_id)
    rows = mutations.upsert_grade_distribution(course.grade_distributions, grade, value)
    session.update_course(semester_id, course_id, {"grade_distributions": rows})
    return _require_course(session, semester_id, course_id)


@mcp.tool()
async def remove_grade_distribution(semester_id: str, course_id: str, grade: str) -> Course:
    """Removes the grade distribution row for a letter grade.

    :param grade: Letter grade whose row is removed, e.g. "A".
    :return: The updated Course.
    """
    session = await get_session()
    course = _require_course(session, semester_id, course_id)
    index = next((i for i, d in enumerate(course.grade_distributions) if d.grade == grade), None)
    if index is None:
        raise ValueError(f"No grade distribution row for '{grade}' in course '{course_id}'.")
    rows = mutations.remove_grade_distribution(course.grade_distributions, index)
    session.update_course(semester_id, course_id, {"grade_distributions": rows})
    return _require_course(session, semester_id, course_id)


# -----------------------------
# Assessments
# -----------------------------

@mcp.tool()
async def create_assessment(
        semester_id: str,
        course_id: str,
        name: str,
        type: str = "Assignment",
        weight: float = 10,
        due_date: str = ""
) -> Assessment:
    """Adds an ungraded assessment to a course.

    :param name: Assessment name.
    :param type: Assignment, Quiz, Exam, ... (optional).
    :param weight: Percentage of the course grade (optional).
    :param due_date: Due date such as "Jan 5, 2025" (optional).
    :return: The created Assessment.
    """
    session = await get_session()
    _require_course(session, semester_id, course_id)
    assessment = new_assessment(name, type=type, weight=weight, due_date=due_date)
    session.add_assessment(semester_id, course_id, assessment)
    return assessment


@mcp.tool()
async def delete_assessment(semester_id: str, course_id: str, assessment_id: str) -> Course:
    """Deletes an assessment.

    :return: The updated Course.
    """
    session = await get_session()
    session.delete_assessment(semester_id, course_id, assessment_id)
    return _require_course(session, semester_id, course_id)


@mcp.tool()
async def update_assessment(
        semester_id: str,
        course_id: str,
        assessment_id: str,
        name: t.Optional[str] = None,
        type: t.Optional[str] = None,
        weight: t.Optional[float] = None,
        due_date: t.Optional[str] = None,
        completed: t.Optional[bool] = None
) -> Course:
    """Edits assessment details. Use record_score to change the score.

    :return: The updated Course.
    """
    session = await get_session()
    _require_assessment(session, semester_id, course_id, assessment_id)
    values = {"name": name, "type": type, "weight": weight, "due_date": due_date, "completed": completed}
    session.update_assessment(semester_id, course_id, assessment_id,
                              {k: v for k, v in values.items() if v is not None})
    return _require_course(session, semester_id, course_id)


@mcp.tool()
async def record_score(
        semester_id: str,
        course_id: str,
        assessment_id: str,
        score: t.Optional[float] = None
) -> Course:
    """Sets or clears the score of an assessment.

    :param score: Percentage score, or None to mark the assessment ungraded.
    :return: The updated Course.
    """
    session = await get_session()
    return _set_score(session, semester_id, course_id, assessment_id, score)


@mcp.tool()
async def record_score_by_type(semester_id: str, course_id: str, assessment_type: str, score: float) -> Course:
    """Sets the score of the first assessment of a given type (e.g. "Midterm").

    :return: The updated Course.
    """
    session = await get_session()
    course = _require_course(session, semester_id, course_id)
    assessment = find_assessment_by_type(course, assessment_type)
    if assessment is None:
        raise ValueError(f"No '{assessment_type}' assessment in course '{course_id}'.")
    return _set_score(session, semester_id, course_id, assessment.id, score)


# -----------------------------
# Views
# -----------------------------

def format_semesters(semesters: list[Semester]) -> str:
    """Formats semesters as a clean table.

    :return: Formatted table string of all semesters.
    """
    if not semesters:
        return "📚 No semesters found."

    lines = []
    lines.append("📚 SEMESTERS")
    lines.append("=" * 80)
    lines.append(f"{'#':<4} {'Semester':<18} {'Status':<14} {'GPA':<6} {'Credits':<8} {'Courses':<8} {'':<8}")
    lines.append("-" * 80)

    for idx, semester in enumerate(semesters, 1):
        stats = semester_stats(semester)
        title = f"{semester.term} {semester.year}"
        flag = "Current" if semester.current else ""
        lines.append(
            f"{idx:<4} {title:<18} {semester.status:<14} {format_gpa(stats.semester_gpa):<6} "
            f"{stats.credits:<8g} {stats.course_count:<8} {flag:<8}"
        )

    lines.append("=" * 80)
    lines.append(f"Total: {len(semesters)} semester(s)")
    return "\n".join(lines)


def format_semester(semester: Semester) -> str:
    """Formats one semester with a row per course.

    :return: Formatted table string of the semester's courses.
    """
    stats = semester_stats(semester)
    progress = semester_progress(semester)

    lines = []
    lines.append(f"🗓️  {semester.term.upper()} {semester.year}")
    lines.append("=" * 80)
    gpa = format_gpa(stats.semester_gpa) if progress.has_graded_course else "—"
    lines.append(f"GPA: {gpa}   Credits: {stats.credits:g}   Courses: {stats.course_count}")
    lines.append("-" * 80)
    if not semester.courses:
        lines.append("No courses yet.")
    for idx, course in enumerate(semester.courses, 1):
        name = course.name[:34] if len(course.name) > 34 else course.name
        lines.append(f"{idx:<4} {name:<35} {course.code or '—':<12} {course.credits:<6g} {format_grade(course):<14}")
    lines.append("=" * 80)
    return "\n".join(lines)


def format_course(course: Course) -> str:
    """Formats one course with a row per assessment.

    :return: Formatted table string of the course's assessments.
    """
    metrics = course_metrics(course)

    lines = []
    lines.append(f"📘 {course.name}" + (f" ({course.code})" if course.code else ""))
    lines.append("=" * 80)
    lines.append(
        f"Grade: {format_grade(course)}   Progress: {format_percent(metrics.progress_percent)}%   "
        f"Gained: {format_percent(metrics.gained)}   Lost: {format_percent(metrics.lost)}"
    )
    lines.append("-" * 80)
    lines.append(f"{'#':<4} {'Name':<30} {'Type':<12} {'Weight':<8} {'Due':<14} {'Score':<8}")
    for idx, a in enumerate(course.assessments, 1):
        name = a.name[:29] if len(a.name) > 29 else a.name
        score = f"{format_percent(a.score)}%" if a.score is not None else "—"
        lines.append(
            f"{idx:<4} {name:<30} {a.type:<12} {format_percent(a.weight) + '%':<8} {a.due_date or '—':<14} {score:<8}"
        )
    lines.append("=" * 80)
    lines.append(f"Total: {len(course.assessments)} assessment(s)")
    return "\n".join(lines)


@mcp.tool()
async def show_semesters() -> str:
    """Displays every semester with its GPA, credits and course count.

    :return: Formatted table of semesters, or a message if there are none.
    """
    session = await get_session()
    return format_semesters(session.collection)


@mcp.tool()
async def show_semester(semester_id: str) -> str:
    """Displays one semester's courses with their current grades.

    :return: Formatted table of the semester's courses.
    """
    session = await get_session()
    return format_semester(_require_semester(session, semester_id))


@mcp.tool()
async def show_course(semester_id: str, course_id: str) -> str:
    """Displays one course's assessments, progress and current grade.

    :return: Formatted table of the course's assessments.
    """
    session = await get_session()
    return format_course(_require_course(session, semester_id, course_id))


@mcp.tool()
async def get_overview() -> CollectionSummary:
    """Returns cumulative GPA, the current semester and per-semester figures.

    :return: A CollectionSummary.
    """
    session = await get_session()
    return summarize_collection(session.collection, key=session.key)


@mcp.tool()
async def get_counts() -> dict[str, int]:
    """Counts semesters, courses and assessments.

    :return: A dictionary of counts.
    """
    session = await get_session()
    stats = collection_stats(session.collection)
    return {
        "semesters": stats.semester_count,
        "courses": stats.course_count,
        "assessments": stats.assessment_count,
    }


@mcp.tool()
async def clear_all_data() -> int:
    """Deletes every semester, course and assessment. This cannot be undone.

    :return: Number of semesters left (always 0).
    """
    session = await get_session()
    return len(session.clear_all())


if __name__ == "__main__":
    mcp.run()
