"""Grade and GPA aggregation.

Pure functions over the models in ``gradebook.models``. Two rules are easy
to get wrong and are kept exactly:

* A course percentage is renormalised over the weight that has actually been
  graded, so ungraded work does not count against the student.
* A course only counts toward semester and cumulative GPA once its graded
  weight reaches 100. Partially graded courses are left out entirely.
"""
from __future__ import annotations

from dataclasses import dataclass
import typing as t

from gradebook.models import Assessment, Collection, Course, Semester
from gradebook.parsing import as_list, is_finite_number, parse_credits, parse_weight
from gradebook.scale import grade_for


FULLY_GRADED_WEIGHT = 100.0
SEMESTER_TOTAL_WEIGHT = 100.0


@dataclass(frozen=True)
class CourseMetrics:
    """Everything the course detail view shows, computed in one pass."""
    total_weight: float
    completed_weight: float
    gained: float
    lost: float
    current_percent: t.Optional[float]
    progress_percent: float
    letter: t.Optional[str]


@dataclass(frozen=True)
class SemesterStats:
    """Credits, course count and credit-weighted GPA for one semester."""
    credits: float
    course_count: int
    semester_gpa: t.Optional[float]


@dataclass(frozen=True)
class SemesterProgress:
    """Semester header figures, summed over every course's assessments."""
    completed_weight: float
    gained: float
    lost: float
    progress_ratio: float
    all_courses_complete: bool
    has_graded_course: bool


@dataclass(frozen=True)
class CollectionStats:
    semester_count: int
    course_count: int
    assessment_count: int


# -----------------------------
# Course level
# -----------------------------

def _assessments(course: Course) -> list[Assessment]:
    return as_list(getattr(course, "assessments", None))


def _courses(semester: Semester) -> list[Course]:
    return as_list(getattr(semester, "courses", None))


def _is_graded(assessment: Assessment) -> bool:
    return is_finite_number(assessment.score)


def total_weight(course: Course) -> float:
    """Sum of every assessment weight, graded or not."""
    return sum(parse_weight(a.weight) for a in _assessments(course))


def completed_weight(course: Course) -> float:
    """Sum of weights of assessments that have a score."""
    return sum(parse_weight(a.weight) for a in _assessments(course) if _is_graded(a))


def gained_weight(course: Course) -> float:
    """Weight earned on graded assessments: sum(weight * score / 100)."""
    return sum(
        parse_weight(a.weight) * a.score / 100
        for a in _assessments(course)
        if _is_graded(a)
    )


def course_percent(course: Course) -> t.Optional[float]:
    """Current percentage over graded work only, or None when nothing is graded."""
    done = completed_weight(course)
    if done == 0:
        return None
    return gained_weight(course) / done * 100


def course_lost(course: Course) -> float:
    """Weight lost to imperfect scores on graded assessments."""
    return max(0.0, completed_weight(course) - gained_weight(course))


def course_progress(course: Course) -> float:
    """Graded weight as a percentage of assigned weight, clamped to [0, 100]."""
    assigned = total_weight(course)
    if assigned <= 0:
        return 0.0
    return min(100.0, max(0.0, completed_weight(course) / assigned * 100))


def course_is_fully_graded(course: Course) -> bool:
    return completed_weight(course) >= FULLY_GRADED_WEIGHT


def course_letter(course: Course) -> t.Optional[str]:
    result = grade_for(course_percent(course))
    return result.letter if result else None


def course_gpa_point(course: Course) -> t.Optional[float]:
    """GPA point for a fully graded course; None while it is still in progress."""
    if not course_is_fully_graded(course):
        return None
    result = grade_for(course_percent(course))
    return result.gpa if result else None


def course_metrics(course: Course) -> CourseMetrics:
    assigned = total_weight(course)
    done = completed_weight(course)
    gained = gained_weight(course)
    percent = gained / done * 100 if done != 0 else None
    result = grade_for(percent)
    progress = min(100.0, max(0.0, done / assigned * 100)) if assigned > 0 else 0.0
    return CourseMetrics(
        total_weight=assigned,
        completed_weight=done,
        gained=gained,
        lost=max(0.0, done - gained),
        current_percent=percent,
        progress_percent=progress,
        letter=result.letter if result else None,
    )


def find_assessment_by_type(course: Course, type_name: str) -> t.Optional[Assessment]:
    """First assessment whose type matches ``type_name``, ignoring case and padding."""
    wanted = (type_name or "").strip().lower()
    for assessment in _assessments(course):
        if str(assessment.type or "").strip().lower() == wanted:
            return assessment
    return None


# -----------------------------
# Semester and collection level
# -----------------------------

def _credit_weighted_gpa(courses: t.Iterable[Course]) -> t.Optional[float]:
    weighted = 0.0
    credit_total = 0.0
    for course in courses:
        point = course_gpa_point(course)
        if point is None:
            continue
        credits = parse_credits(course.credits)
        weighted += point * credits
        credit_total += credits
    if credit_total == 0:
        return None
    return weighted / credit_total


def semester_stats(semester: Semester) -> SemesterStats:
    courses = _courses(semester)
    return SemesterStats(
        credits=sum(parse_credits(c.credits) for c in courses),
        course_count=len(courses),
        semester_gpa=_credit_weighted_gpa(courses),
    )


def semester_progress(semester: Semester) -> SemesterProgress:
    courses = _courses(semester)
    done = sum(completed_weight(c) for c in courses)
    gained = sum(gained_weight(c) for c in courses)
    graded = [course_is_fully_graded(c) for c in courses]
    return SemesterProgress(
        completed_weight=done,
        gained=gained,
        lost=max(0.0, done - gained),
        progress_ratio=done / SEMESTER_TOTAL_WEIGHT,
        all_courses_complete=all(graded),
        has_graded_course=any(graded),
    )


def all_courses(collection: Collection) -> list[Course]:
    return [course for semester in as_list(collection) for course in _courses(semester)]


def cumulative_gpa(collection: Collection) -> t.Optional[float]:
    """One credit-weighted mean over every fully graded course in every semester."""
    return _credit_weighted_gpa(all_courses(collection))


def current_semester(collection: Collection) -> t.Optional[Semester]:
    """The semester flagged current, else the one with the latest year.

    Among semesters sharing the latest year the earliest in list order wins.
    """
    semesters = as_list(collection)
    if not semesters:
        return None
    for semester in semesters:
        if semester.current is True:
            return semester
    # max() keeps the first of equal keys
    return max(semesters, key=lambda s: s.year if is_finite_number(s.year) else 0)


def collection_stats(collection: Collection) -> CollectionStats:
    semesters = as_list(collection)
    courses = all_courses(semesters)
    return CollectionStats(
        semester_count=len(semesters),
        course_count=len(courses),
        assessment_count=sum(len(_assessments(c)) for c in courses),
    )
