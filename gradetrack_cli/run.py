# -*- coding: utf-8 -*-
import asyncio
from datetime import datetime
import logging
import typing as t

import click
from rich.panel import Panel
from rich.text import Text

from gradebook.aggregation import (collection_stats, course_metrics, cumulative_gpa, current_semester,
                                   semester_progress, semester_stats)
from gradebook.factories import MONTHS, format_due_date, new_assessment, new_course, new_semester
from gradebook.formatting import format_gpa, format_grade, format_percent
from gradebook.models import STATUSES, TERMS, Course, Semester
from gradebook.mutations import remove_grade_distribution, upsert_grade_distribution
from gradebook.validation import check_score, check_weight
from gradebook_server.remote_store import RemoteStore
from gradebook_server.session import GradebookSession
from gradebook_server.store import JsonFileStore
from gradetrack_cli.utils import (assessments_table, console, courses_table, fail, print_done, print_warning,
                                  semesters_table)


def _semester(session: GradebookSession, semester_id: str) -> Semester:
    semester = session.get_semester(semester_id)
    if semester is None:
        fail(f"Semester '{semester_id}' not found.")
    return semester


def _course(session: GradebookSession, semester_id: str, course_id: str) -> Course:
    _semester(session, semester_id)
    course = session.get_course(semester_id, course_id)
    if course is None:
        fail(f"Course '{course_id}' not found in semester '{semester_id}'.")
    return course


pass_session = click.make_pass_decorator(GradebookSession)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--data-dir", envvar="GRADETRACK_DATA_DIR", default="~/.gradetrack", show_default=True,
              help="Directory holding the local collection files.")
@click.option("--user", "user_id", envvar="GRADETRACK_USER", default=None,
              help="User id selecting which collection to use (default: local profile).")
@click.option("--sync-url", envvar="GRADETRACK_SYNC_URL", default=None,
              help="Base URL of the sync service; omit to work offline.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, data_dir: str, user_id: t.Optional[str], sync_url: t.Optional[str],
         verbose: bool) -> None:
    """GradeTrack: semesters, courses, weighted assessments and GPA."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    remote = RemoteStore(sync_url) if sync_url else None
    session = GradebookSession(JsonFileStore(data_dir), remote=remote, user_id=user_id)
    asyncio.run(session.start())
    ctx.obj = session


# -----------------------------
# Views
# -----------------------------

@main.command("semesters")
@pass_session
def list_semesters(session: GradebookSession) -> None:
    """List semesters with GPA, credits and course count."""
    if not session.collection:
        console.print("📚 No semesters yet. Add one with [bold]add-semester[/bold].")
        return
    console.print(semesters_table(session.collection))

    current = current_semester(session.collection)
    summary = Text()
    summary.append("Cumulative GPA: ", style="white")
    summary.append(format_gpa(cumulative_gpa(session.collection)), style="bold green")
    if current is not None:
        summary.append("\nCurrent semester: ", style="white")
        summary.append(f"{current.term} {current.year}", style="bold cyan")
    console.print(Panel(summary, title="📊 Overview", border_style="green"))


@main.command("show")
@click.argument("semester_id")
@pass_session
def show_semester(session: GradebookSession, semester_id: str) -> None:
    """Show one semester's courses and grades."""
    semester = _semester(session, semester_id)
    stats = semester_stats(semester)
    progress = semester_progress(semester)

    if semester.courses:
        console.print(courses_table(semester))
    else:
        console.print("No courses yet. Add one with [bold]add-course[/bold].")

    summary = Text()
    summary.append("Semester GPA: ", style="white")
    summary.append(format_gpa(stats.semester_gpa) if progress.has_graded_course else "—", style="bold green")
    summary.append(f"\nCredits: {stats.credits:g}   Courses: {stats.course_count}", style="white")
    summary.append(f"\nGained: {format_percent(progress.gained)}   Lost: {format_percent(progress.lost)}",
                   style="white")
    if progress.all_courses_complete and semester.courses:
        summary.append("\nAll courses fully graded", style="bold green")
    console.print(Panel(summary, title=f"{semester.term} {semester.year} · {semester.status}", border_style="blue"))


@main.command("course")
@click.argument("semester_id")
@click.argument("course_id")
@pass_session
def show_course(session: GradebookSession, semester_id: str, course_id: str) -> None:
    """Show one course's assessments, progress and current grade."""
    course = _course(session, semester_id, course_id)
    metrics = course_metrics(course)

    if course.assessments:
        console.print(assessments_table(course))
    else:
        console.print("No assessments yet. Add one with [bold]add-assessment[/bold].")

    summary = Text()
    summary.append("Current grade: ", style="white")
    summary.append(format_grade(course), style="bold green")
    summary.append(f"\nProgress: {format_percent(metrics.progress_percent)}%", style="yellow")
    summary.append(f"   Gained: {format_percent(metrics.gained)}", style="green")
    summary.append(f"   Lost: {format_percent(metrics.lost)}", style="red")
    if course.grade_distributions:
        rows = ", ".join(f"{d.grade}: {d.value}" for d in course.grade_distributions)
        summary.append(f"\nClass distribution: {rows}", style="dim")
    console.print(Panel(summary, title="📈 Course", border_style="blue"))


@main.command("stats")
@pass_session
def show_stats(session: GradebookSession) -> None:
    """Show collection counts and cumulative GPA."""
    stats = collection_stats(session.collection)
    text = Text()
    text.append("Semesters: ", style="white")
    text.append(f"{stats.semester_count}", style="bold green")
    text.append("\nCourses: ", style="white")
    text.append(f"{stats.course_count}", style="bold green")
    text.append("\nAssessments: ", style="white")
    text.append(f"{stats.assessment_count}", style="bold green")
    text.append("\nCumulative GPA: ", style="white")
    text.append(format_gpa(cumulative_gpa(session.collection)), style="bold green")
    console.print(Panel(text, title="📊 Statistics", border_style="green"))


# -----------------------------
# Semesters
# -----------------------------

@main.command("add-semester")
@click.argument("term", type=click.Choice(TERMS))
@click.argument("year", type=int)
@click.option("--status", type=click.Choice(STATUSES), default="Planned", show_default=True)
@click.option("--current", is_flag=True, help="Mark as the active semester.")
@pass_session
def add_semester(session: GradebookSession, term: str, year: int, status: str, current: bool) -> None:
    """Add an empty semester."""
    semester = new_semester(term, year, status=status, current=current)
    if session.get_semester(semester.id) is not None:
        fail(f"Semester '{semester.id}' already exists.")
    session.add_semester(semester)
    print_done(f"Added semester {semester.id}")


@main.command("delete-semester")
@click.argument("semester_id")
@pass_session
def delete_semester(session: GradebookSession, semester_id: str) -> None:
    """Delete a semester with all its courses and assessments."""
    _semester(session, semester_id)
    session.delete_semester(semester_id)
    print_done(f"Deleted semester {semester_id}")


@main.command("set-current")
@click.argument("semester_id")
@pass_session
def set_current(session: GradebookSession, semester_id: str) -> None:
    """Mark a semester as the active one."""
    _semester(session, semester_id)
    session.set_current_semester(semester_id)
    print_done(f"{semester_id} is now the current semester")


@main.command("clear")
@click.confirmation_option(prompt="Delete all semesters, courses and assessments?")
@pass_session
def clear(session: GradebookSession) -> None:
    """Delete every semester, course and assessment."""
    session.clear_all()
    print_done("All data deleted")


# -----------------------------
# Courses
# -----------------------------

@main.command("add-course")
@click.argument("semester_id")
@click.argument("name")
@click.option("--code", default="", help="Course code, e.g. 'COMP 2140'.")
@click.option("--credits", default="0", help="Credit hours.")
@click.option("--instructor", default="")
@click.option("--target-grade", default="")
@click.option("--notes", default="")
@pass_session
def add_course(session: GradebookSession, semester_id: str, name: str, code: str, credits: str,
               instructor: str, target_grade: str, notes: str) -> None:
    """Add a course to a semester."""
    _semester(session, semester_id)
    try:
        course = new_course(name, code=code, credits=credits, instructor=instructor,
                            target_grade=target_grade, notes=notes)
    except ValueError as e:
        fail(str(e))
    session.add_course(semester_id, course)
    print_done(f"Added course {course.name} ({course.id})")


@main.command("delete-course")
@click.argument("semester_id")
@click.argument("course_id")
@pass_session
def delete_course(session: GradebookSession, semester_id: str, course_id: str) -> None:
    """Delete a course with its assessments."""
    _course(session, semester_id, course_id)
    session.delete_course(semester_id, course_id)
    print_done(f"Deleted course {course_id}")


@main.command("distribution")
@click.argument("semester_id")
@click.argument("course_id")
@click.argument("grade")
@click.argument("value")
@pass_session
def set_distribution(session: GradebookSession, semester_id: str, course_id: str, grade: str,
                     value: str) -> None:
    """Record the share of the class that received GRADE (e.g. A 25%)."""
    course = _course(session, semester_id, course_id)
    rows = upsert_grade_distribution(course.grade_distributions, grade, value)
    session.update_course(semester_id, course_id, {"grade_distributions": rows})
    print_done(f"Grade distribution for {course.name}: {grade} = {value}")


@main.command("remove-distribution")
@click.argument("semester_id")
@click.argument("course_id")
@click.argument("grade")
@pass_session
def remove_distribution(session: GradebookSession, semester_id: str, course_id: str, grade: str) -> None:
    """Remove the class distribution row for GRADE."""
    course = _course(session, semester_id, course_id)
    index = next((i for i, d in enumerate(course.grade_distributions) if d.grade == grade), None)
    if index is None:
        fail(f"No distribution row for '{grade}' in course '{course_id}'.")
    rows = remove_grade_distribution(course.grade_distributions, index)
    session.update_course(semester_id, course_id, {"grade_distributions": rows})
    print_done(f"Removed grade distribution {grade} from {course.name}")


# -----------------------------
# Assessments
# -----------------------------

@main.command("add-assessment")
@click.argument("semester_id")
@click.argument("course_id")
@click.argument("name")
@click.option("--type", "type_", default="Assignment", show_default=True)
@click.option("--weight", default="10", show_default=True, help="Percentage of the course grade.")
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Due date as YYYY-MM-DD.")
@pass_session
def add_assessment(session: GradebookSession, semester_id: str, course_id: str, name: str, type_: str,
                   weight: str, due: t.Optional[datetime]) -> None:
    """Add an ungraded assessment to a course."""
    _course(session, semester_id, course_id)
    due_date = format_due_date(MONTHS[due.month - 1], due.day, due.year) if due else ""
    if check_weight(weight).too_high:
        print_warning(f"Weight {weight} is above 100%.")
    try:
        assessment = new_assessment(name, type=type_, weight=weight, due_date=due_date)
    except ValueError as e:
        fail(str(e))
    session.add_assessment(semester_id, course_id, assessment)
    print_done(f"Added assessment {assessment.name} ({assessment.id})")


@main.command("delete-assessment")
@click.argument("semester_id")
@click.argument("course_id")
@click.argument("assessment_id")
@pass_session
def delete_assessment(session: GradebookSession, semester_id: str, course_id: str, assessment_id: str) -> None:
    """Delete an assessment."""
    _course(session, semester_id, course_id)
    session.delete_assessment(semester_id, course_id, assessment_id)
    print_done(f"Deleted assessment {assessment_id}")


@main.command("score")
@click.argument("semester_id")
@click.argument("course_id")
@click.argument("assessment_id")
@click.argument("score", required=False, default="")
@pass_session
def record_score(session: GradebookSession, semester_id: str, course_id: str, assessment_id: str,
                 score: str) -> None:
    """Set an assessment's SCORE (0-100); omit SCORE to mark it ungraded."""
    course = _course(session, semester_id, course_id)
    if not any(a.id == assessment_id for a in course.assessments):
        fail(f"Assessment '{assessment_id}' not found in course '{course_id}'.")
    checked = check_score(score)
    if checked.invalid:
        fail(f"Score '{score}' is not a valid number.")
    if checked.too_high:
        fail(f"Score {score} is above 100%.")
    session.update_assessment(semester_id, course_id, assessment_id, {"score": checked.value})
    updated = _course(session, semester_id, course_id)
    print_done(f"{updated.name}: {format_grade(updated)}")


if __name__ == "__main__":
    main()
