"""Rendering helpers for the command-line front end."""
import typing as t

from rich.console import Console
from rich.table import Table

from gradebook.aggregation import course_metrics, semester_stats
from gradebook.formatting import format_gpa, format_grade, format_percent
from gradebook.models import Collection, Course, Semester

console = Console()
err_console = Console(stderr=True)


def fail(message: str) -> t.NoReturn:
    """Print an error line and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(1)


def truncate(text: str, max_length: int = 40) -> str:
    """Truncate text to max_length characters, adding ellipsis if needed."""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def semesters_table(collection: Collection) -> Table:
    """One row per semester with GPA, credits and course count."""
    table = Table(title="📚 Semesters", show_header=True, header_style="bold magenta")
    table.add_column("Id", style="dim")
    table.add_column("Semester", style="white")
    table.add_column("Status", style="cyan")
    table.add_column("GPA", justify="right", style="bold green")
    table.add_column("Credits", justify="right")
    table.add_column("Courses", justify="right")
    table.add_column("", style="yellow")

    for semester in collection:
        stats = semester_stats(semester)
        table.add_row(
            semester.id,
            f"{semester.term} {semester.year}",
            semester.status,
            format_gpa(stats.semester_gpa),
            f"{stats.credits:g}",
            str(stats.course_count),
            "Current" if semester.current else "",
        )
    return table


def courses_table(semester: Semester) -> Table:
    """One row per course with its current grade and graded weight."""
    table = Table(title=f"🗓️  {semester.term} {semester.year}", show_header=True, header_style="bold magenta")
    table.add_column("Id", style="dim")
    table.add_column("Course", style="white")
    table.add_column("Code", style="cyan")
    table.add_column("Credits", justify="right")
    table.add_column("Grade", style="bold green")
    table.add_column("Graded", justify="right", style="yellow")

    for course in semester.courses:
        metrics = course_metrics(course)
        table.add_row(
            course.id,
            truncate(course.name),
            course.code or "—",
            f"{course.credits:g}",
            format_grade(course),
            f"{format_percent(metrics.completed_weight)}%",
        )
    return table


def assessments_table(course: Course) -> Table:
    """One row per assessment with weight, due date and score."""
    title = f"📘 {course.name}" + (f" ({course.code})" if course.code else "")
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="white")
    table.add_column("Type", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Due", style="yellow")
    table.add_column("Score", justify="right", style="bold green")

    for assessment in course.assessments:
        table.add_row(
            assessment.id,
            truncate(assessment.name),
            assessment.type,
            f"{format_percent(assessment.weight)}%",
            assessment.due_date or "—",
            f"{format_percent(assessment.score)}%" if assessment.score is not None else "—",
        )
    return table


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)


def print_done(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {message}", highlight=False)
