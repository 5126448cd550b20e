"""Tests for the gradebook MCP tools and their text views."""
import typing as t

import pytest

from gradebook.models import Semester
from gradebook_server import server
from gradebook_server.session import GradebookSession
from gradebook_server.store import MemoryStore

from conftest import fully_graded, make_assessment, make_course


async def call_tool(tool_name: str, /, **kwargs: t.Any) -> t.Any:
    """Call a registered tool's underlying function."""
    tools = await server.mcp.get_tools()
    return await tools[tool_name].fn(**kwargs)


@pytest.fixture
def store() -> t.Iterator[MemoryStore]:
    local = MemoryStore()
    server.set_session(GradebookSession(local))
    yield local
    server.set_session(None)


@pytest.mark.asyncio
async def test_tools_build_a_graded_course(store: MemoryStore) -> None:
    semester = await call_tool("create_semester", term="Fall", year=2024)
    course = await call_tool("create_course", semester_id=semester.id, name="Algorithms", credits=3)
    midterm = await call_tool("create_assessment", semester_id=semester.id, course_id=course.id,
                              name="Midterm", type="Midterm", weight=60)
    await call_tool("create_assessment", semester_id=semester.id, course_id=course.id,
                    name="Final", type="Final", weight=40)

    await call_tool("record_score", semester_id=semester.id, course_id=course.id,
                    assessment_id=midterm.id, score=90)
    updated = await call_tool("record_score_by_type", semester_id=semester.id, course_id=course.id,
                              assessment_type="final", score=70)

    assert [a.score for a in updated.assessments] == [90.0, 70.0]
    overview = await call_tool("get_overview")
    assert overview.cumulative_gpa == pytest.approx(3.3)
    assert overview.current_semester_id == "Fall-2024"

    session = await server.get_session()
    await session.flush()
    assert store.documents["semesters_local"][0]["courses"][0]["assessments"][1]["score"] == 70.0


@pytest.mark.asyncio
async def test_record_score_rejects_out_of_range(store: MemoryStore) -> None:
    await call_tool("create_semester", term="Winter", year=2025)
    course = await call_tool("create_course", semester_id="Winter-2025", name="Physics")
    lab = await call_tool("create_assessment", semester_id="Winter-2025", course_id=course.id, name="Lab")

    with pytest.raises(ValueError):
        await call_tool("record_score", semester_id="Winter-2025", course_id=course.id,
                        assessment_id=lab.id, score=120)
    with pytest.raises(ValueError):
        await call_tool("record_score_by_type", semester_id="Winter-2025", course_id=course.id,
                        assessment_type="Exam", score=50)


@pytest.mark.asyncio
async def test_unknown_semester_is_reported(store: MemoryStore) -> None:
    with pytest.raises(ValueError):
        await call_tool("create_course", semester_id="Spring-2030", name="Math")
    with pytest.raises(ValueError):
        await call_tool("show_semester", semester_id="Spring-2030")


@pytest.mark.asyncio
async def test_counts_delete_and_clear(store: MemoryStore) -> None:
    await call_tool("create_semester", term="Fall", year=2024)
    await call_tool("create_semester", term="Winter", year=2025, current=True)
    course = await call_tool("create_course", semester_id="Fall-2024", name="History")
    await call_tool("create_assessment", semester_id="Fall-2024", course_id=course.id, name="Essay")

    assert await call_tool("get_counts") == {"semesters": 2, "courses": 1, "assessments": 1}
    assert await call_tool("delete_semester", semester_id="Fall-2024") == 1
    assert await call_tool("get_counts") == {"semesters": 1, "courses": 0, "assessments": 0}
    assert await call_tool("clear_all_data") == 0
    assert await call_tool("list_semesters") == []


@pytest.mark.asyncio
async def test_set_current_and_grade_distribution(store: MemoryStore) -> None:
    await call_tool("create_semester", term="Fall", year=2024, current=True)
    await call_tool("create_semester", term="Winter", year=2025)
    course = await call_tool("create_course", semester_id="Winter-2025", name="Chemistry")

    winter = await call_tool("set_current_semester", semester_id="Winter-2025")
    updated = await call_tool("set_grade_distribution", semester_id="Winter-2025", course_id=course.id,
                              grade="A", value="25%")

    assert winter.current is True
    assert [s.current for s in await call_tool("list_semesters")] == [False, True]
    assert [(d.grade, d.value) for d in updated.grade_distributions] == [("A", "25%")]


def test_format_semesters_table(collection: list[Semester]) -> None:
    text = server.format_semesters(collection)

    assert "Winter 2024" in text
    assert "4.00" in text
    assert text.endswith("Total: 2 semester(s)")
    assert server.format_semesters([]) == "📚 No semesters found."


def test_format_semester_and_course() -> None:
    course = make_course("c1", 3, [make_assessment("a", 60, 90), make_assessment("b", 40, 70)])
    semester = Semester(id="Fall-2024", term="Fall", year=2024, courses=[course, fully_graded("c2", 1, 95)])

    semester_text = server.format_semester(semester)
    assert "FALL 2024" in semester_text
    assert "B+ (82%)" in semester_text

    course_text = server.format_course(course)
    assert "Progress: 100%" in course_text
    assert course_text.endswith("Total: 2 assessment(s)")


@pytest.mark.asyncio
async def test_update_tools_keep_untouched_fields(store: MemoryStore) -> None:
    await call_tool("create_semester", term="Fall", year=2024)
    course = await call_tool("create_course", semester_id="Fall-2024", name="Biology", code="BIO 1", credits=3)
    lab = await call_tool("create_assessment", semester_id="Fall-2024", course_id=course.id, name="Lab")

    semester = await call_tool("update_semester", semester_id="Fall-2024", status="Completed")
    edited = await call_tool("update_course", semester_id="Fall-2024", course_id=course.id, credits=4)
    reweighted = await call_tool("update_assessment", semester_id="Fall-2024", course_id=course.id,
                                 assessment_id=lab.id, weight=25, completed=True)

    assert (semester.id, semester.status) == ("Fall-2024", "Completed")
    assert (edited.name, edited.code, edited.credits) == ("Biology", "BIO 1", 4.0)
    assert (reweighted.assessments[0].weight, reweighted.assessments[0].completed) == (25.0, True)
    with pytest.raises(ValueError):
        await call_tool("update_semester", semester_id="Fall-2024", status="Paused")


@pytest.mark.asyncio
async def test_create_semester_refuses_duplicate_id(store: MemoryStore) -> None:
    """Semester ids are "<Term>-<Year>", so the same term and year cannot be added twice."""
    await call_tool("create_semester", term="Fall", year=2024)

    with pytest.raises(ValueError):
        await call_tool("create_semester", term="Fall", year=2024)

    await call_tool("create_course", semester_id="Fall-2024", name="Algebra")
    semesters = await call_tool("list_semesters")
    assert [s.id for s in semesters] == ["Fall-2024"]
    assert len(semesters[0].courses) == 1


@pytest.mark.asyncio
async def test_unknown_assessment_is_reported(store: MemoryStore) -> None:
    await call_tool("create_semester", term="Fall", year=2024)
    course = await call_tool("create_course", semester_id="Fall-2024", name="Statistics")

    with pytest.raises(ValueError):
        await call_tool("record_score", semester_id="Fall-2024", course_id=course.id,
                        assessment_id="no-such-id", score=90)
    with pytest.raises(ValueError):
        await call_tool("update_assessment", semester_id="Fall-2024", course_id=course.id,
                        assessment_id="no-such-id", weight=20)


@pytest.mark.asyncio
async def test_remove_grade_distribution_row(store: MemoryStore) -> None:
    await call_tool("create_semester", term="Fall", year=2024)
    course = await call_tool("create_course", semester_id="Fall-2024", name="Economics")
    await call_tool("set_grade_distribution", semester_id="Fall-2024", course_id=course.id, grade="A", value="20%")
    await call_tool("set_grade_distribution", semester_id="Fall-2024", course_id=course.id, grade="B", value="45%")

    updated = await call_tool("remove_grade_distribution", semester_id="Fall-2024", course_id=course.id, grade="A")

    assert [(d.grade, d.value) for d in updated.grade_distributions] == [("B", "45%")]
    with pytest.raises(ValueError):
        await call_tool("remove_grade_distribution", semester_id="Fall-2024", course_id=course.id, grade="A")
