"""
Shared Pydantic models for REST API serialization.

Collections travel as plain JSON documents (the camelCase shape stored by
the mobile client), so the sync service never has to know about the core
dataclasses. Summary responses carry the figures computed by
``gradebook.aggregation``.
"""
from __future__ import annotations

import typing as t
from pydantic import BaseModel, Field


class SaveDocumentRequest(BaseModel):
    """Request model for replacing a user's collection document."""
    semesters: list[dict[str, t.Any]] = Field(default_factory=list)


class DocumentResponse(BaseModel):
    """A stored collection document."""
    key: str = ""
    semesters: list[dict[str, t.Any]] = Field(default_factory=list)
    updated_at: str = ""            # ISO datetime of the last write


class CourseSummary(BaseModel):
    """Computed figures for one course."""
    id: str
    name: str = ""
    code: str = ""
    credits: float = 0.0
    percent: t.Optional[float] = None
    letter: t.Optional[str] = None
    gpa_point: t.Optional[float] = None
    completed_weight: float = 0.0
    fully_graded: bool = False


class SemesterSummary(BaseModel):
    """Computed figures for one semester."""
    id: str
    title: str = ""                 # "Fall 2024"
    status: str = ""
    current: bool = False
    credits: float = 0.0
    course_count: int = 0
    semester_gpa: t.Optional[float] = None
    courses: list[CourseSummary] = Field(default_factory=list)


class CollectionSummary(BaseModel):
    """Response model for a whole-collection summary."""
    key: str = ""
    cumulative_gpa: t.Optional[float] = None
    current_semester_id: t.Optional[str] = None
    semester_count: int = 0
    course_count: int = 0
    assessment_count: int = 0
    semesters: list[SemesterSummary] = Field(default_factory=list)
