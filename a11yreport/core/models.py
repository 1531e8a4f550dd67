# a11yreport/core/models.py

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

KNOWN_IMPACTS = ("critical", "serious", "moderate", "minor")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NodeCheck(BaseModel):
    """Результат одной проверки правила для элемента."""

    id: str = ""
    impact: Optional[str] = None
    message: str = ""
    data: Any = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class AffectedNode(BaseModel):
    """Конкретный элемент страницы, нарушающий правило."""

    html: str = ""
    target: List[Any] = Field(default_factory=list)
    impact: Optional[str] = None
    failure_summary: str = Field(default="", alias="failureSummary")
    any_checks: List[NodeCheck] = Field(default_factory=list, alias="any")
    all_checks: List[NodeCheck] = Field(default_factory=list, alias="all")
    none_checks: List[NodeCheck] = Field(default_factory=list, alias="none")

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Finding(BaseModel):
    """Одно нарушение доступности из axe-core (входные данные)."""

    id: str
    impact: str = ""
    tags: List[str] = Field(default_factory=list)
    description: str = ""
    help: str = ""
    help_url: str = Field(default="", alias="helpUrl")
    nodes: List[AffectedNode] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("impact", mode="before")
    @classmethod
    def _impact_passthrough(cls, value: Any) -> str:
        # Unknown severities are kept as-is; only a missing value becomes "".
        return "" if value is None else str(value)


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

_ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PENDING, JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class Job(BaseModel):
    id: str
    url: str
    status: JobStatus = JobStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    error: Optional[str] = None

    @classmethod
    def new(cls, url: str) -> "Job":
        now = utcnow()
        return cls(id=str(uuid.uuid4()), url=url, created_at=now, updated_at=now)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def advance(self, status: Optional[JobStatus] = None, progress: Optional[int] = None) -> None:
        """Moves the job forward. Terminal states and progress never go back."""
        if status is not None and status not in _ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"Illegal job transition: {self.status.value} -> {status.value}")
        if progress is not None:
            if not 0 <= progress <= 100:
                raise ValueError(f"Progress out of range: {progress}")
            if progress < self.progress:
                raise ValueError(f"Progress cannot decrease: {self.progress} -> {progress}")
        if status is not None:
            self.status = status
        if progress is not None:
            self.progress = progress
        self.updated_at = utcnow()

    def fail(self, message: str) -> None:
        self.advance(status=JobStatus.FAILED)
        self.error = message


class Issue(BaseModel):
    """Нарушение после локализации и форматирования, готовое к показу."""

    id: str
    impact: str
    title: str
    description: str
    how_to_fix: str
    affected_elements: int = 0
    tags: List[str] = Field(default_factory=list)
    help_url: str = ""
    examples: List[str] = Field(default_factory=list)


class ReportSummary(BaseModel):
    total_issues: int = 0
    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0
    impact_scores: Dict[str, int] = Field(default_factory=dict)


class Report(BaseModel):
    id: str
    url: str
    created_at: datetime = Field(default_factory=utcnow)
    summary: ReportSummary = Field(default_factory=ReportSummary)
    issues_by_impact: Dict[str, List[Issue]] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)

    def iter_issues(self):
        for issues in self.issues_by_impact.values():
            yield from issues
