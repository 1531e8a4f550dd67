from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from a11yreport.core.models import Finding


class AnalysisRequest(BaseModel):
    url: str
    findings: List[Finding] = Field(validation_alias=AliasChoices("findings", "violations"))

    model_config = ConfigDict(extra="ignore")

    @field_validator("url")
    @classmethod
    def _url_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("url must not be empty")
        return value


class JobPublicResponse(BaseModel):
    id: str
    url: str
    status: str
    progress: int
    created_at: str
    updated_at: str
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class ReportSummaryTextResponse(BaseModel):
    job_id: str
    url: str
    summary: str
