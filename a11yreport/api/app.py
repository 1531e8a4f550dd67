from __future__ import annotations

import io
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from a11yreport.api.public_views import error_payload, public_job_payload
from a11yreport.api.schemas import (
    AnalysisRequest,
    ErrorResponse,
    JobPublicResponse,
    ReportSummaryTextResponse,
    SuccessResponse,
)
from a11yreport.core.config import config
from a11yreport.core.errors import (
    A11yReportError,
    EnrichmentError,
    NotFoundError,
    NotReadyError,
    ReportExportError,
    ValidationError,
)
from a11yreport.core.models import Report
from a11yreport.core.version import __version__
from a11yreport.enrichment.llm_provider import openai_compatible_missing_reason
from a11yreport.exporters.excel_builder import build_xlsx_from_report
from a11yreport.exporters.word_builder import build_docx_from_report
from a11yreport.pipeline.jobs import create_pipeline_from_env

logger = logging.getLogger(__name__)

PIPELINE = create_pipeline_from_env()

EXPORT_FORMATS = {
    "docx": (
        build_docx_from_report,
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    "xlsx": (
        build_xlsx_from_report,
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ),
}

ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    NotReadyError: 202,
    EnrichmentError: 500,
    ReportExportError: 500,
}


@asynccontextmanager
async def lifespan(_: FastAPI):
    if PIPELINE.client.offline:
        logger.warning("%s; running in demo mode", openai_compatible_missing_reason())
    else:
        logger.info("Text generation configured (model=%s)", PIPELINE.client.llm.model)
    yield


app = FastAPI(
    title="Accessibility Report API",
    description="Asynchronous enrichment of axe-core findings into localized accessibility reports",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    expose_headers=["Content-Length"],
)


@app.exception_handler(A11yReportError)
async def _service_error_handler(_: Request, exc: A11yReportError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(status_code=status_code, content=error_payload(exc.code, str(exc)))


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(status_code=400, content=error_payload(ValidationError.code, "; ".join(messages)))


def _health_diagnostics() -> dict[str, Any]:
    jobs = PIPELINE.store.list()
    diagnostics: dict[str, Any] = {
        "job_store": {
            "mode": "inmem",
            "shards": PIPELINE.store.shard_count,
            "jobs": len(jobs),
        },
        "llm": {
            "configured": not PIPELINE.client.offline,
            "model": PIPELINE.client.llm.model,
        },
        "pipeline": {"batch_size": PIPELINE.batch_size, "workers": PIPELINE.workers},
    }
    if PIPELINE.client.offline:
        diagnostics["llm"]["reason"] = openai_compatible_missing_reason()
    return diagnostics


@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "diagnostics": _health_diagnostics(),
    }


@app.post(
    "/api/v1/analyze",
    status_code=201,
    response_model=JobPublicResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
def create_analysis(req: AnalysisRequest):
    job = PIPELINE.submit(req.url, req.findings)
    PIPELINE.schedule(job.id, req.findings)
    return public_job_payload(job)


@app.get(
    "/api/v1/jobs/{job_id}",
    response_model=JobPublicResponse,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
def get_job_status(job_id: str):
    return public_job_payload(PIPELINE.get_job(job_id))


@app.get(
    "/api/v1/jobs/{job_id}/report",
    response_model=Report,
    responses={202: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_report(job_id: str):
    return PIPELINE.get_report(job_id)


@app.get(
    "/api/v1/jobs/{job_id}/report/summary",
    response_model=ReportSummaryTextResponse,
    responses={202: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_report_summary(job_id: str):
    try:
        return PIPELINE.summarize(job_id)
    except EnrichmentError as exc:
        return JSONResponse(
            status_code=500,
            content=error_payload("summary_generation_failed", f"Failed to generate summary: {exc}"),
        )


@app.get("/api/v1/jobs/{job_id}/report/export")
def export_report(job_id: str, requested_format: str = Query("docx", alias="format")):
    fmt = (requested_format or "").strip().lower()
    if fmt not in EXPORT_FORMATS:
        return JSONResponse(
            status_code=400,
            content=error_payload(ValidationError.code, f"Unsupported format: {requested_format}"),
        )

    report = PIPELINE.get_report(job_id)
    builder, media_type = EXPORT_FORMATS[fmt]
    content = builder(report)
    filename = f"accessibility_report_{job_id}.{fmt}"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Content-Length": str(len(content)),
        },
    )


@app.delete(
    "/api/v1/jobs/{job_id}",
    response_model=SuccessResponse,
    responses={404: {"model": ErrorResponse}},
)
def delete_job(job_id: str):
    PIPELINE.delete(job_id)
    return {"success": True, "message": "Job deleted successfully"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if config.debug else logging.INFO)
    uvicorn.run(app, host=config.api_host, port=config.api_port)
