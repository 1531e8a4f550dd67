from __future__ import annotations

from typing import Any, Dict, Optional

from a11yreport.core.models import Job


def public_job_payload(job: Job) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": job.id,
        "url": job.url,
        "status": job.status.value,
        "progress": job.progress,
        "created_at": job.created_at.isoformat(),
        "updated_at": job.updated_at.isoformat(),
    }
    if job.error:
        payload["error"] = job.error
    return payload


def error_payload(code: str, message: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": code}
    if message:
        payload["message"] = message
    return payload
