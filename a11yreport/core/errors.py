# a11yreport/core/errors.py

from __future__ import annotations


class A11yReportError(Exception):
    """Base class for service errors."""

    code = "internal_error"


class ValidationError(A11yReportError):
    """Malformed submission; rejected before any job is created."""

    code = "invalid_request"


class NotFoundError(A11yReportError):
    code = "not_found"

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class NotReadyError(A11yReportError):
    code = "not_ready"

    def __init__(self, job_id: str, status: str) -> None:
        super().__init__("Report is not ready yet")
        self.job_id = job_id
        self.status = status


class EnrichmentError(A11yReportError):
    """External text-generation call failed or returned an unusable body."""

    code = "enrichment_failed"


class PersistenceError(A11yReportError):
    code = "persistence_failed"


class ReportExportError(A11yReportError):
    code = "export_failed"
