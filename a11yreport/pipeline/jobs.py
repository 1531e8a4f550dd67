# a11yreport/pipeline/jobs.py

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from a11yreport.core.config import config
from a11yreport.core.errors import EnrichmentError, NotFoundError, NotReadyError, PersistenceError, ValidationError
from a11yreport.core.models import Finding, Job, JobStatus, Report
from a11yreport.core.stores import InMemoryJobStore, create_job_store_from_env
from a11yreport.enrichment.client import TextEnrichmentClient
from a11yreport.enrichment.prompts import finding_prompt
from a11yreport.report.builder import ReportBuilder, simplified_report

logger = logging.getLogger(__name__)

PROGRESS_STARTED = 10
PROGRESS_FINDINGS_READY = 50
PROGRESS_REPORT_ASSEMBLED = 90
PROGRESS_DONE = 100


def create_batches(findings: Sequence[Finding], batch_size: int) -> List[List[Finding]]:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [list(findings[i : i + batch_size]) for i in range(0, len(findings), batch_size)]


class JobPipeline:
    """Runs one analysis job from ``pending`` to ``completed`` or ``failed``.

    ``submit`` only records the job; ``schedule`` hands ``run`` to the
    pipeline's own worker pool, so the submission never waits for enrichment
    and a hung enrichment call never occupies a request-handling thread.
    ``run`` owns the job record for its whole execution and never raises:
    failures end up in the job itself.
    """

    def __init__(
        self,
        store: InMemoryJobStore,
        client: TextEnrichmentClient,
        batch_size: Optional[int] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.store = store
        self.client = client
        self.batch_size = batch_size or config.pipeline.batch_size
        self.workers = workers or config.pipeline.workers
        self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="a11y-job")

    def submit(self, url: str, findings: Sequence[Finding]) -> Job:
        url = (url or "").strip()
        if not url:
            raise ValidationError("url is required")
        job = Job.new(url)
        self.store.put(job)
        logger.info("Job accepted (job_id=%s url=%s findings=%s)", job.id, job.url, len(findings))
        return job

    def schedule(self, job_id: str, findings: Sequence[Finding]) -> Future:
        return self._executor.submit(self.run, job_id, list(findings))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def run(self, job_id: str, findings: Sequence[Finding]) -> None:
        try:
            job = self.store.get(job_id)
        except NotFoundError:
            logger.warning("Job disappeared before processing started (job_id=%s)", job_id)
            return

        try:
            job.advance(status=JobStatus.PROCESSING, progress=PROGRESS_STARTED)
            self._save(job)

            batches = create_batches(findings, self.batch_size)
            job.advance(progress=PROGRESS_FINDINGS_READY)
            self._save(job)

            builder = ReportBuilder(job.id, job.url)
            for index, batch in enumerate(batches, 1):
                builder.add_batch(batch, self._enrich(job.id, index, batch))
            report = builder.finish()

            job.advance(progress=PROGRESS_REPORT_ASSEMBLED)
            self._save(job)

            self._save_report(report)
            job.advance(status=JobStatus.COMPLETED, progress=PROGRESS_DONE)
            self._save(job)
            logger.info(
                "Job completed (job_id=%s issues=%s batches=%s)",
                job.id,
                report.summary.total_issues,
                len(batches),
            )
        except Exception as exc:
            logger.exception("Job failed (job_id=%s)", job.id)
            self._record_failure(job, exc)

    def _enrich(self, job_id: str, index: int, batch: Sequence[Finding]) -> List[str]:
        prompts = [finding_prompt(finding.id, finding.help) for finding in batch]
        try:
            texts = self.client.translate_batch(prompts)
        except EnrichmentError as exc:
            logger.warning(
                "Enrichment failed, using built-in texts (job_id=%s batch=%s size=%s): %s",
                job_id,
                index,
                len(batch),
                exc,
            )
            return ["" for _ in batch]
        if len(texts) != len(batch):
            logger.warning(
                "Enrichment returned %s texts for %s findings, using built-in texts (job_id=%s batch=%s)",
                len(texts),
                len(batch),
                job_id,
                index,
            )
            return ["" for _ in batch]
        return list(texts)

    def _save(self, job: Job) -> None:
        try:
            self.store.put(job)
        except Exception as exc:
            raise PersistenceError(f"Failed to save job: {exc}") from exc

    def _save_report(self, report: Report) -> None:
        try:
            self.store.put_report(report)
        except Exception as exc:
            raise PersistenceError(f"Failed to save report: {exc}") from exc

    def _record_failure(self, job: Job, exc: Exception) -> None:
        if job.is_terminal:
            return
        job.fail(str(exc) or exc.__class__.__name__)
        try:
            self.store.put(job)
        except Exception:
            logger.exception("Could not record job failure (job_id=%s)", job.id)

    def get_job(self, job_id: str) -> Job:
        return self.store.get(job_id)

    def get_report(self, job_id: str) -> Report:
        job = self.store.get(job_id)
        if job.status != JobStatus.COMPLETED:
            raise NotReadyError(job_id, job.status.value)
        return self.store.get_report(job_id)

    def summarize(self, job_id: str) -> Dict[str, Any]:
        report = self.get_report(job_id)
        payload = json.dumps(simplified_report(report), ensure_ascii=False)
        summary = self.client.generate_summary(payload)
        return {"job_id": job_id, "url": report.url, "summary": summary}

    def delete(self, job_id: str) -> None:
        self.store.delete(job_id)
        logger.info("Job deleted (job_id=%s)", job_id)


def create_pipeline_from_env() -> JobPipeline:
    return JobPipeline(store=create_job_store_from_env(), client=TextEnrichmentClient())
