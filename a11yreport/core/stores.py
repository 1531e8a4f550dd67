from __future__ import annotations

import logging
import threading
import zlib
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set

from a11yreport.core.config import config
from a11yreport.core.errors import NotFoundError
from a11yreport.core.models import Job, Report

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers go first."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()


class _Shard:
    def __init__(self) -> None:
        self.lock = ReadWriteLock()
        self.jobs: Dict[str, Job] = {}
        self.reports: Dict[str, Report] = {}
        self.deleted: Set[str] = set()


class InMemoryJobStore:
    """Process-local store for jobs and finished reports.

    Records are copied on the way in and on the way out, so every read sees a
    whole record and nothing outside the store can mutate stored state. Job ids
    are spread over independent shards; there is no store-wide lock.
    Writes for a deleted id are dropped so an in-flight pipeline cannot
    resurrect a job that was removed under it.
    """

    def __init__(self, shards: int = 32) -> None:
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]

    def _shard(self, job_id: str) -> _Shard:
        return self._shards[zlib.crc32(job_id.encode("utf-8")) % len(self._shards)]

    def put(self, job: Job) -> None:
        stored = job.model_copy(deep=True)
        shard = self._shard(stored.id)
        with shard.lock.write():
            if stored.id in shard.deleted:
                logger.debug("Dropping write for deleted job (job_id=%s status=%s)", stored.id, stored.status.value)
                return
            shard.jobs[stored.id] = stored

    def get(self, job_id: str) -> Job:
        shard = self._shard(job_id)
        with shard.lock.read():
            job = shard.jobs.get(job_id)
            if job is None:
                raise NotFoundError("job", job_id)
            return job.model_copy(deep=True)

    def delete(self, job_id: str) -> None:
        shard = self._shard(job_id)
        with shard.lock.write():
            job = shard.jobs.pop(job_id, None)
            shard.reports.pop(job_id, None)
            if job is None:
                raise NotFoundError("job", job_id)
            shard.deleted.add(job_id)

    def put_report(self, report: Report) -> None:
        stored = report.model_copy(deep=True)
        shard = self._shard(stored.id)
        with shard.lock.write():
            if stored.id in shard.deleted:
                logger.debug("Dropping report for deleted job (job_id=%s)", stored.id)
                return
            shard.reports[stored.id] = stored

    def get_report(self, job_id: str) -> Report:
        shard = self._shard(job_id)
        with shard.lock.read():
            report = shard.reports.get(job_id)
            if report is None:
                raise NotFoundError("report", job_id)
            return report.model_copy(deep=True)

    def list(self) -> Dict[str, Job]:
        items: Dict[str, Job] = {}
        for shard in self._shards:
            with shard.lock.read():
                for job_id, job in shard.jobs.items():
                    items[job_id] = job.model_copy(deep=True)
        return items

    @property
    def shard_count(self) -> int:
        return len(self._shards)


def create_job_store_from_env(shards: Optional[int] = None) -> InMemoryJobStore:
    return InMemoryJobStore(shards=shards or config.pipeline.store_shards)
