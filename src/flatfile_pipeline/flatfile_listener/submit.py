# src/flatfile_pipeline/flatfile_listener/submit.py

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from flatfile_pipeline.config.config import (
    SUBMIT_ACK_INFO,
    SUBMIT_ACK_PROGRESS,
    SUBMIT_METHOD_TAG,
)
from .errors import (
    AcknowledgeError,
    CollectionError,
    DeliveryError,
    SubmitJobError,
)
from .events import FlatfileEvent
from .webhook import deliver


class JobState(str, Enum):
    READY = "ready"
    ACKNOWLEDGED = "acknowledged"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobOutcome:
    """What happened to one submit job run."""
    job_id: str
    workbook_id: Optional[str]
    state: JobState
    message: str
    reason: Optional[SubmitJobError] = None
    history: List[JobState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == JobState.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "workbook_id": self.workbook_id,
            "state": self.state.value,
            "message": self.message,
            "reason": self.reason.reason if self.reason else None,
            "history": [s.value for s in self.history],
        }


class WorkbookLocks:
    """Advisory locks keyed by workbook id so submits for one workbook run one at a time."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._holders: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, workbook_id: Optional[str]) -> Iterator[None]:
        key = workbook_id or ""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            # Drop the entry once nobody holds or waits on it
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]


class SubmitJobController:
    """
    Runs a workbook submit job: acknowledge, collect every sheet's records,
    POST them to the webhook once, then complete or fail the job.

    The webhook URL is fixed at construction. ``run`` never raises; the
    job always ends in exactly one terminal call.
    """

    def __init__(self, client, webhook_url: str, timeout: float = 30,
                 method_tag: str = SUBMIT_METHOD_TAG, locks: Optional[WorkbookLocks] = None):
        self.client = client
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.method_tag = method_tag
        self.locks = locks or WorkbookLocks()

    @property
    def success_message(self) -> str:
        return f"Data was successfully submitted to the webhook. Go check it out at {self.webhook_url}."

    @property
    def failure_message(self) -> str:
        return f"This job failed. Check your {self.webhook_url}."

    def run(self, event: FlatfileEvent) -> JobOutcome:
        logger = logging.getLogger('flatfile.submit')
        job_id = event.job_id
        workbook_id = event.workbook_id

        outcome = JobOutcome(job_id=job_id, workbook_id=workbook_id,
                             state=JobState.READY, message="", history=[JobState.READY])
        start_time = datetime.utcnow()
        logger.info(f"🚀 Submit job {job_id} started for workbook {workbook_id}")

        with self.locks.hold(workbook_id):
            try:
                self._acknowledge(job_id)
                self._advance(outcome, JobState.ACKNOWLEDGED)

                sheets, records = self._collect(workbook_id)
                self._advance(outcome, JobState.DELIVERING)

                body = {**event.payload, "method": self.method_tag, "sheets": sheets, "records": records}
                self._deliver(body)
            except SubmitJobError as e:
                outcome.reason = e
                logger.error(f"❌ Submit job {job_id} failed during {e.reason}: {e}", exc_info=True)
            except Exception as e:
                outcome.reason = SubmitJobError(str(e))
                logger.error(f"❌ Submit job {job_id} failed: {e}", exc_info=True)

            if outcome.reason is None:
                self._complete(outcome)
            else:
                self._fail(outcome)

        total_time = (datetime.utcnow() - start_time).total_seconds()
        logger.info(f"🏁 Submit job {job_id} {outcome.state.value} in {total_time:.2f}s")
        return outcome

    @staticmethod
    def _advance(outcome: JobOutcome, state: JobState) -> None:
        logging.getLogger('flatfile.submit').debug(f"Job {outcome.job_id}: {outcome.state.value} -> {state.value}")
        outcome.state = state
        outcome.history.append(state)

    def _acknowledge(self, job_id: str) -> None:
        try:
            self.client.ack_job(job_id, info=SUBMIT_ACK_INFO, progress=SUBMIT_ACK_PROGRESS)
        except Exception as e:
            raise AcknowledgeError(f"Failed to acknowledge job {job_id}: {e}") from e

    def _collect(self, workbook_id: str):
        """
        Fetch every sheet of the workbook and its records, in sheet order.

        Returns:
            tuple: (sheets list, {"Sheet[i]": records payload})
        """
        logger = logging.getLogger('flatfile.submit')
        try:
            sheets = self.client.list_sheets(workbook_id)
            records: Dict[str, Any] = {}
            for index, sheet in enumerate(sheets):
                records[f"Sheet[{index}]"] = self.client.get_records(sheet["id"])
                logger.debug(f"Collected records for sheet {index} ({sheet.get('slug', sheet['id'])})")
        except Exception as e:
            raise CollectionError(f"Failed to collect data for workbook {workbook_id}: {e}") from e

        logger.info(f"📊 Collected {len(records)} sheets from workbook {workbook_id}")
        return sheets, records

    def _deliver(self, body: Dict[str, Any]) -> None:
        try:
            deliver(self.webhook_url, body, timeout=self.timeout)
        except DeliveryError:
            raise
        except Exception as e:
            raise DeliveryError(f"Failed to submit data to {self.webhook_url}: {e}") from e

    def _complete(self, outcome: JobOutcome) -> None:
        logger = logging.getLogger('flatfile.submit')
        self._advance(outcome, JobState.COMPLETED)
        outcome.message = self.success_message
        try:
            self.client.complete_job(outcome.job_id, message=outcome.message)
        except Exception as e:
            logger.error(f"❌ Failed to mark job {outcome.job_id} complete: {e}")

    def _fail(self, outcome: JobOutcome) -> None:
        logger = logging.getLogger('flatfile.submit')
        self._advance(outcome, JobState.FAILED)
        outcome.message = self.failure_message
        try:
            self.client.fail_job(outcome.job_id, message=outcome.message)
        except Exception as e:
            logger.error(f"❌ Failed to mark job {outcome.job_id} failed: {e}")
