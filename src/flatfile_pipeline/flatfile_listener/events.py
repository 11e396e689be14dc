# src/flatfile_pipeline/flatfile_listener/events.py

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from flatfile_pipeline.config.config import (
    JOB_SPACE_CONFIGURE,
    JOB_WORKBOOK_SUBMIT,
    TOPIC_COMMIT_CREATED,
    TOPIC_JOB_READY,
)
from .errors import InvalidEventError


class EventTopic(str, Enum):
    JOB_READY = TOPIC_JOB_READY
    COMMIT_CREATED = TOPIC_COMMIT_CREATED


class JobType(str, Enum):
    SPACE_CONFIGURE = JOB_SPACE_CONFIGURE
    WORKBOOK_SUBMIT_ACTION = JOB_WORKBOOK_SUBMIT


@dataclass(frozen=True)
class FlatfileEvent:
    """An inbound platform event: topic, routing context and payload."""
    topic: EventTopic
    context: Dict[str, Any] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def job_id(self) -> Optional[str]:
        return self.context.get("jobId")

    @property
    def workbook_id(self) -> Optional[str]:
        return self.context.get("workbookId")

    @property
    def sheet_id(self) -> Optional[str]:
        return self.context.get("sheetId")

    @property
    def sheet_slug(self) -> Optional[str]:
        return self.context.get("sheetSlug")

    @property
    def job_type(self) -> Optional[str]:
        """Job type string such as ``workbook:submitAction``."""
        job = self.payload.get("job")
        if job:
            return job
        domain, operation = self.payload.get("domain"), self.payload.get("operation")
        if domain and operation:
            return f"{domain}:{operation}"
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FlatfileEvent":
        """
        Parse an event body.

        Raises:
            InvalidEventError: missing or unknown topic, or non-dict context/payload
        """
        if not isinstance(data, Mapping):
            raise InvalidEventError("Event body must be a JSON object")

        topic = data.get("topic")
        try:
            topic = EventTopic(topic)
        except ValueError:
            raise InvalidEventError(f"Unsupported event topic: {topic!r}")

        context = data.get("context") or {}
        payload = data.get("payload") or {}
        if not isinstance(context, Mapping) or not isinstance(payload, Mapping):
            raise InvalidEventError("Event context and payload must be JSON objects")

        return cls(topic=topic, context=dict(context), payload=dict(payload))


Handler = Callable[[FlatfileEvent], Any]


@dataclass(frozen=True)
class Registration:
    topic: EventTopic
    handler: Handler
    job: Optional[str] = None
    sheet: Optional[str] = None

    def matches(self, event: FlatfileEvent) -> bool:
        if event.topic != self.topic:
            return False
        if self.job is not None and event.job_type != self.job:
            return False
        if self.sheet is not None and event.sheet_slug != self.sheet:
            return False
        return True


class EventDispatcher:
    """
    Explicit handler registry.

    Handlers are registered for a topic with optional ``job`` / ``sheet``
    filters and are called in registration order, one at a time.
    """

    def __init__(self):
        self.registrations: List[Registration] = []

    def on(self, topic: EventTopic, handler: Handler, job: Optional[str] = None,
           sheet: Optional[str] = None) -> None:
        topic = EventTopic(topic)
        job = job.value if isinstance(job, JobType) else job
        self.registrations.append(Registration(topic, handler, job=job, sheet=sheet))
        logging.getLogger('flatfile.events').debug(
            f"Registered {getattr(handler, '__name__', handler)} for {topic.value} (job={job}, sheet={sheet})"
        )

    def dispatch(self, event: FlatfileEvent) -> List[Any]:
        """Run every matching handler and return their results. Handler errors propagate."""
        logger = logging.getLogger('flatfile.events')
        matched = [r for r in self.registrations if r.matches(event)]

        if not matched:
            logger.info(f"ℹ️ No handler for {event.topic.value} (job={event.job_type}, sheet={event.sheet_slug})")
            return []

        results = []
        for registration in matched:
            logger.info(f"📥 Dispatching {event.topic.value} to {getattr(registration.handler, '__name__', 'handler')}")
            results.append(registration.handler(event))
        return results
