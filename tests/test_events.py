# tests/test_events.py

import pytest

from flatfile_pipeline.flatfile_listener.errors import InvalidEventError
from flatfile_pipeline.flatfile_listener.events import (
    EventDispatcher,
    EventTopic,
    FlatfileEvent,
    JobType,
)


def job_event(job):
    return FlatfileEvent.from_dict({
        "topic": "job:ready",
        "context": {"jobId": "us_jb_1", "workbookId": "us_wb_1"},
        "payload": {"job": job},
    })


def test_from_dict_parses_context():
    event = FlatfileEvent.from_dict({
        "topic": "commit:created",
        "context": {"sheetId": "us_sh_1", "sheetSlug": "contacts", "environmentId": "us_env_1"},
    })
    assert event.topic == EventTopic.COMMIT_CREATED
    assert event.sheet_id == "us_sh_1"
    assert event.sheet_slug == "contacts"
    assert event.payload == {}


@pytest.mark.parametrize("body", [
    {},
    {"topic": "file:created"},
    {"topic": "job:ready", "context": ["not", "a", "dict"]},
    ["job:ready"],
])
def test_from_dict_rejects_bad_events(body):
    with pytest.raises(InvalidEventError):
        FlatfileEvent.from_dict(body)


def test_job_type_from_domain_and_operation():
    event = FlatfileEvent(topic=EventTopic.JOB_READY, payload={"domain": "workbook", "operation": "submitAction"})
    assert event.job_type == "workbook:submitAction"


def test_dispatch_filters_by_job_type():
    seen = []
    dispatcher = EventDispatcher()
    dispatcher.on(EventTopic.JOB_READY, lambda e: seen.append(e.job_type) or "submitted",
                  job=JobType.WORKBOOK_SUBMIT_ACTION)

    assert dispatcher.dispatch(job_event("workbook:submitAction")) == ["submitted"]
    assert dispatcher.dispatch(job_event("space:configure")) == []
    assert seen == ["workbook:submitAction"]


def test_dispatch_filters_by_sheet_slug():
    dispatcher = EventDispatcher()
    dispatcher.on("commit:created", lambda e: e.sheet_id, sheet="contacts")

    contacts = FlatfileEvent(EventTopic.COMMIT_CREATED, context={"sheetId": "s1", "sheetSlug": "contacts"})
    other = FlatfileEvent(EventTopic.COMMIT_CREATED, context={"sheetId": "s2", "sheetSlug": "companies"})

    assert dispatcher.dispatch(contacts) == ["s1"]
    assert dispatcher.dispatch(other) == []


def test_handlers_run_in_registration_order():
    order = []
    dispatcher = EventDispatcher()
    dispatcher.on(EventTopic.JOB_READY, lambda e: order.append("first"))
    dispatcher.on(EventTopic.JOB_READY, lambda e: order.append("second"))

    dispatcher.dispatch(job_event("workbook:submitAction"))

    assert order == ["first", "second"]


def test_handler_errors_propagate():
    def broken(event):
        raise RuntimeError("handler failed")

    dispatcher = EventDispatcher()
    dispatcher.on(EventTopic.JOB_READY, broken)

    with pytest.raises(RuntimeError):
        dispatcher.dispatch(job_event("workbook:submitAction"))
