# src/flatfile_pipeline/flatfile_listener/main.py

import logging
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Optional

from .config_loader import init_env, load_blueprint
from .client import FlatfileClient, get_client
from .errors import InvalidEventError
from .events import EventDispatcher, EventTopic, FlatfileEvent, JobType
from .processor import process_raw_records
from .records import SheetSchema
from .submit import SubmitJobController, WorkbookLocks

# Shared by every controller in this process so submits for one workbook never overlap
WORKBOOK_LOCKS = WorkbookLocks()


def handle_commit(event: FlatfileEvent, client: FlatfileClient, schema: SheetSchema) -> Dict[str, Any]:
    """
    Record hook: run the sheet's rules over its records and write the
    corrected values and error messages back.

    Only records that actually changed are written; every write creates a
    new commit, which fires this hook again.
    """
    logger = logging.getLogger('flatfile.process')
    sheet_id = event.sheet_id
    logger.info(f"🔄 Processing records for sheet {schema.slug} ({sheet_id})")

    payload = client.get_records(sheet_id)
    raw_records = payload.get("records", [])
    records = process_raw_records(raw_records, schema)
    changed = [record for raw, record in zip(raw_records, records) if record.differs_from(raw)]

    if changed:
        client.update_records(sheet_id, [record.to_api() for record in changed])
        logger.info(f"✅ Wrote back {len(changed)} of {len(records)} records to sheet {schema.slug}")
    else:
        logger.info(f"ℹ️ No record changes for sheet {schema.slug}")

    return {
        "sheet_id": sheet_id,
        "sheet": schema.slug,
        "processed": len(records),
        "invalid": sum(1 for r in records if not r.is_valid),
        "updated": len(changed),
    }


def build_listener(config: Dict[str, Any], client: Optional[FlatfileClient] = None,
                   sheets: Optional[List[SheetSchema]] = None) -> EventDispatcher:
    """
    Register the record hooks and the submit action handler.

    Args:
        config: Dictionary from get_config()/validate_config()
        client: Flatfile client (created from config when omitted)
        sheets: Sheet schemas (loaded from the blueprint when omitted)
    """
    client = client or get_client(config)
    sheets = sheets if sheets is not None else load_blueprint()

    dispatcher = EventDispatcher()

    for schema in sheets:
        if schema.rules:
            dispatcher.on(EventTopic.COMMIT_CREATED, partial(handle_commit, client=client, schema=schema),
                          sheet=schema.slug)

    controller = SubmitJobController(
        client,
        webhook_url=config['WEBHOOK_URL'],
        timeout=config.get('HTTP_TIMEOUT_SECONDS', 30),
        locks=WORKBOOK_LOCKS,
    )
    dispatcher.on(EventTopic.JOB_READY, controller.run, job=JobType.WORKBOOK_SUBMIT_ACTION)

    return dispatcher


def _render(result: Any) -> Any:
    return result.to_dict() if hasattr(result, "to_dict") else result


def main(event=None, context=None):
    """
    Main entry point for one Flatfile event.

    Args:
        event: Event body (dict) with ``topic``, ``context`` and ``payload``;
            an optional ``log_level`` overrides the log level for this run
        context: Cloud Function context (unused)

    Returns:
        tuple: (body, status_code)
    """
    if not isinstance(event, dict):
        event = {}

    try:
        loggers, config = init_env(log_level=event.get('log_level'))
        logger = loggers['events']
    except Exception as e:
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Failed to initialize environment: {e}")
        return {"status": "error", "error": f"Configuration error: {e}"}, 500

    try:
        flatfile_event = FlatfileEvent.from_dict(event)
    except InvalidEventError as e:
        logger.warning(f"⚠️ Rejected event: {e}")
        return {"status": "error", "error": str(e)}, 400

    logger.info(f"🚀 Received {flatfile_event.topic.value} (job={flatfile_event.job_type})")
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Event context: {flatfile_event.context}")

    start_time = datetime.utcnow()
    try:
        dispatcher = build_listener(config)
        results = dispatcher.dispatch(flatfile_event)
    except Exception as e:
        total_time = (datetime.utcnow() - start_time).total_seconds()
        logger.error(f"❌ Event handling failed after {total_time:.2f}s: {e}", exc_info=True)
        return {"status": "error", "topic": flatfile_event.topic.value, "error": str(e)}, 500

    total_time = (datetime.utcnow() - start_time).total_seconds()
    logger.info(f"🎉 Handled {flatfile_event.topic.value} with {len(results)} handler(s) in {total_time:.2f}s")

    return {
        "status": "success" if results else "ignored",
        "topic": flatfile_event.topic.value,
        "results": [_render(r) for r in results],
        "processing_time_seconds": total_time,
    }, 200
