# src/main.py

import logging
from flask import Request

from flatfile_pipeline.flatfile_listener import listener_main


def main(request: Request):
    """
    Cloud Function entry point: one Flatfile event per HTTP request.

    Args:
        request: Flask Request object whose JSON body is the event

    Returns:
        tuple: (response_data, status_code)
    """
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger('flatfile.cloudfunction')

    logger.info("🌐 Flatfile event HTTP trigger received")

    try:
        data = request.get_json(silent=True) or {}
        logger.info(f"📦 Parsed request data keys: {list(data.keys())}")
    except Exception as e:
        logger.warning(f"⚠️ Failed to parse JSON body: {e}")
        data = {}

    try:
        return listener_main(event=data)
    except Exception as e:
        logger.error(f"❌ Event handling failed: {e}", exc_info=True)
        return {"status": "error", "error": str(e)}, 500
