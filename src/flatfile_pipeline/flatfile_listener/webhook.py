# src/flatfile_pipeline/flatfile_listener/webhook.py

import logging
from typing import Any, Dict

import requests

from .errors import DeliveryError, Non200ResponseError


def deliver(url: str, body: Dict[str, Any], timeout: float = 30) -> requests.Response:
    """
    POST the submission body to the webhook exactly once.

    Only HTTP 200 counts as success.

    Raises:
        DeliveryError: the request could not be sent
        Non200ResponseError: the webhook answered with any other status
    """
    logger = logging.getLogger('flatfile.webhook')
    logger.info(f"📤 Delivering submission to {url}")

    try:
        response = requests.post(
            url,
            headers={"Content-Type": "application/json"},
            json=body,
            timeout=timeout,
        )
    except (requests.RequestException, TypeError, ValueError) as e:
        logger.error(f"❌ Webhook request to {url} failed: {e}")
        raise DeliveryError(f"Failed to submit data to {url}: {e}") from e

    if response.status_code != 200:
        logger.error(f"❌ Webhook {url} responded {response.status_code} - {response.text}")
        raise Non200ResponseError(response.status_code, response.text)

    logger.info(f"✅ Webhook accepted submission ({response.status_code})")
    return response
