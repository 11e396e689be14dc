# src/flatfile_pipeline/flatfile_listener/client.py

import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import ConfigurationError, PlatformAPIError


class FlatfileClient:
    """
    Thin REST client for the Flatfile jobs, sheets and records endpoints.

    Every call is a single blocking request; there is no retry.
    """

    def __init__(self, api_key: str, base_url: str, timeout: float = 30):
        if not api_key:
            raise ConfigurationError("FLATFILE_API_KEY is required to create a Flatfile client")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                 json: Any = None) -> Any:
        logger = logging.getLogger('flatfile.client')
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url} params={params}")

        try:
            response = requests.request(method, url, headers=self.headers, params=params,
                                        json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ Flatfile {method} {path} failed: {e}")
            raise PlatformAPIError(f"Flatfile API request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"❌ Flatfile {method} {path} error: {response.status_code} - {response.text}")
            raise PlatformAPIError(
                f"Flatfile API {method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json().get("data")

    # ─── Jobs ────────────────────────────────────────────────────────────────────

    def ack_job(self, job_id: str, info: str, progress: int) -> None:
        self._request("POST", f"/jobs/{job_id}/ack", json={"info": info, "progress": progress})

    def complete_job(self, job_id: str, message: str) -> None:
        self._request("POST", f"/jobs/{job_id}/complete", json={"outcome": {"message": message}})

    def fail_job(self, job_id: str, message: str) -> None:
        self._request("POST", f"/jobs/{job_id}/fail", json={"outcome": {"message": message}})

    # ─── Sheets & Records ────────────────────────────────────────────────────────

    def list_sheets(self, workbook_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/sheets", params={"workbookId": workbook_id}) or []

    def get_records(self, sheet_id: str) -> Dict[str, Any]:
        """Return the records payload for a sheet (``{"records": [...], ...}``)."""
        return self._request("GET", f"/sheets/{sheet_id}/records") or {"records": []}

    def update_records(self, sheet_id: str, records: List[Dict[str, Any]]) -> Any:
        return self._request("PUT", f"/sheets/{sheet_id}/records", json=records)


def get_client(config: Dict[str, Any]) -> FlatfileClient:
    """Create a client from a get_config() dictionary."""
    logger = logging.getLogger('flatfile.client')
    logger.debug("Creating Flatfile client")
    return FlatfileClient(
        api_key=config.get('FLATFILE_API_KEY'),
        base_url=config['FLATFILE_API_BASE_URL'],
        timeout=config.get('HTTP_TIMEOUT_SECONDS', 30),
    )
