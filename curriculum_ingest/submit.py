"""
Submission of a finished PreviewBatch to the bulk-import endpoints.

    POST {base}/bulk-import/subjects   [ {code, name, credits, ...}, ... ]
    POST {base}/bulk-import/semesters  [ {regulationId, departmentId, number, ...}, ... ]

No retries, no batch splitting: one batch = one request. On failure the
caller still holds the same batch and may submit it again.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import requests

from curriculum_ingest.config import Settings
from curriculum_ingest.errors import EmptyBatch, MissingIds, SubmissionError
from curriculum_ingest.model import ImportType, PreviewBatch

logger = logging.getLogger(__name__)

ENDPOINTS = {
    ImportType.SUBJECTS: "/bulk-import/subjects",
    ImportType.SEMESTERS: "/bulk-import/semesters",
}


class Submitter(Protocol):
    def submit(self, batch: PreviewBatch) -> int:
        ...


def _imported_count(body: Any, sent: int) -> int:
    """
    Read the imported-row count from whatever the server answered.
    """
    if isinstance(body, bool):
        return sent
    if isinstance(body, int):
        return body
    if isinstance(body, list):
        return len(body)
    if isinstance(body, dict):
        for key in ("imported", "importedCount", "count"):
            value = body.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
    return sent


def _error_payload(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text or None


class ImportClient:
    """
    requests-based Submitter for the curriculum REST API.
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> None:
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        return headers

    def url_for(self, import_type: ImportType) -> str:
        return self.settings.api_base_url.rstrip("/") + ENDPOINTS[import_type]

    def submit(self, batch: PreviewBatch) -> int:
        """
        POST the batch and return the number of imported rows.
        """
        if batch.is_empty:
            raise EmptyBatch("Nothing to import: the preview batch is empty")
        missing = batch.rows_missing_ids()
        if missing:
            raise MissingIds(missing)

        url = self.url_for(batch.import_type)
        payload = batch.to_payload()
        logger.info("POST %s (%d %s)", url, len(payload), batch.import_type.value)

        try:
            resp = self.session.post(url, json=payload, headers=self._headers(), timeout=self.settings.timeout)
        except requests.RequestException as exc:
            logger.warning("Bulk import request failed: %s", exc)
            raise SubmissionError(f"Import failed: {exc}") from exc

        if not resp.ok:
            body = _error_payload(resp)
            logger.warning("Bulk import rejected with HTTP %s", resp.status_code)
            raise SubmissionError("Import failed", status_code=resp.status_code, payload=body)

        try:
            body = resp.json()
        except ValueError:
            body = None

        count = _imported_count(body, len(payload))
        logger.info("Imported %d %s", count, batch.import_type.value)
        return count
