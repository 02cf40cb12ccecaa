# scorer_api/sync_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from scorer_api.config import (
    SYNC_API_KEY,
    SYNC_ENABLED,
    SYNC_TIMEOUT_SECONDS,
    SYNC_URL,
)

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised when pushing a snapshot to the remote store fails or is misconfigured."""
    pass


class SnapshotPublisher:
    """
    Pushes full tournament snapshots to a remote HTTP endpoint.

    IMPORTANT:
    - Remote sync is optional; the scorer works fully offline.
    - publish() raises SyncError; callers treat it as fire-and-forget.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        enabled: Optional[bool] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = SYNC_URL if url is None else url
        self.api_key = SYNC_API_KEY if api_key is None else api_key
        self.enabled = SYNC_ENABLED if enabled is None else enabled
        self.timeout = SYNC_TIMEOUT_SECONDS if timeout is None else timeout
        self._http = session or requests.Session()

    def publish(self, snapshot: Dict[str, Any], events: Optional[list] = None) -> bool:
        """
        Returns False when sync is disabled, True once the remote accepted the snapshot.
        """
        if not self.enabled:
            return False

        if not self.url.startswith("http"):
            raise SyncError("SYNC_URL must start with http/https")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = {"snapshot": snapshot, "events": events or []}
        try:
            resp = self._http.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise SyncError(f"Network error: {e}") from e

        if resp.status_code >= 300:
            raise SyncError(f"HTTP {resp.status_code}: {resp.text}")

        logger.debug("Snapshot published (%d events)", len(payload["events"]))
        return True
