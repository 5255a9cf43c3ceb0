"""
Unread alert feed for a client UI: polling, badge text and optimistic acknowledgement.

The sync ApiClient runs in the default executor so the event loop never
blocks on HTTP. Failures are logged and reported through `on_error`
(a toast hook); the previous list is kept.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from app.client.api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0
FEED_LIMIT = 50
BADGE_CAP = 99


class AlertFeed:
    def __init__(
        self,
        api: ApiClient,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_error: Optional[Callable[[str], Any]] = None,
        limit: int = FEED_LIMIT,
    ):
        self.api = api
        self.poll_interval = poll_interval
        self.on_error = on_error
        self.limit = limit

        self.alerts: List[Dict[str, Any]] = []
        self.unread_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def badge_text(self) -> str:
        if self.unread_count <= 0:
            return ""
        if self.unread_count > BADGE_CAP:
            return f"{BADGE_CAP}+"
        return str(self.unread_count)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _call(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))

    def _report(self, action: str, error: Exception) -> None:
        message = f"Failed to {action}: {error}"
        logger.error(f"[AlertFeed] {message}")
        if self.on_error:
            self.on_error(message)

    async def refresh(self) -> bool:
        """Fetch unread alerts and the unread total. Returns False on failure."""
        try:
            data = await self._call(self.api.alerts.list, is_read=False, limit=self.limit)
        except (ApiError, requests.RequestException) as e:
            self._report("load alerts", e)
            return False

        self.alerts = list(data.get("alerts", []))
        pagination = data.get("pagination") or {}
        self.unread_count = pagination.get("total", len(self.alerts))
        return True

    async def _poll_loop(self):
        while True:
            await self.refresh()
            await asyncio.sleep(self.poll_interval)

    def start(self) -> asyncio.Task:
        """Refresh now, then every `poll_interval` seconds. Needs a running loop."""
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._poll_loop())
        logger.info(f"[AlertFeed] Polling every {self.poll_interval}s")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[AlertFeed] Stopped")

    async def mark_read(self, alert_id: int) -> bool:
        """
        Remove the alert locally, then tell the server.

        On failure the alert goes back at its old position and the count is restored.
        """
        index = next((i for i, a in enumerate(self.alerts) if a.get("id") == alert_id), None)
        removed = self.alerts.pop(index) if index is not None else None
        if removed is not None:
            self.unread_count = max(self.unread_count - 1, 0)

        try:
            await self._call(self.api.alerts.mark_read, alert_id)
        except (ApiError, requests.RequestException) as e:
            if removed is not None:
                # a refresh may have brought it back already
                if not any(a.get("id") == alert_id for a in self.alerts):
                    self.alerts.insert(min(index, len(self.alerts)), removed)
                    self.unread_count += 1
            self._report("mark alert as read", e)
            return False
        return True

    async def mark_all_read(self) -> bool:
        previous_alerts, previous_count = list(self.alerts), self.unread_count
        self.alerts = []
        self.unread_count = 0

        try:
            await self._call(self.api.alerts.mark_all_read)
        except (ApiError, requests.RequestException) as e:
            self.alerts, self.unread_count = previous_alerts, previous_count
            self._report("mark all alerts as read", e)
            return False
        return True
