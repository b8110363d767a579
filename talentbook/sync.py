"""
Sync engine for pushing local data to the server
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .clock import Clock, SystemClock
from .constants import SYNC_TIMEOUT_SECONDS
from .stores import LocalStore
from .transform import build_push_payload

logger = logging.getLogger(__name__)


class SyncState:
    """In-memory sync bookkeeping; Config offers the same attributes on disk"""

    def __init__(self):
        self.last_sync: Optional[str] = None
        self.sync_pending: bool = False


@dataclass
class SyncStatus:
    last_sync: Optional[str]
    pending: bool
    in_progress: bool


class SyncEngine:
    """
    Pushes a snapshot of every local collection to the server in one batch.

    `auth` is anything with get_session_token(). `http` defaults to a
    requests.Session; any object with a compatible post() works.
    """

    supports_pull = False

    def __init__(
        self,
        server_url: str,
        local: LocalStore,
        auth,
        state=None,
        http=None,
        timeout: float = SYNC_TIMEOUT_SECONDS,
        clock: Optional[Clock] = None,
    ):
        self.server_url = server_url.rstrip('/')
        self.local = local
        self.auth = auth
        self.state = state if state is not None else SyncState()
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self.clock = clock or SystemClock()
        self._push_lock = threading.Lock()

    def mark_pending(self, key: str = None):
        """on_change hook for LocalStore: remember that something needs pushing"""
        self.state.sync_pending = True

    def _snapshot(self) -> Dict[str, Any]:
        return build_push_payload(
            talents=self.local.talents.list(),
            projects=self.local.projects.list(),
            categories=self.local.categories.list(),
            bookings=self.local.bookings.list(),
            settings=self.local.settings.get(),
        )

    def push_all(self) -> bool:
        """
        Push all local data.

        Returns True when the server accepted the batch or there is nothing
        to authenticate with, False when the push failed or another push is
        already running.
        """
        token = self.auth.get_session_token()
        if not token:
            logger.info("Not logged in, skipping cloud sync")
            return True

        if not self._push_lock.acquire(blocking=False):
            logger.warning("Sync already in progress")
            return False

        try:
            payload = self._snapshot()
            counts = {k: len(v) for k, v in payload.items() if isinstance(v, list)}
            logger.info("Pushing to cloud: %s", counts)

            try:
                response = self.http.post(
                    f"{self.server_url}/sync/push",
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except requests.RequestException as e:
                logger.error("Cloud sync failed: %s", e)
                return False

            self.state.last_sync = self.clock.now().isoformat()
            self.state.sync_pending = False
            logger.info("Cloud sync completed")
            return True
        finally:
            self._push_lock.release()

    def pull_all(self) -> bool:
        """Pulling remote data into the local store is not supported yet"""
        logger.warning("Pull from cloud is not supported; local data left unchanged")
        return False

    def full_sync(self) -> Dict[str, bool]:
        """Push local changes, then pull"""
        pushed = self.push_all()
        pulled = self.pull_all() if self.supports_pull else False
        return {"pushed": pushed, "pulled": pulled}

    def status(self) -> SyncStatus:
        return SyncStatus(
            last_sync=self.state.last_sync,
            pending=bool(self.state.sync_pending),
            in_progress=self._push_lock.locked(),
        )

