import threading
from typing import Dict

from territory.claim_session import TerritoryClaimSession
from territory.config import ClaimSettings, get_settings


class ClaimRegistry:
    """One claim session per device, created on demand."""

    def __init__(self, settings: ClaimSettings | None = None):
        self.settings = settings or get_settings()
        self._sessions: Dict[str, TerritoryClaimSession] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get_or_create(self, device_id: str) -> TerritoryClaimSession:
        with self._guard:
            session = self._sessions.get(device_id)
            if session is None:
                session = TerritoryClaimSession(self.settings)
                self._sessions[device_id] = session
                self._locks[device_id] = threading.Lock()
            return session

    def get(self, device_id: str) -> TerritoryClaimSession | None:
        with self._guard:
            return self._sessions.get(device_id)

    def lock_for(self, device_id: str) -> threading.Lock:
        self.get_or_create(device_id)
        with self._guard:
            return self._locks[device_id]

    def discard(self, device_id: str):
        """Forget a finished session; the next begin starts from a fresh one."""
        with self._guard:
            self._sessions.pop(device_id, None)
            self._locks.pop(device_id, None)

    def clear(self):
        with self._guard:
            self._sessions.clear()
            self._locks.clear()


# Shared registry, one per process
claims = ClaimRegistry(ClaimSettings.from_env())
