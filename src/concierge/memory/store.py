"""
Pending Disambiguation Store

Keeps the open clarification question for each session between turns.
All persistence goes through the PendingStore abstraction; values are held
as JSON so every save exercises the same encode/decode path a shared store
would.
"""
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from ..disambiguation.models import PendingDisambiguation
from ..errors import PendingIntegrityError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


class PendingStore(ABC):
    """
    Abstract base class for pending-state storage.

    Implementations must provide:
    - get(session_id) -> PendingDisambiguation | None
    - set(session_id, pending, ttl) -> None
    - clear(session_id) -> None
    """

    @abstractmethod
    def get(self, session_id: str) -> Optional[PendingDisambiguation]:
        """
        Retrieve the open question for a session.

        Returns:
            PendingDisambiguation or None if nothing is pending
        """
        pass

    @abstractmethod
    def set(self, session_id: str, pending: PendingDisambiguation,
            ttl: int = DEFAULT_TTL_SECONDS) -> None:
        """
        Store the open question for a session.

        Args:
            session_id: Session identifier
            pending: State to store
            ttl: Time-to-live in seconds (default: 3600 = 1 hour)
        """
        pass

    @abstractmethod
    def clear(self, session_id: str) -> None:
        """Forget the open question for a session."""
        pass


class InMemoryPendingStore(PendingStore):
    """
    Process-local store.

    Key format: concierge:pending:{session_id}
    Value: JSON-serialized PendingDisambiguation with an expiry instant
    """

    def __init__(self, monotonic: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()
        self._monotonic = monotonic

    def _make_key(self, session_id: str) -> str:
        return f"concierge:pending:{session_id}"

    def get(self, session_id: str) -> Optional[PendingDisambiguation]:
        key = self._make_key(session_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._monotonic() >= expires_at:
                del self._entries[key]
                return None

        try:
            return PendingDisambiguation.from_dict(json.loads(value))
        except (ValueError, PendingIntegrityError) as e:
            logger.error(
                "Discarding unreadable pending state",
                extra={"session_id": session_id, "error_message": str(e)},
            )
            self.clear(session_id)
            return None

    def set(self, session_id: str, pending: PendingDisambiguation,
            ttl: int = DEFAULT_TTL_SECONDS) -> None:
        value = json.dumps(pending.to_dict(), ensure_ascii=False)
        with self._lock:
            self._purge_expired()
            self._entries[self._make_key(session_id)] = (self._monotonic() + ttl, value)

    def _purge_expired(self) -> None:
        # Caller holds the lock
        now = self._monotonic()
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._entries.pop(self._make_key(session_id), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
