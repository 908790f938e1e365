"""Per-conversation thought signature storage (Gemini 3).

Gemini 3 emits an opaque ``thoughtSignature`` alongside function calls in
streamed output and rejects the follow-up request unless the signature is
attached to the first ``functionCall`` of that model turn. The streaming
side records the latest signature per conversation with
:meth:`SignatureStore.put`; the request mapper reads it back with
:meth:`SignatureStore.get`.

Entries are keyed by session id so concurrent conversations never see each
other's signatures. Thread-safe via threading.Lock.
"""

import logging
import threading
import time
from typing import Dict, Optional, Tuple

from gemini_bridge.mapper.constants import (
    SIGNATURE_CACHE_MAX_ENTRIES,
    SIGNATURE_CACHE_TTL_SECONDS,
)

logger = logging.getLogger(__name__)


class SignatureStore:
    """Latest thought signature per conversation, with TTL and size bound."""

    def __init__(
        self,
        ttl_seconds: float = SIGNATURE_CACHE_TTL_SECONDS,
        max_entries: int = SIGNATURE_CACHE_MAX_ENTRIES,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        # session_id -> (signature, timestamp)
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def put(self, session_id: str, signature: str) -> None:
        """Record the most recent signature seen for a conversation.

        Empty session ids and empty/non-string signatures are ignored.
        """
        if not session_id or not signature or not isinstance(signature, str):
            return

        now = time.time()
        with self._lock:
            self._entries[session_id] = (signature, now)
            self._cleanup_unlocked(now)

    def get(self, session_id: Optional[str]) -> Optional[str]:
        """Return the stored signature for a conversation, or None if absent/expired."""
        if not session_id:
            return None

        now = time.time()
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            signature, timestamp = entry
            if now - timestamp >= self.ttl_seconds:
                del self._entries[session_id]
                return None
            return signature

    def clear(self) -> None:
        """Drop every stored signature. Useful for testing."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _cleanup_unlocked(self, now: float) -> None:
        """Remove expired entries and enforce the size limit.

        MUST be called while holding self._lock.
        """
        expired = [
            key for key, (_, ts) in self._entries.items() if now - ts >= self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]

        # Oldest first
        if len(self._entries) > self.max_entries:
            sorted_entries = sorted(self._entries.items(), key=lambda x: x[1][1])
            overflow = len(self._entries) - self.max_entries
            for key, _ in sorted_entries[:overflow]:
                del self._entries[key]
            logger.debug("Evicted %d thought signatures over the size limit", overflow)


_default_store: Optional[SignatureStore] = None
_default_store_lock = threading.Lock()


def get_signature_store() -> SignatureStore:
    """Return the process-wide store, created from configuration on first use."""
    global _default_store

    with _default_store_lock:
        if _default_store is None:
            from gemini_bridge.config import get_config

            mapper_config = get_config().mapper
            _default_store = SignatureStore(
                ttl_seconds=mapper_config.signature_ttl_seconds,
                max_entries=mapper_config.max_signature_entries,
            )
        return _default_store


def reset_signature_store() -> None:
    """Forget the process-wide store (tests, config reload)."""
    global _default_store

    with _default_store_lock:
        _default_store = None
