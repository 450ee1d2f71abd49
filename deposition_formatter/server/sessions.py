"""In-memory session store for interactive pipeline runs.

WHY: The step-by-step API lets a user upload a transcript once and then
walk it through the six stages over many requests, going back and forth
as needed. Each upload therefore needs a server-side TranscriptPipeline
that survives between requests. An in-memory store is sufficient for a
single-office tool with no persistence requirements.

HOW: Session wraps one TranscriptPipeline plus timestamps. SessionStore is
a thread-safe dict keyed by session ID with a capacity limit and
idle-based TTL expiry, run periodically by the app's lifespan task.

RULES:
- All store mutations are protected by threading.Lock
- Session IDs are UUID4 hex strings generated at creation time
- TTL is measured from last access (touch), not creation
- create() raises ValueError when the store is full
- get() returns None for unknown IDs and bumps last_accessed otherwise
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from deposition_formatter.config import MAX_SESSIONS, SESSION_TTL_SECONDS
from deposition_formatter.core.models import ProcessingOptions
from deposition_formatter.core.pipeline import TranscriptPipeline

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One uploaded transcript and its pipeline state.

    Attributes:
        id: UUID4 hex string, immutable after creation.
        pipeline: The live TranscriptPipeline for this upload.
        created_at: Epoch timestamp of the upload.
        last_accessed: Epoch timestamp of the most recent request.
        lock: Serializes requests against the same pipeline.
    """

    id: str
    pipeline: TranscriptPipeline
    created_at: float
    last_accessed: float
    lock: threading.Lock

    @property
    def filename(self) -> str:
        return self.pipeline.source_filename


class SessionStore:
    """Thread-safe in-memory store of pipeline sessions."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(
        self,
        text: str,
        filename: str,
        options: Optional[ProcessingOptions] = None,
    ) -> Session:
        """Start a new pipeline over ``text``.

        Raises:
            ValueError: If max_sessions sessions already exist.
        """
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of concurrent sessions ({}) reached".format(
                        self.max_sessions
                    )
                )

            now = time.time()
            session = Session(
                id=uuid.uuid4().hex,
                pipeline=TranscriptPipeline(text, options=options, source_filename=filename),
                created_at=now,
                last_accessed=now,
                lock=threading.Lock(),
            )
            self._sessions[session.id] = session

        logger.info("Created session %s for file %s (%d chars)", session.id, filename, len(text))
        return session

    def get(self, session_id: str) -> Optional[Session]:
        """Return the live session, or None if unknown or expired."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_accessed = time.time()
            return session

    def list_sessions(self) -> List[Session]:
        """Snapshot of all sessions, oldest first."""
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Deleted session %s", session_id)
        return True

    def cleanup_expired(self) -> int:
        """Drop sessions idle for longer than the TTL; return how many."""
        now = time.time()
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items()
                if now - s.last_accessed > self._ttl_seconds
            ]
            for sid in expired:
                del self._sessions[sid]

        for sid in expired:
            logger.info("Expired session %s", sid)
        return len(expired)
