"""Live network sessions: session id -> owning transport binding.

The only state shared across concurrent requests. All access goes through
one lock; each operation is a constant-time dict access, so contention is cheap.
A session leaves the registry only when its binding's close callback fires
(or through an explicit, idempotent remove()).
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from crawlmcp.infra.errors import SessionNotFoundError

if TYPE_CHECKING:
    from crawlmcp.transport.base import Transport

logger = structlog.get_logger()


@dataclass(frozen=True)
class Session:
    id: str
    binding: Transport
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def register(self, binding: Transport) -> str:
        """Store the binding under a fresh id and wire its closure to deregistration."""
        with self._lock:
            session_id = uuid.uuid4().hex
            while session_id in self._sessions:
                session_id = uuid.uuid4().hex
            self._sessions[session_id] = Session(id=session_id, binding=binding)
            size = len(self._sessions)

        binding.session_id = session_id
        # Outside the lock: an already-closed binding fires this immediately.
        binding.on_close(lambda: self._on_binding_closed(session_id))
        logger.info("session_registered", session_id=session_id, transport=binding.kind, live=size)
        return session_id

    def lookup(self, session_id: str) -> Transport:
        """Return the binding for a live session. Raises SessionNotFoundError."""
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session.binding

    def remove(self, session_id: str) -> bool:
        """Drop a session. Returns False if it was already gone; never raises."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            size = len(self._sessions)
        if session is None:
            return False
        logger.info("session_removed", session_id=session_id, live=size)
        return True

    def _on_binding_closed(self, session_id: str) -> None:
        logger.info("session_transport_closed", session_id=session_id)
        self.remove(session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
