"""Event-stream sessions — one per connected front end.

A session is created when a client opens ``GET /sse`` and removed as soon as
the stream ends. Everything runs on the server's event loop, so the mapping
needs no lock.
"""
import asyncio
import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from .errors import NotFoundError

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"


class SessionTransport:
    """Push channel plus the chat history it backs."""

    def __init__(self, endpoint: str = MESSAGES_PATH):
        self.session_id = uuid.uuid4().hex
        self.endpoint = f"{endpoint}?sessionId={self.session_id}"
        self.queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue()
        self.history: List[dict] = []
        # One chat turn at a time per session
        self.turn_lock = asyncio.Lock()
        self.closed = False

    async def send(self, data: Any, event: str = "message"):
        if self.closed:
            raise NotFoundError(f"Session {self.session_id} is closed")
        await self.queue.put((event, data))


class SessionManager:
    def __init__(self):
        self._sessions: Dict[str, SessionTransport] = {}

    def connect(self, endpoint: str = MESSAGES_PATH) -> SessionTransport:
        transport = SessionTransport(endpoint)
        self._sessions[transport.session_id] = transport
        logger.info(f"[{transport.session_id}] Session opened ({len(self._sessions)} active)")
        return transport

    def disconnect(self, session_id: str):
        transport = self._sessions.pop(session_id, None)
        if transport:
            transport.closed = True
            logger.info(f"[{session_id}] Session closed ({len(self._sessions)} active)")

    def get(self, session_id: Optional[str]) -> SessionTransport:
        transport = self._sessions.get(session_id or "")
        if not transport or transport.closed:
            raise NotFoundError("No transport found for sessionId")
        return transport

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def clear(self):
        for session_id in list(self._sessions):
            self.disconnect(session_id)


sessions = SessionManager()


def format_event(event: str, data: Any) -> str:
    if not isinstance(data, str):
        data = json.dumps(data, ensure_ascii=False)
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


async def event_stream(
    transport: SessionTransport,
    request=None,
    manager: Optional[SessionManager] = None,
    keepalive: float = 15.0,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``transport`` until the client goes away."""
    manager = manager if manager is not None else sessions
    try:
        yield format_event("endpoint", transport.endpoint)
        while True:
            if request is not None and await request.is_disconnected():
                break
            try:
                event, data = await asyncio.wait_for(transport.queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield format_event(event, data)
    finally:
        manager.disconnect(transport.session_id)
