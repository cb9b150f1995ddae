"""Change feed for the realtime tables (notes, calendar_notes).

Writers publish INSERT/UPDATE/DELETE events after a write succeeds; every
open SSE stream holds its own asyncio queue on the server's event loop.
Writes run in worker threads, so delivery is handed to the listener's loop
with `call_soon_threadsafe`. Clients patch their copy of the list with
`apply_change`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from fastapi.encoders import jsonable_encoder

logger = logging.getLogger("portfolio.realtime")

REALTIME_TABLES = ("notes", "calendar_notes")


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeFeed:
    """Publish/subscribe helper, one listener set per table."""

    def __init__(self, maxsize: int = 100) -> None:
        self._listeners: Dict[str, Dict[asyncio.Queue, asyncio.AbstractEventLoop]] = {
            t: {} for t in REALTIME_TABLES
        }
        self._lock = threading.Lock()
        self._maxsize = maxsize

    def listen(self, table: str) -> asyncio.Queue:
        """Subscribe from inside a running event loop."""
        if table not in self._listeners:
            raise KeyError(table)
        loop = asyncio.get_running_loop()
        q: asyncio.Queue = asyncio.Queue(maxsize=self._maxsize)
        with self._lock:
            self._listeners[table][q] = loop
        return q

    def remove(self, table: str, q: asyncio.Queue) -> None:
        with self._lock:
            self._listeners.get(table, {}).pop(q, None)

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._listeners.get(table, ()))

    def publish(
        self,
        table: str,
        event_type: ChangeType,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = {
            "table": table,
            "eventType": ChangeType(event_type).value,
            "new": jsonable_encoder(new or {}),
            "old": jsonable_encoder(old or {}),
            "ts": time.time(),
        }
        with self._lock:
            listeners = list(self._listeners.get(table, {}).items())
        for q, loop in listeners:
            try:
                loop.call_soon_threadsafe(_deliver, q, message)
            except RuntimeError:
                # loop already closed
                self.remove(table, q)


def _deliver(q: asyncio.Queue, message: Dict[str, Any]) -> None:
    try:
        q.put_nowait(message)
    except asyncio.QueueFull:
        logger.debug("Dropping %s event for a slow subscriber", message["eventType"])


change_feed = ChangeFeed()


async def event_stream(
    feed: ChangeFeed,
    table: str,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive: float = 15,
) -> AsyncIterator[str]:
    """SSE frames for one subscriber; unsubscribes when the client goes away."""
    q = feed.listen(table)
    try:
        while not await is_disconnected():
            try:
                message = await asyncio.wait_for(q.get(), keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield format_sse(message)
    finally:
        feed.remove(table, q)


def apply_change(rows: List[Dict[str, Any]], event: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return `rows` with one change event applied.

    INSERT prepends the new row, DELETE drops the row whose id matches
    `old`, UPDATE swaps in the new row by id. Anything else leaves the list
    as it was. The input list is never modified.
    """
    kind = event.get("eventType")
    if kind == ChangeType.INSERT:
        return [event["new"], *rows]
    if kind == ChangeType.DELETE:
        gone = (event.get("old") or {}).get("id")
        return [r for r in rows if r.get("id") != gone]
    if kind == ChangeType.UPDATE:
        new = event["new"]
        return [new if r.get("id") == new.get("id") else r for r in rows]
    return list(rows)


def format_sse(message: Dict[str, Any]) -> str:
    event_type = message.get("eventType", "message")
    return f"event: {event_type}\ndata: {json.dumps(message)}\n\n"
