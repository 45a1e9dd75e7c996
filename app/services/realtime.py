"""
Realtime feeds: Firestore snapshot listeners bridged onto asyncio.

Snapshot callbacks run on the client's background thread (or, for the
LocalStore, on the writer's thread). Each callback serialises the current
result set and hands it to the event loop with ``call_soon_threadsafe``;
the WebSocket handler awaits the queue and pushes every snapshot to the
client until it disconnects, at which point the listener is unsubscribed.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from app.crud.base import snapshot_to_dict
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Snapshots are dropped for slow consumers once this many are queued.
MAX_PENDING = 100


def to_json(value: Any) -> Any:
    """Make a document JSON-safe (timestamps become ISO strings)."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_json(v) for v in value]
    return value


class SnapshotFeed:
    """
    One listener feeding one consumer.

    Args:
        query: Anything with ``on_snapshot`` (query, collection or document ref)
        transform: Optional post-processing of the list of documents
    """

    def __init__(self, query, transform: Optional[Callable[[List[Dict[str, Any]]], Any]] = None):
        self.query = query
        self.transform = transform
        self.queue: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=MAX_PENDING)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._watch = None

    def _put(self, payload: Any) -> None:
        if self.queue.full():
            logger.warning("Realtime consumer lagging; dropping oldest snapshot")
            self.queue.get_nowait()
        self.queue.put_nowait(payload)

    def _on_snapshot(self, docs, changes, read_time) -> None:
        try:
            items = [snapshot_to_dict(doc) for doc in docs if doc.exists]
            payload = self.transform(items) if self.transform else items
            self._loop.call_soon_threadsafe(self._put, to_json(payload))
        except RuntimeError:
            # Event loop already closed; the consumer is gone.
            pass
        except Exception as e:
            logger.error(f"Snapshot callback failed: {e}", exc_info=True)

    def start(self) -> "SnapshotFeed":
        self._loop = asyncio.get_running_loop()
        self._watch = self.query.on_snapshot(self._on_snapshot)
        return self

    async def next(self) -> Any:
        return await self.queue.get()

    def stop(self) -> None:
        if self._watch is not None:
            self._watch.unsubscribe()
            self._watch = None
