from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncDocument:
    doc_id: str
    revision: int
    updated_by: str
    record: Dict[str, Any]


Subscriber = Callable[[SyncDocument], None]


class InMemorySyncStore:
    """Thread-safe in-memory stand-in for a remote game document service.

    Responsibilities:
    - Keep one revisioned document per game; every write bumps the revision
      and replaces the record wholesale (last writer wins)
    - Notify subscribers of a document after each write, outside the lock
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._docs: Dict[str, SyncDocument] = {}
        self._subscribers: Dict[str, List[Subscriber]] = {}

    def get(self, doc_id: str) -> Optional[SyncDocument]:
        with self._lock:
            return self._docs.get(doc_id)

    def put(self, doc_id: str, record: Dict[str, Any], updated_by: str) -> SyncDocument:
        with self._lock:
            prev = self._docs.get(doc_id)
            doc = SyncDocument(
                doc_id=doc_id,
                revision=(prev.revision if prev else 0) + 1,
                updated_by=updated_by,
                record=copy.deepcopy(record),
            )
            self._docs[doc_id] = doc
            subscribers = list(self._subscribers.get(doc_id, ()))
        for callback in subscribers:
            callback(doc)
        return doc

    def subscribe(self, doc_id: str, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for writes to ``doc_id``; returns an unsubscriber."""
        with self._lock:
            self._subscribers.setdefault(doc_id, []).append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                subs = self._subscribers.get(doc_id, [])
                if callback in subs:
                    subs.remove(callback)

        return _unsubscribe

    def delete(self, doc_id: str) -> None:
        with self._lock:
            self._docs.pop(doc_id, None)
            self._subscribers.pop(doc_id, None)
