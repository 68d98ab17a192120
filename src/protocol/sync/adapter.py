from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from ...engine.errors import SyncAdoptionConflict
from ...engine.game import Game
from .store import InMemorySyncStore, SyncDocument


logger = logging.getLogger(__name__)


class SyncAdapter:
    """Mirrors one game into a sync document and adopts remote writes.

    Notes:
    - One local commit or one remote adoption at a time, never interleaved.
    - A remote write that lands while a local commit is in progress is
      dropped; the local commit publishes afterwards and wins.
    - Echoes of our own writes and revisions we already hold are ignored.
    """

    def __init__(
        self,
        store: InMemorySyncStore,
        doc_id: str,
        client_id: str,
        game: Callable[[], Game],
        include_history: bool = False,
    ) -> None:
        self.store = store
        self.doc_id = doc_id
        self.client_id = client_id
        self._game = game
        self.include_history = include_history
        self._guard = threading.Lock()
        self._revision = 0
        self.dropped = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def revision(self) -> int:
        return self._revision

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.doc_id, self.receive)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @contextmanager
    def local_commit(self) -> Iterator[None]:
        """Hold off remote adoption while the caller mutates the game, then publish."""
        with self._guard:
            yield
            self._publish()

    def publish(self) -> None:
        with self._guard:
            self._publish()

    def pull(self) -> bool:
        """Adopt the current remote document, if it is newer than ours."""
        doc = self.store.get(self.doc_id)
        if doc is None:
            return False
        return self.receive(doc)

    def receive(self, doc: SyncDocument) -> bool:
        """Handle a remote write. Returns True when it was adopted."""
        if doc.updated_by == self.client_id:
            self._revision = max(self._revision, doc.revision)
            return False
        if doc.revision <= self._revision:
            logger.debug("stale sync revision %d dropped", doc.revision)
            return False
        if not self._guard.acquire(blocking=False):
            self.dropped += 1
            err = SyncAdoptionConflict(f"remote revision {doc.revision} arrived mid-commit")
            logger.warning("sync update dropped: %s", err)
            return False
        try:
            self._game().adopt(doc.record)
        except ValueError as e:
            self.dropped += 1
            logger.warning("malformed remote record dropped: %s", e)
            return False
        finally:
            self._guard.release()
        self._revision = doc.revision
        logger.info("adopted remote revision", extra={"doc_id": self.doc_id, "rev": doc.revision})
        return True

    def _publish(self) -> None:
        record = self._game().to_record(include_history=self.include_history)
        doc = self.store.put(self.doc_id, record, self.client_id)
        self._revision = doc.revision
