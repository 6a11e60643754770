from __future__ import annotations

import logging
import random
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .errors import SyncError
from .state import GameState

logger = logging.getLogger(__name__)

RemoteCallback = Callable[[GameState], None]
Unsubscribe = Callable[[], None]


def new_game_id(rng: Optional[random.Random] = None) -> str:
    """Short numeric id handed out by the host flow (1000..9999)."""
    r = rng or random.Random()
    return str(r.randint(1000, 9999))


class SyncAdapter(ABC):
    """Shared mutable document per game id holding the latest GameState snapshot."""

    @abstractmethod
    def subscribe(self, game_id: str, initial: GameState, on_remote: RemoteCallback) -> Unsubscribe:
        """
        Starts receiving snapshots for game_id. Seeds the document with ``initial``
        when the game does not exist yet; otherwise delivers the stored snapshot.
        """

    @abstractmethod
    def publish(self, game_id: str, state: GameState) -> None:
        """Overwrites the shared snapshot (last writer wins) and notifies subscribers."""

    @abstractmethod
    def get(self, game_id: str) -> GameState:
        """Latest snapshot; raises SyncError for unknown games."""


@dataclass
class _Document:
    state: GameState
    version: int = 1
    listeners: List[RemoteCallback] = field(default_factory=list)


class InMemorySyncHub(SyncAdapter):
    """
    Process-local stand-in for a realtime database.

    Every publish replaces the document and is echoed to all subscribers,
    the publisher included; orchestrators ignore snapshots equal to their own.
    No merging or conflict detection is attempted.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._docs: Dict[str, _Document] = {}

    def exists(self, game_id: str) -> bool:
        with self._lock:
            return game_id in self._docs

    def create(self, game_id: str, initial: GameState) -> GameState:
        """Create-if-absent: returns the stored snapshot, seeding it with ``initial`` when missing."""
        with self._lock:
            doc = self._docs.get(game_id)
            if doc is None:
                doc = _Document(state=initial)
                self._docs[game_id] = doc
                logger.info("created game %s", game_id)
            return doc.state

    def version(self, game_id: str) -> int:
        with self._lock:
            return self._doc(game_id).version

    def get(self, game_id: str) -> GameState:
        with self._lock:
            return self._doc(game_id).state

    def subscribe(self, game_id: str, initial: GameState, on_remote: RemoteCallback) -> Unsubscribe:
        with self._lock:
            existed = game_id in self._docs
            current = self.create(game_id, initial)
            self._docs[game_id].listeners.append(on_remote)
        if existed:
            on_remote(current)

        def unsubscribe() -> None:
            with self._lock:
                doc = self._docs.get(game_id)
                if doc is not None and on_remote in doc.listeners:
                    doc.listeners.remove(on_remote)

        return unsubscribe

    def publish(self, game_id: str, state: GameState) -> None:
        with self._lock:
            doc = self._docs.get(game_id)
            if doc is None:
                doc = _Document(state=state)
                self._docs[game_id] = doc
            else:
                doc.state = state
                doc.version += 1
            version = doc.version
            listeners = list(doc.listeners)
        for cb in listeners:
            # A listener may publish again; that newer snapshot has already reached everyone.
            if doc.version != version:
                break
            try:
                cb(state)
            except Exception:
                logger.exception("sync listener failed for game %s", game_id)

    def _doc(self, game_id: str) -> _Document:
        doc = self._docs.get(game_id)
        if doc is None:
            raise SyncError(f"Unknown game {game_id!r}", context={"gameId": game_id})
        return doc
