from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from .board import Board
from .cascade import ExplosionEvent, place_orb, resolve_cascade
from .config import GameConfig
from .guard import MoveGuard
from .playback import PlaybackSchedule
from .state import PLAYING, GameState, advance, initial_state, is_legal_target
from .sync import SyncAdapter, Unsubscribe

logger = logging.getLogger(__name__)

# (final board, ordered explosion events, player to move next, status)
Presenter = Callable[[Board, List[ExplosionEvent], int, str], None]


class MoveOrchestrator:
    """
    Single owner of a GameState and the only place it changes.

    A move is resolved synchronously: orb placement, full cascade, turn and
    victory update, then one assignment of the new state. Sync publishing and
    the presenter hand-off happen afterwards, while the move guard is still
    held, so a move submitted from inside those callbacks is rejected. The
    animation of the cascade is left to the presenter (optionally driven by
    ``tick``) and never feeds back into the state.
    """

    def __init__(
        self,
        state: Optional[GameState] = None,
        config: Optional[GameConfig] = None,
        presenter: Optional[Presenter] = None,
        sync: Optional[SyncAdapter] = None,
        game_id: Optional[str] = None,
        hold_for_playback: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or GameConfig()
        if state is None:
            state = initial_state(self.config.rows, self.config.cols, self.config.players)
        self.state = state
        self.presenter = presenter
        self.hold_for_playback = hold_for_playback
        self._clock = clock
        self.guard = MoveGuard(timeout=self.config.guard_timeout, clock=clock)
        self.playback: Optional[PlaybackSchedule] = None
        self.last_events: List[ExplosionEvent] = []
        self.sync: Optional[SyncAdapter] = None
        self.game_id: Optional[str] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        if sync is not None and game_id is not None:
            self.attach(sync, game_id)

    @property
    def busy(self) -> bool:
        return self.guard.busy

    # ---------- moves ----------

    def submit_move(self, row: int, col: int) -> bool:
        """Plays one orb for the current player. Returns False (and changes nothing) if the move is rejected."""
        before = self.state
        if not before.board.in_bounds(row, col):
            logger.debug("rejected move (%d, %d): out of bounds", row, col)
            return False
        if not self.guard.acquire("move"):
            logger.debug("rejected move (%d, %d): another move is in flight", row, col)
            return False
        keep_guard = False
        try:
            if before.status != PLAYING:
                logger.debug("rejected move (%d, %d): game is over", row, col)
                return False
            if not is_legal_target(before, row, col):
                logger.debug("rejected move (%d, %d): cell owned by another player", row, col)
                return False

            player = before.current_player
            placed = place_orb(before.board, row, col, player)
            final, events = resolve_cascade(placed, player)
            after = advance(before, final)

            self.state = after
            self.last_events = events
            logger.info(
                "player %d played (%d, %d): %d explosions, next=%d status=%s",
                player, row, col, len(events), after.current_player, after.status,
            )
            self._start_playback(events)
            self._publish(after)
            self._present(after.board, events, after.current_player, after.status)
            keep_guard = self.hold_for_playback and bool(events) and self.state is after
            if keep_guard:
                self.guard.rearm("playback")
            return True
        finally:
            if not keep_guard:
                self.guard.release()

    def reset(self) -> None:
        """Starts a fresh game with the same dimensions and player count, abandoning any playback."""
        self._cancel_playback()
        self.guard.release()
        s = self.state
        self.state = initial_state(s.board.rows, s.board.cols, s.players)
        self.last_events = []
        logger.info("game %s reset", self.game_id or "<local>")
        self._publish(self.state)
        self._present(self.state.board, [], self.state.current_player, self.state.status)

    # ---------- playback ----------

    def tick(self, now: Optional[float] = None) -> List[ExplosionEvent]:
        """Explosions that should start playing by ``now``. Releases a held guard once playback ends."""
        if self.playback is None:
            return []
        t = self._clock() if now is None else now
        due = self.playback.due(t)
        if self.playback.finished(t):
            self.playback_finished()
        return due

    def playback_finished(self) -> None:
        self.playback = None
        if self.hold_for_playback:
            self.guard.release()

    def _start_playback(self, events: List[ExplosionEvent]) -> None:
        self._cancel_playback()
        if not events:
            return
        self.playback = PlaybackSchedule(
            events,
            started_at=self._clock(),
            animation_duration=self.config.animation_duration,
            wave_gap=self.config.wave_gap,
            lead_in=self.config.animation_duration,
        )

    def _cancel_playback(self) -> None:
        if self.playback is not None:
            self.playback.cancel()
            self.playback = None

    # ---------- sync ----------

    def attach(self, sync: SyncAdapter, game_id: str) -> None:
        """Joins a shared game; an unknown id is seeded with the local state."""
        self.detach()
        self.sync = sync
        self.game_id = game_id
        self._unsubscribe = sync.subscribe(game_id, self.state, self.adopt_remote)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self.sync = None
        self.game_id = None

    def adopt_remote(self, remote: GameState) -> bool:
        """Replaces local state wholesale with a differing remote snapshot (last writer wins)."""
        if remote == self.state:
            return False
        self._cancel_playback()
        self.guard.release()
        self.state = remote
        self.last_events = []
        logger.info(
            "adopted remote state for game %s: move %d, turn %d",
            self.game_id, remote.move_count, remote.current_player,
        )
        self._present(remote.board, [], remote.current_player, remote.status)
        return True

    def _publish(self, state: GameState) -> None:
        if self.sync is None or self.game_id is None:
            return
        try:
            self.sync.publish(self.game_id, state)
        except Exception:
            logger.exception("failed to publish state for game %s", self.game_id)

    def _present(self, board: Board, events: List[ExplosionEvent], turn: int, status: str) -> None:
        if self.presenter is None:
            return
        try:
            self.presenter(board, list(events), turn, status)
        except Exception:
            logger.exception("presenter failed")
