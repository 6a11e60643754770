from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .board import Board, Cell, Coord, PlayerId, neighbors
from .config import MAX_WAVES
from .errors import CascadeLimitExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExplosionEvent:
    """One cell bursting during one wave of a cascade."""
    wave: int  # 0-based; events of the same wave share a pre-wave snapshot
    origin: Coord
    from_owner: Optional[PlayerId]
    to_owner: PlayerId
    destinations: Tuple[Coord, ...]


def place_orb(board: Board, row: int, col: int, player: PlayerId) -> Board:
    """Adds one orb to (row, col) and hands the cell to the player."""
    cell = board.at(row, col)
    return board.with_cell(row, col, cell.count + 1, player)


def resolve_cascade(board: Board, player: PlayerId) -> Tuple[Board, List[ExplosionEvent]]:
    """
    Resolves every chained explosion on the board caused by the player's move.

    Works in waves: each wave collects all critical cells from a single
    snapshot, empties them by their threshold and pushes one orb into each
    in-bounds neighbour, converting those neighbours to the mover. Orbs pushed
    past the edge are lost. Returns the stable board and the explosion events
    in wave order (row-major inside a wave). The input board is not modified.

    When the cascade captures the last opposing orb it stops after that wave,
    even if cells are still critical: the game is won and a full board can
    otherwise keep exploding forever.
    """
    contested = any(cell.count > 0 and cell.owner != player for cell in board.cells)
    counts: List[int] = [cell.count for cell in board.cells]
    owners: List[Optional[PlayerId]] = [cell.owner for cell in board.cells]
    thresholds: List[int] = [cell.threshold for cell in board.cells]
    events: List[ExplosionEvent] = []

    wave = 0
    while True:
        exploding = [
            (r, c) for (r, c) in board.coords()
            if counts[board.index(r, c)] >= thresholds[board.index(r, c)]
        ]
        if not exploding:
            break
        if wave > 0 and contested and _owns_every_orb(counts, owners, player):
            logger.debug("cascade for player %d captured the board after %d waves", player, wave)
            break
        if wave >= MAX_WAVES:
            raise CascadeLimitExceeded(
                f"Cascade still unstable after {MAX_WAVES} waves",
                context={"player": player, "pending": len(exploding)},
            )

        snapshot_counts = list(counts)
        snapshot_owners = list(owners)
        incoming: List[Coord] = []
        for origin in exploding:
            i = board.index(*origin)
            remaining = max(0, snapshot_counts[i] - thresholds[i])
            counts[i] = remaining
            if remaining == 0:
                owners[i] = None
            dests = tuple(neighbors(board, origin))
            incoming.extend(dests)
            events.append(ExplosionEvent(
                wave=wave,
                origin=origin,
                from_owner=snapshot_owners[i],
                to_owner=player,
                destinations=dests,
            ))
        for dest in incoming:
            j = board.index(*dest)
            counts[j] += 1
            owners[j] = player
        wave += 1

    if not events:
        return board, events

    logger.debug("cascade for player %d: %d explosions over %d waves", player, len(events), wave)
    cells = tuple(
        Cell(count=counts[i], owner=owners[i] if counts[i] > 0 else None, threshold=thresholds[i])
        for i in range(len(counts))
    )
    return Board(board.rows, board.cols, cells), events


def _owns_every_orb(counts: List[int], owners: List[Optional[PlayerId]], player: PlayerId) -> bool:
    return all(owner == player for count, owner in zip(counts, owners) if count > 0)


def waves(events: List[ExplosionEvent]) -> List[List[ExplosionEvent]]:
    """Groups an event list into its waves, preserving order."""
    grouped: List[List[ExplosionEvent]] = []
    for ev in events:
        if not grouped or grouped[-1][0].wave != ev.wave:
            grouped.append([])
        grouped[-1].append(ev)
    return grouped
