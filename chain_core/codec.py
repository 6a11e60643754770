from __future__ import annotations

from typing import Any, Dict, List, Optional

from .board import Board, Cell, critical_mass
from .cascade import ExplosionEvent
from .config import MAX_PLAYERS, MAX_SIDE, MIN_PLAYERS
from .errors import InvalidStateError
from .state import PLAYING, WON, GameState


def board_to_json(b: Board) -> Dict[str, Any]:
    counts: List[List[int]] = []
    owners: List[List[Optional[int]]] = []
    for r in range(b.rows):
        counts.append([b.at(r, c).count for c in range(b.cols)])
        owners.append([b.at(r, c).owner for c in range(b.cols)])
    return {"rows": b.rows, "cols": b.cols, "counts": counts, "owners": owners}


def json_to_board(obj: Dict[str, Any]) -> Board:
    """Rebuilds a Board from its wire form; thresholds are recomputed from position."""
    try:
        rows = int(obj["rows"])
        cols = int(obj["cols"])
        counts = obj["counts"]
        if rows <= 0 or cols <= 0:
            raise ValueError(f"bad dimensions {rows}x{cols}")
        if rows > MAX_SIDE or cols > MAX_SIDE:
            raise ValueError(f"board larger than {MAX_SIDE}x{MAX_SIDE}")
        owners = obj.get("owners") or [[None] * cols for _ in range(rows)]
        if len(counts) != rows or len(owners) != rows:
            raise ValueError("row count mismatch")
        cells: List[Cell] = []
        for r in range(rows):
            if len(counts[r]) != cols or len(owners[r]) != cols:
                raise ValueError(f"column count mismatch in row {r}")
            for c in range(cols):
                count = int(counts[r][c])
                if count < 0:
                    raise ValueError(f"negative count at ({r}, {c})")
                raw_owner = owners[r][c]
                # Older documents used 0 for "nobody".
                owner = int(raw_owner) if raw_owner not in (None, 0) else None
                cells.append(Cell(count=count, owner=owner if count > 0 else None,
                                  threshold=critical_mass(r, c, rows, cols)))
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidStateError(f"bad board: {e}") from e
    return Board(rows=rows, cols=cols, cells=tuple(cells))


def state_to_json(s: GameState) -> Dict[str, Any]:
    return {
        "board": board_to_json(s.board),
        "turn": int(s.current_player),
        "moveCount": int(s.move_count),
        "status": s.status,
        "winner": s.winner,
        "players": int(s.players),
    }


def json_to_state(obj: Dict[str, Any]) -> GameState:
    if not isinstance(obj, dict):
        raise InvalidStateError("state must be an object")
    board = json_to_board(obj.get("board") or {})
    try:
        players = int(obj.get("players", MIN_PLAYERS))
        turn = int(obj.get("turn", 1))
        move_count = int(obj.get("moveCount", 0))
        status = str(obj.get("status", PLAYING))
        winner_raw = obj.get("winner")
        winner = int(winner_raw) if winner_raw is not None else None
    except (TypeError, ValueError) as e:
        raise InvalidStateError(f"bad state: {e}") from e
    if not MIN_PLAYERS <= players <= MAX_PLAYERS:
        raise InvalidStateError(f"bad state: players must be {MIN_PLAYERS}..{MAX_PLAYERS}")
    if not 1 <= turn <= players:
        raise InvalidStateError(f"bad state: turn {turn} out of range")
    if status not in (PLAYING, WON):
        raise InvalidStateError(f"bad state: unknown status {status!r}")
    if status == WON and winner is None:
        raise InvalidStateError("bad state: won without a winner")
    return GameState(
        board=board,
        current_player=turn,
        move_count=max(0, move_count),
        status=status,
        winner=winner if status == WON else None,
        players=players,
    )


def event_to_json(ev: ExplosionEvent) -> Dict[str, Any]:
    return {
        "wave": ev.wave,
        "origin": [ev.origin[0], ev.origin[1]],
        "fromOwner": ev.from_owner,
        "toOwner": ev.to_owner,
        "destinations": [[r, c] for (r, c) in ev.destinations],
    }

