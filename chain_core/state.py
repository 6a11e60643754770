from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .board import Board, PlayerId, create_board
from .config import COLS, PLAYERS, ROWS

PLAYING = "playing"
WON = "won"


@dataclass(frozen=True)
class GameState:
    """Represents the dynamic state of the game: board, whose turn it is, and whether someone has won."""
    board: Board
    current_player: PlayerId
    move_count: int
    status: str  # PLAYING or WON
    winner: Optional[PlayerId] = None
    players: int = PLAYERS

    @property
    def is_over(self) -> bool:
        return self.status == WON


def initial_state(rows: int = ROWS, cols: int = COLS, players: int = PLAYERS) -> GameState:
    """Empty board, player 1 to move, nothing played yet."""
    return GameState(
        board=create_board(rows, cols),
        current_player=1,
        move_count=0,
        status=PLAYING,
        winner=None,
        players=players,
    )


def is_legal_target(state: GameState, row: int, col: int) -> bool:
    """A player may only add to an unowned cell or one they already own."""
    cell = state.board.at(row, col)
    return cell.count == 0 or cell.owner is None or cell.owner == state.current_player


def victory_threshold(players: int) -> int:
    """Number of completed moves before anyone can be declared the winner."""
    return max(2, players)


def check_victory(board: Board, move_count: int, players: int = PLAYERS) -> Optional[PlayerId]:
    """Returns the winning player, or None while the game is still open."""
    if move_count < victory_threshold(players):
        return None
    # An empty board never produces a winner.
    if board.total_orbs() == 0:
        return None
    alive = board.owners_alive()
    if len(alive) == 1:
        return next(iter(alive))
    return None


def is_eliminated(board: Board, player: PlayerId, move_count: int) -> bool:
    """The player has had at least one turn and no longer owns any orbs."""
    if player > move_count:
        return False
    if board.total_orbs() == 0:
        return False
    return player not in board.owners_alive()


def next_player(
    board: Board,
    current: PlayerId,
    players: int,
    move_count: int,
    winner: Optional[PlayerId] = None,
) -> PlayerId:
    """Rotates the turn among the configured players, skipping eliminated ones; a winner keeps the turn."""
    if winner is not None:
        return winner
    candidate = current
    for _ in range(players):
        candidate = candidate % players + 1
        if not is_eliminated(board, candidate, move_count):
            return candidate
    return current % players + 1


def advance(state: GameState, board: Board) -> GameState:
    """Folds one completed move (already cascaded onto ``board``) into a new GameState."""
    move_count = state.move_count + 1
    winner = check_victory(board, move_count, state.players)
    return GameState(
        board=board,
        current_player=next_player(board, state.current_player, state.players, move_count, winner),
        move_count=move_count,
        status=WON if winner is not None else PLAYING,
        winner=winner,
        players=state.players,
    )
