from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence, Tuple

from .board import Board, Coord
from .cascade import ExplosionEvent, waves
from .config import GameConfig, MAX_PLAYERS, MIN_PLAYERS
from .orchestrator import MoveOrchestrator
from .state import WON


def parse_coord(text: str) -> Optional[Coord]:
    """Parses 'r,c' or 'r c'; returns None when the text is not two integers."""
    text = text.strip()
    sep = ',' if ',' in text else ' '
    parts = [t for t in text.split(sep) if t.strip() != '']
    if len(parts) != 2:
        return None
    try:
        return (int(parts[0]), int(parts[1]))
    except ValueError:
        return None


def parse_script(script: str) -> List[Coord]:
    moves: List[Coord] = []
    for chunk in script.split(';'):
        if not chunk.strip():
            continue
        mv = parse_coord(chunk)
        if mv is None:
            raise ValueError(f'Could not parse move {chunk!r}')
        moves.append(mv)
    return moves


def _print_move(board: Board, events: List[ExplosionEvent], turn: int, status: str) -> None:
    for i, wave in enumerate(waves(events)):
        origins = ', '.join(f'{ev.origin}' for ev in wave)
        print(f'  wave {i + 1}: {origins}')
    print(board.pretty())
    if status == WON:
        print(f'Player {turn} wins!')
    else:
        print(f"Player {turn}'s turn")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Chain reaction hot-seat game')
    defaults = GameConfig.from_env()
    parser.add_argument('--rows', type=int, default=defaults.rows, help='Board rows')
    parser.add_argument('--cols', type=int, default=defaults.cols, help='Board columns')
    parser.add_argument('--players', type=int, choices=range(MIN_PLAYERS, MAX_PLAYERS + 1),
                        default=defaults.players, help='Number of players')
    parser.add_argument('--moves', default=None, help='Scripted moves "r,c;r,c;..." instead of prompting')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    config = GameConfig(rows=args.rows, cols=args.cols, players=args.players)
    game = MoveOrchestrator(config=config, presenter=_print_move)

    print('Initial board:')
    print(game.state.board.pretty())

    if args.moves:
        for (r, c) in parse_script(args.moves):
            player = game.state.current_player
            if not game.submit_move(r, c):
                print(f'Player {player}: move {(r, c)} rejected')
            if game.state.status == WON:
                break
        return

    def prompt_move() -> Tuple[int, int]:
        while True:
            text = input(f'Player {game.state.current_player}, enter your move as r,c or r c: ')
            mv = parse_coord(text)
            if mv is None:
                print('Could not parse. Try again.')
                continue
            return mv

    while game.state.status != WON:
        r, c = prompt_move()
        if not game.submit_move(r, c):
            print('Illegal move. Try again.')
