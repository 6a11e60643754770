from __future__ import annotations

# Facade module that re-exports the chain reaction core.
# Used by the Flask app, the CLI entrypoint and the tests.
# Single-responsibility modules live under chain_core/*.

# Prefer the relative import when loaded as part of a package, then the top-level one.
try:
    from .chain_core.board import Board, Cell, Coord, create_board, critical_mass, neighbors  # type: ignore
    from .chain_core.cascade import ExplosionEvent, place_orb, resolve_cascade, waves  # type: ignore
    from .chain_core.config import GameConfig  # type: ignore
    from .chain_core.errors import (  # type: ignore
        CascadeLimitExceeded,
        ChainReactionError,
        InvalidStateError,
        SyncError,
    )
    from .chain_core.guard import MoveGuard  # type: ignore
    from .chain_core.orchestrator import MoveOrchestrator  # type: ignore
    from .chain_core.playback import PlaybackSchedule, schedule_events  # type: ignore
    from .chain_core.state import (  # type: ignore
        PLAYING,
        WON,
        GameState,
        advance,
        check_victory,
        initial_state,
        is_eliminated,
        is_legal_target,
        next_player,
    )
    from .chain_core.sync import InMemorySyncHub, SyncAdapter, new_game_id  # type: ignore
except ImportError:
    from chain_core.board import Board, Cell, Coord, create_board, critical_mass, neighbors  # type: ignore
    from chain_core.cascade import ExplosionEvent, place_orb, resolve_cascade, waves  # type: ignore
    from chain_core.config import GameConfig  # type: ignore
    from chain_core.errors import (  # type: ignore
        CascadeLimitExceeded,
        ChainReactionError,
        InvalidStateError,
        SyncError,
    )
    from chain_core.guard import MoveGuard  # type: ignore
    from chain_core.orchestrator import MoveOrchestrator  # type: ignore
    from chain_core.playback import PlaybackSchedule, schedule_events  # type: ignore
    from chain_core.state import (  # type: ignore
        PLAYING,
        WON,
        GameState,
        advance,
        check_victory,
        initial_state,
        is_eliminated,
        is_legal_target,
        next_player,
    )
    from chain_core.sync import InMemorySyncHub, SyncAdapter, new_game_id  # type: ignore


def main() -> None:
    # CLI driver delegated to chain_core.cli
    try:
        from .chain_core.cli import main as _main  # type: ignore
    except ImportError:
        from chain_core.cli import main as _main  # type: ignore
    _main()


if __name__ == '__main__':
    main()
