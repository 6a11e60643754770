"""
Chain Reaction core Python package.

Pure game logic plus the move orchestration layer that sits between the
Flask API / CLI and the board.
Modules:
- board.py: Cell, Board, critical_mass, create_board
- cascade.py: ExplosionEvent, place_orb, resolve_cascade
- state.py: GameState and the turn/victory rules
- guard.py: MoveGuard (re-entrancy guard with safety timeout)
- orchestrator.py: MoveOrchestrator
- playback.py: PlaybackSchedule for animating explosion waves
- sync.py: SyncAdapter contract and InMemorySyncHub
- codec.py: JSON-ready conversion of states and events
"""
