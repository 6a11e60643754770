from __future__ import annotations

import logging
import os
import threading
from typing import Any, Dict, List, Tuple

from flask import Flask, jsonify, request

# Use relative imports when loaded as part of a package, top-level otherwise
try:
    from .chain_core.cascade import resolve_cascade
    from .chain_core.codec import (
        board_to_json,
        event_to_json,
        json_to_board,
        json_to_state,
        state_to_json,
    )
    from .chain_core.config import GameConfig, MAX_PLAYERS, MIN_PLAYERS
    from .chain_core.errors import CascadeLimitExceeded, ChainReactionError, InvalidStateError, SyncError
    from .chain_core.orchestrator import MoveOrchestrator
    from .chain_core.playback import ScheduledExplosion, schedule_events
    from .chain_core.state import initial_state
    from .chain_core.sync import InMemorySyncHub, new_game_id
except ImportError:
    from chain_core.cascade import resolve_cascade  # type: ignore
    from chain_core.codec import (  # type: ignore
        board_to_json,
        event_to_json,
        json_to_board,
        json_to_state,
        state_to_json,
    )
    from chain_core.config import GameConfig, MAX_PLAYERS, MIN_PLAYERS  # type: ignore
    from chain_core.errors import CascadeLimitExceeded, ChainReactionError, InvalidStateError, SyncError  # type: ignore
    from chain_core.orchestrator import MoveOrchestrator  # type: ignore
    from chain_core.playback import ScheduledExplosion, schedule_events  # type: ignore
    from chain_core.state import initial_state  # type: ignore
    from chain_core.sync import InMemorySyncHub, new_game_id  # type: ignore

logger = logging.getLogger(__name__)

DEFAULTS = GameConfig.from_env()

app = Flask(__name__)

# Shared game documents plus one server-side orchestrator per game. Flask may
# serve requests from several threads, so every mutation goes through _LOCK.
HUB = InMemorySyncHub()
_GAMES: Dict[str, MoveOrchestrator] = {}
_LOCK = threading.RLock()


def _config_from_body(body: Dict[str, Any]) -> GameConfig:
    try:
        return GameConfig(
            rows=int(body.get("rows", DEFAULTS.rows)),
            cols=int(body.get("cols", DEFAULTS.cols)),
            players=int(body.get("players", DEFAULTS.players)),
            guard_timeout=DEFAULTS.guard_timeout,
            animation_duration=DEFAULTS.animation_duration,
            wave_gap=DEFAULTS.wave_gap,
        )
    except (TypeError, ValueError) as e:
        raise InvalidStateError(f"bad game settings: {e}") from e


def _orchestrator_for(game_id: str) -> MoveOrchestrator:
    """Server-side orchestrator bound to the shared document; raises SyncError for unknown games."""
    with _LOCK:
        orch = _GAMES.get(game_id)
        if orch is not None:
            return orch
        state = HUB.get(game_id)
        config = GameConfig(
            rows=state.board.rows,
            cols=state.board.cols,
            players=state.players,
            guard_timeout=DEFAULTS.guard_timeout,
            animation_duration=DEFAULTS.animation_duration,
            wave_gap=DEFAULTS.wave_gap,
        )
        orch = MoveOrchestrator(state=state, config=config, sync=HUB, game_id=game_id)
        _GAMES[game_id] = orch
        return orch


def _unused_game_id() -> str:
    for _ in range(100):
        gid = new_game_id()
        if not HUB.exists(gid):
            return gid
    raise SyncError("No free game id available")


def _game_payload(game_id: str) -> Dict[str, Any]:
    return {
        "ok": True,
        "gameId": game_id,
        "version": HUB.version(game_id),
        "state": state_to_json(HUB.get(game_id)),
    }


def _body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _timed_events(schedule: List[ScheduledExplosion]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for item in schedule:
        ev = event_to_json(item.event)
        ev["start"] = item.start
        ev["duration"] = item.duration
        out.append(ev)
    return out


# ---------- Error envelopes ----------

@app.errorhandler(InvalidStateError)
def _bad_state(e: InvalidStateError) -> Tuple[Any, int]:
    return jsonify({"ok": False, "error": e.message, "code": e.code}), 400


@app.errorhandler(SyncError)
def _unknown_game(e: SyncError) -> Tuple[Any, int]:
    return jsonify({"ok": False, "error": e.message, "code": e.code}), 404


@app.errorhandler(ChainReactionError)
def _engine_error(e: ChainReactionError) -> Tuple[Any, int]:
    logger.error("engine error: %s", e.message)
    return jsonify({"ok": False, "error": e.message, "code": e.code}), 500


# ---------- Info ----------

@app.get("/")
def index() -> Any:
    return jsonify({
        "ok": True,
        "name": "Chain Reaction",
        "defaults": {"rows": DEFAULTS.rows, "cols": DEFAULTS.cols, "players": DEFAULTS.players},
        "players": {"min": MIN_PLAYERS, "max": MAX_PLAYERS},
    })


# ---------- Host / join ----------

@app.post("/api/host")
def api_host() -> Any:
    config = _config_from_body(_body())
    with _LOCK:
        game_id = _unused_game_id()
        HUB.create(game_id, initial_state(config.rows, config.cols, config.players))
        logger.info("hosting game %s (%dx%d, %d players)", game_id, config.rows, config.cols, config.players)
        return jsonify(_game_payload(game_id))


@app.post("/api/join")
def api_join() -> Any:
    """Joins a game by id; an unknown id is created with the posted settings."""
    body = _body()
    game_id = str(body.get("gameId", "")).strip()
    if not game_id:
        return jsonify({"ok": False, "error": "gameId required"}), 400
    config = _config_from_body(body)
    with _LOCK:
        HUB.create(game_id, initial_state(config.rows, config.cols, config.players))
        return jsonify(_game_payload(game_id))


# ---------- Shared document ----------

@app.get("/api/games/<game_id>")
def api_get_game(game_id: str) -> Any:
    with _LOCK:
        return jsonify(_game_payload(game_id))


@app.put("/api/games/<game_id>")
def api_put_game(game_id: str) -> Any:
    """Publishes a client's snapshot. Last writer wins; no merge, no conflict check."""
    body = _body()
    s_in = body.get("state")
    if not isinstance(s_in, dict):
        return jsonify({"ok": False, "error": "state required"}), 400
    state = json_to_state(s_in)
    with _LOCK:
        HUB.publish(game_id, state)
        return jsonify(_game_payload(game_id))


@app.post("/api/games/<game_id>/move")
def api_move(game_id: str) -> Any:
    body = _body()
    try:
        row = int(body["row"])
        col = int(body["col"])
    except (KeyError, TypeError, ValueError):
        return jsonify({"ok": False, "error": "row and col required"}), 400
    with _LOCK:
        orch = _orchestrator_for(game_id)
        player = orch.state.current_player
        if not orch.submit_move(row, col):
            return jsonify({
                "ok": False,
                "accepted": False,
                "error": "Move rejected",
                "state": state_to_json(orch.state),
            }), 400
        payload = _game_payload(game_id)
        events = list(orch.last_events)
    schedule = schedule_events(
        events,
        orch.config.animation_duration,
        orch.config.wave_gap,
        lead_in=orch.config.animation_duration,
    )
    payload.update({
        "accepted": True,
        "player": player,
        "move": [row, col],
        "events": _timed_events(schedule),
    })
    return jsonify(payload)


@app.post("/api/games/<game_id>/reset")
def api_reset(game_id: str) -> Any:
    with _LOCK:
        orch = _orchestrator_for(game_id)
        orch.reset()
        return jsonify(_game_payload(game_id))


# ---------- Stateless helpers ----------

@app.post("/api/cascade")
def api_cascade() -> Any:
    """Resolves a posted board for the given player without touching any game."""
    body = _body()
    b_in = body.get("board")
    if not isinstance(b_in, dict):
        return jsonify({"ok": False, "error": "board required"}), 400
    board = json_to_board(b_in)
    try:
        player = int(body.get("player", 1))
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "bad player"}), 400
    try:
        final, events = resolve_cascade(board, player)
    except CascadeLimitExceeded as e:
        return jsonify({"ok": False, "error": e.message, "code": e.code}), 400
    schedule = schedule_events(events, DEFAULTS.animation_duration, DEFAULTS.wave_gap)
    return jsonify({
        "ok": True,
        "board": board_to_json(final),
        "stable": final.is_stable(),
        "events": _timed_events(schedule),
    })


# Entrypoint for "python app.py"
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=debug)
