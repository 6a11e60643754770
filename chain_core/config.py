"""
Game configuration and constants.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

# Board
ROWS = 9
COLS = 6
MAX_SIDE = 30

# Players
PLAYERS = 2
MIN_PLAYERS = 2
MAX_PLAYERS = 4

# Cascade
MAX_WAVES = 100

# Timing (seconds)
GUARD_TIMEOUT = 3.0
ANIMATION_DURATION = 0.5
WAVE_GAP = 0.05


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class GameConfig:
    """Per-game settings; defaults match the classic 9x6 two-player board."""
    rows: int = ROWS
    cols: int = COLS
    players: int = PLAYERS
    guard_timeout: float = GUARD_TIMEOUT
    animation_duration: float = ANIMATION_DURATION
    wave_gap: float = WAVE_GAP

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError(f"Board dimensions must be positive: {self.rows}x{self.cols}")
        if self.rows > MAX_SIDE or self.cols > MAX_SIDE:
            raise ValueError(f"Board dimensions are limited to {MAX_SIDE}x{MAX_SIDE}: {self.rows}x{self.cols}")
        if not MIN_PLAYERS <= self.players <= MAX_PLAYERS:
            raise ValueError(f"Player count must be {MIN_PLAYERS}..{MAX_PLAYERS}, got {self.players}")

    @classmethod
    def from_env(cls) -> 'GameConfig':
        """Builds a config from CHAIN_* environment variables, falling back to defaults."""
        return cls(
            rows=_env_int("CHAIN_ROWS", ROWS),
            cols=_env_int("CHAIN_COLS", COLS),
            players=_env_int("CHAIN_PLAYERS", PLAYERS),
            guard_timeout=_env_float("CHAIN_GUARD_TIMEOUT", GUARD_TIMEOUT),
            animation_duration=_env_float("CHAIN_ANIMATION_DURATION", ANIMATION_DURATION),
            wave_gap=_env_float("CHAIN_WAVE_GAP", WAVE_GAP),
        )
