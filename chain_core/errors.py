"""
Exception hierarchy for the chain reaction core.

Rejected moves are not errors: MoveOrchestrator.submit_move returns False for
them. Exceptions are reserved for bad wire payloads, unknown games and broken
invariants.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ChainReactionError(Exception):
    """Base exception for all chain reaction errors."""
    code: str = "CHAIN_ERROR"

    def __init__(self, message: str = "", context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.context = context or {}
        super().__init__(self.message)


class InvalidStateError(ChainReactionError):
    """A serialized board or game state could not be decoded."""
    code = "INVALID_STATE"


class CascadeLimitExceeded(ChainReactionError):
    """The cascade neither settled nor captured the board within the wave bound."""
    code = "CASCADE_LIMIT"


class SyncError(ChainReactionError):
    """Sync adapter failure, e.g. an unknown game id."""
    code = "SYNC_ERROR"
