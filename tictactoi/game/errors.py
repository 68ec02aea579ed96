"""
Errors raised by the game core.
"""
from typing import Optional

from ..models.enums import Phase


class GameError(Exception):
    """Base class for recoverable game errors."""


class IllegalMoveError(GameError):
    """Raised when a cell is occupied or outside the 3x3 grid."""

    def __init__(self, message: str, row: int, col: int):
        super().__init__(message)
        self.row = row
        self.col = col


class InvalidStateError(GameError):
    """Raised when a move is attempted while the round is over or a move is still resolving."""

    def __init__(self, message: str, phase: Optional[Phase] = None, transitioning: bool = False):
        super().__init__(message)
        self.phase = phase
        self.transitioning = transitioning
