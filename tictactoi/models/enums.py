"""
Core enums for the tic-tac-toe game.
"""
from enum import Enum


class Mark(Enum):
    """Represents the two players' marks."""
    FIRST = 'X'
    SECOND = 'O'

    def opposite(self) -> 'Mark':
        """Get the other player's mark."""
        return Mark.SECOND if self is Mark.FIRST else Mark.FIRST

    @property
    def symbol(self) -> str:
        return self.value

    @classmethod
    def from_symbol(cls, symbol: str) -> 'Mark':
        """Parse 'X' or 'O' (case-insensitive) into a mark."""
        try:
            return cls(symbol.upper())
        except ValueError:
            raise ValueError(f"Invalid mark symbol '{symbol}'. Use 'X' or 'O'") from None


class Phase(Enum):
    """Represents the phase of the current round."""
    IN_PROGRESS = 'in_progress'
    WON = 'won'


class Difficulty(Enum):
    """Computer opponent strength."""
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'


class GameMode(Enum):
    """Who is sitting on the other side of the board."""
    FRIEND = 'friend'
    VS_COMPUTER = 'computer'


class MoveOutcome(Enum):
    """What happened after a move was applied."""
    CONTINUE = 'continue'
    DRAW_RECOVERED = 'draw_recovered'
    WIN = 'win'
