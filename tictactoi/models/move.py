"""
Move model for the tic-tac-toe game.
"""
from dataclasses import dataclass

from .enums import Mark


@dataclass(frozen=True)
class Move:
    """
    Represents a placed mark.

    Attributes:
        row: Row of the cell (0-2)
        col: Column of the cell (0-2)
        player: Mark that was placed
        sequence: Placement order within the round, assigned by the ledger
    """
    row: int
    col: int
    player: Mark
    sequence: int = 0

    def __post_init__(self):
        """Validate move parameters."""
        if not (0 <= self.row <= 2 and 0 <= self.col <= 2):
            raise ValueError(f"Cell must be within 0-2, got ({self.row}, {self.col})")

        if not isinstance(self.player, Mark):
            raise ValueError(f"Player must be a Mark enum, got {type(self.player)}")

    @property
    def cell(self):
        return (self.row, self.col)

    def __str__(self) -> str:
        """String representation of the move."""
        return f"#{self.sequence} {self.player.value} -> ({self.row}, {self.col})"
