"""
Win-line models for the tic-tac-toe game.
"""
from dataclasses import dataclass
from typing import Tuple

from .enums import Mark

Cell = Tuple[int, int]


@dataclass(frozen=True)
class WinLine:
    """
    One of the eight fixed triples of cells.

    Attributes:
        cells: The three (row, col) cells, ordered from one end to the other
        description: Human-readable name of the line
    """
    cells: Tuple[Cell, Cell, Cell]
    description: str = ""

    def __post_init__(self):
        """Validate line parameters."""
        if len(self.cells) != 3:
            raise ValueError(f"Win line must have exactly 3 cells, got {len(self.cells)}")

    def contains(self, cell: Cell) -> bool:
        """Check if this line passes through a cell."""
        return cell in self.cells

    @property
    def start(self) -> Cell:
        return self.cells[0]

    @property
    def end(self) -> Cell:
        return self.cells[-1]

    def __str__(self) -> str:
        return f"{self.description}: {list(self.cells)}"


# Table order is the tie-break when one placement completes two lines:
# rows top-to-bottom, columns left-to-right, then the two diagonals.
WIN_LINES: Tuple[WinLine, ...] = (
    tuple(WinLine(((r, 0), (r, 1), (r, 2)), f"row {r}") for r in range(3))
    + tuple(WinLine(((0, c), (1, c), (2, c)), f"column {c}") for c in range(3))
    + (
        WinLine(((0, 0), (1, 1), (2, 2)), "main diagonal"),
        WinLine(((0, 2), (1, 1), (2, 0)), "anti diagonal"),
    )
)


@dataclass(frozen=True)
class WinResult:
    """
    Represents the result of a winning condition check.

    Attributes:
        winner: Mark that completed the line
        line: The completed line
    """
    winner: Mark
    line: WinLine

    def __str__(self) -> str:
        """String representation of the win result."""
        return f"{self.winner.value} wins with {self.line}"
