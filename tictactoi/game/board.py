"""
3x3 board representation for the tic-tac-toe game.
"""
from typing import Iterator, List, Optional, Tuple

from ..models.enums import Mark
from .errors import IllegalMoveError

EMPTY_SYMBOL = '_'


class Board:
    """
    Represents the 3x3 grid of optional marks.

    The board knows nothing about turns or rules. A cell goes from empty to
    marked through set() and back to empty only through clear().
    A frozen board (see snapshot()) rejects both.
    """

    SIZE = 3
    TOTAL_CELLS = 9

    def __init__(self):
        """Initialize an empty board."""
        self.cells: List[List[Optional[Mark]]] = [[None] * self.SIZE for _ in range(self.SIZE)]
        self._frozen = False

    @classmethod
    def _check_bounds(cls, row: int, col: int):
        if not (0 <= row < cls.SIZE and 0 <= col < cls.SIZE):
            raise IllegalMoveError(f"Invalid cell ({row}, {col}). Must be 0-2.", row, col)

    def _check_mutable(self):
        if self._frozen:
            raise TypeError("Board snapshot is frozen")

    def get(self, row: int, col: int) -> Optional[Mark]:
        """Get the mark in a cell, or None if empty."""
        self._check_bounds(row, col)
        return self.cells[row][col]

    def set(self, row: int, col: int, mark: Mark):
        """
        Place a mark in an empty cell.

        Raises:
            IllegalMoveError: If the cell is occupied or out of range
        """
        self._check_bounds(row, col)
        self._check_mutable()
        occupant = self.cells[row][col]
        if occupant is not None:
            raise IllegalMoveError(
                f"Cell ({row}, {col}) is already occupied by {occupant.value}", row, col
            )
        self.cells[row][col] = mark

    def clear(self, row: int, col: int):
        """Empty a cell."""
        self._check_bounds(row, col)
        self._check_mutable()
        self.cells[row][col] = None

    def is_full(self) -> bool:
        """Check if the board is full."""
        return all(cell is not None for row in self.cells for cell in row)

    def is_empty(self) -> bool:
        return all(cell is None for row in self.cells for cell in row)

    def empty_cells(self) -> List[Tuple[int, int]]:
        """Get all empty cells in row-major order."""
        return [
            (row, col)
            for row in range(self.SIZE)
            for col in range(self.SIZE)
            if self.cells[row][col] is None
        ]

    def count(self, mark: Mark) -> int:
        return sum(1 for row in self.cells for cell in row if cell is mark)

    def __iter__(self) -> Iterator[Tuple[int, int, Optional[Mark]]]:
        for row in range(self.SIZE):
            for col in range(self.SIZE):
                yield row, col, self.cells[row][col]

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> 'Board':
        """Create a mutable deep copy of the board."""
        new_board = Board()
        new_board.cells = [list(row) for row in self.cells]
        return new_board

    def snapshot(self) -> 'Board':
        """Create a frozen deep copy, safe to hand to another thread."""
        new_board = self.copy()
        new_board._frozen = True
        return new_board

    def rows(self) -> Tuple[Tuple[Optional[Mark], ...], ...]:
        return tuple(tuple(row) for row in self.cells)

    def to_string(self) -> str:
        """Row-major 9-character string of 'X', 'O' and '_'."""
        return ''.join(
            cell.value if cell is not None else EMPTY_SYMBOL
            for row in self.cells for cell in row
        )

    @classmethod
    def from_string(cls, board_string: str) -> 'Board':
        """
        Parse a board string produced by to_string().

        Raises:
            ValueError: If the string is not 9 characters of 'X', 'O' or '_'
        """
        if len(board_string) != cls.TOTAL_CELLS:
            raise ValueError(
                f"Board string must be exactly {cls.TOTAL_CELLS} characters, got {len(board_string)}"
            )

        board = cls()
        for index, char in enumerate(board_string.upper()):
            if char == EMPTY_SYMBOL:
                continue
            if char not in ('X', 'O'):
                raise ValueError(f"Invalid character '{char}' at position {index}. Use 'X', 'O', or '_'")
            board.set(index // cls.SIZE, index % cls.SIZE, Mark(char))
        return board

    @classmethod
    def from_rows(cls, rows) -> 'Board':
        """Build a board from a 3x3 nested sequence of optional marks."""
        board = cls()
        for row, values in enumerate(rows):
            for col, mark in enumerate(values):
                if mark is not None:
                    board.set(row, col, mark)
        return board

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.cells == other.cells

    def __repr__(self) -> str:
        return f"Board('{self.to_string()}')"

    def __str__(self) -> str:
        """Grid representation of the board."""
        lines = []
        for row in range(self.SIZE):
            lines.append(" | ".join(
                cell.value if cell is not None else ' ' for cell in self.cells[row]
            ))
            if row < self.SIZE - 1:
                lines.append("--+---+--")
        return "\n".join(lines)
