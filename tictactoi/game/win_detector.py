"""
Win detection and move legality for tic-tac-toe.
"""
from typing import Dict, List, Optional, Tuple

from ..models.enums import Mark
from ..models.win_line import WIN_LINES, WinLine, WinResult
from .board import Board


class WinDetector:
    """
    Detects completed lines, draws and immediate threats.

    Lines are scanned in WIN_LINES order, so when one placement completes
    two lines the first one in the table is reported.
    """

    def __init__(self):
        """Initialize the win detector with the fixed line table."""
        self._lines: Tuple[WinLine, ...] = WIN_LINES
        self._lines_by_cell: Dict[Tuple[int, int], List[WinLine]] = {}
        self._build_cell_lookup()

    def _build_cell_lookup(self):
        """Build lookup table for lines by cell."""
        for row in range(Board.SIZE):
            for col in range(Board.SIZE):
                self._lines_by_cell[(row, col)] = []

        for line in self._lines:
            for cell in line.cells:
                self._lines_by_cell[cell].append(line)

    def check_win(self, board: Board) -> Optional[WinResult]:
        """
        Check if any line is complete.

        Args:
            board: Current board state

        Returns:
            WinResult for the first complete line in table order, None otherwise
        """
        cells = board.cells
        for line in self._lines:
            (r0, c0), (r1, c1), (r2, c2) = line.cells
            first = cells[r0][c0]
            if first is not None and cells[r1][c1] is first and cells[r2][c2] is first:
                return WinResult(winner=first, line=line)
        return None

    def is_draw(self, board: Board) -> bool:
        """True iff the board is full and nobody has a line."""
        return board.is_full() and self.check_win(board) is None

    def legal_moves(self, board: Board) -> List[Tuple[int, int]]:
        """All empty cells in row-major order."""
        return board.empty_cells()

    def find_immediate_wins(self, board: Board, mark: Mark) -> List[Tuple[int, int]]:
        """
        Find cells that would complete a line for the mark.

        Args:
            board: Current board state
            mark: Mark to find winning cells for

        Returns:
            Winning cells in row-major order, without duplicates
        """
        winning_cells = set()
        for line in self._lines:
            values = [board.cells[r][c] for r, c in line.cells]
            if values.count(mark) == 2 and values.count(None) == 1:
                winning_cells.add(line.cells[values.index(None)])
        return sorted(winning_cells)

    def find_blocking_moves(self, board: Board, mark: Mark) -> List[Tuple[int, int]]:
        """Cells the mark must take to stop the opponent completing a line."""
        return self.find_immediate_wins(board, mark.opposite())

    def get_lines_through(self, row: int, col: int) -> List[WinLine]:
        """Get all lines that pass through a cell."""
        return list(self._lines_by_cell.get((row, col), []))

    def get_all_lines(self) -> List[WinLine]:
        return list(self._lines)


_DETECTOR = WinDetector()


def winner(board: Board) -> Optional[WinResult]:
    """First complete line in table order, or None."""
    return _DETECTOR.check_win(board)


def is_draw(board: Board) -> bool:
    return _DETECTOR.is_draw(board)


def legal_moves(board: Board) -> List[Tuple[int, int]]:
    return _DETECTOR.legal_moves(board)
