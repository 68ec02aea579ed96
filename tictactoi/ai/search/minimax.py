"""
Exhaustive minimax search for the Hard computer opponent.

The 3x3 tree is at most nine plies deep, so the search walks every line
of play without pruning. Positions are searched on a flat list of nine
cells and each one is scored once per search through a transposition
table; a position's depth is fixed by how many cells are filled, so the
stored values are exact. A full board with no line is scored as a plain
draw: the search does not model the rule that re-opens a drawn board, so
it is only optimal for the classic game.
"""
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ...models.enums import Mark
from ...models.win_line import WIN_LINES
from ...game.board import Board
from ...game.win_detector import WinDetector

Cell = Tuple[int, int]
Cells = List[Optional[Mark]]

SIZE = Board.SIZE
# Index triples of every line through each cell, in table order
LINES_THROUGH: Tuple[Tuple[Tuple[int, int, int], ...], ...] = tuple(
    tuple(
        tuple(r * SIZE + c for r, c in line.cells)
        for line in WIN_LINES
        if divmod(index, SIZE) in line.cells
    )
    for index in range(Board.TOTAL_CELLS)
)


@dataclass
class SearchResult:
    """
    Result of a minimax search.

    Attributes:
        best_move: The best cell found by the search, None if the board had no empty cell
        score: Minimax value of the best move
        nodes_evaluated: Number of positions scored (cached positions are not rescored)
        time_elapsed: Time taken for the search in seconds
        principal_variation: Expected line of play starting with best_move
        transposition_hits: Positions answered from the table
    """
    best_move: Optional[Cell]
    score: int
    nodes_evaluated: int
    time_elapsed: float
    principal_variation: List[Cell] = field(default_factory=list)
    transposition_hits: int = 0


class SearchAlgorithm:
    """
    Plain minimax over the full remaining game tree.

    Scores are from the computer's point of view and measured from the
    root (depth 0): a computer win at depth d is worth WIN_SCORE - d, a
    human win d - WIN_SCORE, a full board DRAW_SCORE. Faster wins and
    slower losses are therefore preferred. Ties go to the first cell in
    row-major order.

    An instance keeps per-search counters and its table, so use one
    instance per thread.
    """

    WIN_SCORE = 10
    DRAW_SCORE = 0

    def __init__(self):
        """Initialize the search algorithm."""
        self.win_detector = WinDetector()
        self.nodes_evaluated = 0
        self.transposition_hits = 0
        self.transposition_table: Dict[Tuple[Optional[Mark], ...], Tuple[int, Tuple[int, ...]]] = {}

    def search(self, board: Board, computer_mark: Mark, human_mark: Mark) -> SearchResult:
        """
        Find the best move for the computer.

        Args:
            board: Position to search from; never modified
            computer_mark: Mark the search maximizes for
            human_mark: Mark the search minimizes for

        Returns:
            SearchResult with the best move and search statistics
        """
        start_time = time.time()
        self.nodes_evaluated = 0
        self.transposition_hits = 0
        self.transposition_table = {}

        moves = self.win_detector.legal_moves(board)
        best_move = None
        best_score = None
        principal_variation: List[Cell] = []

        decided = self.win_detector.check_win(board)
        if decided is not None:
            # Already won: every reply scores the same, so take the first.
            if moves:
                self.nodes_evaluated = 1
                best_move = moves[0]
                best_score = self._terminal_score(decided.winner, 1, computer_mark)
                principal_variation = [best_move]
        else:
            cells: Cells = [board.cells[r][c] for r in range(SIZE) for c in range(SIZE)]
            for row, col in moves:
                index = row * SIZE + col
                cells[index] = computer_mark
                score, line = self._minimax(cells, index, 1, False, computer_mark, human_mark)
                cells[index] = None

                if best_score is None or score > best_score:
                    best_score = score
                    best_move = (row, col)
                    principal_variation = [best_move] + [divmod(i, SIZE) for i in line]

        return SearchResult(
            best_move=best_move,
            score=best_score if best_score is not None else self.DRAW_SCORE,
            nodes_evaluated=self.nodes_evaluated,
            time_elapsed=time.time() - start_time,
            principal_variation=principal_variation,
            transposition_hits=self.transposition_hits,
        )

    def _terminal_score(self, winner: Mark, depth: int, computer_mark: Mark) -> int:
        if winner is computer_mark:
            return self.WIN_SCORE - depth
        return depth - self.WIN_SCORE

    def _minimax(self, cells: Cells, last: int, depth: int, computer_to_move: bool,
                 computer_mark: Mark, human_mark: Mark) -> Tuple[int, Tuple[int, ...]]:
        """
        Value of a position and the line of play that reaches it.

        Args:
            cells: Working cells, restored before returning
            last: Index of the cell filled by the previous ply
            depth: Plies from the root
            computer_to_move: True at maximizing nodes

        Returns:
            (score, principal variation below this node as cell indexes)
        """
        key = tuple(cells)
        cached = self.transposition_table.get(key)
        if cached is not None:
            self.transposition_hits += 1
            return cached

        self.nodes_evaluated += 1

        # Only the mark just placed can have completed a line.
        mark = cells[last]
        for a, b, c in LINES_THROUGH[last]:
            if cells[a] is mark and cells[b] is mark and cells[c] is mark:
                result = (self._terminal_score(mark, depth, computer_mark), ())
                self.transposition_table[key] = result
                return result

        to_play = computer_mark if computer_to_move else human_mark
        best_score = None
        best_line: Tuple[int, ...] = ()

        for index in range(len(cells)):
            if cells[index] is not None:
                continue
            cells[index] = to_play
            score, line = self._minimax(cells, index, depth + 1, not computer_to_move,
                                        computer_mark, human_mark)
            cells[index] = None

            if best_score is None or (score > best_score if computer_to_move else score < best_score):
                best_score = score
                best_line = (index,) + line

        if best_score is None:
            best_score = self.DRAW_SCORE

        result = (best_score, best_line)
        self.transposition_table[key] = result
        return result
