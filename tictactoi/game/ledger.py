"""
Chronological record of the marks currently on the board.
"""
from typing import Iterator, List, Optional

from ..models.enums import Mark
from ..models.move import Move


class MoveLedger:
    """
    Ordered moves of the current round, oldest first.

    Used to find each player's oldest move still on the board when a draw
    re-opens it. This is not an undo stack.
    """

    def __init__(self):
        self._moves: List[Move] = []
        self._next_sequence = 0

    def record(self, row: int, col: int, player: Mark) -> Move:
        """Append a move and return it with its sequence number."""
        move = Move(row=row, col=col, player=player, sequence=self._next_sequence)
        self._next_sequence += 1
        self._moves.append(move)
        return move

    def earliest(self, player: Mark) -> Optional[Move]:
        """The player's oldest move still in the ledger."""
        for move in self._moves:
            if move.player is player:
                return move
        return None

    def remove(self, move: Move):
        """Remove a whole move record."""
        self._moves.remove(move)

    def clear(self):
        self._moves.clear()
        self._next_sequence = 0

    def moves(self) -> List[Move]:
        return list(self._moves)

    def __len__(self) -> int:
        return len(self._moves)

    def __iter__(self) -> Iterator[Move]:
        return iter(list(self._moves))
