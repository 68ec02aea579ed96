"""
Result and snapshot models handed to presentation collaborators.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from .enums import Difficulty, GameMode, Mark, MoveOutcome, Phase
from .move import Move
from .win_line import WinLine


@dataclass(frozen=True)
class MoveResult:
    """
    Outcome of a successful apply_move call.

    Attributes:
        outcome: CONTINUE, DRAW_RECOVERED or WIN
        move: The move that was committed
        winner: Winning mark (WIN only)
        line: Completed line (WIN only)
        removed: Moves taken off the board by draw recovery (DRAW_RECOVERED only)
    """
    outcome: MoveOutcome
    move: Move
    winner: Optional[Mark] = None
    line: Optional[WinLine] = None
    removed: Tuple[Move, ...] = ()

    @property
    def is_win(self) -> bool:
        return self.outcome is MoveOutcome.WIN


@dataclass(frozen=True)
class GameState:
    """
    Read-only snapshot of a round, for rendering.

    Attributes:
        cells: 3x3 tuple of optional marks
        moves: Ledger contents in placement order
        current_player: Mark to move next
        phase: IN_PROGRESS or WON
        winner: Winning mark when phase is WON
        line: Winning line when phase is WON
        mode: FRIEND or VS_COMPUTER
        difficulty: Computer strength (VS_COMPUTER only)
        human_mark: Mark held by the human (VS_COMPUTER only)
        computer_mark: Mark held by the computer (VS_COMPUTER only)
        transitioning: Whether a move is still being resolved
        round_id: Counter of rounds started by this machine
    """
    cells: Tuple[Tuple[Optional[Mark], ...], ...]
    moves: Tuple[Move, ...]
    current_player: Mark
    phase: Phase
    mode: GameMode
    winner: Optional[Mark] = None
    line: Optional[WinLine] = None
    difficulty: Optional[Difficulty] = None
    human_mark: Optional[Mark] = None
    computer_mark: Optional[Mark] = None
    transitioning: bool = False
    round_id: int = 0

    def get(self, row: int, col: int) -> Optional[Mark]:
        return self.cells[row][col]

    @property
    def is_computer_turn(self) -> bool:
        return (
            self.mode is GameMode.VS_COMPUTER
            and self.phase is Phase.IN_PROGRESS
            and self.current_player is self.computer_mark
        )


@dataclass(frozen=True)
class ComputerMoveNotice:
    """
    Delivery report for one background computer move.

    Attributes:
        request_id: Token of the request this answers
        result: The applied move, None if nothing was applied
        stale: True when the result was discarded as superseded
        error: Exception raised while computing or applying the move, if any
    """
    request_id: int
    result: Optional[MoveResult] = None
    stale: bool = False
    error: Optional[BaseException] = None

    @property
    def applied(self) -> bool:
        return self.result is not None
