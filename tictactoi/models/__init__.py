# Data models and enums
from .enums import Mark, Phase, Difficulty, GameMode, MoveOutcome
from .move import Move
from .win_line import WinLine, WinResult, WIN_LINES
from .results import MoveResult, GameState, ComputerMoveNotice

__all__ = ['Mark', 'Phase', 'Difficulty', 'GameMode', 'MoveOutcome', 'Move',
           'WinLine', 'WinResult', 'WIN_LINES', 'MoveResult', 'GameState',
           'ComputerMoveNotice']
