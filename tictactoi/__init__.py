"""
TicTacToi
=========
Game core for a 3x3 tic-tac-toe variant in which a drawn board re-opens by
removing each player's oldest mark. Supports two humans or a human against
a computer opponent at three difficulty levels.
"""

__version__ = "1.0.0"

from .models import Mark, Phase, Difficulty, GameMode, MoveOutcome, Move, MoveResult, GameState
from .game import Board, GameStateMachine, IllegalMoveError, InvalidStateError
from .ai import AIOpponent, compute_move

__all__ = ['Mark', 'Phase', 'Difficulty', 'GameMode', 'MoveOutcome', 'Move', 'MoveResult',
           'GameState', 'Board', 'GameStateMachine', 'IllegalMoveError', 'InvalidStateError',
           'AIOpponent', 'compute_move']
