# Board, rules and the game state machine
from .errors import GameError, IllegalMoveError, InvalidStateError
from .board import Board
from .win_detector import WinDetector, winner, is_draw, legal_moves
from .ledger import MoveLedger
from .scores import ScoreStore, InMemoryScoreStore, JsonScoreStore
from .state_machine import GameStateMachine

__all__ = ['GameError', 'IllegalMoveError', 'InvalidStateError', 'Board', 'WinDetector',
           'winner', 'is_draw', 'legal_moves', 'MoveLedger', 'ScoreStore',
           'InMemoryScoreStore', 'JsonScoreStore', 'GameStateMachine']
