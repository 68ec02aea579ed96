from .environment import TicTacToiEnv

__all__ = ['TicTacToiEnv']
