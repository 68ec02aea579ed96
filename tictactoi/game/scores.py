"""
Score persistence for the game core.

The state machine only sees the narrow ScoreStore interface; the backends
here are a dict for tests and a JSON file for the console game.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..models.enums import Mark

logger = logging.getLogger('tictactoi.game')

SCORE_KEYS = {
    Mark.FIRST: 'score_x_wins',
    Mark.SECOND: 'score_o_wins',
}


class ScoreStore(ABC):
    """Persisted integer score per mark."""

    @abstractmethod
    def load_score(self, mark: Mark) -> int:
        """Read the stored score, 0 if none was saved."""

    @abstractmethod
    def save_score(self, mark: Mark, value: int):
        """Persist a score."""


class InMemoryScoreStore(ScoreStore):
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[Dict[str, int]] = None):
        self.values: Dict[str, int] = dict(initial or {})

    def load_score(self, mark: Mark) -> int:
        return int(self.values.get(SCORE_KEYS[mark], 0))

    def save_score(self, mark: Mark, value: int):
        self.values[SCORE_KEYS[mark]] = int(value)


class JsonScoreStore(ScoreStore):
    """
    JSON file store using the score_x_wins / score_o_wins keys.

    A missing file reads as all zeros. A corrupt file is logged and
    treated as empty; the next save overwrites it. A failed write is
    logged and the score is kept only in memory.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def _read(self) -> Dict[str, int]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read score file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring score file {self.path}: expected an object")
            return {}
        return data

    def load_score(self, mark: Mark) -> int:
        try:
            return int(self._read().get(SCORE_KEYS[mark], 0))
        except (TypeError, ValueError):
            return 0

    def save_score(self, mark: Mark, value: int):
        data = self._read()
        data[SCORE_KEYS[mark]] = int(value)
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as handle:
                json.dump(data, handle, indent=2)
        except OSError as e:
            logger.warning(f"Could not write score file {self.path}: {e}")
