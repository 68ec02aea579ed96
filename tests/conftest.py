import os
import sys
import threading

import pytest

# Add repo root to path for direct import
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tictactoi.ai.engine import AIOpponent


class ScriptedRng:
    """Stands in for random.Random: choice() returns the scripted picks in turn."""

    def __init__(self, *picks):
        self.picks = list(picks)
        self.calls = 0

    def choice(self, seq):
        if not self.picks:
            return seq[0]
        value = self.picks[self.calls % len(self.picks)]
        self.calls += 1
        return value

    def getrandbits(self, k):
        return 0


class GatedOpponent(AIOpponent):
    """Blocks every computation until the gate is opened."""

    def __init__(self):
        super().__init__()
        self.gate = threading.Event()
        self.started = threading.Event()

    def select_move(self, *args, **kwargs):
        self.started.set()
        self.gate.wait(timeout=5)
        return super().select_move(*args, **kwargs)


@pytest.fixture
def scripted_rng():
    return ScriptedRng


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith('TICTACTOI_'):
            monkeypatch.delenv(name)


@pytest.fixture
def gated_opponent():
    opponent = GatedOpponent()
    yield opponent
    opponent.gate.set()
