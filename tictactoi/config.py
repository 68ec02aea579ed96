"""
Runtime configuration for the console tools.

Values come from, in increasing priority: the defaults below, environment
variables (a .env file in the working directory is loaded first) and
keyword overrides such as parsed command-line flags.
"""
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from dotenv import load_dotenv

from .models.enums import Difficulty, GameMode

ENV_PREFIX = 'TICTACTOI_'
TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


@dataclass(frozen=True)
class GameConfig:
    """
    Settings shared by the move suggester and the console game.

    Attributes:
        score_file: JSON file holding the persisted scores
        difficulty: Computer strength
        mode: FRIEND or VS_COMPUTER
        seed: Seed for every random choice, None for nondeterministic play
        enable_logging: Whether to print engine and game logs
    """
    DEFAULT_SCORE_FILE = '~/.tictactoi_scores.json'

    score_file: str = DEFAULT_SCORE_FILE
    difficulty: Difficulty = Difficulty.HARD
    mode: GameMode = GameMode.VS_COMPUTER
    seed: Optional[int] = None
    enable_logging: bool = False

    @classmethod
    def from_env(cls, environ=None, load_dotenv_file: bool = True, **overrides) -> 'GameConfig':
        """
        Build a config from environment variables and overrides.

        Overrides set to None are ignored, so argparse results can be passed
        straight through.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        if environ is None:
            if load_dotenv_file:
                load_dotenv()
            environ = os.environ

        values = {}
        raw = environ.get(ENV_PREFIX + 'SCORE_FILE')
        if raw:
            values['score_file'] = raw

        raw = environ.get(ENV_PREFIX + 'DIFFICULTY')
        if raw:
            values['difficulty'] = _parse_enum(Difficulty, raw, ENV_PREFIX + 'DIFFICULTY')

        raw = environ.get(ENV_PREFIX + 'MODE')
        if raw:
            values['mode'] = _parse_enum(GameMode, raw, ENV_PREFIX + 'MODE')

        raw = environ.get(ENV_PREFIX + 'SEED')
        if raw:
            try:
                values['seed'] = int(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}SEED must be an integer, got '{raw}'") from None

        raw = environ.get(ENV_PREFIX + 'LOG')
        if raw is not None:
            values['enable_logging'] = _parse_bool(raw, ENV_PREFIX + 'LOG')

        config = cls(**values)
        known = {f.name for f in fields(cls)}
        return replace(config, **{k: v for k, v in overrides.items() if k in known and v is not None})

    @property
    def score_path(self) -> str:
        return os.path.expanduser(self.score_file)


def _parse_enum(enum_cls, raw: str, name: str):
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        choices = ', '.join(member.value for member in enum_cls)
        raise ValueError(f"{name} must be one of {choices}, got '{raw}'") from None


def _parse_bool(raw: str, name: str) -> bool:
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got '{raw}'")
