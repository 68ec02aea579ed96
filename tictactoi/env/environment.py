from typing import Optional
import random

import numpy as np
import gymnasium as gym

from ..models.enums import Difficulty, GameMode, Mark, MoveOutcome, Phase
from ..game.board import Board
from ..game.state_machine import GameStateMachine

CELLS = Board.TOTAL_CELLS


class TicTacToiEnv(gym.Env):
    """
    The game as seen by an agent playing the human's mark against the
    computer opponent. Observations are +1 for the agent's marks and -1
    for the opponent's. A drawn board re-opens instead of ending the
    episode, so long games are truncated after max_steps agent moves.
    """

    metadata = {"render_modes": ["human", "ansi"]}

    def __init__(self, difficulty: Difficulty = Difficulty.HARD, max_steps: int = 50,
                 render_mode: Optional[str] = None):
        super().__init__()
        self.difficulty = difficulty
        self.max_steps = max_steps
        self.render_mode = render_mode

        self.action_space = gym.spaces.Discrete(CELLS)
        self.observation_space = gym.spaces.Box(low=-1, high=1, shape=(CELLS,), dtype=np.int8)
        self.reward_win = 100
        self.reward_draw = 0
        self.reward_lose = -100

        self.game: Optional[GameStateMachine] = None
        self.steps = 0

    def action_mask(self) -> np.ndarray:
        state = self.game.current_state()
        return np.array([
            1 if state.get(i // 3, i % 3) is None and state.phase is Phase.IN_PROGRESS else 0
            for i in range(CELLS)
        ], dtype=np.int8)

    def reset(self, seed=None, options=None):
        super().reset(seed=seed, options=options)
        if self.game is not None:
            self.game.close()
        self.game = GameStateMachine(
            mode=GameMode.VS_COMPUTER,
            difficulty=self.difficulty,
            rng=random.Random(int(self.np_random.integers(0, 2**32))),
        )
        self.steps = 0
        # The computer may have been drawn to move first.
        self._play_computer()
        info = {}
        info["action_mask"] = self.action_mask()
        info["agent_mark"] = self.game.human_mark.value
        return self._get_obs(), info

    def _play_computer(self):
        # A re-opened board hands the turn to First, which may be the computer again.
        results = []
        while self.game.is_computer_turn():
            result = self.game.wait_for_computer()
            if result is None:
                break
            results.append(result)
        return results

    def _get_obs(self):
        state = self.game.current_state()
        agent = self.game.human_mark
        obs = np.zeros(CELLS, dtype=np.int8)
        for i in range(CELLS):
            mark = state.get(i // 3, i % 3)
            if mark is not None:
                obs[i] = 1 if mark is agent else -1
        return obs

    def _is_valid_action(self, action):
        return bool(self.action_mask()[action])

    def step(self, action):
        action = int(action)
        if not self._is_valid_action(action):
            raise ValueError(f"Invalid action: {action}")

        self.steps += 1
        row, col = divmod(action, 3)
        results = [self.game.apply_move(row, col)]
        results.extend(self._play_computer())

        info = {}
        info["action_mask"] = self.action_mask()
        info["outcomes"] = [r.outcome.value for r in results]

        last = results[-1]
        if last.outcome is MoveOutcome.WIN:
            reward = self.reward_win if last.winner is self.game.human_mark else self.reward_lose
            return self._get_obs(), reward, True, False, info

        truncated = self.steps >= self.max_steps
        if any(r.outcome is MoveOutcome.DRAW_RECOVERED for r in results):
            return self._get_obs(), self.reward_draw, False, truncated, info
        return self._get_obs(), 0, False, truncated, info

    def render(self):
        text = f"{Board.from_rows(self.game.current_state().cells)}\n{self.game.status_text()}"
        if self.render_mode == "human":
            print(text)
        return text

    def close(self):
        if self.game is not None:
            self.game.close()
            self.game = None
