"""
Computer opponent for tic-tac-toe.

This module dispatches a move request to one of three strategies (random,
one-move tactics, exhaustive minimax), records decision metrics and logs
each decision.
"""
import logging
import random
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Tuple

from ..models.enums import Difficulty, Mark
from ..game.board import Board
from ..game.win_detector import WinDetector
from .search.minimax import SearchAlgorithm

Cell = Tuple[int, int]

LOGGER_NAME = 'tictactoi'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a console handler to the package logger if it has none."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


@dataclass
class AIPerformanceMetrics:
    """
    Performance metrics for one decision.

    Attributes:
        move_time: Time taken to select the move (seconds)
        nodes_evaluated: Positions visited (1 per candidate for the shallow tiers)
        evaluation_score: Minimax value for Hard, None otherwise
    """
    move_time: float
    nodes_evaluated: int
    evaluation_score: Optional[int] = None


@dataclass
class AIDecision:
    """
    A computed move with the data that explains it.

    Attributes:
        move: The selected cell, None when the board had no empty cell
        difficulty: Strategy that produced it
        metrics: Performance metrics for this decision
        reasoning: Human-readable explanation of the decision
    """
    move: Optional[Cell]
    difficulty: Difficulty
    metrics: AIPerformanceMetrics
    reasoning: str


def compute_move(snapshot: Board, difficulty: Difficulty, computer_mark: Mark,
                 human_mark: Mark, rng: Optional[random.Random] = None) -> Optional[Cell]:
    """
    Pick a move for the computer. Depends only on its arguments.

    Args:
        snapshot: Board to move on; never modified
        difficulty: EASY, MEDIUM or HARD
        computer_mark: Mark the computer plays
        human_mark: Mark the human plays
        rng: Random source for EASY and the MEDIUM fallback

    Returns:
        (row, col), or None if the board has no empty cell
    """
    return _decide(snapshot, difficulty, computer_mark, human_mark, rng).move


def _decide(board: Board, difficulty: Difficulty, computer_mark: Mark,
            human_mark: Mark, rng: Optional[random.Random]) -> AIDecision:
    start_time = time.time()
    rng = rng or random.Random()
    detector = WinDetector()
    moves = detector.legal_moves(board)

    if not moves:
        return AIDecision(None, difficulty, AIPerformanceMetrics(time.time() - start_time, 0),
                          "No legal moves available")

    if difficulty is Difficulty.HARD:
        result = SearchAlgorithm().search(board, computer_mark, human_mark)
        return AIDecision(
            move=result.best_move,
            difficulty=difficulty,
            metrics=AIPerformanceMetrics(
                move_time=time.time() - start_time,
                nodes_evaluated=result.nodes_evaluated,
                evaluation_score=result.score,
            ),
            reasoning=_describe_search(result.score, result.principal_variation),
        )

    if difficulty is Difficulty.MEDIUM:
        wins = detector.find_immediate_wins(board, computer_mark)
        if wins:
            return AIDecision(wins[0], difficulty,
                              AIPerformanceMetrics(time.time() - start_time, len(moves)),
                              "Winning move")

        blocks = detector.find_immediate_wins(board, human_mark)
        if blocks:
            return AIDecision(blocks[0], difficulty,
                              AIPerformanceMetrics(time.time() - start_time, len(moves)),
                              "Blocking opponent's win")

    move = rng.choice(moves)
    reasoning = "Random cell selected" if difficulty is Difficulty.EASY \
        else "No tactic available, random cell selected"
    return AIDecision(move, difficulty, AIPerformanceMetrics(time.time() - start_time, 1), reasoning)


def _describe_search(score: int, principal_variation: List[Cell]) -> str:
    if score > 0:
        outcome = f"Forced win in {SearchAlgorithm.WIN_SCORE - score} plies"
    elif score < 0:
        outcome = f"Loss in {SearchAlgorithm.WIN_SCORE + score} plies against best play"
    else:
        outcome = "Draw with best play"
    return f"{outcome}, expected line {principal_variation}"


class AIOpponent:
    """
    Computer player that records and logs its decisions.

    select_move() may be called from any thread. Decision history is the
    only state kept between calls and is guarded by a lock.
    """

    HISTORY_LIMIT = 1000

    def __init__(self, enable_logging: bool = False, history_limit: int = HISTORY_LIMIT):
        """
        Initialize the opponent.

        Args:
            enable_logging: Whether to attach a console handler for decision logs
            history_limit: Most recent decisions kept in decision_history
        """
        self.enable_logging = enable_logging
        self.logger = logging.getLogger(f'{LOGGER_NAME}.ai')

        self.decision_history: Deque[AIDecision] = deque(maxlen=history_limit)
        self.total_decisions = 0
        self.total_time = 0.0
        self._history_lock = threading.Lock()

        if self.enable_logging:
            setup_logging()

    def compute_move(self, snapshot: Board, difficulty: Difficulty, computer_mark: Mark,
                     human_mark: Mark, rng: Optional[random.Random] = None) -> Optional[Cell]:
        """Pick a move; see select_move() for the full decision."""
        return self.select_move(snapshot, difficulty, computer_mark, human_mark, rng).move

    def select_move(self, snapshot: Board, difficulty: Difficulty, computer_mark: Mark,
                    human_mark: Mark, rng: Optional[random.Random] = None) -> AIDecision:
        """
        Pick a move for the computer and record how it was chosen.

        Args:
            snapshot: Board to move on; never modified
            difficulty: EASY, MEDIUM or HARD
            computer_mark: Mark the computer plays
            human_mark: Mark the human plays
            rng: Random source for EASY and the MEDIUM fallback

        Returns:
            AIDecision whose move is None only when the board is full
        """
        decision = _decide(snapshot, difficulty, computer_mark, human_mark, rng)

        with self._history_lock:
            self.decision_history.append(decision)
            self.total_decisions += 1
            self.total_time += decision.metrics.move_time

        self._log_decision(decision)
        return decision

    def _log_decision(self, decision: AIDecision):
        """Log AI decision for performance monitoring."""
        score = decision.metrics.evaluation_score
        self.logger.info(
            f"{decision.difficulty.value.upper()} - Move: {decision.move}, "
            f"Time: {decision.metrics.move_time:.3f}s, "
            f"Nodes: {decision.metrics.nodes_evaluated}, "
            f"Score: {score if score is not None else '-'}, "
            f"Reasoning: {decision.reasoning}"
        )

    def get_performance_summary(self) -> Dict[str, Any]:
        """
        Get summary of AI performance statistics.

        total_decisions and average_time cover every decision; total_nodes
        and by_difficulty cover the decisions still in decision_history.

        Returns:
            Dictionary with performance metrics
        """
        with self._history_lock:
            history = list(self.decision_history)
            total_decisions = self.total_decisions
            total_time = self.total_time

        if not total_decisions:
            return {
                'total_decisions': 0,
                'average_time': 0.0,
                'total_nodes': 0,
                'by_difficulty': {},
            }

        by_difficulty: Dict[str, int] = {}
        for decision in history:
            key = decision.difficulty.value
            by_difficulty[key] = by_difficulty.get(key, 0) + 1

        return {
            'total_decisions': total_decisions,
            'average_time': total_time / total_decisions,
            'total_nodes': sum(d.metrics.nodes_evaluated for d in history),
            'by_difficulty': by_difficulty,
        }

    def reset_performance_tracking(self):
        """Reset all performance tracking data."""
        with self._history_lock:
            self.decision_history.clear()
            self.total_decisions = 0
            self.total_time = 0.0
