"""
Background computation of computer moves.

The owner (the state machine, on the interactive path) submits an
AIRequest holding a frozen board snapshot. The computation runs on a
single worker thread and its AIResponse is queued for the owner to pick
up. Every request carries an id from a monotonically increasing counter;
only the latest submitted id is outstanding, and the owner compares ids
when it drains the queue. Nothing but the immutable request and response
values crosses the thread boundary.
"""
import itertools
import logging
import queue
import random
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..models.enums import Difficulty, Mark
from ..game.board import Board
from .engine import AIDecision, AIOpponent

Cell = Tuple[int, int]

logger = logging.getLogger('tictactoi.ai')


@dataclass(frozen=True)
class AIRequest:
    """
    One request for a computer move. Never mutated after it is issued.

    Attributes:
        request_id: Monotonically increasing token
        snapshot: Frozen copy of the board at issue time
        difficulty: Strategy to use
        computer_mark: Mark the computer plays
        human_mark: Mark the human plays
        round_id: Round the request was issued in
        turn_id: State-machine turn counter at issue time
        seed: Seed for the strategy's random source
    """
    request_id: int
    snapshot: Board
    difficulty: Difficulty
    computer_mark: Mark
    human_mark: Mark
    round_id: int = 0
    turn_id: int = 0
    seed: Optional[int] = None


@dataclass(frozen=True)
class AIResponse:
    """
    Result of an AIRequest.

    Attributes:
        request: The request this answers
        move: Computed cell, None if there was none or the computation failed
        decision: Full decision record when the computation succeeded
        error: Exception raised by the computation, if any
    """
    request: AIRequest
    move: Optional[Cell] = None
    decision: Optional[AIDecision] = None
    error: Optional[BaseException] = None


class AIWorker:
    """
    Runs AIRequests off the interactive path, one outstanding at a time.

    Submitting a new request supersedes the previous one. A superseded
    request that has not started is cancelled; one that is already running
    completes and its response is reported stale by is_current().
    """

    def __init__(self, opponent: Optional[AIOpponent] = None, executor: Optional[Executor] = None):
        """
        Initialize the worker.

        Args:
            opponent: Opponent that computes moves (a fresh one by default)
            executor: Executor to run on; a single-thread pool is created and owned if omitted
        """
        self.opponent = opponent or AIOpponent()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix='tictactoi-ai')
        self._responses: 'queue.SimpleQueue[AIResponse]' = queue.SimpleQueue()
        self._ids = itertools.count(1)
        self._outstanding: Optional[AIRequest] = None
        self._future: Optional[Future] = None

    @property
    def outstanding(self) -> Optional[AIRequest]:
        return self._outstanding

    @property
    def future(self) -> Optional[Future]:
        """Future of the outstanding request."""
        return self._future

    def submit(self, snapshot: Board, difficulty: Difficulty, computer_mark: Mark,
               human_mark: Mark, round_id: int = 0, turn_id: int = 0,
               seed: Optional[int] = None) -> AIRequest:
        """
        Issue a new request, superseding any outstanding one.

        Returns:
            The issued request
        """
        request = AIRequest(
            request_id=next(self._ids),
            snapshot=snapshot if snapshot.frozen else snapshot.snapshot(),
            difficulty=difficulty,
            computer_mark=computer_mark,
            human_mark=human_mark,
            round_id=round_id,
            turn_id=turn_id,
            seed=seed,
        )
        self.cancel()
        self._outstanding = request

        future = self._executor.submit(self._run, request)
        self._future = future
        logger.debug(f"Issued AI request {request.request_id} ({difficulty.value})")
        return request

    def _run(self, request: AIRequest) -> AIDecision:
        # The response is queued before the future completes, so wait() never
        # returns ahead of it.
        try:
            decision = self.opponent.select_move(
                request.snapshot, request.difficulty, request.computer_mark,
                request.human_mark, random.Random(request.seed)
            )
        except Exception as e:
            logger.warning(f"AI request {request.request_id} failed: {e}")
            self._responses.put(AIResponse(request=request, error=e))
            raise
        self._responses.put(AIResponse(request=request, move=decision.move, decision=decision))
        return decision

    def cancel(self):
        """Invalidate the outstanding request, if any."""
        if self._outstanding is None:
            return
        if self._future is not None and self._future.cancel():
            logger.debug(f"Cancelled AI request {self._outstanding.request_id} before it started")
        self._outstanding = None
        self._future = None

    def is_current(self, response: AIResponse) -> bool:
        """Whether a response answers the outstanding request."""
        return (
            self._outstanding is not None
            and response.request.request_id == self._outstanding.request_id
        )

    def settle(self, response: AIResponse):
        """Mark the outstanding request as answered."""
        if self.is_current(response):
            self._outstanding = None
            self._future = None

    def requeue(self, response: AIResponse):
        """Put a drained response back for the next drain()."""
        self._responses.put(response)

    def drain(self) -> List[AIResponse]:
        """All responses that arrived since the last drain, oldest first."""
        responses = []
        while True:
            try:
                responses.append(self._responses.get_nowait())
            except queue.Empty:
                return responses

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the outstanding request's computation finishes.

        Returns:
            False if nothing was outstanding

        Raises:
            concurrent.futures.TimeoutError: If the computation outlasts timeout
        """
        future = self._future
        if future is None:
            return False
        future.exception(timeout=timeout)
        return True

    def shutdown(self, wait: bool = True):
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
