"""
Game state machine for tic-tac-toe.

GameStateMachine owns the board, the move ledger and the turn. All moves,
human or computer, go through the same commit path. Computer moves are
computed by an AIWorker on a background thread and applied only when the
interactive path calls process_ai_results() (or wait_for_computer()).
"""
import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from ..models.enums import Difficulty, GameMode, Mark, MoveOutcome, Phase
from ..models.results import ComputerMoveNotice, GameState, MoveResult
from ..models.win_line import WinLine
from ..ai.worker import AIResponse, AIWorker
from .board import Board
from .errors import GameError, IllegalMoveError, InvalidStateError
from .ledger import MoveLedger
from .scores import InMemoryScoreStore, ScoreStore
from .win_detector import WinDetector

logger = logging.getLogger('tictactoi.game')

MoveListener = Callable[[MoveResult], None]
ComputerMoveCallback = Callable[[ComputerMoveNotice], None]


class GameStateMachine:
    """
    Authoritative model of one match: rounds, turns, wins and draw recovery.

    States are IN_PROGRESS and WON. A drawn board never ends the round:
    each player's oldest mark is removed and First moves next. While a
    move is being resolved the transition latch is held and any other
    apply_move call fails with InvalidStateError.
    """

    def __init__(self, mode: GameMode = GameMode.FRIEND,
                 difficulty: Difficulty = Difficulty.HARD,
                 score_store: Optional[ScoreStore] = None,
                 worker: Optional[AIWorker] = None,
                 rng: Optional[random.Random] = None,
                 on_computer_move: Optional[ComputerMoveCallback] = None,
                 auto_start: bool = True):
        """
        Initialize the state machine.

        Args:
            mode: FRIEND or VS_COMPUTER
            difficulty: Computer strength for VS_COMPUTER
            score_store: Where win counts are persisted (in memory by default)
            worker: Background worker for computer moves (created lazily)
            rng: Random source for who starts and which mark the human holds
            on_computer_move: Called on the interactive path for every delivered
                or discarded computer result
            auto_start: Start the first round immediately
        """
        self.mode = mode
        self.difficulty = difficulty
        self.score_store = score_store or InMemoryScoreStore()
        self.on_computer_move = on_computer_move

        self._worker = worker
        self._rng = rng or random.Random()
        self._detector = WinDetector()
        self._listeners: List[MoveListener] = []

        self._board = Board()
        self._ledger = MoveLedger()
        self._current_player = Mark.FIRST
        self._phase = Phase.IN_PROGRESS
        self._win_line: Optional[WinLine] = None
        self._winner: Optional[Mark] = None
        self._human_mark: Optional[Mark] = None
        self._computer_mark: Optional[Mark] = None
        self._round_id = 0
        self._turn_id = 0

        # Guards the phase/latch check-and-set in apply_move.
        self._state_lock = threading.Lock()
        self._transitioning = False

        self._scores: Dict[Mark, int] = {
            mark: self.score_store.load_score(mark) for mark in Mark
        }

        if auto_start:
            self.reset_round()

    # ----- queries -----

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def current_player(self) -> Mark:
        return self._current_player

    @property
    def human_mark(self) -> Optional[Mark]:
        return self._human_mark

    @property
    def computer_mark(self) -> Optional[Mark]:
        return self._computer_mark

    @property
    def transitioning(self) -> bool:
        return self._transitioning

    @property
    def worker(self) -> AIWorker:
        if self._worker is None:
            self._worker = AIWorker()
        return self._worker

    def is_computer_turn(self) -> bool:
        return (
            self.mode is GameMode.VS_COMPUTER
            and self._phase is Phase.IN_PROGRESS
            and self._current_player is self._computer_mark
        )

    def legal_moves(self):
        return self._detector.legal_moves(self._board)

    def current_state(self) -> GameState:
        """Read-only snapshot of the round for rendering."""
        with self._state_lock:
            vs_computer = self.mode is GameMode.VS_COMPUTER
            return GameState(
                cells=self._board.rows(),
                moves=tuple(self._ledger.moves()),
                current_player=self._current_player,
                phase=self._phase,
                mode=self.mode,
                winner=self._winner,
                line=self._win_line,
                difficulty=self.difficulty if vs_computer else None,
                human_mark=self._human_mark,
                computer_mark=self._computer_mark,
                transitioning=self._transitioning,
                round_id=self._round_id,
            )

    def scores(self) -> Dict[Mark, int]:
        return dict(self._scores)

    def status_text(self) -> str:
        if self._phase is Phase.WON:
            return f"{self._winner.value} wins! Tap to restart"
        return f"{self._current_player.value} turn"

    def score_text(self) -> str:
        return f"Score  X: {self._scores[Mark.FIRST]}   O: {self._scores[Mark.SECOND]}"

    def add_listener(self, listener: MoveListener):
        """Register a callback run for each committed move while the latch is held."""
        self._listeners.append(listener)

    def remove_listener(self, listener: MoveListener):
        self._listeners.remove(listener)

    # ----- rounds and scores -----

    def start_new_round(self, mode: Optional[GameMode] = None,
                        difficulty: Optional[Difficulty] = None):
        """Switch mode and/or difficulty, then reset the round."""
        if mode is not None:
            self.mode = mode
        if difficulty is not None:
            self.difficulty = difficulty
        self.reset_round()

    def reset_round(self):
        """
        Clear the board and ledger and pick who starts.

        In VS_COMPUTER mode the human's mark is also drawn at random. Any
        outstanding computer request is invalidated.
        """
        if self._worker is not None:
            self._worker.cancel()

        with self._state_lock:
            self._board = Board()
            self._ledger.clear()
            self._phase = Phase.IN_PROGRESS
            self._winner = None
            self._win_line = None
            self._current_player = self._rng.choice(list(Mark))
            if self.mode is GameMode.VS_COMPUTER:
                self._human_mark = self._rng.choice(list(Mark))
                self._computer_mark = self._human_mark.opposite()
            else:
                self._human_mark = None
                self._computer_mark = None
            self._round_id += 1
            self._turn_id += 1

        logger.info(
            f"Round {self._round_id} started ({self.mode.value}"
            + (f", {self.difficulty.value}, human {self._human_mark.value}"
               if self.mode is GameMode.VS_COMPUTER else "")
            + f"), {self._current_player.value} moves first"
        )
        self._request_computer_move()

    def reset_scores(self):
        """Zero and persist both scores."""
        for mark in Mark:
            self._scores[mark] = 0
            self._save_score(mark)
        logger.info("Scores reset")

    def handle_tap(self, row: int, col: int) -> Optional[MoveResult]:
        """
        Presentation entry point: restart a finished round, otherwise move.

        Returns:
            The MoveResult, or None if the tap started a new round
        """
        if self._phase is Phase.WON:
            self.reset_round()
            return None
        return self.apply_move(row, col)

    # ----- moves -----

    def apply_move(self, row: int, col: int) -> MoveResult:
        """
        Place the current player's mark. The single mutation entry point.

        Raises:
            InvalidStateError: If the round is over, a move is still resolving,
                or the computer is to move
            IllegalMoveError: If the cell is occupied or out of range
        """
        return self._apply(row, col, human=True)

    def _apply(self, row: int, col: int, human: bool = False) -> MoveResult:
        with self._state_lock:
            if self._phase is not Phase.IN_PROGRESS:
                logger.debug(f"Rejected move ({row}, {col}): round is over")
                raise InvalidStateError("Round is already over", self._phase)
            if human and self.is_computer_turn():
                logger.debug(f"Rejected move ({row}, {col}): computer to move")
                raise InvalidStateError("Waiting for the computer's move", self._phase)
            if self._transitioning:
                logger.debug(f"Rejected move ({row}, {col}): previous move still resolving")
                raise InvalidStateError("Previous move is still resolving", self._phase, transitioning=True)
            occupant = self._board.get(row, col)
            if occupant is not None:
                logger.debug(f"Rejected move ({row}, {col}): occupied by {occupant.value}")
                raise IllegalMoveError(f"Cell ({row}, {col}) is already occupied by {occupant.value}", row, col)
            self._transitioning = True

        try:
            result = self._commit(row, col)
            self._notify(result)
        finally:
            with self._state_lock:
                self._transitioning = False

        self._request_computer_move()
        return result

    def _commit(self, row: int, col: int) -> MoveResult:
        player = self._current_player
        self._board.set(row, col, player)
        move = self._ledger.record(row, col, player)
        self._turn_id += 1
        logger.debug(f"Applied {move}")

        win_result = self._detector.check_win(self._board)
        if win_result is not None:
            self._phase = Phase.WON
            self._winner = win_result.winner
            self._win_line = win_result.line
            self._scores[win_result.winner] += 1
            self._save_score(win_result.winner)
            logger.info(f"{win_result} ({self.score_text()})")
            return MoveResult(MoveOutcome.WIN, move, winner=win_result.winner, line=win_result.line)

        if self._detector.is_draw(self._board):
            removed = self._recover_from_draw()
            return MoveResult(MoveOutcome.DRAW_RECOVERED, move, removed=removed)

        self._current_player = player.opposite()
        return MoveResult(MoveOutcome.CONTINUE, move)

    def _save_score(self, mark: Mark):
        # A failed write never undoes the move that earned the point.
        try:
            self.score_store.save_score(mark, self._scores[mark])
        except OSError as e:
            logger.warning(f"Could not save score for {mark.value}: {e}")

    def _recover_from_draw(self):
        """Remove each player's oldest mark, First then Second, and hand the turn to First."""
        removed = []
        for mark in (Mark.FIRST, Mark.SECOND):
            earliest = self._ledger.earliest(mark)
            if earliest is None:
                continue
            self._ledger.remove(earliest)
            self._board.clear(earliest.row, earliest.col)
            removed.append(earliest)

        self._current_player = Mark.FIRST
        logger.info(f"Draw: re-opened {[str(m) for m in removed]}, {Mark.FIRST.value} to move")
        return tuple(removed)

    def _notify(self, result: MoveResult):
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                logger.exception(f"Move listener failed for {result.move}")

    # ----- computer moves -----

    def _request_computer_move(self):
        if not self.is_computer_turn():
            return
        request = self.worker.submit(
            self._board.snapshot(),
            self.difficulty,
            self._computer_mark,
            self._human_mark,
            round_id=self._round_id,
            turn_id=self._turn_id,
            seed=self._rng.getrandbits(32),
        )
        logger.debug(f"Computer to move, request {request.request_id}")

    def _is_stale(self, response: AIResponse) -> bool:
        request = response.request
        return (
            not self.worker.is_current(response)
            or request.round_id != self._round_id
            or request.turn_id != self._turn_id
            or not self.is_computer_turn()
        )

    def process_ai_results(self) -> List[ComputerMoveNotice]:
        """
        Apply finished computer moves. Call from the interactive path.

        Responses to superseded requests, or to a board that has moved on,
        are dropped without touching the board.

        Returns:
            One notice per response drained, in arrival order
        """
        if self._worker is None:
            return []

        notices = []
        for response in self._worker.drain():
            request_id = response.request.request_id
            if self._is_stale(response):
                outstanding = self._worker.outstanding
                logger.info(
                    f"Dropped stale AI result {request_id} "
                    f"(outstanding: {outstanding.request_id if outstanding else None})"
                )
                notice = ComputerMoveNotice(request_id, stale=True)
            elif response.move is None:
                self._worker.settle(response)
                notice = ComputerMoveNotice(request_id, error=response.error)
            else:
                notice = self._deliver(response)

            notices.append(notice)
            if self.on_computer_move is not None:
                self.on_computer_move(notice)
        return notices

    def _deliver(self, response: AIResponse) -> ComputerMoveNotice:
        request_id = response.request.request_id
        row, col = response.move
        try:
            result = self._apply(row, col)
        except GameError as e:
            if isinstance(e, InvalidStateError) and e.transitioning:
                # Called while a move is resolving: keep it for the next drain.
                logger.debug(f"Deferred AI result {request_id}: previous move still resolving")
                self._worker.requeue(response)
            else:
                logger.warning(f"Could not apply AI result {request_id}: {e}")
                self._worker.settle(response)
            return ComputerMoveNotice(request_id, error=e)

        self._worker.settle(response)
        return ComputerMoveNotice(request_id, result=result)

    def wait_for_computer(self, timeout: Optional[float] = None) -> Optional[MoveResult]:
        """
        Block until the outstanding computer move is ready, then apply it.

        Returns:
            The applied MoveResult, or None if no move was outstanding or it was dropped
        """
        if self._worker is None or not self._worker.wait(timeout):
            return None
        applied = None
        for notice in self.process_ai_results():
            if notice.result is not None:
                applied = notice.result
        return applied

    def close(self):
        """Stop the background worker."""
        if self._worker is not None:
            self._worker.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
