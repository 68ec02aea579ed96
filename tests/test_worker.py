import pytest

from tictactoi.ai.engine import AIOpponent
from tictactoi.ai.worker import AIWorker
from tictactoi.game.board import Board
from tictactoi.game.errors import InvalidStateError
from tictactoi.game.state_machine import GameStateMachine
from tictactoi.models.enums import Difficulty, GameMode, Mark, MoveOutcome, Phase

X, O = Mark.FIRST, Mark.SECOND


@pytest.fixture
def worker():
    w = AIWorker()
    yield w
    w.shutdown()


def test_submit_and_drain(worker):
    request = worker.submit(Board.from_string("XX_OO____"), Difficulty.MEDIUM, O, X)
    assert request.snapshot.frozen
    assert worker.outstanding is request
    assert worker.wait(timeout=5)

    responses = worker.drain()
    assert len(responses) == 1
    assert responses[0].move == (1, 2)
    assert worker.is_current(responses[0])
    worker.settle(responses[0])
    assert worker.outstanding is None
    assert worker.drain() == []


def test_request_ids_increase(worker):
    first = worker.submit(Board(), Difficulty.EASY, O, X, seed=1)
    second = worker.submit(Board(), Difficulty.EASY, O, X, seed=2)
    assert second.request_id > first.request_id
    assert worker.outstanding is second


def test_snapshot_is_detached_from_live_board(worker):
    live = Board.from_string("X________")
    request = worker.submit(live, Difficulty.EASY, O, X)
    live.set(1, 1, O)
    assert request.snapshot.get(1, 1) is None


def test_superseded_running_request_is_reported_stale(gated_opponent):
    worker = AIWorker(opponent=gated_opponent)
    try:
        first = worker.submit(Board(), Difficulty.EASY, O, X, seed=1)
        assert gated_opponent.started.wait(timeout=5)
        second = worker.submit(Board.from_string("X________"), Difficulty.EASY, O, X, seed=2)
        gated_opponent.gate.set()
        assert worker.wait(timeout=5)

        responses = {r.request.request_id: r for r in worker.drain()}
        assert not worker.is_current(responses[first.request_id])
        assert worker.is_current(responses[second.request_id])
    finally:
        worker.shutdown()


def test_queued_request_is_cancelled_when_superseded(gated_opponent):
    worker = AIWorker(opponent=gated_opponent)
    try:
        worker.submit(Board(), Difficulty.EASY, O, X)
        assert gated_opponent.started.wait(timeout=5)
        queued = worker.submit(Board(), Difficulty.EASY, O, X)
        queued_future = worker.future
        latest = worker.submit(Board(), Difficulty.EASY, O, X)
        assert queued_future.cancelled()
        gated_opponent.gate.set()
        worker.wait(timeout=5)
        ids = {r.request.request_id for r in worker.drain()}
        assert queued.request_id not in ids
        assert latest.request_id in ids
    finally:
        worker.shutdown()


def test_failed_computation_is_reported():
    class BrokenOpponent(AIOpponent):
        def select_move(self, *args, **kwargs):
            raise RuntimeError("boom")

    worker = AIWorker(opponent=BrokenOpponent())
    try:
        worker.submit(Board(), Difficulty.EASY, O, X)
        worker.wait(timeout=5)
        (response,) = worker.drain()
        assert response.move is None
        assert isinstance(response.error, RuntimeError)
    finally:
        worker.shutdown()


# ----- delivery through the state machine -----

def test_computer_replies_after_human_move(scripted_rng):
    notices = []
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.MEDIUM,
                          rng=scripted_rng(), on_computer_move=notices.append) as game:
        assert game.human_mark is X
        game.apply_move(0, 0)
        assert game.is_computer_turn()
        with pytest.raises(InvalidStateError):
            game.apply_move(1, 1)

        result = game.wait_for_computer(timeout=5)
        assert result.move.player is O
        assert game.current_player is X
        assert len(notices) == 1 and notices[0].applied
        assert notices[0].result == result


def test_computer_moves_first_when_drawn_to_start(scripted_rng):
    # Starting player FIRST, human SECOND: the computer opens
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.HARD,
                          rng=scripted_rng(X, O)) as game:
        assert game.computer_mark is X
        assert game.is_computer_turn()
        result = game.wait_for_computer(timeout=30)
        assert result.move.cell == (0, 0)
        assert game.current_player is O


def test_stale_result_from_previous_round_is_dropped(scripted_rng, gated_opponent):
    notices = []
    worker = AIWorker(opponent=gated_opponent)
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.EASY,
                          worker=worker, rng=scripted_rng(X, O),
                          on_computer_move=notices.append) as game:
        first_request = worker.outstanding
        assert gated_opponent.started.wait(timeout=5)

        game.reset_round()
        second_request = worker.outstanding
        assert second_request.request_id != first_request.request_id

        gated_opponent.gate.set()
        result = game.wait_for_computer(timeout=5)

        assert [n.request_id for n in notices] == [first_request.request_id, second_request.request_id]
        assert notices[0].stale and not notices[0].applied
        assert notices[1].applied
        assert result is notices[1].result

        state = game.current_state()
        assert len(state.moves) == 1
        assert sum(1 for row in state.cells for cell in row if cell is not None) == 1


def test_results_are_not_applied_without_the_interactive_path(scripted_rng):
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.EASY,
                          rng=scripted_rng()) as game:
        game.apply_move(1, 1)
        game.worker.wait(timeout=5)
        # Computed, but not applied until the owner drains
        assert len(game.current_state().moves) == 1
        notices = game.process_ai_results()
        assert len(notices) == 1 and notices[0].applied
        assert len(game.current_state().moves) == 2


def test_switching_to_friend_mode_discards_pending_move(scripted_rng, gated_opponent):
    worker = AIWorker(opponent=gated_opponent)
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.EASY,
                          worker=worker, rng=scripted_rng(X, O)) as game:
        assert gated_opponent.started.wait(timeout=5)
        pending = worker.future
        game.start_new_round(GameMode.FRIEND)
        gated_opponent.gate.set()
        pending.exception(timeout=5)

        notices = game.process_ai_results()
        assert len(notices) == 1 and notices[0].stale
        assert game.current_state().moves == ()


def test_hard_computer_does_not_lose_before_the_board_fills(scripted_rng):
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.HARD,
                          rng=scripted_rng()) as game:
        # Human X plays a naive row-major game until the round ends or the board re-opens
        results = []
        while not results or results[-1].outcome is MoveOutcome.CONTINUE:
            if game.is_computer_turn():
                results.append(game.wait_for_computer(timeout=30))
            else:
                row, col = game.legal_moves()[0]
                results.append(game.apply_move(row, col))

        assert game.phase is Phase.WON or results[-1].outcome is MoveOutcome.DRAW_RECOVERED
        assert game.current_state().winner in (None, O)


def test_human_move_on_computer_turn_leaves_state_unchanged(scripted_rng, gated_opponent):
    worker = AIWorker(opponent=gated_opponent)
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.EASY,
                          worker=worker, rng=scripted_rng(X, O)) as game:
        before = game.current_state()
        with pytest.raises(InvalidStateError) as info:
            game.apply_move(1, 1)
        assert not info.value.transitioning
        assert game.current_state() == before
        gated_opponent.gate.set()


def test_result_arriving_mid_move_is_kept_for_the_next_drain(scripted_rng, monkeypatch):
    notices = []
    with GameStateMachine(mode=GameMode.VS_COMPUTER, difficulty=Difficulty.EASY,
                          rng=scripted_rng(), on_computer_move=notices.append) as game:
        game.apply_move(0, 0)
        game.worker.wait(timeout=5)

        apply = game._apply
        calls = []

        def resolving_once(row, col, human=False):
            calls.append((row, col))
            if len(calls) == 1:
                raise InvalidStateError("Previous move is still resolving", Phase.IN_PROGRESS,
                                        transitioning=True)
            return apply(row, col, human)

        monkeypatch.setattr(game, "_apply", resolving_once)

        first = game.process_ai_results()
        assert len(first) == 1 and not first[0].applied
        assert first[0].error.transitioning
        assert len(game.current_state().moves) == 1

        second = game.process_ai_results()
        assert len(second) == 1 and second[0].applied
        assert second[0].request_id == first[0].request_id
        assert len(game.current_state().moves) == 2
        assert notices == first + second
