import logging

import pytest

from tictactoi.game.errors import IllegalMoveError, InvalidStateError
from tictactoi.game.scores import InMemoryScoreStore
from tictactoi.game.state_machine import GameStateMachine
from tictactoi.models.enums import Difficulty, GameMode, Mark, MoveOutcome, Phase
from tictactoi.models.win_line import WIN_LINES

# Fills the board without completing a line:
#   X O X
#   X O O
#   O X X
DRAW_SEQUENCE = [(0, 0), (1, 1), (0, 2), (0, 1), (2, 1), (2, 0), (1, 0), (1, 2), (2, 2)]


@pytest.fixture
def game(scripted_rng):
    machine = GameStateMachine(mode=GameMode.FRIEND, rng=scripted_rng())
    yield machine
    machine.close()


def play(machine, moves):
    return [machine.apply_move(row, col) for row, col in moves]


def test_round_starts_empty_with_first_to_move(game):
    state = game.current_state()
    assert state.phase is Phase.IN_PROGRESS
    assert state.current_player is Mark.FIRST
    assert state.moves == ()
    assert all(cell is None for row in state.cells for cell in row)
    assert game.status_text() == "X turn"


def test_moves_alternate(game):
    first, second = play(game, [(0, 0), (1, 1)])
    assert first.outcome is MoveOutcome.CONTINUE
    assert first.move.player is Mark.FIRST
    assert second.move.player is Mark.SECOND
    assert game.current_player is Mark.FIRST
    assert [m.sequence for m in game.current_state().moves] == [0, 1]


def test_concrete_scenario_legal_moves(game):
    play(game, [(0, 0), (1, 1), (0, 1), (2, 1)])
    moves = game.legal_moves()
    assert len(moves) == 5
    assert not {(0, 0), (1, 1), (0, 1), (2, 1)} & set(moves)


def test_win_ends_round_and_scores(scripted_rng):
    store = InMemoryScoreStore()
    with GameStateMachine(mode=GameMode.FRIEND, score_store=store,
                          rng=scripted_rng()) as game:
        results = play(game, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        result = results[-1]
        assert result.outcome is MoveOutcome.WIN
        assert result.winner is Mark.FIRST
        assert result.line is WIN_LINES[0]
        assert game.phase is Phase.WON
        assert game.scores() == {Mark.FIRST: 1, Mark.SECOND: 0}
        assert store.values == {'score_x_wins': 1}
        assert game.status_text() == "X wins! Tap to restart"
        assert game.score_text() == "Score  X: 1   O: 0"

        with pytest.raises(InvalidStateError):
            game.apply_move(2, 2)


def test_scores_are_loaded_from_store(scripted_rng):
    store = InMemoryScoreStore({'score_x_wins': 4, 'score_o_wins': 2})
    with GameStateMachine(score_store=store, rng=scripted_rng()) as game:
        assert game.scores() == {Mark.FIRST: 4, Mark.SECOND: 2}
        game.reset_scores()
        assert game.scores() == {Mark.FIRST: 0, Mark.SECOND: 0}
        assert store.values == {'score_x_wins': 0, 'score_o_wins': 0}


def test_occupied_cell_leaves_state_unchanged(game):
    play(game, [(0, 0), (1, 1)])
    before = game.current_state()
    with pytest.raises(IllegalMoveError):
        game.apply_move(1, 1)
    assert game.current_state() == before


def test_out_of_range_move_is_illegal(game):
    before = game.current_state()
    with pytest.raises(IllegalMoveError):
        game.apply_move(3, 0)
    assert game.current_state() == before


def test_state_is_checked_before_cell(game):
    play(game, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
    # Occupied cell on a finished round reports the round state
    with pytest.raises(InvalidStateError):
        game.apply_move(0, 0)


def test_draw_recovery_removes_oldest_move_of_each_player(game):
    results = play(game, DRAW_SEQUENCE)
    assert [r.outcome for r in results[:-1]] == [MoveOutcome.CONTINUE] * 8
    last = results[-1]
    assert last.outcome is MoveOutcome.DRAW_RECOVERED
    assert [m.cell for m in last.removed] == [(0, 0), (1, 1)]
    assert [m.player for m in last.removed] == [Mark.FIRST, Mark.SECOND]

    state = game.current_state()
    assert len(state.moves) == 7
    assert state.get(0, 0) is None
    assert state.get(1, 1) is None
    assert sum(1 for row in state.cells for cell in row if cell is not None) == 7
    assert state.phase is Phase.IN_PROGRESS
    assert state.current_player is Mark.FIRST
    assert game.legal_moves() == [(0, 0), (1, 1)]


def test_play_continues_after_draw_recovery(game):
    play(game, DRAW_SEQUENCE)
    result = game.apply_move(1, 1)
    assert result.outcome is MoveOutcome.CONTINUE
    assert result.move.player is Mark.FIRST
    assert game.current_player is Mark.SECOND
    # The next recovery uses ledger order, not board order
    result = game.apply_move(0, 0)
    assert result.outcome is MoveOutcome.DRAW_RECOVERED
    assert [m.cell for m in result.removed] == [(0, 2), (0, 1)]


def test_draw_recovery_hands_turn_to_first_even_when_second_started(scripted_rng):
    with GameStateMachine(mode=GameMode.FRIEND, rng=scripted_rng(Mark.SECOND)) as game:
        assert game.current_player is Mark.SECOND
        # Same draw pattern with the marks swapped
        results = play(game, DRAW_SEQUENCE)
        assert results[-1].outcome is MoveOutcome.DRAW_RECOVERED
        assert [m.player for m in results[-1].removed] == [Mark.FIRST, Mark.SECOND]
        assert [m.cell for m in results[-1].removed] == [(1, 1), (0, 0)]
        assert game.current_player is Mark.FIRST


def test_reentrant_move_from_listener_is_rejected(game):
    seen = []

    def listener(result):
        with pytest.raises(InvalidStateError) as info:
            game.apply_move(2, 2)
        seen.append((result.move.cell, info.value.transitioning, game.transitioning))

    game.add_listener(listener)
    game.apply_move(0, 0)
    assert seen == [((0, 0), True, True)]
    assert not game.transitioning
    assert game.current_state().get(2, 2) is None
    game.remove_listener(listener)


def test_failing_listener_does_not_break_the_move(game):
    def listener(result):
        raise RuntimeError("animation failed")

    game.add_listener(listener)
    result = game.apply_move(0, 0)
    assert result.outcome is MoveOutcome.CONTINUE
    assert not game.transitioning
    assert game.apply_move(1, 1).move.player is Mark.SECOND


def test_reset_round_clears_board(game):
    play(game, [(0, 0), (1, 1)])
    round_id = game.current_state().round_id
    game.reset_round()
    state = game.current_state()
    assert state.moves == ()
    assert state.round_id == round_id + 1
    assert game.legal_moves() == [(r, c) for r in range(3) for c in range(3)]


def test_handle_tap_restarts_finished_round(game):
    play(game, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
    assert game.handle_tap(2, 2) is None
    assert game.phase is Phase.IN_PROGRESS
    assert game.current_state().moves == ()
    assert game.handle_tap(2, 2).move.cell == (2, 2)


def test_start_new_round_switches_mode(scripted_rng):
    with GameStateMachine(mode=GameMode.FRIEND, rng=scripted_rng()) as game:
        game.start_new_round(GameMode.VS_COMPUTER, Difficulty.EASY)
        state = game.current_state()
        assert state.mode is GameMode.VS_COMPUTER
        assert state.difficulty is Difficulty.EASY
        assert state.human_mark is Mark.FIRST
        assert state.computer_mark is Mark.SECOND

        game.start_new_round(GameMode.FRIEND)
        state = game.current_state()
        assert state.human_mark is None
        assert state.difficulty is None


class UnwritableScoreStore(InMemoryScoreStore):
    def save_score(self, mark, value):
        raise OSError("disk full")


def test_failed_score_write_still_completes_the_win(scripted_rng, caplog):
    seen = []
    with GameStateMachine(mode=GameMode.FRIEND, score_store=UnwritableScoreStore(),
                          rng=scripted_rng()) as machine:
        machine.add_listener(seen.append)
        with caplog.at_level(logging.WARNING, logger="tictactoi.game"):
            results = play(machine, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])

        assert results[-1].outcome is MoveOutcome.WIN
        assert results[-1].winner is Mark.FIRST
        assert seen[-1] is results[-1]
        assert machine.phase is Phase.WON
        assert machine.scores()[Mark.FIRST] == 1
        assert not machine.transitioning
    assert "Could not save score for X" in caplog.text
