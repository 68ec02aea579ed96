#!/usr/bin/env python3
"""
AI Move Suggester Script

This script takes a board representation as input and returns the computer's
suggested move, or runs a console game against the state machine.

Usage:
    tictactoi-suggest <board_string> <computer_mark> [options]
    tictactoi-play [options]

Board String Format:
    9-character row-major string, where:
    - 'X' = First player occupies this cell
    - 'O' = Second player occupies this cell
    - '_' = Empty cell

Example:
    tictactoi-suggest "XX_OO____" O --difficulty medium
    tictactoi-suggest "X________" O --format json
"""

import sys
import argparse
import json
import random
from typing import Optional

from .config import GameConfig
from .models.enums import Difficulty, GameMode, Mark, MoveOutcome, Phase
from .game.board import Board
from .game.errors import GameError
from .game.scores import JsonScoreStore
from .game.state_machine import GameStateMachine
from .ai.engine import AIOpponent, AIDecision, setup_logging


def parse_board_string(board_string: str) -> Board:
    """
    Parse a board string into a Board, checking it could arise in play.

    Args:
        board_string: 9-character string representing the board state

    Returns:
        Board with the specified state

    Raises:
        ValueError: If board string is invalid
    """
    board = Board.from_string(board_string)

    x_count = board.count(Mark.FIRST)
    o_count = board.count(Mark.SECOND)
    if abs(x_count - o_count) > 1:
        raise ValueError(f"Invalid move count: X has {x_count} moves, O has {o_count} moves")

    return board


def format_output(decision: AIDecision, computer_mark: Mark, format_type: str = 'human') -> str:
    """
    Format the AI decision output.

    Args:
        decision: AIDecision object
        computer_mark: Mark the suggestion is for
        format_type: Output format ('human', 'json', 'simple')

    Returns:
        Formatted output string
    """
    move = list(decision.move) if decision.move is not None else None

    if format_type == 'json':
        output = {
            'suggested_move': move,
            'player': computer_mark.value,
            'difficulty': decision.difficulty.value,
            'reasoning': decision.reasoning,
            'metrics': {
                'move_time': decision.metrics.move_time,
                'nodes_evaluated': decision.metrics.nodes_evaluated,
                'evaluation_score': decision.metrics.evaluation_score,
            }
        }
        return json.dumps(output, indent=2)

    elif format_type == 'simple':
        return "none" if move is None else f"{move[0]} {move[1]}"

    else:  # human format
        output = []
        output.append(f"AI Suggested Move: {tuple(move) if move else 'none'}")
        output.append(f"Player: {computer_mark.value}")
        output.append(f"Difficulty: {decision.difficulty.value}")
        output.append(f"Reasoning: {decision.reasoning}")
        output.append("")
        output.append("Performance Metrics:")
        output.append(f"  Time taken: {decision.metrics.move_time:.3f}s")
        output.append(f"  Nodes evaluated: {decision.metrics.nodes_evaluated}")
        if decision.metrics.evaluation_score is not None:
            output.append(f"  Evaluation score: {decision.metrics.evaluation_score}")

        return "\n".join(output)


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--difficulty',
        choices=[d.value for d in Difficulty],
        default=None,
        help='Computer strength (default: from TICTACTOI_DIFFICULTY, else hard)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Seed for random choices'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        default=None,
        help='Enable verbose logging'
    )


def _load_config(args) -> GameConfig:
    return GameConfig.from_env(
        difficulty=Difficulty(args.difficulty) if args.difficulty else None,
        seed=args.seed,
        enable_logging=args.verbose,
        mode=GameMode(args.mode) if getattr(args, 'mode', None) else None,
        score_file=getattr(args, 'score_file', None),
    )


def main(argv=None):
    """Main function to handle command line arguments and run AI move suggestion."""
    parser = argparse.ArgumentParser(
        description="Get the computer's move suggestion for a tic-tac-toe board",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Get move for O after X played the center
  tictactoi-suggest "____X____" O

  # Medium strength, JSON output
  tictactoi-suggest "XX_OO____" O --difficulty medium --format json

  # Simple output (just "row col")
  tictactoi-suggest "XO_______" X --format simple
        """
    )

    parser.add_argument(
        'board_string',
        help='9-character board representation (X/O/_ for each cell, row-major)'
    )

    parser.add_argument(
        'computer_mark',
        choices=['X', 'O'],
        help='Mark the computer plays (X or O)'
    )

    parser.add_argument(
        '--format',
        choices=['human', 'json', 'simple'],
        default='human',
        help='Output format (default: human)'
    )

    _add_common_arguments(parser)
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
        board = parse_board_string(args.board_string)
        computer_mark = Mark.from_symbol(args.computer_mark)

        ai = AIOpponent(enable_logging=config.enable_logging)
        rng = random.Random(config.seed)
        decision = ai.select_move(board, config.difficulty, computer_mark, computer_mark.opposite(), rng)

        print(format_output(decision, computer_mark, args.format))

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _read_move(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def _report(game: GameStateMachine, result):
    if result.outcome is MoveOutcome.DRAW_RECOVERED:
        print(f"Draw! Removed {[m.cell for m in result.removed]}, play continues")
    elif result.outcome is MoveOutcome.WIN:
        print(game.score_text())


def play_main(argv=None):
    """Console game: the terminal is the presentation layer."""
    parser = argparse.ArgumentParser(description="Play tic-tac-toe in the terminal")
    parser.add_argument(
        '--mode',
        choices=[m.value for m in GameMode],
        default=None,
        help='friend or computer (default: from TICTACTOI_MODE, else computer)'
    )
    parser.add_argument(
        '--score-file',
        default=None,
        help='JSON file for persisted scores'
    )
    parser.add_argument(
        '--reset-scores',
        action='store_true',
        help='Zero the stored scores before playing'
    )
    _add_common_arguments(parser)
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if config.enable_logging:
        setup_logging()

    game = GameStateMachine(
        mode=config.mode,
        difficulty=config.difficulty,
        score_store=JsonScoreStore(config.score_path),
        rng=random.Random(config.seed),
    )
    if args.reset_scores:
        game.reset_scores()

    with game:
        print(game.score_text())
        if game.mode is GameMode.VS_COMPUTER:
            print(f"You are {game.human_mark.value}")
        while True:
            if game.is_computer_turn():
                result = game.wait_for_computer()
                if result is None:
                    print("Computer could not move", file=sys.stderr)
                    break
                print(f"Computer plays {result.move.cell}")
                _report(game, result)
                continue

            print()
            print(Board.from_rows(game.current_state().cells))
            print(game.status_text())

            line = _read_move("row col (q to quit): ")
            if line is None or line.strip().lower() in ('q', 'quit'):
                break

            if game.phase is Phase.WON:
                game.reset_round()
                if game.mode is GameMode.VS_COMPUTER:
                    print(f"New round. You are {game.human_mark.value}")
                continue

            try:
                row, col = (int(part) for part in line.split())
                result = game.apply_move(row, col)
            except ValueError:
                print("Enter two numbers between 0 and 2, e.g. '1 1'")
                continue
            except GameError as e:
                print(f"Invalid move: {e}")
                continue

            _report(game, result)


if __name__ == "__main__":
    main()
