"""Typer entry-point wiring for the Jolly CLI."""

from __future__ import annotations

import logging
from typing import Sequence

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .. import actions, benchmark, cpu
from ..cards import Card
from ..state import Difficulty, GameState, Seat, init_game
from .render import format_card, format_hand, render_state

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()

HELP_TEXT = (
    "[bold]draw[/bold] stock|discard · [bold]meld[/bold] i j k · [bold]add[/bold] M i … · "
    "[bold]swap[/bold] M i · [bold]discard[/bold] i · [bold]cancel[/bold] · [bold]undo[/bold] · "
    "[bold]jolly[/bold] · [bold]unjolly[/bold] · [bold]sort[/bold] · [bold]move[/bold] i j · "
    "[bold]quit[/bold]"
)


class CommandError(ValueError):
    """Raised when a typed command cannot be understood."""


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _number(token: str, what: str) -> int:
    try:
        return int(token)
    except ValueError as exc:
        raise CommandError(f"'{token}' is not a {what} number.") from exc


def _position(token: str, limit: int, what: str) -> int:
    """Convert a 1-based position typed by the player into an index."""

    value = _number(token.lstrip("Mm"), what)
    if not 1 <= value <= limit:
        raise CommandError(f"No {what} at position {value}.")
    return value - 1


def _hand_cards(hand: Sequence[Card], tokens: Sequence[str]) -> list[Card]:
    if not tokens:
        raise CommandError("Select at least one card.")
    return [hand[_position(token, len(hand), "card")] for token in tokens]


def execute_command(game: GameState, line: str) -> tuple[str, bool]:
    """Apply one typed command for the human seat.

    Returns the message to show and whether the session should continue.
    """

    parts = line.split()
    if not parts:
        return HELP_TEXT, True
    command, args = parts[0].lower(), parts[1:]
    hand = game.human_hand

    if command in {"quit", "exit", "q"}:
        return "Goodbye.", False
    if command == "help":
        return HELP_TEXT, True
    if command == "cancel":
        actions.cancel_turn_melds(game)
        return "Turn melds returned to your hand.", True

    try:
        if command == "draw":
            source = args[0].lower() if args else actions.STOCK
            if source not in {actions.STOCK, actions.DISCARD}:
                raise CommandError("Draw from 'stock' or 'discard'.")
            result = actions.draw_card(game, source)
        elif command == "meld":
            result = actions.attempt_meld(game, _hand_cards(hand, args))
        elif command == "add":
            if not args:
                raise CommandError("Usage: add M i …")
            meld_index = _position(args[0], len(game.melds), "meld")
            result = actions.add_to_existing_meld(game, meld_index, _hand_cards(hand, args[1:]))
        elif command == "swap":
            if len(args) != 2:
                raise CommandError("Usage: swap M i")
            meld_index = _position(args[0], len(game.melds), "meld")
            card = _hand_cards(hand, args[1:])[0]
            result = actions.attempt_joker_swap(game, meld_index, card.id)
        elif command == "discard":
            if len(args) != 1:
                raise CommandError("Usage: discard i")
            result = actions.attempt_discard(game, _hand_cards(hand, args)[0].id)
        elif command == "undo":
            result = actions.undo_draw(game)
        elif command == "jolly":
            result = actions.attempt_jolly_hand(game)
        elif command == "unjolly":
            result = actions.undo_jolly(game)
        elif command == "sort":
            result = actions.sort_hand_action(game)
        elif command == "move":
            if len(args) != 2:
                raise CommandError("Usage: move i j")
            source_index = _position(args[0], len(hand), "card")
            result = actions.reorder_hand(game, source_index, _number(args[1], "card") - 1)
        else:
            raise CommandError(f"Unknown command '{command}'. Type 'help' for the list.")
    except CommandError as exc:
        return f"[red]{exc}[/red]", True

    if not result.success:
        return f"[red]{result.msg}[/red]", True
    if result.winner is not None:
        return f"[bold green]{result.winner.label} wins![/bold green] Score {result.score}", True
    if result.msg:
        return result.msg, True
    if result.card is not None:
        return f"{command.title()}: {format_card(result.card)}", True
    return "OK", True


def _describe_cpu_turn(result: cpu.CpuTurnResult) -> str:
    parts = [f"CPU drew from {result.draw_source or 'nowhere'}"]
    for meld in result.melds_played:
        parts.append(f"melded {format_hand(meld)}")
    if result.discarded_card is not None:
        parts.append(f"discarded {format_card(result.discarded_card)}")
    if result.winner is not None:
        parts.append(f"[bold red]{result.winner.label} wins![/bold red] Score {result.score}")
    return ", ".join(parts)


@app.command()
def play(
    difficulty: Difficulty = typer.Option(Difficulty.MEDIUM, case_sensitive=False, help="CPU strength."),
    seed: int | None = typer.Option(None, help="Random seed for reproducible games (omit for randomness)."),
    debug: bool = typer.Option(False, "--debug", help="Reveal the CPU hand and log the deal."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine decisions."),
) -> None:
    """Play a game of Jolly against the CPU."""

    _configure_logging(verbose)
    game = init_game(debug, difficulty=difficulty, seed=seed)
    console.print("[bold cyan]Jolly[/bold cyan]: type 'help' for commands.")

    message = "Your turn: discard a card to start."
    while game.winner is None:
        if game.turn is Seat.CPU:
            result = cpu.process_cpu_turn(game)
            console.print(_describe_cpu_turn(result))
            if game.winner is None and game.turn is Seat.CPU:
                console.print("[red]The CPU cannot draw: stock and discard pile are empty.[/red]")
                return
            message = "Your turn: draw a card."
            continue

        console.print(render_state(game, reveal_cpu=debug))
        console.print(message)
        try:
            line = console.input("[bold]>[/bold] ")
        except EOFError:
            break
        message, keep_going = execute_command(game, line)
        if not keep_going:
            console.print(message)
            return

    if game.winner is not None:
        console.print(render_state(game, reveal_cpu=True))
        console.print(f"[bold green]{game.winner.label} wins the game in round {game.round}.[/bold green]")


@app.command("benchmark")
def benchmark_cli(
    games: int = typer.Option(10, min=1, help="Number of head-to-head games."),
    seed: int = typer.Option(123, help="Random seed for the benchmark."),
    first: Difficulty = typer.Option(Difficulty.MEDIUM, case_sensitive=False, help="First agent difficulty."),
    second: Difficulty = typer.Option(Difficulty.HARD, case_sensitive=False, help="Second agent difficulty."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine decisions."),
) -> None:
    """Run an AI vs. AI benchmark between two difficulties."""

    _configure_logging(verbose)
    report = benchmark.run_head_to_head(games, first, second, seed=seed)

    table = Table(title="Head-to-Head Benchmark", box=box.SIMPLE_HEAVY)
    table.add_column("Agent", justify="center")
    table.add_column("Difficulty", justify="center")
    table.add_column("Wins", justify="right")
    table.add_column("Score", justify="right")

    table.add_row("First", report.first.difficulty.value, str(report.first.wins), str(report.first.score))
    table.add_row("Second", report.second.difficulty.value, str(report.second.wins), str(report.second.score))

    console.print(table)
    console.print(f"[cyan]{len(report.history.games)} game(s) simulated, {report.draws} draw(s).[/cyan]")


def main() -> None:
    """Entry-point for the ``jolly`` console script."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    main()
