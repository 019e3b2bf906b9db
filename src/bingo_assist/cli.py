from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import typer
from rich.console import Console

from .cards import CardNotFoundError, CardRepository
from .config import resolve_parameters
from .editor import CardValidationError, check_cell_number, fill_order, filled_count, is_card_complete, verify_card
from .logging_setup import setup_logging
from .models import RULE_MODE_LABELS, RuleMode, create_cell, create_empty_card
from .render import called_numbers_table, card_table, describe_result
from .rules import compute_marks, detect_wins, winning_indices
from .serialize import emit_cards_json, load_cards_json
from .session import NoActiveSessionError, SessionManager, WinTracker, evaluate
from .store import JsonFileStore, StoreError
from .version import __version__

logger = logging.getLogger(__name__)

app = typer.Typer(help="Track 75-ball bingo cards against called numbers")
card_app = typer.Typer(help="Create and edit cards")
session_app = typer.Typer(help="Start, configure and end the game session")
app.add_typer(card_app, name="card")
app.add_typer(session_app, name="session")


@dataclass
class AppContext:
    params: Dict[str, Any]
    cards: CardRepository
    sessions: SessionManager
    tracker: WinTracker
    console: Console


def _ctx(ctx: typer.Context) -> AppContext:
    return ctx.find_root().obj


@contextmanager
def handle_errors(console: Console) -> Iterator[None]:
    try:
        yield
    except (CardValidationError, CardNotFoundError, NoActiveSessionError, StoreError, ValueError) as exc:
        console.print(f"[red]Error:[/] {exc}", markup=True, highlight=False)
        raise typer.Exit(code=1)


def _parse_mode(value: str) -> RuleMode:
    try:
        return RuleMode(value.strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in RuleMode)
        raise typer.BadParameter(f"expected one of {allowed}") from None


@app.callback(invoke_without_command=True)
def common_options(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", help="Show application version and exit", is_eager=True
    ),
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    store: str = typer.Option(None, "--store", help="Path to the JSON store file"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARN|ERROR"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
    colors: str = typer.Option(None, "--colors", help="auto|always|never"),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)

    cli_overrides = {
        "store_path": store,
        "log_level": log_level,
        "log_file": log_file,
        "colors": colors,
    }
    try:
        resolved, _cfg_path = resolve_parameters(config_path_str=config, cli_overrides=cli_overrides)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2)

    color_mode = str(resolved.get("colors", "auto"))
    console = Console(
        force_terminal=True if color_mode == "always" else None,
        no_color=color_mode == "never",
    )
    setup_logging(
        level=str(resolved.get("log_level", "INFO")),
        log_file=resolved.get("log_file"),
        json_format=(str(resolved.get("log_format", "text")) == "json"),
    )
    kv = JsonFileStore(resolved["store_path"])
    logger.debug("Using store %s", kv.path)
    ctx.obj = AppContext(
        params=resolved,
        cards=CardRepository(kv),
        sessions=SessionManager(kv),
        tracker=WinTracker(kv),
        console=console,
    )


# -- cards -----------------------------------------------------------------


@card_app.command("new")
def card_new(ctx: typer.Context, name: str = typer.Argument(..., help="Display name")) -> None:
    """Create an empty card and print its id."""
    app_ctx = _ctx(ctx)
    card_id = app_ctx.cards.create_new_card(name)
    typer.echo(card_id)


@card_app.command("list")
def card_list(ctx: typer.Context) -> None:
    app_ctx = _ctx(ctx)
    cards = app_ctx.cards.list_cards()
    if not cards:
        typer.echo("No cards yet. Create one with `bingo-assist card new NAME`.")
        return
    for card in cards:
        typer.echo(f"{card.id}\t{card.name}\t{filled_count(card)}/25")


@card_app.command("show")
def card_show(ctx: typer.Context, card_id: str = typer.Argument(...)) -> None:
    """Render a card; marks follow the active session when there is one."""
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        card = app_ctx.cards.require_card(card_id)
        session = app_ctx.sessions.current
        marks = compute_marks(card, session.called_numbers) if session else None
        app_ctx.console.print(card_table(card, marks))


@card_app.command("set")
def card_set(
    ctx: typer.Context,
    card_id: str = typer.Argument(...),
    index: int = typer.Argument(..., help="Cell index 0..24, row-major"),
    number: int = typer.Argument(...),
) -> None:
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        app_ctx.cards.set_cell_number(card_id, index, number)
    typer.echo(f"Cell {index} = {number}")


@card_app.command("clear")
def card_clear(
    ctx: typer.Context,
    card_id: str = typer.Argument(...),
    index: int = typer.Argument(..., help="Cell index 0..24, row-major"),
) -> None:
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        app_ctx.cards.set_cell_number(card_id, index, None)
    typer.echo(f"Cell {index} cleared")


@card_app.command("fill")
def card_fill(
    ctx: typer.Context,
    card_id: str = typer.Argument(...),
    numbers: List[int] = typer.Argument(..., help="24 numbers, column by column (B top to bottom, then I, ...)"),
) -> None:
    """Fill every non-free cell in column order."""
    app_ctx = _ctx(ctx)
    order = fill_order()
    with handle_errors(app_ctx.console):
        if len(numbers) != len(order):
            raise ValueError(f"Expected {len(order)} numbers, got {len(numbers)}")
        card = app_ctx.cards.require_card(card_id)
        # Validate against a blank card so the old numbers do not collide.
        scratch = create_empty_card(card.id, card.name)
        for index, num in zip(order, numbers):
            check_cell_number(scratch, index, num)
            scratch.cells[index] = create_cell(index, num)
        app_ctx.cards.set_card_cells(card_id, scratch.cells)
    typer.echo(f"Filled card {card_id}")


@card_app.command("rename")
def card_rename(ctx: typer.Context, card_id: str = typer.Argument(...), name: str = typer.Argument(...)) -> None:
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        app_ctx.cards.update_card(card_id, name=name)
    typer.echo(f"Renamed {card_id} to {name}")


@card_app.command("delete")
def card_delete(ctx: typer.Context, card_id: str = typer.Argument(...)) -> None:
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        app_ctx.cards.delete_card(card_id)
    typer.echo(f"Deleted {card_id}")


@card_app.command("verify")
def card_verify(ctx: typer.Context, card_id: str = typer.Argument(...)) -> None:
    """Print a JSON report of the card's column rules; exit 1 when broken."""
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        report = verify_card(app_ctx.cards.require_card(card_id))
    typer.echo(json.dumps(report, sort_keys=True, indent=2))
    if not report["ok"]:
        raise typer.Exit(code=1)


@card_app.command("export")
def card_export(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="cards.json output path"),
    force: bool = typer.Option(False, "--force", help="Overwrite output if it exists"),
) -> None:
    app_ctx = _ctx(ctx)
    cards = app_ctx.cards.list_cards()
    try:
        emit_cards_json(path, cards=cards, mkdirs=True, overwrite=force)
    except FileExistsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Exported {len(cards)} card(s) to {path}")


@card_app.command("import")
def card_import(ctx: typer.Context, path: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Add the cards of a cards.json file; cards whose id already exists are skipped."""
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        existing = {c.id for c in app_ctx.cards.list_cards()}
        added = 0
        for card in load_cards_json(path):
            if card.id in existing:
                logger.warning("Skipping card %s: id already present", card.id)
                continue
            report = verify_card(card)
            if not report["ok"]:
                raise CardValidationError(f"Card {card.id} in {path} breaks the column rules")
            app_ctx.cards.add_card(card)
            added += 1
    typer.echo(f"Imported {added} card(s)")


# -- session ---------------------------------------------------------------


@session_app.command("start")
def session_start(
    ctx: typer.Context,
    card_ids: Optional[List[str]] = typer.Argument(None, help="Cards to play; defaults to every complete card"),
    mode: str = typer.Option(None, "--mode", help="STANDARD|DOUBLE|BOX|X|BLACKOUT|NONE"),
    detect: Optional[bool] = typer.Option(None, "--detect/--no-detect", help="Announce wins"),
) -> None:
    app_ctx = _ctx(ctx)
    rule_mode = _parse_mode(mode or str(app_ctx.params["rule_mode"]))
    detect_wins = app_ctx.params["detect_wins"] if detect is None else detect
    with handle_errors(app_ctx.console):
        if card_ids:
            for card_id in card_ids:
                app_ctx.cards.require_card(card_id)
            selected = list(card_ids)
        else:
            selected = [c.id for c in app_ctx.cards.list_cards() if is_card_complete(c)]
        if not selected:
            raise ValueError("No playable cards; fill a card before starting a session")
        previous = app_ctx.sessions.current
        session = app_ctx.sessions.start_session(selected, rule_mode, detect_wins)
        if previous is not None and mode and rule_mode is not session.rule_mode:
            typer.echo(
                f"Kept mode {session.rule_mode.value} from the game in progress; "
                f"use `session mode {rule_mode.value}` to change it"
            )
    typer.echo(f"Session started with {len(session.card_ids)} card(s), mode {session.rule_mode.value}")


@session_app.command("end")
def session_end(ctx: typer.Context) -> None:
    app_ctx = _ctx(ctx)
    app_ctx.sessions.end_session()
    app_ctx.tracker.clear()
    typer.echo("Session ended")


@session_app.command("mode")
def session_mode(ctx: typer.Context, mode: str = typer.Argument(...)) -> None:
    app_ctx = _ctx(ctx)
    rule_mode = _parse_mode(mode)
    with handle_errors(app_ctx.console):
        app_ctx.sessions.set_rule_mode(rule_mode)
    name, description = RULE_MODE_LABELS[rule_mode]
    typer.echo(f"Rule mode: {name} ({description})")


@session_app.command("detect")
def session_detect(ctx: typer.Context, on: bool = typer.Option(True, "--on/--off")) -> None:
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        app_ctx.sessions.set_detect_wins(on)
    typer.echo(f"Win detection {'on' if on else 'off'}")


@session_app.command("reset")
def session_reset(ctx: typer.Context) -> None:
    """Clear called numbers and forget announced wins."""
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        app_ctx.sessions.reset_marks()
    app_ctx.tracker.clear()
    typer.echo("Marks reset")


# -- play ------------------------------------------------------------------


@app.command()
def call(ctx: typer.Context, numbers: List[int] = typer.Argument(..., help="Numbers to toggle")) -> None:
    """Toggle called numbers, then announce any new wins."""
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        for num in numbers:
            session = app_ctx.sessions.toggle_called_number(num)
            state = "called" if num in session.called_numbers else "uncalled"
            typer.echo(f"{num} {state}")
        app_ctx.tracker.forget_when_uncalled(session)
        cards = [c for c in app_ctx.cards.list_cards() if c.id in set(session.card_ids)]
        statuses = evaluate(cards, session)
        for status in app_ctx.tracker.new_wins(statuses, session.rule_mode):
            typer.echo(f"BINGO! {status.card.name}: {status.result.win_type}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Render every session card with its marks and verdict."""
    app_ctx = _ctx(ctx)
    with handle_errors(app_ctx.console):
        session = app_ctx.sessions.current
        if session is None:
            raise NoActiveSessionError()
        cards = [c for c in app_ctx.cards.list_cards() if c.id in set(session.card_ids)]
        console = app_ctx.console
        console.print(called_numbers_table(session.called_numbers))
        for st in evaluate(cards, session):
            winning = winning_indices(st.marks, session.rule_mode) if session.detect_wins else set()
            console.print(card_table(st.card, st.marks, winning))
            console.print(describe_result(st.result, session.rule_mode))


@app.command()
def check(
    ctx: typer.Context,
    card_id: str = typer.Argument(...),
    called: str = typer.Option("", "--called", help="Comma-separated called numbers"),
    mode: str = typer.Option("STANDARD", "--mode", help="STANDARD|DOUBLE|BOX|X|BLACKOUT|NONE"),
) -> None:
    """Evaluate one card against an explicit list of numbers, outside any session."""
    app_ctx = _ctx(ctx)
    rule_mode = _parse_mode(mode)
    with handle_errors(app_ctx.console):
        card = app_ctx.cards.require_card(card_id)
        numbers = [int(x) for x in called.split(",") if x.strip()]
        marks = compute_marks(card, numbers)
        result = detect_wins(card, marks, rule_mode)
    typer.echo(json.dumps({"marks": marks, "result": result.to_dict()}, sort_keys=True))


@app.command()
def modes() -> None:
    """List the rule modes."""
    for mode in RuleMode:
        name, description = RULE_MODE_LABELS[mode]
        typer.echo(f"{mode.value:<9} {name}: {description}")


def main(_argv: list[str] | None = None) -> int:
    try:
        app(standalone_mode=True)
        return 0
    except SystemExit as e:
        return int(e.code) if e.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
