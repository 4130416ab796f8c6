"""
Typer CLI for the fluency practice engine.

Commands:
    fluency simulate              - Forgetting-model tables for tuning
    fluency calibrate 900 850 ... - Motor baseline + scaled thresholds
    fluency record C 1450         - Record one response into storage
    fluency stats [ITEM ...]      - Per-item records and automaticity
    fluency recommend --group ... - Consolidate/expand suggestion

Storage backend and namespace come from FLUENCY_* settings (see config.py).
"""

from __future__ import annotations

import sys

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from fluency.adaptive.calibration import calibrate as run_calibration
from fluency.adaptive.config import DEFAULT_CONFIG, TIME_CONSTANT_FIELDS, load_config
from fluency.adaptive.deadline import DeadlineTracker
from fluency.adaptive.levels import AutomaticityLevel
from fluency.adaptive.recommendations import compute_recommendations, summarize_groups
from fluency.adaptive.selector import AdaptiveSelector
from fluency.cli.simulate import (
    automaticity_table,
    fmt_hours,
    fmt_recall,
    recall_decay_table,
    stability_trajectory_table,
)
from fluency.errors import FluencyError, InsufficientSamples
from fluency.storage import create_storage

app = typer.Typer(
    help="fluency: adaptive practice scheduling for fact drills",
    no_args_is_help=True,
)

console = Console()


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Route loguru output to stderr (and optionally a file)."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    log_file = log_file or settings.log_file
    if log_file:
        logger.add(log_file, level="DEBUG", rotation="5 MB")


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(None, "--log-level", help="Override FLUENCY_LOG_LEVEL"),
):
    """Adaptive practice scheduling engine."""
    configure_logging(log_level.upper() if log_level else None)


def _selector(namespace: str | None, responses: int = 1) -> AdaptiveSelector:
    settings = get_settings()
    return AdaptiveSelector(
        create_storage(settings, namespace),
        load_config(settings),
        response_count=(lambda _item_id: responses) if responses > 1 else None,
    )


def _print_table(title: str, headers: list[str], rows: list[list[str]]) -> None:
    table = Table(title=title, title_style="bold cyan")
    for i, header in enumerate(headers):
        table.add_column(header, justify="left" if i == 0 else "right")
    for row in rows:
        table.add_row(*row)
    console.print(table)


# ========================================
# Commands
# ========================================


@app.command("simulate")
def simulate(
    initial_stability: float | None = typer.Option(None, help="Stability of a new item (hours)"),
    growth_base: float | None = typer.Option(None, help="Stability growth base on correct answers"),
    decay_on_wrong: float | None = typer.Option(None, help="Stability multiplier on wrong answers"),
    automaticity_target: float | None = typer.Option(None, help="Latency (ms) scoring 0.5 speed"),
):
    """
    Print forgetting-model tables for parameter tuning.

    Examples:
        fluency simulate
        fluency simulate --initial-stability 8 --growth-base 1.5
    """
    overrides = {
        "initial_stability": initial_stability,
        "stability_growth_base": growth_base,
        "stability_decay_on_wrong": decay_on_wrong,
        "automaticity_target": automaticity_target,
    }
    try:
        cfg = load_config().replace(**{k: v for k, v in overrides.items() if v is not None})
    except FluencyError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            "\n".join(f"{name}: {value}" for name, value in cfg.model_dump().items()),
            title="Config",
            border_style="cyan",
        )
    )
    _print_table("Recall decay over time", *recall_decay_table())
    _print_table("Stability over repeated sessions", *stability_trajectory_table(cfg))
    _print_table("Automaticity (recall x speed)", *automaticity_table(cfg))


@app.command("calibrate")
def calibrate(
    samples: list[float] = typer.Argument(..., help="Reaction-time latencies in ms, in order"),
    margin: float | None = typer.Option(None, help="min_time margin factor (>= 1)"),
):
    """
    Compute a motor baseline and the scaled thresholds.

    The first two samples are treated as warm-up and discarded.

    Examples:
        fluency calibrate 1400 1100 820 790 860 900 810
    """
    settings = get_settings()
    try:
        # Scale from the unscaled defaults, not from a previously calibrated config
        result = run_calibration(
            samples,
            DEFAULT_CONFIG.replace(**settings.get_adaptive_config()),
            margin_factor=margin if margin is not None else settings.calibration_margin,
            warmup=settings.calibration_warmup,
        )
    except InsufficientSamples as e:
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        console.print("[dim]Keeping the default configuration.[/dim]")
        raise typer.Exit(1)
    except FluencyError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Your baseline response time:[/bold] {result.baseline_ms:.0f}ms")
    _print_table(
        "Scaled thresholds",
        ["Constant", "ms"],
        [[name, f"{getattr(result.config, name):.0f}"] for name in TIME_CONSTANT_FIELDS],
    )
    _print_table(
        "Speed bands",
        ["Band", "Up to", "Meaning"],
        [
            [band.label, f"{band.max_ms}ms" if band.max_ms is not None else "-", band.meaning]
            for band in result.thresholds
        ],
    )
    console.print(f"[dim]Persist with FLUENCY_MOTOR_BASELINE_MS={result.baseline_ms:.0f}[/dim]")


@app.command("record")
def record(
    item_id: str = typer.Argument(..., help="Item that was answered"),
    latency_ms: float = typer.Argument(..., help="Response time in ms"),
    wrong: bool = typer.Option(False, "--wrong", "-w", help="The answer was incorrect"),
    responses: int = typer.Option(
        1, "--responses", "-r", min=1, help="Responses in one answer (e.g. notes in a chord)"
    ),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Storage namespace"),
):
    """Record one response and step the item's deadline."""
    selector = _selector(namespace, responses)
    deadlines = DeadlineTracker(selector.memory.storage, selector.config)
    try:
        previous = selector.get_stats(item_id)
        updated = selector.record_response(item_id, latency_ms, correct=not wrong)
    except FluencyError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    # Cold-start the deadline from the pre-answer EWMA
    deadline = deadlines.record_outcome(
        item_id,
        not wrong,
        response_time=latency_ms,
        ewma=previous.ewma if previous else None,
        response_count=responses,
    )
    console.print(
        f"{item_id}: seen {updated.seen_count}x, ewma {updated.ewma:.0f}ms, "
        f"stability {fmt_hours(updated.stability)}, next deadline {deadline}ms"
    )


@app.command("stats")
def stats(
    item_ids: list[str] | None = typer.Argument(None, help="Items to show (default: all stored)"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Storage namespace"),
):
    """Show per-item records and automaticity levels."""
    selector = _selector(namespace)
    storage = selector.memory.storage
    if not item_ids:
        item_ids = storage.item_ids() if hasattr(storage, "item_ids") else []
    if not item_ids:
        console.print("[dim]No items recorded yet.[/dim]")
        return

    table = Table(title="Item stats", title_style="bold cyan")
    for column in ("Item", "Seen", "Correct", "EWMA", "Stability", "Recall", "Automaticity"):
        table.add_column(column, justify="left" if column == "Item" else "right")

    for item_id in item_ids:
        snapshot = selector.get_stats(item_id)
        auto = selector.get_automaticity(item_id)
        level = AutomaticityLevel.from_score(auto)
        if snapshot is None:
            table.add_row(item_id, "0", "0", "-", "-", "-", f"[{level.color}]{level.display_name}[/]")
            continue
        table.add_row(
            item_id,
            str(snapshot.seen_count),
            str(snapshot.correct_count),
            f"{snapshot.ewma:.0f}ms",
            fmt_hours(snapshot.stability),
            fmt_recall(selector.get_recall(item_id)),
            f"[{level.color}]{auto:.0%} {level.display_name}[/]",
        )
    console.print(table)

    if selector.check_all_mastered(item_ids):
        console.print("[green]All items mastered.[/green]")
    elif selector.check_needs_review(item_ids):
        console.print("[yellow]Previously mastered items have faded - time to review.[/yellow]")


def _parse_group(value: str, position: int) -> tuple[str, list[str]]:
    """'NAME=a,b,c' or 'a,b,c' -> (name, item ids)."""
    name, sep, members = value.partition("=")
    if not sep:
        name, members = str(position), value
    items = [item.strip() for item in members.split(",") if item.strip()]
    if not items:
        raise typer.BadParameter(f"Group '{value}' has no items")
    return name.strip() or str(position), items


@app.command("recommend")
def recommend(
    groups: list[str] = typer.Option(
        ..., "--group", "-g", help="Group as 'NAME=item,item,...' in sequence order (repeatable)"
    ),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Storage namespace"),
):
    """
    Suggest which groups to practice (consolidate before expanding).

    Examples:
        fluency recommend -g low=C,D,E -g mid=F,G -g high=A,B
    """
    selector = _selector(namespace)
    parsed = [_parse_group(value, i) for i, value in enumerate(groups)]
    names = [name for name, _ in parsed]
    indices = list(range(len(parsed)))

    def items_for_group(index: int) -> list[str]:
        return parsed[index][1]

    summaries = summarize_groups(selector, indices, items_for_group, selector.config)
    _print_table(
        "Groups",
        ["Group", "Mastered", "Due", "Unseen", "Total"],
        [
            [names[s.index], str(s.mastered_count), str(s.due_count), str(s.unseen_count), str(s.total_count)]
            for s in sorted(summaries, key=lambda s: s.index)
        ],
    )

    result = compute_recommendations(selector, indices, items_for_group, selector.config)
    if result.enabled is None:
        console.print(f"[dim]Nothing started yet - begin with {names[0]}.[/dim]")
        return
    if result.consolidate_indices:
        console.print(
            f"[yellow]Consolidate[/yellow] {', '.join(names[i] for i in result.consolidate_indices)} "
            f"({result.consolidate_due_count} items below threshold)"
        )
    if result.expand_index is not None:
        console.print(
            f"[green]Expand[/green] to {names[result.expand_index]} "
            f"({result.expand_new_count} new items)"
        )
    if not result.has_suggestion:
        console.print("[dim]Keep practicing the started groups.[/dim]")


def run() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    run()
