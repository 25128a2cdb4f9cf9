"""Entry point for gameplanner package."""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from gameplanner.config import get_config
from gameplanner.core.allocation import display_numbers, make_rng, numbering_for
from gameplanner.core.models import GamePlan, Section
from gameplanner.core.scouting import ScoutingReport
from gameplanner.core.sections import default_section_groups
from gameplanner.engine import GamePlanEngine, PlanRegenerationSummary
from gameplanner.sources import (
    InMemoryDistributionSource,
    InMemoryGamePlanStore,
    InMemoryPlayPool,
    JsonFileStore,
    load_plays,
    load_scouting,
)


def section_table(section: Section, numbers: dict[int, int]) -> Table:
    """Render one section as a rich table."""
    table = Table(title=section.title, title_justify="left", show_lines=False)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Call")
    table.add_column("Category", style="#666666")
    table.add_column("", justify="center")

    for slot in section.slots:
        if not slot.is_filled:
            continue
        marks = Text()
        if slot.locked:
            marks.append("L", style="bold #c62828")
        if slot.favorite:
            marks.append("*", style="bold #f57c00")
        number = numbers.get(slot.position)
        table.add_row(
            str(number) if number is not None else "",
            slot.display_text,
            slot.play.category.label if slot.play else "",
            marks,
        )
    return table


def print_plan(console: Console, plan: GamePlan, summary: Optional[PlanRegenerationSummary] = None) -> None:
    """Print visible sections in display order with global play numbers."""
    groups = default_section_groups(plan.specs.values())
    visibility = plan.visibility()
    starts = numbering_for(groups, visibility, plan.sections)
    numbers = display_numbers(groups, visibility, plan.sections)

    console.print(Text(f"Game Plan: {plan.team_id} vs {plan.opponent_id}", style="bold"))
    for group in groups:
        for key in group:
            if key not in starts:
                continue
            section = plan.sections[key]
            if section.filled_count == 0:
                console.print(Text(f"{section.title}: no plays", style="#999999"))
                continue
            console.print(section_table(section, numbers.get(key, {})))

    if summary is None:
        return
    for notice in summary.notices:
        console.print(Text(f"note: {notice.message}", style="#666666"))
    for key, message in summary.failures.items():
        console.print(Text(f"failed: {key}: {message}", style="bold #c62828"))


async def generate(args: argparse.Namespace) -> GamePlan:
    """Build a full plan from a play pool file and optional scouting file."""
    config = get_config()
    plays = load_plays(args.plays)
    report = load_scouting(args.scouting) if args.scouting else ScoutingReport()

    store = JsonFileStore(args.data_dir) if args.save else InMemoryGamePlanStore()
    seed = args.seed if args.seed is not None else config.seed
    engine = GamePlanEngine(
        InMemoryPlayPool(plays),
        InMemoryDistributionSource(report),
        store,
        config=config,
        rng=make_rng(seed),
    )

    plan = await engine.open_plan(args.team, args.opponent)
    summary = await engine.regenerate_plan(plan)
    print_plan(Console(), plan, summary)
    return plan


def main() -> None:
    """Main entry point for the game planner."""
    parser = argparse.ArgumentParser(
        description="Game Planner - football game plan builder",
        prog="gameplanner",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    gen = subparsers.add_parser("generate", help="Build and print a game plan")
    gen.add_argument("plays", type=Path, help="Play pool JSON file")
    gen.add_argument("--scouting", type=Path, default=None, help="Scouting report JSON file")
    gen.add_argument("--team", type=str, default="team", help="Team id (default: team)")
    gen.add_argument("--opponent", type=str, default="opponent", help="Opponent id (default: opponent)")
    gen.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible plan")
    gen.add_argument("--save", action="store_true", help="Save the plan under the data directory")
    gen.add_argument(
        "--data-dir",
        type=Path,
        default=Path(get_config().data_dir),
        help="Data directory for --save",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        from gameplanner.api.main import run_api

        run_api(host=args.host, port=args.port, reload=args.reload)
    else:
        asyncio.run(generate(args))


if __name__ == "__main__":
    main()
