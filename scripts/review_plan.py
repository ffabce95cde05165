#!/usr/bin/env python3
"""Show a learner's review queue, recommended session size and weak areas.

Run: python scripts/review_plan.py --learner_id 1
"""

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import simple_parsing as sp

from cadence.config import Config
from cadence.db.database import Database
from cadence.review.service import ReviewService


@dataclass
class Args:
    """Print the next review session plan for a learner."""

    learner_id: int = 1  # Learner to plan for
    limit: int = 0  # Maximum queue length (0 = REVIEW_LIMIT from config)
    weak_areas: bool = True  # Also show mistake patterns


console = Console()


def main() -> None:
    args = sp.parse(Args)

    config = Config.from_env()
    logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")

    db = Database(config.database_path)
    db.init_schema()
    service = ReviewService(db, config.scheduler_settings(), config.expected_time_ms)

    limit = args.limit or config.review_limit
    queue = service.get_items_for_review(args.learner_id, limit=limit)
    session_size = service.calculate_optimal_session_size(args.learner_id, window=config.session_window)

    console.print(Panel(
        f"Learner: {args.learner_id}\n"
        f"Due items: {len(queue)}\n"
        f"Recommended session size: {session_size}",
        title="Review plan",
    ))

    table = Table(title="Review queue")
    table.add_column("Item", style="cyan")
    table.add_column("Translation")
    table.add_column("Mastery", style="yellow")
    table.add_column("Next review")
    table.add_column("Interval", justify="right")
    table.add_column("Lapsed", style="red")

    for entry in queue:
        next_review = entry.progress.next_review
        table.add_row(
            entry.item.word,
            entry.item.translation,
            entry.progress.mastery_level.name,
            next_review.strftime("%Y-%m-%d %H:%M") if next_review else "never",
            f"{entry.progress.interval_days}d",
            "yes" if entry.lapsed else "",
        )
    console.print(table)

    if args.weak_areas:
        weak = service.get_weak_areas(args.learner_id)
        console.print(
            f"\nAccuracy: {weak.overall_accuracy:.0f}%  Improvement: {weak.improvement_rate:+.0f}%"
        )
        for pattern in weak.top_mistakes:
            console.print(
                f"  [bold]{pattern.mistake_type.value}[/bold] x{pattern.frequency} "
                f"(severity {pattern.severity:.2f}, {pattern.trend.value.lower()})"
            )
            for recommendation in pattern.recommendations:
                console.print(f"    • {recommendation}")


if __name__ == "__main__":
    main()
