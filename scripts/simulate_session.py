#!/usr/bin/env python3
"""Simulate a learner working through review sessions.

Exercises the full attempt pipeline against a throwaway database:
1. Seed vocabulary
2. Answer items over several simulated days (some wrong on purpose)
3. Show how intervals, mastery and XP evolve
4. Show the resulting review queue and weak areas

Run: python scripts/simulate_session.py --days 10 --accuracy 0.8
"""

import logging
import random
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import simple_parsing as sp

from cadence.config import Config
from cadence.content import seed_database
from cadence.db.database import Database
from cadence.review.service import AttemptInput, ReviewService
from cadence.scheduling.planner import optimal_session_size


@dataclass
class Args:
    """Simulate review sessions for one learner."""

    days: int = 10  # Number of simulated days
    accuracy: float = 0.8  # Probability of answering correctly
    seed: int = 7  # Random seed for reproducible runs
    verbose: bool = False  # Show every attempt


console = Console()

# Plausible wrong answers, keyed by the correct answer
WRONG_ANSWERS = {
    "der Hund": ["die Hund", "der Hunt"],
    "die Katze": ["der Katze", "die Kaze"],
    "der Bär": ["der Bar", "die Bär"],
    "die Haustür": ["die Haus Tür", "die Haustur"],
    "grün": ["gruen", "grun"],
    "die Straße": ["die Strasse", "die Strase"],
}


def create_test_db() -> Database:
    """Create a temporary database with seed content."""
    temp_dir = tempfile.mkdtemp()
    db_path = Path(temp_dir) / "simulation.db"

    db = Database(str(db_path))
    db.init_schema()
    seed_database(db)
    return db


def simulate(service: ReviewService, db: Database, args: Args, learner_id: int = 1) -> int:
    rng = random.Random(args.seed)
    start = datetime.now()
    total_xp = 0

    for day in range(args.days):
        now = start + timedelta(days=day)
        session_size = optimal_session_size(db.get_recent_attempts(learner_id))

        queue = service.get_items_for_review(learner_id, limit=session_size, now=now)
        if not queue:
            # Nothing due yet: introduce new items
            known = {p.item_id for p in db.get_all_progress(learner_id)}
            new_items = [item for item in db.get_all_items() if item.id not in known][:session_size]
            items = new_items
        else:
            items = [entry.item for entry in queue]

        console.rule(f"[bold]Day {day + 1}: {len(items)} items (session size {session_size})")

        for item in items:
            correct = rng.random() < args.accuracy
            given = item.word if correct else rng.choice(WRONG_ANSWERS.get(item.word, [item.word[:-1]]))
            outcome = service.process_attempt(
                AttemptInput(
                    learner_id=learner_id,
                    item_id=item.id,
                    session_id=f"day-{day + 1}",
                    is_correct=correct,
                    correct_answer=item.word,
                    given_answer=given,
                    response_time_ms=rng.randint(1500, 9000),
                    hints_used=0 if correct else rng.randint(0, 2),
                ),
                now=now,
            )
            total_xp += outcome.xp_earned

            if args.verbose:
                mark = "[green]✓[/green]" if correct else f"[red]✗ {given}[/red]"
                console.print(
                    f"  {item.word:<18} {mark} -> {outcome.progress.interval_days}d "
                    f"{outcome.progress.mastery_level.name} +{outcome.xp_earned}xp"
                )

    return total_xp


def show_final_state(db: Database, service: ReviewService, learner_id: int = 1) -> None:
    console.rule("[bold]Final State")

    items = {item.id: item for item in db.get_all_items()}

    table = Table(title="Progress")
    table.add_column("Item", style="cyan")
    table.add_column("Mastery", style="yellow")
    table.add_column("Ease", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Streak", justify="right")

    for progress in db.get_all_progress(learner_id):
        table.add_row(
            items[progress.item_id].word,
            progress.mastery_level.name,
            f"{progress.ease_factor:.2f}",
            f"{progress.interval_days}d",
            f"{progress.accuracy:.0%}",
            str(progress.streak_count),
        )
    console.print(table)

    weak = service.get_weak_areas(learner_id)
    for pattern in weak.top_mistakes:
        console.print(f"  {pattern.mistake_type.value}: {pattern.frequency} ({pattern.trend.value.lower()})")


def main() -> None:
    args = sp.parse(Args)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    console.print(Panel(
        "[bold blue]Review Session Simulation[/bold blue]\n"
        f"{args.days} days at {args.accuracy:.0%} accuracy",
        title="cadence",
    ))

    config = Config.from_env()
    db = create_test_db()
    service = ReviewService(db, config.scheduler_settings(), config.expected_time_ms)

    total_xp = simulate(service, db, args)
    show_final_state(db, service)

    console.print(Panel(f"[bold green]Earned {total_xp} XP", title="Done"))


if __name__ == "__main__":
    main()
