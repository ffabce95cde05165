#!/usr/bin/env python3
"""Initialize the database with schema and seed vocabulary."""

import logging

from rich.console import Console
from rich.panel import Panel

from cadence.config import Config
from cadence.content import seed_database
from cadence.db.database import Database


console = Console()


def main() -> None:
    console.rule("[bold blue]Initializing Cadence Database")

    # Load config
    config = Config.from_env()
    logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")
    config.ensure_database_dir()

    console.print(f"Database path: {config.database_path}")

    # Initialize database
    db = Database(config.database_path)
    db.init_schema()
    console.print("[green]✓ Schema created[/green]")

    # Seed content
    count = seed_database(db)
    if count:
        console.print(f"[green]✓ Added {count} learning items[/green]")
    else:
        console.print("[yellow]Seed items already present[/yellow]")

    console.print(Panel("[bold green]Database initialized successfully!", title="Done"))


if __name__ == "__main__":
    main()
