# ==============================================================================
# Database Commands
# ==============================================================================
"""
Schema management commands for the blogengage CLI.
"""

from typing import Annotated

import psycopg2
import typer

from blogengage.cli.shared import C, I, _fail
from blogengage.utils.config import get_settings


def db_init() -> None:
    """Create the database and engagement schema if missing (idempotent)."""
    from blogengage.utils.db import ensure_schema

    schema_name = get_settings().postgres.schema_name
    try:
        created = ensure_schema()
    except (psycopg2.Error, RuntimeError) as e:
        _fail(f"Schema initialization failed: {e}")

    if created:
        print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema_name}' initialized{C.RESET}")
    else:
        print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema_name}' already exists{C.RESET}")


def db_reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Drop and recreate the engagement schema (deletes promotions and analytics).

    Examples:
        blogengage db reset       # With confirmation prompt
        blogengage db reset -y    # Skip confirmation
    """
    from blogengage.utils.db import reset_schema

    schema_name = get_settings().postgres.schema_name
    if not confirm:
        typer.confirm(
            f"This will delete all data in schema '{schema_name}'. Continue?", abort=True
        )

    try:
        reset_schema()
    except (psycopg2.Error, RuntimeError) as e:
        _fail(f"Schema reset failed: {e}")
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema_name}' reset{C.RESET}")
