# ==============================================================================
# Status Command
# ==============================================================================
"""
Status command for the blogengage CLI.

Checks PostgreSQL (promotions and analytics) and Valkey (visitor storage)
reachability in parallel.
"""

import json
from typing import Annotated

import typer

from blogengage.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
)
from blogengage.infrastructure.bounded import BoundedExecutor
from blogengage.infrastructure.repositories import check_postgresql_connection
from blogengage.infrastructure.storage import check_valkey_connection
from blogengage.utils.config import get_settings

# Seconds to wait for each service check
CHECK_TIMEOUT = 15


def _status_badge(status: str, is_ok: bool) -> str:
    """Create a colored status badge."""
    if is_ok:
        return f"{C.BRIGHT_GREEN}{I.CHECK} {status}{C.RESET}"
    return f"{C.BRIGHT_RED}{I.CROSS} {status}{C.RESET}"


def show_status(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show backend service health."""
    settings = get_settings()

    with BoundedExecutor(max_workers=2) as bounded:
        postgres_ok = bounded.run(
            check_postgresql_connection, timeout=CHECK_TIMEOUT, default=False, label="postgresql"
        )
        valkey_ok = bounded.run(
            check_valkey_connection, timeout=CHECK_TIMEOUT, default=False, label="valkey"
        )

    if json_output:
        result = {
            "postgresql": {
                "status": "connected" if postgres_ok else "unreachable",
                "host": settings.postgres.host,
                "schema": settings.postgres.schema_name,
            },
            "valkey": {
                "status": "connected" if valkey_ok else "unreachable",
                "host": settings.valkey.host,
            },
        }
        print(json.dumps(result, indent=2))
    else:
        W = BOX_WIDTH
        print()
        print(_box_header("BLOGENGAGE STATUS", W))
        print(_empty_line(W))
        pg_badge = _status_badge("connected" if postgres_ok else "unreachable", bool(postgres_ok))
        pg_line = f"  {I.DATABASE} PostgreSQL  {pg_badge}  {C.DIM}{settings.postgres.host}{C.RESET}"
        print(_box_line(pg_line, W))
        vk_badge = _status_badge("connected" if valkey_ok else "unreachable", bool(valkey_ok))
        vk_line = f"  {I.VISITOR} Valkey      {vk_badge}  {C.DIM}{settings.valkey.host}{C.RESET}"
        print(_box_line(vk_line, W))
        print(_empty_line(W))
        print(_box_bottom(W))
        print()

    if not (postgres_ok and valkey_ok):
        raise typer.Exit(1)
