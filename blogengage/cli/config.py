# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the blogengage CLI.
"""

import json
from typing import Annotated

import typer

from blogengage.cli.shared import C
from blogengage.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "postgresql": {
                "host": settings.postgres.host,
                "port": settings.postgres.port,
                "database": settings.postgres.database,
                "schema": settings.postgres.schema_name,
                "user": settings.postgres.user,
                "password": settings.postgres.password,
                "sslmode": settings.postgres.sslmode,
            },
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
            },
            "tracking": settings.tracking.model_dump(),
            "promotion": settings.promotion.model_dump(),
            "log_level": settings.log_level,
            "debug": settings.debug,
        }
        print(json.dumps(config, indent=2))
        return

    tracking = settings.tracking
    promotion = settings.promotion

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    # PostgreSQL
    print(f"{C.CYAN}PostgreSQL{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.postgres.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.postgres.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.postgres.database}{C.RESET}")
    print(f"  Schema:     {C.WHITE}{settings.postgres.schema_name}{C.RESET}")
    print(f"  User:       {C.WHITE}{settings.postgres.user}{C.RESET}")
    print(f"  SSL:        {C.WHITE}{settings.postgres.sslmode}{C.RESET}")
    print()

    # Valkey
    print(f"{C.CYAN}Valkey{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.valkey.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.valkey.port}{C.RESET}")
    valkey_ssl = "enabled" if settings.valkey.ssl else "disabled"
    print(f"  SSL:        {C.WHITE}{valkey_ssl}{C.RESET}")
    print()

    # Tracking
    print(f"{C.CYAN}Visitor Tracking{C.RESET}")
    print(f"  Timeout:    {C.WHITE}{tracking.session_timeout_minutes} minutes{C.RESET}")
    print(f"  Session:    {C.WHITE}{tracking.session_key}{C.RESET}")
    print(
        f"  Cookie:     {C.WHITE}{tracking.visitor_cookie_key} "
        f"({tracking.visitor_cookie_days} days){C.RESET}"
    )
    print()

    # Promotions
    print(f"{C.CYAN}Promotions{C.RESET}")
    print(
        f"  Delay:      {C.WHITE}{promotion.default_delay_seconds}s "
        f"(clamped {promotion.min_delay_seconds}-{promotion.max_delay_seconds}s){C.RESET}"
    )
    print(f"  Scroll:     {C.WHITE}>{promotion.scroll_threshold_px}px{C.RESET}")
    print(f"  Fetch:      {C.WHITE}{promotion.fetch_timeout_seconds}s timeout{C.RESET}")
    print(f"  Tracking:   {C.WHITE}{promotion.tracking_timeout_seconds}s timeout{C.RESET}")
    print()
