# ==============================================================================
# Blog Engagement CLI
# ==============================================================================
"""
Command-line interface for blog visitor tracking and promotion targeting.

Usage:
    blogengage --help
    blogengage status
    blogengage config show
    blogengage session show --browser alice
    blogengage session clear --browser alice
    blogengage session fingerprint --user-agent "Mozilla/5.0"
    blogengage promotions list
    blogengage promotions eligible --page /post
    blogengage promotions activate 3
    blogengage analytics
    blogengage db init
    blogengage db reset -y
"""

import logging
import os

import typer

from blogengage.utils.config import get_settings

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="blogengage",
    help="Blog visitor tracking and promotion targeting CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

session_app = typer.Typer(
    help="Visitor session inspection",
    no_args_is_help=True,
)
app.add_typer(session_app, name="session")

from blogengage.cli.session import session_clear, session_fingerprint, session_show

session_app.command("show")(session_show)
session_app.command("clear")(session_clear)
session_app.command("fingerprint")(session_fingerprint)

promotions_app = typer.Typer(
    help="Promotion management and targeting",
    no_args_is_help=True,
)
app.add_typer(promotions_app, name="promotions")

from blogengage.cli.promotions import (
    promotions_activate,
    promotions_create,
    promotions_deactivate,
    promotions_delete,
    promotions_eligible,
    promotions_list,
)

promotions_app.command("list")(promotions_list)
promotions_app.command("eligible")(promotions_eligible)
promotions_app.command("create")(promotions_create)
promotions_app.command("activate")(promotions_activate)
promotions_app.command("deactivate")(promotions_deactivate)
promotions_app.command("delete")(promotions_delete)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from blogengage.cli.config import config_show

config_app.command("show")(config_show)

db_app = typer.Typer(
    help="Database schema operations",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")

from blogengage.cli.db import db_init, db_reset

db_app.command("init")(db_init)
db_app.command("reset")(db_reset)

from blogengage.cli.analytics import show_analytics

app.command("analytics")(show_analytics)

from blogengage.cli.status import show_status

app.command("status")(show_status)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app()


if __name__ == "__main__":
    main()
