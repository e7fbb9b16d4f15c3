# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared utilities, constants, and helper functions used across CLI command modules.

This module provides:
- ANSI color codes and box-drawing characters
- Box drawing helpers for formatted output
- Builders for the per-browser tracker/evaluator and the PostgreSQL repositories
"""

import re
from collections.abc import Iterator
from contextlib import contextmanager

import typer

from blogengage.core.promotion_targeting import PromotionEvaluator
from blogengage.core.visitor_tracker import VisitorTracker
from blogengage.infrastructure.repositories import (
    PostgreSQLAnalyticsRepository,
    PostgreSQLPromotionRepository,
)
from blogengage.infrastructure.storage import durable_store, get_valkey_client, session_store
from blogengage.utils.config import get_settings

# ==============================================================================
# Constants
# ==============================================================================

# Box drawing width (unified for all commands)
BOX_WIDTH = 68

# Browser key used when --browser is not given
DEFAULT_BROWSER = "cli"

# Session-scoped storage key used when --tab is not given
DEFAULT_TAB = "default"


# ==============================================================================
# ANSI Colors and Box Drawing
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Colors
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    # Bright colors
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"


class Box:
    """Unicode box-drawing characters."""

    H = "─"  # horizontal
    V = "│"  # vertical
    TL = "┌"  # top-left
    TR = "┐"  # top-right
    BL = "└"  # bottom-left
    BR = "┘"  # bottom-right
    LT = "├"  # left-tee
    RT = "┤"  # right-tee


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    BULLET = "•"
    ARROW = "→"
    DATABASE = "◆"
    VISITOR = "◎"
    PROMO = "★"


# Module-level aliases for convenience
C, B, I = Colors, Box, Icons


_ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _visible_len(s: str) -> int:
    """Calculate visible length of string, ignoring ANSI escape codes."""
    return len(_ANSI_ESCAPE_PATTERN.sub("", s))


def _box_header(title: str, width: int = BOX_WIDTH) -> str:
    """Create a single-line box header."""
    inner_width = width - 2
    title_padded = f" {title} "
    left_bar = (inner_width - len(title_padded)) // 2
    right_bar = inner_width - left_bar - len(title_padded)
    return (
        f"{C.CYAN}{B.TL}{B.H * left_bar}{C.BOLD}{C.WHITE}{title_padded}"
        f"{C.RESET}{C.CYAN}{B.H * right_bar}{B.TR}{C.RESET}"
    )


def _section_header(title: str, icon: str, width: int = BOX_WIDTH) -> str:
    """Create a section header with icon."""
    inner_width = width - 2
    title_with_icon = f" {icon} {title} "
    bar_len = inner_width - len(title_with_icon) - 1
    return (
        f"{C.CYAN}{B.LT}{B.H}{C.BOLD}{title_with_icon}{C.RESET}"
        f"{C.CYAN}{B.H * bar_len}{B.RT}{C.RESET}"
    )


def _box_line(content: str, width: int = BOX_WIDTH) -> str:
    """Create a line inside the box with proper padding to right border."""
    inner_width = width - 2
    padding = max(0, inner_width - _visible_len(content))
    return f"{C.CYAN}{B.V}{C.RESET}{content}{' ' * padding}{C.CYAN}{B.V}{C.RESET}"


def _empty_line(width: int = BOX_WIDTH) -> str:
    """Create an empty line inside the box."""
    return f"{C.CYAN}{B.V}{' ' * (width - 2)}{B.V}{C.RESET}"


def _box_bottom(width: int = BOX_WIDTH) -> str:
    """Create a plain box bottom border."""
    return f"{C.CYAN}{B.BL}{B.H * (width - 2)}{B.BR}{C.RESET}"


def _fail(message: str) -> None:
    """Print an error line and exit with status 1."""
    print(f"{C.BRIGHT_RED}{I.CROSS} {message}{C.RESET}")
    raise typer.Exit(1)


# ==============================================================================
# Builders
# ==============================================================================


def build_tracker(browser: str) -> VisitorTracker:
    """Visitor tracker over the Valkey durable store of one browser."""
    client = get_valkey_client()
    return VisitorTracker.from_settings(durable_store(client, browser))


def build_evaluator(browser: str, tab: str = DEFAULT_TAB) -> PromotionEvaluator:
    """Promotion evaluator over one browser's durable and session stores."""
    client = get_valkey_client()
    return PromotionEvaluator(durable_store(client, browser), session_store(client, browser, tab))


@contextmanager
def promotion_repository() -> Iterator[PostgreSQLPromotionRepository]:
    """Connected promotion repository, closed on exit."""
    repo = PostgreSQLPromotionRepository(get_settings())
    repo.connect()
    try:
        yield repo
    finally:
        repo.close()


@contextmanager
def analytics_repository() -> Iterator[PostgreSQLAnalyticsRepository]:
    """Connected analytics repository, closed on exit."""
    repo = PostgreSQLAnalyticsRepository(get_settings())
    repo.connect()
    try:
        yield repo
    finally:
        repo.close()
