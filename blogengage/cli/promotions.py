# ==============================================================================
# Promotion Commands
# ==============================================================================
"""
Promotion administration and targeting inspection for the blogengage CLI.
"""

import json
from datetime import datetime
from typing import Annotated

import psycopg2
import typer

from blogengage.cli.shared import (
    BOX_WIDTH,
    DEFAULT_BROWSER,
    DEFAULT_TAB,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _fail,
    build_evaluator,
    build_tracker,
    promotion_repository,
)
from blogengage.core.models import DisplayRules, Promotion, ShowFrequency, TargetAudience
from blogengage.core.promotion_targeting import matches_audience
from blogengage.core.reveal import RevealSchedule


def _load(active_only: bool = False) -> list[Promotion]:
    try:
        with promotion_repository() as repo:
            return repo.list_active() if active_only else repo.list_promotions()
    except (psycopg2.Error, RuntimeError) as e:
        _fail(f"Could not load promotions: {e}")


def _describe_rules(rules: DisplayRules) -> str:
    pages = ",".join(rules.pages) if rules.pages else "any"
    delay = f"{rules.delay_seconds}s" if rules.delay_seconds else "default"
    return (
        f"pages={pages} freq={rules.show_frequency.value} "
        f"audience={rules.target_audience.value} delay={delay}"
    )


def _print_promotions(title: str, rows: list[tuple[Promotion, str]]) -> None:
    W = BOX_WIDTH
    print()
    print(_box_header(title, W))
    print(_empty_line(W))
    if not rows:
        print(_box_line(f"  {C.DIM}No promotions{C.RESET}", W))
    for promotion, badge in rows:
        print(_box_line(f"  {badge} {C.WHITE}#{promotion.id}{C.RESET} {promotion.title[:40]}", W))
        print(_box_line(f"      {C.DIM}{_describe_rules(promotion.display_rules)}{C.RESET}", W))
    print(_empty_line(W))
    print(_box_bottom(W))
    print()


# ==============================================================================
# Commands
# ==============================================================================


def promotions_list(
    active_only: Annotated[
        bool, typer.Option("--active", "-a", help="Only show active promotions")
    ] = False,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """List promotions, newest first."""
    promotions = _load(active_only)

    if json_output:
        print(json.dumps([p.model_dump(mode="json") for p in promotions], indent=2))
        return

    rows = [
        (
            p,
            f"{C.BRIGHT_GREEN}{I.CHECK}{C.RESET}"
            if p.is_active
            else f"{C.BRIGHT_YELLOW}{I.WARN}{C.RESET}",
        )
        for p in promotions
    ]
    _print_promotions("PROMOTIONS", rows)


def promotions_eligible(
    page: Annotated[str, typer.Option("--page", "-p", help="Page path to evaluate")] = "/",
    browser: Annotated[
        str, typer.Option("--browser", "-b", help="Browser key whose storage to use")
    ] = DEFAULT_BROWSER,
    tab: Annotated[
        str, typer.Option("--tab", "-t", help="Browsing session key for session-scoped markers")
    ] = DEFAULT_TAB,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show which active promotions a browser would see on a page.

    Examples:
        blogengage promotions eligible --page /post
        blogengage promotions eligible --page / --browser alice --json
    """
    promotions = _load(active_only=True)
    evaluator = build_evaluator(browser, tab)
    returning = build_tracker(browser).is_returning_visitor()

    eligible = evaluator.filter_eligible(promotions, page)
    selected = evaluator.select_promotion(promotions, page, returning_visitor=returning)

    if json_output:
        result = {
            "page": page,
            "returning_visitor": returning,
            "eligible": [
                {
                    "id": p.id,
                    "title": p.title,
                    "audience_match": matches_audience(p, returning),
                    "displayable": evaluator.should_display(p),
                }
                for p in eligible
            ],
            "selected": selected.id if selected else None,
            "reveal_after_seconds": (
                RevealSchedule.for_promotion(selected, 0.0).delay_seconds if selected else None
            ),
        }
        print(json.dumps(result, indent=2))
        return

    rows = []
    for promotion in eligible:
        if selected is not None and promotion.id == selected.id:
            badge = f"{C.BRIGHT_GREEN}{I.ARROW}{C.RESET}"
        elif not matches_audience(promotion, returning):
            badge = f"{C.DIM}{I.BULLET}{C.RESET}"
        elif not evaluator.should_display(promotion):
            badge = f"{C.BRIGHT_YELLOW}{I.WARN}{C.RESET}"
        else:
            badge = f"{C.CYAN}{I.BULLET}{C.RESET}"
        rows.append((promotion, badge))
    _print_promotions(f"ELIGIBLE ON {page}", rows)


def promotions_create(
    title: Annotated[str, typer.Option("--title", help="Popup title")],
    message: Annotated[str, typer.Option("--message", help="Popup message")] = "",
    button_text: Annotated[str | None, typer.Option("--button-text", help="Button label")] = None,
    button_link: Annotated[str | None, typer.Option("--button-link", help="Button target")] = None,
    pages: Annotated[
        list[str] | None,
        typer.Option("--page", "-p", help="Page path (repeatable, 'all' for every page)"),
    ] = None,
    delay: Annotated[int | None, typer.Option("--delay", help="Reveal delay in seconds")] = None,
    frequency: Annotated[
        ShowFrequency, typer.Option("--frequency", "-f", help="How often a visitor sees it")
    ] = ShowFrequency.SESSION,
    audience: Annotated[
        TargetAudience, typer.Option("--audience", help="Visitors to target")
    ] = TargetAudience.ALL,
    start: Annotated[
        datetime | None, typer.Option("--start", help="Start of the display window")
    ] = None,
    end: Annotated[datetime | None, typer.Option("--end", help="End of the display window")] = None,
    inactive: Annotated[bool, typer.Option("--inactive", help="Create deactivated")] = False,
) -> None:
    """Create a promotion.

    Examples:
        blogengage promotions create --title "Newsletter" --page all -f once
    """
    promotion = Promotion(
        title=title,
        message=message,
        button_text=button_text,
        button_link=button_link,
        is_active=not inactive,
        display_rules=DisplayRules(
            pages=pages or [],
            delay_seconds=delay,
            show_frequency=frequency,
            target_audience=audience,
            start_date=start,
            end_date=end,
        ),
    )
    try:
        with promotion_repository() as repo:
            created = repo.create(promotion)
    except (psycopg2.Error, RuntimeError) as e:
        _fail(f"Could not create promotion: {e}")
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Created promotion {C.WHITE}#{created.id}{C.RESET}")


def _set_active(promotion_id: str, is_active: bool) -> None:
    try:
        with promotion_repository() as repo:
            promotion = repo.set_active(promotion_id, is_active)
    except (psycopg2.Error, RuntimeError) as e:
        _fail(f"Could not update promotion {promotion_id}: {e}")
    if promotion is None:
        _fail(f"Promotion {promotion_id} not found")
    state = "activated" if is_active else "deactivated"
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Promotion {C.WHITE}#{promotion.id}{C.RESET} {state}")


def promotions_activate(
    promotion_id: Annotated[str, typer.Argument(help="Promotion id")],
) -> None:
    """Activate a promotion."""
    _set_active(promotion_id, True)


def promotions_deactivate(
    promotion_id: Annotated[str, typer.Argument(help="Promotion id")],
) -> None:
    """Deactivate a promotion."""
    _set_active(promotion_id, False)


def promotions_delete(
    promotion_id: Annotated[str, typer.Argument(help="Promotion id")],
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Delete a promotion."""
    if not confirm:
        typer.confirm(f"Delete promotion {promotion_id}?", abort=True)
    try:
        with promotion_repository() as repo:
            deleted = repo.delete(promotion_id)
    except (psycopg2.Error, RuntimeError) as e:
        _fail(f"Could not delete promotion {promotion_id}: {e}")
    if not deleted:
        _fail(f"Promotion {promotion_id} not found")
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Promotion {C.WHITE}#{promotion_id}{C.RESET} deleted")
