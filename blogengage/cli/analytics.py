# ==============================================================================
# Analytics Command
# ==============================================================================
"""
Analytics command for the blogengage CLI.

Displays post and promotion engagement aggregates from PostgreSQL.
"""

from typing import Annotated

import psycopg2
import typer

from blogengage.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _fail,
    _section_header,
    analytics_repository,
)
from blogengage.core.analytics import format_count, summarize_posts, summarize_promotions


# ==============================================================================
# Commands
# ==============================================================================


def show_analytics(
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Rows to show per table")
    ] = 10,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show post and promotion engagement analytics.

    Totals and average rates are computed across all aggregates; the tables
    list the most viewed posts and promotions.

    Examples:
        blogengage analytics          # Formatted table output
        blogengage analytics --json   # JSON output for scripting
    """
    import json

    try:
        with analytics_repository() as repo:
            posts = repo.list_post_analytics()
            promotions = repo.list_promotion_analytics()
    except (psycopg2.Error, RuntimeError) as e:
        _fail(f"Database unreachable: {e}")

    post_summary = summarize_posts(posts)
    promotion_summary = summarize_promotions(promotions)

    if json_output:
        result = {
            "posts": post_summary.model_dump(),
            "promotions": promotion_summary.model_dump(),
            "top_posts": [p.model_dump(mode="json") for p in posts[:limit]],
            "top_promotions": [p.model_dump(mode="json") for p in promotions[:limit]],
        }
        print(json.dumps(result, indent=2))
        return

    W = BOX_WIDTH
    INNER = W - 2
    sep = "  " + "─" * (INNER - 4)

    print()
    print(_box_header("BLOG ENGAGEMENT", W))
    print(_empty_line(W))

    # Posts
    print(_section_header("Posts", I.BULLET, W))
    row = (
        f"  Views {C.WHITE}{format_count(post_summary.total_views):>7}{C.RESET}"
        f"  Unique {C.WHITE}{format_count(post_summary.total_unique_views):>7}{C.RESET}"
        f"  Avg engagement {C.WHITE}{post_summary.avg_engagement_rate:>5.1f}%{C.RESET}"
    )
    print(_box_line(row, W))
    header = f"  {'Post':<24}{'Views':>8}{'Likes':>8}{'Shares':>8}{'Comments':>10}{'Eng.':>6}"
    print(_box_line(header, W))
    print(_box_line(sep, W))
    for p in posts[:limit]:
        row = (
            f"  {p.post_id[:22]:<24}{format_count(p.views):>8}{format_count(p.likes):>8}"
            f"{format_count(p.shares):>8}{format_count(p.comments_count):>10}"
            f"{p.engagement_rate:>5.0f}%"
        )
        print(_box_line(row, W))
    print(_empty_line(W))

    # Promotions
    print(_section_header("Promotions", I.PROMO, W))
    row = (
        f"  Views {C.WHITE}{format_count(promotion_summary.total_views):>7}{C.RESET}"
        f"  Clicks {C.WHITE}{format_count(promotion_summary.total_clicks):>7}{C.RESET}"
        f"  Avg CTR {C.WHITE}{promotion_summary.avg_click_through_rate:>5.1f}%{C.RESET}"
    )
    print(_box_line(row, W))
    header = (
        f"  {'Promotion':<14}{'Views':>8}{'Unique':>8}{'Clicks':>8}"
        f"{'Closes':>8}{'CTR':>8}{'Conv.':>8}"
    )
    print(_box_line(header, W))
    print(_box_line(sep, W))
    for p in promotions[:limit]:
        row = (
            f"  {p.promotion_id[:12]:<14}{format_count(p.total_views):>8}"
            f"{format_count(p.unique_views):>8}{format_count(p.total_clicks):>8}"
            f"{format_count(p.total_closes):>8}{p.click_through_rate:>7.1f}%"
            f"{p.conversion_rate:>7.1f}%"
        )
        print(_box_line(row, W))

    print(_empty_line(W))
    print(_box_bottom(W))
    print()
