# ==============================================================================
# Visitor Session Commands
# ==============================================================================
"""
Inspect and reset the visitor session stored for a browser in Valkey.
"""

import json
from typing import Annotated

import typer

from blogengage.cli.shared import (
    BOX_WIDTH,
    DEFAULT_BROWSER,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    build_tracker,
)
from blogengage.core.models import DeviceProfile, VisitorSession

BrowserOption = Annotated[
    str, typer.Option("--browser", "-b", help="Browser key whose storage to use")
]


def _print_session(session: VisitorSession, returning: bool) -> None:
    W = BOX_WIDTH
    print()
    print(_box_header("VISITOR SESSION", W))
    print(_empty_line(W))
    print(_box_line(f"  Id:             {C.WHITE}{session.id}{C.RESET}", W))
    print(_box_line(f"  Created:        {session.created_at:%Y-%m-%d %H:%M:%S %Z}", W))
    print(_box_line(f"  Last activity:  {session.last_activity:%Y-%m-%d %H:%M:%S %Z}", W))
    visitor = "returning" if returning else "new"
    print(_box_line(f"  Visitor:        {visitor}", W))
    print(_empty_line(W))

    print(_section_header(f"Viewed posts ({len(session.viewed_posts)})", I.BULLET, W))
    for post_id in sorted(session.viewed_posts):
        print(_box_line(f"  {I.ARROW} {post_id}", W))
    print(_section_header(f"Viewed promotions ({len(session.viewed_promotions)})", I.PROMO, W))
    for promotion_id in sorted(session.viewed_promotions):
        print(_box_line(f"  {I.ARROW} {promotion_id}", W))
    print(_empty_line(W))
    print(_box_bottom(W))
    print()


# ==============================================================================
# Commands
# ==============================================================================


def session_show(
    browser: BrowserOption = DEFAULT_BROWSER,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show the current visitor session (created if absent or expired).

    Examples:
        blogengage session show
        blogengage session show --browser alice --json
    """
    tracker = build_tracker(browser)
    returning = tracker.is_returning_visitor()
    session = tracker.get_or_create_session()

    if json_output:
        data = json.loads(session.to_storage())
        data["returning"] = returning
        print(json.dumps(data, indent=2))
        return

    _print_session(session, returning)


def session_clear(
    browser: BrowserOption = DEFAULT_BROWSER,
) -> None:
    """Discard the visitor session and start a new empty one."""
    tracker = build_tracker(browser)
    session = tracker.clear_session()
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Session reset, new id {C.WHITE}{session.id}{C.RESET}")


def session_fingerprint(
    user_agent: Annotated[str, typer.Option("--user-agent", help="Browser user agent")] = "",
    language: Annotated[str, typer.Option("--language", help="Browser language")] = "",
    width: Annotated[int, typer.Option("--width", help="Screen width in pixels")] = 0,
    height: Annotated[int, typer.Option("--height", help="Screen height in pixels")] = 0,
    tz_offset: Annotated[
        int, typer.Option("--tz-offset", help="Timezone offset in minutes (as browsers report)")
    ] = 0,
    canvas: Annotated[str, typer.Option("--canvas", help="Canvas signature (data URL)")] = "",
) -> None:
    """Compute the device fingerprint for a browser profile.

    Examples:
        blogengage session fingerprint --user-agent "Mozilla/5.0" --language en-US \\
            --width 1920 --height 1080 --tz-offset -120
    """
    from blogengage.core.fingerprint import compute_fingerprint

    profile = DeviceProfile(
        user_agent=user_agent,
        language=language,
        screen_width=width,
        screen_height=height,
        timezone_offset=tz_offset,
        canvas_signature=canvas,
    )
    print(compute_fingerprint(profile))
