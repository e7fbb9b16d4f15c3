# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for blogengage.

Commands are organized into separate modules:
- shared.py: Colors, box drawing and adapter builders
- session.py: Visitor session inspection
- promotions.py: Promotion administration and targeting
- analytics.py: Engagement analytics
- config.py, db.py, status.py: Operations
"""

from blogengage.cli.shared import (
    BOX_WIDTH,
    B,
    Box,
    C,
    Colors,
    I,
    Icons,
    build_evaluator,
    build_tracker,
)

__all__ = [
    "BOX_WIDTH",
    "B",
    "Box",
    "C",
    "Colors",
    "I",
    "Icons",
    "build_evaluator",
    "build_tracker",
]
