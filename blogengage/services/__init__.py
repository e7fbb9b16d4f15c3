# ==============================================================================
# Application Services
# ==============================================================================
"""
Services that combine core logic with infrastructure adapters.
"""

from blogengage.services.engagement import EngagementService, normalize_link

__all__ = [
    "EngagementService",
    "normalize_link",
]
