# ==============================================================================
# Visitor Fingerprint - Pure Domain Logic
# ==============================================================================
"""
Best-effort device fingerprint for enriching analytics payloads.

The browser characteristics are joined with "|" and folded with the classic
31-multiplier rolling hash over UTF-16 code units, wrapping to a signed 32-bit
integer after each step. The absolute value is rendered in base 36, so the
same device yields the same short token the browser-side tracker produces.

This is a weak heuristic. It must never be used for access control.
"""

from blogengage.core.models import DeviceProfile

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_int32(value: int) -> int:
    """Wrap an integer to the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def rolling_hash(text: str) -> int:
    """
    Fold a string into a signed 32-bit hash (hash = hash * 31 + code unit).

    Iterates UTF-16 code units so characters outside the BMP contribute two
    surrogate units, as they do in the browser.
    """
    data = text.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(h * 31 + unit)
    return h


def fingerprint_source(profile: DeviceProfile) -> str:
    """Join the profile fields in the order the hash expects."""
    return "|".join(
        [
            profile.user_agent,
            profile.language,
            f"{profile.screen_width}x{profile.screen_height}",
            str(profile.timezone_offset),
            profile.canvas_signature,
        ]
    )


def compute_fingerprint(profile: DeviceProfile) -> str:
    """
    Derive the short fingerprint token for a device profile.

    Args:
        profile: Browser characteristics

    Returns:
        Base-36 token, e.g. "1x2f9k"
    """
    return to_base36(abs(rolling_hash(fingerprint_source(profile))))
