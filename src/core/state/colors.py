"""RGB colors and the static DisplayKind -> Color table."""

from typing import Dict, NamedTuple

from src.core.state.enums import DisplayKind


class Color(NamedTuple):
    red: int
    green: int
    blue: int

    def __str__(self) -> str:
        return f"({self.red},{self.green},{self.blue})"


COLOR_OFF = Color(0, 0, 0)
COLOR_ERROR = Color(0, 0, 200)
COLOR_FAILURE = Color(255, 0, 0)
COLOR_EXCEPTION = Color(180, 0, 180)
EMERGENCY_COLOR = Color(255, 255, 0)
ATTENTION_COLOR = Color(180, 180, 180)

# EMERGENCY has no steady color: it alternates EMERGENCY_COLOR <-> COLOR_OFF
COLOR_FOR_KIND: Dict[DisplayKind, Color] = {
    DisplayKind.IDLE: COLOR_OFF,
    DisplayKind.FAILURE: COLOR_FAILURE,
    DisplayKind.EXCEPTION: COLOR_EXCEPTION,
    DisplayKind.TRANSIENT_ERROR: COLOR_ERROR,
}


def color_for(kind: DisplayKind) -> Color:
    """Steady color for kind. Raises KeyError for EMERGENCY."""
    return COLOR_FOR_KIND[kind]
