"""Build counts, display states, colors, and the display classifier."""

from .enums import DisplayKind, LightMode
from .counts import BuildCounts
from .display import DisplayState
from .colors import COLOR_FOR_KIND, Color, color_for
from .classifier import StateClassifier

__all__ = [
    "DisplayKind",
    "LightMode",
    "BuildCounts",
    "DisplayState",
    "Color",
    "COLOR_FOR_KIND",
    "color_for",
    "StateClassifier",
]
