"""DisplayState: the tagged variant the controller renders."""

from dataclasses import dataclass
from typing import Optional

from src.core.state.enums import DisplayKind


@dataclass(frozen=True)
class DisplayState:
    """Immutable display request. message is the human-readable reason (TRANSIENT_ERROR)."""

    kind: DisplayKind
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "DisplayState":
        return cls(DisplayKind.IDLE)

    @classmethod
    def failure(cls) -> "DisplayState":
        return cls(DisplayKind.FAILURE)

    @classmethod
    def exception(cls) -> "DisplayState":
        return cls(DisplayKind.EXCEPTION)

    @classmethod
    def emergency(cls) -> "DisplayState":
        return cls(DisplayKind.EMERGENCY)

    @classmethod
    def transient_error(cls, message: str) -> "DisplayState":
        return cls(DisplayKind.TRANSIENT_ERROR, message)

    @property
    def is_emergency(self) -> bool:
        return self.kind == DisplayKind.EMERGENCY
