"""BuildCounts: per-tick tally of builder columns on the console page."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BuildCounts:
    """Immutable tally of builder states. total is derived, never stored."""

    successes: int = 0
    failures: int = 0
    exceptions: int = 0
    unknown: int = 0

    def __post_init__(self) -> None:
        for name in ("successes", "failures", "exceptions", "unknown"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an int, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @property
    def total(self) -> int:
        return self.successes + self.failures + self.exceptions + self.unknown

    def as_dict(self) -> dict:
        return {
            "successes": self.successes,
            "failures": self.failures,
            "exceptions": self.exceptions,
            "unknown": self.unknown,
            "total": self.total,
        }
