"""Display kinds and light modes for the beacon controller."""

import enum


class DisplayKind(str, enum.Enum):
    """Tag of a DisplayState: what the light should show."""

    IDLE = "idle"  # All green (or nothing to report): light off
    FAILURE = "failure"  # At least one failing builder
    EXCEPTION = "exception"  # Infra failures only
    EMERGENCY = "emergency"  # Too few successes: pulse
    TRANSIENT_ERROR = "transient_error"  # Fetch or parse failed this tick


class LightMode(str, enum.Enum):
    """What is active on the device right now. Exactly one at any instant."""

    IDLE = "idle"
    STEADY = "steady"
    EMERGENCY = "emergency"
