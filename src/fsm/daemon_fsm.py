"""Daemon lifecycle FSM: IDLE -> OPENING_LIGHT -> ANNOUNCING -> POLLING -> STOPPING -> STOPPED.

Transition implementation (app/beacon.py):
- IDLE -> OPENING_LIGHT: _handle_idle
- IDLE -> STOPPED: request_stop() when IDLE
- OPENING_LIGHT -> ANNOUNCING: _handle_opening_light (device opened)
- OPENING_LIGHT -> STOPPED: _handle_opening_light (no device; fatal, exit 1)
- OPENING_LIGHT -> STOPPING: request_stop() while opening
- ANNOUNCING -> POLLING: _handle_announcing (attention pulse done)
- ANNOUNCING -> STOPPING: attention pulse failed (fatal, exit 1) or request_stop()
- POLLING -> STOPPING: scheduler returned (request_stop()) or handler raised
- STOPPING -> STOPPED: _handle_stopping
"""

import enum
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DaemonState(str, enum.Enum):
    """Daemon lifecycle states."""

    IDLE = "idle"
    OPENING_LIGHT = "opening_light"
    ANNOUNCING = "announcing"  # Startup attention pulse
    POLLING = "polling"
    STOPPING = "stopping"
    STOPPED = "stopped"


# Valid transitions: from_state -> set of allowed to_states
_TRANSITIONS: dict[DaemonState, set[DaemonState]] = {
    DaemonState.IDLE: {DaemonState.OPENING_LIGHT, DaemonState.STOPPED},
    DaemonState.OPENING_LIGHT: {
        DaemonState.ANNOUNCING,
        DaemonState.STOPPING,
        DaemonState.STOPPED,
    },
    DaemonState.ANNOUNCING: {DaemonState.POLLING, DaemonState.STOPPING},
    DaemonState.POLLING: {DaemonState.STOPPING},
    DaemonState.STOPPING: {DaemonState.STOPPED},
    DaemonState.STOPPED: set(),
}


# States from which request_stop() goes through STOPPING so the light is released
_STOPPABLE = frozenset({DaemonState.OPENING_LIGHT, DaemonState.ANNOUNCING, DaemonState.POLLING})

TransitionCallback = Callable[[DaemonState, DaemonState], None]


class DaemonFSM:
    """Current lifecycle state of the beacon daemon; refuses moves not in _TRANSITIONS."""

    def __init__(self, on_transition: Optional[TransitionCallback] = None):
        self._current = DaemonState.IDLE
        self._on_transition = on_transition
        self._history: list[DaemonState] = [DaemonState.IDLE]

    @property
    def current(self) -> DaemonState:
        return self._current

    @property
    def history(self) -> list[DaemonState]:
        """States visited so far, oldest first."""
        return list(self._history)

    def allowed(self) -> frozenset[DaemonState]:
        return frozenset(_TRANSITIONS.get(self._current, ()))

    def can_transition_to(self, to_state: DaemonState) -> bool:
        return to_state in self.allowed()

    def transition(self, to_state: DaemonState) -> bool:
        """Move to to_state. Returns False (and stays put) if the move is not allowed."""
        from_state = self._current
        if not self.can_transition_to(to_state):
            logger.warning(
                "[DaemonFSM] refused %s -> %s; allowed from %s: %s",
                from_state.value,
                to_state.value,
                from_state.value,
                ", ".join(sorted(s.value for s in self.allowed())) or "none",
            )
            return False
        self._current = to_state
        self._history.append(to_state)
        logger.debug("[DaemonFSM] %s -> %s", from_state.value, to_state.value)
        if self._on_transition is not None:
            try:
                self._on_transition(from_state, to_state)
            except Exception as e:
                # A logging hook must not block the lifecycle
                logger.debug("[DaemonFSM] on_transition hook failed: %s", e)
        return True

    def is_stopped(self) -> bool:
        return self._current is DaemonState.STOPPED

    def request_stop(self) -> bool:
        """IDLE stops at once; OPENING_LIGHT/ANNOUNCING/POLLING go to STOPPING. False otherwise."""
        if self._current is DaemonState.IDLE:
            return self.transition(DaemonState.STOPPED)
        if self._current in _STOPPABLE:
            return self.transition(DaemonState.STOPPING)
        return False
