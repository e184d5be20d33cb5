"""FSM package: daemon lifecycle."""

from src.fsm.daemon_fsm import DaemonFSM, DaemonState

__all__ = ["DaemonFSM", "DaemonState"]
