"""Application entry: beacon daemon and run_daemon."""

from src.app.beacon import BeaconDaemon, run_daemon

__all__ = ["BeaconDaemon", "run_daemon"]
