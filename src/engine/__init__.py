"""Beacon engine: light controller, emergency animation, and poll scheduler."""

from .animation import AnimationHandle, CancelToken
from .controller import BeaconController
from .scheduler import PollScheduler

__all__ = ["AnimationHandle", "CancelToken", "BeaconController", "PollScheduler"]
