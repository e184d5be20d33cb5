"""Emergency animation handle: a pulse task plus its cooperative cancellation token."""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class CancelToken:
    """One-way flag. The pulse loop checks it before every step."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AnimationHandle:
    """In-flight emergency pulse loop. At most one per BeaconController.

    cancel() lets the in-flight fade finish; the loop exits at its next token check.
    abort() also cancels the task itself (process shutdown only).
    """

    def __init__(self, task: "asyncio.Task[None]", token: CancelToken):
        self._task = task
        self._token = token
        task.add_done_callback(self._log_crash)

    @classmethod
    def start(
        cls,
        loop_fn: Callable[[CancelToken], Awaitable[None]],
        name: str = "emergency-pulse",
    ) -> "AnimationHandle":
        token = CancelToken()
        task = asyncio.create_task(loop_fn(token), name=name)
        return cls(task, token)

    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    def cancel(self) -> None:
        self._token.cancel()

    def abort(self) -> None:
        self._token.cancel()
        self._task.cancel()

    async def wait(self) -> None:
        """Wait for the loop to exit. Never raises the loop's error; does not cancel the task."""
        if not self._task.done():
            await asyncio.wait({self._task})

    @staticmethod
    def _log_crash(task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Emergency pulse loop crashed: %r", exc, exc_info=exc)
