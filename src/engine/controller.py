"""Beacon controller: sole owner of the light; renders DisplayState, runs the emergency pulse."""

import asyncio
import logging
from typing import Optional

from src.core.errors import LightError
from src.core.logging_utils import log_display_state
from src.core.metrics import BeaconMetrics, get_metrics
from src.core.state.colors import ATTENTION_COLOR, COLOR_OFF, EMERGENCY_COLOR, Color, color_for
from src.core.state.display import DisplayState
from src.core.state.enums import DisplayKind, LightMode
from src.engine.animation import AnimationHandle, CancelToken
from src.light.base import Light

logger = logging.getLogger(__name__)

# Slack over the longest fade before a fade counts as hung
FADE_GRACE_SEC = 5.0

# One emergency cycle: (color, phrase logged when the half-cycle starts)
_EMERGENCY_PHASES = (
    (EMERGENCY_COLOR, "Hair still on fire! Wee!"),
    (COLOR_OFF, "Ooo!"),
)


class BeaconController:
    """Maps DisplayState onto a single Light. Not thread-safe; call from one event loop."""

    def __init__(
        self,
        light: Light,
        fade_ms: int = 500,
        emergency_fade_ms: int = 1500,
        fade_timeout_sec: Optional[float] = None,
        metrics: Optional[BeaconMetrics] = None,
    ):
        self._light = light
        self._fade_ms = fade_ms
        self._emergency_fade_ms = emergency_fade_ms
        if fade_timeout_sec is None:
            fade_timeout_sec = max(fade_ms, emergency_fade_ms) / 1000.0 + FADE_GRACE_SEC
        self._fade_timeout_sec = fade_timeout_sec
        self._metrics = metrics or get_metrics()

        self._current: Optional[DisplayState] = None
        self._mode = LightMode.IDLE
        self._animation: Optional[AnimationHandle] = None

    @property
    def current(self) -> Optional[DisplayState]:
        """Last requested DisplayState (None before the first tick)."""
        return self._current

    @property
    def mode(self) -> LightMode:
        return self._mode

    @property
    def is_emergency_active(self) -> bool:
        return self._animation is not None and not self._animation.cancelled

    async def _fade(self, color: Color, duration_ms: int) -> None:
        """One device fade. A fade still running after fade_timeout_sec raises LightError."""
        try:
            await asyncio.wait_for(
                self._light.fade_to(color, duration_ms),
                timeout=self._fade_timeout_sec,
            )
        except asyncio.TimeoutError as e:
            raise LightError(
                f"fade to {color} did not complete within {self._fade_timeout_sec}s"
            ) from e

    async def attention_pulse(self) -> None:
        """Startup liveness flash. Raises LightError: a dead light at startup is fatal."""
        logger.debug("Attention pulse")
        await self._fade(ATTENTION_COLOR, self._fade_ms)
        await self._fade(COLOR_OFF, self._fade_ms)
        self._mode = LightMode.IDLE

    async def apply_state(self, state: DisplayState, trace_id: Optional[str] = None) -> None:
        """Render state. Never raises on device failure."""
        self._current = state
        self._metrics.set_last_kind(state.kind.value)
        if state.is_emergency:
            if self.is_emergency_active:
                logger.debug("Emergency already pulsing; keep current loop")
                return
            log_display_state(state, trace_id=trace_id, color="pulse")
            # A cancelled loop may still be finishing its last fade
            await self._stop_animation()
            self._start_animation()
            return

        await self._stop_animation()
        color = color_for(state.kind)
        log_display_state(state, trace_id=trace_id, color=str(color))
        if state.message:
            logger.warning(state.message)
        self._mode = LightMode.IDLE if state.kind == DisplayKind.IDLE else LightMode.STEADY
        try:
            await self._fade(color, self._fade_ms)
        except LightError as e:
            # Flaky USB: the next tick retries implicitly
            self._metrics.inc_light_errors()
            logger.warning("Light fade to %s failed: %s", color, e)
        except Exception as e:
            self._metrics.inc_light_errors()
            logger.exception("Light fade to %s raised: %s", color, e)

    def _start_animation(self) -> None:
        self._mode = LightMode.EMERGENCY
        self._metrics.inc_emergency_starts()
        self._animation = AnimationHandle.start(self._pulse_loop)

    async def _stop_animation(self) -> None:
        """Cancel the pulse loop and wait out its in-flight fade (at most one)."""
        handle = self._animation
        if handle is None:
            return
        handle.cancel()
        await handle.wait()
        if self._animation is handle:
            self._animation = None

    async def _pulse_loop(self, token: CancelToken) -> None:
        """Alternate emergency color and off; each step starts only after the previous fade completed."""
        logger.warning("Emergency: too few successful builders, pulsing")
        step_sec = self._emergency_fade_ms / 1000.0
        while True:
            for color, phrase in _EMERGENCY_PHASES:
                if token.cancelled:
                    logger.info("Emergency pulse stopped")
                    return
                logger.info(phrase)
                try:
                    await self._fade(color, self._emergency_fade_ms)
                except Exception as e:
                    self._metrics.inc_light_errors()
                    logger.warning("Emergency fade to %s failed: %s", color, e)
                    # Keep the cadence when the device fails fast
                    if not token.cancelled:
                        await asyncio.sleep(step_sec)

    async def close(self) -> None:
        """Stop the pulse, turn the light off (best effort), release the device."""
        handle = self._animation
        self._animation = None
        if handle is not None:
            handle.abort()
            await handle.wait()
        try:
            await self._fade(COLOR_OFF, self._fade_ms)
        except Exception as e:
            logger.debug("Light off on close failed: %s", e)
        finally:
            self._mode = LightMode.IDLE
            self._light.close()
