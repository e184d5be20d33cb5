"""BeaconController: steady fades, emergency pulse lifecycle, device failures."""

import asyncio
import logging

import pytest

from src.core.errors import LightError
from src.core.state.colors import (
    ATTENTION_COLOR,
    COLOR_ERROR,
    COLOR_EXCEPTION,
    COLOR_FAILURE,
    COLOR_OFF,
    EMERGENCY_COLOR,
)
from src.core.state.display import DisplayState
from src.core.state.enums import DisplayKind, LightMode
from src.engine.controller import BeaconController

FADE_MS = 2
EMERGENCY_FADE_MS = 3


@pytest.fixture
def controller(fake_light, metrics) -> BeaconController:
    return BeaconController(
        fake_light,
        fade_ms=FADE_MS,
        emergency_fade_ms=EMERGENCY_FADE_MS,
        metrics=metrics,
    )


async def _wait_for_calls(light, n: int, timeout: float = 1.0) -> None:
    async def _poll():
        while len(light.calls) < n:
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)


class TestSteadyStates:
    @pytest.mark.asyncio
    async def test_failure_fades_to_red(self, controller, fake_light):
        await controller.apply_state(DisplayState.failure())
        assert fake_light.calls == [(COLOR_FAILURE, FADE_MS)]
        assert fake_light.completed == [(COLOR_FAILURE, FADE_MS)]
        assert controller.mode == LightMode.STEADY
        assert controller.current == DisplayState.failure()

    @pytest.mark.asyncio
    async def test_exception_fades_to_purple(self, controller, fake_light):
        await controller.apply_state(DisplayState.exception())
        assert fake_light.calls == [(COLOR_EXCEPTION, FADE_MS)]

    @pytest.mark.asyncio
    async def test_idle_turns_light_off(self, controller, fake_light):
        await controller.apply_state(DisplayState.idle())
        assert fake_light.calls == [(COLOR_OFF, FADE_MS)]
        assert controller.mode == LightMode.IDLE

    @pytest.mark.asyncio
    async def test_transient_error_logs_reason(self, controller, fake_light, caplog):
        caplog.set_level(logging.INFO)
        await controller.apply_state(DisplayState.transient_error("Error Fetching Page"))
        assert fake_light.calls == [(COLOR_ERROR, FADE_MS)]
        assert "Error Fetching Page" in caplog.text
        assert controller.current.kind == DisplayKind.TRANSIENT_ERROR


class TestDeviceFailure:
    @pytest.mark.asyncio
    async def test_failure_does_not_raise_and_next_call_works(self, controller, fake_light, metrics):
        fake_light.fail_next = 1
        await controller.apply_state(DisplayState.failure())
        assert metrics.light_errors == 1
        assert fake_light.completed == []

        await controller.apply_state(DisplayState.exception())
        assert fake_light.completed == [(COLOR_EXCEPTION, FADE_MS)]

    @pytest.mark.asyncio
    async def test_unexpected_device_exception_is_contained(self, fake_light, metrics):
        async def boom(color, duration_ms):
            raise OSError("hid write failed")

        fake_light.fade_to = boom
        ctl = BeaconController(fake_light, fade_ms=FADE_MS, metrics=metrics)
        await ctl.apply_state(DisplayState.failure())
        assert metrics.light_errors == 1

    @pytest.mark.asyncio
    async def test_hung_fade_bounded_by_timeout(self, fake_light, metrics):
        fake_light.delay_sec = 5.0
        ctl = BeaconController(fake_light, fade_ms=FADE_MS, fade_timeout_sec=0.01, metrics=metrics)
        await asyncio.wait_for(ctl.apply_state(DisplayState.failure()), timeout=1.0)
        assert metrics.light_errors == 1

    def test_fade_timeout_defaults_to_longest_fade_plus_grace(self, fake_light, metrics):
        ctl = BeaconController(fake_light, fade_ms=500, emergency_fade_ms=1500, metrics=metrics)
        assert ctl._fade_timeout_sec == pytest.approx(6.5)

    @pytest.mark.asyncio
    async def test_wedged_pulse_fade_does_not_block_leaving_emergency(self, fake_light, metrics):
        fake_light.hang_next = 1
        ctl = BeaconController(
            fake_light,
            fade_ms=FADE_MS,
            emergency_fade_ms=EMERGENCY_FADE_MS,
            fade_timeout_sec=0.05,
            metrics=metrics,
        )
        await ctl.apply_state(DisplayState.emergency())
        await _wait_for_calls(fake_light, 1)
        await asyncio.wait_for(ctl.apply_state(DisplayState.failure()), timeout=1.0)
        assert fake_light.hung == 1
        assert not ctl.is_emergency_active
        assert fake_light.calls[-1][0] == COLOR_FAILURE
        assert metrics.light_errors == 1


class TestEmergency:
    @pytest.mark.asyncio
    async def test_pulse_alternates_emergency_and_off(self, controller, fake_light):
        await controller.apply_state(DisplayState.emergency())
        assert controller.is_emergency_active
        assert controller.mode == LightMode.EMERGENCY
        await _wait_for_calls(fake_light, 5)
        assert fake_light.colors[:5] == [
            EMERGENCY_COLOR,
            COLOR_OFF,
            EMERGENCY_COLOR,
            COLOR_OFF,
            EMERGENCY_COLOR,
        ]
        assert all(d == EMERGENCY_FADE_MS for _, d in fake_light.calls[:5])
        await controller.close()

    @pytest.mark.asyncio
    async def test_next_step_waits_for_device_completion(self, controller, fake_light):
        fake_light.delay_sec = 0.01
        await controller.apply_state(DisplayState.emergency())
        await _wait_for_calls(fake_light, 4)
        assert fake_light.max_in_flight == 1
        await controller.close()

    @pytest.mark.asyncio
    async def test_reentry_keeps_single_loop(self, controller, fake_light, metrics):
        await controller.apply_state(DisplayState.emergency())
        first = controller._animation
        await controller.apply_state(DisplayState.emergency())
        assert controller._animation is first
        assert metrics.emergency_starts == 1
        await _wait_for_calls(fake_light, 4)
        assert fake_light.max_in_flight == 1
        await controller.close()

    @pytest.mark.asyncio
    async def test_leaving_emergency_stops_fades(self, controller, fake_light):
        fake_light.delay_sec = 0.01
        await controller.apply_state(DisplayState.emergency())
        await _wait_for_calls(fake_light, 3)

        await controller.apply_state(DisplayState.failure())
        assert not controller.is_emergency_active
        assert controller.mode == LightMode.STEADY
        # Steady fade issued only after the in-flight pulse fade finished
        assert fake_light.max_in_flight == 1
        assert fake_light.calls[-1] == (COLOR_FAILURE, FADE_MS)
        n = len(fake_light.calls)

        await asyncio.sleep(0.05)
        assert len(fake_light.calls) == n

    @pytest.mark.asyncio
    async def test_emergency_after_cancel_starts_fresh_loop(self, controller, fake_light, metrics):
        await controller.apply_state(DisplayState.emergency())
        await controller.apply_state(DisplayState.idle())
        await controller.apply_state(DisplayState.emergency())
        assert controller.is_emergency_active
        assert metrics.emergency_starts == 2
        await controller.close()

    @pytest.mark.asyncio
    async def test_device_error_in_pulse_still_honors_cancel(self, controller, fake_light, metrics):
        fake_light.fail_always = True
        await controller.apply_state(DisplayState.emergency())
        await _wait_for_calls(fake_light, 2)
        assert metrics.light_errors >= 1

        fake_light.fail_always = False
        await controller.apply_state(DisplayState.idle())
        assert not controller.is_emergency_active
        n = len(fake_light.calls)
        await asyncio.sleep(0.05)
        assert len(fake_light.calls) == n
        assert fake_light.calls[-1] == (COLOR_OFF, FADE_MS)

    @pytest.mark.asyncio
    async def test_pulse_logs_alternating_phrases(self, controller, fake_light, caplog):
        caplog.set_level(logging.INFO)
        await controller.apply_state(DisplayState.emergency())
        await _wait_for_calls(fake_light, 3)
        await controller.close()
        assert "Wee!" in caplog.text
        assert "Ooo!" in caplog.text

    @pytest.mark.asyncio
    async def test_controllers_do_not_share_emergency_state(self, fake_light, metrics):
        from conftest import FakeLight

        other_light = FakeLight()
        a = BeaconController(fake_light, fade_ms=FADE_MS, emergency_fade_ms=EMERGENCY_FADE_MS, metrics=metrics)
        b = BeaconController(other_light, fade_ms=FADE_MS, emergency_fade_ms=EMERGENCY_FADE_MS, metrics=metrics)
        await a.apply_state(DisplayState.emergency())
        await b.apply_state(DisplayState.idle())
        assert a.is_emergency_active
        assert not b.is_emergency_active
        await a.close()


class TestStartupAndClose:
    @pytest.mark.asyncio
    async def test_attention_pulse(self, controller, fake_light):
        await controller.attention_pulse()
        assert fake_light.calls == [(ATTENTION_COLOR, FADE_MS), (COLOR_OFF, FADE_MS)]

    @pytest.mark.asyncio
    async def test_attention_pulse_failure_raises(self, controller, fake_light):
        fake_light.fail_always = True
        with pytest.raises(LightError):
            await controller.attention_pulse()

    @pytest.mark.asyncio
    async def test_close_stops_pulse_and_turns_off(self, controller, fake_light):
        await controller.apply_state(DisplayState.emergency())
        await _wait_for_calls(fake_light, 2)
        await controller.close()
        assert fake_light.closed is True
        assert fake_light.calls[-1] == (COLOR_OFF, FADE_MS)
        assert controller._animation is None
        n = len(fake_light.calls)
        await asyncio.sleep(0.02)
        assert len(fake_light.calls) == n

    @pytest.mark.asyncio
    async def test_close_with_dead_light_still_releases(self, controller, fake_light):
        fake_light.fail_always = True
        await controller.close()
        assert fake_light.closed is True
