"""Build beacon daemon: fetch -> parse -> classify -> controller, on a fixed poll interval."""

import asyncio
import logging
import signal
from typing import Any, Callable, Optional

from src.config.settings import (
    get_classifier_config,
    get_fetch_config,
    get_light_config,
    get_page_config,
    get_poll_config,
    read_config,
)
from src.core.errors import FetchError, LightError, LightUnavailableError, ParseError
from src.core.logging_utils import log_build_counts, log_fsm_transition, new_trace_id
from src.core.metrics import BeaconMetrics
from src.core.state.classifier import StateClassifier
from src.core.state.counts import BuildCounts
from src.core.state.display import DisplayState
from src.engine.controller import BeaconController
from src.engine.scheduler import PollScheduler
from src.fetch.fetcher import StatusFetcher
from src.fetch.page_parser import parse_console_page
from src.fsm.daemon_fsm import DaemonFSM, DaemonState
from src.light.base import Light

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1


class BeaconDaemon:
    """Single-process beacon: owns the light (via BeaconController), fetcher and scheduler."""

    def __init__(
        self,
        config: dict,
        config_path: Optional[str] = None,
        light_factory: Optional[Callable[[], Light]] = None,
        fetcher: Optional[StatusFetcher] = None,
        metrics: Optional[BeaconMetrics] = None,
    ):
        # 1. Config sections
        self.config = config
        self._config_path = config_path
        self._poll_cfg = get_poll_config(config)
        self._fetch_cfg = get_fetch_config(config)
        self._page_cfg = get_page_config(config)
        self._light_cfg = get_light_config(config)
        self._classifier_cfg = get_classifier_config(config)
        self.url = self._poll_cfg["url"]

        # 2. Collaborators
        self._metrics = metrics or BeaconMetrics()
        self._light_factory = light_factory or self._open_blink1
        self.fetcher = fetcher or StatusFetcher(
            self.url,
            timeout_sec=self._fetch_cfg["timeout_sec"],
            user_agent=self._fetch_cfg["user_agent"],
        )
        self.scheduler = PollScheduler(self._poll_cfg["interval_sec"], metrics=self._metrics)
        self.controller: Optional[BeaconController] = None

        # 3. Lifecycle
        self._fsm_daemon = DaemonFSM(on_transition=self._on_daemon_transition)
        self._exit_code = EXIT_OK

    @property
    def metrics(self) -> BeaconMetrics:
        return self._metrics

    @property
    def state(self) -> DaemonState:
        return self._fsm_daemon.current

    @property
    def exit_code(self) -> int:
        return self._exit_code

    def _open_blink1(self) -> Light:
        # Deferred so the hidapi stack is only loaded when a real device is wanted
        from src.light.blink1_light import Blink1Light

        return Blink1Light.open(serial=self._light_cfg["serial"])

    @staticmethod
    def _on_daemon_transition(from_state: DaemonState, to_state: DaemonState) -> None:
        log_fsm_transition(from_state.value, to_state.value, event="daemon")

    # --- Tick pipeline ---

    @staticmethod
    def _log_summary(counts: BuildCounts) -> None:
        logger.info(
            "Done\nSuccessful Builders: %d\nFailing Builders: %d\nInfra Failures: %d",
            counts.successes,
            counts.failures,
            counts.exceptions,
        )
        if counts.unknown:
            logger.info("Unknown Builder States: %d", counts.unknown)

    async def _read_state(self, trace_id: str) -> DisplayState:
        """Fetch and classify the page. Fetch/parse failures become TRANSIENT_ERROR."""
        try:
            body = await self.fetcher.fetch()
        except FetchError as e:
            self._metrics.inc_fetch_errors()
            logger.debug("Fetch failed: %s", e)
            return StateClassifier.from_fetch_error()
        try:
            counts = parse_console_page(body, self._page_cfg)
        except ParseError as e:
            self._metrics.inc_parse_errors()
            return StateClassifier.from_parse_error(e)
        self._log_summary(counts)
        log_build_counts(counts, trace_id=trace_id)
        return StateClassifier.classify(counts, self._classifier_cfg)

    async def poll_once(self) -> DisplayState:
        """One tick: Pinging -> fetch -> parse -> classify -> apply_state. Returns the applied state."""
        if self.controller is None:
            raise RuntimeError("poll_once before the light was opened")
        trace_id = new_trace_id()
        self._metrics.inc_ticks()
        logger.info("Pinging...")
        state = await self._read_state(trace_id)
        await self.controller.apply_state(state, trace_id=trace_id)
        self._metrics.log_snapshot()
        return state

    # --- State handlers: each runs its logic and returns the next state ---

    async def _handle_idle(self) -> DaemonState:
        """IDLE: announce what we watch. Transition to OPENING_LIGHT."""
        interval = self._poll_cfg["interval_minutes"]
        logger.info("Watching %s every %g minute(s).", self.url, interval)
        return DaemonState.OPENING_LIGHT

    async def _handle_opening_light(self) -> DaemonState:
        """OPENING_LIGHT: open the device. No device is fatal (STOPPED, exit 1)."""
        try:
            light = self._light_factory()
        except LightUnavailableError as e:
            logger.error("No blink(1) found: %s", e)
            self._exit_code = EXIT_STARTUP_FAILURE
            return DaemonState.STOPPED
        self.controller = BeaconController(
            light,
            fade_ms=self._light_cfg["fade_ms"],
            emergency_fade_ms=self._light_cfg["emergency_fade_ms"],
            fade_timeout_sec=self._light_cfg["fade_timeout_sec"],
            metrics=self._metrics,
        )
        return DaemonState.ANNOUNCING

    async def _handle_announcing(self) -> DaemonState:
        """ANNOUNCING: attention pulse to show we're alive. Failure is fatal."""
        try:
            await self.controller.attention_pulse()
        except LightError as e:
            logger.error("Attention pulse failed, light unusable: %s", e)
            self._exit_code = EXIT_STARTUP_FAILURE
            return DaemonState.STOPPING
        return DaemonState.POLLING

    async def _handle_polling(self) -> DaemonState:
        """POLLING: run the scheduler until stop is requested."""
        logger.debug("Polling every %.0fs", self.scheduler.interval_sec)
        await self.scheduler.start(self.poll_once)
        return DaemonState.STOPPING

    async def _handle_stopping(self) -> DaemonState:
        """STOPPING: stop pulse, light off, close device and HTTP client."""
        self.scheduler.stop()
        if self.controller is not None:
            try:
                await self.controller.close()
            except Exception as e:
                logger.debug("Controller close: %s", e)
        try:
            await self.fetcher.aclose()
        except Exception as e:
            logger.debug("Fetcher close: %s", e)
        logger.info("[Daemon] state=STOPPING → STOPPED (exit)")
        return DaemonState.STOPPED

    def _get_state_handlers(self) -> dict:
        """Map state -> async handler that returns next state."""
        return {
            DaemonState.IDLE: self._handle_idle,
            DaemonState.OPENING_LIGHT: self._handle_opening_light,
            DaemonState.ANNOUNCING: self._handle_announcing,
            DaemonState.POLLING: self._handle_polling,
            DaemonState.STOPPING: self._handle_stopping,
        }

    async def run(self) -> int:
        """State-driven loop: run handler for current state, transition to returned state. Returns exit code."""
        handlers = self._get_state_handlers()
        try:
            while not self._fsm_daemon.is_stopped():
                current = self._fsm_daemon.current
                handler = handlers.get(current)
                if handler is None:
                    logger.warning("[Daemon] state=%s | no handler; stopping", current.value)
                    break
                try:
                    next_state = await handler()
                    if self._fsm_daemon.current != current:
                        # stop() moved us while the handler ran
                        continue
                    if not self._fsm_daemon.transition(next_state):
                        logger.error(
                            "[Daemon] invalid transition %s → %s; stopping",
                            current.value,
                            next_state.value,
                        )
                        if self._fsm_daemon.can_transition_to(DaemonState.STOPPING):
                            self._fsm_daemon.transition(DaemonState.STOPPING)
                            continue
                        break
                except Exception as e:
                    logger.exception("[Daemon] state=%s handler raised: %s", current.value, e)
                    if current in (DaemonState.OPENING_LIGHT, DaemonState.ANNOUNCING):
                        self._exit_code = EXIT_STARTUP_FAILURE
                    if self._fsm_daemon.can_transition_to(DaemonState.STOPPING):
                        self._fsm_daemon.transition(DaemonState.STOPPING)
                    else:
                        self._fsm_daemon.transition(DaemonState.STOPPED)
        finally:
            if not self._fsm_daemon.is_stopped():
                if self._fsm_daemon.current != DaemonState.STOPPING:
                    self._fsm_daemon.transition(DaemonState.STOPPING)
                try:
                    await self._handle_stopping()
                except Exception as e:
                    logger.exception("Cleanup (_handle_stopping) failed: %s", e)
                self._fsm_daemon.transition(DaemonState.STOPPED)
        return self._exit_code

    def stop(self) -> None:
        self._fsm_daemon.request_stop()
        self.scheduler.stop()


async def _run_daemon_main(config_path: Optional[str] = None) -> int:
    """Load config, register signals, run BeaconDaemon. SIGTERM/SIGINT call daemon.stop()."""
    config, resolved_path = read_config(config_path)
    logger.debug("Config loaded from %s", resolved_path)
    daemon = BeaconDaemon(config, config_path=resolved_path)
    loop = asyncio.get_running_loop()

    def _on_stop_signal(*_args: Any) -> None:
        logger.info("[Daemon] received SIGTERM/SIGINT → requesting stop")
        loop.call_soon_threadsafe(daemon.stop)

    try:
        loop.add_signal_handler(signal.SIGTERM, _on_stop_signal)
    except (NotImplementedError, OSError):
        pass  # add_signal_handler not supported on Windows
    try:
        loop.add_signal_handler(signal.SIGINT, _on_stop_signal)
    except (NotImplementedError, OSError):
        pass
    return await daemon.run()


def run_daemon(config_path: Optional[str] = None) -> int:
    """Entry: run the beacon daemon (SIGTERM/SIGINT stop). Returns the process exit code."""
    return asyncio.run(_run_daemon_main(config_path))
