"""Pytest fixtures for Build Beacon tests."""

import asyncio
import sys
from pathlib import Path
from typing import List, Tuple

import pytest
import yaml

# Ensure project root is in path for src imports
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from src.core.errors import LightError  # noqa: E402
from src.core.metrics import BeaconMetrics  # noqa: E402
from src.core.state.colors import Color  # noqa: E402
from src.light.base import Light  # noqa: E402


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


class FakeLight(Light):
    """Records fades; each fade takes delay_sec. fail_always / fail_next make fade_to raise LightError.

    hang_next makes that many fades block until cancelled (a wedged device).
    """

    def __init__(self, delay_sec: float = 0.002):
        self.delay_sec = delay_sec
        self.calls: List[Tuple[Color, int]] = []
        self.completed: List[Tuple[Color, int]] = []
        self.fail_always = False
        self.fail_next = 0
        self.hang_next = 0
        self.hung = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fade_to(self, color: Color, duration_ms: int) -> None:
        self.calls.append((color, duration_ms))
        if self.fail_always or self.fail_next > 0:
            if self.fail_next > 0:
                self.fail_next -= 1
            raise LightError("usb gone")
        if self.hang_next > 0:
            self.hang_next -= 1
            self.hung += 1
            await asyncio.Event().wait()
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_sec)
        finally:
            self.in_flight -= 1
        self.completed.append((color, duration_ms))

    def close(self) -> None:
        self.closed = True

    @property
    def colors(self) -> List[Color]:
        return [c for c, _ in self.calls]


@pytest.fixture
def project_root() -> Path:
    return _project_root()


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Path to config file. Prefers config.yaml, falls back to example."""
    cfg = project_root / "config" / "config.yaml"
    if cfg.exists():
        return cfg
    return project_root / "config" / "config.yaml.example"


@pytest.fixture
def config(config_path: Path) -> dict:
    """Load config dict from YAML."""
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@pytest.fixture
def fake_light() -> FakeLight:
    return FakeLight()


@pytest.fixture
def metrics() -> BeaconMetrics:
    return BeaconMetrics()


def console_page(successes: int = 0, failures: int = 0, exceptions: int = 0, unknown: int = 0) -> str:
    """Minimal console HTML with one builder column per count."""
    cols = []
    cols += ['<div class="console-builder-column"><a class="console-Success"></a></div>'] * successes
    cols += ['<div class="console-builder-column"><a class="console-Failure"></a></div>'] * failures
    cols += ['<div class="console-builder-column"><a class="console-InfraFailure"></a></div>'] * exceptions
    cols += ['<div class="console-builder-column"><a class="console-Running"></a></div>'] * unknown
    return "<html><body><div class=\"console\">" + "".join(cols) + "</div></body></html>"


@pytest.fixture
def page():
    """Factory fixture: page(successes, failures, exceptions, unknown) -> HTML."""
    return console_page
