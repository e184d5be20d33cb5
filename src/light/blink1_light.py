"""blink(1) USB light: fade via HID write, completion awaited for the fade duration."""

import asyncio
import logging
from typing import Optional

from blink1.blink1 import Blink1, Blink1ConnectionFailed

from src.core.errors import LightError, LightUnavailableError
from src.core.state.colors import Color
from src.light.base import Light

logger = logging.getLogger(__name__)


class Blink1Light(Light):
    """Single blink(1) device. open() fails fast with LightUnavailableError."""

    def __init__(self, device: Blink1):
        self._device = device
        self._closed = False

    @classmethod
    def open(cls, serial: Optional[str] = None) -> "Blink1Light":
        try:
            device = Blink1(serial_number=serial)
        except (Blink1ConnectionFailed, OSError, ValueError) as e:
            raise LightUnavailableError(f"No blink(1) found ({e})") from e
        logger.info("Opened blink(1)%s", f" serial={serial}" if serial else "")
        return cls(device)

    def _write_fade(self, color: Color, duration_ms: int) -> None:
        self._device.fade_to_rgb(duration_ms, color.red, color.green, color.blue)

    async def fade_to(self, color: Color, duration_ms: int) -> None:
        if self._closed:
            raise LightError("blink(1) is closed")
        loop = asyncio.get_running_loop()
        try:
            # HID write is blocking; keep it off the event loop
            await loop.run_in_executor(None, self._write_fade, color, duration_ms)
        except (Blink1ConnectionFailed, OSError, ValueError) as e:
            raise LightError(f"blink(1) fade to {color} failed: {e}") from e
        # The device runs the fade itself; it is done after duration_ms
        await asyncio.sleep(duration_ms / 1000.0)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._device.close()
        except (Blink1ConnectionFailed, OSError, ValueError) as e:
            logger.debug("blink(1) close: %s", e)
