"""Light abstract interface: the single device operation the controller uses.

A fade is complete when fade_to returns. Implementations raise LightError on device I/O
failure; fade_to may also never return (hung device), which callers bound with a timeout.
"""

from abc import ABC, abstractmethod

from src.core.state.colors import Color


class Light(ABC):
    """Abstract single-color indicator light.

    Implementations (e.g. Blink1Light) drive the hardware; caller (BeaconController)
    is the only writer and never issues two fade sequences concurrently.
    """

    @abstractmethod
    async def fade_to(self, color: Color, duration_ms: int) -> None:
        """Fade to color over duration_ms; return once the fade has completed.

        Raises LightError if the device rejects the command or is gone.
        """
        ...

    def close(self) -> None:
        """Release the device. Default: nothing to release."""
        return None
