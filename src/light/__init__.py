"""Light drivers: abstract Light. The blink(1) driver lives in src.light.blink1_light."""

from src.light.base import Light

__all__ = ["Light"]
