"""Exception hierarchy for the beacon daemon: device, fetch, parse, config."""


class BeaconError(Exception):
    """Base class for all beacon errors."""


class ConfigError(BeaconError):
    """Invalid or missing configuration value."""


class LightError(BeaconError):
    """Device I/O failed (USB unplugged, HID write error, fade timed out)."""


class LightUnavailableError(LightError):
    """No light device could be opened at startup. Fatal."""


class FetchError(BeaconError):
    """Network round trip to the status page failed."""


class ParseError(BeaconError):
    """Status page did not contain the expected structure."""
