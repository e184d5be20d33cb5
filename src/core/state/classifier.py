"""Display classifier: map BuildCounts (or a fetch/parse error) to a DisplayState."""

from typing import Any, Dict, Optional

from src.core.state.counts import BuildCounts
from src.core.state.display import DisplayState

# Default thresholds (overridable via config)
_DEFAULT = {
    "emergency_success_ratio": 0.6,
}

FETCH_ERROR_MESSAGE = "Error Fetching Page"


def _get_cfg(config: Dict[str, Any], key: str) -> Any:
    """Read key from the classifier section or the flat dict."""
    sec = config.get("classifier")
    if isinstance(sec, dict) and key in sec:
        return sec[key]
    return config.get(key, _DEFAULT[key])


class StateClassifier:
    """Maps BuildCounts -> DisplayState. Pure; same counts always give same state."""

    @staticmethod
    def _is_emergency(counts: BuildCounts, ratio: float) -> bool:
        # No builders is not an emergency (and must not divide by zero)
        total = counts.total
        if total == 0:
            return False
        return counts.successes < total * ratio

    @classmethod
    def classify(
        cls,
        counts: BuildCounts,
        config: Optional[Dict[str, Any]] = None,
    ) -> DisplayState:
        """Precedence: EMERGENCY > FAILURE > EXCEPTION > IDLE."""
        config = config or {}
        ratio = float(_get_cfg(config, "emergency_success_ratio"))
        if cls._is_emergency(counts, ratio):
            return DisplayState.emergency()
        if counts.failures:
            return DisplayState.failure()
        if counts.exceptions:
            return DisplayState.exception()
        return DisplayState.idle()

    @staticmethod
    def from_fetch_error() -> DisplayState:
        return DisplayState.transient_error(FETCH_ERROR_MESSAGE)

    @staticmethod
    def from_parse_error(error: BaseException) -> DisplayState:
        return DisplayState.transient_error(str(error) or "Error Parsing HTML")
