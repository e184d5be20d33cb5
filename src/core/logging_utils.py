"""Structured logging for build counts, display state, and FSM transitions."""

import logging
import uuid
from typing import Dict, Optional

from src.core.state.counts import BuildCounts
from src.core.state.display import DisplayState

logger = logging.getLogger(__name__)


def new_trace_id() -> str:
    return str(uuid.uuid4())[:8]


def _ensure_trace_id(extra: dict) -> str:
    trace_id = extra.get("trace_id")
    if not trace_id:
        trace_id = new_trace_id()
        extra["trace_id"] = trace_id
    return trace_id


def _emit(event: str, extra: dict) -> None:
    msg = event + " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
    logger.info(msg)


def log_build_counts(
    counts: BuildCounts,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log BuildCounts as structured key-value."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra.update(counts.as_dict())
    _emit("build_counts", extra)


def log_display_state(
    state: DisplayState,
    trace_id: Optional[str] = None,
    color: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log the DisplayState handed to the controller."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["kind"] = state.kind.value
    if state.message:
        extra["message"] = repr(state.message)
    if color:
        extra["color"] = color
    _emit("display_state", extra)


def log_fsm_transition(
    from_state: str,
    to_state: str,
    event: str,
    trace_id: Optional[str] = None,
    guards_evaluated: Optional[Dict[str, bool]] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log FSM state transition: trace_id, from_state, to_state, event, guards_evaluated."""
    extra = extra or {}
    _ensure_trace_id(extra)
    extra["from_state"] = from_state
    extra["to_state"] = to_state
    extra["event"] = event
    if guards_evaluated is not None:
        extra["guards_evaluated"] = {k: v for k, v in guards_evaluated.items() if v}
    _emit("fsm_transition", extra)
