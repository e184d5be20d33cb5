"""Console page parser: tally builder columns into BuildCounts."""

from typing import Dict, Optional

import soupsieve
from bs4 import BeautifulSoup

from src.core.errors import ParseError
from src.core.state.counts import BuildCounts

_DEFAULT_SELECTORS = {
    "column_selector": ".console-builder-column",
    "success_selector": ".console-Success",
    "failure_selector": ".console-Failure",
    "exception_selector": ".console-InfraFailure",
}


def parse_console_page(html: str, selectors: Optional[Dict[str, str]] = None) -> BuildCounts:
    """Classify each builder column by the first status marker it contains.

    A column with a success marker counts as a success even if it also holds failure markers;
    columns without any marker are unknown.
    """
    sel = {**_DEFAULT_SELECTORS, **(selectors or {})}
    if not html or not html.strip():
        raise ParseError("Error Parsing HTML")
    try:
        column_sel, success_sel, failure_sel, exception_sel = (
            soupsieve.compile(sel[key])
            for key in ("column_selector", "success_selector", "failure_selector", "exception_selector")
        )
    except soupsieve.SelectorSyntaxError as e:
        raise ParseError(f"Bad page selector: {e}") from e
    soup = BeautifulSoup(html, "html.parser")
    columns = column_sel.select(soup)
    if not columns:
        raise ParseError(f"Could not find {sel['column_selector']}")

    successes = failures = exceptions = unknown = 0
    for column in columns:
        if success_sel.select_one(column) is not None:
            successes += 1
        elif failure_sel.select_one(column) is not None:
            failures += 1
        elif exception_sel.select_one(column) is not None:
            exceptions += 1
        else:
            unknown += 1
    return BuildCounts(
        successes=successes,
        failures=failures,
        exceptions=exceptions,
        unknown=unknown,
    )
