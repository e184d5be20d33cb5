"""Status page fetch and parse."""

from .fetcher import StatusFetcher
from .page_parser import parse_console_page

__all__ = ["StatusFetcher", "parse_console_page"]
