"""
Response handlers.

The server has exactly one page. Whatever the client sends, it gets the
memory stats page back.
"""

from .stats_page import build_stats_response, render_stats_page

__all__ = [
    "build_stats_response",
    "render_stats_page",
]
