"""
=============================================================================
STATS PAGE
=============================================================================

Renders a StatsSnapshot as the HTML page every client gets back.

    StatsSnapshot(total_memory_kb=16384, used_memory_kb=4096)
                │
                ▼  render_stats_page()
    <html> ... <li><strong>Total Memory:</strong> 16384 kB</li> ...
                │
                ▼  build_stats_response()
    HTTP/1.1 200 OK
    Content-Type: text/html; charset=UTF-8
    Content-Length: <bytes in body>

Both functions are pure. No I/O, no error path.

=============================================================================
"""

from ..http.response import HTTPResponse, ResponseBuilder
from ..stats import StatsSnapshot


PAGE_TITLE = "Unikernel Stats"
PAGE_HEADING = "Hello, Unikernel World!"

STATS_PAGE_TEMPLATE = """
<html>
    <head>
        <meta charset="UTF-8">
        <title>{title}</title>
    </head>
    <body>
        <h1>{heading}</h1>
        <p>Here are some system stats:</p>
        <ul>
            <li><strong>Total Memory:</strong> {total_memory_kb} kB</li>
            <li><strong>Used Memory:</strong> {used_memory_kb} kB</li>
        </ul>
    </body>
</html>
"""


def render_stats_page(snapshot: StatsSnapshot) -> str:
    """Format the HTML document for one snapshot."""
    return STATS_PAGE_TEMPLATE.format(
        title=PAGE_TITLE,
        heading=PAGE_HEADING,
        total_memory_kb=snapshot.total_memory_kb,
        used_memory_kb=snapshot.used_memory_kb,
    )


def build_stats_response(snapshot: StatsSnapshot) -> HTTPResponse:
    """
    Build the complete 200 response for one snapshot.

    Header order on the wire is Content-Type then Content-Length.
    """
    return ResponseBuilder().html(render_stats_page(snapshot)).build()
