"""
HTTP protocol components.

There is no request parser: requests are read as raw bytes and logged.
Only the response side of HTTP/1.1 is implemented.
"""

from .response import HTTPResponse, ResponseBuilder, HTML_CONTENT_TYPE

__all__ = [
    "HTTPResponse",
    "ResponseBuilder",
    "HTML_CONTENT_TYPE",
]
