"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

This module turns a status, some headers, and a body into the exact bytes
that go out on the socket.

=============================================================================
HTTP RESPONSE STRUCTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  STATUS LINE                                                     │
    │  ─────────────────────────────────────────────────────────────  │
    │  HTTP/1.1 200 OK\r\n                                            │
    │  └──────┘ └─┘ └┘                                                │
    │  Version  Code Reason                                            │
    ├─────────────────────────────────────────────────────────────────┤
    │  HEADERS                                                         │
    │  ─────────────────────────────────────────────────────────────  │
    │  Content-Type: text/html; charset=UTF-8\r\n                     │
    │  Content-Length: 412\r\n        ← Byte length of the body!      │
    │  \r\n                           ← Empty line = end of headers   │
    ├─────────────────────────────────────────────────────────────────┤
    │  BODY                                                            │
    │  ─────────────────────────────────────────────────────────────  │
    │  <html>...</html>                                                │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
CONTENT-LENGTH COUNTS BYTES, NOT CHARACTERS
=============================================================================

    "kB"   → 2 characters, 2 bytes
    "µs"   → 2 characters, 3 bytes in UTF-8!

The body is encoded to UTF-8 FIRST and Content-Length is taken from the
encoded bytes. Taking len() of the str would undercount as soon as the
page contains a non-ASCII character, and the client would cut the body
short.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Union


HTML_CONTENT_TYPE = "text/html; charset=UTF-8"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    This is a plain data container. Use ResponseBuilder to construct one.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Builder returns          to_bytes()              Socket sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
            │                       │                        │
        HTTPResponse(            b"HTTP/1.1 200 OK\r\n   conn.send_once(
          status=200,              Content-Type: ...\r\n     response_bytes
          headers={...},           \r\n                    )
          body=b"..."              <html>..."
        )

    =========================================================================
    """

    status: int = 200                                      # Status code
    reason: str = "OK"                                     # Reason phrase
    headers: Dict[str, str] = field(default_factory=dict)  # Insertion-ordered
    body: bytes = b""                                      # Encoded body
    version: str = "HTTP/1.1"                              # HTTP version

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {self.status} {self.reason}"

    def to_bytes(self) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\r\n                         ← Status line
            Content-Type: text/html; charset=UTF-8\r\n
            Content-Length: 412\r\n                     ← Auto-added if missing
            \r\n                                        ← Separator
            <html>...                                   ← Body bytes

        =====================================================================

        Returns:
            Complete HTTP response as bytes.
        """
        # Copy headers to avoid modifying original
        response_headers = dict(self.headers)

        # Content-Length: without it the client can't tell where the body ends
        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Usage:
        response = (ResponseBuilder()
            .html("<h1>Hello</h1>")
            .build())

    build() always sets Content-Length from the encoded body, so a built
    response can never disagree with itself about its size.
    """

    def __init__(self):
        self._status = 200
        self._reason = "OK"
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body.

        Args:
            body: Response body (string auto-encoded to UTF-8)
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def html(self, html: str) -> "ResponseBuilder":
        """
        Set an HTML response body.

        Sets Content-Type to text/html with UTF-8 charset.
        """
        self.content_type(HTML_CONTENT_TYPE)
        return self.body(html)

    def build(self) -> HTTPResponse:
        """
        Build and return the HTTPResponse object.

        Content-Length is (re)computed here from the final body.
        """
        headers = dict(self._headers)
        headers["Content-Length"] = str(len(self._body))
        return HTTPResponse(
            status=self._status,
            reason=self._reason,
            headers=headers,
            body=self._body,
        )
