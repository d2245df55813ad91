"""Per-connection request state and response buffering."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from tinyhttpd.httputil import (
    MAX_BACKLOG_SIZE,
    MAX_SENDBUFF_LEN,
    SERVER_VERSION,
    CgiResult,
    Method,
    TransferMode,
)

_CHUNK_PLACEHOLDER = b"0000\r\n"
_LAST_CHUNK = b"0\r\n\r\n"
_LEADING_JUNK = "".join(chr(code) for code in range(1, 33))


class _Transport(Protocol):
    def send_data(self, data: bytes) -> bool: ...

    def disconnect(self) -> None: ...


def _to_bytes(data: str | bytes | bytearray | memoryview) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _hex_nibble(value: int) -> int:
    return ord("0123456789ABCDEF"[value & 0xF])


@dataclass
class PostData:
    """The body of a POST request as it comes in.

    ``length`` is -1 while headers are still being received and 0 when the
    request has no body.
    """

    length: int = -1
    buffer_size: int = 0
    buffer: bytearray = field(default_factory=bytearray)
    received: int = 0
    multipart_boundary: Optional[str] = None


class Connection:
    """One HTTP client connection: request data plus a buffered response.

    ``transport`` must offer ``send_data(bytes) -> bool`` and
    ``disconnect()``; it is set to None once the peer has gone away.
    """

    def __init__(self, transport: Optional[_Transport], remote_ip: Any, remote_port: int, slot: int = 0) -> None:
        self.transport = transport
        self.remote_ip = remote_ip
        self.remote_port = remote_port
        self.slot = slot

        self.request_type: Optional[Method] = None
        self.url: Optional[str] = None
        self.get_args: Optional[str] = None
        self.host_name: Optional[str] = None
        self.cgi: Optional[Callable[["Connection"], CgiResult]] = None
        self.cgi_arg: Any = None
        self.cgi_data: Any = None
        self.recv_handler: Optional[Callable[["Connection", bytes], CgiResult]] = None
        self.post = PostData()

        self.head = bytearray()
        self.http11 = False
        self.chunked = False
        self.sending_body = False
        self.disconnect_after_sent = False
        self.no_connection_header = False

        self.backlog: deque[bytes] = deque()
        self._send_buffer = bytearray()
        self._chunk_start: Optional[int] = None

    @property
    def backlog_size(self) -> int:
        """Number of bytes waiting in the backlog."""
        return sum(len(item) for item in self.backlog)

    @property
    def pending(self) -> bytes:
        """Bytes buffered but not yet flushed."""
        return bytes(self._send_buffer)

    def send(self, data: str | bytes) -> bool:
        """Append data to the send buffer; False if it does not fit or cannot be sent."""
        if self.transport is None:
            return False
        payload = _to_bytes(data)
        if not payload:
            return False
        if self.chunked and self.sending_body and self._chunk_start is None:
            if len(self._send_buffer) + len(payload) + len(_CHUNK_PLACEHOLDER) > MAX_SENDBUFF_LEN:
                return False
            self._chunk_start = len(self._send_buffer)
            self._send_buffer.extend(_CHUNK_PLACEHOLDER)
        if len(self._send_buffer) + len(payload) > MAX_SENDBUFF_LEN:
            return False
        self._send_buffer.extend(payload)
        return True

    def set_transfer_mode(self, mode: TransferMode) -> None:
        """Choose how the response body is delimited."""
        if mode == TransferMode.CLOSE:
            self.chunked = False
            self.no_connection_header = False
        elif mode == TransferMode.CHUNKED:
            self.chunked = True
            self.no_connection_header = False
        elif mode == TransferMode.NONE:
            self.chunked = False
            self.no_connection_header = True

    def start_response(self, code: int, reason: Optional[str] = None) -> None:
        """Send the status line and the fixed server headers."""
        connection_header = "Connection: close\r\n"
        if self.chunked:
            connection_header = "Transfer-Encoding: chunked\r\n"
        if self.no_connection_header:
            connection_header = ""
        line = (
            f"HTTP/1.{1 if self.http11 else 0} {code} {reason or 'OK'}\r\n"
            f"Server: esp32-httpd/{SERVER_VERSION}\r\n{connection_header}"
        )
        self.send(line)

    def header(self, field: str, value: str) -> None:
        """Send one response header."""
        self.send(field)
        self.send(": ")
        self.send(value)
        self.send("\r\n")

    def end_headers(self) -> None:
        """Finish the headers; what follows is body."""
        self.send("\r\n")
        self.sending_body = True

    def redirect(self, url: str) -> None:
        """Answer with a 302 redirect to ``url``."""
        self.start_response(302)
        self.header("Location", url)
        self.end_headers()
        self.send("Moved to ")
        self.send(url)

    def get_header(self, name: str) -> Optional[str]:
        """Return the value of a request header, or None if it is absent."""
        text = self.head.decode("latin-1")
        end = text.find("\r\n\r\n")
        if end >= 0:
            text = text[:end]
        wanted = name.lower()
        for line in text.split("\n")[1:]:
            line = line.lstrip(_LEADING_JUNK)
            if line[: len(name)].lower() == wanted and line[len(name) : len(name) + 1] == ":":
                value = line[len(name) + 1 :].lstrip(" ")
                for stop in ("\r", "\n", "\0"):
                    cut = value.find(stop)
                    if cut >= 0:
                        value = value[:cut]
                return value
        return None

    def flush(self) -> None:
        """Hand buffered data to the transport, keeping it in the backlog on failure."""
        if self.transport is None:
            return
        if self._chunk_start is not None:
            self.send(b"\r\n")
            start = self._chunk_start
            length = len(self._send_buffer) - start - 8
            self._send_buffer[start : start + 4] = bytes(
                _hex_nibble(length >> shift) for shift in (12, 8, 4, 0)
            )
            self._chunk_start = None
        if self.chunked and self.sending_body and self.cgi is None:
            self._send_buffer.extend(_LAST_CHUNK)
        if not self._send_buffer:
            return
        data = bytes(self._send_buffer)
        if not self.transport.send_data(data):
            if self.backlog_size + len(data) > MAX_BACKLOG_SIZE:
                self._send_buffer.clear()
                return
            self.backlog.append(data)
        self._send_buffer.clear()

    def cgi_done(self) -> None:
        """Mark the handler finished; reuse the connection or close it after sending."""
        self.cgi = None
        if self.chunked:
            self.flush()
            self.head.clear()
            self.post.length = -1
            self.http11 = False
            self.chunked = False
            self.sending_body = False
            self.disconnect_after_sent = False
            self.no_connection_header = False
            self.post.buffer = bytearray()
            self.post.received = 0
            self.host_name = None
        else:
            self.disconnect_after_sent = True