"""Shared HTTP constants and helpers: URL decoding, argument lookup, MIME types."""

from __future__ import annotations

from enum import IntEnum
from typing import AnyStr

SERVER_VERSION = "0.4"
MAX_HEAD_LEN = 1024
MAX_POST_LEN = 2048
MAX_SENDBUFF_LEN = 2048
MAX_BACKLOG_SIZE = 4 * 1024
MAX_CONNECTIONS = 4


class CgiResult(IntEnum):
    """What a request handler reports back to the server."""

    MORE = 0
    DONE = 1
    NOT_FOUND = 2
    AUTHENTICATED = 3


class Method(IntEnum):
    """HTTP request methods the server understands."""

    GET = 1
    POST = 2


class TransferMode(IntEnum):
    """How the response body is delimited."""

    CLOSE = 0
    CHUNKED = 1
    NONE = 2


_MIME_TYPES = {
    "htm": "text/htm",
    "html": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "svg": "image/svg+xml",
    "xml": "text/xml",
    "json": "application/json",
}
_DEFAULT_MIME_TYPE = "text/html"


def _hex_value(char: str) -> int:
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "A" <= char <= "F":
        return ord(char) - ord("A") + 10
    if "a" <= char <= "f":
        return ord(char) - ord("a") + 10
    return 0


def _decode_text(value: str, max_length: int | None) -> str:
    out: list[str] = []
    escape_stage = 0
    escaped = 0
    for char in value:
        if max_length is not None and len(out) >= max_length:
            break
        if escape_stage == 1:
            escaped = _hex_value(char) << 4
            escape_stage = 2
        elif escape_stage == 2:
            out.append(chr(escaped + _hex_value(char)))
            escape_stage = 0
        elif char == "%":
            escape_stage = 1
        elif char == "+":
            out.append(" ")
        else:
            out.append(char)
    return "".join(out)


def url_decode(value: AnyStr, max_length: int | None = None) -> AnyStr:
    """Decode a percent-encoded value, turning '+' into a space.

    Invalid hex digits count as zero; an escape cut off at the end is
    dropped.  At most ``max_length`` units are produced.  The result has
    the same type (str or bytes) as ``value``.
    """
    if isinstance(value, (bytes, bytearray)):
        return _decode_text(bytes(value).decode("latin-1"), max_length).encode("latin-1")
    return _decode_text(value, max_length)


def find_arg(line: str | None, name: str, max_length: int | None = None) -> str | None:
    """Find ``name`` in GET or POST form data and return its decoded value.

    Returns None if the line is missing or holds no such argument.  Scanning
    stops at a line break that starts an argument.
    """
    if line is None:
        return None
    rest = line
    while rest and rest[0] not in "\r\n":
        if rest.startswith(name) and rest[len(name) : len(name) + 1] == "=":
            value = rest[len(name) + 1 :]
            end = value.find("&")
            if end >= 0:
                value = value[:end]
            return url_decode(value, max_length)
        amp = rest.find("&")
        if amp < 0:
            break
        rest = rest[amp + 1 :]
    return None


def get_mimetype(url: str) -> str:
    """Return the MIME type for a URL, judged by its extension."""
    extension = url.rsplit(".", 1)[-1]
    return _MIME_TYPES.get(extension.lower(), _DEFAULT_MIME_TYPE)