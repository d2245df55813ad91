"""Base64 (MIME) encoding and decoding with optional output limits."""

from __future__ import annotations

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_DECODE_TABLE = {char: value for value, char in enumerate(_ALPHABET)}
_WHITESPACE = frozenset(" \t\n\v\f\r")
_MASK32 = 0xFFFFFFFF


def _as_text(data: str | bytes | bytearray | memoryview) -> str:
    if isinstance(data, str):
        return data
    return bytes(data).decode("latin-1")


def _as_bytes(data: str | bytes | bytearray | memoryview) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def decode(data: str | bytes, max_length: int | None = None) -> bytes:
    """Decode base64 text.

    Whitespace is skipped; decoding stops at the first '=' or at the first
    character outside the base64 alphabet.  If the decoded result would be
    longer than ``max_length`` bytes, ValueError is raised.
    """
    out = bytearray()
    accumulator = 0
    bits = 0
    for char in _as_text(data):
        if char in _WHITESPACE:
            continue
        if char == "=":
            break
        value = _DECODE_TABLE.get(char)
        if value is None:
            break
        accumulator = ((accumulator << 6) | value) & _MASK32
        bits += 6
        if bits >= 8:
            bits -= 8
            if max_length is not None and len(out) >= max_length:
                raise ValueError("decoded data does not fit in the output limit")
            out.append((accumulator >> bits) & 0xFF)
    return bytes(out)


def encode(data: str | bytes, max_length: int | None = None) -> str:
    """Encode bytes as padded base64 text.

    If the encoded text would be longer than ``max_length`` characters,
    ValueError is raised.  Strings are encoded as UTF-8 first.
    """
    out: list[str] = []
    accumulator = 0
    bits = 0
    for byte in _as_bytes(data):
        accumulator = ((accumulator << 8) | byte) & _MASK32
        bits += 8
        while bits >= 6:
            bits -= 6
            out.append(_ALPHABET[(accumulator >> bits) & 63])
    if bits:
        out.append(_ALPHABET[(accumulator << (6 - bits)) & 63])
    out.extend("=" * (-len(out) % 4))
    if max_length is not None and len(out) > max_length:
        raise ValueError("encoded data does not fit in the output limit")
    return "".join(out)