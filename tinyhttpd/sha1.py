"""SHA-1 digest and HMAC-SHA1."""

from __future__ import annotations

import struct

HASH_LENGTH = 20
BLOCK_LENGTH = 64

_MASK32 = 0xFFFFFFFF
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)
_K0 = 0x5A827999
_K20 = 0x6ED9EBA1
_K40 = 0x8F1BBCDC
_K60 = 0xCA62C1D6
_HMAC_IPAD = 0x36
_HMAC_OPAD = 0x5C


def _to_bytes(data: str | bytes | bytearray | memoryview) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _rol32(number: int, bits: int) -> int:
    return ((number << bits) | (number >> (32 - bits))) & _MASK32


def _compress(state: tuple[int, ...], block: bytes) -> tuple[int, ...]:
    words = list(struct.unpack(">16I", block))
    a, b, c, d, e = state
    for i in range(80):
        if i >= 16:
            mixed = words[(i + 13) & 15] ^ words[(i + 8) & 15] ^ words[(i + 2) & 15] ^ words[i & 15]
            words[i & 15] = _rol32(mixed, 1)
        if i < 20:
            f = (d ^ (b & (c ^ d))) + _K0
        elif i < 40:
            f = (b ^ c ^ d) + _K20
        elif i < 60:
            f = ((b & c) | (d & (b | c))) + _K40
        else:
            f = (b ^ c ^ d) + _K60
        t = (f + _rol32(a, 5) + e + words[i & 15]) & _MASK32
        a, b, c, d, e = t, a, _rol32(b, 30), c, d
    return tuple((old + new) & _MASK32 for old, new in zip(state, (a, b, c, d, e)))


class Sha1:
    """Incremental SHA-1 hash."""

    def __init__(self) -> None:
        self._state = _INITIAL_STATE
        self._pending = bytearray()
        self._byte_count = 0

    def update(self, data: str | bytes) -> None:
        """Feed more data into the hash; strings are hashed as UTF-8."""
        chunk = _to_bytes(data)
        self._byte_count = (self._byte_count + len(chunk)) & _MASK32
        self._pending.extend(chunk)
        whole = len(self._pending) - len(self._pending) % BLOCK_LENGTH
        for start in range(0, whole, BLOCK_LENGTH):
            self._state = _compress(self._state, bytes(self._pending[start : start + BLOCK_LENGTH]))
        del self._pending[:whole]

    def digest(self) -> bytes:
        """Return the 20-byte digest of everything fed so far."""
        tail = bytes(self._pending) + b"\x80"
        tail += b"\x00" * ((56 - len(tail)) % BLOCK_LENGTH)
        tail += struct.pack(">Q", self._byte_count * 8)
        state = self._state
        for start in range(0, len(tail), BLOCK_LENGTH):
            state = _compress(state, tail[start : start + BLOCK_LENGTH])
        return struct.pack(">5I", *state)

    def hexdigest(self) -> str:
        """Return the digest as lower-case hexadecimal text."""
        return self.digest().hex()


class HmacSha1:
    """Incremental HMAC using SHA-1."""

    def __init__(self, key: str | bytes) -> None:
        key_bytes = _to_bytes(key)
        if len(key_bytes) > BLOCK_LENGTH:
            key_bytes = sha1(key_bytes)
        self._key = key_bytes.ljust(BLOCK_LENGTH, b"\x00")
        self._inner = Sha1()
        self._inner.update(bytes(byte ^ _HMAC_IPAD for byte in self._key))

    def update(self, data: str | bytes) -> None:
        """Feed more message data."""
        self._inner.update(data)

    def digest(self) -> bytes:
        """Return the 20-byte authentication code."""
        outer = Sha1()
        outer.update(bytes(byte ^ _HMAC_OPAD for byte in self._key))
        outer.update(self._inner.digest())
        return outer.digest()


def sha1(data: str | bytes) -> bytes:
    """Return the SHA-1 digest of ``data``."""
    hasher = Sha1()
    hasher.update(data)
    return hasher.digest()


def hmac_sha1(key: str | bytes, data: str | bytes) -> bytes:
    """Return the HMAC-SHA1 of ``data`` under ``key``."""
    mac = HmacSha1(key)
    mac.update(data)
    return mac.digest()