"""WebSocket upgrade handling, frame parsing and frame sending."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable, Optional

from tinyhttpd.base64codec import encode as b64encode
from tinyhttpd.connection import Connection
from tinyhttpd.httputil import CgiResult, TransferMode
from tinyhttpd.sha1 import sha1

log = logging.getLogger(__name__)

GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

FLAG_FIN = 0x80
OPCODE_CONTINUE = 0x0
OPCODE_TEXT = 0x1
OPCODE_BINARY = 0x2
OPCODE_CLOSE = 0x8
OPCODE_PING = 0x9
OPCODE_PONG = 0xA
OPCODE_MASK = 0x0F
IS_MASKED = 0x80

CLOSE_NORMAL = 1000
CLOSE_PROTOCOL_ERROR = 1002

_ST_FLAGS = 0
_ST_LEN0 = 1
_ST_LEN2 = 3
_ST_LEN8 = 9
_ST_MASK1 = 10
_ST_MASK4 = 13
_ST_PAYLOAD = 14


class WebsocketFlag(enum.IntFlag):
    """Flags describing a message fragment."""

    NONE = 0
    CONT = 1
    BIN = 2


RecvCallback = Callable[["Websocket", bytes, WebsocketFlag], None]
SocketCallback = Callable[["Websocket"], None]


def accept_key(key: str) -> str:
    """Return the Sec-WebSocket-Accept value for a client key."""
    return b64encode(sha1(key + GUID))


class Websocket:
    """One open WebSocket on an HTTP connection.

    ``recv_cb(ws, data, flags)`` is called for received message data,
    ``sent_cb(ws)`` when earlier output has been written and
    ``close_cb(ws)`` when the socket goes away.
    """

    def __init__(self, conn: Connection, hub: Optional["WebsocketHub"] = None) -> None:
        self.conn = conn
        self.user_data: Any = None
        self.status = 0
        self.recv_cb: Optional[RecvCallback] = None
        self.sent_cb: Optional[SocketCallback] = None
        self.close_cb: Optional[SocketCallback] = None
        self.closed_here = False
        self._hub = hub
        self._state = _ST_FLAGS
        self._flags = 0
        self._len8 = 0
        self._length = 0
        self._mask = bytearray(4)
        self._mask_counter = 0
        self._frame_cont = False

    def _send_frame_head(self, opcode: int, length: int) -> bool:
        head = bytearray([opcode & 0xFF])
        if length > 65535:
            head.append(127)
            head += (length & 0xFFFFFFFF).to_bytes(8, "big")
        elif length > 125:
            head.append(126)
            head += (length & 0xFFFF).to_bytes(2, "big")
        else:
            head.append(length)
        log.debug("Sent frame head for payload of %d bytes", length)
        return self.conn.send(bytes(head))

    def send(self, data: str | bytes, flags: WebsocketFlag = WebsocketFlag.NONE) -> bool:
        """Send one frame; True if the payload was buffered for sending."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        opcode = OPCODE_BINARY if flags & WebsocketFlag.BIN else OPCODE_TEXT
        if not flags & WebsocketFlag.CONT:
            opcode |= FLAG_FIN
        self._send_frame_head(opcode, len(payload))
        result = False
        if payload:
            result = self.conn.send(payload)
        self.conn.flush()
        return result

    def close(self, reason: int = CLOSE_NORMAL) -> None:
        """Send a close frame carrying ``reason``."""
        self._send_frame_head(FLAG_FIN | OPCODE_CLOSE, 2)
        self.conn.send((reason & 0xFFFF).to_bytes(2, "big"))
        self.closed_here = True
        self.conn.flush()

    def _header_byte(self, byte: int) -> None:
        state = self._state
        if state == _ST_FLAGS:
            self._mask_counter = 0
            self._frame_cont = False
            self._flags = byte
            self._state = _ST_LEN0
        elif state == _ST_LEN0:
            self._len8 = byte
            if (byte & 127) >= 126:
                self._length = 0
                self._state = state + 1
            else:
                self._length = byte & 127
                self._state = _ST_MASK1 if byte & IS_MASKED else _ST_PAYLOAD
        elif state <= _ST_LEN8:
            self._length = (self._length << 8) | byte
            if ((self._len8 & 127) == 126 and state == _ST_LEN2) or state == _ST_LEN8:
                self._state = _ST_MASK1 if self._len8 & IS_MASKED else _ST_PAYLOAD
            else:
                self._state = state + 1
        else:
            self._mask[state - _ST_MASK1] = byte
            self._state = state + 1

    def _handle_payload(self, payload: bytes) -> bool:
        """Act on a run of unmasked payload; True when the socket is finished."""
        opcode = self._flags & OPCODE_MASK
        if opcode == OPCODE_PING:
            if self._length > 125:
                if not self._frame_cont:
                    self.close(CLOSE_PROTOCOL_ERROR)
                return True
            if not self._frame_cont:
                self._send_frame_head(OPCODE_PONG | FLAG_FIN, self._length)
            if payload:
                self.conn.send(payload)
        elif opcode in (OPCODE_TEXT, OPCODE_BINARY, OPCODE_CONTINUE):
            if not self._len8 & IS_MASKED:
                # Clients must mask what they send to a server.
                self.close(CLOSE_PROTOCOL_ERROR)
                return True
            flags = WebsocketFlag.NONE
            if opcode == OPCODE_BINARY:
                flags |= WebsocketFlag.BIN
            if not self._flags & FLAG_FIN:
                flags |= WebsocketFlag.CONT
            if self.recv_cb is not None:
                self.recv_cb(self, payload, flags)
        elif opcode == OPCODE_CLOSE:
            log.debug("Got close frame")
            if not self.closed_here:
                code = int.from_bytes(payload[:2], "big") if len(payload) >= 2 else CLOSE_NORMAL
                self.close(code)
            return True
        elif not self._frame_cont:
            log.warning("Unknown websocket opcode 0x%X", opcode)
        return False

    def receive(self, conn: Connection, data: bytes) -> CgiResult:
        """Parse bytes received from the client; DONE once the socket is finished."""
        buf = bytes(data)
        result = CgiResult.MORE
        i = 0
        while i < len(buf):
            was_header = self._state != _ST_PAYLOAD
            if was_header:
                self._header_byte(buf[i])
            if self._state != _ST_PAYLOAD:
                i += 1
                continue
            start = i + 1 if was_header else i
            size = min(len(buf) - start, self._length)
            payload = bytes(
                byte ^ self._mask[(self._mask_counter + offset) & 3]
                for offset, byte in enumerate(buf[start : start + size])
            )
            self._mask_counter += size
            if self._handle_payload(payload):
                result = CgiResult.DONE
                break
            i = start + size
            self._length -= size
            if self._length == 0:
                self._state = _ST_FLAGS
            else:
                self._frame_cont = True
        if result == CgiResult.DONE:
            self._free()
            conn.cgi_data = None
        return result

    def _free(self) -> None:
        log.debug("Websocket freed")
        if self._hub is not None:
            self._hub._remove(self)
        elif self.close_cb is not None:
            self.close_cb(self)


class WebsocketHub:
    """Keeps track of open websockets and upgrades HTTP requests to them.

    Use :meth:`handler` as a route handler; the route argument is the
    receive callback given to every new websocket.
    """

    def __init__(self) -> None:
        self._sockets: list[Websocket] = []
        self._lock = threading.RLock()

    @property
    def websockets(self) -> list[Websocket]:
        """The open websockets, oldest first."""
        with self._lock:
            return list(self._sockets)

    def _remove(self, ws: Websocket) -> None:
        with self._lock:
            if ws.close_cb is not None:
                ws.close_cb(ws)
            if ws in self._sockets:
                self._sockets.remove(ws)

    def handler(self, conn: Connection) -> CgiResult:
        """Route handler performing the upgrade handshake."""
        if conn.transport is None:
            log.debug("Websocket cleanup")
            ws = conn.cgi_data
            if isinstance(ws, Websocket):
                ws._free()
            conn.cgi_data = None
            return CgiResult.DONE

        if conn.cgi_data is None:
            upgrade = conn.get_header("Upgrade")
            key = conn.get_header("Sec-WebSocket-Key")
            if upgrade is not None and upgrade.lower() == "websocket" and key is not None:
                ws = Websocket(conn, self)
                conn.cgi_data = ws
                conn.set_transfer_mode(TransferMode.NONE)
                conn.start_response(101)
                conn.header("Upgrade", "websocket")
                conn.header("Connection", "upgrade")
                conn.header("Sec-WebSocket-Accept", accept_key(key))
                protocol = conn.get_header("Sec-WebSocket-Protocol")
                if protocol is not None:
                    conn.header("Sec-WebSocket-Protocol", protocol)
                conn.end_headers()
                conn.recv_handler = ws.receive
                ws.recv_cb = conn.cgi_arg
                with self._lock:
                    self._sockets.append(ws)
                return CgiResult.MORE
            conn.start_response(500)
            conn.end_headers()
            return CgiResult.DONE

        ws = conn.cgi_data
        if ws.sent_cb is not None:
            ws.sent_cb(ws)
        return CgiResult.MORE

    def broadcast(
        self, resource: str, data: str | bytes, flags: WebsocketFlag = WebsocketFlag.NONE
    ) -> int:
        """Send ``data`` to every websocket opened at ``resource``; return how many."""
        count = 0
        with self._lock:
            for ws in list(self._sockets):
                if ws.conn.url == resource:
                    ws.send(data, flags)
                    count += 1
        return count