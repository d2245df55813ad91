import pytest

from tinyhttpd.connection import Connection, PostData
from tinyhttpd.httputil import MAX_SENDBUFF_LEN, CgiResult, TransferMode


class FakeTransport:
    def __init__(self, accept=True):
        self.accept = accept
        self.sent = []
        self.disconnected = False

    def send_data(self, data):
        if self.accept:
            self.sent.append(bytes(data))
        return self.accept

    def disconnect(self):
        self.disconnected = True


STATUS_CLOSE = b"HTTP/1.0 200 OK\r\nServer: esp32-httpd/0.4\r\nConnection: close\r\n"


def make(accept=True):
    transport = FakeTransport(accept)
    return Connection(transport, b"\x7f\x00\x00\x01", 1234, 0), transport


def test_post_data_defaults():
    post = PostData()
    assert post.length == -1
    assert post.buffer == bytearray()


def test_start_response_http10_close():
    conn, transport = make()
    conn.start_response(200)
    conn.flush()
    assert transport.sent == [STATUS_CLOSE]


def test_start_response_custom_reason_and_http11():
    conn, transport = make()
    conn.http11 = True
    conn.start_response(404, "Not Found")
    assert conn.pending.startswith(b"HTTP/1.1 404 Not Found\r\n")


def test_transfer_mode_none_omits_connection_header():
    conn, _ = make()
    conn.set_transfer_mode(TransferMode.NONE)
    conn.start_response(101)
    assert conn.pending == b"HTTP/1.0 101 OK\r\nServer: esp32-httpd/0.4\r\n"


def test_transfer_mode_chunked_header():
    conn, _ = make()
    conn.set_transfer_mode(TransferMode.CHUNKED)
    conn.start_response(200)
    assert conn.pending.endswith(b"Transfer-Encoding: chunked\r\n")
    conn.set_transfer_mode(TransferMode.CLOSE)
    assert conn.chunked is False


def test_chunked_body_is_framed_and_terminated():
    conn, transport = make()
    conn.http11 = True
    conn.chunked = True
    conn.start_response(200)
    conn.end_headers()
    conn.send("hello")
    conn.flush()
    data = transport.sent[0]
    assert data.endswith(b"\r\n\r\n0005\r\nhello\r\n0\r\n\r\n")


def test_chunked_body_without_trailer_while_handler_active():
    conn, transport = make()
    conn.chunked = True
    conn.cgi = lambda c: CgiResult.MORE
    conn.end_headers()
    conn.send(b"abc")
    conn.flush()
    assert transport.sent[0] == b"\r\n0003\r\nabc\r\n"


def test_send_without_transport_fails():
    conn, _ = make()
    conn.transport = None
    assert conn.send("data") is False


def test_send_empty_fails():
    conn, _ = make()
    assert conn.send(b"") is False
    assert conn.pending == b""


def test_send_overflow_rejected():
    conn, _ = make()
    assert conn.send(b"x" * MAX_SENDBUFF_LEN) is True
    assert conn.send(b"y") is False
    assert len(conn.pending) == MAX_SENDBUFF_LEN


def test_failed_send_goes_to_backlog():
    conn, transport = make(accept=False)
    conn.send("abc")
    conn.flush()
    assert list(conn.backlog) == [b"abc"]
    assert conn.backlog_size == 3
    assert conn.pending == b""


def test_backlog_limit_drops_data():
    conn, _ = make(accept=False)
    for _ in range(3):
        conn.send(b"z" * MAX_SENDBUFF_LEN)
        conn.flush()
    assert len(conn.backlog) == 2
    assert conn.pending == b""


def test_header_and_end_headers():
    conn, _ = make()
    conn.header("Content-Type", "text/plain")
    conn.end_headers()
    assert conn.pending == b"Content-Type: text/plain\r\n\r\n"
    assert conn.sending_body is True


def test_redirect():
    conn, _ = make()
    conn.redirect("/index.html")
    assert conn.pending == (
        b"HTTP/1.0 302 OK\r\nServer: esp32-httpd/0.4\r\nConnection: close\r\n"
        b"Location: /index.html\r\n\r\nMoved to /index.html"
    )


def test_get_header_is_case_insensitive():
    conn, _ = make()
    conn.head = bytearray(b"GET / HTTP/1.1\r\nHost: example.com\r\nupgrade:   websocket\r\n\r\n")
    assert conn.get_header("Upgrade") == "websocket"
    assert conn.get_header("host") == "example.com"
    assert conn.get_header("Missing") is None


def test_get_header_ignores_request_line():
    conn, _ = make()
    conn.head = bytearray(b"Host: a\r\nAccept: */*\r\n\r\n")
    assert conn.get_header("Host") is None
    assert conn.get_header("Accept") == "*/*"


def test_cgi_done_without_chunking_marks_disconnect():
    conn, transport = make()
    conn.cgi = lambda c: CgiResult.DONE
    conn.cgi_done()
    assert conn.cgi is None
    assert conn.disconnect_after_sent is True
    assert transport.sent == []


def test_cgi_done_chunked_resets_for_next_request():
    conn, transport = make()
    conn.chunked = True
    conn.sending_body = True
    conn.head = bytearray(b"GET / HTTP/1.1\r\n\r\n")
    conn.post.length = 5
    conn.post.buffer = bytearray(b"hello")
    conn.post.received = 5
    conn.host_name = "example.com"
    conn.cgi_done()
    assert transport.sent == [b"0\r\n\r\n"]
    assert conn.post.length == -1
    assert conn.post.buffer == bytearray()
    assert conn.post.received == 0
    assert conn.head == bytearray()
    assert conn.host_name is None
    assert conn.chunked is False
    assert conn.disconnect_after_sent is False


def test_flush_without_transport_keeps_buffer():
    conn, _ = make()
    conn.send("abc")
    conn.transport = None
    conn.flush()
    assert conn.pending == b"abc"