from tinyhttpd.auth import auth_basic
from tinyhttpd.base64codec import encode
from tinyhttpd.connection import Connection
from tinyhttpd.httputil import CgiResult


class FakeTransport:
    def __init__(self):
        self.sent = []

    def send_data(self, data):
        self.sent.append(data)
        return True

    def disconnect(self):
        pass


USERS = [("admin", "password"), ("guest", "secret")]


def lookup(conn, number):
    return USERS[number] if number < len(USERS) else None


def make_conn(authorization=None):
    conn = Connection(FakeTransport(), "10.0.0.2", 5000)
    head = "GET /private HTTP/1.1\r\n"
    if authorization is not None:
        head += f"Authorization: {authorization}\r\n"
    head += "\r\n"
    conn.head = bytearray(head.encode("latin-1"))
    conn.cgi_arg = lookup
    return conn


def test_first_user_accepted():
    conn = make_conn("Basic " + encode("admin:password"))
    assert auth_basic(conn) == CgiResult.AUTHENTICATED
    assert conn.pending == b""


def test_second_user_accepted():
    conn = make_conn("Basic " + encode("guest:secret"))
    assert auth_basic(conn) == CgiResult.AUTHENTICATED


def test_wrong_password_rejected():
    conn = make_conn("Basic " + encode("admin:secret"))
    assert auth_basic(conn) == CgiResult.DONE
    response = conn.pending
    assert response.startswith(b"HTTP/1.0 401 OK\r\n")
    assert b'WWW-Authenticate: Basic realm="Protected"\r\n' in response
    assert response.endswith(b"\r\n\r\n401 Forbidden.")


def test_missing_header_rejected():
    conn = make_conn()
    assert auth_basic(conn) == CgiResult.DONE
    assert b"Content-Type: text/plain\r\n" in conn.pending


def test_other_scheme_rejected():
    conn = make_conn("Bearer token")
    assert auth_basic(conn) == CgiResult.DONE
    assert b"401" in conn.pending


def test_overlong_credentials_rejected():
    conn = make_conn("Basic " + encode("admin:" + "x" * 100))
    assert auth_basic(conn) == CgiResult.DONE
    assert b"401 Forbidden." in conn.pending


def test_aborted_connection_is_done():
    conn = make_conn("Basic " + encode("admin:password"))
    conn.transport = None
    assert auth_basic(conn) == CgiResult.DONE
    assert conn.pending == b""