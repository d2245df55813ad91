"""HTTP basic authentication route handler."""

from __future__ import annotations

from typing import Callable, Optional

from tinyhttpd.base64codec import decode as b64decode
from tinyhttpd.connection import Connection
from tinyhttpd.httputil import CgiResult

HTTP_AUTH_REALM = "Protected"
AUTH_MAX_USER_LEN = 32
AUTH_MAX_PASS_LEN = 32
FORBIDDEN = "401 Forbidden."

UserLookup = Callable[[Connection, int], Optional[tuple[str, str]]]


def _credentials(header: Optional[str]) -> Optional[str]:
    if header is None or not header.startswith("Basic"):
        return None
    try:
        raw = b64decode(header[6:], AUTH_MAX_USER_LEN + AUTH_MAX_PASS_LEN + 2)
    except ValueError:
        raw = b""
    return raw.split(b"\0", 1)[0].decode("latin-1")


def auth_basic(conn: Connection) -> CgiResult:
    """Require basic authentication before later routes handle the request.

    The route argument is ``lookup(conn, number)`` returning the
    ``number``-th (user, password) pair, or None when there are no more.
    Matching credentials give AUTHENTICATED; otherwise a 401 answer is sent.
    """
    if conn.transport is None:
        return CgiResult.DONE

    given = _credentials(conn.get_header("Authorization"))
    if given is not None:
        lookup: UserLookup = conn.cgi_arg
        number = 0
        while True:
            entry = lookup(conn, number)
            if entry is None:
                break
            user, secret = entry
            if given == f"{user}:{secret}":
                return CgiResult.AUTHENTICATED
            number += 1

    conn.start_response(401)
    conn.header("Content-Type", "text/plain")
    conn.header("WWW-Authenticate", f'Basic realm="{HTTP_AUTH_REALM}"')
    conn.end_headers()
    conn.send(FORBIDDEN)
    return CgiResult.DONE