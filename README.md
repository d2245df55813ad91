# tinyhttpd

Dependency-free building blocks for a small HTTP server that works on raw
bytes from any transport, plus a toolkit for a 128×64 monochrome OLED panel.

## What is in the package

- `tinyhttpd.connection` – `Connection` holds one client's request state
  (URL, headers, `PostData`) and buffers the response: status line, headers,
  body, chunked transfer encoding and a send backlog for data the transport
  could not take.
- `tinyhttpd.httputil` – `url_decode`, `find_arg`, `get_mimetype`, and the
  enums `CgiResult`, `Method` and `TransferMode`.
- `tinyhttpd.auth` – `auth_basic`, a handler for HTTP basic authentication.
- `tinyhttpd.websocket` – `WebsocketHub`, `Websocket`, `WebsocketFlag` and
  `accept_key`: upgrade handshake, frame parsing, sending and broadcast.
- `tinyhttpd.base64codec` – `encode` and `decode`.
- `tinyhttpd.sha1` – `Sha1`, `HmacSha1`, `sha1` and `hmac_sha1`.
- `tinyhttpd.display` – `Display`, a framebuffer with lines, rectangles,
  circles, progress bars and bitmaps; `Color`.
- `tinyhttpd.text` – `Font`, `TextDisplay`, `TextAlignment`,
  `Utf8ToLatin1` and `utf8_to_latin1`.
- `tinyhttpd.console` – `LogBuffer`, a scrolling text log.
- `tinyhttpd.ui` – `DisplayUi`, rotating frames with slide transitions,
  indicators and overlays.

## What it does not do

The package has no request parser, no route table and no socket loop, and it
installs no command. It does not listen on a port or read requests off the
network by itself, and it does not serve files from a directory. You bring
the transport and the dispatching: put the raw request head into
`Connection.head`, call your handlers with the connection, and pass received
bytes on to `Connection.recv_handler` once a handler has set one.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Building a response

A transport is any object with `send_data(bytes) -> bool` and
`disconnect()`. Output is collected by `send` and handed to the transport by
`flush`; if `send_data` returns False the data is kept in `backlog`.

```python
from tinyhttpd.connection import Connection

class Transport:
    def __init__(self):
        self.sent = []

    def send_data(self, data):
        self.sent.append(data)
        return True

    def disconnect(self):
        pass

transport = Transport()
conn = Connection(transport, "127.0.0.1", 50000)
conn.start_response(200)
conn.header("Content-Type", "text/plain")
conn.end_headers()
conn.send("hello")
conn.flush()
```

`get_header(name)` looks a header up, case-insensitively, in the request
head stored in `conn.head`, and returns None when it is absent.
`redirect(url)` sends a 302 answer. `set_transfer_mode` chooses between
`TransferMode.CLOSE`, `CHUNKED` and `NONE`; with chunked mode each flush
writes one chunk, and a final empty chunk is added once `cgi` is None.
`cgi_done()` either resets the connection for the next request (chunked)
or marks it to be closed after sending.

## Handlers

A handler takes a `Connection` and returns a `CgiResult`: `MORE` when it has
more to send, `DONE` when it has finished, `NOT_FOUND` or `AUTHENTICATED`
to hand the request on. Its argument is read from `conn.cgi_arg`.

`auth_basic` expects `conn.cgi_arg` to be a lookup `lookup(conn, number)`
returning the `number`-th `(user, password)` pair, or None when there are no
more. If the request's `Authorization` header matches one of them it returns
`AUTHENTICATED`; otherwise it sends a 401 answer and returns `DONE`.

```python
from tinyhttpd.auth import auth_basic

users = [("admin", "password")]

def lookup(conn, number):
    return users[number] if number < len(users) else None

conn.cgi_arg = lookup
result = auth_basic(conn)
```

`WebsocketHub().handler` performs the websocket upgrade when the request
carries `Upgrade: websocket` and a `Sec-WebSocket-Key`; otherwise it answers
500. `conn.cgi_arg` becomes the new socket's receive callback,
`recv_cb(ws, data, flags)`. After the upgrade, feed client bytes to
`conn.recv_handler(conn, data)`; pings are answered, close frames are
echoed, and `DONE` is returned once the socket is finished.
`Websocket.send(data, flags)` and `Websocket.close(reason)` write frames,
and `WebsocketHub.broadcast(resource, data, flags)` sends to every open
socket whose connection URL equals `resource`, returning how many it reached.

## Helpers

```python
from tinyhttpd import base64codec
from tinyhttpd.httputil import find_arg, get_mimetype, url_decode
from tinyhttpd.sha1 import hmac_sha1, sha1
from tinyhttpd.websocket import accept_key

get_mimetype("/index.html")                  # "text/html"
url_decode("a%20b+c")                        # "a b c"
find_arg("x=1&name=hello+world", "name")     # "hello world"
sha1(b"abc")
hmac_sha1(b"key", b"message")
base64codec.encode(b"hello")                 # "aGVsbG8="
accept_key("dGhlIHNhbXBsZSBub25jZQ==")
```

`base64codec.encode` and `decode` raise ValueError when the result would be
longer than `max_length`; `url_decode` and `find_arg` truncate to it
instead.

## Display toolkit

`Display(send_command, send_data)` keeps a 1024-byte page-ordered
framebuffer. `send_command` receives single command bytes and `send_data`
one 128-byte page at a time, so it can sit on any bus. `initialize` sends
the panel set-up sequence; drawing uses the current `color` (`Color.WHITE`,
`BLACK` or `INVERSE`); `update_screen` pushes the buffer to the panel.

```python
from tinyhttpd.display import Display

commands, pages = [], []
display = Display(commands.append, pages.append)
display.draw_rect(0, 0, 128, 64)
display.fill_circle(64, 32, 10)
display.update_screen()
```

`TextDisplay(send_command, send_data, font)` adds text drawing with a
jump-table `Font` (`draw_string`, `draw_string_max_width`,
`get_string_width`) and a `text_alignment`. `LogBuffer(lines, chars)`
collects text with `write` and draws it with `draw(display, x, y)`.
`DisplayUi(display, clock)` calls frames as `frame(display, state, x, y)`
and overlays as `overlay(display, state)`; call `update()` regularly, or
`tick()` to advance one step.