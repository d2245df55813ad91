"""HTTP response building, basic auth and websockets, plus a monochrome OLED display toolkit."""

__version__ = "0.4.0"

__all__ = [
    "auth",
    "base64codec",
    "connection",
    "console",
    "display",
    "httputil",
    "sha1",
    "text",
    "ui",
    "websocket",
]