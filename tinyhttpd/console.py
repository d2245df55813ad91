"""A scrolling text log that can be drawn on the display."""

from __future__ import annotations

from typing import Optional, Union

from tinyhttpd.text import TextAlignment, TextDisplay, Utf8ToLatin1

_NEWLINE = 10
_CARRIAGE_RETURN = 13


class LogBuffer:
    """Holds at most ``lines`` lines and ``lines * chars`` characters.

    When either limit is hit the oldest line is dropped; a full buffer
    without any line break is emptied.
    """

    def __init__(self, lines: int, chars: int) -> None:
        self.max_lines = lines
        self.size = lines * chars if lines * chars > 0 else 0
        self._buffer = bytearray()
        self._line = 0
        self._converter = Utf8ToLatin1()

    @property
    def text(self) -> bytes:
        """The stored characters."""
        return bytes(self._buffer)

    def putc(self, char: Union[int, str]) -> int:
        """Add one byte; carriage returns are dropped.  Always returns 1."""
        code = (ord(char) if isinstance(char, str) else int(char)) & 0xFF
        if self.size == 0 or code == _CARRIAGE_RETURN:
            return 1
        while True:
            max_line_not_reached = self._line < self.max_lines
            buffer_not_full = len(self._buffer) < self.size
            if buffer_not_full and max_line_not_reached:
                self._buffer.append(self._converter.convert(code))
                if code == _NEWLINE:
                    self._line += 1
                return 1
            if not max_line_not_reached:
                self._line -= 1
            first_line_end = self._buffer.find(_NEWLINE) + 1
            if first_line_end > 0:
                del self._buffer[:first_line_end]
            elif not buffer_not_full:
                self._buffer.clear()

    def write(self, text: Optional[Union[str, bytes]]) -> int:
        """Add text (strings as UTF-8); return the number of bytes taken."""
        if text is None:
            return 0
        raw = text.encode("utf-8") if isinstance(text, str) else bytes(text)
        for byte in raw:
            self.putc(byte)
        return len(raw)

    def draw(self, display: TextDisplay, x: int, y: int) -> None:
        """Draw the log left-aligned with its top-left corner at (x, y)."""
        line_height = display.font.height
        display.text_alignment = TextAlignment.LEFT
        length = 0
        line = 0
        last_pos = 0
        for index, code in enumerate(self._buffer):
            length += 1
            if code == _NEWLINE:
                display.draw_text_line(x, y + line * line_height, bytes(self._buffer[last_pos:last_pos + length]), 0)
                line += 1
                last_pos = index
                length = 0
        if length > 0:
            display.draw_text_line(x, y + line * line_height, bytes(self._buffer[last_pos:last_pos + length]), 0)