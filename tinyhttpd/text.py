"""Bitmap fonts and text drawing on the OLED frame buffer."""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Optional, Union

from tinyhttpd.display import HEIGHT, WIDTH, Display

WIDTH_POS = 0
HEIGHT_POS = 1
FIRST_CHAR_POS = 2
CHAR_NUM_POS = 3

JUMPTABLE_BYTES = 4
JUMPTABLE_LSB = 1
JUMPTABLE_SIZE = 2
JUMPTABLE_WIDTH = 3
JUMPTABLE_START = 4

_NEWLINE = 10


class TextAlignment(IntEnum):
    """Anchor point used when drawing text."""

    LEFT = 0
    RIGHT = 1
    CENTER = 2
    CENTER_BOTH = 3


class Font:
    """A font in the jump-table format.

    The data starts with four header bytes (maximum width, height, first
    character code, number of characters), followed by four bytes per
    character (offset MSB, offset LSB, byte size, width) and the glyph data.
    """

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        if len(self.data) < JUMPTABLE_START:
            raise ValueError("font data is shorter than its header")

    @property
    def width(self) -> int:
        return self.data[WIDTH_POS]

    @property
    def height(self) -> int:
        return self.data[HEIGHT_POS]

    @property
    def first_char(self) -> int:
        return self.data[FIRST_CHAR_POS]

    @property
    def char_count(self) -> int:
        return self.data[CHAR_NUM_POS]

    def _entry(self, code: int) -> Optional[int]:
        index = code - self.first_char
        if index < 0 or index >= self.char_count:
            return None
        position = JUMPTABLE_START + index * JUMPTABLE_BYTES
        if position + JUMPTABLE_BYTES > len(self.data):
            return None
        return position

    def char_width(self, code: int) -> int:
        """Return the advance width of a character; 0 if the font lacks it."""
        position = self._entry(code)
        if position is None:
            return 0
        return self.data[position + JUMPTABLE_WIDTH]

    def glyph(self, code: int) -> Optional[tuple[int, int, int]]:
        """Return (data offset, byte size, width) of a drawable character, else None."""
        position = self._entry(code)
        if position is None:
            return None
        msb = self.data[position]
        lsb = self.data[position + JUMPTABLE_LSB]
        if msb == 255 and lsb == 255:
            return None
        offset = JUMPTABLE_START + self.char_count * JUMPTABLE_BYTES + ((msb << 8) + lsb)
        return offset, self.data[position + JUMPTABLE_SIZE], self.data[position + JUMPTABLE_WIDTH]


class Utf8ToLatin1:
    """Byte-by-byte converter from UTF-8 to the Latin-1 range used by fonts.

    :meth:`convert` returns 0 for bytes that are to be dropped.
    """

    def __init__(self) -> None:
        self._last = 0

    def convert(self, byte: int) -> int:
        byte &= 0xFF
        if byte < 128:
            self._last = 0
            return byte
        last = self._last
        self._last = byte
        if last == 0xC2:
            return byte
        if last == 0xC3:
            return byte | 0xC0
        if last == 0x82 and byte == 0xAC:
            return 0x80
        return 0


def utf8_to_latin1(text: Union[str, bytes]) -> bytes:
    """Convert UTF-8 text to single-byte codes, dropping what cannot be shown."""
    raw = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    converter = Utf8ToLatin1()
    return bytes(code for code in map(converter.convert, raw) if code != 0)


def _as_codes(text: Union[str, bytes]) -> bytes:
    return utf8_to_latin1(text) if isinstance(text, str) else bytes(text)


class TextDisplay(Display):
    """A display that can also draw text in a bitmap font."""

    def __init__(
        self,
        send_command: Callable[[int], None],
        send_data: Callable[[bytes], None],
        font: Union[Font, bytes],
    ) -> None:
        super().__init__(send_command, send_data)
        self.font = font if isinstance(font, Font) else Font(font)
        self.text_alignment = TextAlignment.LEFT

    def draw_text_line(self, x: int, y: int, text: Union[str, bytes], text_width: int) -> None:
        """Draw one line of already converted text, aligned by ``text_width``."""
        codes = _as_codes(text)
        font = self.font
        text_height = font.height
        if self.text_alignment == TextAlignment.CENTER_BOTH:
            y -= text_height >> 1
            x -= text_width >> 1
        elif self.text_alignment == TextAlignment.CENTER:
            x -= text_width >> 1
        elif self.text_alignment == TextAlignment.RIGHT:
            x -= text_width

        if x + text_width < 0 or x > WIDTH:
            return
        if y + text_height < 0 or y > HEIGHT:
            return

        cursor_x = 0
        for code in codes:
            if code < font.first_char:
                continue
            glyph = font.glyph(code)
            if glyph is not None:
                offset, size, width = glyph
                self._draw_internal(x + cursor_x, y, width, text_height, font.data, offset, size)
            cursor_x = (cursor_x + font.char_width(code)) & 0xFF

    def draw_string(self, x: int, y: int, text: Union[str, bytes]) -> None:
        """Draw text at a position; '\\n' starts a new line."""
        line_height = self.font.height
        codes = _as_codes(text)
        y_offset = 0
        if self.text_alignment == TextAlignment.CENTER_BOTH:
            y_offset = (codes.count(_NEWLINE) * line_height) // 2
        parts = [part for part in codes.split(b"\n") if part]
        for line, part in enumerate(parts):
            self.draw_text_line(x, y - y_offset + line * line_height, part, self.get_string_width(part))

    def draw_string_max_width(self, x: int, y: int, max_line_width: int, text: Union[str, bytes]) -> None:
        """Draw text wrapped at spaces or dashes so lines stay within ``max_line_width``."""
        line_height = self.font.height
        codes = _as_codes(text)
        last_drawn = 0
        line_number = 0
        width = 0
        breakpoint_at = 0
        width_at_breakpoint = 0
        for index, code in enumerate(codes):
            width += self.font.char_width(code)
            if code in (ord(" "), ord("-")):
                breakpoint_at = index
                width_at_breakpoint = width
            if width >= max_line_width:
                if breakpoint_at == 0:
                    breakpoint_at = index
                    width_at_breakpoint = width
                self.draw_text_line(
                    x,
                    y + line_number * line_height,
                    codes[last_drawn:max(breakpoint_at, last_drawn)],
                    width_at_breakpoint,
                )
                line_number += 1
                last_drawn = breakpoint_at + 1
                width -= width_at_breakpoint
                breakpoint_at = 0
        if last_drawn < len(codes):
            rest = codes[last_drawn:]
            self.draw_text_line(x, y + line_number * line_height, rest, self.get_string_width(rest))

    def get_string_width(self, text: Union[str, bytes]) -> int:
        """Return the width of the widest line of ``text`` in the current font."""
        widest = 0
        width = 0
        for code in reversed(_as_codes(text)):
            width += self.font.char_width(code)
            if code == _NEWLINE:
                widest = max(widest, width)
                width = 0
        return max(widest, width)