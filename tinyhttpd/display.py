"""Frame buffer and drawing primitives for a 128x64 monochrome OLED."""

from __future__ import annotations

from enum import IntEnum
from typing import Callable

WIDTH = 128
HEIGHT = 64
BUFFER_SIZE = WIDTH * HEIGHT // 8

CHARGEPUMP = 0x8D
COMSCANDEC = 0xC8
COMSCANINC = 0xC0
DISPLAYALLON_RESUME = 0xA4
DISPLAYOFF = 0xAE
DISPLAYON = 0xAF
INVERTDISPLAY = 0xA7
MEMORYMODE = 0x20
NORMALDISPLAY = 0xA6
SEGREMAP = 0xA0
SETCOMPINS = 0xDA
SETCONTRAST = 0x81
SETDISPLAYCLOCKDIV = 0xD5
SETDISPLAYOFFSET = 0xD3
SETMULTIPLEX = 0xA8
SETPRECHARGE = 0xD9
SETSTARTLINE = 0x40

INIT_COMMANDS = (
    DISPLAYOFF,
    SETDISPLAYCLOCKDIV, 0xF0,
    SETMULTIPLEX, 0x3F,
    SETDISPLAYOFFSET, 0x00,
    SETSTARTLINE,
    CHARGEPUMP, 0x14,
    MEMORYMODE, 0x00,
    SEGREMAP,
    COMSCANINC,
    SETCOMPINS, 0x12,
    SETCONTRAST, 0xCF,
    SETPRECHARGE, 0xF1,
    DISPLAYALLON_RESUME,
    NORMALDISPLAY,
    0x2E,
    DISPLAYON,
)


class Color(IntEnum):
    """How drawing operations change pixels."""

    BLACK = 0
    WHITE = 1
    INVERSE = 2


class Display:
    """In-memory frame buffer that is pushed to the panel page by page.

    ``send_command`` receives single command bytes; ``send_data`` receives
    one 128-byte page of pixel data at a time.
    """

    def __init__(self, send_command: Callable[[int], None], send_data: Callable[[bytes], None]) -> None:
        self._send_command = send_command
        self._send_data = send_data
        self.buffer = bytearray(BUFFER_SIZE)
        self.color = Color.WHITE

    def _apply(self, index: int, bits: int) -> None:
        bits &= 0xFF
        if self.color == Color.WHITE:
            self.buffer[index] |= bits
        elif self.color == Color.BLACK:
            self.buffer[index] &= ~bits & 0xFF
        else:
            self.buffer[index] ^= bits

    def initialize(self) -> None:
        """Send the panel set-up sequence and blank the screen."""
        for command in INIT_COMMANDS:
            self._send_command(command)
        self.reset()

    def update_screen(self) -> None:
        """Copy the frame buffer to the panel."""
        for page in range(HEIGHT // 8):
            self._send_command(0xB0 + page)
            self._send_command(0x02)
            self._send_command(0x10)
            self._send_data(bytes(self.buffer[WIDTH * page : WIDTH * (page + 1)]))

    def clear(self) -> None:
        """Blank the frame buffer."""
        self.buffer[:] = bytes(BUFFER_SIZE)

    def reset(self) -> None:
        """Blank the frame buffer and the panel."""
        self.clear()
        self.update_screen()

    def set_pixel(self, x: int, y: int) -> None:
        """Draw one pixel in the current colour; off-screen pixels are ignored."""
        if 0 <= x < WIDTH and 0 <= y < HEIGHT:
            self._apply(x + (y // 8) * WIDTH, 1 << (y & 7))

    def get_pixel(self, x: int, y: int) -> bool:
        """Return whether a pixel is lit; off-screen pixels are dark."""
        if 0 <= x < WIDTH and 0 <= y < HEIGHT:
            return bool(self.buffer[x + (y // 8) * WIDTH] & (1 << (y & 7)))
        return False

    def draw_line(self, x0: int, y0: int, x1: int, y1: int) -> None:
        """Draw a straight line with Bresenham's algorithm."""
        steep = abs(y1 - y0) > abs(x1 - x0)
        if steep:
            x0, y0 = y0, x0
            x1, y1 = y1, x1
        if x0 > x1:
            x0, x1 = x1, x0
            y0, y1 = y1, y0
        dx = x1 - x0
        dy = abs(y1 - y0)
        err = dx // 2
        ystep = 1 if y0 < y1 else -1
        while x0 <= x1:
            if steep:
                self.set_pixel(y0, x0)
            else:
                self.set_pixel(x0, y0)
            err -= dy
            if err < 0:
                y0 += ystep
                err += dx
            x0 += 1

    def draw_rect(self, x: int, y: int, width: int, height: int) -> None:
        """Draw the outline of a rectangle."""
        self.draw_horizontal_line(x, y, width)
        self.draw_vertical_line(x, y, height)
        self.draw_vertical_line(x + width - 1, y, height)
        self.draw_horizontal_line(x, y + height - 1, width)

    def fill_rect(self, x: int, y: int, width: int, height: int) -> None:
        """Fill a rectangle."""
        for column in range(x, x + width):
            self.draw_vertical_line(column, y, height)

    def draw_circle(self, x0: int, y0: int, radius: int) -> None:
        """Draw the outline of a circle."""
        x, y = 0, radius
        dp = 1 - radius
        while True:
            x += 1
            if dp < 0:
                dp += 2 * x + 3
            else:
                y -= 1
                dp += 2 * x - 2 * y + 5
            for px, py in (
                (x0 + x, y0 + y), (x0 - x, y0 + y), (x0 + x, y0 - y), (x0 - x, y0 - y),
                (x0 + y, y0 + x), (x0 - y, y0 + x), (x0 + y, y0 - x), (x0 - y, y0 - x),
            ):
                self.set_pixel(px, py)
            if not x < y:
                break
        self.set_pixel(x0 + radius, y0)
        self.set_pixel(x0, y0 + radius)
        self.set_pixel(x0 - radius, y0)
        self.set_pixel(x0, y0 - radius)

    def draw_circle_quads(self, x0: int, y0: int, radius: int, quads: int) -> None:
        """Draw the circle quadrants selected by the bit mask ``quads``."""
        x, y = 0, radius
        dp = 1 - radius
        while x < y:
            x += 1
            if dp < 0:
                dp += 2 * x + 3
            else:
                y -= 1
                dp += 2 * x - 2 * y + 5
            if quads & 0x1:
                self.set_pixel(x0 + x, y0 - y)
                self.set_pixel(x0 + y, y0 - x)
            if quads & 0x2:
                self.set_pixel(x0 - y, y0 - x)
                self.set_pixel(x0 - x, y0 - y)
            if quads & 0x4:
                self.set_pixel(x0 - y, y0 + x)
                self.set_pixel(x0 - x, y0 + y)
            if quads & 0x8:
                self.set_pixel(x0 + x, y0 + y)
                self.set_pixel(x0 + y, y0 + x)
        if quads & 0x1 and quads & 0x8:
            self.set_pixel(x0 + radius, y0)
        if quads & 0x4 and quads & 0x8:
            self.set_pixel(x0, y0 + radius)
        if quads & 0x2 and quads & 0x4:
            self.set_pixel(x0 - radius, y0)
        if quads & 0x1 and quads & 0x2:
            self.set_pixel(x0, y0 - radius)

    def fill_circle(self, x0: int, y0: int, radius: int) -> None:
        """Fill a circle."""
        x, y = 0, radius
        dp = 1 - radius
        while True:
            x += 1
            if dp < 0:
                dp += 2 * x + 3
            else:
                y -= 1
                dp += 2 * x - 2 * y + 5
            self.draw_horizontal_line(x0 - x, y0 - y, 2 * x)
            self.draw_horizontal_line(x0 - x, y0 + y, 2 * x)
            self.draw_horizontal_line(x0 - y, y0 - x, 2 * y)
            self.draw_horizontal_line(x0 - y, y0 + x, 2 * y)
            if not x < y:
                break
        self.draw_horizontal_line(x0 - radius, y0, 2 * radius)

    def draw_horizontal_line(self, x: int, y: int, length: int) -> None:
        """Draw a horizontal line, clipped to the screen."""
        if y < 0 or y >= HEIGHT:
            return
        if x < 0:
            length += x
            x = 0
        if x + length > WIDTH:
            length = WIDTH - x
        if length <= 0:
            return
        start = (y >> 3) * WIDTH + x
        bit = 1 << (y & 7)
        for index in range(start, start + length):
            self._apply(index, bit)

    def draw_vertical_line(self, x: int, y: int, length: int) -> None:
        """Draw a vertical line, clipped to the screen."""
        if x < 0 or x >= WIDTH:
            return
        if y < 0:
            length += y
            y = 0
        if y + length > HEIGHT:
            length = HEIGHT - y
        if length <= 0:
            return
        index = (y >> 3) * WIDTH + x
        y_offset = y & 7
        if y_offset:
            y_offset = 8 - y_offset
            bits = ~(0xFF >> y_offset) & 0xFF
            if length < y_offset:
                bits &= 0xFF >> (y_offset - length)
            self._apply(index, bits)
            if length < y_offset:
                return
            length -= y_offset
            index += WIDTH
        while length >= 8:
            if self.color == Color.INVERSE:
                self.buffer[index] ^= 0xFF
            else:
                self.buffer[index] = 0xFF if self.color == Color.WHITE else 0x00
            index += WIDTH
            length -= 8
        if length > 0:
            self._apply(index, (1 << (length & 7)) - 1)

    def draw_progress_bar(self, x: int, y: int, width: int, height: int, progress: int) -> None:
        """Draw a rounded progress bar; ``progress`` runs from 0 to 100."""
        radius = height // 2
        x_radius = x + radius
        y_radius = y + radius
        double_radius = 2 * radius
        inner_radius = radius - 2

        self.color = Color.WHITE
        self.draw_circle_quads(x_radius, y_radius, radius, 0b00000110)
        self.draw_horizontal_line(x_radius, y, width - double_radius + 1)
        self.draw_horizontal_line(x_radius, y + height, width - double_radius + 1)
        self.draw_circle_quads(x + width - radius, y_radius, radius, 0b00001001)

        max_progress_width = (width - double_radius - 1) * progress // 100

        self.fill_circle(x_radius, y_radius, inner_radius)
        self.fill_rect(x_radius + 1, y + 2, max_progress_width, height - 3)
        self.fill_circle(x_radius + max_progress_width, y_radius, inner_radius)

    def _draw_internal(
        self,
        x_move: int,
        y_move: int,
        width: int,
        height: int,
        data: bytes,
        offset: int = 0,
        byte_count: int = 0,
    ) -> None:
        """Blit column-major image bytes (8 vertical pixels per byte)."""
        if width < 0 or height < 0:
            return
        if y_move + height < 0 or y_move > HEIGHT:
            return
        if x_move + width < 0 or x_move > WIDTH:
            return
        raster_height = 1 + ((height - 1) >> 3)
        y_offset = y_move & 7
        if byte_count == 0:
            byte_count = width * raster_height
        for i in range(byte_count):
            current = data[offset + i] & 0xFF
            x_pos = x_move + i // raster_height
            y_pos = ((y_move >> 3) + i % raster_height) * WIDTH
            position = x_pos + y_pos
            if 0 <= position < BUFFER_SIZE and 0 <= x_pos < WIDTH:
                self._apply(position, current << y_offset)
                if position < BUFFER_SIZE - WIDTH:
                    self._apply(position + WIDTH, current >> (8 - y_offset))

    def draw_fast_image(self, x: int, y: int, width: int, height: int, image: bytes) -> None:
        """Draw an image stored column by column, eight rows per byte."""
        self._draw_internal(x, y, width, height, image)

    def draw_xbm(self, x: int, y: int, width: int, height: int, xbm: bytes) -> None:
        """Draw an XBM bitmap (rows of bytes, least significant bit first)."""
        row_bytes = (width + 7) // 8
        for row in range(height):
            data = 0
            for column in range(width):
                if column & 7:
                    data >>= 1
                else:
                    data = xbm[column // 8 + row * row_bytes]
                if data & 0x01:
                    self.set_pixel(x + column, y + row)

    def display_on(self) -> None:
        """Turn the panel on."""
        self._send_command(DISPLAYON)

    def display_off(self) -> None:
        """Turn the panel off."""
        self._send_command(DISPLAYOFF)

    def invert_display(self) -> None:
        """Show the panel inverted."""
        self._send_command(INVERTDISPLAY)

    def normal_display(self) -> None:
        """Show the panel normally."""
        self._send_command(NORMALDISPLAY)

    def set_contrast(self, contrast: int) -> None:
        """Set the panel contrast (0-255)."""
        self._send_command(SETCONTRAST)
        self._send_command(contrast & 0xFF)

    def flip_screen_vertically(self) -> None:
        """Rotate the picture by 180 degrees."""
        self._send_command(SEGREMAP | 0x01)
        self._send_command(COMSCANDEC)