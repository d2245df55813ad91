import pytest

from tinyhttpd.text import Font, TextAlignment, TextDisplay, Utf8ToLatin1, utf8_to_latin1

# Header: max width 8, height 8, first char 'A', three characters.
FONT_DATA = bytes(
    [8, 8, 65, 3]
    + [0, 0, 2, 2]  # A: offset 0, 2 bytes, width 2
    + [0, 2, 1, 3]  # B: offset 2, 1 byte, width 3
    + [255, 255, 0, 4]  # C: not drawable, width 4
    + [0xFF, 0x81, 0x0F]
)


def make_display():
    return TextDisplay(lambda command: None, lambda data: None, FONT_DATA)


def lit(display):
    return {(x, y) for x in range(128) for y in range(64) if display.get_pixel(x, y)}


def test_font_header_and_widths():
    font = Font(FONT_DATA)
    assert font.height == 8
    assert font.first_char == 65
    assert font.char_count == 3
    assert font.char_width(ord("A")) == 2
    assert font.char_width(ord("C")) == 4
    assert font.char_width(ord(" ")) == 0
    assert font.char_width(ord("D")) == 0
    assert font.glyph(ord("C")) is None


def test_font_too_short():
    with pytest.raises(ValueError):
        Font(b"\x01\x02")


def test_utf8_conversion():
    assert utf8_to_latin1("abc") == b"abc"
    assert utf8_to_latin1("é") == b"\xe9"
    assert utf8_to_latin1("\u20ac") == b"\x80"
    assert utf8_to_latin1(b"\xc2\xb0") == b"\xb0"


def test_converter_is_stateful():
    converter = Utf8ToLatin1()
    assert converter.convert(0xC3) == 0
    assert converter.convert(0xA9) == 0xE9
    assert converter.convert(ord("x")) == ord("x")


def test_string_width():
    display = make_display()
    assert display.get_string_width("AB") == 5
    assert display.get_string_width("ABAB") == 2 * display.get_string_width("AB")
    assert display.get_string_width("AB\nA") == display.get_string_width("AB")


def test_draw_glyph_pixels():
    display = make_display()
    display.draw_string(0, 0, "A")
    assert all(display.get_pixel(0, y) for y in range(8))
    assert display.get_pixel(1, 0) and display.get_pixel(1, 7)
    assert not display.get_pixel(1, 3)
    assert not display.get_pixel(2, 0)


def test_alignment_shifts_text():
    left = make_display()
    left.draw_string(8, 0, "A")
    right = make_display()
    right.text_alignment = TextAlignment.RIGHT
    right.draw_string(10, 0, "A")
    center = make_display()
    center.text_alignment = TextAlignment.CENTER
    center.draw_string(9, 0, "A")
    assert lit(right) == lit(left)
    assert lit(center) == lit(left)


def test_undrawable_char_advances_cursor():
    display = make_display()
    display.draw_string(0, 0, "C")
    assert not lit(display)
    shifted = make_display()
    shifted.draw_string(0, 0, "CA")
    plain = make_display()
    plain.draw_string(4, 0, "A")
    assert lit(shifted) == lit(plain)


def test_newline_moves_down_one_line():
    display = make_display()
    display.draw_string(0, 0, "A\nA")
    assert display.get_pixel(0, 0)
    assert display.get_pixel(0, 8)
    assert display.get_pixel(1, 15)


def test_wrapping_matches_explicit_lines():
    wrapped = make_display()
    wrapped.draw_string_max_width(0, 0, 5, "AA AA")
    explicit = make_display()
    explicit.draw_string(0, 0, "AA\nAA")
    assert lit(wrapped) == lit(explicit)
    assert not wrapped.get_pixel(4, 0)


def test_short_text_not_wrapped():
    wrapped = make_display()
    wrapped.draw_string_max_width(0, 0, 100, "AB")
    plain = make_display()
    plain.draw_string(0, 0, "AB")
    assert lit(wrapped) == lit(plain)