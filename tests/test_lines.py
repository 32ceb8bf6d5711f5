import pytest

from pydiet.errors import DietSyntaxError, MalformedIndentation
from pydiet.lines import (Line, detect_indent_style, dstring_escape, dstring_unescape, indent_level,
                          remove_empty_lines, sanitize_escaping, unindent)


def test_remove_empty_lines_keeps_numbers():
    assert remove_empty_lines("a\n\n  \nb", "f.dt") == [Line("f.dt", 1, "a"), Line("f.dt", 4, "b")]


def test_remove_empty_lines_line_breaks_and_bom():
    lines = remove_empty_lines("\ufeffa\r\nb\rc", "f.dt")
    assert [(ln.number, ln.text) for ln in lines] == [(1, "a"), (2, "b"), (3, "c")]


@pytest.mark.parametrize("source, style", [
    ("div\n\tp", "\t"),
    ("div\n  p\n    span", "  "),
    ("div\n    p", "    "),
    ("div\np", "\t"),
])
def test_detect_indent_style(source, style):
    assert detect_indent_style(remove_empty_lines(source, "f.dt")) == style


def test_indent_level():
    assert indent_level("\t\tx", "\t") == 2
    assert indent_level("    x", "  ") == 2
    assert indent_level("x", "\t") == 0


def test_indent_level_partial_unit():
    with pytest.raises(MalformedIndentation):
        indent_level("   x", "  ")
    assert indent_level("   x", "  ", strict=False) == 1


def test_indent_level_mixed_characters():
    with pytest.raises(MalformedIndentation):
        indent_level(" x", "\t")
    with pytest.raises(MalformedIndentation):
        indent_level("\tx", "  ")


def test_unindent():
    assert unindent("\t\tx", "\t") == "x"
    assert unindent("\t\tx", "\t", 1) == "\tx"


def test_dstring_unescape():
    assert dstring_unescape("a\\nb\\t\\\"\\\\") == 'a\nb\t"\\'
    assert dstring_unescape("\\q") == "q"


def test_dstring_unescape_trailing_backslash():
    with pytest.raises(DietSyntaxError):
        dstring_unescape("abc\\")


@pytest.mark.parametrize("escaped, canonical", [
    ('\\n', '\\n'),
    ('\\r', '\\r'),
    ('\\t', '\\t'),
    ('\\\\', '\\\\'),
    ('\\"', '\\"'),
    ('\\q', 'q'),
    ('a\\tb"c', 'a\\tb\\"c'),
])
def test_sanitize_escaping(escaped, canonical):
    assert dstring_escape(dstring_unescape(escaped)) == canonical
    assert sanitize_escaping(escaped) == canonical


def test_escape_then_unescape():
    text = 'line\n\t"quoted" \\ end\r'
    assert dstring_unescape(dstring_escape(text)) == text
