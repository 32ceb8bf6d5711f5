"""
Line normalization and indentation helpers shared by all compiler passes.

Also holds the string escaping pair used for quoted attribute values and
backslash escapes in text.
"""
import re
from typing import List, NamedTuple, Optional

from .errors import DietSyntaxError, MalformedIndentation

UTF8_BOM = '\ufeff'
_LINE_BREAK = re.compile(r'\r\n|\r|\n')

_ESCAPES = {'\\': '\\\\', '\r': '\\r', '\n': '\\n', '\t': '\\t', '"': '\\"'}
_UNESCAPES = {'r': '\r', 'n': '\n', 't': '\t'}


class Line(NamedTuple):
    file: str
    number: int  # 1-based, not contiguous once blank lines are dropped
    text: str


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith(UTF8_BOM) else text


def ctstrip(text: str) -> str:
    """Strips spaces and tabs only (other whitespace is content)."""
    return text.strip(' \t')


def remove_empty_lines(text: str, file: str) -> List[Line]:
    """
    Splits template source into non-empty `Line` records.

    Blank and whitespace-only lines are dropped but still counted, so the
    remaining lines keep their original numbers.
    """
    text = strip_bom(text)
    lines: List[Line] = []
    for number, content in enumerate(_LINE_BREAK.split(text), start=1):
        if ctstrip(content):
            lines.append(Line(file, number, content))
    return lines


def detect_indent_style(lines: List[Line]) -> str:
    """Returns the indent unit of the first indented line, defaulting to a tab."""
    for line in lines:
        if line.text.startswith('\t'):
            return '\t'
        if line.text.startswith(' '):
            return line.text[:len(line.text) - len(line.text.lstrip(' '))]
    return '\t'


def indent_level(text: str, indent: str, strict: bool = True) -> int:
    """
    Counts the leading indent units of a line.

    In strict mode the leading whitespace must consist of whole units only.
    """
    if not indent:
        return 0
    if strict and text[:1] in (' ', '\t') and text[0] != indent[0]:
        raise MalformedIndentation("Indentation style is inconsistent with previous lines.")
    pos = 0
    while text.startswith(indent, pos):
        pos += len(indent)
    if strict and text[pos:pos + 1] in (' ', '\t'):
        raise MalformedIndentation(f"Indent is not a multiple of {indent!r}.")
    return pos // len(indent)


def unindent(text: str, indent: str, level: Optional[int] = None) -> str:
    """Removes `level` indent units (all of them if not given) from a line."""
    if level is None:
        level = indent_level(text, indent)
    return text[level * len(indent):]


def dstring_escape(text: str) -> str:
    return ''.join(_ESCAPES.get(ch, ch) for ch in text)


def dstring_unescape(text: str) -> str:
    """Decodes backslash escapes; unknown escaped characters pass through literally."""
    if '\\' not in text:
        return text
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '\\':
            if i + 1 >= len(text):
                raise DietSyntaxError(f"The string ends with the escape char: {text}")
            nxt = text[i + 1]
            out.append(_UNESCAPES.get(nxt, nxt))
            i += 2
        else:
            out.append(ch)
            i += 1
    return ''.join(out)


def sanitize_escaping(text: str) -> str:
    """Canonical escaped form of a string that may contain escapes."""
    return dstring_escape(dstring_unescape(text))
