"""
Interpolation of host expressions in text.

`#{expr}` inserts the HTML escaped value of `expr`, `!{expr}` inserts it raw.
A backslash escapes the next character (`\\#{` is a literal `#{`). Expression
bodies are kept verbatim, escapes inside them belong to the Python code.
"""
from typing import Iterator, NamedTuple, Tuple, Union

from .errors import DietSyntaxError
from .lines import dstring_unescape


class Literal(NamedTuple):
    text: str


class Expr(NamedTuple):
    code: str
    escaped: bool


Fragment = Union[Literal, Expr]


def has_interpolations(text: str) -> bool:
    i = 0
    while i < len(text):
        if text[i] == '\\':
            i += 2
            continue
        if i + 1 < len(text) and text[i] in '#!':
            if text[i + 1] == text[i]:
                i += 2
                continue
            if text[i + 1] == '{':
                return True
        i += 1
    return False


def skip_until_closing_brace(text: str, idx: int) -> Tuple[str, int]:
    """Returns the text up to the `}` closing an already opened brace, and its index."""
    level = 0
    start = idx
    while idx < len(text):
        if text[idx] == '{':
            level += 1
        elif text[idx] == '}':
            level -= 1
        if level < 0:
            return text[start:idx], idx
        idx += 1
    raise DietSyntaxError("Missing closing brace")


def scan(text: str) -> Iterator[Fragment]:
    """Splits `text` into literal and expression fragments."""
    start = i = 0
    while i < len(text):
        ch = text[i]
        if ch == '\\':
            if i > start:
                yield Literal(text[start:i])
            yield Literal(dstring_unescape(text[i:i + 2]))
            i += 2
            start = i
            continue

        if ch in '#!' and i + 1 < len(text):
            if i > start:
                yield Literal(text[start:i])
                start = i
            if text[i + 1] == ch:
                raise DietSyntaxError("Please use \\ to escape # or ! instead of ## or !!.")
            if text[i + 1] == '{':
                code, i = skip_until_closing_brace(text, i + 2)
                yield Expr(code, ch == '#')
                i += 1
                start = i
            else:
                i += 1
        else:
            i += 1

    if i > start:
        yield Literal(text[start:i])
