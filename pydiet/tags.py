"""
Tag/attribute grammar: `tag#id.class.class(attr=value, ...)<> text`.
"""
import string
from typing import List, NamedTuple, Tuple

from .errors import DietSyntaxError
from .lines import dstring_escape, dstring_unescape

SINGULAR_TAGS = frozenset([
    'area', 'base', 'basefont', 'br', 'col', 'embed', 'frame', 'hr', 'img', 'input',
    'keygen', 'link', 'meta', 'param', 'source', 'track', 'wbr',
])

# script/style type attributes that keep the deprecated "content without trailing dot" form
LEGACY_CONTENT_TYPES = (
    '"text/css"', '"text/javascript"', '"application/javascript"',
    "'text/css'", "'text/javascript'", "'application/javascript'",
)

# Pseudo attribute carrying `.class` shorthand next to an explicit `class=`
EXTRA_CLASS_KEY = '$class'


class HTMLAttribute(NamedTuple):
    key: str
    value: str  # quoted literal or Python expression


class TagInfo:
    """Whitespace control and text mode flags parsed from a tag line."""

    def __init__(self):
        self.inner = True
        self.outer = True
        self.block_tag = False
        self.translated = False


class ParsedTag(NamedTuple):
    name: str
    attributes: List[HTMLAttribute]
    text: str
    info: TagInfo


def skip_ident(text: str, idx: int, additional_chars: str = '') -> Tuple[str, int]:
    """Reads an identifier: letters, then letters/digits, plus `additional_chars` anywhere."""
    start = idx
    while idx < len(text):
        ch = text[idx]
        if ch in string.ascii_letters:
            idx += 1
        elif start != idx and ch in string.digits:
            idx += 1
        elif ch in additional_chars:
            idx += 1
        else:
            break
    if start == idx:
        got = f"'{text[idx]}'" if idx < len(text) else 'nothing'
        raise DietSyntaxError(f"Expected identifier but got {got}.")
    return text[start:idx], idx


def skip_whitespace(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] == ' ':
        idx += 1
    return idx


def skip_attrib_string(text: str, idx: int, delimiter: str) -> Tuple[str, int]:
    """Reads up to (not including) the closing `delimiter` of a quoted string."""
    start = idx
    while idx < len(text):
        if text[idx] == '\\':
            # escapes are decoded later, together with interpolations
            idx += 1
            if idx >= len(text):
                raise DietSyntaxError("'\\' must be followed by something (escaped character)!")
        elif text[idx] == delimiter:
            break
        idx += 1
    if idx >= len(text):
        raise DietSyntaxError(f"Unterminated attribute string: {text[start - 1:]}")
    return text[start:idx], idx


def skip_expression(text: str, idx: int) -> Tuple[str, int]:
    """Reads an attribute value up to the next top-level `,` or `)`."""
    clamp_stack: List[str] = []
    start = idx
    while idx < len(text):
        ch = text[idx]
        if ch == ',':
            if not clamp_stack:
                break
        elif ch in '"\'':
            _, idx = skip_attrib_string(text, idx + 1, ch)
        elif ch == '(':
            clamp_stack.append(')')
        elif ch == '[':
            clamp_stack.append(']')
        elif ch == '{':
            clamp_stack.append('}')
        elif ch in ')]}':
            if ch == ')' and not clamp_stack:
                break
            if not clamp_stack or clamp_stack[-1] != ch:
                raise DietSyntaxError(f"Unexpected '{ch}'")
            clamp_stack.pop()
        idx += 1

    if clamp_stack:
        raise DietSyntaxError(f"Expected '{clamp_stack[-1]}' before end of attribute expression.")
    return text[start:idx].strip(' \t'), idx


def is_string_literal(text: str) -> bool:
    """True if `text` is exactly one quoted string, surrounding spaces aside."""
    text = text.strip(' \t')
    if len(text) < 2 or text[0] not in '"\'':
        return False
    delimiter = text[0]
    i = 1
    while i < len(text) and text[i] != delimiter:
        if text[i] == '\\':
            i += 1
        i += 1
    # the closing delimiter must be the last character
    return i == len(text) - 1


def parse_attributes(text: str, idx: int, attribs: List[HTMLAttribute]) -> int:
    """Parses the inside of `(...)` starting after the `(`; returns the index of `)`."""
    idx = skip_whitespace(text, idx)
    while idx < len(text) and text[idx] != ')':
        name, idx = skip_ident(text, idx, '-:')
        idx = skip_whitespace(text, idx)
        if idx < len(text) and text[idx] == '=':
            idx = skip_whitespace(text, idx + 1)
            if idx >= len(text):
                raise DietSyntaxError("'=' must be followed by attribute string.")
            value, idx = skip_expression(text, idx)
            if is_string_literal(value) and value[0] == "'":
                value = '"' + dstring_escape(dstring_unescape(value[1:-1])) + '"'
        else:
            value = 'True'

        if idx >= len(text):
            raise DietSyntaxError("Unterminated attribute section.")
        if text[idx] not in '),':
            raise DietSyntaxError(f"Unexpected text following attribute: '{text[:idx]}' ('{text[idx:]}')")
        if text[idx] == ',':
            idx = skip_whitespace(text, idx + 1)

        if name == 'class' and value == '""':
            continue
        attribs.append(HTMLAttribute(name, value))

    if idx >= len(text):
        raise DietSyntaxError("Missing closing clamp.")
    return idx


def parse_html_tag(line: str) -> Tuple[TagInfo, List[HTMLAttribute], int]:
    """
    Parses `#id`, `.classes`, `(attributes)`, `&` and the `<`/`>` sigils following a tag name.

    Returns the flags, the attributes and the index where the tag's text content starts.
    """
    info = TagInfo()
    attribs: List[HTMLAttribute] = []
    classes: List[str] = []
    has_id = False
    i = 0

    while i < len(line):
        ch = line[i]
        if ch == '#':
            if has_id:
                raise DietSyntaxError("Id may only be set once.")
            tag_id, i = skip_ident(line, i + 1, '-_')
            has_id = True
            attribs.append(HTMLAttribute('id', f'"{tag_id}"'))
        elif ch == '&':
            i += 1
            if i < len(line) and line[i] not in ' .':
                raise DietSyntaxError("Expected space or '.' after '&'.")
            info.translated = True
        elif ch == '.':
            i += 1
            # a trailing dot turns the children into plain text
            if i == len(line) or line[i] == ' ':
                i = len(line)
                info.block_tag = True
                break
            cls, i = skip_ident(line, i, '-_')
            classes.append(cls)
        elif ch == '(':
            i = parse_attributes(line, i + 1, attribs) + 1
        else:
            break

    while i < len(line):
        if line[i] == '<':
            info.inner = False
        elif line[i] == '>':
            info.outer = False
        else:
            break
        i += 1

    if sum(1 for a in attribs if a.key == 'id') > 1:
        raise DietSyntaxError("Id may only be set once.")

    if classes:
        joined = ' '.join(classes)
        if any(a.key == 'class' for a in attribs):
            attribs.append(HTMLAttribute(EXTRA_CLASS_KEY, joined))
        else:
            attribs.append(HTMLAttribute('class', f'"{joined}"'))

    return info, attribs, skip_whitespace(line, i)


def tag_name(line: str) -> Tuple[str, int]:
    """Leading tag identifier, `div` if the line starts with `#`, `.`, `(` and the like."""
    if line[:1] and line[0] in string.ascii_letters:
        return skip_ident(line, 0, ':-_')
    return 'div', 0


def parse_tag(line: str) -> ParsedTag:
    """Splits a full tag line into name, attributes, trailing text and flags."""
    name, start = tag_name(line)
    info, attribs, i = parse_html_tag(line[start:])
    return ParsedTag(name, attribs, line[start + i:], info)
