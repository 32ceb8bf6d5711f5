"""
Helpers used by generated template code at render time.

Generated programs only reference the names below, so a render namespace is
the template context plus `make_namespace()`.
"""
import html
from typing import Any, Callable, Dict

# Names bound in the render namespace
WRITE = '_diet_write'
TO_STRING = '_diet_str'
ESCAPE = '_diet_escape'
ATTR_ESCAPE = '_diet_attr_escape'
ATTRIBUTE = '_diet_attribute'
FILTERS = '_diet_filters'
INCLUDE = '_diet_include'


def to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ''
    return str(value)


def html_escape(value: Any) -> str:
    """Escapes `&`, `<` and `>`; objects providing `__html__` are trusted."""
    if hasattr(value, '__html__'):
        return value.__html__()
    return html.escape(to_string(value), quote=False)


def html_attrib_escape(value: Any) -> str:
    """Like `html_escape` but also escapes quotes, for use inside attribute values."""
    if hasattr(value, '__html__'):
        return value.__html__()
    return html.escape(to_string(value), quote=True)


def render_attribute(key: str, value: Any, extra_class: str = '', html5: bool = False) -> str:
    """
    Renders ` key="value"` for an attribute whose value is only known at render time.

    Booleans toggle the attribute, `None` and empty strings drop it, lists and
    tuples are joined with spaces. `extra_class` holds `.class` shorthand classes,
    appended after the value of a `class` attribute.
    """
    extra = html_attrib_escape(' ' + extra_class) if extra_class else ''

    if isinstance(value, bool):
        if not value:
            return ''
        return f' {key}' if html5 else f' {key}="{key}"'
    if value is None:
        value = ''
    if isinstance(value, (list, tuple)):
        joined = ' '.join(to_string(v) for v in value)
        return f' {key}="{html_attrib_escape(joined)}{extra}"'
    if isinstance(value, str):
        if value:
            return f' {key}="{html_attrib_escape(value)}{extra}"'
        if extra_class:
            return f' {key}="{html_attrib_escape(extra_class)}"'
        return ''
    return f' {key}="{html_attrib_escape(value)}{extra}"'


def make_namespace(write: Callable[[str], Any], filters, include: Callable[[Any, int], None]) -> Dict[str, Any]:
    return {
        WRITE: write,
        TO_STRING: to_string,
        ESCAPE: html_escape,
        ATTR_ESCAPE: html_attrib_escape,
        ATTRIBUTE: render_attribute,
        FILTERS: filters,
        INCLUDE: include,
    }
