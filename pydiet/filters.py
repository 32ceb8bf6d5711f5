"""
Text filters for `:name` blocks.

A filter is a callable `(content, indent) -> str` where `indent` is the output
nesting depth of the filter block, in tabs.
"""
import logging
from typing import Callable, Dict, Iterator

import markdown

from .errors import UnresolvedReferenceError
from .runtime import html_escape

logger = logging.getLogger(__name__)

Filter = Callable[[str, int], str]


def filter_css(text: str, indent: int) -> str:
    indent_string = '\n' + '\t' * indent
    ret = indent_string + '<style type="text/css"><!--'
    for line in text.splitlines():
        ret += indent_string + '\t' + line
    ret += indent_string + '--></style>'
    return ret


def filter_javascript(text: str, indent: int) -> str:
    indent_string = '\n' + '\t' * indent
    ret = indent_string + '<script type="application/javascript">'
    ret += indent_string + '\t//<![CDATA['
    for line in text.splitlines():
        ret += indent_string + '\t' + line
    ret += indent_string + '\t//]]>' + indent_string + '</script>'
    return ret


def filter_markdown(text: str, indent: int) -> str:
    return markdown.markdown(text, output_format='html5')


def filter_html_escape(text: str, indent: int) -> str:
    return html_escape(text)


BUILTIN_FILTERS = {
    'css': filter_css,
    'javascript': filter_javascript,
    'markdown': filter_markdown,
    'htmlescape': filter_html_escape,
}


class FilterRegistry:
    """
    Named filters available to a compilation.

    Seeded with the built-in filters. Register additional ones before compiling;
    a registry may be shared read-only by independent compilations.
    """

    def __init__(self, builtins: bool = True):
        self._filters: Dict[str, Filter] = dict(BUILTIN_FILTERS) if builtins else {}

    def register(self, name: str, filter: Filter) -> None:
        if name in self._filters:
            logger.debug("Replacing filter '%s'", name)
        self._filters[name] = filter

    def get(self, name: str):
        return self._filters.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._filters

    def __getitem__(self, name: str) -> Filter:
        try:
            return self._filters[name]
        except KeyError:
            raise UnresolvedReferenceError(f"Unknown filter '{name}'.") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._filters)

    def apply(self, name: str, content: str, indent: int) -> str:
        return self[name](content, indent)
