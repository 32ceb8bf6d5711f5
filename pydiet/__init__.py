"""
pydiet compiles Diet templates, an indentation based HTML syntax, into Python
render functions.

    >>> from pydiet import compile_string
    >>> compile_string("p Hello #{name}").render(name="World")
    '<p>Hello World</p>'
"""
from .errors import DietError, DietSyntaxError, MalformedIndentation, UnresolvedReferenceError, UnsupportedFeatureError
from .filters import FilterRegistry
from .loader import DictLoader, FileSystemLoader
from .template import Template, compile_file, compile_string

__all__ = [
    'DietError', 'DietSyntaxError', 'MalformedIndentation', 'UnresolvedReferenceError', 'UnsupportedFeatureError',
    'FilterRegistry', 'DictLoader', 'FileSystemLoader',
    'Template', 'compile_file', 'compile_string',
]
