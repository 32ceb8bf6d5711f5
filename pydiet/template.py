"""
Public entry points: compile templates into `Template` objects and render them.
"""
import io
import logging
from typing import Any, Callable, Dict, List, Optional, TextIO

from .compiler import CompileOptions, DietCompiler
from .errors import DietSyntaxError
from .filters import FilterRegistry
from .loader import BlockStore, FileSystemLoader, Loader, TemplateBlock, extract_dependencies, read_file_rec
from .output import OutputContext
from .runtime import make_namespace

logger = logging.getLogger(__name__)


class Template:
    """A compiled Diet template, renderable any number of times."""

    def __init__(self, name: str, output: OutputContext, options: CompileOptions):
        self.name = name
        self.options = options
        self.source: str = output.source
        self.warnings: List[str] = list(output.warnings)

        try:
            self.code = compile(self.source, f"<diet:{name}>", 'exec')
        except SyntaxError as err:
            origin = output.code.origin_of(err.lineno)
            if origin is None:
                raise DietSyntaxError(f"Invalid generated code: {err.msg}", name) from err
            raise DietSyntaxError(f"Invalid Python code: {err.msg}", origin.file, origin.number) from err

    def render(self, context: Optional[Dict[str, Any]] = None, **kwargs) -> str:
        """Renders the template to a string."""
        buffer = io.StringIO()
        self.render_to(buffer, context, **kwargs)
        return buffer.getvalue()

    def render_to(self, stream: TextIO, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        """
        Renders the template into `stream`, which only needs a `write(str)` method.

        The values of `context` and `kwargs` are visible to the template's
        expressions and code lines as global names.
        """
        namespace: Dict[str, Any] = dict(context or {})
        namespace.update(kwargs)
        write = _strip_leading_newline(stream.write)

        def include(source: Any, depth: int) -> None:
            nested = compile_source(str(source), f"{self.name}#include", self.options, base_indent=depth)
            exec(nested.code, namespace)

        namespace.update(make_namespace(write, self.options.filters, include))
        exec(self.code, namespace)

    def __repr__(self) -> str:
        return f"<Template {self.name!r}>"


def _strip_leading_newline(write: Callable[[str], Any]) -> Callable[[str], None]:
    """Wraps `write` to drop the newline that starts every document."""
    started = False

    def wrapper(text: str) -> None:
        nonlocal started
        if not started:
            if not text:
                return
            started = True
            if text.startswith('\n'):
                text = text[1:]
        write(text)

    return wrapper


def _compile_files(files: List[TemplateBlock], options: CompileOptions, base_indent: int) -> Template:
    root = files[0]
    logger.debug("Compiling %s", root.name)
    output = DietCompiler(root, files, BlockStore(), options).build_writer(base_indent)
    template = Template(root.name, output, options)
    for warning in template.warnings:
        logger.warning(warning)
    return template


def compile_source(source: str, name: str, options: CompileOptions, base_indent: int = 0) -> Template:
    """Compiles template text with already prepared options."""
    files = [TemplateBlock.from_source(name, source)]
    if options.loader is not None:
        # the layouts an in-memory template extends come from the loader
        for dependency in extract_dependencies(files[0].lines):
            read_file_rec(dependency, options.loader, files, {name})
    return _compile_files(files, options, base_indent)


def compile_file(name: str, loader: Optional[Loader] = None, filters: Optional[FilterRegistry] = None,
                 translate: Optional[Callable[[str], str]] = None, base_indent: int = 0,
                 defer_filters: bool = False) -> Template:
    """
    Compiles the template `name` and the layouts it extends.

    Templates are read through `loader`, a callable mapping a template name to
    its source; by default from the current directory.
    """
    if loader is None:
        loader = FileSystemLoader()
    options = CompileOptions(loader, filters, translate, defer_filters).nested(name)
    files = read_file_rec(name, loader)
    return _compile_files(files, options, base_indent)


def compile_string(source: str, name: str = '<string>', loader: Optional[Loader] = None,
                   filters: Optional[FilterRegistry] = None, translate: Optional[Callable[[str], str]] = None,
                   base_indent: int = 0, defer_filters: bool = False) -> Template:
    """
    Compiles template text.

    `extends` and `include` are resolved through `loader` when one is given.
    """
    options = CompileOptions(loader, filters, translate, defer_filters).nested(name)
    return compile_source(source, name, options, base_indent)
