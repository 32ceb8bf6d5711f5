import pytest

from pydiet import DictLoader, compile_file, compile_string


@pytest.fixture
def render():
    """Compiles template text and renders it with the given context."""
    def _render(source, **context):
        return compile_string(source).render(context)
    return _render


@pytest.fixture
def render_files():
    """Renders `root` out of an in-memory set of templates."""
    def _render(root, sources, **context):
        return compile_file(root, DictLoader(sources)).render(context)
    return _render
