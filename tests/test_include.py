import pytest

from pydiet import DietSyntaxError, DictLoader, UnresolvedReferenceError, compile_file, compile_string


def test_include_file(render_files):
    sources = {"page.dt": "div\n\tinclude part", "part.dt": "p Part"}
    assert render_files("page.dt", sources) == "<div>\n\t<p>Part</p>\n</div>"


def test_include_shares_context(render_files):
    sources = {"page.dt": "- greeting = 'Hi'\ninclude part", "part.dt": "p #{greeting} #{name}"}
    assert render_files("page.dt", sources, name="Ann") == "<p>Hi Ann</p>"


def test_included_file_may_extend(render_files):
    sources = {
        "page.dt": "section\n\tinclude part",
        "part.dt": "extends frame\nblock inner\n\tp Part",
        "frame.dt": "article\n\tblock inner",
    }
    assert render_files("page.dt", sources) == "<section>\n\t<article>\n\t\t<p>Part</p>\n\t</article>\n</section>"


def test_recursive_include_is_skipped(render_files):
    assert render_files("a.dt", {"a.dt": "p A\ninclude a"}) == "<p>A</p>"


def test_missing_include():
    with pytest.raises(UnresolvedReferenceError):
        compile_file("page.dt", DictLoader({"page.dt": "include nowhere"}))


def test_include_without_loader():
    with pytest.raises(UnresolvedReferenceError):
        compile_string("include part")


def test_include_with_children():
    with pytest.raises(DietSyntaxError):
        compile_string("include part\n\tp child")


def test_include_expression(render):
    assert render('include #{"p Hello"}') == "<p>Hello</p>"


def test_include_expression_from_context(render):
    assert render("div\n\tinclude #{snippet}", snippet="p= x", x=5) == "<div>\n\t<p>5</p>\n</div>"


def test_include_expression_missing_brace():
    with pytest.raises(DietSyntaxError, match="Missing closing"):
        compile_string("include #{snippet")
