import pytest

from pydiet import DietError, DietSyntaxError, MalformedIndentation, compile_string
from pydiet.compiler import LineKind, classify_line


# --- Doctypes ---

@pytest.mark.parametrize("source", ["!!! 5", "!!! html", "doctype html", "doctype 5", "doctype"])
def test_html5_doctype(render, source):
    assert render(source) == "<!DOCTYPE html>"


def test_xml_doctype(render):
    assert render("doctype xml") == '<?xml version="1.0" encoding="utf-8" ?>'


def test_transitional_doctype(render):
    assert render("doctype transitional") == (
        '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" '
        '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">')


def test_unknown_doctype_is_verbatim(render):
    assert render("doctype foo") == "<!DOCTYPE foo>"


def test_doctype_must_be_top_level():
    with pytest.raises(DietSyntaxError):
        compile_string("html\n\tdoctype html")


def test_doctype_without_children():
    with pytest.raises(DietSyntaxError):
        compile_string("doctype html\n\thtml")


# --- Tags and text ---

def test_expression_output(render):
    assert render("p= 5") == "<p>5</p>"
    assert render("script= 5") == "<script>5</script>"
    assert render("style= 5") == "<style>5</style>"


def test_expression_output_is_escaped(render):
    assert render("p= value", value="<b>") == "<p>&lt;b&gt;</p>"
    assert render("p!= value", value="<b>") == "<p><b></p>"


def test_html_text_line(render):
    assert render("<p>Hello</p>") == "<p>Hello</p>"


def test_nesting_and_indentation(render):
    assert render("html\n\tbody\n\t\tp text") == "<html>\n\t<body>\n\t\t<p>text</p>\n\t</body>\n</html>"


def test_space_indentation(render):
    assert render("div\n  p x\n  p y") == "<div>\n\t<p>x</p>\n\t<p>y</p>\n</div>"


def test_line_endings_and_bom(render):
    assert render("div\r\n\tp x") == "<div>\n\t<p>x</p>\n</div>"
    assert render("\ufeffp x") == "<p>x</p>"


def test_plain_text_keeps_leading_space(render):
    assert render("p\n\t| hello") == "<p>\n hello\n</p>"


def test_inner_whitespace_removal(render):
    assert render("p<\n\tspan a") == "<p><span>a</span></p>"


def test_singular_tag(render):
    assert render("br") == "<br/>"
    assert render("input(autofocus)") == '<input autofocus="autofocus"/>'


def test_singular_tag_with_children():
    with pytest.raises(DietSyntaxError, match="Singular HTML element 'img'"):
        compile_string("img\n\tdiv")


def test_div_is_default_tag(render):
    assert render("#main.box") == '<div id="main" class="box"></div>'


def test_interpolation(render):
    assert render("p Hello #{name}!", name="<b>") == "<p>Hello &lt;b&gt;!</p>"
    assert render("p !{raw}", raw="<b>") == "<p><b></p>"


def test_escaped_interpolation(render):
    assert render("p \\#{not}") == "<p>#{not}</p>"


def test_interpolated_expression_keeps_escapes(render):
    assert render('p #{"a\\nb".upper()}') == "<p>A\nB</p>"
    assert render("p #{'<it\\'s>'}") == "<p>&lt;it's&gt;</p>"
    assert render("p !{'it\\'s'}") == "<p>it's</p>"


def test_attribute_interpolation_keeps_escapes(render):
    assert render('a(title="#{\'\\n\'.join(x)}")', x=["a", "b"]) == '<a title="a\nb"></a>'


def test_double_sigil_is_rejected():
    with pytest.raises(DietSyntaxError):
        compile_string("p #{x} ##")


def test_none_renders_empty(render):
    assert render("p= value", value=None) == "<p></p>"


# --- Attributes ---

@pytest.mark.parametrize("source, expected", [
    ('div(class="")', '<div></div>'),
    ('div.foo(class="")', '<div class="foo"></div>'),
    ('div.foo(class="bar")', '<div class="bar foo"></div>'),
    ('div(class="foo")', '<div class="foo"></div>'),
    ("div#foo(class='')", '<div id="foo"></div>'),
    ('div.foo(class="bar" if True else "")', '<div class="bar foo"></div>'),
    ('div.foo(class=12 if True else 13)', '<div class="12 foo"></div>'),
    ('div.foo(class=["bar", "baz"] if True else [])', '<div class="bar baz foo"></div>'),
    ('div.foo(class="bar" if False else "")', '<div class="foo"></div>'),
    ('html( lang="en" )', '<html lang="en"></html>'),
    ("input(placeholder=')')", '<input placeholder=")"/>'),
    ("input(placeholder='(')", '<input placeholder="("/>'),
])
def test_attributes(render, source, expected):
    assert render(source) == expected


def test_expression_attributes(render):
    assert render('- cond = True\ndiv(someattr="foo" if cond else None)') == '<div someattr="foo"></div>'
    assert render('- cond = False\ndiv(someattr="foo" if cond else None)') == '<div></div>'
    assert render('- cond = False\ndiv(someattr=True if cond else False)') == '<div></div>'
    assert render('- cond = True\ndiv(someattr=True if cond else False)') == '<div someattr="someattr"></div>'


def test_boolean_attributes_after_html5_doctype(render):
    assert render("doctype html\n- cond = True\ndiv(someattr=True if cond else False)") == \
        "<!DOCTYPE html>\n<div someattr></div>"
    assert render("doctype html\n- cond = False\ndiv(someattr=True if cond else False)") == \
        "<!DOCTYPE html>\n<div></div>"


def test_attribute_interpolation_is_escaped(render):
    assert render('- s = ""\ninput(type="text",value="&\\"#{s}")') == '<input type="text" value="&amp;&quot;"/>'
    assert render('- param = "t=1&u=1"\na(href="/?#{param}&v=1") foo') == \
        '<a href="/?t=1&amp;u=1&amp;v=1">foo</a>'


def test_expression_attribute_from_context(render):
    assert render("a(href=url) link", url='/a?b="c"') == '<a href="/a?b=&quot;c&quot;">link</a>'


# --- Text blocks ---

def test_pre_keeps_children_as_tags(render):
    assert render("pre.test\n\tfoo") == '<pre class="test">\n\t<foo></foo></pre>'


def test_text_block(render):
    assert render("pre.test.\n\tfoo") == '<pre class="test">\nfoo</pre>'
    assert render("pre.test. foo") == '<pre class="test"></pre>'
    assert render("pre().\n\tfoo") == "<pre>\nfoo</pre>"
    assert render('pre#foo.test(data-img="sth",class="meh"). something\n\tmeh') == \
        '<pre id="foo" data-img="sth" class="meh test">\nmeh</pre>'


def test_text_block_keeps_blank_lines(render):
    assert render("pre.\n\ta\n\n\tb") == "<pre>\na\n\nb</pre>"


# --- Comments ---

def test_html_comment(render):
    assert render("// I show up") == "<!-- I show up\n -->"


def test_silent_comment(render):
    assert render("//-I don't show up") == ""
    assert render("//- I don't show up") == ""


def test_comment_body_is_escaped(render):
    assert render("// a\n\t<b>") == "<!-- a\n\t&lt;b&gt;\n -->"


def test_conditional_comment(render):
    assert render("//if IE 8\n\tp x") == "<!--[if IE 8]>\n\t<p>x</p>\n<![endif]-->"


# --- Code lines ---

def test_for_loop(render):
    source = "ul\n\t- for item in items\n\t\tli= item"
    assert render(source, items=[1, 2]) == "<ul>\n\t<li>1</li>\n\t<li>2</li>\n</ul>"
    assert render(source, items=[]) == "<ul>\n</ul>"


def test_if_else(render):
    source = "- if user\n\tp Hello #{user}\n- else\n\tp Anonymous"
    assert render(source, user="Bob") == "<p>Hello Bob</p>"
    assert render(source, user=None) == "<p>Anonymous</p>"


def test_statement_with_colon(render):
    assert render("- for i in range(2):\n\tp= i") == "<p>0</p>\n<p>1</p>"


def test_empty_code_block(render):
    assert render("- for x in items\n\t//- nothing", items=[1]) == ""


def test_code_variables_are_visible(render):
    assert render("- total = a + b\np= total", a=1, b=2) == "<p>3</p>"


def test_empty_code_line():
    with pytest.raises(DietSyntaxError):
        compile_string("-")


@pytest.mark.parametrize("source", ["p=", "p= ", "p!= ", "|=", "|!= ", "p #{}", "p !{ }", 'a(title="#{}")'])
def test_empty_expression_is_rejected(source):
    with pytest.raises(DietSyntaxError, match="Expected a Python expression"):
        compile_string(source)


# --- Translation ---

def test_translated_text():
    template = compile_string("p& hello", translate=str.upper)
    assert template.render() == "<p>HELLO</p>"


def test_translation_without_translator_warns():
    template = compile_string("p& hello")
    assert template.render() == "<p>hello</p>"
    assert any("translation" in w for w in template.warnings)


# --- Legacy script/style content ---

def test_legacy_script_content():
    template = compile_string("script\n\tvar a = 1;")
    assert template.render() == "<script>\n\t//<![CDATA[\n\tvar a = 1;\n\t//]]>\n</script>"
    assert any("trailing dot" in w for w in template.warnings)


def test_legacy_style_content(render):
    assert render('style(type="text/css")\n\tp {}') == \
        '<style type="text/css">\n\t<!--\n\tp {}\n\t-->\n</style>'


def test_script_text_block(render):
    assert render("script.\n\tvar a = 1;") == "<script>\nvar a = 1;\n</script>"


def test_script_tag_without_children(render):
    assert render('script(src="/a.js")') == '<script src="/a.js"></script>'


# --- Errors ---

@pytest.mark.parametrize("keyword", ["each", "for", "if", "unless", "mixin"])
def test_unsupported_keywords(keyword):
    with pytest.raises(DietSyntaxError, match=f"'{keyword}' is not supported."):
        compile_string(f"{keyword} x in y")


def test_too_deep_indentation():
    with pytest.raises(MalformedIndentation):
        compile_string("div\n\t\tp")


def test_inconsistent_indentation_is_located():
    with pytest.raises(MalformedIndentation) as exc:
        compile_string("div\n\tp\n  span", name="page.dt")
    assert exc.value.file == "page.dt"
    assert exc.value.line == 3


def test_errors_carry_template_position():
    with pytest.raises(DietError) as exc:
        compile_string("div\n\timg\n\t\tp", name="page.dt")
    assert exc.value.line == 2
    assert str(exc.value).startswith("Diet Compile Error (page.dt line 2):")


def test_python_syntax_error_points_at_template_line():
    with pytest.raises(DietSyntaxError) as exc:
        compile_string("p ok\n- x = = 1", name="page.dt")
    assert exc.value.file == "page.dt"
    assert exc.value.line == 2


def test_html_text_with_children():
    with pytest.raises(DietSyntaxError):
        compile_string("<p>\n\tspan")


def test_render_errors_propagate():
    template = compile_string("p= missing")
    with pytest.raises(NameError):
        template.render()


# --- Line classification ---

@pytest.mark.parametrize("line, kind", [
    ("- x = 1", LineKind.RAW_CODE),
    ("| text", LineKind.PLAIN_TEXT),
    ("<p>", LineKind.HTML_TEXT),
    (":css", LineKind.FILTER),
    ("// hi", LineKind.COMMENT),
    ("//if IE", LineKind.CONDITIONAL_COMMENT),
    ("!!! 5", LineKind.DOCTYPE),
    ("doctype html", LineKind.DOCTYPE),
    ("block content", LineKind.BLOCK),
    ("include footer", LineKind.INCLUDE),
    ("script", LineKind.LEGACY_CONTENT),
    ("mixin foo", LineKind.UNSUPPORTED),
    ("a(href='/')", LineKind.HTML_TAG),
    (".box", LineKind.HTML_TAG),
])
def test_classify_line(line, kind):
    assert classify_line(line)[0] is kind


def test_generated_source_is_exposed():
    template = compile_string("p= x")
    assert "_diet_escape" in template.source
