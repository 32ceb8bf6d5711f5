import logging
from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Tuple

from .errors import DietError, DietSyntaxError, MalformedIndentation, UnresolvedReferenceError, UnsupportedFeatureError
from .filters import FilterRegistry
from .interpolation import Literal, has_interpolations, scan
from .lines import Line, ctstrip, dstring_unescape, indent_level, unindent
from .loader import BLOCK_MODES, TEMPLATE_SUFFIX, BlockMode, BlockStore, Loader, TemplateBlock, read_file_rec
from .output import OutputContext, State
from .runtime import INCLUDE, html_attrib_escape, html_escape
from .tags import (EXTRA_CLASS_KEY, LEGACY_CONTENT_TYPES, SINGULAR_TAGS, HTMLAttribute, is_string_literal,
                   parse_html_tag, skip_ident, skip_whitespace, tag_name)

logger = logging.getLogger(__name__)

DOCTYPES = {
    'xml': '?xml version="1.0" encoding="utf-8" ?',
    'transitional': '!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" '
                    '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd"',
    'strict': '!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
              '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd"',
    'frameset': '!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Frameset//EN" '
                '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-frameset.dtd"',
    '1.1': '!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" '
           '"http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd"',
    'basic': '!DOCTYPE html PUBLIC "-//W3C//DTD XHTML Basic 1.1//EN" '
             '"http://www.w3.org/TR/xhtml-basic/xhtml-basic11.dtd"',
    'mobile': '!DOCTYPE html PUBLIC "-//WAPFORUM//DTD XHTML Mobile 1.2//EN" '
              '"http://www.openmobilealliance.org/tech/DTD/xhtml-mobile12.dtd"',
}
HTML5_DOCTYPES = ('5', '', 'html')

UNSUPPORTED_KEYWORDS = ('each', 'for', 'if', 'unless', 'mixin')


class LineKind(Enum):
    RAW_CODE = 'raw_code'
    PLAIN_TEXT = 'plain_text'
    HTML_TEXT = 'html_text'
    FILTER = 'filter'
    COMMENT = 'comment'
    CONDITIONAL_COMMENT = 'conditional_comment'
    DOCTYPE = 'doctype'
    BLOCK = 'block'
    INCLUDE = 'include'
    LEGACY_CONTENT = 'legacy_content'
    UNSUPPORTED = 'unsupported'
    HTML_TAG = 'html_tag'


def classify_line(ln: str) -> Tuple[LineKind, str, int]:
    """
    Classifies an unindented template line.

    Returns the kind, the tag name (for tag-like lines) and the index where the
    remainder of the line starts.
    """
    first = ln[0]
    if first == '-':
        return LineKind.RAW_CODE, '', 1
    if first == '|':
        return LineKind.PLAIN_TEXT, '', 1
    if first == '<':
        return LineKind.HTML_TEXT, '', 0
    if first == ':':
        return LineKind.FILTER, '', 0
    if ln.startswith('//'):
        if ln[2:5] == 'if ':
            return LineKind.CONDITIONAL_COMMENT, '', 5
        return LineKind.COMMENT, '', 2
    if ln.startswith('!!! '):
        return LineKind.DOCTYPE, 'doctype', 4

    tag, j = tag_name(ln)
    if tag == 'doctype':
        return LineKind.DOCTYPE, tag, j
    if tag == 'block':
        return LineKind.BLOCK, tag, j
    if tag == 'include':
        return LineKind.INCLUDE, tag, j
    if tag in ('script', 'style'):
        return LineKind.LEGACY_CONTENT, tag, j
    if tag in UNSUPPORTED_KEYWORDS:
        return LineKind.UNSUPPORTED, tag, j
    return LineKind.HTML_TAG, tag, j


class CompileOptions:
    """Settings shared by a compilation and the templates it includes."""

    def __init__(self, loader: Optional[Loader] = None, filters: Optional[FilterRegistry] = None,
                 translate: Optional[Callable[[str], str]] = None, defer_filters: bool = False,
                 including: FrozenSet[str] = frozenset()):
        self.loader = loader
        self.filters = filters if filters is not None else FilterRegistry()
        self.translate = translate
        self.defer_filters = defer_filters
        self.including = including

    def nested(self, name: str) -> 'CompileOptions':
        """Options for compiling the included template `name`."""
        return CompileOptions(self.loader, self.filters, self.translate, self.defer_filters,
                              self.including | {name})


class _BodyState:
    """Per-body parsing state; the per-line fields are refreshed for every line."""

    def __init__(self, base_level: int, start_level: int):
        self.base_level = base_level
        self.start_level = start_level
        self.prepend_whitespaces = True
        self.line: Optional[Line] = None
        self.ln = ''
        self.level = 0
        self.next_level = 0
        self.tag = ''
        self.offset = 0


class DietCompiler:
    """
    Diet Compiler
    Compiles a Diet template and its layouts into a Python render program.

    Features:
    - Indentation-based hierarchy with automatic closing tags
    - Tags with #id, .class and (attribute=value) shorthands, whitespace control via < and >
    - Text interpolation (#{escaped} and !{raw}) and = / != expression output
    - Embedded Python statements (- lines), nesting their children
    - Filters (:css, :javascript, :markdown, :htmlescape and user registered ones)
    - Template inheritance (extends, block, append, prepend) and include
    - HTML comments, silent comments and IE conditional comments
    - Doctype aliases
    """

    def __init__(self, block: TemplateBlock, files: List[TemplateBlock], blocks: BlockStore,
                 options: Optional[CompileOptions] = None):
        """Initializes the compiler for `block`, with the other loaded files and the shared block store."""
        self.block = block
        self.files = files
        self.blocks = blocks
        self.options = options if options is not None else CompileOptions()
        self.line_index = 0

        self._handlers = {
            LineKind.RAW_CODE: self._build_code_node,
            LineKind.PLAIN_TEXT: self._build_plain_text_node,
            LineKind.HTML_TEXT: self._build_html_text_node,
            LineKind.FILTER: self._build_filter_node,
            LineKind.COMMENT: self._build_comment_node,
            LineKind.CONDITIONAL_COMMENT: self._build_conditional_comment_node,
            LineKind.DOCTYPE: self._build_doctype_node,
            LineKind.BLOCK: self._build_block_node,
            LineKind.INCLUDE: self._build_include_node,
            LineKind.LEGACY_CONTENT: self._build_legacy_content_node,
            LineKind.UNSUPPORTED: self._build_unsupported_node,
            LineKind.HTML_TAG: self._build_tag_node,
        }

    @property
    def indent_style(self) -> str:
        return self.block.indent_style

    @property
    def line_count(self) -> int:
        return len(self.block.lines)

    def line(self, index: int) -> Line:
        return self.block.lines[index]

    def _fatal_error(self, message: str, error=DietSyntaxError):
        """Raises a fatal compilation error located at the current line."""
        file, number = None, None
        if self.line_index < self.line_count:
            file, number = self.line(self.line_index).file, self.line(self.line_index).number
        raise error(message, file, number)

    # --- Entry Points ---

    def build_writer(self, base_indent: int = 0) -> OutputContext:
        """Compiles the template into a fresh output context."""
        output = OutputContext(base_indent)
        self.build_into(output, 0)
        if output.stack_size:
            raise DietError(f"Template writer did not consume all nodes ({output.stack_size} left).", self.block.name)
        if output.warn_translation_context:
            output.warnings.append("No translation function configured, ignoring '&' suffixes.")
        return output

    def build_into(self, output: OutputContext, base_level: int) -> None:
        """
        Compiles the template into `output`, nested at node stack depth `base_level`.

        A template starting with `extends` only declares blocks: they are collected
        into the block store and compilation restarts with the layout file.
        """
        chain = {self.block.name}
        while True:
            if not self.line_count:
                return
            first = self.line(self.line_index)
            if not first.text.startswith('extends '):
                try:
                    start_level = indent_level(first.text, self.indent_style)
                except DietError as err:
                    err.locate(first.file, first.number)
                    raise
                self._build_body(output, base_level, start_level)
                break

            layout = self._get_file(ctstrip(first.text[8:]) + TEMPLATE_SUFFIX)
            self.line_index += 1
            self._collect_blocks()

            if layout.name in chain:
                output.warn(f"Circular extends of '{layout.name}' in '{self.block.name}', stopping.")
                logger.warning("Circular extends of '%s' in '%s'", layout.name, self.block.name)
                return
            chain.add(layout.name)
            logger.debug("%s extends %s", self.block.name, layout.name)

            self.block = layout
            self.line_index = 0

        output.enter_state(State.CODE)

    def _collect_blocks(self) -> None:
        """Reads the `block`/`append`/`prepend` declarations following an `extends` line."""
        while self.line_index < self.line_count:
            header = self.line(self.line_index)
            try:
                mode_name, end = skip_ident(header.text, 0)
            except DietError as err:
                err.locate(header.file, header.number)
                raise
            mode = BLOCK_MODES.get(mode_name)
            if mode is None:
                self._fatal_error("Expected block/append/prepend.")
            name = ctstrip(header.text[end:])
            self.line_index += 1

            # the body runs until the next line at level zero
            start = self.line_index
            while self.line_index < self.line_count and \
                    indent_level(self.line(self.line_index).text, self.indent_style, False) != 0:
                self.line_index += 1

            self.blocks.add(TemplateBlock(name, self.block.lines[start:self.line_index], self.indent_style, mode))

    # --- Body ---

    def _next_level(self, state: _BodyState) -> int:
        """Nesting level of the line after the current one (the base level at the end)."""
        if self.line_index + 1 < self.line_count:
            level = indent_level(self.line(self.line_index + 1).text, self.indent_style, False)
            return level - state.start_level + state.base_level
        return state.base_level

    def _build_body(self, output: OutputContext, base_level: int, start_level: int) -> None:
        if output.stack_size < base_level:
            raise DietError("Node stack is shallower than the base level.", self.block.name)

        state = _BodyState(base_level, start_level)
        while self.line_index < self.line_count:
            line = self.line(self.line_index)
            output.mark_input_line(line)
            try:
                self._build_line(output, state, line)
            except DietError as err:
                err.locate(line.file, line.number)
                raise
            self.line_index += 1

    def _build_line(self, output: OutputContext, state: _BodyState, line: Line) -> None:
        """Processes one line, then closes the nodes the next line no longer nests in."""
        state.line = line
        state.level = indent_level(line.text, self.indent_style) - state.start_level + state.base_level
        if state.level > output.stack_size:
            self._fatal_error("Line is indented deeper than its parent element allows.", MalformedIndentation)
        state.ln = unindent(line.text, self.indent_style)
        state.next_level = self._next_level(state)

        if state.next_level > state.level + 1:
            self._fatal_error("The next line is indented by more than one level deeper. Please unindent accordingly.",
                              MalformedIndentation)

        kind, state.tag, state.offset = classify_line(state.ln)
        self._handlers[kind](output, state)

        state.prepend_whitespaces = output.pop_nodes(state.next_level, state.prepend_whitespaces)

    # --- Helper Methods ---

    def _child_end(self, state: _BodyState) -> int:
        """Index of the first line after the current one that is not nested in it."""
        nxt = self.line_index + 1
        while nxt < self.line_count and \
                indent_level(self.line(nxt).text, self.indent_style, False) - state.start_level > \
                state.level - state.base_level:
            nxt += 1
        return nxt

    def _skip_to(self, state: _BodyState, nxt: int) -> None:
        """Continues after the child lines consumed by the current construct."""
        self.line_index = nxt - 1
        state.next_level = self._next_level(state)

    def _unindent_count(self, state: _BodyState) -> int:
        """Indent units to strip from the child lines of the current line."""
        return state.level + state.start_level - state.base_level + 1

    def _get_file(self, name: str) -> TemplateBlock:
        for block in self.files:
            if block.name == name:
                return block
        self._fatal_error(f"Template '{name}' was not loaded.", UnresolvedReferenceError)

    def _build_special_tag(self, output: OutputContext, tag: str, level: int, leading_newline: bool = True) -> None:
        if leading_newline:
            output.write_string('\n')
        output.write_indent(level)
        output.write_string(f"<{tag}>")

    def _expression(self, code: str) -> str:
        """Checks that an output expression is not empty."""
        code = code.strip()
        if not code:
            self._fatal_error("Expected a Python expression.")
        return code

    def _build_interpolated_string(self, output: OutputContext, text: str, attribute: bool = False) -> None:
        for fragment in scan(text):
            if isinstance(fragment, Literal):
                output.write_string(html_attrib_escape(fragment.text) if attribute else fragment.text)
            elif not fragment.escaped:
                output.write_expr(self._expression(fragment.code))
            elif attribute:
                output.write_expr_html_attrib_escaped(self._expression(fragment.code))
            else:
                output.write_expr_html_escaped(self._expression(fragment.code))

    def _build_text(self, output: OutputContext, text: str, state: _BodyState) -> None:
        """Writes a text node: `= expr`, `!= expr` or interpolated text."""
        if state.prepend_whitespaces:
            output.write_string('\n')
        if text.startswith('='):
            output.write_expr_html_escaped(self._expression(text[1:]))
        elif text.startswith('!='):
            output.write_expr(self._expression(text[2:]))
        else:
            self._build_interpolated_string(output, text)
        output.push_dummy_node()
        state.prepend_whitespaces = True

    # --- Line Handlers ---

    def _build_code_node(self, output: OutputContext, state: _BodyState) -> None:
        """`- statement`: embedded Python; indented children form the statement's block."""
        stmt = state.ln[1:].strip()
        if not stmt:
            self._fatal_error("Expected a Python statement after '-'.")
        if state.next_level > state.level:
            if not stmt.endswith(':'):
                stmt += ':'
            output.write_code_line(stmt)
            output.push_code_block()
        else:
            if stmt.endswith(':'):
                stmt += ' pass'
            output.write_code_line(stmt)
            output.push_dummy_node()

    def _build_plain_text_node(self, output: OutputContext, state: _BodyState) -> None:
        self._build_text(output, state.ln[1:], state)

    def _build_html_text_node(self, output: OutputContext, state: _BodyState) -> None:
        if state.next_level > state.level:
            self._fatal_error("Child elements for plain text starting with '<' are not supported.")
        self._build_text(output, state.ln, state)

    def _build_filter_node(self, output: OutputContext, state: _BodyState) -> None:
        """`:filter1:filter2 text` with an indented raw text body."""
        nxt = self._child_end(state)
        indent = state.level + state.start_level - state.base_level
        tagline = state.ln

        # find all filters
        filters: List[str] = []
        j = 0
        while True:
            name, j = skip_ident(tagline, j + 1)
            filters.append(name)
            j = skip_whitespace(tagline, j)
            if j >= len(tagline) or tagline[j] != ':':
                break

        # assemble the child lines, restoring blank lines in between
        content = tagline[j:]
        lc = state.line.number if content else state.line.number + 1
        for child in self.block.lines[self.line_index + 1:nxt]:
            while lc < child.number:
                content += '\n'
                lc += 1
            content += unindent(child.text, self.indent_style, indent + 1)

        out_indent = output.base_indent + indent

        # apply at compile time what is known now, last filter first
        registry = self.options.filters
        while filters and filters[-1] in registry:
            content = registry.apply(filters.pop(), content, out_indent)

        if not filters:
            output.write_string(content)
        elif self.options.defer_filters:
            logger.debug("Deferring filters %s to render time", filters)
            output.write_filtered(filters, content, out_indent)
        else:
            self._fatal_error(f"Unknown filter '{filters[-1]}'.", UnresolvedReferenceError)

        self._skip_to(state, nxt)

    def _build_comment_node(self, output: OutputContext, state: _BodyState) -> None:
        """`// comment` is written as an HTML comment, `//- comment` is dropped."""
        ln = state.ln
        output_comment = not (len(ln) > 2 and ln[2] == '-')
        if output_comment:
            output.write_string('<!-- ' + html_escape(ln[skip_whitespace(ln, 2):]))

        nxt = self.line_index + 1
        while nxt < self.line_count and \
                indent_level(self.line(nxt).text, self.indent_style, False) - state.start_level > \
                state.level - state.base_level:
            if output_comment:
                output.write_string('\n')
                output.write_string(html_escape(self.line(nxt).text))
            nxt += 1

        if output_comment:
            output.push_node(' -->')
        self._skip_to(state, nxt)

    def _build_conditional_comment_node(self, output: OutputContext, state: _BodyState) -> None:
        """`// if IE 8` opens an IE conditional comment around the children."""
        condition = state.ln[skip_whitespace(state.ln, state.offset):]
        self._build_special_tag(output, f"!--[if {condition}]", state.level)
        output.push_node('<![endif]-->')

    def _build_doctype_node(self, output: OutputContext, state: _BodyState) -> None:
        if state.level != 0:
            self._fatal_error("'doctype' may only be used as a top level tag.")

        doctype = state.ln[skip_whitespace(state.ln, state.offset):]
        output.is_html5 = doctype in HTML5_DOCTYPES
        if output.is_html5:
            doctype_str = '!DOCTYPE html'
        else:
            doctype_str = DOCTYPES.get(doctype, '!DOCTYPE ' + doctype)
        self._build_special_tag(output, doctype_str, state.level, leading_newline=False)

        if state.next_level > state.level:
            self._fatal_error("'doctype' may not have child tags.")

    def _build_block_node(self, output: OutputContext, state: _BodyState) -> None:
        """`block name`: the overriding block if one was declared, else the default children."""
        output.push_dummy_node()
        name = ctstrip(state.ln[6:])
        block = self.blocks.get(name)
        if block is None:
            # no override: children are compiled as the default content
            return

        logger.debug("Using block %s in %s", name, state.line.file)
        if block.mode is BlockMode.APPEND and state.next_level > state.level:
            self._fatal_error("Append mode for blocks is currently not supported.", UnsupportedFeatureError)

        block_compiler = DietCompiler(block, self.files, self.blocks, self.options)
        block_compiler.build_into(output, output.stack_size)

        if block.mode is not BlockMode.PREPEND:
            # the override replaces the default content
            self._skip_to(state, self._child_end(state))

    def _build_include_node(self, output: OutputContext, state: _BodyState) -> None:
        """`include name` splices another template, `include #{expr}` does so at render time."""
        if state.next_level > state.level:
            self._fatal_error("Child elements for 'include' are not supported.")

        content = ctstrip(state.ln[8:])
        depth = output.indent_depth(state.level)
        if content.startswith('#{'):
            if not content.endswith('}'):
                self._fatal_error("Missing closing '}'.")
            output.write_code_line(f"{INCLUDE}(({content[2:-1]}), {depth})")
            return

        name = content + TEMPLATE_SUFFIX
        if name in self.options.including:
            logger.warning("Skipping recursive include of '%s'", name)
            return
        if self.options.loader is None:
            self._fatal_error(f"Cannot include '{name}' without a template loader.", UnresolvedReferenceError)

        files = read_file_rec(name, self.options.loader)
        included = DietCompiler(files[0], files, BlockStore(), self.options.nested(name))
        output.write_code_section(included.build_writer(depth))

    def _build_legacy_content_node(self, output: OutputContext, state: _BodyState) -> None:
        """
        `script`/`style` with children but without a trailing dot.

        Deprecated: the children are written as raw content wrapped in a comment.
        Anything else with these tag names is an ordinary tag.
        """
        tagline = state.ln[state.offset:]
        info, attribs, end = parse_html_tag(tagline)
        if info.block_tag:
            self._build_tag_node(output, state)
            return

        is_legacy_type = True
        for attrib in attribs:
            if attrib.key == 'type':
                is_legacy_type = attrib.value in LEGACY_CONTENT_TYPES
                break
        if not is_legacy_type or state.next_level <= state.level:
            self._build_tag_node(output, state)
            return

        output.warn(f"Use an explicit text block '{state.tag}{tagline[:end].rstrip()}.' (with a trailing dot) "
                    f"for embedded css/javascript - old behavior will be removed soon.")
        nxt = self._child_end(state)
        self._build_raw_node(output, state, tagline, attribs, end, self.block.lines[self.line_index + 1:nxt])
        self._skip_to(state, nxt)

    def _build_raw_node(self, output: OutputContext, state: _BodyState, tagline: str,
                        attribs: List[HTMLAttribute], end: int, lines: List[Line]) -> None:
        tag = state.tag
        self._build_html_tag(output, tag, state.level, attribs, False)

        indent_string = '\t' * (output.indent_depth(state.level) + 1)

        # wrap the contents in a comment for old browsers
        if tag == 'script':
            output.write_string('\n' + indent_string + '//<![CDATA[\n')
        else:
            output.write_string('\n' + indent_string + '<!--\n')

        def write_line(text: str) -> None:
            output.write_string(indent_string)
            if has_interpolations(text):
                self._build_interpolated_string(output, text)
            else:
                output.write_string(text)
            output.write_string('\n')

        if end < len(tagline):
            write_line(tagline[end:])
        for child in lines:
            write_line(unindent(child.text, self.indent_style, self._unindent_count(state)))

        if tag == 'script':
            output.write_string(indent_string + '//]]>\n')
        else:
            output.write_string(indent_string + '-->\n')
        output.write_string(indent_string[:-1] + f"</{tag}>")

    def _build_unsupported_node(self, output: OutputContext, state: _BodyState) -> None:
        self._fatal_error(f"'{state.tag}' is not supported.")

    def _build_tag_node(self, output: OutputContext, state: _BodyState) -> None:
        if not self._build_html_node(output, state, state.tag, state.ln[state.offset:],
                                     state.next_level > state.level):
            return

        # the tag ended with '.': its children are plain text
        nxt = self.line_index + 1
        count = self._unindent_count(state)
        last_line_number = state.line.number
        while nxt < self.line_count and \
                indent_level(self.line(nxt).text, self.indent_style, False) - state.start_level > \
                state.level - state.base_level:
            child = self.line(nxt)
            for _ in range(last_line_number + 1, child.number):
                output.write_string('\n')
            last_line_number = child.number
            self._build_text(output, unindent(child.text, self.indent_style, count), state)
            nxt += 1
        self._skip_to(state, nxt)

    def _build_html_node(self, output: OutputContext, state: _BodyState, tag: str, line: str,
                         has_child_nodes: bool) -> bool:
        """
        Writes an HTML element and its inline text.

        Returns True if the tag ends with '.', in which case the caller treats its
        children as text.
        """
        info, attribs, i = parse_html_tag(line)

        is_singular_tag = tag in SINGULAR_TAGS
        if is_singular_tag and has_child_nodes:
            self._fatal_error(f"Singular HTML element '{tag}' may not have children.")

        # opening tag
        self._build_html_tag(output, tag, state.level, attribs, is_singular_tag,
                             info.outer and state.prepend_whitespaces)

        # text contents, either "= code" or plain text
        if line[i:i + 1] == '=':
            output.write_expr_html_escaped(self._expression(line[i + 1:]))
        elif line[i:i + 2] == '!=':
            output.write_expr(self._expression(line[i + 2:]))
        else:
            rawtext = line[i:]
            if info.translated:
                if self.options.translate is not None:
                    rawtext = self.options.translate(rawtext)
                else:
                    output.warn_translation_context = True
            if has_interpolations(rawtext):
                self._build_interpolated_string(output, rawtext)
            else:
                output.write_string(dstring_unescape(rawtext))

        # closing tag
        if has_child_nodes:
            output.push_node(f"</{tag}>", info.inner, info.outer)
        elif not is_singular_tag:
            output.write_string(f"</{tag}>")
        state.prepend_whitespaces = info.inner if has_child_nodes else info.outer

        return info.block_tag

    def _build_html_tag(self, output: OutputContext, tag: str, level: int, attribs: List[HTMLAttribute],
                        is_singular_tag: bool, outer_whitespaces: bool = True) -> None:
        if outer_whitespaces:
            output.write_string('\n')
            output.write_indent(level)
        output.write_string('<' + tag)

        extra_class = next((a.value for a in attribs if a.key == EXTRA_CLASS_KEY), '')

        for attrib in attribs:
            if attrib.key.startswith('$'):
                continue
            extra = extra_class if attrib.key == 'class' else ''

            if is_string_literal(attrib.value):
                value = attrib.value.strip(' \t')[1:-1]
                output.write_string(f' {attrib.key}="')
                if has_interpolations(value):
                    self._build_interpolated_string(output, value, attribute=True)
                else:
                    output.write_string(html_attrib_escape(dstring_unescape(value)))
                if extra:
                    output.write_string(html_attrib_escape(' ' + extra))
                output.write_string('"')
            else:
                output.write_attribute(attrib.key, attrib.value, extra)

        output.write_string('/>' if is_singular_tag else '>')
