"""
Output emitter: turns literal text and expression writes into Python source.

Consecutive literal writes are batched into a single write call; the batch is
flushed whenever code has to be interleaved.
"""
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from . import runtime
from .lines import Line


class State(Enum):
    CODE = 'code'
    STRING = 'string'


class Node(NamedTuple):
    marker: str
    closes_as_text: bool = True
    inner: bool = True
    outer: bool = True


DUMMY_NODE = Node('', closes_as_text=False)
CODE_BLOCK_NODE = Node('-', closes_as_text=False)


class CodeBuilder:
    """Python source lines with indentation, each remembering the template line it came from."""

    INDENT_STEP = 4

    def __init__(self):
        self.lines: List[Tuple[str, Optional[Line]]] = []
        self.indent_level = 0
        self._block_starts: List[int] = []

    def add_line(self, line: str, origin: Optional[Line] = None) -> None:
        self.lines.append((' ' * self.indent_level + line, origin))

    def add_section(self, other: 'CodeBuilder') -> None:
        """Splices another builder's lines at the current indentation."""
        for line, origin in other.lines:
            self.add_line(line, origin)

    def indent(self) -> None:
        self._block_starts.append(len(self.lines))
        self.indent_level += self.INDENT_STEP

    def dedent(self) -> None:
        if len(self.lines) == self._block_starts.pop():
            self.add_line('pass')
        self.indent_level -= self.INDENT_STEP

    def origin_of(self, lineno: Optional[int]) -> Optional[Line]:
        """Template line for a 1-based line number of the generated source."""
        if lineno is None or not 0 < lineno <= len(self.lines):
            return None
        return self.lines[lineno - 1][1]

    def __str__(self) -> str:
        return ''.join(line + '\n' for line, _ in self.lines)


class OutputContext:
    def __init__(self, base_indent: int = 0):
        self.state = State.CODE
        self.node_stack: List[Node] = []
        self.code = CodeBuilder()
        self.base_indent = base_indent
        self.is_html5 = False
        self.warn_translation_context = False
        self.warnings: List[str] = []
        self._pending: List[str] = []
        self._line: Optional[Line] = None

    def mark_input_line(self, line: Line) -> None:
        self._line = line

    @property
    def stack_size(self) -> int:
        return len(self.node_stack)

    @property
    def source(self) -> str:
        return str(self.code)

    # --- Node Stack ---

    def push_node(self, marker: str, inner: bool = True, outer: bool = True) -> None:
        self.node_stack.append(Node(marker, True, inner, outer))

    def push_dummy_node(self) -> None:
        self.node_stack.append(DUMMY_NODE)

    def push_code_block(self) -> None:
        """Opens a Python block; the matching pop dedents the generated code."""
        self.code.indent()
        self.node_stack.append(CODE_BLOCK_NODE)

    def pop_nodes(self, next_indent_level: int, prepend_whitespaces: bool) -> bool:
        """Closes all nodes above `next_indent_level`, returns the updated whitespace flag."""
        while len(self.node_stack) > next_indent_level:
            top = self.node_stack[-1]
            if top is CODE_BLOCK_NODE:
                self.enter_state(State.CODE)
                self.code.dedent()
            elif top.closes_as_text:
                if top.inner and prepend_whitespaces and top.marker != '</pre>':
                    self.write_string('\n')
                    self.write_indent(len(self.node_stack) - 1)
                self.write_string(top.marker)
                prepend_whitespaces = top.outer
            self.node_stack.pop()
        return prepend_whitespaces

    def indent_depth(self, stack_depth: Optional[int] = None) -> int:
        """Output nesting in tabs: the base indent plus the open text nodes."""
        nodes = self.node_stack if stack_depth is None else self.node_stack[:stack_depth]
        return self.base_indent + sum(1 for node in nodes if node.closes_as_text)

    # --- Writing ---

    def write_string(self, text: str) -> None:
        self.enter_state(State.STRING)
        self._pending.append(text)

    def write_indent(self, stack_depth: Optional[int] = None) -> None:
        self.write_string('\t' * self.indent_depth(stack_depth))

    def write_expr(self, code: str) -> None:
        self.write_code_line(f"{runtime.WRITE}({runtime.TO_STRING}(({code.strip()})))")

    def write_expr_html_escaped(self, code: str) -> None:
        self.write_code_line(f"{runtime.WRITE}({runtime.ESCAPE}(({code.strip()})))")

    def write_expr_html_attrib_escaped(self, code: str) -> None:
        self.write_code_line(f"{runtime.WRITE}({runtime.ATTR_ESCAPE}(({code.strip()})))")

    def write_attribute(self, key: str, code: str, extra_class: str = '') -> None:
        self.write_code_line(
            f"{runtime.WRITE}({runtime.ATTRIBUTE}({key!r}, ({code.strip()}), {extra_class!r}, {self.is_html5!r}))")

    def write_filtered(self, filters: List[str], content: str, indent: int) -> None:
        """Applies filters at render time, the last one first."""
        expr = repr(content)
        for name in reversed(filters):
            expr = f"{runtime.FILTERS}[{name!r}]({expr}, {indent})"
        self.write_code_line(f"{runtime.WRITE}({expr})")

    def write_code_line(self, stmt: str) -> None:
        self.enter_state(State.CODE)
        self.code.add_line(stmt, self._line)

    def write_code_section(self, other: 'OutputContext') -> None:
        """Splices the program of a separately compiled template (an include)."""
        other.enter_state(State.CODE)
        self.enter_state(State.CODE)
        self.code.add_section(other.code)
        self.warnings.extend(other.warnings)

    def warn(self, message: str) -> None:
        if self._line is not None:
            message = f"{self._line.file}:{self._line.number}: {message}"
        self.warnings.append(message)

    def enter_state(self, state: State) -> bool:
        if state is self.state:
            return False
        if self.state is State.STRING:
            self._flush()
        self.state = state
        return True

    def _flush(self) -> None:
        text = ''.join(self._pending)
        self._pending = []
        if text:
            self.code.add_line(f"{runtime.WRITE}({text!r})", self._line)
