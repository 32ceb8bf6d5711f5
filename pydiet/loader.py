"""Template loading and `extends` dependency resolution."""
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Set

from .errors import UnresolvedReferenceError
from .lines import Line, ctstrip, detect_indent_style, remove_empty_lines

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = '.dt'

Loader = Callable[[str], str]


class BlockMode(Enum):
    PREPEND = -1
    REPLACE = 0
    APPEND = 1


BLOCK_MODES = {
    'block': BlockMode.REPLACE,
    'append': BlockMode.APPEND,
    'prepend': BlockMode.PREPEND,
}


class TemplateBlock:
    """A named run of template lines: a whole file or an inheritance block body."""

    def __init__(self, name: str, lines: List[Line], indent_style: str, mode: BlockMode = BlockMode.REPLACE):
        self.name = name
        self.lines = lines
        self.indent_style = indent_style
        self.mode = mode

    @classmethod
    def from_source(cls, name: str, text: str) -> 'TemplateBlock':
        lines = remove_empty_lines(text, name)
        return cls(name, lines, detect_indent_style(lines))

    def __repr__(self) -> str:
        return f"TemplateBlock({self.name!r}, {self.mode.name}, {len(self.lines)} lines)"


class BlockStore:
    """Inheritance blocks declared while following one `extends` chain."""

    def __init__(self):
        self.blocks: Dict[str, TemplateBlock] = {}

    def add(self, block: TemplateBlock) -> None:
        # the most derived template is scanned first, so its declaration wins
        self.blocks.setdefault(block.name, block)

    def get(self, name: str) -> Optional[TemplateBlock]:
        return self.blocks.get(name)

    def __len__(self) -> int:
        return len(self.blocks)


class FileSystemLoader:
    """Reads templates relative to a root directory."""

    def __init__(self, root='.', encoding: str = 'utf-8'):
        self.root = Path(root)
        self.encoding = encoding

    def __call__(self, name: str) -> str:
        path = self.root / name
        try:
            with open(path, 'r', encoding=self.encoding) as f:
                return f.read()
        except FileNotFoundError:
            raise UnresolvedReferenceError(f"Template '{name}' not found in '{self.root}'.") from None


class DictLoader:
    """Serves templates from an in-memory mapping of name to source."""

    def __init__(self, sources: Mapping[str, str]):
        self.sources = dict(sources)

    def __call__(self, name: str) -> str:
        try:
            return self.sources[name]
        except KeyError:
            raise UnresolvedReferenceError(f"Template '{name}' not found.") from None


def extract_dependencies(lines: List[Line]) -> List[str]:
    """Only the first non-blank line of a template may declare `extends`."""
    for line in lines:
        text = ctstrip(line.text)
        if text.startswith('extends '):
            return [ctstrip(text[8:]) + TEMPLATE_SUFFIX]
        if text:
            break
    return []


def read_file_rec(name: str, loader: Loader, files: Optional[List[TemplateBlock]] = None,
                  visited: Optional[Set[str]] = None) -> List[TemplateBlock]:
    """
    Loads `name` and everything it extends, each file exactly once.

    Returns the flat list of loaded files with the root at index 0. Names already
    in `visited` are skipped, which also ends circular `extends` chains.
    """
    if files is None:
        files = []
    if visited is None:
        visited = set()
    if name in visited:
        return files
    visited.add(name)

    logger.debug("Loading template %s", name)
    block = TemplateBlock.from_source(name, loader(name))
    files.append(block)
    for dependency in extract_dependencies(block.lines):
        read_file_rec(dependency, loader, files, visited)
    return files
