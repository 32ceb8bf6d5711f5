"""
YAML project configuration for the watch-and-rebuild loop.

    templates: views          # loader root, default "."
    write:                    # template (relative to `templates`) -> output file
      - src: index.dt
        dst: public/index.html
    watch:                    # extra glob patterns that trigger a rebuild
      - views/**/*.dt
    context:                  # values visible to every render
      title: Home
    defer_filters: false
"""
from pathlib import Path
from typing import Any, Dict, List, Set, Tuple

import yaml


class ConfigError(ValueError):
    pass


class WatchConfig:
    def __init__(self, templates: Path, write_pairs: List[Tuple[str, Path]], watch_patterns: List[str],
                 context: Dict[str, Any], defer_filters: bool = False, base_path: Path = Path('.')):
        self.templates = templates
        self.write_pairs = write_pairs
        self.watch_patterns = watch_patterns
        self.context = context
        self.defer_filters = defer_filters
        self.base_path = base_path

    def source_path(self, name: str) -> Path:
        return self.templates / name

    def watch_paths(self) -> Set[Path]:
        """Every file whose modification triggers a rebuild: the sources plus the `watch` globs."""
        paths = {self.source_path(src) for src, _ in self.write_pairs}
        for pattern in self.watch_patterns:
            paths.update(self.base_path.glob(pattern))
        return {p.resolve() for p in paths}


def _fatal_error(message: str):
    raise ConfigError(f"Diet Config Error: {message}")


def parse_config(cfg: Any, base_path: Path = Path('.')) -> WatchConfig:
    """Validates a loaded YAML document; relative paths are taken relative to `base_path`."""
    if not isinstance(cfg, dict):
        _fatal_error("The configuration must be a mapping.")

    templates = base_path / str(cfg.get('templates', '.'))

    write = cfg.get('write')
    if not isinstance(write, list) or not write:
        _fatal_error("'write' must be a non-empty list of {src, dst} entries.")
    write_pairs = []
    for entry in write:
        if not isinstance(entry, dict) or 'src' not in entry or 'dst' not in entry:
            _fatal_error(f"Invalid 'write' entry: {entry!r}")
        write_pairs.append((str(entry['src']), base_path / str(entry['dst'])))

    watch = cfg.get('watch', [])
    if not isinstance(watch, list):
        _fatal_error("'watch' must be a list of glob patterns.")

    context = cfg.get('context') or {}
    if not isinstance(context, dict):
        _fatal_error("'context' must be a mapping.")

    return WatchConfig(templates, write_pairs, [str(w) for w in watch], context,
                       bool(cfg.get('defer_filters', False)), base_path)


def load_config(path) -> WatchConfig:
    path = Path(path)
    try:
        with open(path, 'r') as f:
            cfg = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Diet Config Error: cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Diet Config Error: invalid YAML in {path}: {e}") from e
    return parse_config(cfg, path.parent)
