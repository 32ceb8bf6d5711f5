import logging
from pathlib import Path
from typing import Set

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .config import WatchConfig
from .errors import DietError
from .loader import FileSystemLoader
from .template import compile_file

logger = logging.getLogger(__name__)


def trigger_recompile(config: WatchConfig) -> int:
    """
    Compiles and renders every `write` pair of the configuration.

    Compile errors are logged and the remaining pairs are still built. Returns
    the number of files written.
    """
    loader = FileSystemLoader(config.templates)
    written = 0
    for src, dst in config.write_pairs:
        try:
            template = compile_file(src, loader, defer_filters=config.defer_filters)
            html = template.render(config.context)
        except DietError as e:
            logger.error("%s", e)
            continue
        dst.parent.mkdir(parents=True, exist_ok=True)
        with open(dst, 'w') as f:
            f.write(html)
        logger.info("Rendered %s -> %s", src, dst)
        written += 1
    return written


class ChangeHandler(FileSystemEventHandler):
    def __init__(self, config: WatchConfig, files_to_watch: Set[Path]):
        self.config = config
        self.files_to_watch = files_to_watch  # absolute paths
        logger.info("Handler initialized. Monitoring for changes...")

    def on_modified(self, event):
        if event.is_directory:
            return

        src_path_abs = Path(event.src_path).resolve()
        if src_path_abs in self.files_to_watch:
            logger.info("Detected modification in: %s", src_path_abs)
            trigger_recompile(self.config)

    on_created = on_modified


def run_watcher(config: WatchConfig) -> None:
    """Sets up and runs the watchdog observer until interrupted."""
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(message)s',
                        datefmt='%Y-%m-%d %H:%M:%S')

    files_to_watch = config.watch_paths()
    dirs_to_watch = {p.parent for p in files_to_watch}
    if not dirs_to_watch:
        logger.error("No valid directories provided to watch.")
        return

    trigger_recompile(config)

    event_handler = ChangeHandler(config, files_to_watch)
    observer = Observer()

    scheduled_count = 0
    for dir_path in dirs_to_watch:
        if not dir_path.is_dir():
            logger.warning("Directory '%s' does not exist. Cannot watch.", dir_path)
            continue
        observer.schedule(event_handler, str(dir_path), recursive=False)
        scheduled_count += 1
        logger.info("Scheduled watcher for directory: %s", dir_path)

    if scheduled_count == 0:
        logger.error("No watchers were successfully scheduled. Exiting.")
        return

    observer.start()
    logger.info("Watching for file changes in %d director%s. Press Ctrl+C to stop.",
                scheduled_count, 'y' if scheduled_count == 1 else 'ies')

    try:
        while observer.is_alive():
            observer.join(timeout=1)
    except KeyboardInterrupt:
        logger.info("Stopping watcher (Ctrl+C pressed)...")
    finally:
        if observer.is_alive():
            observer.stop()
        observer.join()
        logger.info("Watcher stopped completely.")
