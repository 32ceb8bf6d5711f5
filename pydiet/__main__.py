import argparse
import logging
import sys
import time

from .config import ConfigError, load_config
from .watcher import run_watcher, trigger_recompile

logger = logging.getLogger('pydiet')


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog='pydiet',
        description='Renders Diet templates to HTML and rebuilds them when they change.',
        epilog='The configuration lists the templates to render, see pydiet.config.')
    parser.add_argument('config', help='YAML configuration file')
    parser.add_argument('--once', action='store_true', help='render once and exit instead of watching')
    args = parser.parse_args(argv)

    if args.once:
        logging.basicConfig(level=logging.INFO, format='%(message)s')
        try:
            config = load_config(args.config)
        except ConfigError as e:
            logger.error("%s", e)
            return 1
        written = trigger_recompile(config)
        return 0 if written == len(config.write_pairs) else 1

    while True:
        try:
            run_watcher(load_config(args.config))
            return 0
        except ConfigError as e:
            logger.error("%s", e)
            logger.error("Please check your configuration and try again, attempting to reload in 3 seconds...")
            time.sleep(3)


if __name__ == '__main__':
    sys.exit(main())
