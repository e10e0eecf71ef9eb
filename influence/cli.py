"""
CLI -- Inspect and maintain the influence graph of a cast file

The cast lives in a JSON document (see services.store.JsonRecordStore).

Usage:
    influence edges
    influence query "The Beacon" "Legacy"
    influence sync "Beacon"
    influence tally "Beacon"
    influence config
    influence config index.symmetry false
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .config import ConfigManager
from .core.query import Direction
from .services.index import InfluenceIndex
from .services.store import JsonRecordStore, StoreError
from .tracking.tally import tally
from . import __version__


DEFAULT_DATA_FILE = "cast.json"

_ARROWS = {
    Direction.OUTGOING: "->",
    Direction.INCOMING: "<-",
    Direction.MUTUAL: "<->",
}


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


class InfluenceCLI:
    """Command-line interface over one cast file."""

    def __init__(self, data_file: Path, config_manager: Optional[ConfigManager] = None):
        self.config_manager = config_manager or ConfigManager()
        self.config = self.config_manager.load()
        self.store = JsonRecordStore(data_file)
        # Commands drive sync explicitly; no listener needed
        self.index = InfluenceIndex(self.store, config=self.config).init()

    def _require(self, name: str):
        record = self.index.find(name)
        if record is None:
            print(f"No character matches \"{name}\".")
        return record

    def edges(self):
        snapshot = self.index.edges.snapshot()
        if not snapshot:
            print("No influence recorded.")
            return
        for from_key, targets in snapshot.items():
            for to_key in targets:
                print(f"{from_key} -> {to_key}")

    def query(self, a_name: str, b_name: str) -> Optional[Direction]:
        a = self._require(a_name)
        b = self._require(b_name)
        if a is None or b is None:
            return None

        direction = self.index.influence_between(a, b)
        if direction is Direction.NONE:
            print(f"{a.name} and {b.name}: no Influence either way")
        else:
            print(f"{a.name} {_ARROWS[direction]} {b.name} ({direction.value})")
        return direction

    def sync(self, name: str):
        record = self._require(name)
        if record is None:
            return None
        report = asyncio.run(self.index.sync(record))
        if not report.written and not report.failed:
            print(f"{record.name}: counterparts already in sync.")
        for record_id in report.written:
            print(f"Updated {self.store.get(record_id).name}")
        for record_id, error in report.failed.items():
            print(f"Failed {self.store.get(record_id).name}: {error}")
        return report

    def tally(self, name: str):
        record = self._require(name)
        if record is None:
            return None
        result = tally(self.store, record, limit=self.config.index.influence_limit)
        print(f"{record.name}")
        print(result.format())
        return result

    def show_config(self):
        print(self.config_manager.display())

    def set_config(self, key: str, value: str, scope: str = "project"):
        error = self.config_manager.set(key, value, scope=scope)
        if error:
            print(f"Error: {error}")
        else:
            print(f"Set {key} = {value} ({scope})")
        return error


def main(argv=None):
    """Main entry point for the influence CLI."""
    parser = argparse.ArgumentParser(
        description="Influence -- who holds Influence over whom",
    )
    parser.add_argument(
        '--data', '-d',
        default=os.environ.get("INFLUENCE_DATA_FILE", DEFAULT_DATA_FILE),
        help='Cast JSON file (default: INFLUENCE_DATA_FILE or ./cast.json)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging'
    )
    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'influence {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    subparsers.add_parser('edges', help='List every influence edge')

    query_parser = subparsers.add_parser('query', help='Influence between two characters')
    query_parser.add_argument('a', help='First character name')
    query_parser.add_argument('b', help='Second character name')

    sync_parser = subparsers.add_parser('sync', help="Mirror a character's influence onto the paired sheets")
    sync_parser.add_argument('name', help='Character name')

    tally_parser = subparsers.add_parser('tally', help='Influence given and held by a character')
    tally_parser.add_argument('name', help='Character name')

    config_parser = subparsers.add_parser('config', help='Show or set configuration')
    config_parser.add_argument('key', nargs='?', help='section.setting')
    config_parser.add_argument('value', nargs='?', help='New value')
    config_parser.add_argument('--user', action='store_true', help='Write user config instead of project')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    config_manager = ConfigManager()
    configure_logging("debug" if args.verbose else config_manager.load().logging.level)

    try:
        cli = InfluenceCLI(Path(args.data), config_manager)
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.command == 'edges':
        cli.edges()
    elif args.command == 'query':
        cli.query(args.a, args.b)
    elif args.command == 'sync':
        cli.sync(args.name)
    elif args.command == 'tally':
        cli.tally(args.name)
    elif args.command == 'config':
        if args.key and args.value is not None:
            if cli.set_config(args.key, args.value, scope="user" if args.user else "project"):
                return 1
        else:
            cli.show_config()
    return 0


if __name__ == '__main__':
    sys.exit(main())
