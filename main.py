"""CLI entry point for configuri: get, put and copy configuration values."""

import argparse
import logging
import sys

from backend import ConfigurationError, parse_value
from factory import get_configuration

logger = logging.getLogger(__name__)

TYPES = {"string": str, "int": int, "float": float}


def cmd_get(args) -> int:
    with get_configuration(args.uri) as conf:
        if args.recursive:
            values = conf.get_recursive_map(args.path)
            for key in sorted(values):
                print(f"{key} = {values[key]}")
            return 0
        value = conf.get(args.path, TYPES[args.type])
    if value is None:
        print(f"Error: no value at '{args.path}'", file=sys.stderr)
        return 1
    print(value)
    return 0


def cmd_put(args) -> int:
    value = parse_value(args.value, TYPES[args.type])
    with get_configuration(args.uri) as conf:
        conf.put(args.path, value)
    return 0


def cmd_copy(args) -> int:
    with get_configuration(args.source) as source, get_configuration(args.dest) as dest:
        values = source.get_recursive_map(args.path)
        for key, value in values.items():
            dest.put_string(key, value)
    logger.info("Copied %d values", len(values))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="configuri - read and write configuration through file://, json:// and consul:// URIs"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("get", help="Print a value")
    p.add_argument("uri", help="Configuration URI")
    p.add_argument("path", help="Path of the value")
    p.add_argument("-t", "--type", choices=sorted(TYPES), default="string", help="Value type")
    p.add_argument("-r", "--recursive", action="store_true", help="Print every value under path")
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("put", help="Store a value")
    p.add_argument("uri", help="Configuration URI")
    p.add_argument("path", help="Path of the value")
    p.add_argument("value", help="Value to store")
    p.add_argument("-t", "--type", choices=sorted(TYPES), default="string", help="Value type")
    p.set_defaults(func=cmd_put)

    p = sub.add_parser("copy", help="Copy every value under a path to another backend")
    p.add_argument("source", help="Source URI")
    p.add_argument("dest", help="Destination URI")
    p.add_argument("path", nargs="?", default="", help="Path to copy (default: everything)")
    p.set_defaults(func=cmd_copy)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
