"""Command-line entry point for inspecting layered configuration.

Examples:
  # Show the merged configuration of two files and the environment
  layerconf --json appsettings.json --yaml local.yaml --optional --env-prefix APP__ dump

  # Read a single value, with command-line overrides after "--"
  layerconf --json appsettings.json get Server:Port -- --Server:Port=9000

  # Print change events while the files are edited
  layerconf --json appsettings.json watch
"""

import argparse
import json
import logging
import sys
import threading
from collections.abc import Sequence
from typing import Optional, TextIO

from .errors import ConfigurationError, MissingConfigurationError
from .manager import ConfigManager
from .models.schemas import ConfigChangedEvent, ConfigFormat
from .utils.logging import setup_logging
from .utils.masking import SecretMasker

logger = logging.getLogger(__name__)


class SourceAction(argparse.Action):
    """Collects file options into one list, preserving command-line order."""

    def __call__(self, parser, namespace, values, option_string=None):
        sources = list(getattr(namespace, self.dest, None) or [])
        sources.append((self.const, values))
        setattr(namespace, self.dest, sources)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured parser
    """
    parser = argparse.ArgumentParser(
        prog="layerconf",
        description="Merge layered configuration sources and inspect the result",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("\n", 2)[2],
    )

    # Sources, registered in the order given
    for option, fmt in (
        ("--json", ConfigFormat.JSON),
        ("--yaml", ConfigFormat.YAML),
        ("--ini", ConfigFormat.INI),
        ("--env-file", ConfigFormat.ENV),
    ):
        parser.add_argument(
            option,
            action=SourceAction,
            dest="sources",
            const=fmt,
            metavar="PATH",
            help=f"Add a {fmt.value} file layer (repeatable)",
        )

    parser.add_argument(
        "--optional",
        action="store_true",
        help="Treat missing files as empty layers",
    )
    parser.add_argument(
        "--env",
        action="store_true",
        help="Add the process environment as a layer after the files",
    )
    parser.add_argument(
        "--env-prefix",
        metavar="PREFIX",
        help="Only use environment variables starting with PREFIX (implies --env)",
    )

    # Logging settings
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-config", help="YAML logging configuration file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    dump = subparsers.add_parser("dump", help="Print every merged entry")
    dump.add_argument(
        "--no-mask", action="store_true", help="Show secret values unmasked"
    )
    dump.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    get = subparsers.add_parser("get", help="Print one value")
    get.add_argument("key", help="Configuration key, e.g. Server:Port")
    get.add_argument("--default", help="Value printed when the key is absent")

    require = subparsers.add_parser("require", help="Fail unless every key is present")
    require.add_argument("keys", nargs="+", metavar="KEY")

    subparsers.add_parser("watch", help="Print change events until interrupted")

    return parser


def split_overrides(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split ``argv`` at the first bare ``--`` into tool and override arguments."""
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1 :]
    return argv, []


def build_manager(
    args: argparse.Namespace, overrides: Sequence[str]
) -> ConfigManager:
    """Register the requested layers on a new manager.

    Raises:
        ConfigurationError: If a source cannot be loaded
    """
    manager = ConfigManager(reload_on_change=args.command == "watch")
    try:
        for fmt, path in args.sources or []:
            manager.add_file(path, fmt, optional=args.optional)
        if args.env or args.env_prefix is not None:
            manager.add_environment_variables(args.env_prefix)
        if overrides:
            manager.add_command_line(overrides)
    except ConfigurationError:
        manager.close()
        raise
    return manager


def dump_json(manager: ConfigManager, mask_secrets: bool) -> str:
    """Render the merged configuration as a JSON object sorted like ``dump()``."""
    masker = SecretMasker(manager.secret_hints)
    snapshot = manager.snapshot()
    entries = {
        key: masker.render(key, value) if mask_secrets else value
        for key, value in sorted(snapshot.items(), key=lambda kv: kv[0].upper())
    }
    return json.dumps(entries, indent=2, ensure_ascii=False)


def format_event(event: ConfigChangedEvent) -> str:
    lines = [f"Changed ({event.source_name}): {event.source_path}"]
    for key, value in event.added.items():
        lines.append(f"  + {key} = {value}")
    for key, (old, new) in event.modified.items():
        lines.append(f"  ~ {key} = {old} -> {new}")
    for key in event.removed:
        lines.append(f"  - {key}")
    return "\n".join(lines)


def run_watch(
    manager: ConfigManager,
    out: TextIO,
    stop: Optional[threading.Event] = None,
) -> int:
    """Print change and error events until ``stop`` is set or Ctrl+C.

    Args:
        manager: Manager with watched layers
        out: Stream receiving the event lines
        stop: Event ending the loop (waits forever when None)

    Returns:
        Exit code
    """
    if stop is None:
        stop = threading.Event()

    def print_change(event: ConfigChangedEvent) -> None:
        print(format_event(event), file=out, flush=True)

    def print_error(error: ConfigurationError) -> None:
        cause = f" ({error.__cause__})" if error.__cause__ else ""
        print(f"Error: {error}{cause}", file=out, flush=True)

    manager.on_change(print_change)
    manager.on_error(print_error)

    watched = [info.location for info in manager.layers() if not info.is_dynamic]
    print(f"Watching {len(watched)} file(s), press Ctrl+C to stop", file=out, flush=True)
    try:
        while not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Watch interrupted")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the command-line tool.

    Args:
        argv: Arguments without the program name (``sys.argv[1:]`` if None)

    Returns:
        Process exit code
    """
    if argv is None:
        argv = sys.argv[1:]
    tool_args, overrides = split_overrides(argv)

    parser = build_parser()
    args = parser.parse_args(tool_args)

    setup_logging(args.log_config, default_level=args.log_level)

    try:
        manager = build_manager(args, overrides)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    with manager:
        if args.command == "dump":
            if args.format == "json":
                print(dump_json(manager, mask_secrets=not args.no_mask))
            else:
                sys.stdout.write(manager.dump(mask_secrets=not args.no_mask))
            return 0

        if args.command == "get":
            value = manager.get(args.key, args.default)
            if value is None:
                print(f"Key not found: {args.key}", file=sys.stderr)
                return 1
            print(value)
            return 0

        if args.command == "require":
            try:
                manager.require(*args.keys)
            except MissingConfigurationError as e:
                print(str(e), file=sys.stderr)
                return 1
            return 0

        return run_watch(manager, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
