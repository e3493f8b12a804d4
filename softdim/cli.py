"""softdim unified command-line interface"""

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from softdim import __version__


def arguments_parse(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments

    Args:
        argv: Argument list; None reads sys.argv.

    Returns:
        Parsed CLI arguments.
    """
    parser = argparse.ArgumentParser(
        prog="softdim",
        description="Dim X11 monitors with translucent overlays instead of the backlight",
    )

    parser.add_argument("--version", action="version", version=f"softdim {__version__}")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (default: search standard locations)",
    )

    parser.add_argument(
        "--display", type=str, default=None, help="X11 display name (overrides config)"
    )

    parser.add_argument(
        "--state-file",
        type=str,
        default=None,
        dest="state_file",
        help="Settings state file (overrides config)",
    )

    parser.add_argument(
        "--set",
        type=str,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        dest="assignments",
        help="Write a setting (e.g. current-brightness=0.6) and exit; repeatable",
    )

    parser.add_argument(
        "--show", action="store_true", help="Print all settings and exit"
    )

    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging (overrides config)"
    )

    parser.add_argument(
        "--info", action="store_true", help="Enable info logging (overrides config)"
    )

    parser.add_argument(
        "--warning", action="store_true", help="Enable warning logging (overrides config)"
    )

    parser.add_argument(
        "--error", action="store_true", help="Enable error logging (overrides config)"
    )

    parser.add_argument(
        "--critical", action="store_true", help="Enable critical logging (overrides config)"
    )

    return parser.parse_args(argv)


def main() -> NoReturn:
    """Main entry point for unified softdim command"""
    args = arguments_parse()

    log_level_override: str | None = logLevelOverride_get(args)

    try:
        argsWithLogLevel_apply(args, log_level_override)
        if settingsMode_isEnabled(args):
            settingsMode_run(args)
        else:
            daemonMode_run(args)
        sys.exit(0)

    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def logLevelOverride_get(args: argparse.Namespace) -> str | None:
    """
    Resolve explicit log level override flags.

    Args:
        args: Parsed CLI args.

    Returns:
        Selected log level or None.
    """
    if args.critical:
        return "CRITICAL"
    if args.error:
        return "ERROR"
    if args.warning:
        return "WARNING"
    if args.info:
        return "INFO"
    if args.debug:
        return "DEBUG"
    return None


def argsWithLogLevel_apply(args: argparse.Namespace, log_level: str | None) -> None:
    """
    Apply optional log level override to args.

    Args:
        args: Parsed CLI args.
        log_level: Optional log level string.
    """
    if log_level is not None:
        setattr(args, "log_level", log_level)


def settingsMode_isEnabled(args: argparse.Namespace) -> bool:
    """
    Determine whether CLI should edit settings instead of running the daemon.

    Args:
        args: Parsed CLI args.

    Returns:
        True when `--set` or `--show` was given.
    """
    return bool(args.assignments or args.show)


def assignment_parse(assignment: str) -> tuple[str, str]:
    """
    Split a KEY=VALUE assignment.

    Args:
        assignment: Raw `--set` argument.

    Returns:
        (key, value) with surrounding whitespace removed.

    Raises:
        ValueError: If there is no '=' or the key is empty.
    """
    key, separator, value = assignment.partition("=")
    key = key.strip()
    if not separator or not key:
        raise ValueError(f"Expected KEY=VALUE, got '{assignment}'")
    return key, value.strip()


def settingsMode_run(args: argparse.Namespace) -> None:
    """
    Apply `--set` assignments and print settings when asked.

    Args:
        args: Parsed CLI args.
    """
    from softdim.common.config import ConfigLoader
    from softdim.common.settings_store import SettingsStore

    config_path: Path | None = Path(args.config) if args.config else None
    config = ConfigLoader.configWithOverrides_load(
        file_path=config_path,
        state_file=args.state_file,
    )
    store = SettingsStore(Path(config.state_file), defaults=config.defaults)
    store.state_load()

    # Validate every assignment before writing any of them.
    values = []
    for assignment in args.assignments:
        key, raw_value = assignment_parse(assignment)
        values.append((key, store.value_coerce(key, raw_value)))
    for key, value in values:
        store.value_set(key, value)

    if args.show:
        for key, value in sorted(store.values_get().items()):
            print(f"{key}: {value}")


def daemonMode_run(args: argparse.Namespace) -> None:
    """
    Run daemon entrypoint.

    Args:
        args: Parsed CLI args.
    """
    from softdim.daemon.main import daemon_run

    daemon_run(args)


if __name__ == "__main__":
    main()
