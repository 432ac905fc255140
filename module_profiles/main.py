"""
Entry point for the module_profiles command line tool.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from core.settings import SettingsManager
from module_profiles.module_profiles import logger as app_logger
from module_profiles.module_profiles.commands import run_load, run_save

_LOGGER = app_logger.get_logger()

_DESCRIPTION = "Save the modules installed here to a profile, or reinstall the modules of a saved profile."
_EPILOG = """\
Examples:
  module-profiles save
  module-profiles load                        # installs modules under ./<module-id>/
  module-profiles load ./my_foundry_modules   # installs modules under ./my_foundry_modules/<module-id>/
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="module-profiles",
        description=_DESCRIPTION,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    modes = parser.add_subparsers(dest="mode", metavar="<mode>")

    save = modes.add_parser(
        "save",
        help="Scan for module.json files and save module names and manifest URLs.",
    )
    save.add_argument("--name", help="Save file basename (prompted for when omitted).")
    save.add_argument("--search-dir", type=Path, help="Directory to scan (default: current directory).")

    load = modes.add_parser(
        "load",
        help="Download and unzip the modules listed in a saved profile.",
    )
    load.add_argument(
        "install_dir",
        nargs="?",
        type=Path,
        default=None,
        help="Directory to install modules into (default: current directory).",
    )
    load.add_argument("--profile", help="Save file to load (chosen from a menu when omitted).")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.mode is None:
        print("Error: No mode specified.", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    settings = SettingsManager().read_settings()
    try:
        if args.mode == "save":
            exit_code = run_save(settings, name=args.name, search_dir=args.search_dir)
        else:
            exit_code = run_load(settings, install_dir=args.install_dir, profile=args.profile)
    except (KeyboardInterrupt, EOFError):
        _LOGGER.warning("Aborted.")
        return 1

    if exit_code == 0:
        _LOGGER.info("Script finished.")
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
