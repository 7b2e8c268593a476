#!/usr/bin/env python3
"""TR2 Version Swapper: Entry Point"""

from __future__ import annotations

import argparse
import faulthandler
import logging
import re
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app_info import APP_NAME, APP_VERSION
from console_io import ConsoleIO
from errors import SettingsError
from program import EXIT_ERROR, SwapperProgram
from settings import SETTINGS_FILENAME, UserSettings, load_settings
from swapper_context import InstallDirectories, SwapperContext

LOG_DIR_NAME = "logs"
LOG_FILE_NAME = "tr2versionswapper.log"
CRASH_FILE_NAME = "crash.log"
LOGGER_NAME = "tr2swapper"

_BACKUP_SUFFIX_RE = re.compile(r"\.(\d+)$")


def setup_logging(log_dir: Path, log_file_limit: int, verbose: bool = False) -> logging.Logger:
    """One log file per run; at most ``log_file_limit`` files are kept."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME
    backup_count = log_file_limit - 1

    handler = RotatingFileHandler(
        log_file,
        mode="a" if backup_count else "w",
        backupCount=backup_count,
        encoding="utf-8",
    )
    if backup_count and log_file.stat().st_size > 0:
        handler.doRollover()
    handler.setFormatter(logging.Formatter("%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"))
    _prune_old_logs(log_dir, backup_count)

    # Module loggers propagate here
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    if verbose:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.INFO)
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root.addHandler(console)

    logger = logging.getLogger(LOGGER_NAME)
    if verbose:
        logger.info("Verbose mode activated.")
    return logger


def _prune_old_logs(log_dir: Path, keep: int):
    """Delete rotated files left over from a previously higher limit."""
    for path in log_dir.glob(LOG_FILE_NAME + ".*"):
        match = _BACKUP_SUFFIX_RE.search(path.name)
        if match and int(match.group(1)) > keep:
            try:
                path.unlink()
            except OSError as exc:
                logging.getLogger(LOGGER_NAME).warning("Could not delete excess log file %s: %s", path, exc)


def install_crash_handler(logger: logging.Logger, log_dir: Path) -> Path:
    """Route unhandled exceptions to the run log; native faults go to ``crash.log``."""
    log_file = log_dir / LOG_FILE_NAME
    crash_file = log_dir / CRASH_FILE_NAME

    def handle_exception(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical(
            "%s %s crashed (log: %s). Unhandled exception:\n%s",
            APP_NAME,
            APP_VERSION,
            log_file,
            "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
        )
        sys.stderr.write(f"{APP_NAME} crashed. Please include {log_file} when reporting the issue.\n")

    sys.excepthook = handle_exception

    # C-level crashes can't go through logging
    faulthandler.enable(open(crash_file, "w"), all_threads=True)
    logger.debug("Native crash traces go to %s", crash_file)
    return crash_file


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tr2-version-swapper",
        description=f"{APP_NAME}: swap your Tomb Raider II installation between game versions.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="also print log messages to the console")
    parser.add_argument("--game-dir", help="game folder to modify (default: parent of the package folder)")
    parser.add_argument("--package-root", help="folder holding versions/ and utilities/ (default: current folder)")
    parser.add_argument("--force-kill", action="store_true", help="end a running TR2 without asking")
    parser.add_argument("--no-update-check", action="store_true", help="skip the GitHub release check")
    parser.add_argument("--no-pause", action="store_true", help="do not wait for Enter before exiting")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    io = ConsoleIO()
    directories = InstallDirectories.from_working_directory(args.package_root, args.game_dir)

    settings_error = None
    created = False
    try:
        settings, created = load_settings(directories.package_root)
    except SettingsError as exc:
        settings_error = exc
        settings = UserSettings()

    log_dir = directories.package_root / LOG_DIR_NAME
    logger = setup_logging(log_dir, settings.log_file_limit, args.verbose)
    install_crash_handler(logger, log_dir)
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)
    logger.debug("Game folder: %s | Package folder: %s", directories.game, directories.package_root)

    if settings_error is not None:
        logger.critical("Could not load user settings: %s", settings_error)
        io.error(str(settings_error))
        io.print(settings_error.remediation)
        if not args.no_pause:
            io.pause_before_exit()
        return EXIT_ERROR

    if created:
        io.print("I created a default user settings file at")
        io.print(str(directories.package_root / SETTINGS_FILENAME))
        io.print("You can edit the settings in this file to your desired amounts.")
        io.print()

    context = SwapperContext(
        directories=directories,
        io=io,
        settings=settings,
        logger=logger,
        force_kill=args.force_kill,
    )
    program = SwapperProgram(
        context,
        check_updates=not args.no_update_check,
        pause=not args.no_pause,
    )
    return program.run()


if __name__ == "__main__":
    sys.exit(main())
