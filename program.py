"""
Run orchestration: splash, update check, validation, swap, music fix.

This is the one place that turns exceptions into printed messages and exit
codes. Validation is the hard gate: nothing in the game folder changes
unless both the package and the game folder validate.
"""

from __future__ import annotations

import logging

from app_info import APP_VERSION, LATEST_RELEASE_LINK, print_splash
from compat_patch import CompatibilityPatchDetector
from errors import CopyFailure, IntegrityError, LocationError, SwapperError
from installation_validator import InstallationValidator
from music_fix import MusicFixResolver
from process_guard import ProcessGuard
from release_check import check_for_update
from swapper_context import SwapperContext
from version_swapper import VersionSwapper

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_VALIDATION_FAILED = 2
EXIT_COPY_FAILED = 3
EXIT_INTERRUPTED = 130

SIGINT_MESSAGE = "Received SIGINT. It's up to you to know the current state of your game!"

_log = logging.getLogger(__name__)


class SwapperProgram:
    def __init__(
        self,
        context: SwapperContext,
        *,
        check_updates: bool = True,
        pause: bool = True,
        patch_detector: CompatibilityPatchDetector | None = None,
    ):
        self.context = context
        self.io = context.io
        self.logger = context.logger or _log
        self.check_updates = check_updates
        self.pause = pause

        self.validator = InstallationValidator(context.manifest, self.logger)
        self.guard = ProcessGuard(context)
        self.swapper = VersionSwapper(context, self.guard)
        self.music_fix = MusicFixResolver(context, self.guard, patch_detector)

    def run(self) -> int:
        try:
            code = self._run_steps()
        except (KeyboardInterrupt, EOFError):
            self.logger.debug("User gave SIGINT. Ending program.")
            self.io.print()
            self.io.warn(SIGINT_MESSAGE)
            return EXIT_INTERRUPTED
        except (IntegrityError, LocationError) as exc:
            self.logger.critical("Installation failed to validate. %s", exc)
            self._report_fatal(exc)
            self.io.print(LATEST_RELEASE_LINK)
            code = EXIT_VALIDATION_FAILED
        except CopyFailure as exc:
            self.logger.critical("Copying failed, the game folder may be left mixed: %s", exc)
            self._report_fatal(exc)
            code = EXIT_COPY_FAILED
        except SwapperError as exc:
            self.logger.critical("%s", exc)
            self._report_fatal(exc)
            code = EXIT_ERROR
        except Exception:
            self.logger.exception("An unhandled exception occurred.")
            self.io.error("An unhandled exception occurred.")
            self.io.print("I've put some information about it in the log file.")
            code = EXIT_ERROR

        self._pause()
        return code

    def _run_steps(self) -> int:
        print_splash(self.io)
        if self.check_updates:
            check_for_update(APP_VERSION, self.io, self.logger)

        self.validator.validate(self.context.directories)

        version = self.swapper.swap_versions()
        status = self.music_fix.handle_music_fix()
        self.logger.info("Finished: %s installed, music fix %s.", version.folder_name, status.value)
        return EXIT_OK

    def _report_fatal(self, exc: SwapperError):
        self.io.error(str(exc))
        if exc.remediation:
            self.io.print(exc.remediation)

    def _pause(self):
        if not self.pause:
            return
        try:
            self.io.pause_before_exit()
        except (KeyboardInterrupt, EOFError):
            pass  # Already exiting
