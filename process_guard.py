"""
Guard against a TR2 process running from the target game folder.

A running ``tomb2`` holds its files open, so overwriting them fails. The guard
finds such a process, offers to end it, and otherwise waits for the user to
close it. The check is advisory: nothing stops the game from being started
again between the check and the copy.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

import psutil

from errors import ConflictUnresolvedError
from swapper_context import GAME_EXE_STEM, SwapperContext

# A just-killed process may not release its file handles synchronously.
SETTLE_DELAY_SECONDS = 1.0
KILL_WAIT_SECONDS = 5
SKIP_ANSWER = "skip"

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunningConflict:
    """A game process observed running from the target folder. Not owned."""

    process: psutil.Process
    executable_path: Path
    start_time: datetime

    def describe(self) -> str:
        return (
            f"Name: {self.executable_path.name} | ID: {self.process.pid} | "
            f"Start time: {self.start_time:%H:%M:%S}"
        )


def _normalize_dir(path: Path) -> str:
    return os.path.normcase(str(path.resolve()))


def find_conflicting_process(
    game_path: str | Path, exe_stem: str = GAME_EXE_STEM
) -> RunningConflict | None:
    """Return the first ``exe_stem`` process whose executable lives in ``game_path``.

    Same-named processes started from other folders, and processes whose
    executable path cannot be read, are ignored.
    """
    game_dir = _normalize_dir(Path(game_path))
    for proc in psutil.process_iter(["name", "exe", "create_time"]):
        info = proc.info
        name = info.get("name") or ""
        if Path(name).stem.lower() != exe_stem.lower():
            continue
        exe = info.get("exe")
        if not exe:
            continue
        exe_path = Path(exe)
        if _normalize_dir(exe_path.resolve().parent) != game_dir:
            continue
        created = info.get("create_time")
        start_time = datetime.fromtimestamp(created) if created else datetime.now()
        return RunningConflict(proc, exe_path, start_time)
    return None


def has_exited(process: psutil.Process) -> bool:
    try:
        return not process.is_running() or process.status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True
    except psutil.AccessDenied:
        # status() needs rights is_running() does not
        return not process.is_running()


class ProcessGuard:
    def __init__(
        self,
        context: SwapperContext,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.game_path = context.directories.game
        self.io = context.io
        self.logger = context.logger or _log
        self.force_kill = context.force_kill
        self.settle_delay = settle_delay
        self._sleep = sleep

    def find_conflicting_process(self) -> RunningConflict | None:
        self.logger.debug("Checking for a TR2 process running in the target folder...")
        return find_conflicting_process(self.game_path)

    def ensure_not_running(self):
        """Find and resolve a conflicting process.

        A failed search is only warned about. ``ConflictUnresolvedError`` is
        left for the caller to decide on.
        """
        try:
            conflict = self.find_conflicting_process()
        except psutil.Error as exc:
            self.logger.error("Unable to finish searching for running TR2 processes: %s", exc)
            self.io.warn("I was unable to finish searching for running TR2 processes.")
            self.io.print("A TR2 game or background task running from the target folder")
            self.io.print("could cause issues with the program, such as preventing overwrites.")
            self.io.print("Double-check and make sure no TR2 game or background task is running.")
            return

        if conflict is None:
            self.logger.info("No TR2 processes running from the target folder.")
            return

        self.resolve_conflict(conflict)
        self.logger.info("Handled running TR2 process of concern.")

    def resolve_conflict(self, conflict: RunningConflict):
        self.logger.debug("Found a TR2 process running from target folder. %s", conflict.describe())
        self.io.warn("TR2 is running from the target folder.")
        self.io.warn(conflict.describe())

        if self.force_kill:
            self.logger.debug("Forced termination requested, not prompting.")
            kill = True
        else:
            self.io.print("Would you like me to end the task for you? If not, I will give a message")
            self.io.print("describing how to find and close it.")
            kill = self.io.confirm("End the running TR2 task?", default=False)

        if kill and self._terminate(conflict):
            self._settle()
            return

        if not kill:
            self.logger.debug("User is opting to close the running TR2 task on their own.")
        self._wait_for_exit(conflict)
        self._settle()

    def _terminate(self, conflict: RunningConflict) -> bool:
        pid = conflict.process.pid
        try:
            conflict.process.kill()
            conflict.process.wait(timeout=KILL_WAIT_SECONDS)
        except psutil.NoSuchProcess:
            self.logger.debug("Process %d was already gone when killing it.", pid)
        except psutil.Error as exc:
            self.logger.error("An error occurred while trying to kill the TR2 process: %s", exc)
            self.io.warn("I was unable to kill the TR2 process. You will have to do it yourself.")
            return False
        self.logger.info("Killed the TR2 process (ID %d).", pid)
        return True

    def _wait_for_exit(self, conflict: RunningConflict):
        """Block until the process is gone, re-checking only when the user continues."""
        if has_exited(conflict.process):
            self.logger.debug("Process ended before the wait loop started.")
            self.io.print("Process ended by external actor. Skipping message prompt and wait loop.")
            return

        while True:
            self.io.print("Be sure that all TR2 game windows are closed. Then, if you are still")
            self.io.print("getting this message, check Task Manager for any phantom processes.")
            self.logger.debug("Waiting for user to close the running task.")
            answer = self.io.ask_continue(
                f"Press Enter to continue, type '{SKIP_ANSWER}' to continue anyway, "
                "or press CTRL + C to exit"
            )
            if answer.lower() == SKIP_ANSWER:
                self.logger.warning("User skipped waiting; TR2 is still running from the target folder.")
                raise ConflictUnresolvedError("TR2 is still running from the target folder.")
            if has_exited(conflict.process):
                self.logger.debug("User continued the program after the TR2 process had exited.")
                return
            self.logger.debug("User tried to continue but the TR2 process is still running, looping.")
            self.io.warn("Process still running, prompting again.")

    def _settle(self):
        self._sleep(self.settle_delay)
