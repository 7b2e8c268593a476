"""
Version swap: copy the chosen game version, then optionally Patch 1, over the
game folder.
"""

from __future__ import annotations

import logging
from enum import Enum

from errors import ConflictUnresolvedError
from file_ops import copy_tree
from manifest_schema import PATCH_CATEGORY, VARIANT_PREFIX
from process_guard import ProcessGuard
from swapper_context import SwapperContext

_log = logging.getLogger(__name__)


class GameVersion(Enum):
    MULTIPATCH = (1, "Multipatch")
    EPC = (2, "Eidos Premier Collection")
    UKB = (3, "Eidos UK Box")

    def __init__(self, ordinal: int, folder_name: str):
        self.ordinal = ordinal
        self.folder_name = folder_name

    @property
    def category_name(self) -> str:
        return VARIANT_PREFIX + self.folder_name

    @classmethod
    def from_ordinal(cls, ordinal: int) -> GameVersion:
        for version in cls:
            if version.ordinal == ordinal:
                return version
        raise ValueError(f"No game version numbered {ordinal}")


DEFAULT_VERSION = GameVersion.MULTIPATCH


class VersionSwapper:
    def __init__(self, context: SwapperContext, guard: ProcessGuard):
        self.directories = context.directories
        self.manifest = context.manifest
        self.io = context.io
        self.logger = context.logger or _log
        self.guard = guard

    def prompt_version(self) -> GameVersion:
        self.io.print("Version List:")
        for version in GameVersion:
            self.io.print(f"    {version.ordinal}: {version.folder_name}")
        number = self.io.ask_int(
            "Enter the number of your desired version",
            choices=[v.ordinal for v in GameVersion],
            default=DEFAULT_VERSION.ordinal,
        )
        selected = GameVersion.from_ordinal(number)
        self.logger.debug("User input `%d`, interpreting as %s", number, selected.name)
        return selected

    def _guarded_copy_tree(self, category_name: str) -> int:
        """Resolve a running game first, then copy the category's folder over the game folder.

        An unresolved conflict is only reported; the copy still runs and a
        locked file surfaces as ``CopyFailure``.
        """
        try:
            self.guard.ensure_not_running()
        except ConflictUnresolvedError as exc:
            self.logger.warning("Copying with TR2 still running: %s", exc)
            self.io.warn(f"{exc} Copying anyway; some files may fail to overwrite.")

        category = self.manifest.category(category_name)
        source = self.directories.package_root / category.root
        copied = copy_tree(source, self.directories.game)
        self.logger.debug("Copied %d file(s) from %s", copied, source)
        return copied

    def swap_to_version(self, version: GameVersion):
        self._guarded_copy_tree(version.category_name)
        self.logger.info("Installed %s successfully.", version.folder_name)
        self.io.header(f"{version.folder_name} successfully installed!", style="green")
        self.io.print()

    def handle_patch(self) -> bool:
        """Ask about CORE's Patch 1 and install it on consent. Returns whether it was installed."""
        self.io.print("Would you like me to install CORE's Patch 1 on top of your selected version?")
        self.io.print("Please note that you are not required to install this optional patch.")
        if not self.io.confirm("Install CORE's Patch 1 onto your selected version?", default=False):
            self.logger.debug("User declined Patch 1 installation.")
            self.io.header("Skipping Patch 1 installation.")
            self.io.print()
            return False

        self.logger.debug("User wants Patch 1 installed...")
        self._guarded_copy_tree(PATCH_CATEGORY)
        self.logger.info("Installed Patch 1 successfully.")
        self.io.header("Patch 1 successfully installed!", style="green")
        self.io.print()
        return True

    def swap_versions(self) -> GameVersion:
        version = self.prompt_version()
        self.swap_to_version(version)
        self.handle_patch()
        return version
