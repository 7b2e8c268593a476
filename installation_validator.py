"""
Installation validation: the gate in front of every mutation.

``validate()`` checks the installer's bundled files first, then the game
folder. Both must pass before anything is copied or renamed.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from errors import (
    LocationError,
    PackagedFileMissingError,
    PackagedFileModifiedError,
)
from hash_verifier import verify
from manifest_schema import BUNDLED_MANIFEST, Manifest
from swapper_context import MUSIC_DIR_NAME, InstallDirectories

_log = logging.getLogger(__name__)


class InstallationValidator:
    def __init__(self, manifest: Manifest = BUNDLED_MANIFEST, logger: logging.Logger | None = None):
        self.manifest = manifest
        self.logger = logger or _log

    def validate_package(self, package_root: str | Path):
        """Verify every bundled file's digest, stopping at the first failure.

        Raises ``PackagedFileMissingError`` or ``PackagedFileModifiedError``.
        """
        package_root = Path(package_root)
        checked = 0
        for category, entry in self.manifest.bundled_entries():
            path = package_root / category.root / entry.relative_path
            outcome = verify(path, entry.expected_hash)
            if outcome.status == "missing":
                raise PackagedFileMissingError(category.name, entry.relative_path)
            if outcome.status == "mismatch":
                raise PackagedFileModifiedError(
                    category.name, entry.relative_path, outcome.actual, entry.expected_hash
                )
            checked += 1
        self.logger.info("Validated %d packaged file(s) using MD5 digests.", checked)

    def validate_game_directory(self, game_path: str | Path, package_root: str | Path | None = None):
        """Check that ``game_path`` looks like a TR2 installation.

        Base game files are checked for existence only; they belong to the
        user. Raises ``LocationError`` naming the first missing item.
        """
        game_path = Path(game_path)
        if not game_path.is_dir():
            raise LocationError(f"Game folder {game_path} does not exist.", str(game_path))
        if package_root is not None and _same_path(game_path, Path(package_root)):
            raise LocationError(
                "The game folder and the version swapper folder are the same folder.",
                str(game_path),
            )

        for relative_path in self.manifest.game_files():
            if not (game_path / relative_path).is_file():
                raise LocationError(
                    f"Parent folder is missing game file {relative_path}, "
                    "cannot be a TR2 installation.",
                    relative_path,
                )

        if not (game_path / MUSIC_DIR_NAME).is_dir():
            raise LocationError(
                f"Parent folder does not contain a {MUSIC_DIR_NAME} folder, "
                "cannot be a TR2 installation.",
                MUSIC_DIR_NAME,
            )
        self.logger.info("Parent directory seems like a TR2 game installation.")

    def validate(self, directories: InstallDirectories):
        self.validate_package(directories.package_root)
        self.validate_game_directory(directories.game, directories.package_root)


def _same_path(a: Path, b: Path) -> bool:
    return os.path.normcase(str(a.resolve())) == os.path.normcase(str(b.resolve()))
