"""
Shared run context: directories, manifest, settings, console and logger.

Built once in ``main.py`` and handed to every component's constructor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from console_io import ConsoleIO
from manifest_schema import BUNDLED_MANIFEST, Manifest
from settings import UserSettings

GAME_EXE_STEM = "tomb2"
MUSIC_DIR_NAME = "music"


@dataclass(frozen=True)
class InstallDirectories:
    """Installer folder (``package_root``) and the game folder it mutates."""

    game: Path
    package_root: Path

    @property
    def music(self) -> Path:
        return self.game / MUSIC_DIR_NAME

    @classmethod
    def from_working_directory(
        cls, cwd: str | Path | None = None, game_override: str | Path | None = None
    ) -> InstallDirectories:
        """The installer runs from a folder placed inside the game folder."""
        root = Path(cwd if cwd is not None else Path.cwd()).resolve()
        game = Path(game_override).resolve() if game_override else root.parent
        return cls(game=game, package_root=root)


@dataclass
class SwapperContext:
    directories: InstallDirectories
    io: ConsoleIO
    settings: UserSettings = field(default_factory=UserSettings)
    manifest: Manifest = field(default_factory=lambda: BUNDLED_MANIFEST)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("tr2swapper"))
    force_kill: bool = False
