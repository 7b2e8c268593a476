"""
Shared fixtures and helpers for the TR2 Version Swapper test suite.

The package tree is written with small stand-in files and the manifest is
built from their digests, so tests never depend on the real release files.
"""

import hashlib
import io
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from console_io import ConsoleIO
from manifest_schema import Manifest, parse_manifest
from swapper_context import InstallDirectories, SwapperContext

PACKAGE_FILES = {
    "variant:Multipatch": (
        "versions/Multipatch",
        {"tomb2.exe": b"multipatch exe", "data/tombpc.dat": b"multipatch script"},
    ),
    "variant:Eidos Premier Collection": (
        "versions/Eidos Premier Collection",
        {"tomb2.exe": b"epc exe", "data/tombpc.dat": b"epc script"},
    ),
    "variant:Eidos UK Box": (
        "versions/Eidos UK Box",
        {"tomb2.exe": b"ukb exe", "data/tombpc.dat": b"ukb script"},
    ),
    "musicfix:mp3": (
        "utilities/music_fix/mp3",
        {"fmodex.dll": b"fmodex", "winmm.dll": b"winmm for mp3"},
    ),
    "musicfix:ogg": (
        "utilities/music_fix/ogg",
        {"fmodex.dll": b"fmodex", "winmm.dll": b"winmm for ogg"},
    ),
    "patch": (
        "utilities/patch",
        {"tr2p1readme.rtf": b"readme", "tomb2.exe": b"patched exe"},
    ),
}

BASE_FILES = ("tomb2.exe", "data/floating.tr2", "data/title.pcx", "data/tombpc.dat")

PACKAGE_DIR_NAME = "tr2-version-swapper"


def md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def package_bytes(category: str, relative_path: str) -> bytes:
    return PACKAGE_FILES[category][1][relative_path]


def build_manifest() -> Manifest:
    categories = [
        {
            "name": name,
            "root": root,
            "entries": [
                {"relative_path": rel, "expected_hash": md5(data)} for rel, data in files.items()
            ],
        }
        for name, (root, files) in PACKAGE_FILES.items()
    ]
    categories.append(
        {"name": "base", "bundled": False, "entries": [{"relative_path": rel} for rel in BASE_FILES]}
    )
    return parse_manifest({"categories": categories})


def write_package(package_root: Path):
    for root, files in PACKAGE_FILES.values():
        for rel, data in files.items():
            path = package_root / root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)


def write_game(game: Path, music: tuple[str, ...] = ("02.mp3",)):
    for rel in BASE_FILES:
        path = game / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"original " + rel.encode("ascii"))
    music_dir = game / "music"
    music_dir.mkdir(exist_ok=True)
    for name in music:
        (music_dir / name).write_bytes(b"track")


class ScriptedIO(ConsoleIO):
    """ConsoleIO that answers prompts from a queue and records output.

    An answer of None takes the prompt's default. Running out of answers
    fails the test.
    """

    def __init__(self, answers=()):
        self.buffer = io.StringIO()
        super().__init__(console=Console(file=self.buffer, width=200, color_system=None))
        self.answers = list(answers)
        self.prompts = []
        self.paused = False

    def _next(self, question):
        self.prompts.append(question)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {question}")
        return self.answers.pop(0)

    def confirm(self, question, default):
        answer = self._next(question)
        return default if answer is None else answer

    def ask_int(self, question, choices, default):
        answer = self._next(question)
        return default if answer is None else answer

    def ask_continue(self, message):
        answer = self._next(message)
        return "" if answer is None else answer

    def pause_before_exit(self):
        self.paused = True

    @property
    def output(self) -> str:
        return self.buffer.getvalue()


@pytest.fixture
def manifest():
    return build_manifest()


@pytest.fixture
def directories(tmp_path):
    """A valid game folder with the installer folder inside it."""
    game = tmp_path / "game"
    package_root = game / PACKAGE_DIR_NAME
    write_game(game)
    write_package(package_root)
    return InstallDirectories(game=game, package_root=package_root)


@pytest.fixture
def scripted_io():
    return ScriptedIO()


@pytest.fixture
def context(directories, manifest, scripted_io):
    return SwapperContext(
        directories=directories,
        io=scripted_io,
        manifest=manifest,
        logger=logging.getLogger("tr2swapper.tests"),
    )


@pytest.fixture
def no_running_game():
    """Patch the process table to be empty."""
    with patch("process_guard.psutil.process_iter", return_value=[]) as m:
        yield m
