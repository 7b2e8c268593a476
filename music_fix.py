"""
Music fix: detect the installed music codec and install the matching shim.

Non-Multipatch versions can freeze or play no music. The fix is a pair of
DLLs (``fmodex.dll`` plus a codec-specific ``winmm.dll``) dropped into the
game folder. Which ``winmm.dll`` is right depends on the music files the game
ships with: the Steam release uses ``.mp3``, the GOG release ``.ogg``.

Every run re-evaluates the state from disk, so running the fix twice is safe.

Flow:
    detect kind -> already installed? -> install (MP3: normalize names)
                -> compatibility patch check
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from compat_patch import (
    CompatibilityPatchDetector,
    CompatibilityPatchRecord,
    get_patch_detector,
)
from errors import REINSTALL_HINT, AmbiguousAudioStateError, ConflictUnresolvedError, PatchUninstallError
from file_ops import copy_files
from hash_verifier import verify
from manifest_schema import MUSIC_FIX_PREFIX
from process_guard import ProcessGuard
from swapper_context import SwapperContext

SHIM_FILES = ("fmodex.dll", "winmm.dll")
CODEC_SHIM_FILE = "winmm.dll"

_NUMERIC_STEM_RE = re.compile(r"^[0-9]+$")

_log = logging.getLogger(__name__)


class MusicFileKind(Enum):
    MP3 = "mp3"
    OGG = "ogg"
    UNKNOWN = "unknown"
    AMBIGUOUS = "ambiguous"
    ABSENT = "absent"

    @property
    def is_codec(self) -> bool:
        return self in (MusicFileKind.MP3, MusicFileKind.OGG)

    @property
    def extension(self) -> str:
        if not self.is_codec:
            raise ValueError(f"{self.name} has no file extension")
        return "." + self.value

    @property
    def category_name(self) -> str:
        if not self.is_codec:
            raise ValueError(f"{self.name} has no music fix category")
        return MUSIC_FIX_PREFIX + self.value


_KIND_BY_EXTENSION = {
    ".mp3": MusicFileKind.MP3,
    ".ogg": MusicFileKind.OGG,
}


class MusicFixStatus(Enum):
    ALREADY_INSTALLED = "already_installed"
    INSTALLED = "installed"
    PARTIALLY_INSTALLED = "partially_installed"
    DECLINED = "declined"
    UNMATCHED = "unmatched"


class PatchCheckStatus(Enum):
    NOT_FOUND = "not_found"
    REMOVED = "removed"
    DECLINED = "declined"
    FAILED = "failed"
    SKIPPED = "skipped"


# ── Detection ─────────────────────────────────────────────────────────


def music_extensions(music_dir: Path) -> set[str]:
    """Distinct lowercase extensions of the regular files in ``music_dir``."""
    return {p.suffix.lower() for p in music_dir.iterdir() if p.is_file()}


def determine_music_file_kind(music_dir: str | Path) -> MusicFileKind:
    music_dir = Path(music_dir)
    if not music_dir.is_dir():
        return MusicFileKind.ABSENT
    extensions = music_extensions(music_dir)
    if not extensions:
        return MusicFileKind.ABSENT
    if len(extensions) > 1:
        return MusicFileKind.AMBIGUOUS
    return _KIND_BY_EXTENSION.get(extensions.pop(), MusicFileKind.UNKNOWN)


# ── Filename normalization ────────────────────────────────────────────


@dataclass
class NormalizeReport:
    renamed: list[tuple[str, str]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # Names not shaped like <number><ext>
    failures: list[tuple[str, str]] = field(default_factory=list)  # (name, reason)

    @property
    def ok(self) -> bool:
        return not self.failures


def normalize_music_filenames(music_dir: str | Path, extension: str) -> NormalizeReport:
    """Zero-pad single-digit track names (``2.mp3`` -> ``02.mp3``).

    Only names of the form ``<number><extension>`` are touched. A failed rename
    is recorded and the remaining files are still processed.
    """
    music_dir = Path(music_dir)
    report = NormalizeReport()
    tracks = sorted(
        p for p in music_dir.iterdir() if p.is_file() and p.suffix.lower() == extension
    )
    for path in tracks:
        stem = path.stem
        if not _NUMERIC_STEM_RE.match(stem):
            report.skipped.append(path.name)
            continue
        if len(stem) >= 2:
            continue

        target = path.with_name("0" + path.name)
        if target.exists():
            report.failures.append((path.name, f"{target.name} already exists"))
            continue
        try:
            path.rename(target)
        except OSError as exc:
            report.failures.append((path.name, str(exc)))
            continue
        report.renamed.append((path.name, target.name))
    return report


# ── Resolver ──────────────────────────────────────────────────────────


class MusicFixResolver:
    def __init__(
        self,
        context: SwapperContext,
        guard: ProcessGuard | None = None,
        patch_detector: CompatibilityPatchDetector | None = None,
    ):
        self.directories = context.directories
        self.manifest = context.manifest
        self.io = context.io
        self.logger = context.logger or _log
        self.guard = guard
        self.patch_detector = patch_detector or get_patch_detector()

    # ── State ─────────────────────────────────────────────────────────

    def detect_kind(self) -> MusicFileKind:
        kind = determine_music_file_kind(self.directories.music)
        self.logger.debug("Music file kind in %s: %s", self.directories.music, kind.name)
        return kind

    def is_shim_installed(self, kind: MusicFileKind) -> bool:
        """Both shim files present, and ``winmm.dll`` built for this codec."""
        game = self.directories.game
        if not all((game / name).is_file() for name in SHIM_FILES):
            return False
        expected = self.manifest.category(kind.category_name).digest_for(CODEC_SHIM_FILE)
        return verify(game / CODEC_SHIM_FILE, expected).ok

    def _require_codec_kind(self) -> MusicFileKind:
        kind = self.detect_kind()
        if kind.is_codec:
            return kind

        if kind is MusicFileKind.ABSENT:
            reason = "I found no music files in your game's music folder"
        else:
            found = ", ".join(sorted(e or "(no extension)" for e in music_extensions(self.directories.music)))
            if kind is MusicFileKind.AMBIGUOUS:
                reason = f"Your game's music folder contains more than one kind of file ({found})"
            else:
                reason = f"Your game's music folder contains unsupported music files ({found})"
        raise AmbiguousAudioStateError(
            f"{reason}, so I cannot tell which music fix matches your game."
        )

    # ── Install ───────────────────────────────────────────────────────

    def install_shim(self, kind: MusicFileKind) -> NormalizeReport | None:
        """Copy the shim for ``kind`` into the game folder.

        A copy failure raises ``CopyFailure``. For MP3 games the track names
        are normalized afterwards and the report is returned.
        """
        if self.guard is not None:
            try:
                self.guard.ensure_not_running()
            except ConflictUnresolvedError as exc:
                self.logger.warning("Installing the music fix with TR2 still running: %s", exc)
                self.io.warn(f"{exc} Copying the music fix may fail.")

        category = self.manifest.category(kind.category_name)
        copied = copy_files(
            self.directories.package_root / category.root, self.directories.game, SHIM_FILES
        )
        self.logger.info("Copied %d %s music fix file(s).", copied, kind.name)

        if kind is MusicFileKind.MP3:
            return normalize_music_filenames(self.directories.music, kind.extension)
        return None

    def _report_normalization(self, report: NormalizeReport):
        for old, new in report.renamed:
            self.logger.info("Renamed music file %s -> %s", old, new)
        if report.renamed:
            self.io.print(f"Renamed {len(report.renamed)} music file(s) to two-digit names.")
        for name in report.skipped:
            self.logger.warning("Left music file %s untouched: not a numbered track", name)
            self.io.warn(f"Left {name} untouched: it is not named like a numbered track.")
        for name, reason in report.failures:
            self.logger.error("Could not rename music file %s: %s", name, reason)
            self.io.error(f"Could not rename {name}: {reason}")

    def handle_music_fix(self) -> MusicFixStatus:
        """Check for the music fix and offer to install it when missing."""
        try:
            kind = self._require_codec_kind()
        except AmbiguousAudioStateError as exc:
            self.logger.warning("Skipping music fix: %s", exc)
            self.io.warn(str(exc))
            self.io.print(exc.remediation)
            self.io.print()
            return MusicFixStatus.UNMATCHED

        if self.is_shim_installed(kind):
            self.logger.debug("Music fix (%s) is already installed.", kind.name)
            self.io.header("You already have the music fix installed.", "Skipping music fix installation...")
            status = MusicFixStatus.ALREADY_INSTALLED
            # Retry renames left over from a partial install
            if kind is MusicFileKind.MP3:
                report = normalize_music_filenames(self.directories.music, kind.extension)
                self._report_normalization(report)
                if not report.ok:
                    status = MusicFixStatus.PARTIALLY_INSTALLED
                    self._warn_partial(report)
            self.io.print()
            self.check_compatibility_patch()
            return status

        self.logger.debug("Music fix (%s) is not installed. Asking the user.", kind.name)
        self.io.print("On non-Multipatch versions in-game music might not work and/or the game might")
        self.io.print("freeze or lag when it tries to load music. I can install a music fix which")
        self.io.print("should resolve most music-related issues.")
        self.io.print("Please note that you are not required to install this optional fix. Any time you")
        self.io.print("run this program, I will check for the fix and ask again if it is missing.")
        if not self.io.confirm("Install the music fix?", default=True):
            self.logger.debug("User declined the music fix installation.")
            self.io.header("Skipping music fix.", "I'll ask again next time.")
            self.io.print()
            return MusicFixStatus.DECLINED

        report = self.install_shim(kind)
        status = MusicFixStatus.INSTALLED
        if report is not None:
            self._report_normalization(report)
            if not report.ok:
                status = MusicFixStatus.PARTIALLY_INSTALLED

        if not self.is_shim_installed(kind):
            self.logger.error("Music fix files in the game folder do not match after copying.")
            self.io.header(
                "Music fix partially installed.",
                "The music fix files in your game folder do not match the ones I copied.",
                style="yellow",
            )
            self.io.print(REINSTALL_HINT)
            self.io.print()
            return MusicFixStatus.PARTIALLY_INSTALLED

        if status is MusicFixStatus.INSTALLED:
            self.logger.info("Installed the %s music fix successfully.", kind.name)
            self.io.header("Music fix successfully installed!", style="green")
        else:
            self._warn_partial(report)
        self.io.print()
        self.check_compatibility_patch()
        return status

    def _warn_partial(self, report: NormalizeReport):
        self.logger.warning("Music fix in place but %d music file(s) could not be renamed.", len(report.failures))
        self.io.header(
            "Music fix partially installed.",
            "Rename the files listed above to two-digit names, or run me again.",
            style="yellow",
        )

    # ── Compatibility patch ───────────────────────────────────────────

    def check_compatibility_patch(self) -> PatchCheckStatus:
        """Look for the patch that stops the shim loading and offer to remove it."""
        try:
            record = self.patch_detector.find_known_conflicting_patch()
        except OSError as exc:
            self.logger.warning("Could not read the installed programs list: %s", exc)
            self.io.warn("I was unable to check for programs known to break the music fix. Skipping that check.")
            return PatchCheckStatus.SKIPPED

        if record is None:
            self.logger.debug("No conflicting compatibility patch installed.")
            return PatchCheckStatus.NOT_FOUND

        self.logger.info("Found conflicting patch %r at %s", record.display_name, record.registry_key_path)
        self.io.warn(f'"{record.display_name}" is installed on your computer.')
        self.io.print("It prevents the music fix from loading, so in-game music will not work")
        self.io.print("while it is installed.")
        if not self.io.confirm("Uninstall it now?", default=True):
            self.logger.debug("User declined uninstalling %r.", record.display_name)
            self.io.print(f"Skipping. {PatchUninstallError.remediation}")
            self.io.print()
            return PatchCheckStatus.DECLINED

        try:
            self._uninstall_patch(record)
        except PatchUninstallError as exc:
            self.logger.error("Uninstalling %r failed: %s", record.display_name, exc)
            self.io.error(str(exc))
            self.io.print(exc.remediation)
            self.io.print()
            return PatchCheckStatus.FAILED

        self.logger.info("Uninstalled %r.", record.display_name)
        self.io.success(f'"{record.display_name}" was uninstalled.')
        self.io.print()
        return PatchCheckStatus.REMOVED

    def _uninstall_patch(self, record: CompatibilityPatchRecord):
        try:
            code = self.patch_detector.uninstall(record)
        except OSError as exc:
            raise PatchUninstallError(f"I could not run the uninstaller for \"{record.display_name}\": {exc}") from exc

        try:
            still_there = self.patch_detector.find_known_conflicting_patch()
        except OSError as exc:
            raise PatchUninstallError(
                f"I could not confirm that \"{record.display_name}\" was removed: {exc}"
            ) from exc
        if still_there is not None:
            raise PatchUninstallError(
                f"\"{record.display_name}\" is still installed after its uninstaller exited (code {code})."
            )
