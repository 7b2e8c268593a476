"""
Exception taxonomy for the TR2 Version Swapper.

Every exception carries a ``remediation`` string: the plain-language action the
user should take. ``program.py`` is the only place that turns these into
printed messages and exit codes; components just raise.

Fatal (abort the run before or during mutation):
    IntegrityError, LocationError, CopyFailure, SettingsError

Advisory (local to the step that raised them):
    ConflictUnresolvedError, AmbiguousAudioStateError, PatchUninstallError
"""

from __future__ import annotations

from pathlib import Path

REINSTALL_HINT = "You are advised to re-install the latest release to fix the issue."


class SwapperError(Exception):
    """Base class for every error the swapper reports to the user."""

    remediation: str = ""

    def __init__(self, message: str, remediation: str | None = None):
        super().__init__(message)
        if remediation is not None:
            self.remediation = remediation


# ── Installation validation ───────────────────────────────────────────


class IntegrityError(SwapperError):
    """A file bundled with the installer is missing or was modified."""

    remediation = REINSTALL_HINT

    def __init__(self, message: str, category: str, relative_path: str):
        super().__init__(message)
        self.category = category
        self.relative_path = relative_path


class PackagedFileMissingError(IntegrityError):
    def __init__(self, category: str, relative_path: str):
        super().__init__(
            f'Packaged file "{relative_path}" ({category}) was not found.',
            category,
            relative_path,
        )


class PackagedFileModifiedError(IntegrityError):
    def __init__(self, category: str, relative_path: str, got: str, want: str):
        super().__init__(
            f"Packaged file {relative_path} ({category}) was modified.\n"
            f"Got {got}, expected {want}",
            category,
            relative_path,
        )
        self.got = got
        self.want = want


class LocationError(SwapperError):
    """The target directory does not look like a TR2 game installation."""

    remediation = (
        "Make sure the version swapper folder sits directly inside your TR2 game folder. "
        + REINSTALL_HINT
    )

    def __init__(self, message: str, missing: str | None = None):
        super().__init__(message)
        self.missing = missing


# ── Running game process ──────────────────────────────────────────────


class ConflictUnresolvedError(SwapperError):
    """A TR2 process still runs from the target folder; copying may fail."""

    remediation = (
        "Close every TR2 game window (check Task Manager for phantom processes) "
        "before copying, otherwise files may fail to overwrite."
    )


# ── File copying ──────────────────────────────────────────────────────


class CopyFailure(SwapperError):
    """A file could not be copied into the game directory mid-operation."""

    remediation = (
        "Your game folder may now contain a mix of versions. "
        "Close the game and anything using its files, then run the swapper again."
    )

    def __init__(self, source: Path, destination: Path, cause: OSError):
        super().__init__(f"Failed to copy {source} to {destination}: {cause}")
        self.source = source
        self.destination = destination
        self.cause = cause


# ── Music fix ─────────────────────────────────────────────────────────


class AmbiguousAudioStateError(SwapperError):
    """The music folder's contents cannot be matched to a shim variant."""

    remediation = (
        "Verify your game files (or re-install the game) so the music folder "
        "contains only one kind of music file, then run the swapper again."
    )


class PatchUninstallError(SwapperError):
    """The conflicting compatibility patch is still registered after uninstalling."""

    remediation = (
        "Remove it manually from Control Panel > Programs and Features "
        "(Settings > Apps on Windows 10/11)."
    )


# ── Configuration ─────────────────────────────────────────────────────


class SettingsError(SwapperError):
    """appsettings.json could not be read or holds invalid values."""

    remediation = "Fix the value in appsettings.json, or delete the file to regenerate the defaults."
