"""
Detection and removal of the third-party fullscreen border fix.

That compatibility patch stops Windows from loading the music fix's
``winmm.dll`` from the game folder, so the music fix silently does nothing
while it is installed. It registers itself as an installed program, which is
how we find it and its uninstaller.

Only Windows has the installed-programs registry; other platforms get
``NullPatchDetector``.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable

KNOWN_PATCH_DISPLAY_NAME = "Tomb Raider II Fullscreen Border Fix"

UNINSTALL_KEY = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"
WOW64_UNINSTALL_KEY = r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompatibilityPatchRecord:
    """Lookup key into the installed-programs registry."""

    registry_key_path: str
    display_name: str
    uninstall_command: str


class CompatibilityPatchDetector:
    """Platform seam used by the music fix.

    ``find_known_conflicting_patch`` may raise ``OSError`` when the registry
    cannot be read; ``uninstall`` runs the recorded uninstaller, waits for it
    and returns its exit code.
    """

    def find_known_conflicting_patch(self) -> CompatibilityPatchRecord | None:
        raise NotImplementedError

    def uninstall(self, record: CompatibilityPatchRecord) -> int:
        raise NotImplementedError


class NullPatchDetector(CompatibilityPatchDetector):
    def find_known_conflicting_patch(self) -> CompatibilityPatchRecord | None:
        return None

    def uninstall(self, record: CompatibilityPatchRecord) -> int:
        raise OSError(f"Cannot uninstall {record.display_name!r} on {sys.platform}")


class WindowsRegistryPatchDetector(CompatibilityPatchDetector):
    def __init__(
        self,
        display_name: str = KNOWN_PATCH_DISPLAY_NAME,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.display_name = display_name
        self._run = run

    @staticmethod
    def _uninstall_roots() -> list[tuple[int, str, str]]:
        import winreg

        return [
            (winreg.HKEY_LOCAL_MACHINE, "HKEY_LOCAL_MACHINE", UNINSTALL_KEY),
            (winreg.HKEY_LOCAL_MACHINE, "HKEY_LOCAL_MACHINE", WOW64_UNINSTALL_KEY),
            (winreg.HKEY_CURRENT_USER, "HKEY_CURRENT_USER", UNINSTALL_KEY),
        ]

    def _matches(self, name: str) -> bool:
        return name.strip().casefold() == self.display_name.casefold()

    def find_known_conflicting_patch(self) -> CompatibilityPatchRecord | None:
        import winreg

        for hive, hive_name, key_path in self._uninstall_roots():
            try:
                root = winreg.OpenKey(hive, key_path)
            except FileNotFoundError:
                continue
            with root:
                index = 0
                while True:
                    try:
                        subkey = winreg.EnumKey(root, index)
                    except OSError:
                        break  # No more entries
                    index += 1
                    record = self._read_entry(root, subkey, f"{hive_name}\\{key_path}\\{subkey}")
                    if record is not None:
                        _log.debug("Found %r at %s", record.display_name, record.registry_key_path)
                        return record
        return None

    def _read_entry(self, root, subkey: str, full_path: str) -> CompatibilityPatchRecord | None:
        import winreg

        try:
            with winreg.OpenKey(root, subkey) as key:
                name = winreg.QueryValueEx(key, "DisplayName")[0]
                if not isinstance(name, str) or not self._matches(name):
                    return None
                command = winreg.QueryValueEx(key, "UninstallString")[0]
        except (FileNotFoundError, PermissionError) as exc:
            _log.debug("Skipping unreadable uninstall entry %s: %s", full_path, exc)
            return None
        return CompatibilityPatchRecord(full_path, name, command)

    def uninstall(self, record: CompatibilityPatchRecord) -> int:
        _log.info("Running uninstaller for %r: %s", record.display_name, record.uninstall_command)
        completed = self._run(record.uninstall_command, check=False)
        _log.info("Uninstaller exited with code %d", completed.returncode)
        return completed.returncode


def get_patch_detector() -> CompatibilityPatchDetector:
    if sys.platform == "win32":
        return WindowsRegistryPatchDetector()
    return NullPatchDetector()
