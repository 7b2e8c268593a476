"""
User settings stored in ``appsettings.json`` next to the installer.

The file is JSON with ``//`` line comments. A commented default file is
written on first run.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import SettingsError

SETTINGS_FILENAME = "appsettings.json"

DEFAULT_SETTINGS_FILE = """{
  // The number of log files the program will keep before deleting the oldest one(s).
  // Must be at least 1.
  // Default: 15
  "LogFileLimit": 15
}
"""

_COMMENT_LINE_RE = re.compile(r"^\s*//.*$", re.MULTILINE)

_log = logging.getLogger(__name__)


class UserSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    log_file_limit: int = Field(15, ge=1, alias="LogFileLimit")


def parse_settings(text: str) -> UserSettings:
    """Parse commented JSON into ``UserSettings``.

    Raises ``SettingsError`` on malformed JSON or invalid values.
    """
    try:
        data = json.loads(_COMMENT_LINE_RE.sub("", text))
    except json.JSONDecodeError as exc:
        raise SettingsError(f"{SETTINGS_FILENAME} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"{SETTINGS_FILENAME} must contain a JSON object.")
    try:
        return UserSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"{SETTINGS_FILENAME} has invalid settings:\n{exc}") from exc


def load_settings(directory: Path) -> tuple[UserSettings, bool]:
    """Read settings from ``directory``, writing the default file if absent.

    Returns the settings and whether a default file was created.
    """
    path = directory / SETTINGS_FILENAME
    created = False
    if not path.exists():
        path.write_text(DEFAULT_SETTINGS_FILE, encoding="utf-8")
        _log.debug("Created a default user settings file at %s", path)
        created = True
    return parse_settings(path.read_text(encoding="utf-8")), created
