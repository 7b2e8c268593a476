"""
Startup check against the latest GitHub release.

Never fatal: any network or parsing problem becomes a warning with the
release link.
"""

from __future__ import annotations

import logging
import re

import requests

from app_info import LATEST_RELEASE_LINK
from console_io import ConsoleIO

LATEST_RELEASE_API = "https://api.github.com/repos/TombRunners/tr2-version-swapper/releases/latest"
REQUEST_TIMEOUT_SECONDS = 10
SIGNIFICANT_PARTS = 3

_VERSION_RE = re.compile(r"^[vV]?(\d+(?:\.\d+)*)")

_log = logging.getLogger(__name__)


def parse_version(text: str, parts: int = SIGNIFICANT_PARTS) -> tuple[int, ...]:
    """``"v1.2"`` -> ``(1, 2, 0)``. Extra parts beyond ``parts`` are dropped.

    Raises ``ValueError`` when ``text`` does not start with a dotted number.
    """
    match = _VERSION_RE.match(text.strip())
    if not match:
        raise ValueError(f"Not a version number: {text!r}")
    numbers = [int(n) for n in match.group(1).split(".")][:parts]
    numbers += [0] * (parts - len(numbers))
    return tuple(numbers)


def compare_versions(current: str, latest: str) -> int:
    """-1 if ``current`` is older than ``latest``, 0 if equal, 1 if newer."""
    a, b = parse_version(current), parse_version(latest)
    return (a > b) - (a < b)


def fetch_latest_version(timeout: float = REQUEST_TIMEOUT_SECONDS) -> str:
    response = requests.get(
        LATEST_RELEASE_API,
        headers={"Accept": "application/vnd.github+json"},
        timeout=timeout,
    )
    response.raise_for_status()
    tag = response.json().get("tag_name")
    if not tag:
        raise ValueError("Latest release has no tag name")
    return tag


def check_for_update(current: str, io: ConsoleIO, logger: logging.Logger | None = None) -> int | None:
    """Tell the user whether a newer release exists.

    Returns the comparison result, or None when the check could not be made.
    """
    logger = logger or _log
    logger.debug("Running GitHub version checks...")
    try:
        latest = fetch_latest_version()
        result = compare_versions(current, latest)
    except (requests.RequestException, ValueError) as exc:
        logger.error("GitHub version check failed: %s", exc)
        io.warn("Unable to check for the latest version. Consider manually checking:")
        io.print(LATEST_RELEASE_LINK)
        io.print()
        return None

    if result < 0:
        logger.debug("Latest GitHub release (%s) is newer than the running version (%s).", latest, current)
        io.header("A new release is available!", LATEST_RELEASE_LINK, style="yellow")
        io.print("You are strongly advised to update to ensure leaderboard compatibility.")
    elif result == 0:
        logger.debug("Version is up-to-date (%s).", latest)
    else:
        logger.debug("Running version (%s) has not yet been released on GitHub (%s).", current, latest)
        io.print("You seem to be running a pre-release version.")
        io.print("Let me know how testing goes! :D")
    io.print()
    return result
