"""
Content digests for packaged and installed files.

MD5 is used for tamper evidence against a small, fixed set of files, not as a
security control.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

CHUNK_SIZE = 1024 * 1024

HashStatus = Literal["match", "mismatch", "missing"]


@dataclass(frozen=True)
class HashOutcome:
    status: HashStatus
    actual: str | None = None  # Only set for "mismatch"

    @property
    def ok(self) -> bool:
        return self.status == "match"


def compute_md5(path: str | Path) -> str:
    """Return the lowercase hex MD5 digest of a file, read in chunks."""
    md5 = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            md5.update(chunk)
    return md5.hexdigest()


def verify(path: str | Path, expected_digest: str) -> HashOutcome:
    """Compare a file's digest to the expected one.

    A missing file, or a missing parent directory, is reported as ``missing``.
    Any other I/O error propagates to the caller.
    """
    try:
        actual = compute_md5(path)
    except (FileNotFoundError, NotADirectoryError):
        return HashOutcome("missing")

    if actual == expected_digest.lower():
        return HashOutcome("match")
    return HashOutcome("mismatch", actual)
