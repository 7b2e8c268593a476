"""
File manifest for the TR2 Version Swapper.

The manifest is the fixed table of files the swapper knows about, split into
categories. Bundled categories describe files shipped inside the installer
folder and carry an MD5 digest for each file; the ``base`` category lists the
user's own game files, which are only checked for existence.

Installer folder layout (each category's ``root`` is relative to it):

    tr2-version-swapper/
    ├── versions/
    │   ├── Multipatch/                 <- variant:Multipatch
    │   ├── Eidos Premier Collection/   <- variant:Eidos Premier Collection
    │   └── Eidos UK Box/               <- variant:Eidos UK Box
    └── utilities/
        ├── music_fix/
        │   ├── mp3/                    <- musicfix:mp3
        │   └── ogg/                    <- musicfix:ogg
        └── patch/                      <- patch

Entry paths are relative to the category root and are also the destination
paths inside the game folder.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from pydantic import BaseModel, Field, field_validator, model_validator

DIGEST_RE = re.compile(r"^[0-9a-f]{32}$")

BASE_CATEGORY = "base"
PATCH_CATEGORY = "patch"
VARIANT_PREFIX = "variant:"
MUSIC_FIX_PREFIX = "musicfix:"


class ManifestEntry(BaseModel):
    """One file and, for bundled files, its expected lowercase-hex MD5 digest."""

    relative_path: str
    expected_hash: str | None = None

    @field_validator("relative_path")
    @classmethod
    def _normalize_path(cls, v: str) -> str:
        v = v.replace("\\", "/").strip("/")
        if not v:
            raise ValueError("relative_path must not be empty")
        return v

    @field_validator("expected_hash")
    @classmethod
    def _normalize_hash(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lower()
        if not DIGEST_RE.match(v):
            raise ValueError(f"Invalid MD5 digest {v!r}")
        return v


class ManifestCategory(BaseModel):
    """A named group of entries sharing a root folder."""

    name: str
    root: str = ""
    bundled: bool = True
    entries: list[ManifestEntry] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def _normalize_root(cls, v: str) -> str:
        return v.replace("\\", "/").strip("/")

    @model_validator(mode="after")
    def _check_entries(self) -> ManifestCategory:
        seen = set()
        for entry in self.entries:
            if entry.relative_path in seen:
                raise ValueError(
                    f"Duplicate path {entry.relative_path!r} in category {self.name!r}"
                )
            seen.add(entry.relative_path)
            if self.bundled and entry.expected_hash is None:
                raise ValueError(
                    f"Bundled entry {entry.relative_path!r} in {self.name!r} has no digest"
                )
        return self

    def digest_for(self, relative_path: str) -> str | None:
        for entry in self.entries:
            if entry.relative_path == relative_path:
                return entry.expected_hash
        raise KeyError(f"{relative_path!r} is not listed in category {self.name!r}")


class Manifest(BaseModel):
    """All categories, in validation order."""

    categories: list[ManifestCategory] = Field(default_factory=list)

    @model_validator(mode="after")
    def _no_duplicate_categories(self) -> Manifest:
        seen = set()
        for category in self.categories:
            if category.name in seen:
                raise ValueError(f"Duplicate category: {category.name!r}")
            seen.add(category.name)
        return self

    def category(self, name: str) -> ManifestCategory:
        for category in self.categories:
            if category.name == name:
                return category
        raise KeyError(f"Unknown manifest category {name!r}")

    def bundled_entries(self) -> Iterator[tuple[ManifestCategory, ManifestEntry]]:
        for category in self.categories:
            if not category.bundled:
                continue
            for entry in category.entries:
                yield category, entry

    def game_files(self) -> list[str]:
        return [e.relative_path for e in self.category(BASE_CATEGORY).entries]


def parse_manifest(data: dict) -> Manifest:
    """Validate a plain-dict manifest. Raises ``pydantic.ValidationError``."""
    return Manifest.model_validate(data)


# ── Bundled data ──────────────────────────────────────────────────────
#
# Digests for the shim DLLs are refreshed from a release build with
# ``python release.py hash <installer folder>``.

_FMODEX_DIGEST = "a5106cf9d7371f842f500976692dd29e"

BUNDLED_MANIFEST = parse_manifest(
    {
        "categories": [
            {
                "name": "variant:Multipatch",
                "root": "versions/Multipatch",
                "entries": [
                    {"relative_path": "tomb2.exe", "expected_hash": "964f0c4e08ff44a905e8fc9a78f605dc"},
                    {"relative_path": "data/floating.tr2", "expected_hash": "1e7d0d88ff9d569e22982af761bb006b"},
                    {"relative_path": "data/title.pcx", "expected_hash": "a5dad5ff5cb275825ff1895ca76fa908"},
                    {"relative_path": "data/tombpc.dat", "expected_hash": "d48757da01f8642f1a3d82fae0fc99e4"},
                ],
            },
            {
                "name": "variant:Eidos Premier Collection",
                "root": "versions/Eidos Premier Collection",
                "entries": [
                    {"relative_path": "tomb2.exe", "expected_hash": "793c67c79a50984d9bd17ad391f03c57"},
                    {"relative_path": "data/floating.tr2", "expected_hash": "1e7d0d88ff9d569e22982af761bb006b"},
                    {"relative_path": "data/title.pcx", "expected_hash": "cdf5c232f71fe1d45b184c45252b6fb0"},
                    {"relative_path": "data/tombpc.dat", "expected_hash": "d48757da01f8642f1a3d82fae0fc99e4"},
                ],
            },
            {
                "name": "variant:Eidos UK Box",
                "root": "versions/Eidos UK Box",
                "entries": [
                    {"relative_path": "tomb2.exe", "expected_hash": "12d56521ce038b55efba97463357a3d7"},
                    {"relative_path": "data/floating.tr2", "expected_hash": "b8fc5d8444b15527cec447bc0387c41a"},
                    {"relative_path": "data/title.pcx", "expected_hash": "cdf5c232f71fe1d45b184c45252b6fb0"},
                    {"relative_path": "data/tombpc.dat", "expected_hash": "d48757da01f8642f1a3d82fae0fc99e4"},
                ],
            },
            {
                "name": "musicfix:mp3",
                "root": "utilities/music_fix/mp3",
                "entries": [
                    {"relative_path": "fmodex.dll", "expected_hash": _FMODEX_DIGEST},
                    {"relative_path": "winmm.dll", "expected_hash": "f683a8f1a309798ff75d11d65092315a"},
                ],
            },
            {
                "name": "musicfix:ogg",
                "root": "utilities/music_fix/ogg",
                "entries": [
                    {"relative_path": "fmodex.dll", "expected_hash": _FMODEX_DIGEST},
                    # Placeholder: no audited OGG build yet. Refresh from the release tree with
                    # `python release.py hash utilities/music_fix/ogg` before shipping, or every
                    # genuine package fails validate_package.
                    {"relative_path": "winmm.dll", "expected_hash": "299aedf6e50e752acad5e0397c370dab"},
                ],
            },
            {
                "name": "patch",
                "root": "utilities/patch",
                "entries": [
                    {"relative_path": "tr2p1readme.rtf", "expected_hash": "100439b46ecad0a318d757bb814ae890"},
                    # With no-CD crack
                    {"relative_path": "tomb2.exe", "expected_hash": "39cab6b4ae3c761b67ae308a0ab22e44"},
                ],
            },
            {
                "name": "base",
                "bundled": False,
                "entries": [
                    {"relative_path": "tomb2.exe"},
                    {"relative_path": "data/floating.tr2"},
                    {"relative_path": "data/title.pcx"},
                    {"relative_path": "data/tombpc.dat"},
                ],
            },
        ]
    }
)
