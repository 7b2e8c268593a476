"""
Tests for the version prompt, version copy and Patch 1.
"""

import shutil
from unittest.mock import MagicMock, patch

import pytest

from errors import ConflictUnresolvedError, CopyFailure
from version_swapper import DEFAULT_VERSION, GameVersion, VersionSwapper
from tests.conftest import package_bytes


@pytest.fixture
def guard():
    return MagicMock()


@pytest.fixture
def swapper(context, guard):
    return VersionSwapper(context, guard)


def test_game_version_ordinals_and_folders():
    assert [(v.ordinal, v.folder_name) for v in GameVersion] == [
        (1, "Multipatch"),
        (2, "Eidos Premier Collection"),
        (3, "Eidos UK Box"),
    ]
    assert DEFAULT_VERSION is GameVersion.MULTIPATCH
    assert GameVersion.from_ordinal(3) is GameVersion.UKB
    with pytest.raises(ValueError):
        GameVersion.from_ordinal(4)


def test_prompt_lists_versions_and_uses_choice(swapper, context):
    context.io.answers = [2]
    assert swapper.prompt_version() is GameVersion.EPC
    assert "1: Multipatch" in context.io.output
    assert "3: Eidos UK Box" in context.io.output


def test_prompt_default_is_multipatch(swapper, context):
    context.io.answers = [None]
    assert swapper.prompt_version() is GameVersion.MULTIPATCH


def test_swap_copies_version_over_game(swapper, context, guard):
    game = context.directories.game
    swapper.swap_to_version(GameVersion.UKB)

    guard.ensure_not_running.assert_called_once()
    assert (game / "tomb2.exe").read_bytes() == package_bytes("variant:Eidos UK Box", "tomb2.exe")
    assert (game / "data/tombpc.dat").read_bytes() == package_bytes("variant:Eidos UK Box", "data/tombpc.dat")
    # Files the version does not ship are left alone
    assert (game / "data/title.pcx").read_bytes() == b"original data/title.pcx"
    assert "Eidos UK Box successfully installed!" in context.io.output


def test_unresolved_conflict_still_copies(swapper, context, guard):
    guard.ensure_not_running.side_effect = ConflictUnresolvedError("TR2 is still running from the target folder.")
    swapper.swap_to_version(GameVersion.EPC)

    assert (context.directories.game / "tomb2.exe").read_bytes() == package_bytes(
        "variant:Eidos Premier Collection", "tomb2.exe"
    )
    assert "Copying anyway" in context.io.output


def test_copy_failure_halts(swapper, context):
    with patch("file_ops.shutil.copy2", side_effect=PermissionError("tomb2.exe is in use")):
        with pytest.raises(CopyFailure) as excinfo:
            swapper.swap_to_version(GameVersion.MULTIPATCH)
    assert "tomb2.exe is in use" in str(excinfo.value)
    assert "successfully installed" not in context.io.output
    assert excinfo.value.remediation


def test_missing_version_folder_is_copy_failure(swapper, context):
    shutil.rmtree(context.directories.package_root / "versions" / "Multipatch")
    with pytest.raises(CopyFailure):
        swapper.swap_to_version(GameVersion.MULTIPATCH)


def test_patch_declined_by_default(swapper, context, guard):
    context.io.answers = [None]
    assert swapper.handle_patch() is False
    guard.ensure_not_running.assert_not_called()
    assert not (context.directories.game / "tr2p1readme.rtf").exists()
    assert "Skipping Patch 1 installation." in context.io.output


def test_patch_installed_on_consent(swapper, context, guard):
    context.io.answers = [True]
    assert swapper.handle_patch() is True
    game = context.directories.game
    assert (game / "tomb2.exe").read_bytes() == package_bytes("patch", "tomb2.exe")
    assert (game / "tr2p1readme.rtf").exists()
    guard.ensure_not_running.assert_called_once()


def test_swap_versions_prompts_then_patches(swapper, context):
    context.io.answers = [3, True]
    assert swapper.swap_versions() is GameVersion.UKB
    assert (context.directories.game / "tomb2.exe").read_bytes() == package_bytes("patch", "tomb2.exe")
    assert len(context.io.prompts) == 2
