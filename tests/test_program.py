"""
End-to-end runs of SwapperProgram against a temporary game folder.
"""

from unittest.mock import patch

import pytest

from compat_patch import NullPatchDetector
from program import (
    EXIT_COPY_FAILED,
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_VALIDATION_FAILED,
    SIGINT_MESSAGE,
    SwapperProgram,
)
from tests.conftest import package_bytes


def snapshot(folder):
    return {
        p.relative_to(folder).as_posix(): p.read_bytes()
        for p in sorted(folder.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def program(context, no_running_game):
    return SwapperProgram(context, check_updates=False, patch_detector=NullPatchDetector())


def test_full_run(program, context):
    # Version 2, Patch 1 declined, music fix accepted
    context.io.answers = [2, False, True]

    assert program.run() == EXIT_OK

    game = context.directories.game
    assert (game / "tomb2.exe").read_bytes() == package_bytes("variant:Eidos Premier Collection", "tomb2.exe")
    assert (game / "winmm.dll").read_bytes() == package_bytes("musicfix:mp3", "winmm.dll")
    assert "Made with love by Midge" in context.io.output
    assert context.io.paused


def test_no_pause(context, no_running_game):
    context.io.answers = [1, False, False]
    program = SwapperProgram(context, check_updates=False, pause=False, patch_detector=NullPatchDetector())
    assert program.run() == EXIT_OK
    assert not context.io.paused


def test_missing_game_file_mutates_nothing(program, context):
    game = context.directories.game
    (game / "data/tombpc.dat").unlink()
    before = snapshot(game)

    assert program.run() == EXIT_VALIDATION_FAILED

    assert snapshot(game) == before
    assert "data/tombpc.dat" in context.io.output
    assert context.io.prompts == []


def test_tampered_package_mutates_nothing(program, context):
    (context.directories.package_root / "utilities/patch/tomb2.exe").write_bytes(b"tampered")
    before = snapshot(context.directories.game)

    assert program.run() == EXIT_VALIDATION_FAILED

    assert snapshot(context.directories.game) == before
    assert "re-install the latest release" in context.io.output


def test_copy_failure_exit_code(program, context):
    context.io.answers = [1]
    with patch("file_ops.shutil.copy2", side_effect=PermissionError("locked")):
        assert program.run() == EXIT_COPY_FAILED
    assert "mix of versions" in context.io.output


def test_keyboard_interrupt(program, context):
    with patch.object(context.io, "ask_int", side_effect=KeyboardInterrupt):
        assert program.run() == EXIT_INTERRUPTED
    assert SIGINT_MESSAGE in context.io.output
    assert not context.io.paused


def test_end_of_input_is_treated_as_interrupt(program, context):
    with patch.object(context.io, "ask_int", side_effect=EOFError):
        assert program.run() == EXIT_INTERRUPTED


def test_unexpected_error(program, context):
    with patch.object(program.swapper, "swap_versions", side_effect=RuntimeError("boom")):
        assert program.run() == EXIT_ERROR
    assert "unhandled exception" in context.io.output
    assert context.io.paused


def test_update_check_runs_when_enabled(context, no_running_game):
    context.io.answers = [1, False, False]
    program = SwapperProgram(context, patch_detector=NullPatchDetector())
    with patch("program.check_for_update") as check:
        assert program.run() == EXIT_OK
    check.assert_called_once()
