"""
Tests for package and game-folder validation.
"""

import shutil

import pytest

from errors import LocationError, PackagedFileMissingError, PackagedFileModifiedError
from installation_validator import InstallationValidator
from swapper_context import InstallDirectories
from tests.conftest import BASE_FILES, md5, package_bytes, write_package


@pytest.fixture
def validator(manifest):
    return InstallationValidator(manifest)


def test_valid_installation_passes(validator, directories):
    validator.validate(directories)


# ── Package ──────────────────────────────────────────────────────────────────

def test_missing_packaged_file(validator, directories):
    (directories.package_root / "utilities/music_fix/ogg/winmm.dll").unlink()
    with pytest.raises(PackagedFileMissingError) as excinfo:
        validator.validate_package(directories.package_root)
    assert excinfo.value.category == "musicfix:ogg"
    assert excinfo.value.relative_path == "winmm.dll"


def test_missing_category_folder_reports_first_file(validator, directories):
    shutil.rmtree(directories.package_root / "utilities" / "patch")
    with pytest.raises(PackagedFileMissingError) as excinfo:
        validator.validate_package(directories.package_root)
    assert excinfo.value.category == "patch"
    assert excinfo.value.relative_path == "tr2p1readme.rtf"


def test_modified_packaged_file_reports_digests(validator, directories):
    path = directories.package_root / "versions/Eidos UK Box/tomb2.exe"
    path.write_bytes(b"tampered")
    with pytest.raises(PackagedFileModifiedError) as excinfo:
        validator.validate_package(directories.package_root)
    err = excinfo.value
    assert err.relative_path == "tomb2.exe"
    assert err.category == "variant:Eidos UK Box"
    assert err.got == md5(b"tampered")
    assert err.want == md5(package_bytes("variant:Eidos UK Box", "tomb2.exe"))


def test_first_failure_in_manifest_order_wins(validator, directories):
    # Both broken; the variant comes before the patch in manifest order.
    (directories.package_root / "utilities/patch/tomb2.exe").unlink()
    (directories.package_root / "versions/Multipatch/data/tombpc.dat").write_bytes(b"bad")
    with pytest.raises(PackagedFileModifiedError) as excinfo:
        validator.validate_package(directories.package_root)
    assert excinfo.value.category == "variant:Multipatch"


# ── Game folder ──────────────────────────────────────────────────────────────

@pytest.mark.parametrize("missing", BASE_FILES)
def test_each_missing_base_file_is_named(validator, directories, missing):
    (directories.game / missing).unlink()
    with pytest.raises(LocationError) as excinfo:
        validator.validate_game_directory(directories.game, directories.package_root)
    assert excinfo.value.missing == missing
    assert missing in str(excinfo.value)


def test_base_files_are_not_hashed(validator, directories):
    (directories.game / "tomb2.exe").write_bytes(b"any content at all")
    validator.validate_game_directory(directories.game, directories.package_root)


def test_missing_music_folder(validator, directories):
    shutil.rmtree(directories.music)
    with pytest.raises(LocationError) as excinfo:
        validator.validate_game_directory(directories.game)
    assert excinfo.value.missing == "music"


def test_nonexistent_game_folder(validator, tmp_path):
    with pytest.raises(LocationError, match="does not exist"):
        validator.validate_game_directory(tmp_path / "nowhere")


def test_game_folder_same_as_package(validator, directories):
    with pytest.raises(LocationError, match="same folder"):
        validator.validate_game_directory(directories.package_root, directories.package_root)


def test_package_is_checked_before_game_folder(validator, directories):
    (directories.game / "data/tombpc.dat").unlink()
    (directories.package_root / "utilities/music_fix/mp3/fmodex.dll").unlink()
    with pytest.raises(PackagedFileMissingError):
        validator.validate(directories)


def test_misplaced_installer_reports_location(validator, tmp_path):
    """Installer folder extracted somewhere that is not a TR2 installation."""
    package_root = tmp_path / "Downloads" / "tr2-version-swapper"
    write_package(package_root)
    directories = InstallDirectories(game=package_root.parent, package_root=package_root)

    with pytest.raises(LocationError) as excinfo:
        validator.validate(directories)
    assert excinfo.value.missing == "tomb2.exe"
    assert not (directories.game / "tomb2.exe").exists()
