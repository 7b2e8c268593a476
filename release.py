"""
Release script for TR2 Version Swapper.

Usage:
    python release.py check <package_root>   validate bundled files against the manifest
    python release.py hash <dir>             print MD5 digests for refreshing the manifest
    python release.py zip <package_root>     validate, then zip the package for upload

The zip is written next to the package folder as tr2-version-swapper-<version>.zip.
"""

import argparse
import os
import shutil
import sys
from pathlib import Path

from app_info import APP_VERSION
from errors import IntegrityError
from hash_verifier import compute_md5
from installation_validator import InstallationValidator


def check(package_root: Path) -> bool:
    try:
        InstallationValidator().validate_package(package_root)
    except IntegrityError as exc:
        print(f"ERROR: {exc}")
        return False
    print(f"OK: all packaged files in {package_root} match the manifest")
    return True


def hash_dir(directory: Path):
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            rel = path.relative_to(directory).as_posix()
            print(f'("{rel}", "{compute_md5(path)}"),')


def make_zip(package_root: Path) -> Path | None:
    if not check(package_root):
        return None
    package_root = package_root.resolve()
    base_name = package_root.parent / f"tr2-version-swapper-{APP_VERSION}"  # shutil adds .zip
    print(f"\nZipping {package_root}...")
    shutil.make_archive(
        str(base_name), "zip", root_dir=package_root.parent, base_dir=package_root.name
    )
    final = base_name.with_name(base_name.name + ".zip")
    size_mb = final.stat().st_size / (1024 * 1024)
    print(f"Done: {final} ({size_mb:.1f} MB)")
    return final


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="TR2 Version Swapper release tooling")
    sub = parser.add_subparsers(dest="command", required=True)
    for name in ("check", "zip"):
        sub.add_parser(name).add_argument("package_root", type=Path)
    sub.add_parser("hash").add_argument("directory", type=Path)
    args = parser.parse_args(argv)

    if args.command == "hash":
        if not args.directory.is_dir():
            print(f"ERROR: {args.directory} is not a folder")
            return 1
        hash_dir(args.directory)
        return 0
    if args.command == "check":
        return 0 if check(args.package_root) else 1
    return 0 if make_zip(args.package_root) else 1


if __name__ == "__main__":
    sys.exit(main())
