"""Helper for updating version variables from toml file."""

import re
import sys
from pathlib import Path


TOML_PATH = Path(Path(__file__).parent, "pyproject.toml")
PACKAGE_PATH = Path(Path(__file__).parent, "transmitter/__init__.py")


def parse_version(version_str: str) -> tuple[int, int, int]:
    """Parse a version string into major, minor, patch tuple."""
    match = re.match(r"^(\d+)\.(\d+)\.(\d+)$", version_str.strip("\"'"))
    if not match:
        raise ValueError(f"Invalid version format: {version_str}")
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def read_toml_version(content: str) -> tuple[int, int, int]:
    """Extract the project version from TOML text."""
    match = re.search(r'^version\s*=\s*["\'](\d+\.\d+\.\d+)["\']', content, re.M)

    if not match:
        raise ValueError("No version field found in TOML file")

    return parse_version(match.group(1))


def apply_version(content: str, new_version: tuple[int, int, int]) -> str:
    """Rewrite the version constants in the package source text."""
    major, minor, patch = new_version

    replacements = [
        (r"version_major\s*=\s*\d+", f"version_major = {major}"),
        (r"version_minor\s*=\s*\d+", f"version_minor = {minor}"),
        (r"version_patch\s*=\s*\d+", f"version_patch = {patch}"),
    ]

    new_content = content
    for pattern, replacement in replacements:
        new_content, count = re.subn(pattern, replacement, new_content)
        if count == 0:
            raise ValueError(f"Pattern not found: {pattern}")

    return new_content


def main() -> int:
    version = read_toml_version(TOML_PATH.read_text(encoding="utf-8"))
    content = PACKAGE_PATH.read_text(encoding="utf-8")
    PACKAGE_PATH.write_text(apply_version(content, version), encoding="utf-8")
    print(f"Updated {PACKAGE_PATH} to {'.'.join(str(v) for v in version)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
