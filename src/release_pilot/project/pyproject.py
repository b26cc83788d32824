"""pyproject.toml version manipulation.

Reads and updates the version of Python projects that release through
release-pilot. Updates use a regex replacement scoped to the ``[project]``
or ``[tool.poetry]`` table so comments and formatting survive.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from release_pilot.exceptions import VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

_TABLES = (r"\[project\]", r"\[tool\.poetry\]")
_VERSION_LINE = r'^(version\s*=\s*)["\']([^"\']+)["\']'
_NAME_LINE = r'^name\s*=\s*["\']([^"\']+)["\']'


def _table(content: str, header: str) -> re.Match[str] | None:
    # The table body runs up to the next table header or EOF.
    return re.search(rf"^{header}[^\n]*\n.*?(?=^\[|\Z)", content, re.MULTILINE | re.DOTALL)


def get_pyproject_version(pyproject_path: Path) -> str:
    """Get the version from pyproject.toml.

    Raises:
        VersionNotFoundError: If neither table declares a version
    """
    content = pyproject_path.read_text(encoding="utf-8")
    for header in _TABLES:
        table = _table(content, header)
        if table is None:
            continue
        match = re.search(_VERSION_LINE, table.group(0), re.MULTILINE)
        if match:
            return match.group(2)
    raise VersionNotFoundError(
        f"Could not find version in {pyproject_path}. Expected [project].version or [tool.poetry].version."
    )


def get_pyproject_name(pyproject_path: Path) -> str | None:
    """Project name from pyproject.toml, if declared."""
    content = pyproject_path.read_text(encoding="utf-8")
    for header in _TABLES:
        table = _table(content, header)
        if table is None:
            continue
        match = re.search(_NAME_LINE, table.group(0), re.MULTILINE)
        if match:
            return match.group(1)
    return None


def update_pyproject_version(pyproject_path: Path, new_version: str) -> Path:
    """Set the version in pyproject.toml.

    Args:
        pyproject_path: File to update
        new_version: Version string to write

    Returns:
        The updated path

    Raises:
        VersionNotFoundError: If neither table declares a version
    """
    content = pyproject_path.read_text(encoding="utf-8")
    for header in _TABLES:
        table = _table(content, header)
        if table is None:
            continue
        section, count = re.subn(
            _VERSION_LINE,
            rf'\g<1>"{new_version}"',
            table.group(0),
            count=1,
            flags=re.MULTILINE,
        )
        if count == 0:
            continue
        if section != table.group(0):
            pyproject_path.write_text(content[: table.start()] + section + content[table.end() :], encoding="utf-8")
        return pyproject_path

    raise VersionNotFoundError(
        f"Could not find version to update in {pyproject_path}. Expected [project].version or [tool.poetry].version."
    )
