"""package.json version manipulation for npm and VS Code extension projects."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from release_pilot.exceptions import ProjectError, VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path


def read_package_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ProjectError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ProjectError(f"{path} must contain a JSON object")
    return data


def _detect_indent(text: str) -> int | str:
    match = re.search(r"^\{\s*\n([ \t]+)\"", text)
    if match is None:
        return 2
    indent = match.group(1)
    return indent if "\t" in indent else len(indent)


def get_package_json_version(path: Path) -> str:
    """Version field of package.json.

    Raises:
        VersionNotFoundError: If there is no string ``version`` field
    """
    version = read_package_json(path).get("version")
    if not isinstance(version, str) or not version:
        raise VersionNotFoundError(f"No version field in {path}")
    return version


def get_package_json_name(path: Path) -> str | None:
    name = read_package_json(path).get("name")
    return name if isinstance(name, str) else None


def update_package_json_version(path: Path, new_version: str) -> Path:
    """Write ``new_version`` to package.json, keeping key order and indentation."""
    text = path.read_text(encoding="utf-8")
    data = read_package_json(path)
    data["version"] = new_version
    output = json.dumps(data, indent=_detect_indent(text), ensure_ascii=False)
    if text.endswith("\n"):
        output += "\n"
    path.write_text(output, encoding="utf-8")
    return path
