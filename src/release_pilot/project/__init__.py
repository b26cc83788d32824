"""Project manifest access.

Dispatches to package.json or pyproject.toml, whichever the project has;
package.json wins when both exist since the JS presets publish from it.
"""

from __future__ import annotations

from pathlib import Path

from release_pilot.exceptions import ManifestNotFoundError
from release_pilot.project.package_json import (
    get_package_json_name,
    get_package_json_version,
    update_package_json_version,
)
from release_pilot.project.pyproject import (
    get_pyproject_name,
    get_pyproject_version,
    update_pyproject_version,
)

PACKAGE_JSON = "package.json"
PYPROJECT = "pyproject.toml"


def find_manifest(project_path: Path) -> Path:
    """Locate the manifest in ``project_path``.

    Raises:
        ManifestNotFoundError: If neither file exists
    """
    for name in (PACKAGE_JSON, PYPROJECT):
        candidate = project_path / name
        if candidate.is_file():
            return candidate
    raise ManifestNotFoundError(f"No {PACKAGE_JSON} or {PYPROJECT} in {project_path}")


def get_manifest_version(project_path: Path) -> str:
    manifest = find_manifest(project_path)
    if manifest.name == PACKAGE_JSON:
        return get_package_json_version(manifest)
    return get_pyproject_version(manifest)


def get_package_name(project_path: Path) -> str | None:
    manifest = find_manifest(project_path)
    if manifest.name == PACKAGE_JSON:
        return get_package_json_name(manifest)
    return get_pyproject_name(manifest)


def update_manifest_version(project_path: Path, new_version: str) -> Path:
    """Persist ``new_version`` and return the manifest path."""
    manifest = find_manifest(project_path)
    if manifest.name == PACKAGE_JSON:
        return update_package_json_version(manifest, new_version)
    return update_pyproject_version(manifest, new_version)


__all__ = [
    "find_manifest",
    "get_manifest_version",
    "get_package_name",
    "update_manifest_version",
]
