"""Configuration discovery and loading.

release-pilot reads its settings from ``[tool.release-pilot]`` in
``pyproject.toml`` or, for JavaScript projects, from the ``"release"`` key
of ``package.json``. The nearest directory containing either file wins.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from release_pilot.config.models import ReleasePilotConfig
from release_pilot.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

PYPROJECT = "pyproject.toml"
PACKAGE_JSON = "package.json"
TOOL_KEY = "release-pilot"
PACKAGE_JSON_KEY = "release"


def find_project_root(start: Path | None = None) -> Path:
    """Find the closest directory holding a supported manifest.

    Args:
        start: Directory to start searching from (defaults to cwd)

    Returns:
        Directory containing pyproject.toml or package.json

    Raises:
        ConfigNotFoundError: If no manifest exists up to the filesystem root
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / PYPROJECT).is_file() or (directory / PACKAGE_JSON).is_file():
            return directory
    raise ConfigNotFoundError(f"No {PYPROJECT} or {PACKAGE_JSON} found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"File not found: {path}")
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def load_package_json(path: Path) -> dict[str, Any]:
    """Parse a package.json file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not a JSON object
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"File not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path} must contain a JSON object")
    return data


def extract_raw_config(project_root: Path) -> dict[str, Any]:
    """Return the raw release-pilot settings found in ``project_root``.

    pyproject.toml is consulted first; an empty dict means defaults.
    """
    pyproject = project_root / PYPROJECT
    if pyproject.is_file():
        section = load_pyproject_toml(pyproject).get("tool", {}).get(TOOL_KEY)
        if section is not None:
            logger.debug("Using [tool.%s] from %s", TOOL_KEY, pyproject)
            return section

    package_json = project_root / PACKAGE_JSON
    if package_json.is_file():
        section = load_package_json(package_json).get(PACKAGE_JSON_KEY)
        if section is not None:
            if not isinstance(section, dict):
                raise ConfigValidationError(f'"{PACKAGE_JSON_KEY}" in {package_json} must be an object')
            logger.debug('Using "%s" from %s', PACKAGE_JSON_KEY, package_json)
            return section

    return {}


def load_config(path: Path | None = None) -> ReleasePilotConfig:
    """Load and validate configuration for the project at ``path``.

    Args:
        path: Project directory or any directory below it

    Returns:
        Validated configuration

    Raises:
        ConfigNotFoundError: If no manifest can be found
        ConfigValidationError: If the settings are invalid
    """
    project_root = find_project_root(path)
    raw = extract_raw_config(project_root)
    try:
        return ReleasePilotConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid release-pilot configuration:\n{e}") from e
