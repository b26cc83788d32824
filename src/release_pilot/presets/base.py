"""Shared pieces for publishing presets.

A preset receives a :class:`PresetContext` after the new version has been
written to the manifest and returns a :class:`PresetResult` listing files
to attach to the GitHub release.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from release_pilot.exceptions import PresetCommandError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from release_pilot.config.models import PresetsConfig
    from release_pilot.core.version import Version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseAsset:
    """A file to upload to the release."""

    name: str
    path: Path


@dataclass(frozen=True)
class PresetResult:
    assets: list[ReleaseAsset] = field(default_factory=list)


@dataclass(frozen=True)
class PresetContext:
    """Everything a preset may need to publish."""

    project_path: Path
    version: Version | None
    config: PresetsConfig
    do_publish: bool = True
    pre_release: bool = False
    repo_url: str | None = None


class Preset(Protocol):
    name: str

    def run(self, context: PresetContext) -> PresetResult: ...


def run_step(args: Sequence[str], cwd: Path, *, capture: bool = True) -> str:
    """Run an external command as one release step.

    Args:
        args: Command and arguments
        cwd: Working directory
        capture: Capture output instead of streaming it to the terminal

    Returns:
        Captured stdout (empty when not capturing)

    Raises:
        PresetCommandError: If the command is missing or exits non-zero
    """
    command = " ".join(args)
    logger.info("Running %s", command)
    try:
        result = subprocess.run(
            list(args),
            cwd=cwd,
            capture_output=capture,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise PresetCommandError(f"Command not found: {args[0]}") from e
    except subprocess.CalledProcessError as e:
        raise PresetCommandError(
            f"{command} failed with exit code {e.returncode}",
            stderr=e.stderr,
        ) from e
    return (result.stdout or "").strip()
