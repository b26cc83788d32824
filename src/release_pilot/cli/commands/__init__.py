"""CLI command implementations."""

from __future__ import annotations

from release_pilot.cli.commands.release import ReleaseOptions, run_release
from release_pilot.cli.commands.update import run_update

__all__ = ["ReleaseOptions", "run_release", "run_update"]
