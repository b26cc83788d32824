"""Command line interface for release-pilot."""

from __future__ import annotations

from release_pilot.cli.app import main

__all__ = ["main"]
