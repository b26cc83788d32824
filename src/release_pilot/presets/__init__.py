"""Publishing presets."""

from __future__ import annotations

from release_pilot.exceptions import PresetError
from release_pilot.presets.base import Preset, PresetContext, PresetResult, ReleaseAsset, run_step
from release_pilot.presets.npm import NpmPreset
from release_pilot.presets.vscode_extension import VscodeExtensionPreset

PRESETS: dict[str, type[Preset]] = {
    NpmPreset.name: NpmPreset,
    VscodeExtensionPreset.name: VscodeExtensionPreset,
}


def get_preset(name: str) -> Preset:
    """Instantiate the preset called ``name``.

    Raises:
        PresetError: If no such preset exists
    """
    try:
        return PRESETS[name]()
    except KeyError:
        raise PresetError(f"Unknown preset {name!r}. Available: {', '.join(sorted(PRESETS))}") from None


__all__ = [
    "PRESETS",
    "NpmPreset",
    "Preset",
    "PresetContext",
    "PresetResult",
    "ReleaseAsset",
    "VscodeExtensionPreset",
    "get_preset",
    "run_step",
]
