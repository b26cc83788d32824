"""npm preset: publish the package to the registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from release_pilot.presets.base import PresetResult, run_step

if TYPE_CHECKING:
    from release_pilot.presets.base import PresetContext

logger = logging.getLogger(__name__)


class NpmPreset:
    name = "npm"

    def publish_args(self, context: PresetContext) -> list[str]:
        options = context.config.npm
        args = ["npm", "publish"]
        if options.access:
            args += ["--access", options.access]
        if context.pre_release:
            args += ["--tag", options.pre_release_dist_tag]
        return args

    def run(self, context: PresetContext) -> PresetResult:
        if not context.do_publish:
            logger.info("Skipping npm publish")
            return PresetResult()
        run_step(self.publish_args(context), context.project_path, capture=False)
        return PresetResult()
