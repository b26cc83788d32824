"""vscode-extension preset: package a .vsix and publish it.

Publishes to the Visual Studio Marketplace with ``vsce`` and optionally
to Open VSX with ``ovsx``. The package can instead (or also) be attached
to the GitHub release.

Before packaging, the marketplace files are prepared: CHANGELOG.md becomes
a pointer to the GitHub releases page and the "Extension Development Notes"
section is removed from the README. Extensions with code
(``src/extension.ts``) are packaged from ``out/``, so the prepared files and
the LICENSE go there instead of the project root.
"""

from __future__ import annotations

import logging
import re
import shutil
from typing import TYPE_CHECKING

from release_pilot.exceptions import PresetError
from release_pilot.presets.base import PresetResult, ReleaseAsset, run_step
from release_pilot.project import get_package_name

if TYPE_CHECKING:
    from pathlib import Path

    from release_pilot.presets.base import PresetContext

logger = logging.getLogger(__name__)

VSIX_NAME = "output.vsix"
OUT_DIR = "out"
DEV_NOTES_HEADING = "Extension Development Notes"
COPY_FILES = ("LICENSE",)

_HEADING_RE = re.compile(r"^(?P<level>#{1,6})\s+(?P<title>.*?)\s*#*\s*$")


def remove_markdown_section(text: str, title: str) -> str:
    """Drop the section headed ``title`` up to the next heading of the same or higher level."""
    kept: list[str] = []
    skip_level: int | None = None
    in_fence = False
    for line in text.splitlines(keepends=True):
        if line.lstrip().startswith(("```", "~~~")):
            in_fence = not in_fence
        heading = None if in_fence else _HEADING_RE.match(line.rstrip("\n"))
        if heading:
            level = len(heading.group("level"))
            if skip_level is not None and level <= skip_level:
                skip_level = None
            if skip_level is None and heading.group("title") == title:
                skip_level = level
        if skip_level is None:
            kept.append(line)
    return "".join(kept)


def changelog_stub(repo_url: str) -> str:
    return (
        "# Changelog\n"
        "Changelog will go here in future releases. For now you can view "
        f"[changelog at GitHub]({repo_url.rstrip('/')}/releases)"
    )


def _find_readme(project_path: Path) -> Path | None:
    for candidate in sorted(project_path.iterdir()):
        if candidate.is_file() and candidate.name.lower() == "readme.md":
            return candidate
    return None


class VscodeExtensionPreset:
    name = "vscode-extension"

    def prepare(self, context: PresetContext) -> Path:
        """Write the marketplace CHANGELOG and README; return the packaging directory."""
        project_path = context.project_path
        has_code = (project_path / "src" / "extension.ts").is_file()
        target = project_path / OUT_DIR if has_code else project_path
        target.mkdir(parents=True, exist_ok=True)

        if context.repo_url:
            (target / "CHANGELOG.md").write_text(changelog_stub(context.repo_url), encoding="utf-8")
        else:
            logger.warning("Repository URL unknown, leaving CHANGELOG.md untouched")

        if has_code:
            for name in COPY_FILES:
                source = project_path / name
                if source.is_file():
                    shutil.copyfile(source, target / name)

        readme = _find_readme(project_path)
        if readme is not None:
            content = remove_markdown_section(readme.read_text(encoding="utf-8"), DEV_NOTES_HEADING)
            (target / readme.name if has_code else readme).write_text(content, encoding="utf-8")
        return target

    def package(self, context: PresetContext) -> Path:
        """Build the .vsix and enforce the configured size limit."""
        package_dir = self.prepare(context)
        vsix_path = context.project_path / VSIX_NAME
        run_step(["vsce", "package", "--out", str(vsix_path)], package_dir)

        limit = context.config.vscode_extension.size_limit
        size = vsix_path.stat().st_size
        if size > limit:
            raise PresetError(f"{VSIX_NAME} is {size} bytes, exceeding the {limit} byte limit")
        return vsix_path

    def run(self, context: PresetContext) -> PresetResult:
        options = context.config.vscode_extension
        vsix_path = self.package(context)

        if context.do_publish:
            if options.publish_marketplace:
                args = ["vsce", "publish", "--packagePath", str(vsix_path)]
                if context.pre_release:
                    args.append("--pre-release")
                run_step(args, context.project_path, capture=False)
            if options.publish_ovsx:
                args = ["ovsx", "publish", str(vsix_path)]
                if context.pre_release:
                    args.append("--pre-release")
                run_step(args, context.project_path, capture=False)
        else:
            logger.info("Skipping marketplace publishing")

        if not options.attach_vsix:
            return PresetResult()
        name = get_package_name(context.project_path) or "extension"
        return PresetResult(assets=[ReleaseAsset(name=f"{name}-{context.version}.vsix", path=vsix_path)])
