"""Named textual patches applied to files copied from the base template.

A patch inserts one snippet right after an anchor in a single target file.
The marker check makes every patch idempotent; a missing file or anchor
skips the patch with a warning instead of guessing where the text belongs.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..features import FeatureFlag


class PatchStatus(str, Enum):
    """Outcome of applying a patch."""

    PATCHED = "patched"
    ALREADY_APPLIED = "already_applied"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TemplatePatch:
    """An idempotent insertion into one generated file.

    Attributes:
        name: Identifier used in messages.
        target: Path of the file relative to the project root.
        marker: Substring whose presence means the patch is already applied.
        anchor: Regular expression matching the anchor token; the snippet is
            inserted right after the first match.
        snippet: Text to insert.
    """

    name: str
    target: str
    marker: str
    anchor: str
    snippet: str

    def apply_to_text(self, text: str) -> tuple[str, PatchStatus]:
        """Apply the patch to *text* and return ``(new_text, status)``."""
        if self.marker in text:
            return text, PatchStatus.ALREADY_APPLIED
        match = re.search(self.anchor, text)
        if match is None:
            return text, PatchStatus.SKIPPED
        end = match.end()
        return text[:end] + self.snippet + text[end:], PatchStatus.PATCHED


@dataclass(frozen=True)
class PatchResult:
    """What happened when a patch ran against a project directory."""

    patch: TemplatePatch
    status: PatchStatus
    reason: str = ""

    @property
    def skipped(self) -> bool:
        return self.status is PatchStatus.SKIPPED


CONTAINER_QUERIES_PATCH = TemplatePatch(
    name="container-queries",
    target="tailwind.config.js",
    marker="@tailwindcss/container-queries",
    anchor=r"plugins\s*:\s*\[",
    snippet='\n    require("@tailwindcss/container-queries"),',
)

FEATURE_PATCHES: dict[FeatureFlag, tuple[TemplatePatch, ...]] = {
    FeatureFlag.CONTAINER_QUERIES: (CONTAINER_QUERIES_PATCH,),
}


def apply_patch_sync(patch: TemplatePatch, target_dir: Path) -> PatchResult:
    """Apply *patch* to its target file under *target_dir*."""
    path = Path(target_dir) / patch.target
    if not path.is_file():
        return PatchResult(
            patch, PatchStatus.SKIPPED, f"{patch.target} does not exist"
        )

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        return PatchResult(
            patch,
            PatchStatus.SKIPPED,
            f"{patch.target} is not valid UTF-8 ({exc.reason}); file left unchanged",
        )
    new_text, status = patch.apply_to_text(text)
    if status is PatchStatus.SKIPPED:
        return PatchResult(
            patch,
            status,
            f"anchor {patch.anchor!r} not found in {patch.target}; file left unchanged",
        )
    if status is PatchStatus.PATCHED:
        path.write_text(new_text, encoding="utf-8")
    return PatchResult(patch, status)


async def apply_patch(patch: TemplatePatch, target_dir: Path) -> PatchResult:
    """Async wrapper around :func:`apply_patch_sync`."""
    return await asyncio.to_thread(apply_patch_sync, patch, target_dir)
