"""Copies the static base template into a target directory.

The copy preserves relative paths and overwrites existing files; the caller
is responsible for having obtained consent for a non-empty target.  Files
copied before a failure stay where they are.
"""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import TemplateCopyError


@dataclass
class MaterializeResult:
    """Files copied by one materialization and config files found missing."""

    copied: list[Path] = field(default_factory=list)
    missing_config_files: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.copied)


class TemplateMaterializer:
    """Bulk-copies a template tree and re-verifies its config files.

    Args:
        template_root: Root of the static template tree.
        required_config_files: Paths (relative to the project root) that
            should exist after the copy.  Missing entries are reported, not
            fatal, since some template variants omit optional config files.
    """

    def __init__(
        self,
        template_root: str | Path,
        required_config_files: list[str] | None = None,
    ) -> None:
        self.template_root = Path(template_root)
        self.required_config_files = list(required_config_files or [])

    def list_files(self) -> list[Path]:
        """Return every template file, relative to the template root, sorted."""
        if not self.template_root.is_dir():
            raise TemplateCopyError(
                f"Template directory not found: {self.template_root}"
            )
        return sorted(
            p.relative_to(self.template_root)
            for p in self.template_root.rglob("*")
            if p.is_file()
        )

    def materialize_sync(self, target_dir: str | Path) -> MaterializeResult:
        """Copy the template into *target_dir*.

        Raises:
            TemplateCopyError: If the template root is missing or a file
                cannot be copied.  ``copied`` on the error tells how far the
                copy got.
        """
        target = Path(target_dir)
        result = MaterializeResult()

        for rel in self.list_files():
            destination = target / rel
            if destination.is_dir():
                raise TemplateCopyError(
                    f"Cannot copy {rel}: {destination} is a directory",
                    copied=result.count,
                )
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(self.template_root / rel, destination)
            except OSError as exc:
                raise TemplateCopyError(
                    f"Failed to copy {rel} into {target}: {exc}",
                    copied=result.count,
                ) from exc
            result.copied.append(destination)

        result.missing_config_files = [
            name for name in self.required_config_files
            if not (target / name).is_file()
        ]
        return result

    async def materialize(self, target_dir: str | Path) -> MaterializeResult:
        """Async wrapper around :meth:`materialize_sync`."""
        return await asyncio.to_thread(self.materialize_sync, target_dir)
