"""Auxiliary file generation: ignore rules, lint/format config, helpers.

These files are fixed fragments keyed by feature the same way manifest
edits are.  Text fragments are Jinja2 templates under ``fragments/``; JSON
configuration files are built from plain data and serialised like the
manifest.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..features import FeatureFlag, ordered
from ..utils import ensure_dir, save_json
from .templates import TemplateRenderer


@dataclass(frozen=True)
class AuxFragment:
    """One auxiliary file: either a rendered template or JSON data."""

    output: str
    template: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


ESLINT_CONFIG: dict[str, Any] = {
    "extends": [
        "eslint:recommended",
        "plugin:react/recommended",
        "plugin:react-hooks/recommended",
        "prettier",
    ],
    "plugins": ["react", "import"],
    "parserOptions": {
        "ecmaVersion": 2022,
        "sourceType": "module",
        "ecmaFeatures": {"jsx": True},
    },
    "settings": {"react": {"version": "detect"}},
    "rules": {
        "react/react-in-jsx-scope": "off",
        "react/prop-types": "off",
    },
}

PRETTIER_CONFIG: dict[str, Any] = {
    "semi": True,
    "singleQuote": True,
    "tabWidth": 2,
    "trailingComma": "es5",
}

# Written for every project regardless of the selection.
BASE_FRAGMENTS: tuple[AuxFragment, ...] = (
    AuxFragment(".gitignore", template="gitignore.j2"),
    AuxFragment("README.md", template="README.md.j2"),
)

FEATURE_FRAGMENTS: dict[FeatureFlag, tuple[AuxFragment, ...]] = {
    FeatureFlag.LINTING: (
        AuxFragment(".eslintrc.json", data=ESLINT_CONFIG),
        AuxFragment(".prettierrc", data=PRETTIER_CONFIG),
    ),
    FeatureFlag.CODE_SPLITTING: (
        AuxFragment("src/utils/loadable.jsx", template="loadable.jsx.j2"),
    ),
}

SUPPLEMENTARY_DIRECTORIES: tuple[str, ...] = (
    "src/assets",
    "src/components/common",
    "src/components/layout",
    "src/hooks",
    "src/utils",
    "src/services",
    "src/constants",
    "src/types",
)


def fragments_for(features: Iterable[FeatureFlag]) -> list[AuxFragment]:
    """Return the fragments to write for *features*, base fragments first."""
    selected: list[AuxFragment] = list(BASE_FRAGMENTS)
    for flag in ordered(features):
        selected.extend(FEATURE_FRAGMENTS.get(flag, ()))
    return selected


class AuxGenerator:
    """Writes the auxiliary files and supplementary directories."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate(
        self,
        project_root: Path,
        features: Iterable[FeatureFlag],
        context: dict[str, Any],
    ) -> list[Path]:
        """Create supplementary directories and write every selected fragment.

        Args:
            project_root: The generated project's root directory.
            features: Selected flags.
            context: Template rendering context (project name, commands...).

        Returns:
            Paths of the written files, in write order.
        """
        for rel in SUPPLEMENTARY_DIRECTORIES:
            await asyncio.to_thread(ensure_dir, project_root / rel)

        written: list[Path] = []
        for fragment in fragments_for(features):
            out = project_root / fragment.output
            if fragment.template is not None:
                path = await self.renderer.render_to_file(fragment.template, out, context)
            else:
                path = await save_json(fragment.data, out)
            written.append(path)
        return written
