"""Manifest synthesis for generated projects.

Builds the ``package.json`` document from a fixed base plus one additive
edit per selected feature.  Edits are plain data registered in
``FEATURE_EDITS`` and applied by a single fold over the selected flags in
declaration order, so identical input always yields an identical manifest.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..features import FeatureFlag, ordered
from ..package_managers import resolve


class Manifest(BaseModel):
    """In-memory ``package.json``.

    ``tools`` holds tool-specific top-level sections (``lint-staged``,
    ``pnpm``...); they are emitted after the dependency maps.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    private: bool = True
    version: str = "0.0.0"
    type: str = "module"
    scripts: dict[str, str] = Field(default_factory=dict)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="devDependencies"
    )
    tools: dict[str, Any] = Field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Return the document exactly as it is written to disk."""
        data: dict[str, Any] = {
            "name": self.name,
            "private": self.private,
            "version": self.version,
            "type": self.type,
            "scripts": dict(self.scripts),
            "dependencies": dict(self.dependencies),
            "devDependencies": dict(self.dev_dependencies),
        }
        for key, value in self.tools.items():
            data[key] = copy.deepcopy(value)
        return data


@dataclass(frozen=True)
class ManifestEdit:
    """Keys a feature inserts or overwrites.  Edits never delete keys."""

    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    scripts: dict[str, str] = field(default_factory=dict)
    tools: dict[str, Any] = field(default_factory=dict)

    def apply(self, manifest: Manifest) -> Manifest:
        """Return a copy of *manifest* with this edit applied (last writer wins)."""
        updated = manifest.model_copy(deep=True)
        updated.dependencies.update(self.dependencies)
        updated.dev_dependencies.update(self.dev_dependencies)
        updated.scripts.update(self.scripts)
        for key, value in self.tools.items():
            updated.tools[key] = copy.deepcopy(value)
        return updated


# ---------------------------------------------------------------------------
# Base manifest
# ---------------------------------------------------------------------------

BASE_SCRIPTS: dict[str, str] = {
    "dev": "vite",
    "build": "vite build",
    "lint": "eslint src --ext js,jsx --report-unused-disable-directives --max-warnings 0",
    "preview": "vite preview",
}

BASE_DEPENDENCIES: dict[str, str] = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "@radix-ui/react-slot": "^1.0.2",
    "@radix-ui/react-dialog": "^1.0.5",
    "@radix-ui/react-dropdown-menu": "^2.0.6",
    "@radix-ui/react-navigation-menu": "^1.2.3",
    "@radix-ui/react-label": "^2.0.2",
    "@radix-ui/react-select": "^2.0.0",
    "@radix-ui/react-toast": "^1.1.5",
    "class-variance-authority": "^0.7.0",
    "clsx": "^2.1.0",
    "tailwind-merge": "^2.2.1",
    "tailwindcss-animate": "^1.0.7",
    "lucide-react": "^0.330.0",
}

BASE_DEV_DEPENDENCIES: dict[str, str] = {
    "@types/node": "^20.11.19",
    "@types/react": "^18.2.56",
    "@types/react-dom": "^18.2.19",
    "@vitejs/plugin-react": "^4.2.1",
    "autoprefixer": "^10.4.17",
    "postcss": "^8.4.35",
    "tailwindcss": "^3.4.1",
    "@tailwindcss/typography": "^0.5.10",
    "vite": "^5.1.3",
}


def base_manifest(project_name: str) -> Manifest:
    """Return the manifest every project starts from."""
    return Manifest(
        name=project_name,
        scripts=dict(BASE_SCRIPTS),
        dependencies=dict(BASE_DEPENDENCIES),
        dev_dependencies=dict(BASE_DEV_DEPENDENCIES),
    )


# ---------------------------------------------------------------------------
# Feature edits
# ---------------------------------------------------------------------------

FEATURE_EDITS: dict[FeatureFlag, ManifestEdit] = {
    FeatureFlag.ROUTER: ManifestEdit(
        dependencies={"react-router-dom": "^6.22.0"},
    ),
    FeatureFlag.STATE_MANAGEMENT: ManifestEdit(
        dependencies={"zustand": "^4.5.0"},
    ),
    # Dark mode and the example pages are template content only.
    FeatureFlag.DARK_MODE: ManifestEdit(),
    FeatureFlag.EXAMPLES: ManifestEdit(),
    FeatureFlag.CONTAINER_QUERIES: ManifestEdit(
        dev_dependencies={"@tailwindcss/container-queries": "^0.1.1"},
    ),
    FeatureFlag.LINTING: ManifestEdit(
        dev_dependencies={
            "eslint": "^8.56.0",
            "eslint-plugin-react": "^7.33.2",
            "eslint-plugin-react-hooks": "^4.6.0",
            "eslint-plugin-import": "^2.29.1",
            "eslint-config-prettier": "^9.1.0",
            "prettier": "^3.2.5",
            "husky": "^9.0.11",
            "lint-staged": "^15.2.2",
        },
        scripts={
            "lint": "eslint . --ext .js,.jsx --fix",
            "format": "prettier --write .",
            "prepare": "husky",
        },
        tools={
            "lint-staged": {
                "*.{js,jsx}": ["eslint --fix", "prettier --write"],
                "*.{json,md}": ["prettier --write"],
            },
        },
    ),
    FeatureFlag.CODE_SPLITTING: ManifestEdit(
        dev_dependencies={"@rollup/plugin-dynamic-import-vars": "^2.1.2"},
    ),
    FeatureFlag.PWA: ManifestEdit(
        dev_dependencies={"vite-plugin-pwa": "^0.17.4"},
    ),
    FeatureFlag.IMAGE_OPTIMIZATION: ManifestEdit(
        dev_dependencies={"sharp": "^0.33.2"},
    ),
}

# pnpm refuses to run install scripts of packages that are not listed.
_BUILD_SCRIPT_PACKAGES = ("esbuild", "sharp")


def _package_manager_edit(package_manager: str, manifest: Manifest) -> ManifestEdit:
    """Return the manager-specific section for the synthesized manifest."""
    if package_manager != "pnpm":
        return ManifestEdit()
    declared = {**manifest.dependencies, **manifest.dev_dependencies}
    built = [
        name for name in _BUILD_SCRIPT_PACKAGES
        if name == "esbuild" or name in declared
    ]
    return ManifestEdit(tools={"pnpm": {"onlyBuiltDependencies": built}})


def synthesize(
    project_name: str,
    package_manager: str,
    features: Iterable[FeatureFlag],
) -> Manifest:
    """Build the manifest for a project.

    Args:
        project_name: Value of the ``name`` field.
        package_manager: Identifier of the selected package manager.
        features: Selected flags, in any order.

    Returns:
        The synthesized :class:`Manifest`.

    Raises:
        UnknownPackageManager: If *package_manager* is not registered.
    """
    resolve(package_manager)

    manifest = base_manifest(project_name)
    for flag in ordered(features):
        manifest = FEATURE_EDITS[flag].apply(manifest)
    return _package_manager_edit(package_manager, manifest).apply(manifest)
