"""shadcn-starter configuration.

Typed configuration for a scaffolding run. All settings use Pydantic v2
models so they can be validated at construction time and loaded from JSON
or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

PACKAGE_ROOT = Path(__file__).parent

DEFAULT_TEMPLATES_DIR = PACKAGE_ROOT / "templates" / "base"
DEFAULT_FRAGMENTS_DIR = PACKAGE_ROOT / "scaffolder" / "fragments"

# Re-verified after the bulk copy; a missing entry only produces a warning.
REQUIRED_CONFIG_FILES: list[str] = [
    "postcss.config.js",
    "tailwind.config.js",
    "vite.config.js",
    "index.html",
    "jsconfig.json",
]

_FALSE_VALUES = {"0", "false", "no", "off"}


class ScaffoldConfig(BaseModel):
    """Tuning knobs and template locations for one scaffolding run.

    Instances are typically created once by the CLI entry point and then
    handed to ``ProjectGenerator``.
    """

    templates_dir: Path = Field(default=DEFAULT_TEMPLATES_DIR)
    fragments_dir: Path = Field(default=DEFAULT_FRAGMENTS_DIR)
    manifest_filename: str = Field(default="package.json", min_length=1)
    required_config_files: list[str] = Field(
        default_factory=lambda: list(REQUIRED_CONFIG_FILES)
    )
    probe_timeout: int = Field(
        default=30, ge=1, description="Version probe timeout in seconds"
    )
    install_timeout: int = Field(
        default=900, ge=30, description="Dependency install timeout in seconds"
    )
    allow_self_heal: bool = Field(
        default=True,
        description="Try installing a missing bun binary through npm once",
    )
    install: bool = Field(
        default=True, description="Run the package manager after scaffolding"
    )

    @classmethod
    def load(cls, path: Path) -> "ScaffoldConfig":
        """Load a configuration from a JSON file.

        Args:
            path: The JSON file to read.

        Returns:
            A validated ``ScaffoldConfig`` instance.
        """
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            SHADCN_STARTER_TEMPLATES_DIR, SHADCN_STARTER_PROBE_TIMEOUT,
            SHADCN_STARTER_INSTALL_TIMEOUT, SHADCN_STARTER_SELF_HEAL,
            SHADCN_STARTER_SKIP_INSTALL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SHADCN_STARTER_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["SHADCN_STARTER_TEMPLATES_DIR"])
        if os.environ.get("SHADCN_STARTER_PROBE_TIMEOUT"):
            kwargs["probe_timeout"] = int(os.environ["SHADCN_STARTER_PROBE_TIMEOUT"])
        if os.environ.get("SHADCN_STARTER_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["SHADCN_STARTER_INSTALL_TIMEOUT"])
        if os.environ.get("SHADCN_STARTER_SELF_HEAL"):
            kwargs["allow_self_heal"] = (
                os.environ["SHADCN_STARTER_SELF_HEAL"].strip().lower() not in _FALSE_VALUES
            )
        if os.environ.get("SHADCN_STARTER_SKIP_INSTALL"):
            kwargs["install"] = (
                os.environ["SHADCN_STARTER_SKIP_INSTALL"].strip().lower() in _FALSE_VALUES
            )
        return cls(**kwargs)
