"""Main scaffolding orchestrator.

Takes an immutable ``ProjectRequest`` and walks it through the scaffolding
steps in strict order::

    VALIDATING -> PREPARING -> MATERIALIZING -> MANIFEST_WRITING
               -> AUX_WRITING -> INSTALLING -> DONE

Any step may end the run in ``FAILED``.  Nothing is rolled back: once files
have been written they stay on disk and the raised error says what to clean
up or re-run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import ScaffoldConfig
from ..errors import (
    FileWriteError,
    InvalidRequest,
    NonEmptyTargetRejected,
)
from ..features import FEATURE_CATALOG, FeatureFlag, default_features, ordered, validate_features
from ..package_managers import PROFILES, PackageManagerProfile, PackageManagerRegistry, resolve
from ..utils import (
    ensure_dir,
    is_dir_empty,
    print_step_header,
    print_warning,
    save_json,
)
from .aux_gen import AuxGenerator
from .manifest import Manifest, synthesize
from .materializer import TemplateMaterializer
from .patches import FEATURE_PATCHES, PatchResult, apply_patch
from .templates import TemplateRenderer

PROJECT_NAME_PATTERN = r"^[A-Za-z0-9_-]+$"


# ---------------------------------------------------------------------------
# Request model
# ---------------------------------------------------------------------------


class ProjectRequest(BaseModel):
    """Validated, immutable description of the project to scaffold."""

    model_config = ConfigDict(frozen=True)

    target_path: Path = Field(..., description="Absolute path of the project directory")
    project_name: str = Field(..., pattern=PROJECT_NAME_PATTERN)
    package_manager: str = Field(default="npm")
    features: frozenset[FeatureFlag] = Field(default_factory=default_features)

    @field_validator("target_path")
    @classmethod
    def _require_absolute(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"target path must be absolute, got {value}")
        return value

    @field_validator("package_manager")
    @classmethod
    def _require_known_manager(cls, value: str) -> str:
        if value not in PROFILES:
            raise ValueError(
                f"unknown package manager {value!r} (expected one of {', '.join(PROFILES)})"
            )
        return value

    @classmethod
    def create(
        cls,
        target_path: str | Path,
        project_name: str,
        package_manager: str = "npm",
        features: Iterable[str | FeatureFlag] | None = None,
    ) -> "ProjectRequest":
        """Build a request from raw input.

        Relative target paths are resolved against the working directory and
        ``features=None`` applies the documented defaults.

        Raises:
            InvalidFeatureName: For a feature outside the catalog.
            UnknownPackageManager: For an unregistered package manager.
            InvalidRequest: For any other malformed field.
        """
        flags = validate_features(features)
        resolve(package_manager)
        try:
            return cls(
                target_path=Path(target_path).expanduser().resolve(),
                project_name=project_name,
                package_manager=package_manager,
                features=flags,
            )
        except ValidationError as exc:
            raise InvalidRequest(_describe_validation_error(exc)) from None


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "Invalid project request: " + "; ".join(parts)


# ---------------------------------------------------------------------------
# Working state
# ---------------------------------------------------------------------------


class ScaffoldStep(str, Enum):
    """States of a scaffolding run."""

    VALIDATING = "validating"
    PREPARING = "preparing"
    MATERIALIZING = "materializing"
    MANIFEST_WRITING = "manifest_writing"
    AUX_WRITING = "aux_writing"
    INSTALLING = "installing"
    DONE = "done"
    FAILED = "failed"


STEP_TITLES: dict[ScaffoldStep, str] = {
    ScaffoldStep.VALIDATING: "Validating request",
    ScaffoldStep.PREPARING: "Preparing target directory",
    ScaffoldStep.MATERIALIZING: "Copying template files",
    ScaffoldStep.MANIFEST_WRITING: "Writing package manifest",
    ScaffoldStep.AUX_WRITING: "Writing configuration files",
    ScaffoldStep.INSTALLING: "Installing dependencies",
}


@dataclass
class WorkingState:
    """Everything a run produces, owned by one ``ProjectGenerator``."""

    step: ScaffoldStep = ScaffoldStep.VALIDATING
    profile: PackageManagerProfile | None = None
    copied_files: list[Path] = field(default_factory=list)
    manifest: Manifest | None = None
    manifest_path: Path | None = None
    patch_results: list[PatchResult] = field(default_factory=list)
    aux_files: list[Path] = field(default_factory=list)
    installed: bool = False
    warnings: list[str] = field(default_factory=list)
    failed_step: ScaffoldStep | None = None
    error: Exception | None = None

    def warn(self, message: str) -> None:
        """Record and print a non-fatal warning."""
        self.warnings.append(message)
        print_warning(f"Warning: {message}")

    @property
    def succeeded(self) -> bool:
        return self.step is ScaffoldStep.DONE


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Scaffolding orchestrator.

    Given a ``ProjectRequest``, produces a project directory containing:
    - the static Vite + React + Tailwind + shadcn/ui base template
    - ``package.json`` synthesized from the selected features
    - feature patches to copied config files (container queries)
    - ``.gitignore``, README, lint/format config and helper sources
    - installed dependencies, via the selected package manager
    """

    def __init__(
        self,
        request: ProjectRequest,
        config: ScaffoldConfig | None = None,
        registry: PackageManagerRegistry | None = None,
    ) -> None:
        self.request = request
        self.config = config or ScaffoldConfig()
        self.registry = registry or PackageManagerRegistry(
            probe_timeout=self.config.probe_timeout,
            install_timeout=self.config.install_timeout,
            allow_self_heal=self.config.allow_self_heal,
        )
        self.materializer = TemplateMaterializer(
            self.config.templates_dir, self.config.required_config_files
        )
        self.aux_gen = AuxGenerator(TemplateRenderer(self.config.fragments_dir))
        self.state = WorkingState()
        self._proceed_if_not_empty = False

    # -- Public API --------------------------------------------------------

    async def generate(self, proceed_if_not_empty: bool = False) -> WorkingState:
        """Run every step in order.

        Args:
            proceed_if_not_empty: Consent, obtained by the caller, to write
                into a target directory that already has entries.

        Returns:
            The final ``WorkingState`` (step ``DONE``).

        Raises:
            ScaffoldError: The failure of the first step that failed.  The
                state is left in ``FAILED`` with ``failed_step`` set; the
                same holds for any unexpected exception.
        """
        self.state = WorkingState()
        self._proceed_if_not_empty = proceed_if_not_empty

        steps: list[tuple[ScaffoldStep, Callable[[], Awaitable[None]]]] = [
            (ScaffoldStep.VALIDATING, self._validate),
            (ScaffoldStep.PREPARING, self._prepare),
            (ScaffoldStep.MATERIALIZING, self._materialize),
            (ScaffoldStep.MANIFEST_WRITING, self._write_manifest),
            (ScaffoldStep.AUX_WRITING, self._write_aux_files),
        ]
        if self.config.install:
            steps.append((ScaffoldStep.INSTALLING, self._install))

        for step, handler in steps:
            self.state.step = step
            print_step_header(STEP_TITLES[step])
            try:
                await handler()
            except Exception as exc:
                self.state.failed_step = step
                self.state.error = exc
                self.state.step = ScaffoldStep.FAILED
                raise

        self.state.step = ScaffoldStep.DONE
        return self.state

    def next_steps(self) -> list[str]:
        """Commands the user runs after a successful scaffold."""
        profile = self.state.profile or resolve(self.request.package_manager)
        commands = [f"cd {self.request.target_path}"]
        if not self.state.installed:
            commands.append(profile.install_command)
        commands.append(profile.run_command_for("dev"))
        return commands

    # -- Steps -------------------------------------------------------------

    async def _validate(self) -> None:
        """Re-check the request; it may have been built without validation."""
        try:
            request = ProjectRequest.model_validate(
                {
                    "target_path": self.request.target_path,
                    "project_name": self.request.project_name,
                    "package_manager": self.request.package_manager,
                    "features": validate_features(self.request.features),
                }
            )
        except ValidationError as exc:
            raise InvalidRequest(_describe_validation_error(exc)) from None

        target = request.target_path
        if target.exists() and not target.is_dir():
            raise InvalidRequest(f"Target path exists and is not a directory: {target}")
        self.state.profile = resolve(request.package_manager)

    async def _prepare(self) -> None:
        target = self.request.target_path
        try:
            empty = is_dir_empty(target)
        except OSError as exc:
            raise InvalidRequest(f"Cannot read target directory {target}: {exc}") from exc
        if not empty and not self._proceed_if_not_empty:
            raise NonEmptyTargetRejected(
                f"Target directory is not empty: {target}",
                hint="Nothing was written. Confirm to scaffold into it anyway (--force).",
            )
        try:
            await asyncio.to_thread(ensure_dir, target)
        except OSError as exc:
            raise InvalidRequest(f"Cannot create target directory {target}: {exc}") from exc

    async def _materialize(self) -> None:
        result = await self.materializer.materialize(self.request.target_path)
        self.state.copied_files = result.copied
        for name in result.missing_config_files:
            self.state.warn(f"Could not find {name} in template")

    async def _write_manifest(self) -> None:
        request = self.request
        manifest = synthesize(
            request.project_name, request.package_manager, request.features
        )
        path = request.target_path / self.config.manifest_filename
        try:
            await save_json(manifest.as_dict(), path)
        except OSError as exc:
            raise FileWriteError(path, exc) from exc
        self.state.manifest = manifest
        self.state.manifest_path = path

        # Patches edit copied files, so they only run after materialization.
        for flag in ordered(request.features):
            for patch in FEATURE_PATCHES.get(flag, ()):
                try:
                    result = await apply_patch(patch, request.target_path)
                except OSError as exc:
                    raise FileWriteError(request.target_path / patch.target, exc) from exc
                self.state.patch_results.append(result)
                if result.skipped:
                    self.state.warn(f"Skipped patch '{patch.name}': {result.reason}")

    async def _write_aux_files(self) -> None:
        try:
            self.state.aux_files = await self.aux_gen.generate(
                self.request.target_path, self.request.features, self._build_context()
            )
        except OSError as exc:
            raise FileWriteError(self.request.target_path, exc) from exc

    async def _install(self) -> None:
        profile = self.state.profile or resolve(self.request.package_manager)
        self.state.warnings.extend(await self.registry.ensure_available(profile))
        await self.registry.install(profile, self.request.target_path)
        self.state.installed = True

    # -- Context building --------------------------------------------------

    def _build_context(self) -> dict[str, Any]:
        """Build the Jinja2 context for auxiliary fragments."""
        profile = self.state.profile or resolve(self.request.package_manager)
        manifest = self.state.manifest
        return {
            "project_name": self.request.project_name,
            "package_manager": profile.id,
            "install_command": profile.install_command,
            "run_prefix": profile.run_prefix,
            "scripts": dict(manifest.scripts) if manifest else {},
            "features": [
                FEATURE_CATALOG[flag].title for flag in ordered(self.request.features)
            ],
        }
