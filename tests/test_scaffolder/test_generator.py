"""Tests for the scaffolding orchestrator.

Covers:
- ProjectRequest construction and validation
- Step order and the FAILED state
- Non-empty target handling (fail closed, zero writes)
- Optional config file tolerance
- Patch application after the base copy
- Installation delegation and failure handling
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from shadcn_starter.config import ScaffoldConfig
from shadcn_starter.errors import (
    InstallFailed,
    InvalidFeatureName,
    InvalidRequest,
    NonEmptyTargetRejected,
    PackageManagerUnavailable,
    TemplateCopyError,
    UnknownPackageManager,
)
from shadcn_starter.features import default_features
from shadcn_starter.scaffolder.generator import (
    ProjectGenerator,
    ProjectRequest,
    ScaffoldStep,
)
from shadcn_starter.scaffolder.patches import PatchStatus

pytestmark = pytest.mark.unit


def _request(target: Path, **overrides) -> ProjectRequest:
    fields = {
        "project_name": "my-app",
        "package_manager": "npm",
        "features": [],
    }
    fields.update(overrides)
    return ProjectRequest.create(target, **fields)


# ---------------------------------------------------------------------------
# ProjectRequest
# ---------------------------------------------------------------------------


class TestProjectRequest:
    def test_create_defaults(self, target_dir: Path):
        request = ProjectRequest.create(target_dir, project_name="my-app")
        assert request.target_path == target_dir.resolve()
        assert request.package_manager == "npm"
        assert request.features == default_features()

    def test_create_resolves_relative_path(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        request = ProjectRequest.create("sub/app", project_name="app", features=[])
        assert request.target_path == tmp_path.resolve() / "sub" / "app"

    def test_is_immutable(self, target_dir: Path):
        request = _request(target_dir)
        with pytest.raises(ValidationError):
            request.project_name = "other"

    @pytest.mark.parametrize("name", ["my app", "app!", "", "émoji"])
    def test_rejects_bad_project_names(self, target_dir: Path, name: str):
        with pytest.raises(InvalidRequest, match="project_name"):
            _request(target_dir, project_name=name)

    @pytest.mark.parametrize("name", ["my-app", "My_App2", "x"])
    def test_accepts_good_project_names(self, target_dir: Path, name: str):
        assert _request(target_dir, project_name=name).project_name == name

    def test_rejects_unknown_feature(self, target_dir: Path):
        with pytest.raises(InvalidFeatureName):
            _request(target_dir, features=["router", "blockchain"])

    def test_rejects_unknown_package_manager(self, target_dir: Path):
        with pytest.raises(UnknownPackageManager):
            _request(target_dir, package_manager="pip")

    def test_direct_construction_requires_absolute_path(self):
        with pytest.raises(ValidationError):
            ProjectRequest(target_path=Path("relative"), project_name="x")


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestGenerate:
    @pytest.mark.asyncio
    async def test_full_run(self, config: ScaffoldConfig, target_dir: Path, mock_run_command):
        request = _request(target_dir, package_manager="pnpm", features=["router", "darkMode"])
        generator = ProjectGenerator(request, config)

        state = await generator.generate()

        assert state.step is ScaffoldStep.DONE
        assert state.succeeded
        assert state.installed
        assert state.warnings == []
        manifest = json.loads((target_dir / "package.json").read_text(encoding="utf-8"))
        assert manifest["name"] == "my-app"
        assert "react-router-dom" in manifest["dependencies"]
        assert manifest["scripts"]["dev"] == "vite"
        assert (target_dir / ".gitignore").is_file()
        assert (target_dir / "src" / "App.jsx").is_file()
        mock_run_command.assert_any_await(
            "pnpm install", cwd=request.target_path, timeout=config.install_timeout, capture=False
        )

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, config: ScaffoldConfig, target_dir: Path, mock_run_command):
        generator = ProjectGenerator(_request(target_dir), config)
        seen: list[ScaffoldStep] = []

        with patch(
            "shadcn_starter.scaffolder.generator.print_step_header",
            side_effect=lambda title: seen.append(generator.state.step),
        ):
            await generator.generate()

        assert seen == [
            ScaffoldStep.VALIDATING,
            ScaffoldStep.PREPARING,
            ScaffoldStep.MATERIALIZING,
            ScaffoldStep.MANIFEST_WRITING,
            ScaffoldStep.AUX_WRITING,
            ScaffoldStep.INSTALLING,
        ]

    @pytest.mark.asyncio
    async def test_skip_install(self, config: ScaffoldConfig, target_dir: Path, mock_run_command):
        config = config.model_copy(update={"install": False})
        generator = ProjectGenerator(_request(target_dir), config)

        state = await generator.generate()

        assert state.succeeded
        assert not state.installed
        mock_run_command.assert_not_awaited()
        assert generator.next_steps() == [
            f"cd {generator.request.target_path}",
            "npm install",
            "npm run dev",
        ]

    @pytest.mark.asyncio
    async def test_next_steps_after_install(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        generator = ProjectGenerator(_request(target_dir, package_manager="bun"), config)
        await generator.generate()
        assert generator.next_steps() == [f"cd {generator.request.target_path}", "bun run dev"]

    @pytest.mark.asyncio
    async def test_empty_existing_directory_needs_no_consent(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        target_dir.mkdir()
        state = await ProjectGenerator(_request(target_dir), config).generate()
        assert state.succeeded

    @pytest.mark.asyncio
    async def test_non_empty_directory_with_consent(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        target_dir.mkdir()
        (target_dir / "notes.txt").write_text("mine", encoding="utf-8")

        state = await ProjectGenerator(_request(target_dir), config).generate(
            proceed_if_not_empty=True
        )

        assert state.succeeded
        assert (target_dir / "notes.txt").read_text(encoding="utf-8") == "mine"


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


class TestPreconditions:
    @pytest.mark.asyncio
    async def test_non_empty_target_rejected_without_writes(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command, snapshot_tree
    ):
        target_dir.mkdir()
        (target_dir / "unrelated.txt").write_text("hello", encoding="utf-8")
        before = snapshot_tree(target_dir.parent)
        generator = ProjectGenerator(_request(target_dir), config)

        with pytest.raises(NonEmptyTargetRejected):
            await generator.generate(proceed_if_not_empty=False)

        assert snapshot_tree(target_dir.parent) == before
        assert sorted(p.name for p in target_dir.iterdir()) == ["unrelated.txt"]
        assert generator.state.step is ScaffoldStep.FAILED
        assert generator.state.failed_step is ScaffoldStep.PREPARING
        mock_run_command.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_built_without_validation_is_rejected(
        self, config: ScaffoldConfig, target_dir: Path
    ):
        request = ProjectRequest.model_construct(
            target_path=target_dir,
            project_name="bad name",
            package_manager="npm",
            features=frozenset(),
        )
        generator = ProjectGenerator(request, config)

        with pytest.raises(InvalidRequest):
            await generator.generate()

        assert generator.state.failed_step is ScaffoldStep.VALIDATING
        assert not target_dir.exists()

    @pytest.mark.asyncio
    async def test_target_that_is_a_file_is_rejected(self, config: ScaffoldConfig, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("x", encoding="utf-8")
        with pytest.raises(InvalidRequest, match="not a directory"):
            await ProjectGenerator(_request(target), config).generate(proceed_if_not_empty=True)

    @pytest.mark.asyncio
    async def test_unreadable_target_is_rejected(self, config: ScaffoldConfig, target_dir: Path):
        target_dir.mkdir()
        generator = ProjectGenerator(_request(target_dir), config)

        with patch(
            "shadcn_starter.scaffolder.generator.is_dir_empty",
            side_effect=PermissionError("permission denied"),
        ):
            with pytest.raises(InvalidRequest, match="Cannot read target directory"):
                await generator.generate()

        assert generator.state.step is ScaffoldStep.FAILED
        assert generator.state.failed_step is ScaffoldStep.PREPARING

    @pytest.mark.asyncio
    async def test_unexpected_error_still_marks_run_failed(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        generator = ProjectGenerator(_request(target_dir), config)

        with patch.object(
            generator.materializer, "materialize", side_effect=RuntimeError("boom")
        ):
            with pytest.raises(RuntimeError):
                await generator.generate()

        assert generator.state.step is ScaffoldStep.FAILED
        assert generator.state.failed_step is ScaffoldStep.MATERIALIZING
        assert isinstance(generator.state.error, RuntimeError)


# ---------------------------------------------------------------------------
# Materialization and patches
# ---------------------------------------------------------------------------


class TestMaterializing:
    @pytest.mark.asyncio
    async def test_missing_tailwind_config_is_a_warning(
        self, config: ScaffoldConfig, template_root: Path, target_dir: Path, mock_run_command
    ):
        (template_root / "tailwind.config.js").unlink()
        generator = ProjectGenerator(_request(target_dir), config)

        state = await generator.generate()

        assert state.step is ScaffoldStep.DONE
        assert state.warnings == ["Could not find tailwind.config.js in template"]

    @pytest.mark.asyncio
    async def test_missing_template_fails(self, tmp_path: Path, target_dir: Path, mock_run_command):
        config = ScaffoldConfig(templates_dir=tmp_path / "missing")
        generator = ProjectGenerator(_request(target_dir), config)

        with pytest.raises(TemplateCopyError):
            await generator.generate()

        assert generator.state.failed_step is ScaffoldStep.MATERIALIZING
        assert not (target_dir / "package.json").exists()
        mock_run_command.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_container_queries_patch_applied(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        request = _request(target_dir, features=["containerQueries"])
        state = await ProjectGenerator(request, config).generate()

        content = (target_dir / "tailwind.config.js").read_text(encoding="utf-8")
        assert content.count('require("@tailwindcss/container-queries")') == 1
        assert [r.status for r in state.patch_results] == [PatchStatus.PATCHED]
        manifest = json.loads((target_dir / "package.json").read_text(encoding="utf-8"))
        assert "@tailwindcss/container-queries" in manifest["devDependencies"]

    @pytest.mark.asyncio
    async def test_patch_skipped_without_config_file(
        self, config: ScaffoldConfig, template_root: Path, target_dir: Path, mock_run_command
    ):
        (template_root / "tailwind.config.js").unlink()
        request = _request(target_dir, features=["containerQueries"])

        state = await ProjectGenerator(request, config).generate()

        assert state.succeeded
        assert state.patch_results[0].skipped
        assert any("container-queries" in w for w in state.warnings)

    @pytest.mark.asyncio
    async def test_patch_skipped_when_anchor_missing(
        self, config: ScaffoldConfig, template_root: Path, target_dir: Path, mock_run_command
    ):
        (template_root / "tailwind.config.js").write_text("module.exports = {}\n", encoding="utf-8")
        request = _request(target_dir, features=["containerQueries"])

        state = await ProjectGenerator(request, config).generate()

        assert state.succeeded
        assert (target_dir / "tailwind.config.js").read_text(encoding="utf-8") == (
            "module.exports = {}\n"
        )
        assert len(state.warnings) == 1
        assert "anchor" in state.warnings[0]

    @pytest.mark.asyncio
    async def test_rerun_into_same_directory_does_not_duplicate_patch(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        request = _request(target_dir, features=["containerQueries"])
        await ProjectGenerator(request, config).generate()
        await ProjectGenerator(request, config).generate(proceed_if_not_empty=True)

        content = (target_dir / "tailwind.config.js").read_text(encoding="utf-8")
        assert content.count("@tailwindcss/container-queries") == 1

    @pytest.mark.asyncio
    async def test_non_utf8_config_in_target_skips_patch(
        self, config: ScaffoldConfig, template_root: Path, target_dir: Path, mock_run_command
    ):
        (template_root / "tailwind.config.js").unlink()
        target_dir.mkdir()
        original = "// café\nmodule.exports = { plugins: [] }\n".encode("latin-1")
        (target_dir / "tailwind.config.js").write_bytes(original)
        request = _request(target_dir, features=["containerQueries"])

        state = await ProjectGenerator(request, config).generate(proceed_if_not_empty=True)

        assert state.step is ScaffoldStep.DONE
        assert state.patch_results[0].skipped
        assert any("not valid UTF-8" in w for w in state.warnings)
        assert (target_dir / "tailwind.config.js").read_bytes() == original

    @pytest.mark.asyncio
    async def test_directory_named_like_template_file_fails(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        (target_dir / "index.html").mkdir(parents=True)
        generator = ProjectGenerator(_request(target_dir), config)

        with pytest.raises(TemplateCopyError, match="is a directory"):
            await generator.generate(proceed_if_not_empty=True)

        assert generator.state.failed_step is ScaffoldStep.MATERIALIZING


# ---------------------------------------------------------------------------
# Installation
# ---------------------------------------------------------------------------


class TestInstalling:
    @pytest.mark.asyncio
    async def test_install_failure_keeps_files(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command, snapshot_tree
    ):
        # probe succeeds, install fails
        mock_run_command.side_effect = [(0, "9.0.0", ""), (1, "", "")]
        generator = ProjectGenerator(_request(target_dir, package_manager="pnpm"), config)
        written: dict[str, bytes] = {}

        original_install = generator.registry.install

        async def snapshot_then_install(profile, project_dir):
            written.update(snapshot_tree(target_dir))
            await original_install(profile, project_dir)

        with patch.object(generator.registry, "install", side_effect=snapshot_then_install):
            with pytest.raises(InstallFailed) as excinfo:
                await generator.generate()

        assert excinfo.value.command == "pnpm install"
        assert generator.state.failed_step is ScaffoldStep.INSTALLING
        assert not generator.state.installed
        assert "package.json" in written
        assert snapshot_tree(target_dir) == written

    @pytest.mark.asyncio
    async def test_unavailable_manager_fails_after_scaffold(
        self, config: ScaffoldConfig, target_dir: Path, mock_run_command
    ):
        mock_run_command.return_value = (127, "", "")
        generator = ProjectGenerator(_request(target_dir, package_manager="yarn"), config)

        with pytest.raises(PackageManagerUnavailable):
            await generator.generate()

        assert generator.state.failed_step is ScaffoldStep.INSTALLING
        assert (target_dir / "package.json").is_file()

    @pytest.mark.asyncio
    async def test_self_heal_warning_recorded(self, config: ScaffoldConfig, target_dir: Path):
        registry = AsyncMock()
        registry.ensure_available.return_value = ["bun is not detected"]
        generator = ProjectGenerator(
            _request(target_dir, package_manager="bun"), config, registry=registry
        )

        state = await generator.generate()

        assert state.warnings == ["bun is not detected"]
        registry.install.assert_awaited_once_with(
            state.profile, generator.request.target_path
        )
