"""shadcn-starter scaffolder -- materializes Vite + React + shadcn/ui projects.

This package takes a ``ProjectRequest`` (target directory, project name,
package manager and feature flags), copies the static base template,
synthesizes ``package.json``, applies feature patches, writes auxiliary
files and finally installs dependencies.

Quick usage::

    from shadcn_starter.scaffolder import ProjectGenerator, ProjectRequest

    request = ProjectRequest.create(
        "./my-app",
        project_name="my-app",
        package_manager="pnpm",
        features=["router", "darkMode"],
    )
    state = await ProjectGenerator(request).generate()
"""

from shadcn_starter.scaffolder.generator import (
    ProjectGenerator,
    ProjectRequest,
    ScaffoldStep,
    WorkingState,
)
from shadcn_starter.scaffolder.manifest import Manifest, synthesize
from shadcn_starter.scaffolder.materializer import MaterializeResult, TemplateMaterializer
from shadcn_starter.scaffolder.patches import PatchStatus, TemplatePatch, apply_patch
from shadcn_starter.scaffolder.templates import TemplateRenderer

__all__ = [
    "Manifest",
    "MaterializeResult",
    "PatchStatus",
    "ProjectGenerator",
    "ProjectRequest",
    "ScaffoldStep",
    "TemplateMaterializer",
    "TemplatePatch",
    "TemplateRenderer",
    "WorkingState",
    "apply_patch",
    "synthesize",
]
