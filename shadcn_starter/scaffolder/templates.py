"""Jinja2 rendering of auxiliary file fragments.

Provides the TemplateRenderer class which loads ``.j2`` fragments from the
``shadcn_starter/scaffolder/fragments/`` directory and renders them with
project-specific context data (project name, package-manager commands,
selected features).
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..config import DEFAULT_FRAGMENTS_DIR
from ..utils import write_text


class TemplateRenderer:
    """Renders Jinja2 fragments for auxiliary project files.

    Undefined context variables raise instead of rendering as empty strings,
    so a fragment never silently loses the project name or a command.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = DEFAULT_FRAGMENTS_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single fragment with the provided context.

        Args:
            template_path: Path relative to the fragment directory (e.g.
                ``"README.md.j2"``).
            context: Dictionary of variables available inside the template.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a fragment and write the result to *output_path*.

        Parent directories are created automatically.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content)
        return out
