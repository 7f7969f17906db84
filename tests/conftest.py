"""Shared pytest fixtures for the shadcn-starter test suite.

Provides reusable fixtures for:
- Temporary target directories
- A small fake base template tree
- Configurations pointing at the fake template
- A mocked command runner for package-manager processes
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from shadcn_starter.config import ScaffoldConfig


TAILWIND_CONFIG = textwrap.dedent(
    """\
    /** @type {import('tailwindcss').Config} */
    module.exports = {
      darkMode: ["class"],
      content: ["./index.html", "./src/**/*.{js,jsx}"],
      theme: {
        extend: {},
      },
      plugins: [
        require("tailwindcss-animate"),
      ],
    }
    """
)


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Absolute path of a project directory that does not exist yet."""
    return tmp_path / "my-app"


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """A minimal base template with every required config file."""
    root = tmp_path / "template"
    files = {
        "index.html": "<div id=\"root\"></div>\n",
        "postcss.config.js": "export default { plugins: {} }\n",
        "tailwind.config.js": TAILWIND_CONFIG,
        "vite.config.js": "export default {}\n",
        "jsconfig.json": "{}\n",
        "src/main.jsx": "import App from './App.jsx';\n",
        "src/App.jsx": "export default function App() { return null; }\n",
        "src/pages/Home.jsx": "export default function Home() { return null; }\n",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def config(template_root: Path) -> ScaffoldConfig:
    """Configuration pointing at the fake template, with installation enabled."""
    return ScaffoldConfig(templates_dir=template_root)


# ---------------------------------------------------------------------------
# Subprocess mocking
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_run_command():
    """Patch the command runner used by the package-manager registry.

    Every command succeeds by default; tests override ``side_effect`` or
    ``return_value`` to simulate failures::

        def test_install(mock_run_command):
            mock_run_command.return_value = (1, "", "boom")
    """
    with patch(
        "shadcn_starter.package_managers.run_command",
        new_callable=AsyncMock,
    ) as mocked:
        mocked.return_value = (0, "", "")
        yield mocked


# ---------------------------------------------------------------------------
# Filesystem snapshots
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot_tree():
    """Return a helper mapping every file under a root to its bytes."""

    def _snapshot(root: Path) -> dict[str, bytes]:
        return {
            str(p.relative_to(root)): p.read_bytes()
            for p in sorted(root.rglob("*"))
            if p.is_file()
        }

    return _snapshot
