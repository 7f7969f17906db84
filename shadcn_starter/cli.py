"""Command-line entry point for ``create-shadcn-starter``.

Non-interactive front end: every answer the interactive prompts would ask
for is a flag, and omitted feature flags fall back to the documented
defaults.

Usage::

    create-shadcn-starter my-app
    create-shadcn-starter my-app --package-manager pnpm --features router,darkMode
    python -m shadcn_starter . --force --skip-install
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import time
from pathlib import Path

from .config import ScaffoldConfig
from .errors import ScaffoldError
from .features import FEATURE_CATALOG, FeatureFlag
from .package_managers import PROFILES, detect_package_manager
from .scaffolder.generator import ProjectGenerator, ProjectRequest
from .utils import (
    console,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-shadcn-starter",
        description="Scaffold a new Vite + Tailwind + shadcn/ui application",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-shadcn-starter my-app\n"
            "  create-shadcn-starter my-app -p pnpm --features router,darkMode\n"
            "  create-shadcn-starter . --force --skip-install\n"
        ),
    )
    parser.add_argument(
        "dir",
        nargs="?",
        default=".",
        help="Directory to create the project in (default: current directory)",
    )
    parser.add_argument(
        "--name", "-n",
        default=None,
        help="Project name (default: the directory name)",
    )
    parser.add_argument(
        "--package-manager", "-p",
        choices=sorted(PROFILES),
        default=None,
        help="Package manager (default: detected from npm_config_user_agent, else npm)",
    )
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--features",
        default=None,
        help="Comma-separated features to enable (default: the documented defaults)",
    )
    selection.add_argument(
        "--all-features",
        action="store_true",
        help="Enable every optional feature",
    )
    selection.add_argument(
        "--no-features",
        action="store_true",
        help="Enable no optional feature",
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Scaffold into a non-empty directory",
    )
    parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Do not run the package manager after scaffolding",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON configuration file (default: SHADCN_STARTER_* environment variables)",
    )
    parser.add_argument(
        "--list-features",
        action="store_true",
        help="Print the available features and exit",
    )
    return parser


def _selected_features(args: argparse.Namespace) -> list[str] | None:
    if args.all_features:
        return [flag.value for flag in FeatureFlag]
    if args.no_features:
        return []
    if args.features is None:
        return None
    return [name.strip() for name in args.features.split(",") if name.strip()]


def _print_feature_catalog() -> None:
    print_summary_table(
        {
            info.flag.value: f"{info.title} ({'on' if info.default else 'off'} by default)"
            for info in FEATURE_CATALOG.values()
        },
        title="Features",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-shadcn-starter`` and ``python -m shadcn_starter``."""
    args = build_parser().parse_args(argv)

    if args.list_features:
        _print_feature_catalog()
        return

    try:
        config = ScaffoldConfig.load(Path(args.config)) if args.config else ScaffoldConfig.from_env()
    except (OSError, ValueError) as exc:
        print_error(f"Error: could not load configuration: {exc}")
        sys.exit(1)
    if args.skip_install:
        config = config.model_copy(update={"install": False})

    target = Path(args.dir).expanduser().resolve()
    package_manager = args.package_manager or detect_package_manager(os.environ)
    started = time.monotonic()

    try:
        request = ProjectRequest.create(
            target,
            project_name=args.name or target.name,
            package_manager=package_manager,
            features=_selected_features(args),
        )
        generator = ProjectGenerator(request, config)
        state = asyncio.run(generator.generate(proceed_if_not_empty=args.force))
    except ScaffoldError as exc:
        print_error(f"Error [{exc.kind}]: {exc}")
        sys.exit(1)

    print_summary_table(
        {
            "Project": request.project_name,
            "Location": str(request.target_path),
            "Package manager": request.package_manager,
            "Files copied": str(len(state.copied_files)),
            "Warnings": str(len(state.warnings)),
            "Duration": format_duration(time.monotonic() - started),
        },
        title="Project created",
    )
    print_success("Project created successfully!")
    console.print("\nNext steps:")
    for command in generator.next_steps():
        console.print(f"  [cyan]{command}[/cyan]")
    console.print()


if __name__ == "__main__":
    main()
