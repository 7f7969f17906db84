"""Package-manager registry.

Maps a package-manager identifier to its command grammar and drives the
external binary: a silent version probe, the one sanctioned self-heal for a
missing ``bun`` binary, and the dependency install itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import InstallFailed, PackageManagerUnavailable, UnknownPackageManager
from .utils import print_success, print_warning, run_command


@dataclass(frozen=True)
class PackageManagerProfile:
    """Command grammar of one supported package manager."""

    id: str
    version_probe_command: str
    install_command: str
    add_dev_command: str
    run_prefix: str
    # Installs the binary itself when the probe fails; only bun has one.
    fallback_installer: str | None = None
    install_docs: str = ""

    def run_command_for(self, script: str) -> str:
        """Return the command line that runs a manifest script, e.g. ``pnpm dev``."""
        return f"{self.run_prefix} {script}"


PROFILES: dict[str, PackageManagerProfile] = {
    profile.id: profile
    for profile in (
        PackageManagerProfile(
            id="npm",
            version_probe_command="npm --version",
            install_command="npm install",
            add_dev_command="npm install -D",
            run_prefix="npm run",
        ),
        PackageManagerProfile(
            id="pnpm",
            version_probe_command="pnpm --version",
            install_command="pnpm install",
            add_dev_command="pnpm add -D",
            run_prefix="pnpm",
        ),
        PackageManagerProfile(
            id="yarn",
            version_probe_command="yarn --version",
            install_command="yarn",
            add_dev_command="yarn add -D",
            run_prefix="yarn",
        ),
        PackageManagerProfile(
            id="bun",
            version_probe_command="bun --version",
            install_command="bun install",
            add_dev_command="bun add -d",
            run_prefix="bun run",
            fallback_installer="npm install -g bun",
            install_docs="https://bun.sh/docs/installation",
        ),
    )
}


class Availability(str, Enum):
    """Outcome of a version probe."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


def resolve(manager_id: str) -> PackageManagerProfile:
    """Look up the profile registered for *manager_id*.

    Raises:
        UnknownPackageManager: If no profile exists for the identifier.
    """
    try:
        return PROFILES[manager_id]
    except KeyError:
        raise UnknownPackageManager(manager_id) from None


def detect_package_manager(env: Mapping[str, str]) -> str:
    """Guess the invoking package manager from ``npm_config_user_agent``.

    ``yarn create ...``, ``pnpm create ...`` and ``bun create ...`` all set the
    user agent; anything else falls back to ``npm``.
    """
    user_agent = env.get("npm_config_user_agent", "")
    for manager_id in ("yarn", "pnpm", "bun"):
        if user_agent.startswith(manager_id):
            return manager_id
    return "npm"


class PackageManagerRegistry:
    """Runs the commands of the registered package managers.

    Args:
        probe_timeout: Seconds allowed for a version probe.
        install_timeout: Seconds allowed for installs (dependencies and the
            self-heal binary install).
        allow_self_heal: Whether a failed probe for a manager with a
            ``fallback_installer`` triggers one install attempt.
    """

    def __init__(
        self,
        probe_timeout: int = 30,
        install_timeout: int = 900,
        allow_self_heal: bool = True,
    ) -> None:
        self.probe_timeout = probe_timeout
        self.install_timeout = install_timeout
        self.allow_self_heal = allow_self_heal

    def resolve(self, manager_id: str) -> PackageManagerProfile:
        return resolve(manager_id)

    async def probe(self, profile: PackageManagerProfile) -> Availability:
        """Run the version probe with suppressed output.

        Any non-zero exit, timeout or spawn failure counts as unavailable.
        """
        try:
            returncode, _, _ = await run_command(
                profile.version_probe_command,
                timeout=self.probe_timeout,
                capture=True,
            )
        except OSError:
            return Availability.UNAVAILABLE
        return Availability.AVAILABLE if returncode == 0 else Availability.UNAVAILABLE

    async def ensure_available(self, profile: PackageManagerProfile) -> list[str]:
        """Make sure *profile*'s binary can run, self-healing at most once.

        Returns:
            Warnings produced along the way (e.g. the self-heal attempt).

        Raises:
            PackageManagerUnavailable: If the probe fails and no self-heal is
                possible, or the self-heal install fails too.
        """
        if await self.probe(profile) is Availability.AVAILABLE:
            return []

        if not profile.fallback_installer or not self.allow_self_heal:
            raise PackageManagerUnavailable(
                f"{profile.id} is not installed. Please install it first."
            )

        warning = (
            f"{profile.id} is not detected. Attempting to install it with "
            f"'{profile.fallback_installer}'..."
        )
        print_warning(warning)
        try:
            returncode, _, _ = await run_command(
                profile.fallback_installer,
                timeout=self.install_timeout,
                capture=False,
            )
        except OSError as exc:
            raise PackageManagerUnavailable(
                f"Failed to install {profile.id}: {exc}",
                hint=_manual_install_hint(profile),
            ) from exc

        if returncode != 0:
            raise PackageManagerUnavailable(
                f"Failed to install {profile.id} (exit {returncode}).",
                hint=_manual_install_hint(profile),
            )

        if await self.probe(profile) is not Availability.AVAILABLE:
            raise PackageManagerUnavailable(
                f"{profile.id} was installed but still cannot be run; "
                "check that the global npm bin directory is on PATH.",
                hint=_manual_install_hint(profile),
            )

        print_success(f"{profile.id} installed successfully!")
        return [warning]

    async def install(self, profile: PackageManagerProfile, project_dir: Path) -> None:
        """Install the project's dependencies with inherited standard I/O.

        Raises:
            InstallFailed: On a non-zero exit, timeout or spawn failure.
        """
        try:
            returncode, _, stderr = await run_command(
                profile.install_command,
                cwd=project_dir,
                timeout=self.install_timeout,
                capture=False,
            )
        except OSError as exc:
            raise InstallFailed(profile.install_command, -1, str(exc)) from exc

        if returncode != 0:
            raise InstallFailed(profile.install_command, returncode, stderr)


def _manual_install_hint(profile: PackageManagerProfile) -> str:
    if profile.install_docs:
        return f"Please install it manually: {profile.install_docs}"
    return "Please install it manually."
