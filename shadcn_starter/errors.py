"""Failure kinds raised while scaffolding a project.

Validation and precondition errors are raised before anything touches the
disk.  Errors raised after file mutation has begun leave the partial tree in
place; their messages say what the user has to clean up or re-run.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for every fatal scaffolding failure."""

    kind = "ScaffoldError"

    def __init__(self, message: str, hint: str = "") -> None:
        self.hint = hint
        super().__init__(f"{message} {hint}".strip() if hint else message)


class InvalidRequest(ScaffoldError):
    """The project request is malformed (name, features, package manager)."""

    kind = "InvalidRequest"


class InvalidFeatureName(InvalidRequest):
    """A feature selection names a flag that does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown feature: {name!r}")


class UnknownPackageManager(InvalidRequest):
    """The requested package manager has no registered profile."""

    def __init__(self, manager_id: str) -> None:
        self.manager_id = manager_id
        super().__init__(f"Unknown package manager: {manager_id!r}")


class NonEmptyTargetRejected(ScaffoldError):
    """The target directory is not empty and the caller did not confirm."""

    kind = "NonEmptyTargetRejected"


class TemplateCopyError(ScaffoldError):
    """Copying the base template into the target directory failed."""

    kind = "TemplateCopyError"

    def __init__(self, message: str, copied: int = 0) -> None:
        self.copied = copied
        super().__init__(
            message,
            hint=(
                f"{copied} file(s) were already copied; "
                "the target directory may need manual cleanup."
            ),
        )


class FileWriteError(ScaffoldError):
    """Writing the manifest or an auxiliary file failed."""

    kind = "FileWriteError"

    def __init__(self, path: object, reason: object) -> None:
        self.path = path
        super().__init__(
            f"Failed to write {path}: {reason}",
            hint="Files written so far were kept; the target directory may need manual cleanup.",
        )


class PackageManagerUnavailable(ScaffoldError):
    """The selected package manager binary cannot be run."""

    kind = "PackageManagerUnavailable"


class InstallFailed(ScaffoldError):
    """The package manager exited with a non-zero status."""

    kind = "InstallFailed"

    def __init__(self, command: str, returncode: int, detail: str = "") -> None:
        self.command = command
        self.returncode = returncode
        message = f"Dependency installation failed (exit {returncode}): {command}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(
            message,
            hint=f"The project files were kept; run '{command}' manually to retry.",
        )
