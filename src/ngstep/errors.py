from __future__ import annotations

from collections.abc import Sequence


class UpgradeError(Exception):
    """Base class for every failure that aborts an upgrade run."""

    exit_code: int = 1


class MetadataParseError(UpgradeError):
    """``package.json`` is missing, malformed, or lacks a tracked dependency."""


class VersionParseError(UpgradeError):
    """A dependency version string has no leading numeric major component."""

    def __init__(self, identifier: str, raw_version: object) -> None:
        super().__init__(f"Cannot derive a major version for {identifier} from {raw_version!r}")
        self.identifier = identifier
        self.raw_version = raw_version


class ExternalCommandError(UpgradeError):
    """An external command exited non-zero or could not be spawned."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = "") -> None:
        rendered = " ".join(command)
        message = f"Command failed with exit code {returncode}: {rendered}"
        if stderr.strip():
            message = f"{message}\n{stderr.strip()[-2000:]}"
        super().__init__(message)
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return self.returncode if self.returncode > 0 else 1


class NoProgressError(UpgradeError):
    """The convergence loop stopped advancing before every dependency reached the target."""

    def __init__(self, message: str, *, passes: int, pending: Sequence[str]) -> None:
        super().__init__(message)
        self.passes = passes
        self.pending = tuple(pending)
