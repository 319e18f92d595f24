from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .errors import ExternalCommandError
from .settings import UpgradeSettings

logger = logging.getLogger(__name__)

# Conventional shell exit status for "command not found".
_SPAWN_FAILURE_RETURNCODE = 127


@dataclass(frozen=True)
class CommandOutput:
    command: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class CommandRunner:
    """Run external commands synchronously inside the project root.

    Verbose runners hand the terminal to the child process. Quiet runs capture
    output instead, so it can be attached to an ``ExternalCommandError``.
    """

    def __init__(self, *, cwd: Path, verbose: bool = False) -> None:
        self.cwd = cwd
        self.verbose = verbose

    def run(
        self,
        command: Sequence[str],
        *,
        quiet: bool | None = None,
        capture: bool = False,
    ) -> CommandOutput:
        """Run ``command`` to completion.

        Args:
            command: Program and arguments.
            quiet: Per-call verbosity override; ``None`` follows the runner setting.
            capture: Always capture stdout (needed when the caller reads the output).

        Returns:
            The completed command's output.

        Raises:
            ExternalCommandError: If the command cannot be spawned or exits non-zero.
        """
        argv = tuple(command)
        silenced = (not self.verbose) if quiet is None else quiet
        capture_output = capture or silenced
        logger.debug("Running %s", shlex.join(argv))
        try:
            completed = subprocess.run(
                argv,
                cwd=self.cwd,
                capture_output=capture_output,
                stdin=subprocess.DEVNULL if silenced else None,
                text=True,
                check=False,
            )
        except OSError as exc:
            logger.error("Unable to start %s: %s", argv[0], exc)
            raise ExternalCommandError(argv, _SPAWN_FAILURE_RETURNCODE, str(exc)) from exc

        stdout = completed.stdout if capture_output and completed.stdout else ""
        stderr = completed.stderr if capture_output and completed.stderr else ""
        if completed.returncode != 0:
            raise ExternalCommandError(argv, completed.returncode, stderr or stdout)
        return CommandOutput(command=argv, returncode=completed.returncode, stdout=stdout, stderr=stderr)


class GitClient:
    def __init__(self, runner: CommandRunner, *, git_bin: str = "git") -> None:
        self.runner = runner
        self.git_bin = git_bin

    def checkout(self, branch: str, *, quiet: bool | None = None) -> None:
        self.runner.run([self.git_bin, "checkout", branch], quiet=quiet)

    def create_branch(self, branch: str) -> None:
        self.runner.run([self.git_bin, "checkout", "-b", branch])

    def status(self, *, quiet: bool | None = None) -> str:
        """Return ``git status --porcelain`` output; empty means a clean tree."""
        return self.runner.run([self.git_bin, "status", "--porcelain"], quiet=quiet, capture=True).stdout

    def add_all(self, *, quiet: bool | None = None) -> None:
        self.runner.run([self.git_bin, "add", "."], quiet=quiet)

    def commit(self, message: str, *, quiet: bool | None = None) -> None:
        self.runner.run([self.git_bin, "commit", "-m", message], quiet=quiet)


class PackageInstaller:
    def __init__(
        self,
        runner: CommandRunner,
        *,
        npm_bin: str = "npm",
        peer_install_command: str = "install --legacy-peer-deps",
        start_command: str = "start",
    ) -> None:
        self.runner = runner
        self.npm_bin = npm_bin
        self.peer_install_args = shlex.split(peer_install_command)
        self.start_args = shlex.split(start_command)

    def install(self, package_spec: str) -> None:
        self.runner.run([self.npm_bin, "i", package_spec])

    def install_peer_deps(self) -> None:
        self.runner.run([self.npm_bin, *self.peer_install_args])

    def start(self) -> None:
        """Run the project's start script in the foreground with the terminal attached."""
        self.runner.run([self.npm_bin, *self.start_args], quiet=False)


class FrameworkUpdater:
    def __init__(self, runner: CommandRunner, *, ng_bin: str = "ng") -> None:
        self.runner = runner
        self.ng_bin = ng_bin

    def update(self, identifier: str, version: int) -> None:
        self.runner.run([self.ng_bin, "update", "--force", f"{identifier}@{version}"])


@dataclass(frozen=True)
class Toolchain:
    """The external collaborators a run needs, all sharing one runner."""

    runner: CommandRunner
    git: GitClient
    installer: PackageInstaller
    updater: FrameworkUpdater

    @classmethod
    def from_settings(cls, settings: UpgradeSettings) -> "Toolchain":
        runner = CommandRunner(cwd=settings.project_root_path, verbose=settings.verbose)
        return cls(
            runner=runner,
            git=GitClient(runner, git_bin=settings.git_bin),
            installer=PackageInstaller(
                runner,
                npm_bin=settings.npm_bin,
                peer_install_command=settings.peer_install_command,
                start_command=settings.start_command,
            ),
            updater=FrameworkUpdater(runner, ng_bin=settings.ng_bin),
        )
