from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path

import pytest

from ngstep.commands import CommandOutput, CommandRunner, FrameworkUpdater, GitClient, PackageInstaller, Toolchain
from ngstep.errors import ExternalCommandError
from ngstep.settings import UpgradeSettings


class FakeRunner(CommandRunner):
    """Records every command instead of spawning it."""

    def __init__(
        self,
        *,
        status_outputs: Sequence[str] = (),
        failures: dict[tuple[str, ...], int] | None = None,
    ) -> None:
        super().__init__(cwd=Path("."), verbose=False)
        self.calls: list[tuple[tuple[str, ...], bool | None]] = []
        self.status_outputs = list(status_outputs)
        self.failures = dict(failures or {})

    def run(self, command, *, quiet=None, capture=False):  # noqa: ANN001,ANN201
        argv = tuple(command)
        self.calls.append((argv, quiet))
        for prefix, returncode in self.failures.items():
            if argv[: len(prefix)] == prefix:
                raise ExternalCommandError(argv, returncode, "simulated failure")
        stdout = ""
        if argv[1:3] == ("status", "--porcelain"):
            stdout = self.status_outputs.pop(0) if self.status_outputs else ""
        return CommandOutput(command=argv, returncode=0, stdout=stdout)

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [argv for argv, _ in self.calls]

    def matching(self, *prefix: str) -> list[tuple[str, ...]]:
        return [argv for argv in self.commands if argv[: len(prefix)] == prefix]


def make_toolchain(runner: FakeRunner) -> Toolchain:
    return Toolchain(
        runner=runner,
        git=GitClient(runner),
        installer=PackageInstaller(runner),
        updater=FrameworkUpdater(runner),
    )


def write_manifest(root: Path, dependencies: dict[str, str], dev_dependencies: dict[str, str] | None = None) -> Path:
    payload: dict[str, object] = {"name": "demo-app", "dependencies": dependencies}
    if dev_dependencies is not None:
        payload["devDependencies"] = dev_dependencies
    path = root / "package.json"
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer NGSTEP_* variables from leaking into tests."""
    for key in list(os.environ):
        if key.startswith("NGSTEP_") or key == "NO_COLOR":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def settings(tmp_path: Path) -> UpgradeSettings:
    return UpgradeSettings(to_version=12, project_root=str(tmp_path), companion_packages=()).normalized()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """``configure_logging`` swaps root handlers; put the originals back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
