from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .commands import FrameworkUpdater, PackageInstaller, Toolchain
from .errors import ExternalCommandError, NoProgressError
from .log_config import log_success
from .manifest import read_version_table
from .models import CompanionResult, LoopResult, StepResult, UpgradeReport, VersionTable
from .repository import RepositoryGate
from .settings import UpgradeSettings

logger = logging.getLogger(__name__)


class StepRunner(Protocol):
    def advance(self, table: VersionTable, identifier: str) -> StepResult | None:
        ...


class StepExecutor:
    """Moves one dependency up by exactly one major version and commits the result."""

    def __init__(
        self,
        *,
        settings: UpgradeSettings,
        updater: FrameworkUpdater,
        installer: PackageInstaller,
        gate: RepositoryGate,
    ) -> None:
        self.settings = settings
        self.updater = updater
        self.installer = installer
        self.gate = gate

    def advance(self, table: VersionTable, identifier: str) -> StepResult | None:
        """Run a single major-version step for ``identifier``.

        Returns ``None`` without touching anything when the entry has already
        reached the target. Updater and installer failures propagate as
        ``ExternalCommandError`` and leave the table entry unchanged.
        """
        from_version = table.get(identifier)
        target = self.settings.to_version
        if from_version >= target:
            return None

        next_version = from_version + 1
        logger.debug("Updating %s to %d", identifier, next_version)
        self.updater.update(identifier, next_version)
        log_success(logger, "Success updating %s to %d", identifier, next_version)

        self.installer.install_peer_deps()
        committed = self.gate.commit_all(
            f"{self.settings.commit_prefix} - Upgrading {identifier} to {next_version}"
        )
        table.set(identifier, next_version)
        return StepResult(
            identifier=identifier,
            from_version=from_version,
            to_version=next_version,
            committed=committed,
        )


class ConvergenceLoop:
    """Drives every tracked dependency to the target, one major version per dependency per pass.

    Dependencies are visited in table order and never jump more than one major
    in a pass.
    """

    def __init__(
        self,
        *,
        settings: UpgradeSettings,
        steps: StepRunner,
        gate: RepositoryGate,
        installer: PackageInstaller,
    ) -> None:
        self.settings = settings
        self.steps = steps
        self.gate = gate
        self.installer = installer

    def prepare(self) -> None:
        """Check out the working branch and commit a clean baseline."""
        self.gate.ensure_branch(self.settings.branch_name)
        self.installer.install_peer_deps()
        self.gate.commit_if_dirty(f"{self.settings.commit_prefix} - Migration")

    def pass_budget(self, table: VersionTable) -> int:
        """Return the number of passes this table may take.

        Without an explicit ``max_passes`` the budget is the distance of the
        furthest-behind dependency.

        Raises:
            NoProgressError: If an explicit ``max_passes`` cannot cover that distance.
        """
        target = self.settings.to_version
        pending = table.pending(target)
        required = max((target - table.get(identifier) for identifier in pending), default=0)
        if self.settings.max_passes is None:
            return required
        if required > self.settings.max_passes:
            raise NoProgressError(
                f"Reaching v{target} needs {required} passes but max_passes is {self.settings.max_passes}; "
                f"pending: {', '.join(pending)}",
                passes=0,
                pending=pending,
            )
        return self.settings.max_passes

    def run_passes(self, table: VersionTable) -> LoopResult:
        target = self.settings.to_version
        budget = self.pass_budget(table)
        for record in table.records():
            if record.current_version > target:
                logger.warning(
                    "%s is already at %d, past target %d; leaving it untouched",
                    record.identifier,
                    record.current_version,
                    target,
                )

        steps: list[StepResult] = []
        passes = 0
        while not table.is_converged(target):
            if passes >= budget:
                pending = table.pending(target)
                raise NoProgressError(
                    f"Still pending after {passes} passes: {', '.join(pending)}",
                    passes=passes,
                    pending=pending,
                )
            passes += 1
            logger.info("Pass %d: %d of %d dependencies converged", passes, table.converged_count(target), len(table))

            advanced = 0
            for identifier in table:
                logger.info("Reading dependency %s -- Current version: %d", identifier, table.get(identifier))
                result = self.steps.advance(table, identifier)
                if result is not None:
                    steps.append(result)
                    advanced += 1

            if advanced == 0 and not table.is_converged(target):
                pending = table.pending(target)
                raise NoProgressError(
                    f"Pass {passes} advanced no dependency; pending: {', '.join(pending)}",
                    passes=passes,
                    pending=pending,
                )

        return LoopResult(
            target_version=target,
            passes=passes,
            steps=steps,
            final_versions=table.as_dict(),
        )

    def run(self, table: VersionTable) -> LoopResult:
        self.pass_budget(table)
        self.prepare()
        return self.run_passes(table)


class UpgradeOrchestrator:
    """Full run: read versions, converge, bump companion packages, optionally start the app."""

    def __init__(self, settings: UpgradeSettings, toolchain: Toolchain | None = None) -> None:
        self.settings = settings
        self.toolchain = toolchain if toolchain is not None else Toolchain.from_settings(settings)
        self.gate = RepositoryGate(self.toolchain.git)
        self.executor = StepExecutor(
            settings=settings,
            updater=self.toolchain.updater,
            installer=self.toolchain.installer,
            gate=self.gate,
        )
        self.loop = ConvergenceLoop(
            settings=settings,
            steps=self.executor,
            gate=self.gate,
            installer=self.toolchain.installer,
        )

    @property
    def project_root(self) -> Path:
        return self.settings.project_root_path

    def _upgrade_companions(self) -> list[CompanionResult]:
        results: list[CompanionResult] = []
        target = self.settings.to_version
        for package in self.settings.companion_packages:
            logger.debug("Upgrading %s to %d", package, target)
            try:
                self.toolchain.installer.install(f"{package}@{target}")
                self.gate.commit_if_dirty(f"{self.settings.commit_prefix} - Upgrading {package} to {target}")
            except ExternalCommandError as exc:
                logger.error("Error while upgrading %s: %s", package, exc)
                results.append(CompanionResult(package=package, version=target, succeeded=False, error=str(exc)))
                continue
            results.append(CompanionResult(package=package, version=target, succeeded=True))
        return results

    def run(self) -> UpgradeReport:
        logger.debug("Upgrading %s to %d", self.settings.framework_name, self.settings.to_version)
        # Parse failures must surface before any external command runs.
        table = read_version_table(self.project_root, self.settings.tracked_identifiers)

        loop_result = self.loop.run(table)
        log_success(logger, "%s upgraded to %d", self.settings.framework_name, self.settings.to_version)
        self.gate.commit_if_dirty(f"{self.settings.commit_prefix} - Migration")

        companions = self._upgrade_companions()

        started = False
        if self.settings.start_after_install:
            logger.info("Starting the application")
            self.toolchain.installer.start()
            started = True

        return UpgradeReport(
            branch=self.settings.branch_name,
            target_version=self.settings.to_version,
            loop=loop_result,
            companions=companions,
            started=started,
        )
