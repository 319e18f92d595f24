from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DependencyRecord:
    identifier: str
    current_version: int


class VersionTable:
    """Ordered mapping of dependency identifier to its current major version.

    Iteration follows insertion order, which fixes the order in which each pass
    visits dependencies and therefore the order of the upgrade commits.
    """

    def __init__(self, entries: Mapping[str, int] | Iterable[DependencyRecord] | None = None) -> None:
        self._versions: dict[str, int] = {}
        if entries is None:
            return
        if isinstance(entries, Mapping):
            for identifier, version in entries.items():
                self.set(identifier, version)
        else:
            for record in entries:
                self.set(record.identifier, record.current_version)

    def get(self, identifier: str) -> int:
        if identifier not in self._versions:
            raise KeyError(f"Unknown dependency: {identifier}")
        return self._versions[identifier]

    def set(self, identifier: str, version: int) -> None:
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValueError(f"Version for {identifier} must be an integer, got: {version!r}")
        if version < 0:
            raise ValueError(f"Version for {identifier} must be non-negative, got: {version}")
        self._versions[identifier] = version

    def records(self) -> list[DependencyRecord]:
        return [DependencyRecord(identifier, version) for identifier, version in self._versions.items()]

    def converged_count(self, target_version: int) -> int:
        return sum(1 for version in self._versions.values() if version >= target_version)

    def pending(self, target_version: int) -> list[str]:
        return [identifier for identifier, version in self._versions.items() if version < target_version]

    def is_converged(self, target_version: int) -> bool:
        return self.converged_count(target_version) == len(self._versions)

    def as_dict(self) -> dict[str, int]:
        return dict(self._versions)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._versions

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._versions))

    def __len__(self) -> int:
        return len(self._versions)

    def __repr__(self) -> str:
        return f"VersionTable({self._versions!r})"


@dataclass(frozen=True)
class StepResult:
    identifier: str
    from_version: int
    to_version: int
    committed: bool


@dataclass(frozen=True)
class LoopResult:
    target_version: int
    passes: int
    steps: list[StepResult] = field(default_factory=list)
    final_versions: dict[str, int] = field(default_factory=dict)

    @property
    def updater_invocations(self) -> int:
        return len(self.steps)


@dataclass(frozen=True)
class CompanionResult:
    package: str
    version: int
    succeeded: bool
    error: str | None = None


@dataclass(frozen=True)
class UpgradeReport:
    """Summary of a whole run, returned by ``UpgradeOrchestrator.run``."""

    branch: str
    target_version: int
    loop: LoopResult
    companions: list[CompanionResult] = field(default_factory=list)
    started: bool = False
