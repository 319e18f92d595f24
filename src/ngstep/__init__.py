from importlib.metadata import version

from .commands import CommandRunner, FrameworkUpdater, GitClient, PackageInstaller, Toolchain
from .errors import (
    ExternalCommandError,
    MetadataParseError,
    NoProgressError,
    UpgradeError,
    VersionParseError,
)
from .loops import ConvergenceLoop, StepExecutor, UpgradeOrchestrator
from .manifest import PackageManifest, build_version_table, parse_major_version, read_version_table
from .models import CompanionResult, DependencyRecord, LoopResult, StepResult, UpgradeReport, VersionTable
from .repository import RepositoryGate
from .settings import UpgradeSettings


def get_version() -> str:
    try:
        return version(__name__)
    except Exception:
        return "0.0.0"


__all__ = [
    "CommandRunner",
    "CompanionResult",
    "ConvergenceLoop",
    "DependencyRecord",
    "ExternalCommandError",
    "FrameworkUpdater",
    "GitClient",
    "LoopResult",
    "MetadataParseError",
    "NoProgressError",
    "PackageInstaller",
    "PackageManifest",
    "RepositoryGate",
    "StepExecutor",
    "StepResult",
    "Toolchain",
    "UpgradeError",
    "UpgradeOrchestrator",
    "UpgradeReport",
    "UpgradeSettings",
    "VersionParseError",
    "VersionTable",
    "build_version_table",
    "parse_major_version",
    "read_version_table",
]
