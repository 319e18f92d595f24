from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv


DEFAULT_TO_VERSION = 12
DEFAULT_BRANCH_TEMPLATE = "team/ux/angular-v{version}"
DEFAULT_TRACKED_PACKAGES: tuple[str, ...] = ("cli", "core", "cdk")
DEFAULT_COMPANION_PACKAGES: tuple[str, ...] = ("primeng",)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class UpgradeSettings:
    """Immutable run configuration shared by the loop, the step executor and the gate."""

    to_version: int = DEFAULT_TO_VERSION
    verbose: bool = False
    start_after_install: bool = False
    max_passes: int | None = None
    branch_template: str = DEFAULT_BRANCH_TEMPLATE
    package_scope: str = "@angular"
    tracked_packages: tuple[str, ...] = DEFAULT_TRACKED_PACKAGES
    companion_packages: tuple[str, ...] = DEFAULT_COMPANION_PACKAGES
    peer_install_command: str = "install --legacy-peer-deps"
    start_command: str = "start"
    npm_bin: str = "npm"
    ng_bin: str = "ng"
    git_bin: str = "git"
    framework_name: str = "Angular"
    project_root: str = ""

    @classmethod
    def from_env(cls, project_root: Path | None = None) -> "UpgradeSettings":
        """Build settings from ``NGSTEP_*`` variables, loading ``.env`` from the project root first."""
        root = project_root if project_root is not None else Path.cwd()
        env_path = root / ".env"
        if env_path.is_file():
            load_dotenv(env_path)

        return cls(
            to_version=_get_env_int("NGSTEP_TO_VERSION", default=DEFAULT_TO_VERSION, minimum=0),
            verbose=_get_env_bool("NGSTEP_VERBOSE", default=False),
            start_after_install=_get_env_bool("NGSTEP_START_AFTER_INSTALL", default=False),
            max_passes=_get_env_optional_int("NGSTEP_MAX_PASSES", minimum=1),
            branch_template=os.getenv("NGSTEP_BRANCH_TEMPLATE", DEFAULT_BRANCH_TEMPLATE),
            package_scope=os.getenv("NGSTEP_PACKAGE_SCOPE", "@angular"),
            tracked_packages=_get_env_list("NGSTEP_TRACKED_PACKAGES", default=DEFAULT_TRACKED_PACKAGES),
            companion_packages=_get_env_list("NGSTEP_COMPANION_PACKAGES", default=DEFAULT_COMPANION_PACKAGES),
            peer_install_command=os.getenv("NGSTEP_PEER_INSTALL_COMMAND", "install --legacy-peer-deps"),
            start_command=os.getenv("NGSTEP_START_COMMAND", "start"),
            npm_bin=os.getenv("NGSTEP_NPM_BIN", "npm"),
            ng_bin=os.getenv("NGSTEP_NG_BIN", "ng"),
            git_bin=os.getenv("NGSTEP_GIT_BIN", "git"),
            framework_name=os.getenv("NGSTEP_FRAMEWORK_NAME", "Angular"),
            project_root=str(root),
        ).normalized()

    @property
    def project_root_path(self) -> Path:
        """Return the project root as a Path, defaulting to cwd if unset."""
        return Path(self.project_root) if self.project_root else Path.cwd()

    @property
    def branch_name(self) -> str:
        return self.branch_template.format(version=self.to_version)

    @property
    def commit_prefix(self) -> str:
        return f"{self.framework_name} v{self.to_version}"

    @property
    def tracked_identifiers(self) -> tuple[str, ...]:
        """Fully qualified names of the tracked dependencies, in tracking order."""
        scope = self.package_scope.rstrip("/")
        if not scope:
            return self.tracked_packages
        return tuple(f"{scope}/{name}" for name in self.tracked_packages)

    def with_overrides(self, **overrides: object) -> "UpgradeSettings":
        """Return a copy with the non-None overrides applied and re-validated."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied).normalized()

    def normalized(self) -> "UpgradeSettings":
        """Validate and normalize all fields. Raises ValueError on invalid configuration."""
        if isinstance(self.to_version, bool) or not isinstance(self.to_version, int) or self.to_version < 0:
            raise ValueError(f"to_version must be a non-negative integer, got: {self.to_version!r}")
        if self.max_passes is not None and self.max_passes < 1:
            raise ValueError(f"max_passes must be >= 1, got: {self.max_passes}")

        branch_template = self.branch_template.strip()
        if "{version}" not in branch_template:
            raise ValueError("NGSTEP_BRANCH_TEMPLATE must contain a '{version}' placeholder")

        tracked = tuple(name.strip() for name in self.tracked_packages if name.strip())
        if not tracked:
            raise ValueError("NGSTEP_TRACKED_PACKAGES must name at least one package")
        if len(set(tracked)) != len(tracked):
            raise ValueError(f"NGSTEP_TRACKED_PACKAGES contains duplicates: {', '.join(tracked)}")

        # -- Executable names --
        for label, value in (
            ("NGSTEP_NPM_BIN", self.npm_bin),
            ("NGSTEP_NG_BIN", self.ng_bin),
            ("NGSTEP_GIT_BIN", self.git_bin),
            ("NGSTEP_PEER_INSTALL_COMMAND", self.peer_install_command),
            ("NGSTEP_START_COMMAND", self.start_command),
        ):
            if not value.strip():
                raise ValueError(f"{label} must be non-empty")

        return replace(
            self,
            branch_template=branch_template,
            package_scope=self.package_scope.strip(),
            tracked_packages=tracked,
            companion_packages=tuple(name.strip() for name in self.companion_packages if name.strip()),
            npm_bin=self.npm_bin.strip(),
            ng_bin=self.ng_bin.strip(),
            git_bin=self.git_bin.strip(),
        )


def parse_bool(raw: str) -> bool:
    """Parse a textual boolean flag value.

    Raises:
        ValueError: If ``raw`` is not one of the recognised true/false spellings.
    """
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"expected a boolean (true/false), got: {raw!r}")


def _get_env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse_bool(raw)
    except ValueError as exc:
        raise ValueError(f"{name} {exc}") from exc


def _get_env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _get_env_optional_int(name: str, minimum: int) -> int | None:
    if os.getenv(name) is None:
        return None
    return _get_env_int(name, default=minimum, minimum=minimum)


def _get_env_int(name: str, default: int, minimum: int, maximum: int = 10_000) -> int:
    """Parse an integer from an environment variable with bounds checking.

    Args:
        name: Environment variable name.
        default: Value to return if the variable is unset.
        minimum: Inclusive lower bound.
        maximum: Inclusive upper bound.

    Returns:
        The parsed integer, guaranteed to be within [minimum, maximum].

    Raises:
        ValueError: If the value is not an integer or is outside bounds.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got: {raw!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got: {parsed}")
    if parsed > maximum:
        raise ValueError(f"{name} must be <= {maximum}, got: {parsed}")
    return parsed
