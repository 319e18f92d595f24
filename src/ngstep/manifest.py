from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MetadataParseError, VersionParseError
from .models import DependencyRecord, VersionTable

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"

# Leading range operators npm accepts in front of a concrete version.
_MAJOR_VERSION_RE = re.compile(r"^\s*(?:[\^~]|[<>]=?|=|v)*\s*(\d+)(?:[.\s]|$)")


class PackageManifest(BaseModel):
    """The slice of ``package.json`` the upgrader reads."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")

    def declared_version(self, identifier: str) -> str | None:
        """Return the declared range for ``identifier``, preferring runtime dependencies."""
        if identifier in self.dependencies:
            return self.dependencies[identifier]
        return self.dev_dependencies.get(identifier)


def parse_major_version(identifier: str, raw_version: str) -> int:
    """Reduce a semver range such as ``^14.2.0`` to its leading major number.

    Args:
        identifier: Dependency name, used for error reporting.
        raw_version: Version string as declared in the manifest.

    Returns:
        The leading numeric component.

    Raises:
        VersionParseError: If no leading numeric component exists (``latest``, ``next``, ``""``).
    """
    match = _MAJOR_VERSION_RE.match(raw_version)
    if match is None:
        raise VersionParseError(identifier, raw_version)
    return int(match.group(1))


def load_manifest(project_root: Path) -> PackageManifest:
    """Read and validate ``package.json`` under ``project_root``.

    Raises:
        MetadataParseError: If the file is missing, unreadable, or not a valid manifest object.
    """
    path = project_root / MANIFEST_FILENAME
    if not path.is_file():
        raise MetadataParseError(f"{MANIFEST_FILENAME} not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MetadataParseError(f"Unable to read {path}: {exc}") from exc
    try:
        manifest = PackageManifest.model_validate_json(text)
    except ValidationError as exc:
        raise MetadataParseError(f"Invalid {MANIFEST_FILENAME} at {path}: {exc}") from exc
    logger.debug("Loaded %s", path)
    return manifest


def build_version_table(manifest: PackageManifest, identifiers: Sequence[str]) -> VersionTable:
    """Build the version table for ``identifiers`` in the given order.

    Raises:
        MetadataParseError: If a tracked dependency is declared in neither dependency map.
        VersionParseError: If a declared version has no numeric major.
    """
    records: list[DependencyRecord] = []
    for identifier in identifiers:
        raw_version = manifest.declared_version(identifier)
        if raw_version is None:
            raise MetadataParseError(
                f"{identifier} is not declared in dependencies or devDependencies"
            )
        records.append(DependencyRecord(identifier, parse_major_version(identifier, raw_version)))
    return VersionTable(records)


def read_version_table(project_root: Path, identifiers: Sequence[str]) -> VersionTable:
    return build_version_table(load_manifest(project_root), identifiers)
