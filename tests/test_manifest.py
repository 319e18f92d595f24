from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_manifest
from ngstep.errors import MetadataParseError, VersionParseError
from ngstep.manifest import build_version_table, load_manifest, parse_major_version, read_version_table
from ngstep.models import DependencyRecord

TRACKED = ("@angular/cli", "@angular/core", "@angular/cdk")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("^14.2.0", 14),
        ("~11.0.5", 11),
        ("12.1.0", 12),
        (">=13.0.0 <14", 13),
        ("v15.0.0", 15),
        ("10.x", 10),
        ("9", 9),
    ],
)
def test_parse_major_version_takes_leading_component(raw: str, expected: int) -> None:
    assert parse_major_version("@angular/core", raw) == expected


@pytest.mark.parametrize("raw", ["latest", "next", "", "^", "workspace:*", "abc.1.0"])
def test_parse_major_version_rejects_non_numeric(raw: str) -> None:
    with pytest.raises(VersionParseError) as excinfo:
        parse_major_version("@angular/core", raw)
    assert excinfo.value.identifier == "@angular/core"
    assert excinfo.value.raw_version == raw


def test_table_follows_tracking_order_and_falls_back_to_dev_dependencies(tmp_path: Path) -> None:
    write_manifest(
        tmp_path,
        {"@angular/core": "^10.1.0", "@angular/cdk": "~11.2.0", "rxjs": "^6.6.0"},
        {"@angular/cli": "^10.0.3"},
    )

    table = read_version_table(tmp_path, TRACKED)

    assert list(table) == list(TRACKED)
    assert table.as_dict() == {"@angular/cli": 10, "@angular/core": 10, "@angular/cdk": 11}
    assert table.records() == [
        DependencyRecord("@angular/cli", 10),
        DependencyRecord("@angular/core", 10),
        DependencyRecord("@angular/cdk", 11),
    ]
    assert "rxjs" not in table


def test_runtime_dependency_wins_over_dev_dependency(tmp_path: Path) -> None:
    write_manifest(tmp_path, {"@angular/core": "^12.0.0"}, {"@angular/core": "^9.0.0"})
    manifest = load_manifest(tmp_path)
    assert build_version_table(manifest, ["@angular/core"]).get("@angular/core") == 12


def test_missing_tracked_dependency_raises(tmp_path: Path) -> None:
    write_manifest(tmp_path, {"@angular/core": "^10.0.0", "@angular/cli": "^10.0.0"})
    with pytest.raises(MetadataParseError, match="@angular/cdk"):
        read_version_table(tmp_path, TRACKED)


def test_missing_manifest_raises(tmp_path: Path) -> None:
    with pytest.raises(MetadataParseError, match="not found"):
        load_manifest(tmp_path)


def test_malformed_manifest_raises(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(MetadataParseError):
        load_manifest(tmp_path)


def test_manifest_with_wrong_shape_raises(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text('{"dependencies": ["@angular/core"]}', encoding="utf-8")
    with pytest.raises(MetadataParseError):
        load_manifest(tmp_path)


def test_unparsable_version_surfaces_from_table_build(tmp_path: Path) -> None:
    write_manifest(tmp_path, {"@angular/cli": "^10.0.0", "@angular/core": "latest", "@angular/cdk": "^10.0.0"})
    with pytest.raises(VersionParseError, match="latest"):
        read_version_table(tmp_path, TRACKED)
