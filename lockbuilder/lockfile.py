"""Reading poetry.lock files into immutable LockedPackage records."""
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

import toml
from packaging.utils import canonicalize_name

from .cli_logger import logger
from .errors import LockfileError, UnsupportedSourceType

LOCK_FILE = "poetry.lock"


@dataclass(frozen=True)
class FileEntry:
    file: str
    hash: str


@dataclass(frozen=True)
class PypiSource:
    type = "pypi"


@dataclass(frozen=True)
class GitSource:
    url: str
    reference: str
    resolved_reference: Optional[str] = None
    type = "git"


@dataclass(frozen=True)
class UnsupportedSource:
    type: str


Source = Union[PypiSource, GitSource, UnsupportedSource]


@dataclass(frozen=True)
class DependencyEdge:
    """A dependency name with the optional marker that gates the edge."""

    name: str
    markers: Optional[str] = None


@dataclass(frozen=True)
class LockedPackage:
    name: str
    version: str
    python_versions: str = "*"
    marker: Optional[str] = None
    dependencies: Tuple[DependencyEdge, ...] = ()
    source: Source = PypiSource()
    files: Tuple[FileEntry, ...] = ()
    optional: bool = False
    category: str = "main"

    @property
    def key(self):
        return canonicalize_name(self.name)


def parse_source(data, package_name=None) -> Source:
    if not data:
        return PypiSource()
    source_type = data.get("type", "pypi")
    if source_type == "pypi":
        return PypiSource()
    if source_type == "git":
        if "url" not in data:
            raise LockfileError("Git source has no url", package=package_name, field="source.url")
        return GitSource(
            url=data["url"],
            reference=data.get("reference", "HEAD"),
            resolved_reference=data.get("resolved_reference"),
        )
    return UnsupportedSource(type=source_type)


def require_supported(package: LockedPackage):
    """Raises UnsupportedSourceType for sources the planner cannot fetch."""
    if isinstance(package.source, UnsupportedSource):
        raise UnsupportedSourceType(
            f"Source type '{package.source.type}' is not supported",
            package=package.key,
            field="source.type",
        )


def _edge_marker(spec):
    if isinstance(spec, dict):
        return spec.get("markers")
    if isinstance(spec, list):
        # Several constraints for one name; the edge is active if any is.
        markers = [item.get("markers") for item in spec if isinstance(item, dict)]
        if markers and all(markers):
            return " or ".join(f"({m})" for m in markers)
    return None


def parse_dependencies(data):
    edges = []
    seen = set()
    for name, spec in (data or {}).items():
        key = canonicalize_name(name)
        if key in seen:
            continue
        seen.add(key)
        edges.append(DependencyEdge(name=key, markers=_edge_marker(spec)))
    return tuple(edges)


def _package_marker(data):
    marker = data.get("marker", data.get("markers"))
    if isinstance(marker, dict):
        # Newer lock files key markers by dependency group
        marker = " or ".join(f"({m})" for m in marker.values() if m) or None
    return marker


def parse_files(entries, package_name):
    files = []
    for entry in entries or []:
        try:
            files.append(FileEntry(file=entry["file"], hash=entry["hash"]))
        except (KeyError, TypeError):
            raise LockfileError(f"Malformed file entry {entry!r}", package=package_name, field="files")
    return tuple(files)


def parse_lock(data) -> Tuple[LockedPackage, ...]:
    """
    Converts a decoded poetry.lock document into LockedPackage records.

    File lists are read from each [[package]] 'files' key when present and
    otherwise from the [metadata.files] side table.
    """
    if "package" not in data:
        return ()
    side_table = {
        canonicalize_name(name): entries
        for name, entries in data.get("metadata", {}).get("files", {}).items()
    }

    packages = []
    for raw in data["package"]:
        try:
            name = raw["name"]
            version = raw["version"]
        except KeyError as e:
            raise LockfileError(f"Package entry is missing {e}", field=str(e.args[0]))
        key = canonicalize_name(name)
        files = raw["files"] if "files" in raw else side_table.get(key, [])
        packages.append(LockedPackage(
            name=name,
            version=version,
            python_versions=raw.get("python-versions", "*"),
            marker=_package_marker(raw),
            dependencies=parse_dependencies(raw.get("dependencies")),
            source=parse_source(raw.get("source"), key),
            files=parse_files(files, key),
            optional=bool(raw.get("optional", False)),
            category=raw.get("category", "main"),
        ))
    return tuple(packages)


def load_lock(path=LOCK_FILE) -> Tuple[LockedPackage, ...]:
    logger.info(f"Loading lock file from {path}")
    if not os.path.exists(path):
        raise LockfileError(f"Lock file not found at {path}")
    try:
        with open(path, "r") as f:
            data = toml.load(f)
    except toml.TomlDecodeError as e:
        raise LockfileError(f"Error decoding lock file at {path}: {e}")
    packages = parse_lock(data)
    logger.info(f"Found {len(packages)} locked packages.")
    return packages
