"""The application described by pyproject.toml, wired against a registry."""
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

import toml
from packaging.utils import canonicalize_name

from .cli_logger import logger
from .errors import LockfileError, UnresolvedDependencyName, UnsupportedBuildSystem

PYPROJECT_FILE = "pyproject.toml"

# build-backend -> packages that must be present to build the application
KNOWN_BUILD_SYSTEMS = {
    "poetry.masonry.api": ("poetry",),
    "poetry.core.masonry.api": ("poetry-core",),
    "intreehooks:loader": ("intreehooks",),
    "": (),
}


@dataclass(frozen=True)
class ProjectSpec:
    name: str
    version: str
    description: str = ""
    license: Optional[str] = None
    build_backend: str = ""
    dependencies: Tuple[str, ...] = ()
    dev_dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Application:
    name: str
    version: str
    description: str
    license: Optional[str]
    build_inputs: Tuple[str, ...]
    propagated: Tuple[object, ...] = field(repr=False)
    check_inputs: Tuple[object, ...] = field(repr=False)
    format: str = "pyproject"


def _dependency_names(table):
    # 'python' constrains the interpreter, it is not a package
    return tuple(canonicalize_name(name) for name in (table or {}) if name.lower() != "python")


def parse_pyproject(data) -> ProjectSpec:
    poetry = data.get("tool", {}).get("poetry")
    if poetry is None:
        raise LockfileError("pyproject.toml has no [tool.poetry] section", field="tool.poetry")

    dev = list(_dependency_names(poetry.get("dev-dependencies")))
    for group in poetry.get("group", {}).values():
        for name in _dependency_names(group.get("dependencies")):
            if name not in dev:
                dev.append(name)

    return ProjectSpec(
        name=poetry["name"],
        version=poetry.get("version", "0.0.0"),
        description=poetry.get("description", ""),
        license=poetry.get("license"),
        build_backend=data.get("build-system", {}).get("build-backend", ""),
        dependencies=_dependency_names(poetry.get("dependencies")),
        dev_dependencies=tuple(dev),
    )


def load_pyproject(path=PYPROJECT_FILE) -> ProjectSpec:
    logger.info(f"Loading project from {path}")
    if not os.path.exists(path):
        raise LockfileError(f"pyproject.toml not found at {path}")
    try:
        with open(path, "r") as f:
            return parse_pyproject(toml.load(f))
    except toml.TomlDecodeError as e:
        raise LockfileError(f"Error decoding pyproject.toml at {path}: {e}")


def build_system_inputs(build_backend: str):
    try:
        return KNOWN_BUILD_SYSTEMS[build_backend]
    except KeyError:
        raise UnsupportedBuildSystem(f"Unsupported build system '{build_backend}'", field="build-system.build-backend")


def build_application(project: ProjectSpec, registry, include_dev=True) -> Application:
    """
    Wires the application's dependencies to registry entries.

    Every dependency must have a registry slot; filtered ones are kept as
    references that resolve to None.
    """
    build_inputs = build_system_inputs(project.build_backend)
    names = project.dependencies + (project.dev_dependencies if include_dev else ())
    for name in names:
        if name not in registry:
            raise UnresolvedDependencyName(name, package=canonicalize_name(project.name))

    return Application(
        name=project.name,
        version=project.version,
        description=project.description,
        license=project.license,
        build_inputs=build_inputs,
        propagated=tuple(registry.ref(name) for name in project.dependencies),
        check_inputs=tuple(registry.ref(name) for name in project.dev_dependencies) if include_dev else (),
    )
