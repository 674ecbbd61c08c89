"""
Fixed-point package registry.

The registry maps every locked package name to the BuildNode that will be
installed, or to None when the package's marker excludes it from the
target environment. Dependency edges and override functions look nodes up
through the final registry by name, so replacing one package's node is
observed by every package that depends on it.

Construction happens in two phases: every default node is built first, then
the final table is bound and each entry is forced through its override.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional, Tuple

from packaging.utils import canonicalize_name

from .cli_logger import logger
from .environment import current_environment
from .errors import (
    DuplicatePackage,
    InvalidOverride,
    LockBuilderError,
    OverrideCycle,
    RegistryBuildError,
    UnresolvedDependencyName,
)
from .lockfile import GitSource, LockedPackage, PypiSource, require_supported
from .utils.artifact_selector import DEFAULT_EXTENSIONS, SelectedArtifact, first_compatible_wheel, select_artifact
from .utils.constraints import satisfies
from .utils.markers import evaluate
from .utils.platform_resolver import NO_REQUIREMENTS, PlatformRequirements, resolve_platform

_PENDING = object()


@dataclass(frozen=True)
class _Failed:
    error: LockBuilderError


@dataclass(frozen=True)
class DependencyRef:
    """A by-name edge, resolved against the registry only when asked."""

    name: str
    registry: "Registry" = field(repr=False, compare=False)

    def resolve(self):
        return self.registry[self.name]


@dataclass(frozen=True)
class BuildNode:
    name: str
    version: str
    source: object
    artifact: Optional[SelectedArtifact]
    dependencies: Tuple[DependencyRef, ...] = ()
    broken: bool = False
    python_versions: str = "*"
    platform: PlatformRequirements = NO_REQUIREMENTS

    @property
    def format(self):
        if self.artifact is None:
            return "setuptools"
        return self.artifact.format

    @property
    def dependency_names(self):
        return [dep.name for dep in self.dependencies]

    def resolved_dependencies(self):
        """Pairs of (name, node); node is None for filtered packages."""
        return [(dep.name, dep.resolve()) for dep in self.dependencies]

    def replace(self, **changes):
        return replace(self, **changes)

    def with_dependencies(self, registry, *names):
        """Returns a copy depending additionally on names, looked up in registry."""
        existing = set(self.dependency_names)
        added = []
        for name in names:
            key = canonicalize_name(name)
            if key not in existing:
                existing.add(key)
                added.append(registry.ref(key))
        return replace(self, dependencies=self.dependencies + tuple(added))

    def without_dependencies(self, *names):
        dropped = {canonicalize_name(name) for name in names}
        return replace(self, dependencies=tuple(d for d in self.dependencies if d.name not in dropped))


class Registry(Mapping):
    """
    Read-only name -> BuildNode (or None for filtered) mapping.

    Entries are thunks until first looked up; a lookup of a name that has no
    slot raises UnresolvedDependencyName rather than returning a default.
    """

    def __init__(self, values=None):
        self._thunks: Dict[str, Callable] = {}
        self._values: Dict[str, object] = dict(values or {})
        self._bound = values is not None

    def bind(self, thunks):
        if self._bound:
            raise RuntimeError("Registry entries are already bound")
        self._thunks = dict(thunks)
        self._bound = True

    def ref(self, name) -> DependencyRef:
        return DependencyRef(name=canonicalize_name(name), registry=self)

    def _has_slot(self, key):
        return key in self._values or key in self._thunks

    def __getitem__(self, name):
        key = canonicalize_name(name)
        if not self._bound:
            raise RuntimeError(f"Registry looked up '{key}' before its entries were bound")
        if key in self._values:
            value = self._values[key]
            if value is _PENDING:
                raise OverrideCycle(f"Override for '{key}' depends on its own result", package=key)
            if isinstance(value, _Failed):
                raise value.error
            return value
        if key not in self._thunks:
            raise UnresolvedDependencyName(key)
        self._values[key] = _PENDING
        try:
            value = self._thunks[key]()
        except LockBuilderError as e:
            # Later lookups re-raise the same failure instead of re-running the override
            self._values[key] = _Failed(e.for_package(key))
            raise
        except BaseException:
            del self._values[key]
            raise
        self._values[key] = value
        return value

    def __contains__(self, name):
        return self._has_slot(canonicalize_name(name))

    def __iter__(self):
        seen = set()
        for key in list(self._values) + list(self._thunks):
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self):
        return len(set(self._values) | set(self._thunks))

    def is_filtered(self, name):
        """True when name has a slot but its package is excluded from this environment."""
        return self[name] is None

    def nodes(self):
        """Non-filtered nodes in registry order."""
        return [node for node in (self[key] for key in self) if node is not None]

    def filtered(self):
        return [key for key in self if self[key] is None]

    def broken(self):
        return [node for node in self.nodes() if node.broken]


class RegistryBuilder:
    """
    Builds the registry for one target environment.

    overrides maps package names to functions (self, super, node) -> node,
    where self is the final registry, super the registry of default nodes
    and node the default node for that package.
    """

    def __init__(
        self,
        environment,
        overrides=None,
        extensions=DEFAULT_EXTENSIONS,
        wheel_selector=first_compatible_wheel,
        prefer_binary=False,
    ):
        self.environment = environment
        self.overrides = {canonicalize_name(name): fn for name, fn in (overrides or {}).items()}
        self.extensions = tuple(extensions)
        self.wheel_selector = wheel_selector
        self.prefer_binary = prefer_binary

    def _prefers_binary(self, key):
        if isinstance(self.prefer_binary, bool):
            return self.prefer_binary
        return key in {canonicalize_name(name) for name in self.prefer_binary}

    def _active_dependencies(self, package, final):
        refs = []
        for edge in package.dependencies:
            if edge.markers and not evaluate(edge.markers, self.environment):
                logger.debug(f"  - {package.key}: dependency edge to {edge.name} is inactive")
                continue
            refs.append(final.ref(edge.name))
        return tuple(refs)

    def default_node(self, package: LockedPackage, final: Registry) -> BuildNode:
        """Builds the un-overridden node for an active package."""
        require_supported(package)
        broken = not satisfies(self.environment.python_full_version, package.python_versions)
        if broken:
            logger.warning(
                f"{package.key} {package.version} requires Python {package.python_versions}, "
                f"target is {self.environment.python_full_version}; marking it broken."
            )

        source = package.source
        if isinstance(source, PypiSource):
            artifact = select_artifact(
                package.key,
                package.version,
                package.files,
                self.environment,
                extensions=self.extensions,
                wheel_selector=self.wheel_selector,
                prefer_binary=self._prefers_binary(package.key),
            )
            platform = resolve_platform(artifact.platform_tag)
        elif isinstance(source, GitSource):
            artifact = None
            platform = NO_REQUIREMENTS
        else:
            raise AssertionError(f"Unhandled source {source!r}")

        return BuildNode(
            name=package.key,
            version=package.version,
            source=source,
            artifact=artifact,
            dependencies=self._active_dependencies(package, final),
            broken=broken,
            python_versions=package.python_versions,
            platform=platform,
        )

    def _override_thunk(self, key, final, defaults, node):
        override = self.overrides.get(key)

        def thunk():
            if override is None:
                return node
            result = override(final, defaults, node)
            if not isinstance(result, BuildNode):
                raise InvalidOverride(
                    f"Override returned {type(result).__name__}, expected a BuildNode",
                    package=key,
                )
            return result

        return thunk

    def build(self, packages) -> Registry:
        final = Registry()
        defaults = {}
        errors = []
        failed = set()

        for package in packages:
            key = package.key
            try:
                active = evaluate(package.marker, self.environment)
            except LockBuilderError as e:
                errors.append(e.for_package(key, "marker"))
                failed.add(key)
                continue

            if not active:
                logger.debug(f"  - {key} {package.version} is filtered out by marker: {package.marker}")
                defaults.setdefault(key, None)
                continue
            if defaults.get(key) is not None:
                errors.append(DuplicatePackage(
                    f"Locked twice for this environment ({defaults[key].version} and {package.version})",
                    package=key,
                ))
                continue

            try:
                defaults[key] = self.default_node(package, final)
                failed.discard(key)
            except LockBuilderError as e:
                errors.append(e.for_package(key))
                failed.add(key)

        for key in failed:
            defaults.pop(key, None)

        super_registry = Registry(defaults)
        thunks = {}
        for key, node in defaults.items():
            if node is None:
                if key in self.overrides:
                    logger.debug(f"  - Ignoring override for filtered package {key}")
                thunks[key] = lambda: None
            else:
                thunks[key] = self._override_thunk(key, final, super_registry, node)
        final.bind(thunks)

        for key in list(thunks):
            try:
                node = final[key]
            except LockBuilderError as e:
                if e.package in (None, key):
                    errors.append(e.for_package(key))
                else:
                    errors.append(InvalidOverride(
                        f"Override reads '{e.package}', which could not be planned",
                        package=key,
                    ))
                continue
            if node is None:
                continue
            for dep in node.dependencies:
                if dep.name not in final and dep.name not in failed:
                    errors.append(UnresolvedDependencyName(dep.name, package=key))

        if errors:
            raise RegistryBuildError(errors)
        logger.info(
            f"Planned {len(final.nodes())} packages ({len(final.filtered())} filtered, "
            f"{len(final.broken())} broken)."
        )
        return final


def build_registry(packages, overrides=None, environment=None, **options) -> Registry:
    """Convenience wrapper around RegistryBuilder(environment, overrides, ...).build(packages)."""
    if environment is None:
        environment = current_environment()
    return RegistryBuilder(environment, overrides=overrides, **options).build(packages)
