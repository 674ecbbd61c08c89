"""Turn a resolved poetry.lock into a build plan."""
from .environment import TargetEnvironment, current_environment
from .errors import LockBuilderError, RegistryBuildError
from .lockfile import FileEntry, LockedPackage, load_lock, parse_lock
from .registry import BuildNode, Registry, RegistryBuilder, build_registry

__all__ = [
    "BuildNode",
    "FileEntry",
    "LockBuilderError",
    "LockedPackage",
    "Registry",
    "RegistryBuildError",
    "RegistryBuilder",
    "TargetEnvironment",
    "build_registry",
    "current_environment",
    "load_lock",
    "parse_lock",
]
