"""Exceptions raised while turning a lock file into a build plan.

Every error carries the offending package name and lock-file field (when
known) so the CLI can report several failures in one pass.
"""
from typing import Optional


class LockBuilderError(Exception):
    """Base class for all construction-time failures."""

    def __init__(self, message, package: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.package = package
        self.field = field

    def for_package(self, package, field=None):
        """Attach package context to an error raised by a context-free helper."""
        if self.package is None:
            self.package = package
        if self.field is None and field is not None:
            self.field = field
        return self

    def __str__(self):
        location = []
        if self.package:
            location.append(self.package)
        if self.field:
            location.append(self.field)
        if location:
            return f"[{':'.join(location)}] {self.message}"
        return self.message


class InvalidConstraint(LockBuilderError):
    pass


class InvalidMarker(LockBuilderError):
    pass


class UnknownMarkerVariable(LockBuilderError):
    pass


class NoArtifact(LockBuilderError):
    pass


class UnsupportedSourceType(LockBuilderError):
    pass


class UnresolvedDependencyName(LockBuilderError, KeyError):
    """A dependency name that has no slot in the registry, filtered or not."""

    def __init__(self, name, package=None):
        super().__init__(f"Dependency '{name}' is not in the lock file", package=package, field="dependencies")
        self.name = name

    # KeyError.__str__ would repr() the message
    __str__ = LockBuilderError.__str__


class DuplicatePackage(LockBuilderError):
    pass


class InvalidOverride(LockBuilderError):
    pass


class OverrideCycle(LockBuilderError):
    pass


class LockfileError(LockBuilderError):
    pass


class ConfigError(LockBuilderError):
    pass


class UnsupportedBuildSystem(LockBuilderError):
    pass


class RegistryBuildError(LockBuilderError):
    """Aggregate of every per-package failure found while building a registry."""

    def __init__(self, errors):
        self.errors = list(errors)
        summary = f"{len(self.errors)} package(s) could not be planned"
        super().__init__(summary)

    def __str__(self):
        lines = [self.message]
        for error in self.errors:
            lines.append(f"  - {error}")
        return "\n".join(lines)
