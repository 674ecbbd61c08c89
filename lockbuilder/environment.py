import platform
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional, Tuple

from packaging import tags
from packaging.markers import default_environment

from .cli_logger import logger
from .errors import ConfigError

# Keys of the [environment] section in lockbuilder.toml and the marker
# variables they set.
CONFIG_KEYS = {
    "python-version": "python_version",
    "python-full-version": "python_full_version",
    "os-name": "os_name",
    "sys-platform": "sys_platform",
    "platform-machine": "platform_machine",
    "platform-system": "platform_system",
    "platform-release": "platform_release",
    "platform-version": "platform_version",
    "platform-python-implementation": "platform_python_implementation",
    "implementation-name": "implementation_name",
    "implementation-version": "implementation_version",
}


@dataclass(frozen=True)
class TargetEnvironment:
    """The interpreter and platform a build plan is produced for."""

    python_version: str
    python_full_version: str
    os_name: str
    sys_platform: str
    platform_machine: str
    platform_system: str
    platform_release: str = ""
    platform_version: str = ""
    platform_python_implementation: str = "CPython"
    implementation_name: str = "cpython"
    implementation_version: str = ""
    extras: FrozenSet[str] = frozenset()
    supported_tags: Tuple[tags.Tag, ...] = field(default=(), repr=False)

    def marker_environment(self):
        return {
            "python_version": self.python_version,
            "python_full_version": self.python_full_version,
            "os_name": self.os_name,
            "sys_platform": self.sys_platform,
            "platform_machine": self.platform_machine,
            "platform_system": self.platform_system,
            "platform_release": self.platform_release,
            "platform_version": self.platform_version,
            "platform_python_implementation": self.platform_python_implementation,
            "implementation_name": self.implementation_name,
            "implementation_version": self.implementation_version,
        }

    def with_extras(self, extras):
        return replace(self, extras=frozenset(extras))

    def tag_rank(self, tag) -> Optional[int]:
        """Position of a tag in the supported list (lower is more specific)."""
        try:
            return self.supported_tags.index(tag)
        except ValueError:
            return None

    def is_compatible(self, wheel_tags) -> bool:
        supported = set(self.supported_tags)
        return any(tag in supported for tag in wheel_tags)


def _version_tuple(python_version):
    major, minor = python_version.split(".")[:2]
    return int(major), int(minor)


def supported_tags_for(python_version: str, implementation_name: str = "cpython", platforms=None):
    """
    Lists wheel tags accepted by an interpreter, most specific first.

    When platforms is None the tags of the running host are used.
    """
    version = _version_tuple(python_version)
    if platforms is not None:
        platforms = list(platforms)
    if implementation_name == "cpython":
        interpreter = f"cp{version[0]}{version[1]}"
        found = list(tags.cpython_tags(python_version=version, platforms=platforms))
    else:
        short_name = tags.INTERPRETER_SHORT_NAMES.get(implementation_name, implementation_name)
        interpreter = f"{short_name}{version[0]}{version[1]}"
        found = list(tags.generic_tags(interpreter=interpreter, abis=[], platforms=platforms))
    found.extend(tags.compatible_tags(python_version=version, interpreter=interpreter, platforms=platforms))
    return tuple(found)


def current_environment(extras=()) -> TargetEnvironment:
    """Describes the interpreter lockbuilder itself is running on."""
    markers = default_environment()
    return TargetEnvironment(
        extras=frozenset(extras),
        supported_tags=tuple(tags.sys_tags()),
        **markers,
    )


def from_config(section=None, python_version=None, extras=None) -> TargetEnvironment:
    """
    Builds a TargetEnvironment from the [environment] config section.

    Keys not present in the section fall back to the running interpreter.
    python_version and extras take precedence over the section (CLI flags).
    """
    section = dict(section or {})
    if python_version:
        section["python-version"] = python_version
        section.pop("python-full-version", None)

    unknown = set(section) - set(CONFIG_KEYS) - {"extras", "platforms"}
    for key in sorted(unknown):
        logger.warning(f"Ignoring unknown [environment] key '{key}' in configuration.")

    values = default_environment()
    for key, variable in CONFIG_KEYS.items():
        if key not in section:
            continue
        # An unquoted 3.10 in TOML is the float 3.1
        if not isinstance(section[key], str):
            raise ConfigError(
                f"Expected a quoted string, got {section[key]!r}",
                field=f"environment.{key}",
            )
        values[variable] = section[key]

    if "python-version" in section and "python-full-version" not in section:
        values["python_full_version"] = _full_version(values["python_version"])
    if "python-full-version" in section and "python-version" not in section:
        values["python_version"] = ".".join(values["python_full_version"].split(".")[:2])

    if extras is None:
        extras = section.get("extras", [])

    host_matches = (
        values["python_version"] == default_environment()["python_version"]
        and values["implementation_name"] == platform.python_implementation().lower()
        and "platforms" not in section
    )
    if host_matches:
        supported = tuple(tags.sys_tags())
    else:
        supported = supported_tags_for(
            values["python_version"],
            values["implementation_name"],
            platforms=section.get("platforms"),
        )

    return TargetEnvironment(extras=frozenset(extras), supported_tags=supported, **values)


def _full_version(python_version):
    parts = python_version.split(".")
    while len(parts) < 3:
        parts.append("0")
    return ".".join(parts)
