import re

from packaging.markers import InvalidMarker as PackagingInvalidMarker
from packaging.markers import Marker, UndefinedComparison, UndefinedEnvironmentName

from ..errors import InvalidMarker, UnknownMarkerVariable

MARKER_VARIABLES = frozenset([
    "python_version",
    "python_full_version",
    "os_name",
    "sys_platform",
    "platform_release",
    "platform_system",
    "platform_version",
    "platform_machine",
    "platform_python_implementation",
    "implementation_name",
    "implementation_version",
    "extra",
    # Legacy dotted names still accepted by packaging
    "os.name",
    "sys.platform",
    "platform.version",
    "platform.machine",
    "platform.python_implementation",
    "python_implementation",
])

_KEYWORDS = frozenset(["and", "or", "in", "not"])
# Quoted strings are removed first so their contents are never mistaken for names
_STRING_RE = re.compile(r"'[^']*'|\"[^\"]*\"")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")


def _unknown_variables(marker: str):
    unquoted = _STRING_RE.sub(" ", marker)
    names = _NAME_RE.findall(unquoted)
    return [name for name in names if name not in _KEYWORDS and name not in MARKER_VARIABLES]


def parse_marker(marker: str) -> Marker:
    unknown = _unknown_variables(marker)
    if unknown:
        raise UnknownMarkerVariable(f"Unknown marker variable '{unknown[0]}' in '{marker}'", field="marker")
    try:
        return Marker(marker)
    except PackagingInvalidMarker as e:
        raise InvalidMarker(f"Invalid marker '{marker}': {e}", field="marker")


def evaluate(marker, environment) -> bool:
    """
    Evaluates a PEP 508 environment marker against a TargetEnvironment.

    A missing or blank marker is always active. Markers testing 'extra' are
    true when any of the environment's active extras satisfies them.
    """
    if marker is None or not marker.strip():
        return True

    parsed = parse_marker(marker)
    base = environment.marker_environment()
    extras = sorted(environment.extras) or [""]
    try:
        return any(parsed.evaluate(dict(base, extra=extra)) for extra in extras)
    except UndefinedEnvironmentName as e:
        raise UnknownMarkerVariable(f"Marker '{marker}' uses an undefined variable: {e}", field="marker")
    except UndefinedComparison as e:
        raise InvalidMarker(f"Marker '{marker}' cannot be evaluated: {e}", field="marker")
