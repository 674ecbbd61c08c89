import re
from dataclasses import dataclass
from typing import FrozenSet, Optional

# Libraries a manylinux wheel may load from the host (PEP 513, 571, 599).
MANYLINUX2014_LIBS = frozenset([
    "libgcc_s.so.1",
    "libstdc++.so.6",
    "libm.so.6",
    "libdl.so.2",
    "librt.so.1",
    "libc.so.6",
    "libnsl.so.1",
    "libutil.so.1",
    "libpthread.so.0",
    "libresolv.so.2",
    "libX11.so.6",
    "libXext.so.6",
    "libXrender.so.1",
    "libICE.so.6",
    "libSM.so.6",
    "libGL.so.1",
    "libgobject-2.0.so.0",
    "libgthread-2.0.so.0",
    "libglib-2.0.so.0",
])
MANYLINUX2010_LIBS = MANYLINUX2014_LIBS | {"libcrypt.so.1"}
MANYLINUX1_LIBS = MANYLINUX2010_LIBS | {"libpanelw.so.5", "libncursesw.so.5"}

# glibc minor version -> (policy token, libraries)
LEGACY_FAMILIES = {
    5: ("1", MANYLINUX1_LIBS),
    12: ("2010", MANYLINUX2010_LIBS),
    17: ("2014", MANYLINUX2014_LIBS),
}
LEGACY_ALIASES = {
    "manylinux1": 5,
    "manylinux2010": 12,
    "manylinux2014": 17,
}

_LEGACY_RE = re.compile(r"^(manylinux1|manylinux2010|manylinux2014)_")
_PERENNIAL_RE = re.compile(r"^manylinux_2_(\d+)_")


@dataclass(frozen=True)
class PlatformRequirements:
    native_deps: FrozenSet[str] = frozenset()
    patch_policy: Optional[str] = None

    @property
    def needs_patching(self):
        return self.patch_policy is not None


NO_REQUIREMENTS = PlatformRequirements()


def glibc_minor(platform_tag: str) -> Optional[int]:
    """The glibc 2.x minor version a single manylinux platform tag targets."""
    match = _LEGACY_RE.match(platform_tag)
    if match:
        return LEGACY_ALIASES[match.group(1)]
    match = _PERENNIAL_RE.match(platform_tag)
    if match:
        return int(match.group(1))
    return None


def _requirements_for(minor):
    if minor in LEGACY_FAMILIES:
        policy, libs = LEGACY_FAMILIES[minor]
        return PlatformRequirements(native_deps=libs, patch_policy=policy)
    if minor > 17:
        return PlatformRequirements(native_deps=MANYLINUX2014_LIBS, patch_policy=f"2_{minor}")
    # manylinux_2_N between the named generations is treated as the older one
    older = max(m for m in LEGACY_FAMILIES if m <= minor) if minor >= 5 else 5
    policy, libs = LEGACY_FAMILIES[older]
    return PlatformRequirements(native_deps=libs, patch_policy=policy)


def resolve_platform(platform_tag: str) -> PlatformRequirements:
    """
    Maps a wheel platform tag to the host libraries it needs and the patch
    policy for rewriting its load paths. Tags outside the manylinux families
    (source, any, macosx, win, musllinux, ...) need nothing.
    """
    for member in platform_tag.split("."):
        minor = glibc_minor(member)
        if minor is not None:
            return _requirements_for(minor)
    return NO_REQUIREMENTS
