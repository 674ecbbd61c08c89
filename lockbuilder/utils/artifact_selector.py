import enum
from dataclasses import dataclass

from packaging import tags

from ..cli_logger import logger
from ..errors import NoArtifact

DEFAULT_EXTENSIONS = ("tar", "tar.bz2", "tar.gz", "tar.xz", "tbz", "tgz", "whl", "zip")
WHEEL_SUFFIX = ".whl"
PYPI_FILES_URL = "https://files.pythonhosted.org/packages"


class DistributionKind(enum.Enum):
    SOURCE = "source"
    BINARY = "binary"


@dataclass(frozen=True)
class SelectedArtifact:
    file: str
    hash: str
    distribution_kind: DistributionKind
    platform_tag: str
    python_tag: str

    @property
    def format(self):
        return "wheel" if self.distribution_kind is DistributionKind.BINARY else "setuptools"


def is_wheel(filename: str) -> bool:
    return filename.endswith(WHEEL_SUFFIX)


def has_supported_extension(filename: str, extensions=DEFAULT_EXTENSIONS) -> bool:
    return any(filename.endswith("." + ext.lstrip(".")) for ext in extensions)


def wheel_fields(filename: str):
    """Returns the (python, abi, platform) fields of a wheel filename, or None."""
    if not is_wheel(filename):
        return None
    parts = filename[: -len(WHEEL_SUFFIX)].split("-")
    # name-version[-build]-python-abi-platform
    if len(parts) < 5:
        return None
    return tuple(parts[-3:])


def wheel_tags(filename: str):
    fields = wheel_fields(filename)
    if fields is None:
        return frozenset()
    return tags.parse_tag("-".join(fields))


def first_compatible_wheel(candidates, environment):
    """Picks the first wheel, in lock-file order, the environment accepts."""
    for entry in candidates:
        if environment.is_compatible(wheel_tags(entry.file)):
            return entry
    return None


def best_ranked_wheel(candidates, environment):
    """Picks the wheel with the most specific supported tag; ties keep lock-file order."""
    best, best_rank = None, None
    for entry in candidates:
        ranks = [environment.tag_rank(tag) for tag in wheel_tags(entry.file)]
        ranks = [rank for rank in ranks if rank is not None]
        if not ranks:
            continue
        rank = min(ranks)
        if best_rank is None or rank < best_rank:
            best, best_rank = entry, rank
    return best


WHEEL_SELECTORS = {
    "first": first_compatible_wheel,
    "best": best_ranked_wheel,
}


def _classify(entry) -> SelectedArtifact:
    if not is_wheel(entry.file):
        return SelectedArtifact(
            file=entry.file,
            hash=entry.hash,
            distribution_kind=DistributionKind.SOURCE,
            platform_tag="source",
            python_tag="source",
        )
    python_tag, _abi, platform_tag = wheel_fields(entry.file)
    return SelectedArtifact(
        file=entry.file,
        hash=entry.hash,
        distribution_kind=DistributionKind.BINARY,
        platform_tag=platform_tag,
        python_tag=python_tag,
    )


def select_artifact(
    name: str,
    version: str,
    files,
    environment,
    extensions=DEFAULT_EXTENSIONS,
    wheel_selector=first_compatible_wheel,
    prefer_binary: bool = False,
) -> SelectedArtifact:
    """
    Chooses the one file to install for a locked package.

    Candidates must mention the locked version and carry a recognized
    extension. A source distribution wins unless prefer_binary is set, in
    which case a compatible wheel is tried first and the sdist is the fallback.
    """
    candidates = [
        entry for entry in files
        if version in entry.file and has_supported_extension(entry.file, extensions)
    ]
    sdists = [entry for entry in candidates if not is_wheel(entry.file)]
    wheels = [entry for entry in candidates if is_wheel(entry.file)]

    chosen = None
    if sdists and not prefer_binary:
        chosen = sdists[0]
    else:
        chosen = wheel_selector(wheels, environment) if wheels else None
        if chosen is None and sdists:
            logger.debug(f"No compatible wheel for {name} {version}, falling back to {sdists[0].file}")
            chosen = sdists[0]

    if chosen is None:
        considered = ", ".join(entry.file for entry in files) or "no files"
        raise NoArtifact(
            f"No installable artifact for {name} {version} (considered: {considered})",
            package=name,
            field="files",
        )
    return _classify(chosen)


def fetch_url(name: str, artifact: SelectedArtifact) -> str:
    """Download URL of an artifact on files.pythonhosted.org."""
    initial = artifact.file[0].lower()
    return f"{PYPI_FILES_URL}/{artifact.python_tag}/{initial}/{name}/{artifact.file}"
