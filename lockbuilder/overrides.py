"""
Override functions for the package registry.

An override has the signature (final, prev, node) -> node: final is the
registry being built, prev the registry of default nodes, node the default
node for the package. It returns the node to install.
"""
import importlib

from packaging.utils import canonicalize_name

from .cli_logger import logger
from .errors import InvalidOverride
from .utils.platform_resolver import PlatformRequirements

# Host libraries commonly needed when building these packages from source.
DEFAULT_OVERRIDE_SPECS = {
    "cffi": {"native-deps": ["libffi"]},
    "cryptography": {"native-deps": ["openssl"]},
    "lxml": {"native-deps": ["libxml2", "libxslt"]},
    "pillow": {"native-deps": ["zlib", "libjpeg", "libtiff", "freetype"]},
    "psycopg2": {"native-deps": ["libpq"]},
    "pyyaml": {"native-deps": ["libyaml"]},
}

SPEC_KEYS = frozenset(["native-deps", "patch-policy", "extra-dependencies", "drop-dependencies", "broken"])


def identity(final, prev, node):
    return node


def compose(*overrides):
    """Chains overrides; each one receives the node returned by the previous."""
    overrides = [fn for fn in overrides if fn is not None]
    if not overrides:
        return identity
    if len(overrides) == 1:
        return overrides[0]

    def composed(final, prev, node):
        for fn in overrides:
            node = fn(final, prev, node)
        return node

    return composed


def merge(*mappings):
    """
    Merges name -> override mappings; when a name appears in several, the
    overrides are composed in the order the mappings are given.
    """
    merged = {}
    for mapping in mappings:
        for name, fn in (mapping or {}).items():
            key = canonicalize_name(name)
            merged[key] = compose(merged.get(key), fn)
    return merged


def from_spec(spec):
    """
    Builds an override from a declarative table such as

        [overrides.packages.lxml]
        native-deps = ["libxml2", "libxslt"]
        extra-dependencies = ["cython"]
    """
    unknown = set(spec) - SPEC_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown override keys: {', '.join(sorted(unknown))}")

    def override(final, prev, node):
        changes = {}
        if "native-deps" in spec or "patch-policy" in spec:
            changes["platform"] = PlatformRequirements(
                native_deps=node.platform.native_deps | frozenset(spec.get("native-deps", [])),
                patch_policy=spec.get("patch-policy", node.platform.patch_policy),
            )
        if "broken" in spec:
            changes["broken"] = bool(spec["broken"])
        result = node.replace(**changes) if changes else node
        if spec.get("drop-dependencies"):
            result = result.without_dependencies(*spec["drop-dependencies"])
        if spec.get("extra-dependencies"):
            result = result.with_dependencies(final, *spec["extra-dependencies"])
        return result

    return override


def from_specs(specs):
    return {canonicalize_name(name): from_spec(spec) for name, spec in (specs or {}).items()}


def default_overrides():
    return from_specs(DEFAULT_OVERRIDE_SPECS)


def load_module(dotted_path):
    """Imports a module and returns its OVERRIDES mapping."""
    logger.info(f"Loading overrides from module {dotted_path}")
    try:
        module = importlib.import_module(dotted_path)
    except ImportError as e:
        raise InvalidOverride(f"Cannot import overrides module '{dotted_path}': {e}", field="overrides.module")
    overrides = getattr(module, "OVERRIDES", None)
    if overrides is None:
        raise InvalidOverride(f"Module '{dotted_path}' does not define OVERRIDES", field="overrides.module")
    return dict(overrides)


def from_config(conf):
    """Collects every override enabled by the [overrides] section of lockbuilder.toml."""
    section = conf.get("overrides", {})
    layers = []
    if section.get("use-defaults", True):
        layers.append(default_overrides())
    layers.append(from_specs(section.get("packages", {})))
    if section.get("module"):
        layers.append(load_module(section["module"]))
    return merge(*layers)
