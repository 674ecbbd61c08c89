"""Assembles environment, overrides and registry from a project's configuration."""
import os
import sys

from . import config as config_module
from . import environment as environment_module
from . import overrides as overrides_module
from .cli_logger import logger
from .errors import LockfileError
from .lockfile import load_lock
from .project import build_application, load_pyproject
from .registry import RegistryBuilder
from .utils.artifact_selector import DEFAULT_EXTENSIONS, WHEEL_SELECTORS


def selection_options(conf):
    section = conf.get("selection", {})
    selector_name = section.get("wheel-selector", "first")
    if selector_name not in WHEEL_SELECTORS:
        raise LockfileError(
            f"Unknown wheel selector '{selector_name}'; expected one of {', '.join(sorted(WHEEL_SELECTORS))}",
            field="selection.wheel-selector",
        )
    return {
        "extensions": tuple(section.get("extensions", DEFAULT_EXTENSIONS)),
        "wheel_selector": WHEEL_SELECTORS[selector_name],
        "prefer_binary": section.get("prefer-binary", False),
    }


def load_overrides(conf, path="."):
    project_dir = os.path.abspath(path)
    if not conf.get("overrides", {}).get("module") or project_dir in sys.path:
        return overrides_module.from_config(conf)
    # Only needed while the user's overrides module is imported
    sys.path.insert(0, project_dir)
    try:
        return overrides_module.from_config(conf)
    finally:
        sys.path.remove(project_dir)


def plan_project(path=".", conf=None, python_version=None, extras=None, with_application=True):
    """
    Builds (environment, registry, application) for the project at path.

    application is None when with_application is False or the project has
    no pyproject.toml.
    """
    if conf is None:
        conf = config_module.load_config(path)

    environment = environment_module.from_config(conf.get("environment"), python_version=python_version, extras=extras)
    logger.info(
        f"Target: Python {environment.python_full_version} on {environment.sys_platform} "
        f"({environment.platform_machine}, {environment.implementation_name})"
    )

    packages = load_lock(config_module.project_file(conf, "lock-file", path))
    builder = RegistryBuilder(environment, overrides=load_overrides(conf, path), **selection_options(conf))
    registry = builder.build(packages)

    application = None
    pyproject_path = config_module.project_file(conf, "pyproject", path)
    if with_application and os.path.exists(pyproject_path):
        application = build_application(load_pyproject(pyproject_path), registry)
    return environment, registry, application
