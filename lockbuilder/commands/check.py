import click
import sys
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..planner import plan_project

@click.command()
@click.pass_context
@click.option("--python", "python_version", default=None, help="Target Python version (e.g. 3.11).")
@click.option("--extra", "extras", multiple=True, help="Activate an extra; may be repeated.")
@click.option("--strict", is_flag=True, help="Fail when any package is broken for the target Python.")
@handle_exceptions
def check(ctx, python_version, extras, strict):
    """Validate the lock file against the target environment."""
    _, registry, application = plan_project(
        ctx.obj["path"],
        python_version=python_version,
        extras=list(extras) if extras else None,
    )

    filtered = registry.filtered()
    if filtered:
        logger.info(f"Filtered out for this environment: {', '.join(sorted(filtered))}")

    broken = registry.broken()
    for node in broken:
        logger.warning(f"{node.name} {node.version} is broken: requires Python {node.python_versions}")

    patched = [node for node in registry.nodes() if node.platform.needs_patching]
    for node in patched:
        logger.step_info(f"- {node.name}: {node.artifact.file} needs manylinux{node.platform.patch_policy} patching", indent=2)

    if application is not None:
        logger.info(f"Application {application.name} {application.version} has {len(application.propagated)} runtime dependencies.")

    if broken and strict:
        logger.error(f"{len(broken)} package(s) are broken for the target Python.")
        sys.exit(1)
    logger.success(f"Lock file is consistent: {len(registry.nodes())} packages to build.")
