import click
from packaging.utils import canonicalize_name
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..errors import UnresolvedDependencyName
from ..planner import plan_project
from ..utils.artifact_selector import fetch_url

@click.command()
@click.pass_context
@click.argument("name")
@click.option("--python", "python_version", default=None, help="Target Python version (e.g. 3.11).")
@click.option("--extra", "extras", multiple=True, help="Activate an extra; may be repeated.")
@handle_exceptions
def show(ctx, name, python_version, extras):
    """Show the planned node for NAME and how its dependencies resolve."""
    _, registry, _ = plan_project(
        ctx.obj["path"],
        python_version=python_version,
        extras=list(extras) if extras else None,
        with_application=False,
    )
    key = canonicalize_name(name)
    if key not in registry:
        raise UnresolvedDependencyName(key)

    node = registry[key]
    if node is None:
        click.echo(f"{key}: filtered out for this environment")
        return

    click.echo(f"{node.name} {node.version}{' (broken)' if node.broken else ''}")
    click.echo(f"  python-versions: {node.python_versions}")
    click.echo(f"  format: {node.format}")
    if node.artifact is not None:
        click.echo(f"  file: {node.artifact.file}")
        click.echo(f"  url: {fetch_url(node.name, node.artifact)}")
        click.echo(f"  hash: {node.artifact.hash}")
    else:
        click.echo(f"  git: {node.source.url} @ {node.source.reference}")
    if node.platform.native_deps:
        click.echo(f"  native-deps: {', '.join(sorted(node.platform.native_deps))}")
    if node.platform.patch_policy:
        click.echo(f"  patch-policy: {node.platform.patch_policy}")
    click.echo("  dependencies:")
    for dep_name, dep in node.resolved_dependencies():
        state = "filtered" if dep is None else dep.version
        click.echo(f"    - {dep_name} ({state})")
    logger.debug(f"Shown {node.name} with {len(node.dependencies)} dependencies")
