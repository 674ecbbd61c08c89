import click
from .. import plan as plan_module
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..planner import plan_project

@click.command()
@click.pass_context
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write the plan to this file instead of stdout.")
@click.option("--python", "python_version", default=None, help="Target Python version (e.g. 3.11).")
@click.option("--extra", "extras", multiple=True, help="Activate an extra; may be repeated.")
@click.option("--no-app", is_flag=True, help="Do not include the pyproject.toml application.")
@click.option("--verbose", "-v", is_flag=True, help="Echo debug messages.")
@handle_exceptions
def plan(ctx, output, python_version, extras, no_app, verbose):
    """Write the JSON build plan for the locked packages."""
    logger.verbose = verbose
    environment, registry, application = plan_project(
        ctx.obj["path"],
        python_version=python_version,
        extras=list(extras) if extras else None,
        with_application=not no_app,
    )
    text = plan_module.dumps(plan_module.render_plan(registry, environment, application))
    if output:
        with open(output, "w") as f:
            f.write(text + "\n")
        logger.success(f"Build plan written to {output}")
    else:
        click.echo(text)
