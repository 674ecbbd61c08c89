import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory.")
@click.pass_context
def cli(ctx, path):
    """Turn a poetry.lock into a build plan for a target environment."""
    ctx.obj = {"path": path}

cli.add_command(init)
cli.add_command(config)
cli.add_command(plan)
cli.add_command(check)
cli.add_command(show)
cli.add_command(log)
cli.add_command(version)


if __name__ == '__main__':
    cli()
