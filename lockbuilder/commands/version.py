import click
import importlib.metadata
import packaging
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of lockbuilder and of the packaging library it evaluates with."""
    try:
        ver = importlib.metadata.version("lockbuilder")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of lockbuilder. Is it installed correctly?")
        return
    click.echo(f"lockbuilder {ver} (packaging {packaging.__version__})")
