import click
import os
import sys
import json
import toml
from .. import config as config_module
from .. import environment as environment_module
from ..cli_logger import logger
from ..errors import ConfigError

NOT_FOUND = "Error: No lockbuilder.toml found. Please run 'lockbuilder init' first."


def _parse_value(value):
    """Interprets VALUE as a TOML literal (true, 3, ["a"]) and falls back to a string.

    Floats are kept as written: versions such as 3.10 would otherwise become 3.1.
    """
    try:
        parsed = toml.loads(f"value = {value}")["value"]
    except toml.TomlDecodeError:
        return value
    if isinstance(parsed, float):
        return value
    return parsed


def _load_or_report(ctx):
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(NOT_FOUND)
    return conf


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the lockbuilder.toml configuration file."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """Print lockbuilder.toml as written."""
    if not _load_or_report(ctx):
        return
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading lockbuilder.toml at {config_file_path}: {e}")
        logger.info("Please check file permissions.")

@config.command("list")
@click.pass_context
def list_values(ctx):
    """List all configuration keys and values as JSON."""
    conf = _load_or_report(ctx)
    if conf:
        click.echo(json.dumps(conf, indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a dotted KEY, e.g. environment.python-version."""
    conf = _load_or_report(ctx)
    if not conf:
        return

    value = conf
    try:
        for k in key.split('.'):
            value = value[k]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in lockbuilder.toml")
        return
    click.echo(json.dumps(value) if isinstance(value, (dict, list, bool)) else value)

@config.command("set")
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Set a dotted KEY to VALUE (parsed as a TOML literal when possible)."""
    conf = config_module.load_config(path=ctx.obj["path"])

    keys = key.split('.')
    d = conf
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    d[keys[-1]] = _parse_value(value)

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to {d[keys[-1]]!r}")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a dotted KEY from lockbuilder.toml."""
    conf = _load_or_report(ctx)
    if not conf:
        return

    keys = key.split('.')
    d = conf
    try:
        for k in keys[:-1]:
            d = d[k]
        del d[keys[-1]]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in lockbuilder.toml")
        return
    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Unset '{key}'")

@config.command()
@click.option("--tags", "show_tags", is_flag=True, help="Also list the supported wheel tags.")
@click.pass_context
def env(ctx, show_tags):
    """Show the target environment the configuration resolves to."""
    conf = config_module.load_config(path=ctx.obj["path"])
    try:
        target = environment_module.from_config(conf.get("environment"))
    except (ConfigError, ValueError) as e:
        logger.error(f"Invalid [environment] section: {e}")
        sys.exit(1)
    payload = dict(target.marker_environment(), extras=sorted(target.extras))
    if show_tags:
        payload["supported_tags"] = [str(tag) for tag in target.supported_tags]
    else:
        payload["supported_tags"] = len(target.supported_tags)
    click.echo(json.dumps(payload, indent=4))
