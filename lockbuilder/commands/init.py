import click
import copy
import os
import sys
import toml
from .. import config as config_module
from ..cli_logger import logger


def _get_default_config():
    return copy.deepcopy(config_module.DEFAULT_CONFIG)


def _prompt_for_input(prompt, default, validation_func=None, **kwargs):
    while True:
        value = click.prompt(prompt, default=default, **kwargs)
        if validation_func is None or validation_func(value):
            return value
        else:
            logger.warning(f"Invalid input for {prompt}. Please try again.")


def _prompt_for_list_input(prompt, default):
    value_str = click.prompt(prompt, default=default)
    # Allow empty list if the input string was empty
    if not value_str.strip():
        return []
    return [v.strip() for v in value_str.split(',') if v.strip()]


def _is_python_version(value):
    parts = value.split(".")
    return 2 <= len(parts) <= 3 and all(p.isdigit() for p in parts)


@click.command()
@click.option('--non-interactive', is_flag=True, help='Run in non-interactive mode using default values.')
@click.option('--config-file', type=click.Path(exists=True), help='Path to a TOML file with configuration values.')
@click.pass_context
def init(ctx, non_interactive, config_file):
    """Create a lockbuilder.toml for the project."""
    logger.info("Initializing lockbuilder configuration.")

    conf = {}
    if config_file:
        logger.info(f"Loading configuration from {config_file}")
        with open(config_file, 'r') as f:
            conf = toml.load(f)
    elif non_interactive:
        logger.info("Running in non-interactive mode with default values.")
        conf = _get_default_config()
    else:
        logger.info("Please provide the following details (leave empty to use the running interpreter):")
        try:
            conf = _get_default_config()
            lock_file = _prompt_for_input("Lock file", "poetry.lock")
            python_version = _prompt_for_input(
                "Target Python version (e.g., 3.11)", "",
                validation_func=lambda v: not v or _is_python_version(v),
            )
            sys_platform = _prompt_for_input("Target sys.platform (e.g., linux, darwin, win32)", "")
            extras = _prompt_for_list_input("Active extras (comma-separated)", "")
            wheel_selector = _prompt_for_input(
                "Wheel selection", "first", type=click.Choice(["first", "best"])
            )

            conf["project"]["lock-file"] = lock_file
            if python_version:
                conf["environment"]["python-version"] = python_version
            if sys_platform:
                conf["environment"]["sys-platform"] = sys_platform
            conf["environment"]["extras"] = extras
            conf["selection"]["wheel-selector"] = wheel_selector
        except click.Abort:
            logger.warning("\nInitialization aborted by user.")
            return

    config_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        if config_module.save_config(conf, path=ctx.obj["path"]):
            logger.success(f"Configuration saved to {config_path}")
            logger.info("Next steps: Run 'lockbuilder check' to validate the lock file for this environment.")
    except Exception as e:
        logger.error(f"An unexpected error occurred while saving configuration file: {e}")
        logger.exception(*sys.exc_info())
        sys.exit(1)
