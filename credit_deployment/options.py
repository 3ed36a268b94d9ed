from pathlib import Path

import click

from credit_deployment.constants import (
    RESERVE_REGISTRY,
    RISK_ORACLE,
    STABLE_CREDIT_REGISTRY,
    SUPPORTED_TAGS,
)

config_option = click.option(
    "--config",
    "-c",
    "config_filepath",
    help="Deployment config YAML; defaults to the config named after the connected network.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

tag_option = click.option(
    "--tag",
    "-t",
    "tags",
    help="Only run migrations with this tag; may be repeated.",
    type=click.Choice(SUPPORTED_TAGS),
    multiple=True,
)

contract_name_option = click.option(
    "--contract-name",
    "-n",
    help="Name of a proxied contract",
    type=click.Choice([RISK_ORACLE, STABLE_CREDIT_REGISTRY, RESERVE_REGISTRY]),
    required=True,
)

auto_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

verify_option = click.option(
    "--verify/--no-verify",
    help="Publish contract sources to the block explorer; overrides the config file.",
    default=None,
)

registry_filepath_option = click.option(
    "--registry-filepath",
    "-f",
    help="Registry filepath",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)
