#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, account_option, network_option

from credit_deployment.environment import DeploymentEnvironment
from credit_deployment.options import (
    auto_option,
    config_option,
    contract_name_option,
    verify_option,
)
from credit_deployment.proxy import upgrade_proxy_and_save
from credit_deployment.utils import config_filepath_from_network


@click.command(cls=ConnectedProviderCommand, name="upgrade")
@account_option()
@network_option(required=True)
@config_option
@contract_name_option
@auto_option
@verify_option
def cli(account, network, config_filepath, contract_name, auto, verify):
    """Deploy a new implementation of a proxied contract and upgrade its proxy."""
    config_filepath = config_filepath or config_filepath_from_network(
        networks.provider.network.name
    )
    env = DeploymentEnvironment.from_yaml(
        filepath=config_filepath, account=account, autosign=auto, verify=verify
    )

    abi = env.read_artifact(contract_name)
    address = upgrade_proxy_and_save(contract_name, env, abi)
    click.secho(f"\n{contract_name} proxy at {address} upgraded.", fg="green")


if __name__ == "__main__":
    cli()
