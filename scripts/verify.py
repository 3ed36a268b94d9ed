#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, network_option

from credit_deployment.options import registry_filepath_option
from credit_deployment.registry import DeploymentRegistry
from credit_deployment.utils import get_contract_container, verify_contracts


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@click.option(
    "--contract-name",
    "-n",
    "contract_names",
    help="Contract to verify",
    type=click.STRING,
    required=True,
    multiple=True,
)
@registry_filepath_option
def cli(network, contract_names, registry_filepath):
    """Verify deployed contracts; proxied contracts are verified through their implementation."""
    chain_id = networks.active_provider.chain_id
    registry = DeploymentRegistry(filepath=registry_filepath, chain_id=chain_id)

    contract_instances = []
    for contract_name in contract_names:
        entry = registry.get_or_null(contract_name)
        if entry is None:
            raise ValueError(
                f"Contract '{contract_name}' not found in registry, '{registry_filepath}', "
                f"for chain {chain_id}"
            )

        target = entry.implementation or entry.address
        if entry.implementation:
            print(f"Proxy contract detected; verifying implementation contract at {target}")
        contract_instances.append(get_contract_container(contract_name).at(target))

    verify_contracts(contract_instances)


if __name__ == "__main__":
    cli()
