#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, account_option, network_option

from credit_deployment.environment import DeploymentEnvironment
from credit_deployment.migrations import run_migrations
from credit_deployment.options import auto_option, config_option, tag_option, verify_option
from credit_deployment.utils import config_filepath_from_network


@click.command(cls=ConnectedProviderCommand, name="deploy")
@account_option()
@network_option(required=True)
@config_option
@tag_option
@auto_option
@verify_option
def cli(account, network, config_filepath, tags, auto, verify):
    """
    Deploy the proxied RiskOracle, StableCreditRegistry and ReserveRegistry contracts.
    Contracts already present in the registry are left untouched, so the command can be re-run.

    ape run deploy --network ethereum:sepolia:infura --account deployer --tag ORACLE
    """
    config_filepath = config_filepath or config_filepath_from_network(
        networks.provider.network.name
    )
    env = DeploymentEnvironment.from_yaml(
        filepath=config_filepath, account=account, autosign=auto, verify=verify
    )

    addresses = run_migrations(env, tags=tags)

    click.secho(f"\nDeployments on chain {env.chain_id}:", fg="green")
    for name, address in addresses.items():
        click.secho(f"    {name} {address}", fg="cyan")
    click.secho(f"(i) Registry at {env.registry.filepath}", fg="yellow")


if __name__ == "__main__":
    cli()
