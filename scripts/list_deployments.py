#!/usr/bin/python3

import click

from bridge_deployment.constants import DEPLOYMENTS_NAMESPACE
from bridge_deployment.options import artifacts_dir_option
from bridge_deployment.registry import DeploymentRegistry
from bridge_deployment.store import JSONFileStore
from bridge_deployment.tokens import SymbolicTokenMap
from bridge_deployment.utils import get_network_artifacts_dir


@click.command(name="list-deployments")
@click.option(
    "--network-name",
    "-n",
    help="Name of the network entry whose deployments should be listed",
    type=str,
    required=True,
)
@artifacts_dir_option
def cli(network_name, artifacts_dir):
    """List recorded deployments and symbolic tokens for a network."""
    store = JSONFileStore(get_network_artifacts_dir(network_name, artifacts_dir))
    records = DeploymentRegistry(store.namespace(DEPLOYMENTS_NAMESPACE)).records()
    click.secho(f"\n{network_name}: {len(records)} deployments found.", fg="green")
    for index, record in enumerate(records, start=1):
        click.secho(
            f"    {index}. {record.name} ({record.contract_name}) {record.address}", fg="cyan"
        )

    tokens = SymbolicTokenMap(store).load()
    if tokens:
        click.secho("\nSymbolic tokens", fg="yellow")
        for name, address in tokens.items():
            click.secho(f"    {name} {address}", fg="cyan")


if __name__ == "__main__":
    cli()
