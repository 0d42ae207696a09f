#!/usr/bin/python3
from pathlib import Path

import click

from bridge_deployment.constants import DEPLOYMENTS_NAMESPACE
from bridge_deployment.options import artifacts_dir_option
from bridge_deployment.registry import DeploymentRegistry, export_registry
from bridge_deployment.store import JSONFileStore
from bridge_deployment.utils import get_network_artifacts_dir


@click.command()
@click.option(
    "--network-name",
    "-n",
    help="Name of the network entry whose deployments should be exported",
    type=str,
    required=True,
)
@click.option(
    "--chain-id",
    help="Chain ID to file the deployments under",
    type=int,
    required=True,
)
@click.option(
    "--output-registry",
    "-o",
    help="Filepath of output registry file",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
)
@artifacts_dir_option
def cli(network_name, chain_id, output_registry, artifacts_dir):
    """Export recorded deployments to a contract registry file."""
    store = JSONFileStore(get_network_artifacts_dir(network_name, artifacts_dir))
    records = DeploymentRegistry(store.namespace(DEPLOYMENTS_NAMESPACE)).records()
    export_registry(records=records, chain_id=chain_id, filepath=output_registry)


if __name__ == "__main__":
    cli()
