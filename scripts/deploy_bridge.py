#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, account_option, network_option
from web3 import Web3

from bridge_deployment.config import ConfigResolver
from bridge_deployment.constants import GAS_LIMIT
from bridge_deployment.options import (
    artifacts_dir_option,
    autosign_option,
    config_file_option,
    network_name_option,
)
from bridge_deployment.pipeline import BridgeDeployment
from bridge_deployment.store import JSONFileStore
from bridge_deployment.transactor import Transactor
from bridge_deployment.utils import (
    check_chain_id,
    check_plugins,
    get_network_artifacts_dir,
    get_network_name,
    is_local_network,
)


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@config_file_option
@network_name_option
@artifacts_dir_option
@autosign_option
def cli(network, account, config_file, network_name, artifacts_dir, autosign):
    """Deploy the bridge and converge it to the network configuration."""
    network_name = network_name or get_network_name()

    # resolve the config before anything else so an unconfigured network fails early
    config = ConfigResolver.from_yaml(config_file).resolve(network_name)
    chain_id = networks.provider.network.chain_id
    check_chain_id(config.chain_id, chain_id=chain_id, local=is_local_network())
    check_plugins()

    transactor = Transactor(account, autosign=autosign, gas_limit=GAS_LIMIT)
    store_dir = get_network_artifacts_dir(network_name, artifacts_dir)
    balance = Web3.from_wei(transactor.get_account().balance, "ether")
    print(
        f"Account: {transactor.address}",
        f"Balance: {balance} ETH",
        f"Config: {config_file}",
        f"Network config: {network_name}",
        f"Artifacts: {store_dir}",
        f"Ecosystem: {networks.provider.network.ecosystem.name}",
        f"Network: {networks.provider.network.name}",
        f"Chain ID: {chain_id}",
        sep="\n",
    )

    deployment = BridgeDeployment(
        config=config,
        transactor=transactor,
        store=JSONFileStore(store_dir),
    )
    result = deployment.run()

    click.secho(f"\nBridge: {result.bridge.proxy.address}", fg="green")
    for name, address in result.tokens.items():
        click.secho(f"Token {name}: {address}", fg="cyan")


if __name__ == "__main__":
    cli()
