import os
from pathlib import Path
from typing import Optional

import yaml
from ape import networks, project
from ape.contracts import ContractContainer

from bridge_deployment.constants import ARTIFACTS_DIR, LOCAL_NETWORKS
from bridge_deployment.exceptions import InvalidConfig


def _load_yaml(filepath: Path) -> Optional[dict]:
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def get_network_name() -> str:
    """Returns the '<ecosystem>:<network>' name of the connected network."""
    network = networks.provider.network
    return f"{network.ecosystem.name}:{network.name}"


def get_network_artifacts_dir(network_name: str, artifacts_dir: Path = ARTIFACTS_DIR) -> Path:
    return Path(artifacts_dir) / network_name.replace(":", "-")


def check_chain_id(config_chain_id: Optional[int], chain_id: int, local: bool) -> None:
    """
    Checks that the chain_id declared for a network entry matches
    the chain_id of the connected network. Local networks are exempt.
    """
    if config_chain_id is None or local:
        return
    if int(config_chain_id) != chain_id:
        raise InvalidConfig(
            f"chain_id in config ({config_chain_id}) does not match "
            f"chain_id of current network ({chain_id})."
        )


def check_provider_plugin() -> None:
    """Checks that a hosted provider has its API key available."""
    provider_name = networks.provider.name
    if provider_name != "infura":
        return
    try:
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES as envvars
    except ImportError:
        raise ImportError("The ape-infura plugin is required for the infura provider.")
    if not any(os.environ.get(envvar) for envvar in envvars):
        raise ValueError(f"Set one of {', '.join(envvars)} to use the infura provider.")


def check_plugins() -> None:
    if is_local_network():
        return
    print("Checking plugins...")
    check_provider_plugin()


def get_contract_container(contract_name: str) -> ContractContainer:
    """
    Looks up a contract artifact in the project first, then in its
    dependencies (the OpenZeppelin beacon and proxy live there).
    """
    container = getattr(project, contract_name, None)
    if container is not None:
        return container

    matches = list()
    for dependency_name, versions in project.dependencies.items():
        for version, dependency in versions.items():
            container = getattr(dependency, contract_name, None)
            if container is not None:
                matches.append((f"{dependency_name}@{version}", container))
    if not matches:
        raise ValueError(f"No contract found with name '{contract_name}'.")
    if len(matches) > 1:
        sources = ", ".join(source for source, _ in matches)
        raise ValueError(f"Ambiguous contract '{contract_name}' found in {sources}")
    return matches[0][1]
