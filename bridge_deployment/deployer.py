import typing
from typing import Callable, Dict, List, NamedTuple

from ape.contracts import ContractContainer

from bridge_deployment.constants import BEACON_PROXY_CONTRACT, UPGRADEABLE_BEACON_CONTRACT
from bridge_deployment.exceptions import DeploymentFailure, TransactionFailed
from bridge_deployment.registry import DeploymentRecord, DeploymentRegistry, record_from_instance
from bridge_deployment.transactor import Transactor
from bridge_deployment.types import (
    GroupedContract,
    SimpleContract,
    UpgradeableContract,
    beacon_name,
    implementation_name,
    proxy_name,
)
from bridge_deployment.utils import get_contract_container

ContractResolver = Callable[[str], ContractContainer]


class ContractDeployer:
    """Deploys named contract artifacts at most once per logical name."""

    def __init__(
        self,
        registry: DeploymentRegistry,
        transactor: Transactor,
        contract_resolver: ContractResolver = get_contract_container,
    ):
        self.registry = registry
        self.transactor = transactor
        self.contract_resolver = contract_resolver

    def deploy(self, name: str, contract_name: str, *args) -> DeploymentRecord:
        existing = self.registry.get(name)
        if existing is not None:
            print(
                f'[Reused] contract "{name}" ("{existing.contract_name}") '
                f'deployed at "{existing.address}"'
            )
            return existing

        print(f'\n>> Deploying contract "{name}" ("{contract_name}")...')
        container = self.contract_resolver(contract_name)
        try:
            instance = self.transactor.deploy(name, container, *args)
            record = record_from_instance(name=name, contract_instance=instance)
        except TransactionFailed as e:
            raise DeploymentFailure(f"Could not deploy {name} ({contract_name}): {e}") from e

        self.registry.put(record)
        print(
            f'[New] contract "{name}" ("{contract_name}") deployed at "{record.address}"\n'
            f' - tx: "{record.tx_hash}"\n'
            f' - gas: {record.receipt["gas_used"]}\n'
            f' - deployer: "{record.receipt["deployer"]}"'
        )
        return record


class UpgradeableDeployment(NamedTuple):
    implementation: DeploymentRecord
    beacon: DeploymentRecord
    proxy: DeploymentRecord


class GroupedDeployment(NamedTuple):
    implementation: DeploymentRecord
    beacon: DeploymentRecord
    proxies: Dict[str, DeploymentRecord]


class UpgradeableContractInstaller:
    """
    Materializes upgradeable contracts as implementation -> beacon -> proxy.

    Each step goes through the idempotent ContractDeployer, so re-running an
    interrupted installation resumes at the first step that was not recorded.
    Existing beacons are never retargeted.
    """

    def __init__(self, deployer: ContractDeployer):
        self.deployer = deployer

    def _deploy_implementation(self, name: str, contract_name: str) -> DeploymentRecord:
        return self.deployer.deploy(implementation_name(name), contract_name)

    def _deploy_beacon(self, name: str, implementation: DeploymentRecord) -> DeploymentRecord:
        return self.deployer.deploy(
            beacon_name(name),
            UPGRADEABLE_BEACON_CONTRACT,
            implementation.address,
            self.deployer.transactor.address,  # initialOwner
        )

    def _deploy_proxy(self, name: str, beacon: DeploymentRecord) -> DeploymentRecord:
        return self.deployer.deploy(
            proxy_name(name),
            BEACON_PROXY_CONTRACT,
            beacon.address,
            b"",  # no initializer data; initialization is a separate guarded step
        )

    def install(self, name: str, contract_name: typing.Optional[str] = None) -> UpgradeableDeployment:
        implementation = self._deploy_implementation(name, contract_name or name)
        beacon = self._deploy_beacon(name, implementation)
        proxy = self._deploy_proxy(name, beacon)
        return UpgradeableDeployment(implementation=implementation, beacon=beacon, proxy=proxy)

    def install_grouped(
        self, name: str, children: typing.Sequence[str], contract_name: typing.Optional[str] = None
    ) -> GroupedDeployment:
        if not children:
            raise ValueError(f"Grouped contract {name} has no children")
        implementation = self._deploy_implementation(name, contract_name or name)
        beacon = self._deploy_beacon(name, implementation)
        proxies = dict()
        for child in children:
            proxies[child] = self._deploy_proxy(child, beacon)
        return GroupedDeployment(implementation=implementation, beacon=beacon, proxies=proxies)

    def install_all(
        self, contracts: List[UpgradeableContract]
    ) -> Dict[str, typing.Union[UpgradeableDeployment, GroupedDeployment]]:
        results = dict()
        for contract in contracts:
            if isinstance(contract, SimpleContract):
                results[contract.name] = self.install(contract.name, contract.contract_name)
            elif isinstance(contract, GroupedContract):
                results[contract.name] = self.install_grouped(
                    contract.name, contract.children, contract.contract_name
                )
            else:
                raise TypeError(f"Unexpected upgradeable contract declaration: {contract!r}")
        return results
