from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from ape.api import ReceiptAPI
from eth_typing import ChecksumAddress

from bridge_deployment.config import ConfigResolver, NetworkConfig
from bridge_deployment.constants import (
    ARTIFACTS_DIR,
    BRIDGE_APPROVER_ROLE,
    BRIDGE_CONTRACT,
    BRIDGE_ERC20_CONTRACT,
    DEPLOYMENTS_NAMESPACE,
    INITIALIZED_NAMESPACE,
)
from bridge_deployment.deployer import (
    ContractDeployer,
    ContractResolver,
    UpgradeableContractInstaller,
    UpgradeableDeployment,
)
from bridge_deployment.initialization import InitializationGuard
from bridge_deployment.registry import DeploymentRegistry
from bridge_deployment.roles import RoleReconciler
from bridge_deployment.store import JSONFileStore, KeyValueStore
from bridge_deployment.tokens import SymbolicTokenMap, TokenRegistrar
from bridge_deployment.transactor import Transactor
from bridge_deployment.treasury import TreasuryFunder
from bridge_deployment.utils import get_contract_container, get_network_artifacts_dir


class BridgeDeploymentResult(NamedTuple):
    bridge: UpgradeableDeployment
    initialized: bool
    granted_approvers: List[ChecksumAddress]
    tokens: Dict[str, ChecksumAddress]
    bridgeable_tokens_receipt: Optional[ReceiptAPI]
    approval_configs_receipt: Optional[ReceiptAPI]
    deposit_receipt: Optional[ReceiptAPI]


class BridgeDeployment:
    """
    Deploys the bridge and converges it to a network configuration.

    Every step is idempotent, so the whole pipeline can be re-run after a
    failure at any point; it aborts on the first error.
    """

    def __init__(
        self,
        config: NetworkConfig,
        transactor: Transactor,
        store: KeyValueStore,
        contract_resolver: ContractResolver = get_contract_container,
        bridge_contract_name: str = BRIDGE_CONTRACT,
        token_contract_name: str = BRIDGE_ERC20_CONTRACT,
    ):
        self.config = config
        self.transactor = transactor
        self.store = store
        self.contract_resolver = contract_resolver
        self.bridge_contract_name = bridge_contract_name

        self.registry = DeploymentRegistry(store.namespace(DEPLOYMENTS_NAMESPACE))
        self.token_map = SymbolicTokenMap(store)
        self.installer = UpgradeableContractInstaller(
            ContractDeployer(self.registry, transactor, contract_resolver=contract_resolver)
        )
        self.initialization_guard = InitializationGuard(
            transactor, store.namespace(INITIALIZED_NAMESPACE)
        )
        self.role_reconciler = RoleReconciler(transactor)
        self.token_registrar = TokenRegistrar(
            transactor,
            self.token_map,
            self.installer,
            self.initialization_guard,
            contract_resolver=contract_resolver,
            token_contract_name=token_contract_name,
        )
        self.treasury_funder = TreasuryFunder(transactor, store)

    @classmethod
    def from_config_file(
        cls,
        config_filepath: Path,
        network_name: str,
        transactor: Transactor,
        artifacts_dir: Path = ARTIFACTS_DIR,
        **kwargs,
    ) -> "BridgeDeployment":
        config = ConfigResolver.from_yaml(config_filepath).resolve(network_name)
        store = JSONFileStore(get_network_artifacts_dir(network_name, artifacts_dir))
        return cls(config=config, transactor=transactor, store=store, **kwargs)

    def run(self) -> BridgeDeploymentResult:
        config = self.config
        deployer_address = self.transactor.address
        print(f"\nConverging bridge deployment for network '{config.name}'")

        installation = self.installer.install(self.bridge_contract_name)
        bridge = self.contract_resolver(self.bridge_contract_name).at(installation.proxy.address)

        initialized = self.initialization_guard.ensure_initialized(
            bridge.initialize,
            config.bridge_running_status,
            config.global_fee_status,
            config.fee_recipient,
        )

        granted = list()
        if config.bridge_approvers:
            approver_role = getattr(bridge, BRIDGE_APPROVER_ROLE)()
            granted = self.role_reconciler.ensure_granted(
                bridge, approver_role, config.bridge_approvers, deployer_address
            )

        tokens = self.token_registrar.deploy_tokens(
            config.bridge_erc20_deploy_configs, bridge_address=bridge.address
        )
        bridgeable_tokens_receipt = self.token_registrar.register_bridgeable_tokens(
            bridge, config.bridgeable_tokens
        )
        approval_configs_receipt = self.token_registrar.register_approval_configs(
            bridge, config.bridge_approval_configs
        )
        deposit_receipt = self.treasury_funder.deposit_if_configured(
            bridge, config.deposit_native_tokens_amount_ether
        )

        print(f"\n(i) Bridge for '{config.name}' is at {installation.proxy.address}")
        return BridgeDeploymentResult(
            bridge=installation,
            initialized=initialized,
            granted_approvers=granted,
            tokens=tokens,
            bridgeable_tokens_receipt=bridgeable_tokens_receipt,
            approval_configs_receipt=approval_configs_receipt,
            deposit_receipt=deposit_receipt,
        )
