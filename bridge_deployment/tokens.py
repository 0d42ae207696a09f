from typing import Dict, List, Optional, Sequence, Tuple

from ape.api import ReceiptAPI
from ape.contracts import ContractInstance
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from bridge_deployment.config import (
    ApprovalConfig,
    BridgeableToken,
    BridgeableTokenConfig,
    BridgeApprovalConfig,
    BridgeERC20DeployConfig,
)
from bridge_deployment.constants import BRIDGE_ERC20_CONTRACT, BRIDGE_ERC20_TOKENS_KEY
from bridge_deployment.deployer import ContractResolver, UpgradeableContractInstaller
from bridge_deployment.exceptions import (
    BatchRegistrationFailure,
    TokenMapConflict,
    TransactionFailed,
)
from bridge_deployment.initialization import InitializationGuard
from bridge_deployment.store import KeyValueStore
from bridge_deployment.transactor import Transactor
from bridge_deployment.utils import get_contract_container


class SymbolicTokenMap:
    """
    Persisted mapping of symbolic token names to deployed token addresses.

    The map only grows: names are never removed and a recorded name
    cannot be pointed at a different address.
    """

    def __init__(self, store: KeyValueStore, key: str = BRIDGE_ERC20_TOKENS_KEY):
        self._store = store
        self._key = key

    def load(self) -> Dict[str, ChecksumAddress]:
        return dict(self._store.get(self._key) or {})

    def record(self, name: str, address: str) -> None:
        address = to_checksum_address(address)
        tokens = self.load()
        existing = tokens.get(name)
        if existing == address:
            return
        if existing is not None:
            raise TokenMapConflict(
                f"Token '{name}' is already mapped to {existing}; refusing to remap to {address}."
            )
        tokens[name] = address
        self._store.put(self._key, tokens)

    def resolve(self, reference: str) -> str:
        """Returns the mapped address for a symbolic name, otherwise the reference itself."""
        return self.load().get(reference, reference)


TokenKey = Tuple[str, int]


class TokenRegistrar:
    """Deploys bridge tokens and registers token configuration on the bridge in batches."""

    def __init__(
        self,
        transactor: Transactor,
        token_map: SymbolicTokenMap,
        installer: UpgradeableContractInstaller,
        initialization_guard: InitializationGuard,
        contract_resolver: ContractResolver = get_contract_container,
        token_contract_name: str = BRIDGE_ERC20_CONTRACT,
    ):
        self.transactor = transactor
        self.token_map = token_map
        self.installer = installer
        self.initialization_guard = initialization_guard
        self.contract_resolver = contract_resolver
        self.token_contract_name = token_contract_name

    def deploy_tokens(
        self, configs: Sequence[BridgeERC20DeployConfig], bridge_address: ChecksumAddress
    ) -> Dict[str, ChecksumAddress]:
        deployed = dict()
        for config in configs:
            installation = self.installer.install(config.name, self.token_contract_name)
            proxy_address = installation.proxy.address
            self.token_map.record(config.name, proxy_address)

            container = self.contract_resolver(self.token_contract_name)
            token = container.at(proxy_address)
            self.initialization_guard.ensure_initialized(
                token.initialize,
                config.name,
                config.symbol,
                config.decimals,
                config.total_supply_before_decimals * 10**config.decimals,
                bridge_address,
            )
            deployed[config.name] = proxy_address
        return deployed

    def build_bridgeable_tokens_batch(
        self, entries: Sequence[BridgeableToken]
    ) -> Tuple[List[TokenKey], List[BridgeableTokenConfig]]:
        token_list = list()
        config_list = list()
        for entry in entries:
            token_list.append((self.token_map.resolve(entry.token), entry.target_chain_id))
            config_list.append(entry.config)
        return token_list, config_list

    def build_approval_configs_batch(
        self, entries: Sequence[BridgeApprovalConfig]
    ) -> Tuple[List[str], List[ApprovalConfig]]:
        token_list = list()
        config_list = list()
        for entry in entries:
            token_list.append(self.token_map.resolve(entry.token))
            config_list.append(entry.config)
        return token_list, config_list

    def register_bridgeable_tokens(
        self, bridge: ContractInstance, entries: Sequence[BridgeableToken]
    ) -> Optional[ReceiptAPI]:
        if not entries:
            return None
        print("\naddBridgeableTokens...")
        token_list, config_list = self.build_bridgeable_tokens_batch(entries)
        try:
            return self.transactor.transact(bridge.addBridgeableTokens, token_list, config_list)
        except TransactionFailed as e:
            raise BatchRegistrationFailure(f"Could not add bridgeable tokens: {e}") from e

    def register_approval_configs(
        self, bridge: ContractInstance, entries: Sequence[BridgeApprovalConfig]
    ) -> Optional[ReceiptAPI]:
        if not entries:
            return None
        print("\naddBridgeApprovalConfig...")
        token_list, config_list = self.build_approval_configs_batch(entries)
        try:
            return self.transactor.transact(bridge.addBridgeApprovalConfig, token_list, config_list)
        except TransactionFailed as e:
            raise BatchRegistrationFailure(f"Could not add bridge approval configs: {e}") from e
