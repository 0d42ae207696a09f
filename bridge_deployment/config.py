from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from bridge_deployment.constants import BRIDGE_CONTRACT, DEPLOYER_INDICATOR
from bridge_deployment.exceptions import ConfigMissing, InvalidConfig
from bridge_deployment.utils import _load_yaml

NETWORKS_KEY = "networks"


class BridgeableTokenConfig(NamedTuple):
    enabled: bool
    burn: bool
    min_bridge_amount: int
    max_bridge_amount: int
    bridge_fee: int


class BridgeableToken(NamedTuple):
    token: str  # symbolic name or address
    target_chain_id: int
    config: BridgeableTokenConfig


class ApprovalConfig(NamedTuple):
    enabled: bool
    transfer: bool


class BridgeApprovalConfig(NamedTuple):
    token: str  # symbolic name or address
    config: ApprovalConfig


class BridgeERC20DeployConfig(NamedTuple):
    name: str
    symbol: str
    decimals: int
    total_supply_before_decimals: int


class NetworkConfig(NamedTuple):
    """Declarative target state of the bridge on a single network."""

    name: str
    bridge_running_status: bool
    global_fee_status: bool
    fee_recipient: ChecksumAddress
    bridge_approvers: Tuple[str, ...] = ()
    bridgeable_tokens: Tuple[BridgeableToken, ...] = ()
    bridge_approval_configs: Tuple[BridgeApprovalConfig, ...] = ()
    bridge_erc20_deploy_configs: Tuple[BridgeERC20DeployConfig, ...] = ()
    deposit_native_tokens_amount_ether: Optional[int] = None
    chain_id: Optional[int] = None

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "NetworkConfig":
        if not isinstance(data, dict):
            raise InvalidConfig(f"Malformed config for network '{name}'.")
        _check_keys(data, cls._fields, context=name)
        if "name" in data:
            raise InvalidConfig(f"'name' is implied by the network key ('{name}').")

        deposit = data.get("deposit_native_tokens_amount_ether")
        if deposit is not None:
            deposit = _integer(deposit, f"{name}.deposit_native_tokens_amount_ether")

        chain_id = data.get("chain_id")
        if chain_id is not None:
            chain_id = _integer(chain_id, f"{name}.chain_id")

        config = cls(
            name=name,
            bridge_running_status=_boolean(_get(data, "bridge_running_status", name), name),
            global_fee_status=_boolean(_get(data, "global_fee_status", name), name),
            fee_recipient=_address(_get(data, "fee_recipient", name), f"{name}.fee_recipient"),
            bridge_approvers=tuple(
                _approver(approver, f"{name}.bridge_approvers")
                for approver in _list(data, "bridge_approvers", name)
            ),
            bridgeable_tokens=tuple(
                _bridgeable_token(entry, f"{name}.bridgeable_tokens[{index}]")
                for index, entry in enumerate(_list(data, "bridgeable_tokens", name))
            ),
            bridge_approval_configs=tuple(
                _approval_config(entry, f"{name}.bridge_approval_configs[{index}]")
                for index, entry in enumerate(_list(data, "bridge_approval_configs", name))
            ),
            bridge_erc20_deploy_configs=tuple(
                _erc20_deploy_config(entry, f"{name}.bridge_erc20_deploy_configs[{index}]")
                for index, entry in enumerate(_list(data, "bridge_erc20_deploy_configs", name))
            ),
            deposit_native_tokens_amount_ether=deposit,
            chain_id=chain_id,
        )
        _check_token_names(config.bridge_erc20_deploy_configs, context=name)
        return config


class ConfigResolver:
    """Supplies the declarative target state for a named network."""

    def __init__(self, networks_config: Dict[str, Any]):
        if not isinstance(networks_config, dict):
            raise InvalidConfig(f"Config file must contain a '{NETWORKS_KEY}' mapping.")
        self._networks_config = networks_config

    @classmethod
    def from_yaml(cls, filepath: Path) -> "ConfigResolver":
        config = _load_yaml(filepath) or dict()
        return cls(networks_config=config.get(NETWORKS_KEY))

    def network_names(self) -> List[str]:
        return list(self._networks_config)

    def resolve(self, network_name: str) -> NetworkConfig:
        try:
            data = self._networks_config[network_name]
        except KeyError:
            raise ConfigMissing(
                f"Unconfigured network: '{network_name}'. "
                f"Configured networks are {', '.join(self.network_names()) or 'none'}."
            )
        return NetworkConfig.from_dict(name=network_name, data=data)


#
# Field parsing
#


def _check_token_names(configs: Tuple[BridgeERC20DeployConfig, ...], context: str) -> None:
    """Logical deployment names must be unique within a network."""
    seen = set()
    for config in configs:
        if config.name == BRIDGE_CONTRACT:
            raise InvalidConfig(
                f"Token name '{config.name}' in {context} collides with the bridge deployment."
            )
        if config.name in seen:
            raise InvalidConfig(f"Duplicate token name '{config.name}' in {context}.")
        seen.add(config.name)


def _check_keys(data: Dict[str, Any], allowed, context: str) -> None:
    unknown = set(data) - set(allowed)
    if unknown:
        raise InvalidConfig(f"Unknown key(s) in {context}: {', '.join(sorted(unknown))}")


def _get(data: Dict[str, Any], key: str, context: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise InvalidConfig(f"'{key}' is not set for {context}.")


def _list(data: Dict[str, Any], key: str, context: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise InvalidConfig(f"'{key}' must be a list for {context}.")
    return value


def _boolean(value: Any, context: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidConfig(f"Expected a boolean in {context}, got '{value}'.")
    return value


def _integer(value: Any, context: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(f"Expected an integer in {context}, got '{value}'.")
    if value < minimum:
        raise InvalidConfig(f"{context} must be at least {minimum}, got {value}.")
    return value


def _address(value: Any, context: str) -> ChecksumAddress:
    if not isinstance(value, str) or not is_address(value):
        raise InvalidConfig(f"Invalid address in {context}: '{value}'.")
    return to_checksum_address(value)


def _approver(value: Any, context: str) -> str:
    if value == DEPLOYER_INDICATOR:
        return value
    return _address(value, context)


def _token_reference(value: Any, context: str) -> str:
    """A literal address (checksummed) or a symbolic token name (kept as is)."""
    if not isinstance(value, str) or not value:
        raise InvalidConfig(f"Invalid token reference in {context}: '{value}'.")
    if is_address(value):
        return to_checksum_address(value)
    return value


def _bridgeable_token(entry: Any, context: str) -> BridgeableToken:
    if not isinstance(entry, dict):
        raise InvalidConfig(f"Malformed entry {context}.")
    _check_keys(entry, BridgeableToken._fields, context)
    config = _get(entry, "config", context)
    if not isinstance(config, dict):
        raise InvalidConfig(f"Malformed config for {context}.")
    _check_keys(config, BridgeableTokenConfig._fields, f"{context}.config")
    return BridgeableToken(
        token=_token_reference(_get(entry, "token", context), context),
        target_chain_id=_integer(_get(entry, "target_chain_id", context), context, minimum=1),
        config=BridgeableTokenConfig(
            enabled=_boolean(_get(config, "enabled", context), context),
            burn=_boolean(_get(config, "burn", context), context),
            min_bridge_amount=_integer(config.get("min_bridge_amount", 0), context),
            max_bridge_amount=_integer(config.get("max_bridge_amount", 0), context),
            bridge_fee=_integer(config.get("bridge_fee", 0), context),
        ),
    )


def _approval_config(entry: Any, context: str) -> BridgeApprovalConfig:
    if not isinstance(entry, dict):
        raise InvalidConfig(f"Malformed entry {context}.")
    _check_keys(entry, BridgeApprovalConfig._fields, context)
    config = _get(entry, "config", context)
    if not isinstance(config, dict):
        raise InvalidConfig(f"Malformed config for {context}.")
    _check_keys(config, ApprovalConfig._fields, f"{context}.config")
    return BridgeApprovalConfig(
        token=_token_reference(_get(entry, "token", context), context),
        config=ApprovalConfig(
            enabled=_boolean(_get(config, "enabled", context), context),
            transfer=_boolean(_get(config, "transfer", context), context),
        ),
    )


def _erc20_deploy_config(entry: Any, context: str) -> BridgeERC20DeployConfig:
    if not isinstance(entry, dict):
        raise InvalidConfig(f"Malformed entry {context}.")
    _check_keys(entry, BridgeERC20DeployConfig._fields, context)
    name = _get(entry, "name", context)
    # the name doubles as the logical deployment name, i.e. a store key
    if not isinstance(name, str) or not name or "/" in name or name.startswith("."):
        raise InvalidConfig(f"Invalid token name in {context}: '{name}'.")
    if is_address(name):
        raise InvalidConfig(f"Token name in {context} must not be an address, got '{name}'.")
    decimals = _integer(_get(entry, "decimals", context), context)
    if decimals > 255:
        raise InvalidConfig(f"decimals in {context} must fit in uint8, got {decimals}.")
    return BridgeERC20DeployConfig(
        name=name,
        symbol=str(_get(entry, "symbol", context)),
        decimals=decimals,
        total_supply_before_decimals=_integer(
            _get(entry, "total_supply_before_decimals", context), context
        ),
    )
