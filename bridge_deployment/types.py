from typing import NamedTuple, Optional, Tuple, Union

from bridge_deployment.constants import IMPL_PREFIX, PROXY_SUFFIX, UPBEACON_PREFIX


def implementation_name(name: str) -> str:
    return f"{IMPL_PREFIX}{name}"


def beacon_name(name: str) -> str:
    return f"{UPBEACON_PREFIX}{name}"


def proxy_name(name: str) -> str:
    return f"{name}{PROXY_SUFFIX}"


class SimpleContract(NamedTuple):
    """An upgradeable contract with its own implementation, beacon and proxy."""

    name: str
    contract_name: Optional[str] = None  # artifact; defaults to name


class GroupedContract(NamedTuple):
    """
    An upgradeable contract whose implementation and beacon are shared
    by one proxy per child name.
    """

    name: str
    children: Tuple[str, ...]
    contract_name: Optional[str] = None


UpgradeableContract = Union[SimpleContract, GroupedContract]
