from pathlib import Path

from ape.utils import ZERO_ADDRESS

import bridge_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(bridge_deployment.__file__).parent
NETWORKS_DIR = DEPLOYMENT_DIR / "networks"
DEFAULT_CONFIG_FILEPATH = NETWORKS_DIR / "networks.yml"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

# per-network artifact layout
DEPLOYMENTS_NAMESPACE = "deployments"
INITIALIZED_NAMESPACE = "initialized"
BRIDGE_ERC20_TOKENS_KEY = "bridgeERC20Tokens"
NATIVE_DEPOSIT_KEY = "nativeDeposit"

#
# Contracts
#

BRIDGE_CONTRACT = "BunnyWorldBridge"
BRIDGE_ERC20_CONTRACT = "BridgeERC20"
UPGRADEABLE_BEACON_CONTRACT = "UpgradeableBeacon"
BEACON_PROXY_CONTRACT = "BeaconProxy"

IMPL_PREFIX = "Impl"
UPBEACON_PREFIX = "UpBeacon"
PROXY_SUFFIX = "Proxy"

BRIDGE_APPROVER_ROLE = "BRIDGE_APPROVER_ROLE"

GAS_LIMIT = 5_500_000

#
# Addresses
#

DEPLOYER_INDICATOR = "deployer"
NATIVE_TOKEN = ZERO_ADDRESS

#
# Networks
#

LOCAL_NETWORKS = ["local"]
