from collections import defaultdict
from types import SimpleNamespace
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

import pytest
from ape.exceptions import ContractLogicError
from eth_utils import keccak, to_checksum_address
from ethpm_types import ContractType, MethodABI
from ethpm_types.abi import ABIType

from bridge_deployment.config import (
    ApprovalConfig,
    BridgeableToken,
    BridgeableTokenConfig,
    BridgeApprovalConfig,
    BridgeERC20DeployConfig,
    NetworkConfig,
)
from bridge_deployment.constants import (
    BEACON_PROXY_CONTRACT,
    BRIDGE_CONTRACT,
    BRIDGE_ERC20_CONTRACT,
    DEPLOYMENTS_NAMESPACE,
    UPGRADEABLE_BEACON_CONTRACT,
)
from bridge_deployment.deployer import ContractDeployer, UpgradeableContractInstaller
from bridge_deployment.registry import DeploymentRegistry
from bridge_deployment.store import InMemoryStore
from bridge_deployment.transactor import Transactor

# Common constants
APPROVER_ROLE = keccak(text="BRIDGE_APPROVER_ROLE")
DEFAULT_ADMIN_ROLE = b"\x00" * 32
ALREADY_INITIALIZED = "Initializable: contract is already initialized"
FEE_RECIPIENT = to_checksum_address("0x686e797117ba23b30aa07aadf82ba8a0b329948b")
ONE_ETHER = 10**18


def address_of(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


# ABI helpers


def _abi_type(name: str, type_: str, components: Optional[Sequence[Tuple[str, str]]] = None):
    if components:
        return ABIType(
            name=name, type=type_, components=[_abi_type(n, t) for n, t in components]
        )
    return ABIType(name=name, type=type_)


def _method(name, inputs=(), outputs=(), mutability="nonpayable") -> MethodABI:
    return MethodABI(
        type="function",
        name=name,
        stateMutability=mutability,
        inputs=[i if isinstance(i, ABIType) else _abi_type(*i) for i in inputs],
        outputs=[_abi_type(*o) for o in outputs],
    )


BRIDGE_ABI = [
    _method(
        "initialize",
        [
            ("_bridgeRunningStatus", "bool"),
            ("_globalFeeStatus", "bool"),
            ("_feeRecipient", "address"),
        ],
    ),
    _method("BRIDGE_APPROVER_ROLE", outputs=[("", "bytes32")], mutability="view"),
    _method(
        "hasRole",
        [("role", "bytes32"), ("account", "address")],
        [("", "bool")],
        mutability="view",
    ),
    _method("grantRole", [("role", "bytes32"), ("account", "address")]),
    _method(
        "addBridgeableTokens",
        [
            _abi_type("tokenList", "tuple[]", [("token", "address"), ("chainId", "uint256")]),
            _abi_type(
                "configList",
                "tuple[]",
                [
                    ("enabled", "bool"),
                    ("burn", "bool"),
                    ("minBridgeAmount", "uint256"),
                    ("maxBridgeAmount", "uint256"),
                    ("bridgeFee", "uint256"),
                ],
            ),
        ],
    ),
    _method(
        "addBridgeApprovalConfig",
        [
            ("tokenList", "address[]"),
            _abi_type("configList", "tuple[]", [("enabled", "bool"), ("transfer", "bool")]),
        ],
    ),
    _method("depositNativeTokens", mutability="payable"),
]

BRIDGE_ERC20_ABI = [
    _method(
        "initialize",
        [
            ("name_", "string"),
            ("symbol_", "string"),
            ("decimals_", "uint8"),
            ("totalSupply_", "uint256"),
            ("bridge_", "address"),
        ],
    ),
]

BEACON_ABI = [_method("implementation", outputs=[("", "address")], mutability="view")]


# Fake contract logic


def revert(message: str):
    raise ContractLogicError(message)


class BridgeLogic:
    def __init__(self):
        self.initialized_with = None
        self.roles = defaultdict(set)
        self.bridgeable_tokens = []
        self.approval_configs = []
        self.deposits = []

    def initialize(self, ctx, running_status, fee_status, fee_recipient):
        if self.initialized_with is not None:
            revert(ALREADY_INITIALIZED)
        if ctx.dry_run:
            return
        self.initialized_with = (running_status, fee_status, fee_recipient)
        self.roles[DEFAULT_ADMIN_ROLE].add(ctx.sender)

    def BRIDGE_APPROVER_ROLE(self, ctx):
        return APPROVER_ROLE

    def hasRole(self, ctx, role, account):
        return account in self.roles[bytes(role)]

    def grantRole(self, ctx, role, account):
        if ctx.sender not in self.roles[DEFAULT_ADMIN_ROLE]:
            revert(f"AccessControl: account {ctx.sender} is missing role")
        if not ctx.dry_run:
            self.roles[bytes(role)].add(account)

    def addBridgeableTokens(self, ctx, token_list, config_list):
        if len(token_list) != len(config_list):
            revert("length mismatch")
        if not ctx.dry_run:
            self.bridgeable_tokens.extend(zip(token_list, config_list))

    def addBridgeApprovalConfig(self, ctx, token_list, config_list):
        if len(token_list) != len(config_list):
            revert("length mismatch")
        if not ctx.dry_run:
            self.approval_configs.extend(zip(token_list, config_list))

    def depositNativeTokens(self, ctx):
        if not ctx.dry_run:
            self.deposits.append(ctx.value)


class TokenLogic:
    def __init__(self):
        self.initialized_with = None

    def initialize(self, ctx, name, symbol, decimals, total_supply, bridge):
        if self.initialized_with is not None:
            revert(ALREADY_INITIALIZED)
        if not ctx.dry_run:
            self.initialized_with = (name, symbol, decimals, total_supply, bridge)


class FakeTransaction(NamedTuple):
    kind: str  # "deploy" or "transact"
    contract_name: str
    address: str
    method: Optional[str]
    args: Tuple[Any, ...]
    value: int
    sender: str
    reverted: bool


class FakeHandler:
    def __init__(self, contract: "FakeContract", name: str, abis: List[MethodABI]):
        self.contract = contract
        self.name = name
        self.abis = abis

    def __str__(self):
        abi = self.abis[0]
        return f"{self.name}({', '.join(i.canonical_type for i in abi.inputs)})"

    def call(self, *args, sender=None):
        chain = self.contract.chain
        chain.simulations.append((self.contract.contract_type.name, self.name, args))
        if chain.probe_error is not None:
            raise chain.probe_error
        return self.contract.execute(self.name, args, sender=sender, value=0, dry_run=True)

    def __call__(self, *args, sender=None, value=0, **kwargs):
        chain = self.contract.chain
        reverted = self.name in chain.reverts
        chain.transactions.append(
            FakeTransaction(
                kind="transact",
                contract_name=self.contract.contract_type.name,
                address=self.contract.address,
                method=self.name,
                args=args,
                value=value,
                sender=sender.address,
                reverted=reverted,
            )
        )
        if reverted:
            revert(f"{self.name} reverted")
        self.contract.execute(self.name, args, sender=sender, value=value, dry_run=False)
        return chain.receipt(sender.address)


class FakeContract:
    def __init__(self, chain: "FakeChain", container: "FakeContainer", address: str, receipt=None):
        self.chain = chain
        self.contract_type = container.contract_type
        self.address = address
        self.receipt = receipt
        self.logic = chain.logic_at(address, container.logic_class)

    def execute(self, name, args, sender, value, dry_run):
        ctx = SimpleNamespace(
            sender=sender.address if sender is not None else None,
            value=value,
            dry_run=dry_run,
        )
        return getattr(self.logic, name)(ctx, *args)

    def __getattr__(self, name):
        if name.startswith("_") or name in ("chain", "contract_type", "logic"):
            raise AttributeError(name)
        abis = [abi for abi in self.contract_type.methods if abi.name == name]
        if not abis:
            raise AttributeError(name)
        if abis[0].stateMutability in ("view", "pure"):
            return lambda *args: self.execute(name, args, sender=None, value=0, dry_run=True)
        return FakeHandler(self, name, abis)


class FakeContainer:
    def __init__(self, chain: "FakeChain", name: str, abi: List[MethodABI], logic_class=None):
        self.chain = chain
        self.contract_type = ContractType(contractName=name, abi=abi)
        self.logic_class = logic_class

    def at(self, address: str) -> FakeContract:
        if address not in self.chain.deployed:
            raise ValueError(f"No contract at {address}")
        return FakeContract(self.chain, self, address)


class FakeAccount:
    def __init__(self, chain: "FakeChain", address: str):
        self.chain = chain
        self.address = address
        self.balance = 1_000 * ONE_ETHER
        self.autosign = None

    def set_autosign(self, enabled: bool, passphrase: Optional[str] = None):
        self.autosign = enabled

    def deploy(self, container: FakeContainer, *args, publish=False, **kwargs) -> FakeContract:
        return self.chain.deploy(container, args, sender=self)


class FakeChain:
    """In-process stand-in for a connected ape provider."""

    def __init__(self):
        self._counter = 0x1000
        self.block_number = 1
        self.deployed: Dict[str, FakeTransaction] = dict()
        self.transactions: List[FakeTransaction] = list()
        self.simulations: List[Tuple[str, str, Tuple]] = list()
        self.reverts = set()
        self.probe_error: Optional[Exception] = None
        self._logic: Dict[str, Any] = dict()
        self.containers = {
            BRIDGE_CONTRACT: FakeContainer(self, BRIDGE_CONTRACT, BRIDGE_ABI, BridgeLogic),
            BRIDGE_ERC20_CONTRACT: FakeContainer(
                self, BRIDGE_ERC20_CONTRACT, BRIDGE_ERC20_ABI, TokenLogic
            ),
            UPGRADEABLE_BEACON_CONTRACT: FakeContainer(self, UPGRADEABLE_BEACON_CONTRACT, BEACON_ABI),
            BEACON_PROXY_CONTRACT: FakeContainer(self, BEACON_PROXY_CONTRACT, []),
        }
        self.deployer = FakeAccount(self, self._next_address())
        self.others = [FakeAccount(self, self._next_address()) for _ in range(3)]

    def _next_address(self) -> str:
        self._counter += 1
        return address_of(self._counter)

    def resolve(self, contract_name: str) -> FakeContainer:
        try:
            return self.containers[contract_name]
        except KeyError:
            raise ValueError(f"No contract found with name '{contract_name}'.")

    def receipt(self, sender: str):
        self._counter += 1
        self.block_number += 1
        return SimpleNamespace(
            txn_hash=f"0x{self._counter:064x}",
            block_number=self.block_number,
            gas_used=21_000,
            failed=False,
            transaction=SimpleNamespace(sender=sender),
        )

    def logic_at(self, address: str, logic_class):
        if logic_class is None:
            return None
        if address not in self._logic:
            self._logic[address] = logic_class()
        return self._logic[address]

    def deploy(self, container: FakeContainer, args, sender: FakeAccount) -> FakeContract:
        contract_name = container.contract_type.name
        reverted = contract_name in self.reverts
        address = None if reverted else self._next_address()
        transaction = FakeTransaction(
            kind="deploy",
            contract_name=contract_name,
            address=address,
            method=None,
            args=tuple(args),
            value=0,
            sender=sender.address,
            reverted=reverted,
        )
        self.transactions.append(transaction)
        if reverted:
            revert(f"{contract_name} deployment reverted")
        self.deployed[address] = transaction
        return FakeContract(self, container, address, receipt=self.receipt(sender.address))

    def sent(self, kind: Optional[str] = None, method: Optional[str] = None) -> List[FakeTransaction]:
        return [
            tx
            for tx in self.transactions
            if (kind is None or tx.kind == kind) and (method is None or tx.method == method)
        ]

    def bridge_logic(self, address: str) -> BridgeLogic:
        return self._logic[address]


# Fixtures


@pytest.fixture
def fake_chain():
    return FakeChain()


@pytest.fixture
def deployer_account(fake_chain):
    return fake_chain.deployer


@pytest.fixture
def transactor(deployer_account):
    return Transactor(deployer_account, autosign=True)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def registry(memory_store):
    return DeploymentRegistry(memory_store.namespace(DEPLOYMENTS_NAMESPACE))


@pytest.fixture
def contract_deployer(registry, transactor, fake_chain):
    return ContractDeployer(registry, transactor, contract_resolver=fake_chain.resolve)


@pytest.fixture
def installer(contract_deployer):
    return UpgradeableContractInstaller(contract_deployer)


@pytest.fixture
def bridge(installer, fake_chain):
    installation = installer.install(BRIDGE_CONTRACT)
    return fake_chain.resolve(BRIDGE_CONTRACT).at(installation.proxy.address)


def bridgeable_token(token: str, target_chain_id: int = 1717, burn: bool = False) -> BridgeableToken:
    return BridgeableToken(
        token=token,
        target_chain_id=target_chain_id,
        config=BridgeableTokenConfig(
            enabled=True, burn=burn, min_bridge_amount=0, max_bridge_amount=0, bridge_fee=0
        ),
    )


def approval_config(token: str, transfer: bool = True) -> BridgeApprovalConfig:
    return BridgeApprovalConfig(token=token, config=ApprovalConfig(enabled=True, transfer=transfer))


def erc20_config(name: str, symbol: Optional[str] = None, decimals: int = 18, supply: int = 1000):
    return BridgeERC20DeployConfig(
        name=name, symbol=symbol or name, decimals=decimals, total_supply_before_decimals=supply
    )


def network_config(**overrides) -> NetworkConfig:
    values = dict(
        name="ethereum:local",
        bridge_running_status=True,
        global_fee_status=True,
        fee_recipient=FEE_RECIPIENT,
    )
    values.update(overrides)
    return NetworkConfig(**values)
