from ape.contracts.base import ContractTransactionHandler
from ape.exceptions import ContractLogicError
from eth_utils import to_checksum_address

from bridge_deployment.exceptions import InitializationFailure, TransactionFailed
from bridge_deployment.store import KeyValueStore
from bridge_deployment.transactor import Transactor


class InitializationGuard:
    """
    Runs a contract's one-time setup call at most once.

    A marker persisted after our own successful setup transaction is
    consulted first. Without a marker, a simulated call is used as a probe:
    if it reverts the contract is considered already initialized.
    A revert for any other reason (bad arguments, permissions) looks the
    same to the probe, so the revert reason is always reported.
    """

    def __init__(self, transactor: Transactor, store: KeyValueStore):
        self.transactor = transactor
        self._store = store

    def is_marked(self, address: str) -> bool:
        return to_checksum_address(address) in self._store

    def ensure_initialized(self, method: ContractTransactionHandler, *args) -> bool:
        """Returns True when a setup transaction was submitted."""
        contract = method.contract
        address = to_checksum_address(contract.address)
        label = f"{contract.contract_type.name}[{address[:10]}]"

        if self.is_marked(address):
            print(f"{label} already initialized (recorded); skipping")
            return False

        try:
            self.transactor.simulate(method, *args)
        except ContractLogicError as e:
            print(f"{label} already initialized or initialize error: {e}")
            return False

        print(f"Initializing {label}...")
        try:
            receipt = self.transactor.transact(method, *args)
        except TransactionFailed as e:
            raise InitializationFailure(f"Could not initialize {label}: {e}") from e

        self._store.put(address, {"initialized": True, "tx_hash": str(receipt.txn_hash)})
        return True
