from typing import Optional

from ape.api import ReceiptAPI
from ape.contracts import ContractInstance
from web3 import Web3

from bridge_deployment.constants import NATIVE_DEPOSIT_KEY
from bridge_deployment.exceptions import FundingFailure, TransactionFailed
from bridge_deployment.store import KeyValueStore
from bridge_deployment.transactor import Transactor


class TreasuryFunder:
    """
    Performs the optional one-time native token deposit into the bridge.

    A successful deposit is recorded so that re-runs never deposit twice.
    """

    def __init__(self, transactor: Transactor, store: KeyValueStore, key: str = NATIVE_DEPOSIT_KEY):
        self.transactor = transactor
        self._store = store
        self._key = key

    def recorded_deposit(self) -> Optional[dict]:
        return self._store.get(self._key)

    def deposit_if_configured(
        self, bridge: ContractInstance, amount_ether: Optional[int]
    ) -> Optional[ReceiptAPI]:
        if not amount_ether:
            return None
        if amount_ether < 0:
            raise ValueError(f"Deposit amount must be positive, got {amount_ether}")

        deposit = self.recorded_deposit()
        if deposit is not None:
            print(
                f"\nNative tokens already deposited ({deposit['amount_ether']} ether "
                f"in {deposit['tx_hash']}); skipping"
            )
            return None

        print("\ndeposit native tokens...")
        value = Web3.to_wei(amount_ether, "ether")
        try:
            receipt = self.transactor.transact(bridge.depositNativeTokens, value=value)
        except TransactionFailed as e:
            raise FundingFailure(f"Could not deposit {amount_ether} ether: {e}") from e

        self._store.put(
            self._key,
            {
                "amount_ether": amount_ether,
                "value": str(value),
                "tx_hash": str(receipt.txn_hash),
            },
        )
        return receipt
