import typing
from typing import Any, List, Optional

from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.exceptions import ApeException
from ethpm_types import MethodABI
from web3.auto import w3

from bridge_deployment.confirm import _confirm_deployment, _continue
from bridge_deployment.exceptions import TransactionFailed


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.canonical_type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.

    All transactions are submitted from this single account and each one is
    awaited before returning, so nonces are never contended.
    """

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        gas_limit: Optional[int] = None,
    ):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._gas_limit = gas_limit
        set_autosign = getattr(self._account, "set_autosign", None)
        if set_autosign is not None:
            set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def autosign(self) -> bool:
        return self._autosign

    def _get_kwargs(self) -> typing.Dict[str, Any]:
        kwargs = dict()
        if self._gas_limit:
            kwargs["gas_limit"] = self._gas_limit
        return kwargs

    def transact(
        self, method: ContractTransactionHandler, *args, value: Optional[int] = None
    ) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        if value:
            message = f"{message}\n\tvalue={value}"
        print(message)
        if not self._autosign:
            _continue()

        kwargs = self._get_kwargs()
        if value:
            kwargs["value"] = value
        try:
            receipt = method(*args, sender=self._account, **kwargs)
        except ApeException as e:
            raise TransactionFailed(f"{base_message.strip()} failed: {e}") from e

        if receipt.failed:
            raise TransactionFailed(
                f"{base_message.strip()} reverted in transaction {receipt.txn_hash}",
                tx_hash=receipt.txn_hash,
            )
        print(
            f"Transaction \"{receipt.txn_hash}\" "
            f"(block: {receipt.block_number} gasUsed: {receipt.gas_used})"
        )
        return receipt

    def simulate(self, method: ContractTransactionHandler, *args) -> Any:
        """
        Performs a read-only call of a transaction method from the transactor account.
        Reverts are raised as ape's ContractLogicError.
        """
        return method.call(*args, sender=self._account)

    def deploy(
        self, name: str, container: ContractContainer, *args
    ) -> ContractInstance:
        contract_name = container.contract_type.name
        if not self._autosign:
            _confirm_deployment(name, contract_name, args)
        try:
            return self._account.deploy(container, *args, publish=False, **self._get_kwargs())
        except ApeException as e:
            raise TransactionFailed(f"Deployment of {name} ({contract_name}) failed: {e}") from e
