from typing import List, Sequence

from ape.contracts import ContractInstance
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from bridge_deployment.constants import DEPLOYER_INDICATOR
from bridge_deployment.exceptions import RoleGrantFailure, TransactionFailed
from bridge_deployment.transactor import Transactor


def resolve_grantee(value: str, deployer_address: ChecksumAddress) -> ChecksumAddress:
    if not value or value == DEPLOYER_INDICATOR:
        return to_checksum_address(deployer_address)
    return to_checksum_address(value)


class RoleReconciler:
    """
    Grants a role to every declared address that does not hold it yet.

    Membership is always read from the contract. Addresses holding the role
    without being declared are left untouched; nothing is ever revoked.
    """

    def __init__(self, transactor: Transactor):
        self.transactor = transactor

    def ensure_granted(
        self,
        contract: ContractInstance,
        role: bytes,
        grantees: Sequence[str],
        deployer_address: ChecksumAddress,
    ) -> List[ChecksumAddress]:
        granted = list()
        if not grantees:
            return granted

        print(f"\nGranting role {_format_role(role)} on {contract.contract_type.name}...")
        for grantee in grantees:
            address = resolve_grantee(grantee, deployer_address)
            if contract.hasRole(role, address):
                print(f"{address} already holds the role; skipping")
                continue
            print(f"add grantee {address}...")
            try:
                self.transactor.transact(contract.grantRole, role, address)
            except TransactionFailed as e:
                raise RoleGrantFailure(f"Could not grant role to {address}: {e}") from e
            granted.append(address)
        return granted


def _format_role(role) -> str:
    if isinstance(role, (bytes, bytearray)):
        return "0x" + bytes(role).hex()
    return str(role)
