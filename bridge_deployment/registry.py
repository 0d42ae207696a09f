import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from ape.contracts import ContractInstance
from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from bridge_deployment.exceptions import RegistryConflict
from bridge_deployment.store import STANDARD_JSON_FORMAT, KeyValueStore

ChainId = int
ContractName = str


class DeploymentRecord(NamedTuple):
    """Represents a single deployment of a contract artifact under a logical name."""

    name: ContractName
    contract_name: ContractName
    address: ChecksumAddress
    tx_hash: str
    newly_deployed: bool
    abi: ABI
    receipt: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return self._asdict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecord":
        return cls(
            name=data["name"],
            contract_name=data["contract_name"],
            address=to_checksum_address(data["address"]),
            tx_hash=data["tx_hash"],
            newly_deployed=data["newly_deployed"],
            abi=data.get("abi", []),
            receipt=data.get("receipt", {}),
        )


def _get_abi(contract_instance: ContractInstance) -> ABI:
    """Returns the ABI of a contract instance."""
    contract_abi = list()
    for entry in contract_instance.contract_type.abi:
        contract_abi.append(entry.model_dump(mode="json", by_alias=True, exclude_none=True))
    return contract_abi


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


def record_from_instance(name: ContractName, contract_instance: ContractInstance) -> DeploymentRecord:
    """Builds a deployment record from a freshly deployed ape contract instance."""
    receipt = contract_instance.receipt
    return DeploymentRecord(
        name=name,
        contract_name=contract_instance.contract_type.name,
        address=to_checksum_address(contract_instance.address),
        tx_hash=_hex(receipt.txn_hash),
        newly_deployed=True,
        abi=_get_abi(contract_instance),
        receipt={
            "block_number": int(receipt.block_number),
            "gas_used": int(receipt.gas_used),
            "deployer": receipt.transaction.sender,
        },
    )


class DeploymentRegistry:
    """
    Persisted mapping of logical contract names to deployment records for one network.

    Records are write-once: an existing name is only replaced through
    an explicit ``put(record, overwrite=True)``.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    def get(self, name: ContractName) -> Optional[DeploymentRecord]:
        data = self._store.get(name)
        if data is None:
            return None
        return DeploymentRecord.from_dict(data)

    def put(self, record: DeploymentRecord, overwrite: bool = False) -> None:
        existing = self.get(record.name)
        if existing is not None and not overwrite:
            raise RegistryConflict(
                f"{record.name} is already deployed at {existing.address}; "
                "refusing to overwrite without an explicit redeploy."
            )
        self._store.put(record.name, record.to_dict())

    def names(self) -> List[ContractName]:
        return self._store.keys()

    def records(self) -> List[DeploymentRecord]:
        return [self.get(name) for name in self.names()]

    def __contains__(self, name: ContractName) -> bool:
        return name in self._store


def export_registry(
    records: Iterable[DeploymentRecord],
    chain_id: ChainId,
    filepath: Path,
) -> Path:
    """
    Writes a combined multi-chain contract registry
    (``{chain_id: {name: {address, abi, tx_hash, block_number, deployer}}}``).

    Entries for other chains already present in the file are kept;
    entries for ``chain_id`` are replaced.
    """
    records = sorted(records, key=lambda record: record.name)
    if not records:
        print("No deployment records provided.")
        return filepath

    data = defaultdict(dict)
    if filepath.exists():
        print(f"Updating existing registry at {filepath}.")
        with open(filepath, "r") as file:
            data.update(json.load(file))
    else:
        print(f"Creating new registry at {filepath}.")

    chain_entries = dict()
    for record in records:
        entry_abi = list(record.abi)
        entry_abi.sort(key=lambda d: (d["type"], d.get("name", "")))
        chain_entries[record.name] = {
            "address": record.address,
            "abi": entry_abi,
            "tx_hash": record.tx_hash,
            "block_number": int(record.receipt.get("block_number", 0)),
            "deployer": record.receipt.get("deployer"),
        }
    data[str(chain_id)] = chain_entries

    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        json.dump(dict(sorted(data.items())), file, **STANDARD_JSON_FORMAT)

    print(f"(i) Registry written to {filepath}!")
    return filepath
