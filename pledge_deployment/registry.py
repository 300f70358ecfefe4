from collections import OrderedDict, defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from ape.logging import logger
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from pledge_deployment.utils import _load_json, _write_json, normalize_args

NetworkId = str
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class DeploymentRecord(NamedTuple):
    """Represents a single deployed contract of a network in the registry."""

    network: NetworkId
    name: ContractName
    address: ChecksumAddress
    constructor_args: List[Any]
    contract_type: str
    step: Optional[str] = None
    deployer: Optional[str] = None
    bytecode_hash: Optional[str] = None

    def matches(
        self,
        contract_type: str,
        constructor_args: List[Any],
        bytecode_hash: Optional[str] = None,
    ) -> bool:
        """
        True if this record was produced by the same contract kind, bytecode and arguments.
        Bytecode is only compared when both hashes are known.
        """
        if self.contract_type != contract_type:
            return False
        if self.bytecode_hash and bytecode_hash and self.bytecode_hash != bytecode_hash:
            return False
        return normalize_args(self.constructor_args) == normalize_args(constructor_args)


def _entry_from_artifacts(
    network: NetworkId, name: ContractName, artifacts: Dict[str, Any]
) -> DeploymentRecord:
    return DeploymentRecord(
        network=network,
        name=name,
        address=to_checksum_address(artifacts["address"]),
        constructor_args=list(artifacts.get("constructor_args", [])),
        contract_type=artifacts.get("contract_type", name),
        step=artifacts.get("step"),
        deployer=artifacts.get("deployer"),
        bytecode_hash=artifacts.get("bytecode_hash"),
    )


def _artifacts_from_entry(record: DeploymentRecord) -> Dict[str, Any]:
    return {
        "address": record.address,
        "contract_type": record.contract_type,
        "constructor_args": normalize_args(record.constructor_args),
        "step": record.step,
        "deployer": record.deployer,
        "bytecode_hash": record.bytecode_hash,
    }


def read_registry(filepath: Path) -> List[DeploymentRecord]:
    """Reads every record, for every network, from a registry file."""
    data = _load_json(filepath)
    records = list()
    for network, entries in data.items():
        for name, artifacts in entries.items():
            records.append(_entry_from_artifacts(network, name, artifacts))
    return records


def write_registry(records: Iterable[DeploymentRecord], filepath: Path) -> Path:
    """Writes records to a registry file, replacing its contents."""
    # Sort registry entries to enforce common order
    records = sorted(records, key=lambda record: (record.network, record.name))

    data = defaultdict(dict)
    for record in records:
        data[record.network][record.name] = _artifacts_from_entry(record)

    return _write_json(data, filepath, **STANDARD_REGISTRY_JSON_FORMAT)


class DeploymentRegistry:
    """
    Persistent mapping of logical contract names to deployment records, for one network.

    Records of other networks sharing the same file are left untouched.
    """

    def __init__(self, filepath: Path, network: NetworkId):
        self.filepath = Path(filepath)
        self.network = network
        self._records: Dict[ContractName, DeploymentRecord] = OrderedDict()
        self.reload()

    def reload(self) -> None:
        """(Re)reads this network's records from disk."""
        self._records.clear()
        if not self.filepath.exists():
            return
        for record in read_registry(self.filepath):
            if record.network == self.network:
                self._records[record.name] = record

    def get(self, name: ContractName) -> Optional[DeploymentRecord]:
        return self._records.get(name)

    def has(self, name: ContractName) -> bool:
        return name in self._records

    def __contains__(self, name: ContractName) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> List[DeploymentRecord]:
        return list(self._records.values())

    def addresses(self) -> Dict[ContractName, ChecksumAddress]:
        return OrderedDict((name, record.address) for name, record in self._records.items())

    def put(self, record: DeploymentRecord) -> None:
        """Stores a record, superseding any prior record of the same name, and persists it."""
        self.put_all([record])

    def put_all(self, records: Iterable[DeploymentRecord]) -> None:
        """Stores several records with a single durable write."""
        records = list(records)
        for record in records:
            if record.network != self.network:
                raise ValueError(
                    f"Cannot store a '{record.network}' record in the '{self.network}' registry"
                )
        for record in records:
            previous = self._records.get(record.name)
            if previous and previous.address != record.address:
                logger.info(
                    f"Superseding {record.name} at {previous.address} with {record.address}"
                )
            self._records[record.name] = record
        self._persist()

    def _persist(self) -> None:
        others = list()
        if self.filepath.exists():
            others = [r for r in read_registry(self.filepath) if r.network != self.network]
        write_registry(records=others + self.records(), filepath=self.filepath)
