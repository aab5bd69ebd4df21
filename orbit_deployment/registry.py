import re
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from orbit_deployment.constants import (
    CHAIN_SUMMARY_FILENAME_PREFIX,
    CONFIG_DIR,
    DEPLOYMENT_FILENAME_PREFIX,
    DEPLOYMENTS_DIR,
)
from orbit_deployment.receipt import Reconciliation
from orbit_deployment.utils import _load_json, _write_json

# contract roles, in serialization order
CONTRACT_ROLES = (
    "rollup",
    "inbox",
    "outbox",
    "bridge",
    "sequencerInbox",
    "adminProxy",
    "validatorWalletCreator",
)

_DEPLOYMENT_FILENAME = re.compile(rf"^{DEPLOYMENT_FILENAME_PREFIX}(\d+)-(\d+)\.json$")


class DeploymentNotFound(FileNotFoundError):
    """Raised when no deployment record is available."""


def _ordered_contracts(contracts: Mapping[str, str]) -> Dict[str, str]:
    return {role: contracts[role] for role in CONTRACT_ROLES if contracts.get(role)}


def _utcnow() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class DeploymentRecord:
    """The persisted outcome of one rollup creation."""

    chain_id: int
    chain_name: str
    parent_chain: str
    parent_chain_id: int
    deployer: str
    deployed_at: str
    transaction_hash: str
    block_number: int
    validators: Tuple[str, ...]
    batch_poster: str
    native_token: str
    contracts: Dict[str, str] = field(default_factory=dict)
    raw_event_data: Optional[Dict[str, Any]] = None
    raw_logs: Optional[List[Dict[str, Any]]] = None

    def __post_init__(self):
        if not self.validators:
            raise ValueError("A deployment record requires at least one validator.")
        object.__setattr__(self, "validators", tuple(self.validators))
        object.__setattr__(self, "contracts", _ordered_contracts(self.contracts))

    @property
    def reconciled(self) -> bool:
        return bool(self.contracts)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "chainId": self.chain_id,
            "chainName": self.chain_name,
            "parentChain": self.parent_chain,
            "parentChainId": self.parent_chain_id,
            "deployer": self.deployer,
            "deployedAt": self.deployed_at,
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "validators": list(self.validators),
            "batchPoster": self.batch_poster,
            "nativeToken": self.native_token,
            "contracts": dict(self.contracts),
        }
        if self.raw_event_data is not None:
            data["rawEventData"] = self.raw_event_data
        if self.raw_logs is not None:
            data["rawLogs"] = self.raw_logs
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DeploymentRecord":
        return cls(
            chain_id=int(data["chainId"]),
            chain_name=data["chainName"],
            parent_chain=data["parentChain"],
            parent_chain_id=int(data["parentChainId"]),
            deployer=data["deployer"],
            deployed_at=data["deployedAt"],
            transaction_hash=data["transactionHash"],
            block_number=int(data["blockNumber"]),
            validators=tuple(data["validators"]),
            batch_poster=data["batchPoster"],
            native_token=data["nativeToken"],
            contracts=data.get("contracts") or dict(),
            raw_event_data=data.get("rawEventData"),
            raw_logs=data.get("rawLogs"),
        )

    def with_reconciliation(self, reconciliation: Reconciliation) -> "DeploymentRecord":
        """Returns a copy with the contracts resolved from a matched event."""
        if not reconciliation.found:
            return replace(self, raw_logs=reconciliation.logs)
        return replace(
            self,
            contracts=reconciliation.event.core_contracts(),
            raw_event_data=reconciliation.raw_event_data(),
            raw_logs=None,
        )


def create_record(
    params,
    tx_hash: str,
    receipt: Mapping,
    reconciliation: Reconciliation,
    deployed_at: Optional[str] = None,
) -> DeploymentRecord:
    """Folds the resolved parameters and the reconciled receipt into a record."""
    record = DeploymentRecord(
        chain_id=params.chain_id,
        chain_name=params.chain_name,
        parent_chain=params.parent_chain.name,
        parent_chain_id=params.parent_chain_id,
        deployer=params.deployer,
        deployed_at=deployed_at or _utcnow(),
        transaction_hash=tx_hash,
        block_number=int(receipt["blockNumber"]),
        validators=tuple(params.validators) or (params.deployer,),
        batch_poster=params.batch_poster or params.deployer,
        native_token=params.native_token,
    )
    return record.with_reconciliation(reconciliation)


def record_filename(chain_id: int, millis: int) -> str:
    return f"{DEPLOYMENT_FILENAME_PREFIX}{chain_id}-{millis}.json"


def persist_record(
    record: DeploymentRecord, directory: Path = DEPLOYMENTS_DIR, millis: Optional[int] = None
) -> Path:
    """
    Writes a new deployment record file. Existing files are never overwritten;
    the millisecond suffix is bumped until a free name is found.
    """
    millis = int(time.time() * 1000) if millis is None else millis
    while True:
        filepath = directory / record_filename(record.chain_id, millis)
        try:
            return _write_json(record.to_dict(), filepath, mode="x")
        except FileExistsError:
            millis += 1


def _timestamp(filepath: Path) -> int:
    return int(_DEPLOYMENT_FILENAME.match(filepath.name).group(2))


def list_records(directory: Path = DEPLOYMENTS_DIR) -> List[Path]:
    """Deployment record files, oldest first."""
    if not directory.is_dir():
        return list()
    filepaths = [p for p in directory.iterdir() if _DEPLOYMENT_FILENAME.match(p.name)]
    filepaths.sort(key=lambda p: (_timestamp(p), p.name))
    return filepaths


def latest_record_filepath(directory: Path = DEPLOYMENTS_DIR) -> Path:
    filepaths = list_records(directory)
    if not filepaths:
        raise DeploymentNotFound(
            f"No deployment records found in '{directory}'. Run deploy_orbit first."
        )
    return filepaths[-1]


def load_record(filepath: Path) -> DeploymentRecord:
    return DeploymentRecord.from_dict(_load_json(filepath))


def load_latest(directory: Path = DEPLOYMENTS_DIR) -> Tuple[Path, DeploymentRecord]:
    """Returns the newest deployment record (by timestamp suffix) and its path."""
    filepath = latest_record_filepath(directory)
    return filepath, load_record(filepath)


def update_contracts(filepath: Path, reconciliation: Reconciliation) -> DeploymentRecord:
    """Rewrites an existing record in place with reconciled contracts."""
    if not reconciliation.found:
        raise ValueError("Cannot update a deployment record without a RollupCreated event.")
    record = load_record(filepath).with_reconciliation(reconciliation)
    _write_json(record.to_dict(), filepath)
    return record


def write_chain_summary(
    record: DeploymentRecord, directory: Path = CONFIG_DIR, native_token: Optional[str] = None
) -> Path:
    """Writes the simplified chain-<chainId>.json summary for node operators."""
    contracts = record.contracts
    summary = {
        "chainId": record.chain_id,
        "chainName": record.chain_name,
        "parentChainId": record.parent_chain_id,
        "rollup": contracts.get("rollup"),
        "inbox": contracts.get("inbox"),
        "outbox": contracts.get("outbox"),
        "sequencerInbox": contracts.get("sequencerInbox"),
        "bridge": contracts.get("bridge"),
        "adminProxy": contracts.get("adminProxy"),
        "validators": list(record.validators),
        "batchPoster": record.batch_poster,
        "nativeToken": native_token or record.native_token,
    }
    filepath = directory / f"{CHAIN_SUMMARY_FILENAME_PREFIX}{record.chain_id}.json"
    return _write_json(summary, filepath)
