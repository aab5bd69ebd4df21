from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import encode_hex, event_abi_to_log_topic, to_checksum_address
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TransactionNotFound
from web3.types import TxReceipt

from orbit_deployment.constants import ROLLUP_CREATED_EVENT_ABI

ROLLUP_CREATED_TOPIC = HexBytes(event_abi_to_log_topic(ROLLUP_CREATED_EVENT_ABI))

_INDEXED_INPUTS = [i for i in ROLLUP_CREATED_EVENT_ABI["inputs"] if i["indexed"]]
_DATA_INPUTS = [i for i in ROLLUP_CREATED_EVENT_ABI["inputs"] if not i["indexed"]]
_DATA_TYPES = [i["type"] for i in _DATA_INPUTS]
_WORD_SIZE = 32


class RollupCreatedEvent(NamedTuple):
    rollup_address: str
    native_token: str
    inbox_address: str
    outbox: str
    rollup_event_inbox: str
    challenge_manager: str
    admin_proxy: str
    sequencer_inbox: str
    bridge: str
    upgrade_executor: str
    validator_wallet_creator: str

    def core_contracts(self) -> Dict[str, str]:
        """Projects the event onto the contract roles kept in a deployment record."""
        return {
            "rollup": self.rollup_address,
            "inbox": self.inbox_address,
            "outbox": self.outbox,
            "bridge": self.bridge,
            "sequencerInbox": self.sequencer_inbox,
            "adminProxy": self.admin_proxy,
            "validatorWalletCreator": self.validator_wallet_creator,
        }


class Reconciliation(NamedTuple):
    """Outcome of scanning a receipt for the RollupCreated event."""

    event: Optional[RollupCreatedEvent]
    log: Optional[Dict[str, Any]]
    logs: List[Dict[str, Any]]

    @property
    def found(self) -> bool:
        return self.event is not None

    def raw_event_data(self) -> Optional[Dict[str, Any]]:
        if self.log is None:
            return None
        return {"topics": self.log["topics"], "data": self.log["data"]}


def serialize_log(log: Mapping) -> Dict[str, Any]:
    """Returns a JSON-friendly copy of a receipt log."""
    result = dict()
    for key, value in log.items():
        if isinstance(value, (bytes, bytearray)):
            value = encode_hex(value)
        elif isinstance(value, (list, tuple)):
            value = [encode_hex(v) if isinstance(v, (bytes, bytearray)) else v for v in value]
        result[key] = value
    return result


def _topic_address(topic: bytes) -> str:
    return to_checksum_address(topic[-20:])


def decode_rollup_created(log: Mapping) -> Optional[RollupCreatedEvent]:
    """
    Decodes a single log as a RollupCreated event.
    Returns None when the log is not a well-formed RollupCreated event.
    """
    try:
        topics = [HexBytes(t) for t in log.get("topics") or []]
        data = HexBytes(log.get("data") or b"")
    except (TypeError, ValueError):
        return None

    if not topics or topics[0] != ROLLUP_CREATED_TOPIC:
        return None
    if len(topics) != len(_INDEXED_INPUTS) + 1:
        return None
    if len(data) != len(_DATA_INPUTS) * _WORD_SIZE:
        return None

    try:
        values = decode(_DATA_TYPES, bytes(data))
    except DecodingError:
        return None

    indexed = [_topic_address(t) for t in topics[1:]]
    return RollupCreatedEvent(*indexed, *(to_checksum_address(v) for v in values))


def find_rollup_created(receipt: Mapping) -> Reconciliation:
    """Linear scan of the receipt logs; the first RollupCreated event wins."""
    logs = [serialize_log(log) for log in receipt.get("logs") or []]
    for log in logs:
        event = decode_rollup_created(log)
        if event is not None:
            return Reconciliation(event=event, log=log, logs=logs)
    return Reconciliation(event=None, log=None, logs=logs)


def reconcile(receipt: Mapping) -> Reconciliation:
    return find_rollup_created(receipt)


def wait_for_receipt(w3: Web3, tx_hash: str) -> TxReceipt:
    """Blocks until the transaction has one confirmation."""
    return w3.eth.wait_for_transaction_receipt(tx_hash)


def get_receipt(w3: Web3, tx_hash: str) -> Optional[TxReceipt]:
    try:
        return w3.eth.get_transaction_receipt(tx_hash)
    except TransactionNotFound:
        return None


def format_contracts(contracts: Mapping[str, str]) -> Sequence[str]:
    """Aligned 'Role: address' lines for display."""
    width = max((len(role) for role in contracts), default=0) + 1
    return [f"{(role + ':').ljust(width)} {address}" for role, address in contracts.items()]
