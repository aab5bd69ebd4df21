from unittest.mock import Mock

import pytest
from eth_abi import encode
from eth_utils import encode_hex, to_checksum_address
from hexbytes import HexBytes

from orbit_deployment.constants import ZERO_ADDRESS
from orbit_deployment.params import resolve_parameters
from orbit_deployment.receipt import ROLLUP_CREATED_TOPIC

# Common constants
DEPLOYER_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
VALIDATOR_PRIVATE_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
VALIDATOR = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
WASM_ROOT = "ab" * 32
TX_HASH = "0x" + "12" * 32


def address(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


ROLLUP_CREATOR = address(0xC0FFEE)

# RollupCreated event fields, in event order
EVENT_ADDRESSES = {
    "rollupAddress": address(0x1001),
    "nativeToken": ZERO_ADDRESS,
    "inboxAddress": address(0x1002),
    "outbox": address(0x1003),
    "rollupEventInbox": address(0x1004),
    "challengeManager": address(0x1005),
    "adminProxy": address(0x1006),
    "sequencerInbox": address(0x1007),
    "bridge": address(0x1008),
    "upgradeExecutor": address(0x1009),
    "validatorWalletCreator": address(0x100A),
}

CORE_CONTRACTS = {
    "rollup": EVENT_ADDRESSES["rollupAddress"],
    "inbox": EVENT_ADDRESSES["inboxAddress"],
    "outbox": EVENT_ADDRESSES["outbox"],
    "bridge": EVENT_ADDRESSES["bridge"],
    "sequencerInbox": EVENT_ADDRESSES["sequencerInbox"],
    "adminProxy": EVENT_ADDRESSES["adminProxy"],
    "validatorWalletCreator": EVENT_ADDRESSES["validatorWalletCreator"],
}


# Utility functions
def _topic(value: str) -> HexBytes:
    return HexBytes(encode(["address"], [value]))


def rollup_created_log(log_index: int = 0, **overrides) -> dict:
    fields = dict(EVENT_ADDRESSES, **overrides)
    values = list(fields.values())
    return {
        "address": ROLLUP_CREATOR,
        "topics": [ROLLUP_CREATED_TOPIC, _topic(values[0]), _topic(values[1])],
        "data": HexBytes(encode(["address"] * 9, values[2:])),
        "logIndex": log_index,
    }


def unrelated_log(log_index: int = 0) -> dict:
    return {
        "address": address(0xBEEF),
        "topics": [HexBytes("0x" + "ee" * 32), _topic(DEPLOYER)],
        "data": HexBytes(encode(["uint256"], [1])),
        "logIndex": log_index,
    }


def make_receipt(logs, status: int = 1, block_number: int = 123) -> dict:
    return {
        "status": status,
        "blockNumber": block_number,
        "gasUsed": 4_000_000,
        "transactionHash": HexBytes(TX_HASH),
        "logs": logs,
    }


# Fixtures
@pytest.fixture
def environ():
    return {
        "PRIVATE_KEY": DEPLOYER_PRIVATE_KEY,
        "PARENT_CHAIN_RPC": "https://sepolia.example.org",
        "WASM_ROOT": WASM_ROOT,
    }


@pytest.fixture
def params(environ):
    return resolve_parameters(environ=environ, config=dict())


@pytest.fixture
def w3():
    w3 = Mock()
    w3.eth.chain_id = 11155111
    w3.eth.get_transaction_count.return_value = 0
    return w3


@pytest.fixture
def receipt():
    return make_receipt([unrelated_log(0), rollup_created_log(1), unrelated_log(2)])
