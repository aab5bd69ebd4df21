import json
import os
from pathlib import Path
from typing import Optional, Tuple

import yaml
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from orbit_deployment.constants import ETHERSCAN_API_KEY_ENVVAR, JSON_FORMAT


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def _write_json(data: dict, filepath: Path, mode: str = "w") -> Path:
    """Writes indented JSON, creating the parent directory if needed."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, mode) as file:
        json.dump(data, file, **JSON_FORMAT)
        file.write("\n")
    return filepath


def sanitize_private_key(private_key: str) -> str:
    """Returns the private key with a 0x prefix."""
    private_key = private_key.strip()
    if not private_key.startswith("0x"):
        private_key = f"0x{private_key}"
    return private_key


def get_account(private_key: str) -> LocalAccount:
    return Account.from_key(sanitize_private_key(private_key))


def get_web3(rpc_url: str) -> Web3:
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return w3


def setup_connection(rpc_url: str, private_key: str) -> Tuple[Web3, LocalAccount]:
    """Set up a Web3 connection to the parent chain and the deployer account."""
    w3 = get_web3(rpc_url)
    account = get_account(private_key)
    return w3, account


def get_etherscan_api_key() -> Optional[str]:
    """Returns the block explorer API key, if one is set."""
    return os.environ.get(ETHERSCAN_API_KEY_ENVVAR) or None


def format_native_token(native_token: str, symbol: str = "ETH") -> str:
    """The zero address stands for the parent chain's native currency."""
    if int(native_token, 16) == 0:
        return symbol
    return native_token
