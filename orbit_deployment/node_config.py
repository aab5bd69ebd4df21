import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from orbit_deployment.constants import (
    CONFIG_DIR,
    DEFAULT_NODE_HTTP_PORT,
    NODE_CONFIG_FILENAME_PREFIX,
    ZERO_ADDRESS,
)
from orbit_deployment.networks import (
    DEFAULT_PARENT_CHAIN,
    ParentChain,
    get_parent_chain,
    is_known_parent_chain,
)
from orbit_deployment.registry import DeploymentRecord
from orbit_deployment.utils import _load_json, _write_json

NodeRunConfig = Dict[str, Any]

REQUIRED_CONTRACTS = ("rollup", "inbox", "bridge", "sequencerInbox")


class NodeConfigError(ValueError):
    """Raised when a node config cannot be derived from a deployment record."""


def _strip_hex_prefix(private_key: str) -> str:
    return private_key[2:] if private_key.startswith("0x") else private_key


def _chain_info(
    record: DeploymentRecord,
    chain_config: Dict[str, Any],
    parent_chain: ParentChain,
    stake_token: Optional[str],
) -> Dict[str, Any]:
    contracts = record.contracts
    return {
        "chain-id": record.chain_id,
        "parent-chain-id": parent_chain.chain_id,
        "parent-chain-is-arbitrum": parent_chain.is_arbitrum,
        "chain-name": record.chain_name,
        "chain-config": chain_config,
        "rollup": {
            "bridge": contracts["bridge"],
            "inbox": contracts["inbox"],
            "sequencer-inbox": contracts["sequencerInbox"],
            "rollup": contracts["rollup"],
            "validator-wallet-creator": contracts.get("validatorWalletCreator", ZERO_ADDRESS),
            "stake-token": stake_token or ZERO_ADDRESS,
            "deployed-at": record.block_number,
        },
    }


def prepare_node_config(
    record: DeploymentRecord,
    chain_config: Dict[str, Any],
    parent_chain_rpc: str,
    batch_poster_private_key: str,
    validator_private_key: str,
    stake_token: Optional[str] = None,
    parent_chain_beacon_rpc: Optional[str] = None,
) -> NodeRunConfig:
    """
    Derives the node run configuration from a reconciled deployment record.
    Parent chain identity is taken from the known parent chain table; unknown
    parent chains are typed against the default one and must be corrected
    with override_parent_chain.
    """
    missing = [role for role in REQUIRED_CONTRACTS if not record.contracts.get(role)]
    if missing:
        raise NodeConfigError(
            f"Deployment record is missing contracts ({', '.join(missing)}); "
            f"run parse_deployment first."
        )

    if is_known_parent_chain(record.parent_chain_id):
        parent_chain = get_parent_chain(record.parent_chain_id)
    else:
        parent_chain = DEFAULT_PARENT_CHAIN
    info = _chain_info(record, chain_config, parent_chain, stake_token)

    parent_chain_config = {"connection": {"url": parent_chain_rpc}, "id": parent_chain.chain_id}
    if not parent_chain.is_arbitrum:
        parent_chain_config["blob-client"] = {
            "beacon-url": parent_chain_beacon_rpc or parent_chain_rpc
        }

    data_availability_committee = chain_config["arbitrum"]["DataAvailabilityCommittee"]
    node = {
        "sequencer": True,
        "delayed-sequencer": {"enable": True},
        "batch-poster": {
            "enable": True,
            "parent-chain-wallet": {"private-key": _strip_hex_prefix(batch_poster_private_key)},
        },
        "staker": {
            "enable": True,
            "strategy": "MakeNodes",
            "parent-chain-wallet": {"private-key": _strip_hex_prefix(validator_private_key)},
        },
        "dangerous": {
            "no-sequencer-coordinator": True,
            "disable-blob-reader": parent_chain.is_arbitrum,
        },
        "data-availability": {
            "enable": data_availability_committee,
            "sequencer-inbox-address": record.contracts["sequencerInbox"],
            "parent-chain-node-url": parent_chain_rpc,
        },
    }

    return {
        "chain": {
            "info-json": json.dumps([info], separators=(",", ":")),
            "name": record.chain_name,
            "id": record.chain_id,
        },
        "parent-chain": parent_chain_config,
        "http": {
            "addr": "0.0.0.0",
            "port": DEFAULT_NODE_HTTP_PORT,
            "vhosts": "*",
            "corsdomain": "*",
            "api": ["eth", "net", "web3", "arb", "debug"],
        },
        "node": node,
        "execution": {
            "forwarding-target": "",
            "sequencer": {"enable": True, "max-tx-data-size": 85000, "max-block-speed": "250ms"},
            "caching": {"archive": True},
        },
    }


def apply_da_provider(config: NodeRunConfig, da) -> NodeRunConfig:
    """
    Returns a copy of the node config wired to an external DA provider.
    The built-in data availability and blob reader are switched off.
    """
    config = copy.deepcopy(config)
    node = config.setdefault("node", dict())
    node["da-provider"] = {
        "enable": True,
        "with-writer": True,
        "rpc": {
            "url": da.url,
            "retries": da.retries,
            "retry-errors": da.retry_errors,
            "arg-log-limit": da.arg_log_limit,
            "websocket-message-size-limit": da.ws_message_size_limit,
        },
    }
    node.setdefault("data-availability", dict())["enable"] = False
    node.setdefault("dangerous", dict())["disable-blob-reader"] = True
    return config


def uses_da_provider(config: NodeRunConfig) -> bool:
    return bool(config.get("node", dict()).get("da-provider", dict()).get("enable"))


def override_parent_chain(config: NodeRunConfig, url: str, chain_id: int) -> NodeRunConfig:
    """Rewrites the parent chain connection for a parent chain outside the known table."""
    config = copy.deepcopy(config)
    parent_chain = config.setdefault("parent-chain", dict())
    previous_id = parent_chain.get("id")
    print(f"(i) Overriding parent chain ID: {previous_id} -> {chain_id}")
    parent_chain.setdefault("connection", dict())["url"] = url
    parent_chain["id"] = chain_id

    info = json.loads(config["chain"]["info-json"])
    for entry in info:
        entry["parent-chain-id"] = chain_id
    config["chain"]["info-json"] = json.dumps(info, separators=(",", ":"))
    return config


def generate_node_config(
    record: DeploymentRecord,
    chain_config: Dict[str, Any],
    params,
    stake_token: Optional[str] = None,
) -> NodeRunConfig:
    """Full node config derivation: base config, DA provider, parent chain override."""
    config = prepare_node_config(
        record=record,
        chain_config=chain_config,
        parent_chain_rpc=params.parent_chain_rpc,
        batch_poster_private_key=params.batch_poster_private_key or params.private_key,
        validator_private_key=params.validator_private_key or params.private_key,
        stake_token=stake_token,
    )
    if config["parent-chain"]["id"] != params.parent_chain_id:
        config = override_parent_chain(config, params.parent_chain_rpc, params.parent_chain_id)
    if params.data_availability.enabled:
        print(f"(i) Adding DA provider configuration: {params.data_availability.url}")
        config = apply_da_provider(config, params.data_availability)
    return config


def node_config_filepath(chain_id: int, directory: Path = CONFIG_DIR) -> Path:
    return directory / f"{NODE_CONFIG_FILENAME_PREFIX}{chain_id}.json"


def write_node_config(config: NodeRunConfig, chain_id: int, directory: Path = CONFIG_DIR) -> Path:
    return _write_json(config, node_config_filepath(chain_id, directory))


def load_node_config(filepath: Path) -> NodeRunConfig:
    config = _load_json(filepath)
    try:
        config["chain"]["id"]
        config["chain"]["name"]
    except (KeyError, TypeError):
        raise NodeConfigError(f"'{filepath}' is not a node config (missing chain id or name).")
    return config
