import json
from typing import Any, Dict, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import Web3
from web3.contract import Contract

from orbit_deployment.constants import (
    DEFAULT_BASE_STAKE,
    DEFAULT_CONFIRM_PERIOD_BLOCKS,
    DEFAULT_RETRYABLES_FEES,
    DEFAULT_SEQUENCER_INBOX_MAX_TIME_VARIATION,
    INITIAL_ARBOS_VERSION,
    ROLLUP_CREATOR_ABI,
    ROLLUP_CREATOR_ADDRESSES,
    ZERO_ADDRESS,
)

ZERO_HASH = "0x" + "00" * 32


def prepare_chain_config(
    chain_id: int, owner: str, data_availability_committee: bool = True
) -> Dict[str, Any]:
    """Returns the L2 chain config for a new rollup, as submitted to the factory."""
    return {
        "chainId": chain_id,
        "homesteadBlock": 0,
        "daoForkBlock": None,
        "daoForkSupport": True,
        "eip150Block": 0,
        "eip150Hash": ZERO_HASH,
        "eip155Block": 0,
        "eip158Block": 0,
        "byzantiumBlock": 0,
        "constantinopleBlock": 0,
        "petersburgBlock": 0,
        "istanbulBlock": 0,
        "muirGlacierBlock": 0,
        "berlinBlock": 0,
        "londonBlock": 0,
        "clique": {"period": 0, "epoch": 0},
        "arbitrum": {
            "EnableArbOS": True,
            "AllowDebugPrecompiles": False,
            "DataAvailabilityCommittee": data_availability_committee,
            "InitialArbOSVersion": INITIAL_ARBOS_VERSION,
            "InitialChainOwner": owner,
            "GenesisBlockNum": 0,
        },
    }


def serialize_chain_config(chain_config: Dict[str, Any]) -> str:
    return json.dumps(chain_config, separators=(",", ":"))


class RollupConfig(NamedTuple):
    chain_id: int
    owner: ChecksumAddress
    wasm_module_root: str
    chain_config: str
    stake_token: ChecksumAddress = ZERO_ADDRESS
    confirm_period_blocks: int = DEFAULT_CONFIRM_PERIOD_BLOCKS
    extra_challenge_time_blocks: int = 0
    base_stake: int = DEFAULT_BASE_STAKE
    loser_stake_escrow: ChecksumAddress = ZERO_ADDRESS
    genesis_block_num: int = 0
    sequencer_inbox_max_time_variation: Tuple[int, int, int, int] = (
        DEFAULT_SEQUENCER_INBOX_MAX_TIME_VARIATION
    )

    def as_abi_tuple(self) -> tuple:
        return (
            self.confirm_period_blocks,
            self.extra_challenge_time_blocks,
            self.stake_token,
            self.base_stake,
            HexBytes(self.wasm_module_root),
            self.owner,
            self.loser_stake_escrow,
            self.chain_id,
            self.chain_config,
            self.genesis_block_num,
            tuple(self.sequencer_inbox_max_time_variation),
        )


class RollupDeploymentParams(NamedTuple):
    config: RollupConfig
    validators: Tuple[ChecksumAddress, ...]
    batch_posters: Tuple[ChecksumAddress, ...]
    max_data_size: int
    max_fee_per_gas_for_retryables: int
    native_token: ChecksumAddress = ZERO_ADDRESS
    deploy_factories_to_l2: bool = True

    def as_abi_tuple(self) -> tuple:
        return (
            self.config.as_abi_tuple(),
            list(self.validators),
            self.max_data_size,
            self.native_token,
            self.deploy_factories_to_l2,
            self.max_fee_per_gas_for_retryables,
            list(self.batch_posters),
        )


def prepare_deployment_params(
    params, owner: str, chain_config: Dict[str, Any], stake_token: Optional[str] = None
) -> RollupDeploymentParams:
    """Folds resolved chain parameters into the createRollup argument struct."""
    config = RollupConfig(
        chain_id=params.chain_id,
        owner=owner,
        wasm_module_root=params.wasm_module_root,
        chain_config=serialize_chain_config(chain_config),
        stake_token=to_checksum_address(stake_token) if stake_token else ZERO_ADDRESS,
    )
    return RollupDeploymentParams(
        config=config,
        validators=tuple(params.validators),
        batch_posters=(params.batch_poster or owner,),
        max_data_size=params.max_data_size,
        max_fee_per_gas_for_retryables=params.max_fee_per_gas_for_retryables,
        native_token=params.native_token,
    )


def retryables_fees(native_token: str, deploy_factories_to_l2: bool = True) -> int:
    """Value sent along with createRollup to fund the L2 factory deployments."""
    if deploy_factories_to_l2 and int(native_token, 16) == 0:
        return DEFAULT_RETRYABLES_FEES
    return 0


def get_rollup_creator_address(
    parent_chain_id: int, override: Optional[str] = None
) -> ChecksumAddress:
    if override:
        return to_checksum_address(override)
    try:
        return to_checksum_address(ROLLUP_CREATOR_ADDRESSES[parent_chain_id])
    except KeyError:
        raise ValueError(
            f"No known RollupCreator for parent chain {parent_chain_id}; "
            f"set ROLLUP_CREATOR_ADDRESS."
        )


class RollupCreator:
    """The pre-deployed rollup factory on the parent chain."""

    def __init__(self, w3: Web3, address: str):
        self.w3 = w3
        self.address = to_checksum_address(address)
        self.contract: Contract = w3.eth.contract(address=self.address, abi=ROLLUP_CREATOR_ABI)

    @classmethod
    def for_parent_chain(
        cls, w3: Web3, parent_chain_id: int, override: Optional[str] = None
    ) -> "RollupCreator":
        return cls(w3=w3, address=get_rollup_creator_address(parent_chain_id, override))

    def prepare_transaction_request(
        self,
        deployment_params: RollupDeploymentParams,
        sender: str,
        native_token: str = ZERO_ADDRESS,
    ) -> Dict[str, Any]:
        value = retryables_fees(native_token, deployment_params.deploy_factories_to_l2)
        function = self.contract.functions.createRollup(deployment_params.as_abi_tuple())
        return function.build_transaction({"from": sender, "value": value})
