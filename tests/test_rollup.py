import json
from unittest.mock import Mock

import pytest
from web3 import Web3

from orbit_deployment.constants import ROLLUP_CREATOR_ADDRESSES, ZERO_ADDRESS
from orbit_deployment.rollup import (
    RollupCreator,
    get_rollup_creator_address,
    prepare_chain_config,
    prepare_deployment_params,
    retryables_fees,
)
from tests.conftest import DEPLOYER, ROLLUP_CREATOR, WASM_ROOT, address


def test_prepare_chain_config():
    config = prepare_chain_config(chain_id=412346, owner=DEPLOYER, data_availability_committee=False)
    assert config["chainId"] == 412346
    assert config["arbitrum"]["InitialChainOwner"] == DEPLOYER
    assert config["arbitrum"]["DataAvailabilityCommittee"] is False
    assert config["arbitrum"]["InitialArbOSVersion"] == 32


def test_deployment_params(params):
    chain_config = prepare_chain_config(chain_id=params.chain_id, owner=DEPLOYER)
    deployment_params = prepare_deployment_params(
        params=params, owner=DEPLOYER, chain_config=chain_config, stake_token=None
    )
    assert json.loads(deployment_params.config.chain_config) == chain_config
    assert deployment_params.config.stake_token == ZERO_ADDRESS

    config, validators, max_data_size, native_token, factories, max_fee, batch_posters = (
        deployment_params.as_abi_tuple()
    )
    assert len(config) == 11
    assert config[4] == bytes.fromhex(WASM_ROOT)
    assert config[7] == params.chain_id
    assert config[10] == (5760, 48, 86400, 3600)
    assert validators == [DEPLOYER]
    assert max_data_size == 117964
    assert native_token == ZERO_ADDRESS
    assert factories is True
    assert max_fee == 100_000_000
    assert batch_posters == [DEPLOYER]


def test_retryables_fees():
    assert retryables_fees(ZERO_ADDRESS) == Web3.to_wei("0.125", "ether")
    assert retryables_fees(ZERO_ADDRESS, deploy_factories_to_l2=False) == 0
    assert retryables_fees(address(7)) == 0


def test_rollup_creator_address():
    assert get_rollup_creator_address(11155111) == ROLLUP_CREATOR_ADDRESSES[11155111]
    assert get_rollup_creator_address(11155111, override=ROLLUP_CREATOR.lower()) == ROLLUP_CREATOR
    with pytest.raises(ValueError):
        get_rollup_creator_address(31337)


def test_prepare_transaction_request(params):
    w3 = Mock()
    creator = RollupCreator.for_parent_chain(w3=w3, parent_chain_id=11155111)
    assert creator.address == ROLLUP_CREATOR_ADDRESSES[11155111]

    chain_config = prepare_chain_config(chain_id=params.chain_id, owner=DEPLOYER)
    deployment_params = prepare_deployment_params(
        params=params, owner=DEPLOYER, chain_config=chain_config
    )
    creator.prepare_transaction_request(deployment_params=deployment_params, sender=DEPLOYER)

    create_rollup = creator.contract.functions.createRollup
    create_rollup.assert_called_once_with(deployment_params.as_abi_tuple())
    create_rollup.return_value.build_transaction.assert_called_once_with(
        {"from": DEPLOYER, "value": Web3.to_wei("0.125", "ether")}
    )
