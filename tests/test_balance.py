from unittest.mock import patch

import pytest
from web3 import Web3

from orbit_deployment.params import Deployer, InsufficientBalance, RollupReverted
from orbit_deployment.registry import list_records, load_record
from tests.conftest import CORE_CONTRACTS, DEPLOYER, ROLLUP_CREATOR, TX_HASH, make_receipt


@pytest.fixture
def tx_request():
    return {
        "to": ROLLUP_CREATOR,
        "data": "0x",
        "value": Web3.to_wei("0.125", "ether"),
        "gas": 5_000_000,
        "maxFeePerGas": 2_000_000_000,
        "maxPriorityFeePerGas": 1_000_000_000,
    }


@pytest.fixture
def rollup_creator(tx_request):
    with patch("orbit_deployment.params.RollupCreator") as creator:
        instance = creator.for_parent_chain.return_value
        instance.address = ROLLUP_CREATOR
        instance.prepare_transaction_request.return_value = tx_request
        yield instance


def test_insufficient_balance_aborts_before_submission(params, w3, tmp_path, rollup_creator):
    w3.eth.get_balance.return_value = Web3.to_wei("0.3", "ether")
    deployer = Deployer(params=params, w3=w3, autosign=True, deployments_dir=tmp_path)

    with pytest.raises(InsufficientBalance) as error:
        deployer.deploy()

    assert error.value.address == DEPLOYER
    assert "https://sepoliafaucet.com/" in str(error.value)
    rollup_creator.prepare_transaction_request.assert_not_called()
    w3.eth.send_raw_transaction.assert_not_called()
    assert list_records(tmp_path) == []


def test_sufficient_balance(params, w3):
    w3.eth.get_balance.return_value = Web3.to_wei("0.5", "ether")
    deployer = Deployer(params=params, w3=w3)
    assert deployer.check_balance() == Web3.to_wei("0.5", "ether")


def test_deploy(params, w3, tmp_path, rollup_creator, receipt):
    w3.eth.get_balance.return_value = Web3.to_wei(1, "ether")
    w3.eth.send_raw_transaction.return_value = bytes.fromhex(TX_HASH[2:])
    w3.eth.wait_for_transaction_receipt.return_value = receipt
    deployer = Deployer(params=params, w3=w3, autosign=True, deployments_dir=tmp_path)

    record, filepath, reconciliation = deployer.deploy()

    assert reconciliation.found
    assert record.transaction_hash == TX_HASH
    assert record.block_number == 123
    assert record.contracts == CORE_CONTRACTS
    assert filepath.parent == tmp_path
    assert load_record(filepath) == record

    w3.eth.send_raw_transaction.assert_called_once()
    kwargs = rollup_creator.prepare_transaction_request.call_args.kwargs
    assert kwargs["sender"] == DEPLOYER
    deployment_params = kwargs["deployment_params"]
    assert deployment_params.validators == (DEPLOYER,)
    assert deployment_params.batch_posters == (DEPLOYER,)
    assert deployment_params.config.chain_id == params.chain_id


def test_deploy_without_event_persists_raw_logs(params, w3, tmp_path, rollup_creator):
    w3.eth.get_balance.return_value = Web3.to_wei(1, "ether")
    w3.eth.send_raw_transaction.return_value = bytes.fromhex(TX_HASH[2:])
    w3.eth.wait_for_transaction_receipt.return_value = make_receipt([])
    deployer = Deployer(params=params, w3=w3, autosign=True, deployments_dir=tmp_path)

    record, filepath, reconciliation = deployer.deploy()

    assert not reconciliation.found
    assert record.contracts == {}
    assert record.raw_logs == []
    assert filepath.exists()


def test_reverted_deployment_is_not_recorded(params, w3, tmp_path, rollup_creator):
    w3.eth.get_balance.return_value = Web3.to_wei(1, "ether")
    w3.eth.send_raw_transaction.return_value = bytes.fromhex(TX_HASH[2:])
    w3.eth.wait_for_transaction_receipt.return_value = make_receipt([], status=0)
    deployer = Deployer(params=params, w3=w3, autosign=True, deployments_dir=tmp_path)

    with pytest.raises(RollupReverted, match="chain id or chain name"):
        deployer.deploy()
    assert list_records(tmp_path) == []
