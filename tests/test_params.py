import pytest
import yaml

from orbit_deployment.confirm import _confirm_submission
from orbit_deployment.constants import (
    DEFAULT_DA_PROVIDER_URL,
    DEFAULT_MAX_DATA_SIZE,
    ROLLUP_CREATOR_ADDRESSES,
    ZERO_ADDRESS,
)
from orbit_deployment.params import (
    ChainParameters,
    ConfigurationError,
    Variable,
    resolve_parameters,
)
from tests.conftest import (
    DEPLOYER,
    DEPLOYER_PRIVATE_KEY,
    ROLLUP_CREATOR,
    VALIDATOR,
    VALIDATOR_PRIVATE_KEY,
    WASM_ROOT,
    address,
)


def test_defaults(params):
    assert params.deployer == DEPLOYER
    assert params.chain_id == 412346
    assert params.chain_name == "My Orbit Chain"
    assert params.parent_chain_id == 11155111
    assert params.parent_chain.name == "sepolia"
    assert params.validators == (DEPLOYER,)
    assert params.batch_poster == DEPLOYER
    assert params.native_token == ZERO_ADDRESS
    assert params.uses_native_currency
    assert params.max_data_size == DEFAULT_MAX_DATA_SIZE
    assert params.max_fee_per_gas_for_retryables == 100_000_000
    assert params.rollup_creator is None
    assert not params.data_availability.enabled


def test_wasm_root_is_prefixed(params):
    assert params.wasm_module_root == f"0x{WASM_ROOT}"


def test_missing_required_envvars():
    with pytest.raises(ConfigurationError, match="PARENT_CHAIN_RPC, WASM_ROOT"):
        resolve_parameters(environ={"PRIVATE_KEY": DEPLOYER_PRIVATE_KEY}, config=dict())


def test_invalid_wasm_root(environ):
    environ["WASM_ROOT"] = "0x1234"
    with pytest.raises(ConfigurationError, match="32 bytes"):
        resolve_parameters(environ=environ, config=dict())


def test_validator_key_must_differ(environ):
    environ["VALIDATOR_PRIVATE_KEY"] = DEPLOYER_PRIVATE_KEY[2:]
    with pytest.raises(ConfigurationError, match="VALIDATOR_PRIVATE_KEY"):
        resolve_parameters(environ=environ, config=dict())

    environ["VALIDATOR_PRIVATE_KEY"] = VALIDATOR_PRIVATE_KEY
    params = resolve_parameters(environ=environ, config=dict())
    assert params.validator_private_key == VALIDATOR_PRIVATE_KEY


def test_validator_key_must_differ_from_batch_poster_key(environ):
    environ["BATCH_POSTER_PRIVATE_KEY"] = VALIDATOR_PRIVATE_KEY
    environ["VALIDATOR_PRIVATE_KEY"] = VALIDATOR_PRIVATE_KEY[2:]
    with pytest.raises(ConfigurationError, match="batch poster key"):
        resolve_parameters(environ=environ, config=dict())


def test_variable_requires_resolve():
    with pytest.raises(TypeError):
        Variable()


def test_operator_addresses(environ):
    environ["VALIDATOR_ADDRESSES"] = f" {VALIDATOR.lower()}, {DEPLOYER} "
    environ["BATCH_POSTER_ADDRESS"] = VALIDATOR
    environ["CHAIN_ID"] = "1234567"
    params = resolve_parameters(environ=environ, config=dict())
    assert params.validators == (VALIDATOR, DEPLOYER)
    assert params.batch_poster == VALIDATOR
    assert params.chain_id == 1234567


def test_invalid_address(environ):
    environ["BATCH_POSTER_ADDRESS"] = "0xnotanaddress"
    with pytest.raises(ConfigurationError, match="BATCH_POSTER_ADDRESS"):
        resolve_parameters(environ=environ, config=dict())


def test_unknown_parent_chain_requires_rollup_creator(environ):
    environ["PARENT_CHAIN_ID"] = "31337"
    assert 31337 not in ROLLUP_CREATOR_ADDRESSES
    with pytest.raises(ConfigurationError, match="ROLLUP_CREATOR_ADDRESS"):
        resolve_parameters(environ=environ, config=dict())

    environ["ROLLUP_CREATOR_ADDRESS"] = ROLLUP_CREATOR.lower()
    params = resolve_parameters(environ=environ, config=dict())
    assert params.rollup_creator == ROLLUP_CREATOR
    assert params.parent_chain.name == "chain-31337"


def test_da_provider_enabled_by_url(environ):
    environ["DA_PROVIDER_URL"] = "http://localhost:26657"
    environ["DA_PROVIDER_RETRIES"] = "5"
    params = resolve_parameters(environ=environ, config=dict())
    assert params.data_availability.enabled
    assert params.data_availability.url == "http://localhost:26657"
    assert params.data_availability.retries == 5


def test_da_provider_enabled_by_flag(environ):
    environ["DA_PROVIDER_ENABLE"] = "true"
    params = resolve_parameters(environ=environ, config=dict())
    assert params.data_availability.enabled
    assert params.data_availability.url == DEFAULT_DA_PROVIDER_URL


def test_params_file(environ, tmp_path):
    config = {
        "deployment": {"chain_name": "Celestial", "chain_id": 777},
        "constants": {"MAX_DATA_SIZE": 1000, "BATCH_POSTER": address(42)},
        "rollup": {
            "validators": ["$deployer", VALIDATOR],
            "batch_poster": "$BATCH_POSTER",
            "max_data_size": "$MAX_DATA_SIZE",
        },
        "data_availability": {"enable": True, "retries": 7},
    }
    filepath = tmp_path / "params.yml"
    filepath.write_text(yaml.safe_dump(config))

    environ["CHAIN_ID"] = "888"
    params = ChainParameters.from_env(environ=environ, params_filepath=filepath)
    assert params.chain_name == "Celestial"
    assert params.chain_id == 888  # environment wins
    assert params.validators == (DEPLOYER, VALIDATOR)
    assert params.batch_poster == address(42)
    assert params.max_data_size == 1000
    assert params.data_availability.enabled
    assert params.data_availability.retries == 7


def test_params_file_unknown_constant(environ):
    config = {"rollup": {"batch_poster": "$MISSING"}}
    with pytest.raises(ConfigurationError, match="MISSING"):
        resolve_parameters(environ=environ, config=config)


def test_confirm_submission_shows_native_currency(params, monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda _: "y")
    _confirm_submission(params)
    output = capsys.readouterr().out
    assert "nativeToken=ETH" in output
    assert f"owner={DEPLOYER}" in output
