import click
from web3 import Web3

from orbit_deployment.constants import ZERO_ADDRESS
from orbit_deployment.utils import format_native_token


def _abort() -> None:
    print("Aborting deployment!")
    raise click.Abort()


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_submission(params) -> None:
    """Asks the user to confirm the resolved rollup parameters before broadcasting."""
    print(f"\nRollup parameters for {params.chain_name}")
    resolved = {
        "chainId": params.chain_id,
        "owner": params.deployer,
        "validators": ", ".join(params.validators),
        "batchPoster": params.batch_poster,
        "nativeToken": format_native_token(params.native_token),
        "maxDataSize": params.max_data_size,
        "maxFeePerGasForRetryables": f"{Web3.from_wei(params.max_fee_per_gas_for_retryables, 'gwei')} gwei",
        "wasmModuleRoot": params.wasm_module_root,
    }
    for name, resolved_value in resolved.items():
        print(f"\t{name}={resolved_value}")

    answer = input("Submit createRollup Y/N? ")
    if answer.lower().strip() == "n":
        _abort()
    if ZERO_ADDRESS in (params.batch_poster, *params.validators):
        _confirm_zero_address()
