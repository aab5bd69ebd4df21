import os

import click
from dotenv import load_dotenv

from orbit_deployment.networks import get_parent_chain
from orbit_deployment.options import (
    config_dir_option,
    deployment_filepath_option,
    deployments_dir_option,
)
from orbit_deployment.receipt import format_contracts, get_receipt, reconcile
from orbit_deployment.registry import (
    DeploymentNotFound,
    latest_record_filepath,
    load_record,
    update_contracts,
    write_chain_summary,
)
from orbit_deployment.utils import format_native_token, get_web3


@click.command()
@deployments_dir_option
@deployment_filepath_option
@config_dir_option
def cli(deployments_dir, deployment_filepath, config_dir):
    """Recover contract addresses of the latest deployment from its receipt."""
    load_dotenv()
    rpc_url = os.environ.get("PARENT_CHAIN_RPC")
    if not rpc_url:
        click.echo("x PARENT_CHAIN_RPC not set in .env")
        raise click.Abort()

    try:
        filepath = deployment_filepath or latest_record_filepath(deployments_dir)
    except DeploymentNotFound as e:
        click.echo(f"x {e}")
        raise click.Abort()
    record = load_record(filepath)
    parent_chain = get_parent_chain(record.parent_chain_id)

    click.echo(f"Reading: {filepath}")
    click.echo(f"  Chain ID: {record.chain_id}")
    click.echo(f"  Transaction: {record.transaction_hash}")

    w3 = get_web3(rpc_url)
    receipt = get_receipt(w3, record.transaction_hash)
    if receipt is None:
        click.echo("x Transaction receipt not found")
        click.echo(f"Check transaction: {parent_chain.tx_url(record.transaction_hash)}")
        raise click.Abort()
    click.echo(f"(i) Receipt found ({len(receipt['logs'])} logs)")

    reconciliation = reconcile(receipt)
    if not reconciliation.found:
        click.echo("x RollupCreated event not found in transaction logs")
        click.echo("\n(i) This might mean:")
        click.echo("   1. Transaction failed/reverted")
        click.echo("   2. Different event signature (old version)")
        click.echo("   3. Wrong transaction hash")
        click.echo(f"\nCheck transaction: {parent_chain.tx_url(record.transaction_hash)}")
        raise click.Abort()

    record = update_contracts(filepath, reconciliation)
    click.echo("\nDeployed Contract Addresses:")
    for line in format_contracts(record.contracts):
        click.echo(f"  {line}")
    click.echo(f"\nNative Token: {format_native_token(reconciliation.event.native_token)}")
    click.echo(f"(i) Updated deployment file: {filepath}")

    summary_filepath = write_chain_summary(
        record, directory=config_dir, native_token=reconciliation.event.native_token
    )
    click.echo(f"(i) Created chain summary: {summary_filepath}")

    click.echo("\nNext Steps:")
    click.echo("1. Verify contracts: verify_contracts")
    click.echo(f"2. View rollup: {parent_chain.address_url(record.contracts['rollup'])}")
    click.echo("3. Generate the node config: generate_node_config")


if __name__ == "__main__":
    cli()
