import os

import click
from dotenv import load_dotenv
from web3 import Web3

from orbit_deployment.constants import MIN_DEPLOYER_BALANCE
from orbit_deployment.networks import get_parent_chain
from orbit_deployment.utils import sanitize_private_key, setup_connection


@click.command()
def cli():
    """Check that the deployer account can pay for a rollup deployment."""
    load_dotenv()
    private_key = os.environ.get("PRIVATE_KEY")
    rpc_url = os.environ.get("PARENT_CHAIN_RPC")
    if not (private_key and rpc_url):
        click.echo("x PRIVATE_KEY and PARENT_CHAIN_RPC must be set in .env")
        raise click.Abort()

    w3, account = setup_connection(rpc_url=rpc_url, private_key=sanitize_private_key(private_key))
    parent_chain = get_parent_chain(int(os.environ.get("PARENT_CHAIN_ID") or w3.eth.chain_id))

    click.echo(f"Address: {account.address}")
    balance = w3.eth.get_balance(account.address)
    click.echo(f"Balance: {Web3.from_wei(balance, 'ether')} ETH")

    if balance < MIN_DEPLOYER_BALANCE:
        click.echo(
            f"\n(!) Low balance! You need at least "
            f"{Web3.from_wei(MIN_DEPLOYER_BALANCE, 'ether')} ETH for deployment."
        )
        if parent_chain.faucet_url:
            click.echo(f"Get test ETH from: {parent_chain.faucet_url}")
    else:
        click.echo("\n(i) Sufficient balance for deployment")


if __name__ == "__main__":
    cli()
