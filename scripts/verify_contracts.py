import click
from dotenv import load_dotenv

from orbit_deployment.networks import get_parent_chain
from orbit_deployment.options import deployment_filepath_option, deployments_dir_option
from orbit_deployment.registry import DeploymentNotFound, latest_record_filepath, load_record
from orbit_deployment.utils import get_etherscan_api_key
from orbit_deployment.verification import contracts_to_verify, verify_contracts


@click.command()
@deployments_dir_option
@deployment_filepath_option
def cli(deployments_dir, deployment_filepath):
    """Verify the latest deployment's proxy contracts on Etherscan."""
    load_dotenv()
    api_key = get_etherscan_api_key()
    if not api_key:
        click.echo("(!) ETHERSCAN_API_KEY not set in .env; contracts will be skipped.")
        click.echo("    Create a key at https://etherscan.io/myapikey and add it to your .env file.")

    try:
        filepath = deployment_filepath or latest_record_filepath(deployments_dir)
    except DeploymentNotFound as e:
        click.echo(f"x {e}")
        raise click.Abort()
    record = load_record(filepath)
    click.echo(f"Reading: {filepath}")

    if not record.reconciled:
        click.echo("x No contract addresses found in deployment file")
        click.echo("Run parse_deployment first to extract contract addresses")
        raise click.Abort()

    parent_chain = get_parent_chain(record.parent_chain_id)
    click.echo("\nContract Addresses to Verify:")
    for contract in contracts_to_verify(record.contracts):
        click.echo(f"  {contract.name}: {contract.address}")
    click.echo("\n(i) These are proxy contracts; the explorer links them to verified implementations.")

    results = verify_contracts(
        contracts=record.contracts, parent_chain=parent_chain, api_key=api_key
    )

    click.echo("\nVerification Complete!")
    for result in results:
        click.echo(
            f"  {result.name}: {result.status.value} - {parent_chain.address_url(result.address)}"
        )


if __name__ == "__main__":
    cli()
