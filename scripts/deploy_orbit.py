import click
from dotenv import load_dotenv

from orbit_deployment.node_config import generate_node_config, write_node_config
from orbit_deployment.options import (
    autosign_option,
    config_dir_option,
    deployments_dir_option,
    params_option,
)
from orbit_deployment.params import (
    ChainParameters,
    ConfigurationError,
    Deployer,
    InsufficientBalance,
    RollupReverted,
)
from orbit_deployment.receipt import format_contracts
from orbit_deployment.utils import format_native_token, setup_connection


@click.command()
@params_option
@deployments_dir_option
@config_dir_option
@autosign_option
def cli(params_filepath, deployments_dir, config_dir, autosign):
    """Deploy an Orbit rollup through the parent chain's RollupCreator."""
    load_dotenv()
    try:
        params = ChainParameters.from_env(params_filepath=params_filepath)
    except ConfigurationError as e:
        click.echo(f"x {e}")
        raise click.Abort()

    w3, account = setup_connection(rpc_url=params.parent_chain_rpc, private_key=params.private_key)
    deployer = Deployer(
        params=params,
        w3=w3,
        account=account,
        autosign=autosign,
        deployments_dir=deployments_dir,
    )
    deployer.print_deployment_info()

    try:
        record, filepath, reconciliation = deployer.deploy()
    except InsufficientBalance as e:
        click.echo(f"x {e}")
        raise click.Abort()
    except RollupReverted as e:
        click.echo(f"x {e}")
        raise click.Abort()

    click.echo("\nDeployment Summary:")
    click.echo(f"  Chain: {record.chain_name} ({record.chain_id})")
    click.echo(f"  Parent Chain: {record.parent_chain} ({record.parent_chain_id})")
    click.echo(f"  Transaction: {record.transaction_hash} (block {record.block_number})")
    click.echo(f"  Validators: {', '.join(record.validators)}")
    click.echo(f"  Batch Poster: {record.batch_poster}")
    click.echo(f"  Native Token: {format_native_token(record.native_token)}")
    click.echo(f"  Record: {filepath}")

    if not reconciliation.found:
        click.echo("\n(!) Node config not generated; run parse_deployment then generate_node_config.")
        return

    click.echo("\nCore Contracts:")
    for line in format_contracts(record.contracts):
        click.echo(f"  {line}")

    node_config = generate_node_config(
        record=record,
        chain_config=deployer.chain_config,
        params=params,
        stake_token=deployer.parent_chain.stake_token,
    )
    node_config_filepath = write_node_config(node_config, record.chain_id, config_dir)
    click.echo(f"\n(i) Node config saved to {node_config_filepath}")
    if not params.data_availability.enabled:
        click.echo("(!) DA provider disabled; the node config does not point at celestia-server.")
        click.echo("    Set DA_PROVIDER_ENABLE=true and rerun generate_node_config before using the")
        click.echo("    generated docker compose file.")
    click.echo("Next: generate_docker_compose, then docker compose up -d")


if __name__ == "__main__":
    cli()
