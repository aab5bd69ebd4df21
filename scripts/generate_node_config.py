import click
from dotenv import load_dotenv

from orbit_deployment.node_config import NodeConfigError, generate_node_config, write_node_config
from orbit_deployment.options import (
    config_dir_option,
    deployment_filepath_option,
    deployments_dir_option,
    params_option,
)
from orbit_deployment.params import ChainParameters, ConfigurationError
from orbit_deployment.registry import DeploymentNotFound, latest_record_filepath, load_record
from orbit_deployment.rollup import prepare_chain_config


@click.command()
@params_option
@deployments_dir_option
@deployment_filepath_option
@config_dir_option
def cli(params_filepath, deployments_dir, deployment_filepath, config_dir):
    """Regenerate the node config of the latest deployment without redeploying."""
    load_dotenv()
    try:
        params = ChainParameters.from_env(params_filepath=params_filepath)
        filepath = deployment_filepath or latest_record_filepath(deployments_dir)
    except (ConfigurationError, DeploymentNotFound) as e:
        click.echo(f"x {e}")
        raise click.Abort()

    record = load_record(filepath)
    click.echo(f"Reading: {filepath}")
    if record.chain_id != params.chain_id:
        click.echo(
            f"(!) Record chain id {record.chain_id} differs from CHAIN_ID {params.chain_id}; "
            f"using the record."
        )

    chain_config = prepare_chain_config(
        chain_id=record.chain_id,
        owner=record.deployer,
        data_availability_committee=params.data_availability.enabled,
    )
    try:
        node_config = generate_node_config(
            record=record,
            chain_config=chain_config,
            params=params,
            stake_token=params.parent_chain.stake_token,
        )
    except NodeConfigError as e:
        click.echo(f"x {e}")
        raise click.Abort()

    node_config_filepath = write_node_config(node_config, record.chain_id, config_dir)
    click.echo(f"(i) Node config saved to {node_config_filepath}")


if __name__ == "__main__":
    cli()
