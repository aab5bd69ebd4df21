from pathlib import Path

import click

from orbit_deployment.compose import (
    AmbiguousNodeConfig,
    CelestiaOptions,
    NodeConfigNotFound,
    build_compose,
    find_node_config,
    write_compose,
)
from orbit_deployment.constants import (
    DEFAULT_CELESTIA_RPC_ENDPOINT,
    NODE_SERVICE_NAME,
)
from orbit_deployment.node_config import NodeConfigError, load_node_config, uses_da_provider
from orbit_deployment.options import (
    celestia_auth_token_option,
    celestia_image_option,
    celestia_rpc_option,
    config_dir_option,
    container_name_option,
    core_network_option,
    core_tls_option,
    core_token_option,
    core_url_option,
    key_path_option,
    namespace_option,
    nitro_image_option,
    node_config_option,
    output_option,
)


def resolve_node_config_filepath(config_filepath: Path, config_dir: Path) -> Path:
    if config_filepath:
        if not config_filepath.is_file():
            raise NodeConfigNotFound(
                f"Node config not found at {config_filepath}. "
                f"Please specify the correct path with --config <path>"
            )
        return config_filepath
    filepath = find_node_config(config_dir)
    click.echo(f"(i) Found config file: {filepath}")
    return filepath


@click.command()
@node_config_option
@config_dir_option
@output_option
@namespace_option
@celestia_rpc_option
@celestia_auth_token_option
@core_network_option
@core_token_option
@core_url_option
@core_tls_option
@key_path_option
@nitro_image_option
@celestia_image_option
@container_name_option
def cli(
    config_filepath,
    config_dir,
    output,
    namespace,
    celestia_rpc,
    celestia_auth_token,
    core_network,
    core_token,
    core_url,
    core_tls,
    key_path,
    nitro_image,
    celestia_image,
    container_name,
):
    """
    Generate a docker-compose.yml running the Nitro node with a Celestia DA server.
    The node reads all of its configuration from the mounted node config file.
    """
    try:
        config_filepath = resolve_node_config_filepath(config_filepath, config_dir)
        node_config = load_node_config(config_filepath)
    except (NodeConfigNotFound, AmbiguousNodeConfig, NodeConfigError) as e:
        click.echo(f"x {e}")
        raise click.Abort()

    celestia = CelestiaOptions(
        namespace=namespace,
        rpc=celestia_rpc or DEFAULT_CELESTIA_RPC_ENDPOINT,
        auth_token=celestia_auth_token,
        core_network=core_network,
        core_token=core_token,
        core_url=core_url,
        core_tls=core_tls,
        key_path=key_path,
    )
    descriptor = build_compose(
        config=node_config,
        config_filepath=config_filepath,
        celestia=celestia,
        nitro_image=nitro_image,
        celestia_image=celestia_image,
        container_name=container_name,
    )
    write_compose(descriptor, output)

    node = descriptor.service(NODE_SERVICE_NAME)
    click.echo(f"(i) Docker Compose file generated at: {output}")
    click.echo(f"\nChain Name: {node_config['chain']['name']}")
    click.echo(f"Chain ID: {node_config['chain']['id']}")
    click.echo(f"Container Name: {node.container_name}")
    click.echo(f"HTTP Port: {node.ports[0]} (host:container)")
    click.echo(f"Config File: {config_filepath} (mounted read-only)")
    click.echo(f"Celestia Namespace: 0x{descriptor.namespace}")
    if descriptor.namespace_generated:
        click.echo("(i) Namespace was auto-generated from chain ID")
    click.echo(f"Celestia RPC: {celestia.rpc}")
    if celestia.auth_token:
        click.echo(f"Celestia Auth Token: {celestia.auth_token[:20]}...")
    if celestia.key_path:
        click.echo(f"Celestia Keys: {celestia.key_path} (bind mount)")

    if not celestia_rpc:
        click.echo("\n(!) WARNING: No Celestia RPC endpoint provided!")
        click.echo(f"    Using default public endpoint: {DEFAULT_CELESTIA_RPC_ENDPOINT}")
        click.echo("    For production, use your own Celestia node or a dedicated RPC provider.")
    if not (core_token and core_url):
        click.echo("\n(!) Celestia core token and core URL are required for production use.")
    if not uses_da_provider(node_config):
        click.echo("\n(!) The node config has no da-provider block;")
        click.echo("    the node will not post batches to celestia-server.")
        click.echo("    Set DA_PROVIDER_ENABLE=true and rerun generate_node_config.")

    click.echo(f"\nTo start your node, run: docker compose -f {output} up -d")


if __name__ == "__main__":
    cli()
