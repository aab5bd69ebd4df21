import shutil
import subprocess
import time
from pathlib import Path

import click
import requests

from orbit_deployment.compose import AmbiguousNodeConfig, NodeConfigNotFound, find_node_config
from orbit_deployment.constants import (
    COMPOSE_NODE_HTTP_PORT,
    DA_SERVER_SERVICE_NAME,
    DEFAULT_CELESTIA_CORE_NETWORK,
    DEFAULT_CELESTIA_RPC_ENDPOINT,
    NODE_SERVICE_NAME,
)
from orbit_deployment.options import config_dir_option, output_option
from orbit_deployment.types import Namespace
from scripts import generate_docker_compose

NODE_STARTUP_DELAY = 5


def probe_chain_id(url: str, timeout: int = 10):
    """Returns the node's eth_chainId result, or None when it does not answer yet."""
    payload = {"jsonrpc": "2.0", "method": "eth_chainId", "params": [], "id": 1}
    try:
        response = requests.post(url, json=payload, timeout=timeout)
        response.raise_for_status()
        return response.json().get("result")
    except (requests.RequestException, ValueError):
        return None


def docker_compose_command() -> list:
    if shutil.which("docker"):
        return ["docker", "compose"]
    if shutil.which("docker-compose"):
        return ["docker-compose"]
    raise click.ClickException("Docker is not installed. Please install Docker first.")


@click.command()
@config_dir_option
@output_option
@click.pass_context
def cli(ctx, config_dir, output):
    """Interactively generate the docker compose file and start the node."""
    compose = docker_compose_command()

    try:
        config_filepath = find_node_config(config_dir)
    except AmbiguousNodeConfig as e:
        click.echo(f"x {e}")
        config_filepath = click.prompt(
            "Enter path to config file", type=click.Path(dir_okay=False, exists=True)
        )
    except NodeConfigNotFound as e:
        click.echo(f"x {e}")
        raise click.Abort()
    click.echo(f"(i) Using node config: {config_filepath}")

    click.echo("\nCelestia Configuration")
    core_network = click.prompt("Celestia core network", default=DEFAULT_CELESTIA_CORE_NETWORK)
    core_token = click.prompt(
        "Celestia core token (required for production)", default="", show_default=False
    )
    core_url = click.prompt(
        "Celestia core gRPC URL, without scheme (e.g. grpc.celestia-mocha.com:9090)",
        default="",
        show_default=False,
    )
    core_tls = click.confirm("Enable TLS for the core connection?", default=True)
    namespace = click.prompt(
        "Celestia namespace id (leave empty to derive from the chain id)",
        default="",
        show_default=False,
        value_proc=lambda v: Namespace().convert(v, None, None) if v else "",
    )
    celestia_rpc = click.prompt("Celestia RPC endpoint", default=DEFAULT_CELESTIA_RPC_ENDPOINT)
    auth_token = click.prompt("Celestia auth token (optional)", default="", show_default=False)
    key_path = click.prompt(
        "Celestia keys directory (leave empty to use a docker volume)",
        default="",
        show_default=False,
    )

    ctx.invoke(
        generate_docker_compose.cli,
        config_filepath=Path(config_filepath),
        output=output,
        namespace=namespace or None,
        celestia_rpc=celestia_rpc,
        celestia_auth_token=auth_token or None,
        core_network=core_network,
        core_token=core_token or None,
        core_url=core_url or None,
        core_tls=core_tls,
        key_path=Path(key_path) if key_path else None,
    )

    if not click.confirm("\nDo you want to start the node now?", default=True):
        click.echo(f"(i) Start the node with: {' '.join(compose)} -f {output} up -d")
        return

    result = subprocess.run(compose + ["-f", str(output), "up", "-d"])
    if result.returncode != 0:
        click.echo("x Failed to start Docker containers")
        raise click.Abort()

    rpc_url = f"http://localhost:{COMPOSE_NODE_HTTP_PORT}"
    click.echo("(i) Node started")
    click.echo(f"  RPC Endpoint: {rpc_url}")
    click.echo(f"  View logs: {' '.join(compose)} logs -f {NODE_SERVICE_NAME}")
    click.echo(f"  View Celestia logs: {' '.join(compose)} logs -f {DA_SERVER_SERVICE_NAME}")
    click.echo(f"  Stop node: {' '.join(compose)} down")

    click.echo("\n(i) Testing the connection...")
    time.sleep(NODE_STARTUP_DELAY)
    chain_id = probe_chain_id(rpc_url)
    if chain_id:
        click.echo(f"(i) Node is responding! Chain ID: {int(chain_id, 16)}")
    else:
        click.echo("(!) Node started but not responding yet; initialization can take a few minutes.")


if __name__ == "__main__":
    cli()
