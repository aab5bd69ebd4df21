from pathlib import Path

import click

from orbit_deployment.constants import (
    CONFIG_DIR,
    DEFAULT_CELESTIA_CORE_NETWORK,
    DEFAULT_CELESTIA_RPC_ENDPOINT,
    DEFAULT_CELESTIA_SERVER_IMAGE,
    DEFAULT_NITRO_IMAGE,
    DEPLOYMENTS_DIR,
    DOCKER_COMPOSE_FILEPATH,
    PARAMS_DIR,
)
from orbit_deployment.types import Namespace

autosign_option = click.option(
    "--autosign",
    help="Automatically sign and broadcast without confirmation prompts.",
    is_flag=True,
    default=False,
)

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help=f"Optional YAML params file (e.g. {PARAMS_DIR / 'sepolia.yml'}); environment variables take precedence.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

deployments_dir_option = click.option(
    "--deployments-dir",
    help="Directory holding deployment records.",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEPLOYMENTS_DIR,
    show_default=True,
)

deployment_filepath_option = click.option(
    "--deployment",
    "-d",
    "deployment_filepath",
    help="Deployment record to use instead of the latest one.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

config_dir_option = click.option(
    "--config-dir",
    help="Directory holding node configuration files.",
    type=click.Path(file_okay=False, path_type=Path),
    default=CONFIG_DIR,
    show_default=True,
)

node_config_option = click.option(
    "--config",
    "-c",
    "config_filepath",
    help="Node configuration file; auto-detected in the config directory when omitted.",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)

output_option = click.option(
    "--output",
    "-o",
    help="Output docker compose file.",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DOCKER_COMPOSE_FILEPATH,
    show_default=True,
)

namespace_option = click.option(
    "--celestia-namespace",
    "namespace",
    help="Celestia namespace id (10 bytes hex); derived from the chain id when omitted.",
    type=Namespace(),
    required=False,
)

celestia_rpc_option = click.option(
    "--celestia-rpc",
    help=f"Celestia node RPC endpoint (default: {DEFAULT_CELESTIA_RPC_ENDPOINT}).",
    required=False,
)

celestia_auth_token_option = click.option(
    "--celestia-auth-token",
    help="Celestia auth token, required by authenticated endpoints.",
    required=False,
)

core_network_option = click.option(
    "--celestia-core-network",
    "core_network",
    help="Celestia core network.",
    default=DEFAULT_CELESTIA_CORE_NETWORK,
    show_default=True,
)

core_url_option = click.option(
    "--celestia-core-url",
    "core_url",
    help="Celestia core gRPC endpoint.",
    required=False,
)

core_token_option = click.option(
    "--celestia-core-token",
    "core_token",
    help="Celestia core gRPC auth token.",
    required=False,
)

core_tls_option = click.option(
    "--celestia-enable-core-tls/--celestia-disable-core-tls",
    "core_tls",
    help="Use TLS for the Celestia core gRPC connection.",
    default=True,
    show_default=True,
)

key_path_option = click.option(
    "--celestia-key-path",
    "key_path",
    help="Host directory with the Celestia keyring; a named volume is used when omitted.",
    type=click.Path(file_okay=False, path_type=Path),
    required=False,
)

nitro_image_option = click.option(
    "--nitro-image",
    help="Nitro Docker image.",
    default=DEFAULT_NITRO_IMAGE,
    show_default=True,
)

celestia_image_option = click.option(
    "--celestia-image",
    help="Celestia DA server image.",
    default=DEFAULT_CELESTIA_SERVER_IMAGE,
    show_default=True,
)

container_name_option = click.option(
    "--container-name",
    help="Node container name (default: orbit-<chain-name>).",
    required=False,
)
