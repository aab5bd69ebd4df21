import hashlib
import re
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

from orbit_deployment.constants import (
    CELESTIA_HOME,
    CELESTIA_KEYS_VOLUME,
    COMPOSE_NODE_HTTP_PORT,
    CONFIG_DIR,
    DA_SERVER_PORTS,
    DA_SERVER_RPC_PORT,
    DA_SERVER_SERVICE_NAME,
    DEFAULT_CELESTIA_CORE_NETWORK,
    DEFAULT_CELESTIA_RPC_ENDPOINT,
    DEFAULT_CELESTIA_SERVER_IMAGE,
    DEFAULT_NITRO_IMAGE,
    DEFAULT_NODE_CONFIG_FILENAME,
    NAMESPACE_HEX_LENGTH,
    NAMESPACE_PREFIX,
    NODE_CONFIG_MOUNT,
    NODE_DATA_MOUNT,
    NODE_DATA_VOLUME,
    NODE_PORTS,
    NODE_SERVICE_NAME,
)
from orbit_deployment.node_config import NodeRunConfig

COMPOSE_HEADER = """\
# Docker Compose configuration for Orbit x Celestia chain
# Generated from {config_filename}
#
# The Nitro node reads all its configuration from the mounted config file.
# Only the Celestia server settings need to be configured here.
"""


class NodeConfigNotFound(FileNotFoundError):
    pass


class AmbiguousNodeConfig(ValueError):
    def __init__(self, candidates: List[Path]):
        self.candidates = candidates
        listing = "\n".join(f"   - {c.name}" for c in candidates)
        super().__init__(
            f"Multiple config files found:\n{listing}\n"
            f"Please specify which one to use with --config <path>"
        )


class CelestiaOptions(NamedTuple):
    """Settings of the Celestia DA server container."""

    namespace: Optional[str] = None
    rpc: str = DEFAULT_CELESTIA_RPC_ENDPOINT
    auth_token: Optional[str] = None
    core_network: str = DEFAULT_CELESTIA_CORE_NETWORK
    core_token: Optional[str] = None
    core_url: Optional[str] = None
    core_tls: bool = True
    key_path: Optional[Path] = None

    @property
    def keyring_mount(self) -> str:
        return f"{CELESTIA_HOME}/.celestia-light-{self.core_network}/keys"


class Service(NamedTuple):
    name: str
    image: str
    container_name: str
    ports: Tuple[str, ...]
    volumes: Tuple[str, ...] = ()
    depends_on: Tuple[str, ...] = ()
    command: Tuple[str, ...] = ()
    entrypoint: Tuple[str, ...] = ()


class ComposeDescriptor(NamedTuple):
    services: Tuple[Service, ...]
    volumes: Tuple[str, ...]
    namespace: str
    namespace_generated: bool = False
    config_filename: str = DEFAULT_NODE_CONFIG_FILENAME

    def service(self, name: str) -> Service:
        for service in self.services:
            if service.name == name:
                return service
        raise KeyError(name)


def derive_namespace(chain_id: int) -> str:
    """Deterministic 10 byte namespace id for a chain, as bare hex."""
    digest = hashlib.sha256(f"{NAMESPACE_PREFIX}{chain_id}".encode()).hexdigest()
    return digest[:NAMESPACE_HEX_LENGTH]


def container_name_for(chain_name: str) -> str:
    return NAMESPACE_PREFIX + re.sub(r"\s+", "-", chain_name.lower())


def _host_path(path: Path) -> str:
    # compose reads bare names as named volumes
    path = str(path)
    if path.startswith(("/", ".", "~")):
        return path
    return f"./{path}"


def _celestia_entrypoint(namespace: str, options: CelestiaOptions) -> Tuple[str, ...]:
    entrypoint = [
        "/bin/celestia-server",
        "--celestia.namespace-id",
        namespace,
        "--rpc-addr",
        "0.0.0.0",
        "--rpc-port",
        str(DA_SERVER_RPC_PORT),
        "--celestia.rpc",
        options.rpc,
        "--log-level",
        "INFO",
    ]
    if options.auth_token:
        entrypoint.extend(["--celestia.auth-token", options.auth_token])
    entrypoint.extend(["--celestia.core-network", options.core_network])
    if options.core_token:
        entrypoint.extend(["--celestia.core-token", options.core_token])
    if options.core_url:
        entrypoint.extend(["--celestia.core-url", options.core_url])
    if not options.core_tls:
        entrypoint.append("--celestia.core-disable-tls")
    entrypoint.extend(["--celestia.keyring-path", options.keyring_mount])
    return tuple(entrypoint)


def build_compose(
    config: NodeRunConfig,
    config_filepath: Path,
    celestia: CelestiaOptions = CelestiaOptions(),
    nitro_image: str = DEFAULT_NITRO_IMAGE,
    celestia_image: str = DEFAULT_CELESTIA_SERVER_IMAGE,
    container_name: Optional[str] = None,
) -> ComposeDescriptor:
    """Describes the node and DA server services for a node config."""
    chain = config["chain"]
    http_port = (config.get("http") or dict()).get("port") or COMPOSE_NODE_HTTP_PORT

    namespace = celestia.namespace
    namespace_generated = not namespace
    if namespace_generated:
        namespace = derive_namespace(chain["id"])
    elif namespace.startswith("0x"):
        namespace = namespace[2:]

    node = Service(
        name=NODE_SERVICE_NAME,
        image=nitro_image,
        container_name=container_name or container_name_for(chain["name"]),
        depends_on=(DA_SERVER_SERVICE_NAME,),
        ports=(f"{COMPOSE_NODE_HTTP_PORT}:{http_port}",)
        + tuple(f"{port}:{port}" for port in NODE_PORTS),
        volumes=(
            f"{_host_path(config_filepath)}:{NODE_CONFIG_MOUNT}:ro",
            f"{NODE_DATA_VOLUME}:{NODE_DATA_MOUNT}",
        ),
        command=("--conf.file", NODE_CONFIG_MOUNT),
    )

    volumes = [NODE_DATA_VOLUME]
    if celestia.key_path:
        keys_source = _host_path(celestia.key_path)
    else:
        keys_source = CELESTIA_KEYS_VOLUME
        volumes.append(CELESTIA_KEYS_VOLUME)

    da_server = Service(
        name=DA_SERVER_SERVICE_NAME,
        image=celestia_image,
        container_name=DA_SERVER_SERVICE_NAME,
        entrypoint=_celestia_entrypoint(namespace, celestia),
        ports=tuple(f"{port}:{port}" for port in DA_SERVER_PORTS),
        volumes=(f"{keys_source}:{celestia.keyring_mount}",),
    )

    return ComposeDescriptor(
        services=(node, da_server),
        volumes=tuple(volumes),
        namespace=namespace,
        namespace_generated=namespace_generated,
        config_filename=Path(config_filepath).name,
    )


def _render_list(key: str, values: Tuple[str, ...], quote: bool = False) -> List[str]:
    if not values:
        return []
    lines = [f"    {key}:"]
    for value in values:
        lines.append(f'      - "{value}"' if quote else f"      - {value}")
    return lines


def _render_service(service: Service) -> List[str]:
    lines = [
        f"  {service.name}:",
        f"    image: {service.image}",
        f"    container_name: {service.container_name}",
    ]
    lines += _render_list("depends_on", service.depends_on)
    lines += _render_list("entrypoint", service.entrypoint, quote=True)
    lines += _render_list("ports", service.ports, quote=True)
    lines += _render_list("volumes", service.volumes)
    lines += _render_list("command", service.command)
    return lines


def render_compose(descriptor: ComposeDescriptor) -> str:
    """Renders the compose file; values are embedded verbatim."""
    lines = [COMPOSE_HEADER.format(config_filename=descriptor.config_filename), "services:"]
    for i, service in enumerate(descriptor.services):
        if i:
            lines.append("")
        lines += _render_service(service)
    lines += ["", "volumes:"]
    lines += [f"  {volume}:" for volume in descriptor.volumes]
    return "\n".join(lines) + "\n"


def write_compose(descriptor: ComposeDescriptor, filepath: Path) -> Path:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        file.write(render_compose(descriptor))
    return filepath


def find_node_config(config_dir: Path = CONFIG_DIR) -> Path:
    """
    Locates the node config in the config directory: nodeConfig.json first,
    then a single node-config*.json or nodeConfig*.json file.
    """
    default = config_dir / DEFAULT_NODE_CONFIG_FILENAME
    if default.is_file():
        return default

    candidates = list()
    if config_dir.is_dir():
        for pattern in ("node-config*.json", "nodeConfig*.json"):
            candidates.extend(sorted(config_dir.glob(pattern)))
    if len(candidates) > 1:
        raise AmbiguousNodeConfig(candidates)
    if not candidates:
        raise NodeConfigNotFound(
            f"Node config not found at {default}. Run generate_node_config or "
            f"specify the path with --config <path>."
        )
    return candidates[0]
