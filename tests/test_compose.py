import hashlib
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from orbit_deployment.compose import (
    AmbiguousNodeConfig,
    CelestiaOptions,
    NodeConfigNotFound,
    build_compose,
    container_name_for,
    derive_namespace,
    find_node_config,
    render_compose,
)
from orbit_deployment.constants import (
    CELESTIA_KEYS_VOLUME,
    DA_SERVER_SERVICE_NAME,
    NODE_SERVICE_NAME,
)
from scripts import generate_docker_compose

NODE_CONFIG = {
    "chain": {"info-json": "[]", "name": "My Orbit Chain", "id": 412346},
    "parent-chain": {"connection": {"url": "https://sepolia.example.org"}, "id": 11155111},
    "http": {"addr": "0.0.0.0", "port": 8449},
    "node": {},
}


def _write_config(directory: Path, name: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    filepath = directory / name
    filepath.write_text(json.dumps(NODE_CONFIG))
    return filepath


def test_derive_namespace():
    namespace = derive_namespace(412346)
    assert namespace == hashlib.sha256(b"orbit-412346").hexdigest()[:20]
    assert len(namespace) == 20
    assert derive_namespace(412346) == namespace
    assert derive_namespace(412347) != namespace


def test_container_name():
    assert container_name_for("My  Orbit Chain") == "orbit-my-orbit-chain"


def test_build_compose_defaults():
    descriptor = build_compose(NODE_CONFIG, Path("config/node-config-412346.json"))
    assert descriptor.namespace == derive_namespace(412346)
    assert descriptor.namespace_generated

    node = descriptor.service(NODE_SERVICE_NAME)
    assert node.container_name == "orbit-my-orbit-chain"
    assert node.ports == ("8547:8449", "8548:8548", "9642:9642", "6070:6070")
    assert node.volumes[0] == "./config/node-config-412346.json:/home/user/nodeConfig.json:ro"
    assert node.depends_on == (DA_SERVER_SERVICE_NAME,)

    da_server = descriptor.service(DA_SERVER_SERVICE_NAME)
    assert da_server.ports == ("1317:1317", "9090:9090", "26657:26657", "1095:1095", "8080:8080")
    assert "--celestia.core-disable-tls" not in da_server.entrypoint
    assert da_server.volumes == (
        f"{CELESTIA_KEYS_VOLUME}:/home/celestia/.celestia-light-mocha-4/keys",
    )
    assert descriptor.volumes == ("node-data", CELESTIA_KEYS_VOLUME)


def test_build_compose_with_key_path():
    celestia = CelestiaOptions(
        namespace="0xabcdef0123456789abcd",
        key_path=Path("/home/me/.celestia-light-mocha-4/keys"),
        core_tls=False,
        core_token="token",
        core_url="grpc.celestia-mocha.com:9090",
    )
    descriptor = build_compose(NODE_CONFIG, Path("config/nodeConfig.json"), celestia=celestia)
    assert not descriptor.namespace_generated
    assert descriptor.volumes == ("node-data",)

    da_server = descriptor.service(DA_SERVER_SERVICE_NAME)
    assert da_server.volumes == (
        "/home/me/.celestia-light-mocha-4/keys:/home/celestia/.celestia-light-mocha-4/keys",
    )
    entrypoint = da_server.entrypoint
    assert "--celestia.core-disable-tls" in entrypoint
    assert entrypoint[entrypoint.index("--celestia.core-token") + 1] == "token"
    assert entrypoint[entrypoint.index("--celestia.namespace-id") + 1] == descriptor.namespace
    assert not descriptor.namespace.startswith("0x")


def test_render_compose():
    celestia = CelestiaOptions(auth_token="secret-token")
    text = render_compose(build_compose(NODE_CONFIG, Path("config/nodeConfig.json"), celestia))
    assert text.startswith("# Docker Compose configuration for Orbit x Celestia chain")
    assert "services:\n  nitro-celestia-node:\n" in text
    assert '      - "8547:8449"' in text
    assert '      - "--celestia.auth-token"\n      - "secret-token"' in text
    assert "      - --conf.file\n      - /home/user/nodeConfig.json" in text
    assert text.endswith("volumes:\n  node-data:\n  celestia-keys:\n")


def test_find_node_config(tmp_path):
    with pytest.raises(NodeConfigNotFound):
        find_node_config(tmp_path)

    single = _write_config(tmp_path, "node-config-412346.json")
    assert find_node_config(tmp_path) == single

    _write_config(tmp_path, "nodeConfig-1.json")
    with pytest.raises(AmbiguousNodeConfig):
        find_node_config(tmp_path)

    default = _write_config(tmp_path, "nodeConfig.json")
    assert find_node_config(tmp_path) == default


def test_cli_help():
    result = CliRunner().invoke(generate_docker_compose.cli, ["--help"])
    assert result.exit_code == 0
    assert "--celestia-namespace" in result.output


def test_cli_multiple_configs(tmp_path):
    config_dir = tmp_path / "config"
    _write_config(config_dir, "node-config-1.json")
    _write_config(config_dir, "node-config-2.json")
    result = CliRunner().invoke(
        generate_docker_compose.cli,
        ["--config-dir", str(config_dir), "--output", str(tmp_path / "docker-compose.yml")],
    )
    assert result.exit_code == 1
    assert "Multiple config files found" in result.output
    assert not (tmp_path / "docker-compose.yml").exists()


def test_cli_generate(tmp_path):
    config = _write_config(tmp_path / "config", "node-config-412346.json")
    output = tmp_path / "docker-compose.yml"
    result = CliRunner().invoke(
        generate_docker_compose.cli,
        [
            "--config",
            str(config),
            "--output",
            str(output),
            "--celestia-namespace",
            "0x0123456789abcdef0123",
            "--celestia-disable-core-tls",
        ],
    )
    assert result.exit_code == 0, result.output
    text = output.read_text()
    assert '"0123456789abcdef0123"' in text
    assert '"--celestia.core-disable-tls"' in text
    assert f"{config}:/home/user/nodeConfig.json:ro" in text
    assert "no da-provider block" in result.output


def test_cli_rejects_bad_namespace(tmp_path):
    config = _write_config(tmp_path, "nodeConfig.json")
    result = CliRunner().invoke(
        generate_docker_compose.cli, ["--config", str(config), "--celestia-namespace", "0x1234"]
    )
    assert result.exit_code == 2
