from pathlib import Path

from web3 import Web3

import orbit_deployment

#
# Filesystem
#

PACKAGE_DIR = Path(orbit_deployment.__file__).parent
PARAMS_DIR = PACKAGE_DIR / "chain_params"
DEPLOYMENTS_DIR = Path("deployments")
CONFIG_DIR = Path("config")
DOCKER_COMPOSE_FILEPATH = Path("docker-compose.yml")

DEPLOYMENT_FILENAME_PREFIX = "deployment-"
NODE_CONFIG_FILENAME_PREFIX = "node-config-"
CHAIN_SUMMARY_FILENAME_PREFIX = "chain-"
DEFAULT_NODE_CONFIG_FILENAME = "nodeConfig.json"

JSON_FORMAT = {"indent": 2}

#
# Chain defaults
#

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_CHAIN_ID = 412346
DEFAULT_CHAIN_NAME = "My Orbit Chain"

# createRollup defaults
DEFAULT_MAX_DATA_SIZE = 117964
DEFAULT_MAX_FEE_PER_GAS_FOR_RETRYABLES = 100_000_000  # 0.1 gwei
DEFAULT_RETRYABLES_FEES = Web3.to_wei("0.125", "ether")
DEFAULT_CONFIRM_PERIOD_BLOCKS = 150
DEFAULT_BASE_STAKE = Web3.to_wei("0.1", "ether")
INITIAL_ARBOS_VERSION = 32

# delayBlocks, futureBlocks, delaySeconds, futureSeconds
DEFAULT_SEQUENCER_INBOX_MAX_TIME_VARIATION = (5760, 48, 86400, 3600)

#
# Balance
#

MIN_DEPLOYER_BALANCE = Web3.to_wei("0.5", "ether")

#
# Data availability provider
#

DEFAULT_DA_PROVIDER_URL = "http://celestia-server:26657"
DEFAULT_DA_PROVIDER_RETRIES = 3
DEFAULT_DA_PROVIDER_RETRY_ERRORS = (
    "websocket: close.*|dial tcp .*|.*i/o timeout|.*connection reset by peer|.*connection refused"
)
DEFAULT_DA_PROVIDER_ARG_LOG_LIMIT = 2048
DEFAULT_DA_PROVIDER_WS_MESSAGE_SIZE_LIMIT = 256 * 1024 * 1024

#
# Node
#

DEFAULT_NODE_HTTP_PORT = 8449
COMPOSE_NODE_HTTP_PORT = 8547

#
# Celestia DA server (docker compose)
#

NAMESPACE_PREFIX = "orbit-"
NAMESPACE_HEX_LENGTH = 20  # 10 bytes

NODE_SERVICE_NAME = "nitro-celestia-node"
DA_SERVER_SERVICE_NAME = "celestia-server"
NODE_DATA_VOLUME = "node-data"
CELESTIA_KEYS_VOLUME = "celestia-keys"

DEFAULT_NITRO_IMAGE = "ghcr.io/celestiaorg/nitro:v3.6.8"
DEFAULT_CELESTIA_SERVER_IMAGE = "ghcr.io/celestiaorg/nitro-das-celestia:v0.6.2-mocha"
DEFAULT_CELESTIA_RPC_ENDPOINT = "https://rpc-mocha.pops.one"
DEFAULT_CELESTIA_CORE_NETWORK = "mocha-4"

NODE_PORTS = (8548, 9642, 6070)
DA_SERVER_PORTS = (1317, 9090, 26657, 1095, 8080)
DA_SERVER_RPC_PORT = 26657

NODE_CONFIG_MOUNT = "/home/user/nodeConfig.json"
NODE_DATA_MOUNT = "/home/user/.arbitrum/local/nitro"
CELESTIA_HOME = "/home/celestia"

#
# Block explorer
#

ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"
ETHERSCAN_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"
VERIFICATION_REQUEST_DELAY = 2  # seconds between contracts
VERIFICATION_STATUS_DELAY = 5  # seconds between submission and status check

# roles verified, in order
VERIFIABLE_CONTRACTS = {
    "rollup": "Rollup",
    "inbox": "Inbox",
    "outbox": "Outbox",
    "bridge": "Bridge",
    "sequencerInbox": "SequencerInbox",
    "adminProxy": "AdminProxy",
}

#
# Contracts
#

# RollupCreator (nitro-contracts v2.1) addresses by parent chain id
ROLLUP_CREATOR_ADDRESSES = {
    11155111: "0x687Bc1D23390875a868Db158DA1cDC8998E31640",  # sepolia
}

ROLLUP_CREATED_EVENT_ABI = {
    "type": "event",
    "name": "RollupCreated",
    "anonymous": False,
    "inputs": [
        {"name": "rollupAddress", "type": "address", "indexed": True},
        {"name": "nativeToken", "type": "address", "indexed": True},
        {"name": "inboxAddress", "type": "address", "indexed": False},
        {"name": "outbox", "type": "address", "indexed": False},
        {"name": "rollupEventInbox", "type": "address", "indexed": False},
        {"name": "challengeManager", "type": "address", "indexed": False},
        {"name": "adminProxy", "type": "address", "indexed": False},
        {"name": "sequencerInbox", "type": "address", "indexed": False},
        {"name": "bridge", "type": "address", "indexed": False},
        {"name": "upgradeExecutor", "type": "address", "indexed": False},
        {"name": "validatorWalletCreator", "type": "address", "indexed": False},
    ],
}

_MAX_TIME_VARIATION_COMPONENTS = [
    {"name": "delayBlocks", "type": "uint256"},
    {"name": "futureBlocks", "type": "uint256"},
    {"name": "delaySeconds", "type": "uint256"},
    {"name": "futureSeconds", "type": "uint256"},
]

_ROLLUP_CONFIG_COMPONENTS = [
    {"name": "confirmPeriodBlocks", "type": "uint64"},
    {"name": "extraChallengeTimeBlocks", "type": "uint64"},
    {"name": "stakeToken", "type": "address"},
    {"name": "baseStake", "type": "uint256"},
    {"name": "wasmModuleRoot", "type": "bytes32"},
    {"name": "owner", "type": "address"},
    {"name": "loserStakeEscrow", "type": "address"},
    {"name": "chainId", "type": "uint256"},
    {"name": "chainConfig", "type": "string"},
    {"name": "genesisBlockNum", "type": "uint64"},
    {
        "name": "sequencerInboxMaxTimeVariation",
        "type": "tuple",
        "components": _MAX_TIME_VARIATION_COMPONENTS,
    },
]

ROLLUP_CREATOR_ABI = [
    {
        "type": "function",
        "name": "createRollup",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "deployParams",
                "type": "tuple",
                "components": [
                    {"name": "config", "type": "tuple", "components": _ROLLUP_CONFIG_COMPONENTS},
                    {"name": "validators", "type": "address[]"},
                    {"name": "maxDataSize", "type": "uint256"},
                    {"name": "nativeToken", "type": "address"},
                    {"name": "deployFactoriesToL2", "type": "bool"},
                    {"name": "maxFeePerGasForRetryables", "type": "uint256"},
                    {"name": "batchPosters", "type": "address[]"},
                ],
            }
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
    ROLLUP_CREATED_EVENT_ABI,
]
