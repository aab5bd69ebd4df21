import os
import typing
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Mapping, NamedTuple, Optional, Tuple

from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from eth_utils import encode_hex, to_checksum_address
from hexbytes import HexBytes
from web3 import Web3
from web3.types import TxReceipt

from orbit_deployment.confirm import _confirm_submission, _continue
from orbit_deployment.constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_CHAIN_NAME,
    DEFAULT_DA_PROVIDER_ARG_LOG_LIMIT,
    DEFAULT_DA_PROVIDER_RETRIES,
    DEFAULT_DA_PROVIDER_RETRY_ERRORS,
    DEFAULT_DA_PROVIDER_URL,
    DEFAULT_DA_PROVIDER_WS_MESSAGE_SIZE_LIMIT,
    DEFAULT_MAX_DATA_SIZE,
    DEFAULT_MAX_FEE_PER_GAS_FOR_RETRYABLES,
    DEPLOYMENTS_DIR,
    MIN_DEPLOYER_BALANCE,
    ROLLUP_CREATOR_ADDRESSES,
    ZERO_ADDRESS,
)
from orbit_deployment.networks import ParentChain, SEPOLIA, get_parent_chain
from orbit_deployment.receipt import Reconciliation, reconcile, wait_for_receipt
from orbit_deployment.registry import DeploymentRecord, create_record, persist_record
from orbit_deployment.rollup import RollupCreator, prepare_chain_config, prepare_deployment_params
from orbit_deployment.utils import _load_yaml, get_account, sanitize_private_key

REQUIRED_ENVVARS = ("PRIVATE_KEY", "PARENT_CHAIN_RPC", "WASM_ROOT")


class ConfigurationError(ValueError):
    """Raised when deployment parameters are missing or malformed."""


class InsufficientBalance(ValueError):
    """Raised when the deployer cannot pay for the rollup creation."""

    def __init__(self, address: str, balance: int, minimum: int, faucet_url: Optional[str]):
        self.address = address
        self.balance = balance
        self.minimum = minimum
        self.faucet_url = faucet_url
        message = (
            f"Insufficient balance for {address}: {Web3.from_wei(balance, 'ether')} ETH "
            f"(at least {Web3.from_wei(minimum, 'ether')} ETH required)."
        )
        if faucet_url:
            message += f" Get test ETH from: {faucet_url}"
        super().__init__(message)


class RollupReverted(RuntimeError):
    """Raised when the rollup creation transaction was mined with a failed status."""


# Variables


class VariableContext:
    def __init__(self, deployer: ChecksumAddress, constants: typing.Dict[str, Any] = None):
        self.deployer = deployer
        self.constants = constants or dict()


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.address = context.deployer

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        return self.address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise ConfigurationError(f"Constant '{constant_name}' not found in params file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a params file constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable.strip(Variable.VARIABLE_PREFIX)
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    raise ConfigurationError(f"Unresolvable variable '${variable}'.")


def _resolve_param(value: Any, context: VariableContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if Variable.is_variable(value):
        return _variable_from_value(value, context).resolve()

    return value  # literally a value


# Parameters


class DAProviderOptions(NamedTuple):
    """Settings of the external data-availability provider wired into the node."""

    enabled: bool = False
    url: str = DEFAULT_DA_PROVIDER_URL
    retries: int = DEFAULT_DA_PROVIDER_RETRIES
    retry_errors: str = DEFAULT_DA_PROVIDER_RETRY_ERRORS
    arg_log_limit: int = DEFAULT_DA_PROVIDER_ARG_LOG_LIMIT
    ws_message_size_limit: int = DEFAULT_DA_PROVIDER_WS_MESSAGE_SIZE_LIMIT


class ChainParameters(NamedTuple):
    """Fully resolved parameters of one rollup deployment."""

    private_key: str
    parent_chain_rpc: str
    wasm_module_root: str
    deployer: ChecksumAddress
    chain_id: int = DEFAULT_CHAIN_ID
    chain_name: str = DEFAULT_CHAIN_NAME
    parent_chain_id: int = SEPOLIA.chain_id
    validators: Tuple[ChecksumAddress, ...] = ()
    batch_poster: Optional[ChecksumAddress] = None
    native_token: ChecksumAddress = ZERO_ADDRESS
    rollup_creator: Optional[ChecksumAddress] = None
    max_data_size: int = DEFAULT_MAX_DATA_SIZE
    max_fee_per_gas_for_retryables: int = DEFAULT_MAX_FEE_PER_GAS_FOR_RETRYABLES
    batch_poster_private_key: Optional[str] = None
    validator_private_key: Optional[str] = None
    data_availability: DAProviderOptions = DAProviderOptions()

    @property
    def parent_chain(self) -> ParentChain:
        return get_parent_chain(self.parent_chain_id)

    @property
    def uses_native_currency(self) -> bool:
        return int(self.native_token, 16) == 0

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        params_filepath: Optional[Path] = None,
    ) -> "ChainParameters":
        """
        Resolves deployment parameters from environment variables, optionally
        layered over a YAML params file. Environment variables take precedence.
        No network access is performed.
        """
        environ = os.environ if environ is None else environ
        config = _load_yaml(params_filepath) if params_filepath else dict()
        return resolve_parameters(environ=environ, config=config or dict())


def _to_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got '{value}'.")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y")


def _to_address(name: str, value: Any) -> ChecksumAddress:
    try:
        return to_checksum_address(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"{name} is not a valid address: '{value}'.")


def _normalize_wasm_root(value: str) -> str:
    value = value.strip()
    if not value.startswith("0x"):
        value = f"0x{value}"
    try:
        root = HexBytes(value)
    except ValueError:
        raise ConfigurationError(f"WASM_ROOT is not a hex string: '{value}'.")
    if len(root) != 32:
        raise ConfigurationError(f"WASM_ROOT must be 32 bytes, got {len(root)}.")
    return value


def _split_addresses(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [v.strip() for v in str(value).split(",") if v.strip()]


def resolve_parameters(environ: Mapping[str, str], config: typing.Dict) -> ChainParameters:
    """Resolves and validates deployment parameters; see ChainParameters.from_env."""
    missing = [name for name in REQUIRED_ENVVARS if not environ.get(name)]
    if missing:
        raise ConfigurationError(f"{', '.join(missing)} not set in environment (or .env).")

    private_key = sanitize_private_key(environ["PRIVATE_KEY"])
    try:
        deployer = get_account(private_key).address
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"PRIVATE_KEY is not a valid private key: {e}")

    batch_poster_private_key = environ.get("BATCH_POSTER_PRIVATE_KEY")
    if batch_poster_private_key:
        batch_poster_private_key = sanitize_private_key(batch_poster_private_key)

    validator_private_key = environ.get("VALIDATOR_PRIVATE_KEY")
    if validator_private_key:
        validator_private_key = sanitize_private_key(validator_private_key)
        if validator_private_key in (private_key, batch_poster_private_key):
            raise ConfigurationError(
                "VALIDATOR_PRIVATE_KEY cannot be the same as PRIVATE_KEY or the batch poster key."
            )

    deployment = config.get("deployment") or dict()
    rollup = config.get("rollup") or dict()
    data_availability = config.get("data_availability") or dict()
    context = VariableContext(deployer=deployer, constants=config.get("constants"))

    def lookup(envvar: str, section: typing.Dict, key: str, default: Any = None) -> Any:
        if environ.get(envvar):
            return environ[envvar]
        if section.get(key) is not None:
            return _resolve_param(section[key], context)
        return default

    chain_id = _to_int("CHAIN_ID", lookup("CHAIN_ID", deployment, "chain_id", DEFAULT_CHAIN_ID))
    if chain_id <= 0:
        raise ConfigurationError(f"CHAIN_ID must be positive, got {chain_id}.")
    parent_chain_id = _to_int(
        "PARENT_CHAIN_ID",
        lookup("PARENT_CHAIN_ID", deployment, "parent_chain_id", SEPOLIA.chain_id),
    )

    raw_validators = lookup("VALIDATOR_ADDRESSES", rollup, "validators") or [deployer]
    validators = tuple(
        _to_address("VALIDATOR_ADDRESSES", v) for v in _split_addresses(raw_validators)
    )
    if not validators:
        raise ConfigurationError("At least one validator address is required.")

    batch_poster = _to_address(
        "BATCH_POSTER_ADDRESS", lookup("BATCH_POSTER_ADDRESS", rollup, "batch_poster", deployer)
    )
    native_token = _to_address(
        "NATIVE_TOKEN_ADDRESS",
        lookup("NATIVE_TOKEN_ADDRESS", rollup, "native_token", ZERO_ADDRESS),
    )
    rollup_creator = lookup("ROLLUP_CREATOR_ADDRESS", rollup, "rollup_creator")
    if rollup_creator:
        rollup_creator = _to_address("ROLLUP_CREATOR_ADDRESS", rollup_creator)
    elif parent_chain_id not in ROLLUP_CREATOR_ADDRESSES:
        raise ConfigurationError(
            f"No known RollupCreator for parent chain {parent_chain_id}; "
            f"set ROLLUP_CREATOR_ADDRESS."
        )

    da_url = lookup("DA_PROVIDER_URL", data_availability, "url")
    da_enabled = _to_bool(lookup("DA_PROVIDER_ENABLE", data_availability, "enable", False))
    da_options = DAProviderOptions(
        enabled=da_enabled or bool(da_url),
        url=da_url or DEFAULT_DA_PROVIDER_URL,
        retries=_to_int(
            "DA_PROVIDER_RETRIES",
            lookup("DA_PROVIDER_RETRIES", data_availability, "retries", DEFAULT_DA_PROVIDER_RETRIES),
        ),
        retry_errors=lookup(
            "DA_PROVIDER_RETRY_ERRORS",
            data_availability,
            "retry_errors",
            DEFAULT_DA_PROVIDER_RETRY_ERRORS,
        ),
        arg_log_limit=_to_int(
            "DA_PROVIDER_ARG_LOG_LIMIT",
            lookup(
                "DA_PROVIDER_ARG_LOG_LIMIT",
                data_availability,
                "arg_log_limit",
                DEFAULT_DA_PROVIDER_ARG_LOG_LIMIT,
            ),
        ),
        ws_message_size_limit=_to_int(
            "DA_PROVIDER_WS_MESSAGE_SIZE_LIMIT",
            lookup(
                "DA_PROVIDER_WS_MESSAGE_SIZE_LIMIT",
                data_availability,
                "ws_message_size_limit",
                DEFAULT_DA_PROVIDER_WS_MESSAGE_SIZE_LIMIT,
            ),
        ),
    )

    return ChainParameters(
        private_key=private_key,
        parent_chain_rpc=environ["PARENT_CHAIN_RPC"],
        wasm_module_root=_normalize_wasm_root(environ["WASM_ROOT"]),
        deployer=deployer,
        chain_id=chain_id,
        chain_name=str(lookup("CHAIN_NAME", deployment, "chain_name", DEFAULT_CHAIN_NAME)),
        parent_chain_id=parent_chain_id,
        validators=validators,
        batch_poster=batch_poster,
        native_token=native_token,
        rollup_creator=rollup_creator,
        max_data_size=_to_int(
            "MAX_DATA_SIZE", lookup("MAX_DATA_SIZE", rollup, "max_data_size", DEFAULT_MAX_DATA_SIZE)
        ),
        max_fee_per_gas_for_retryables=_to_int(
            "MAX_FEE_PER_GAS",
            lookup(
                "MAX_FEE_PER_GAS",
                rollup,
                "max_fee_per_gas_for_retryables",
                DEFAULT_MAX_FEE_PER_GAS_FOR_RETRYABLES,
            ),
        ),
        batch_poster_private_key=batch_poster_private_key,
        validator_private_key=validator_private_key,
        data_availability=da_options,
    )


class Transactor:
    """
    Represents a web3 connection plus a local account, with
    annotated transaction signing and broadcast.
    """

    def __init__(self, w3: Web3, account: LocalAccount, autosign: bool = False):
        self.w3 = w3
        self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign

    def get_account(self) -> LocalAccount:
        """Returns the transactor account."""
        return self._account

    def transact(self, tx: typing.Dict[str, Any]) -> str:
        """Signs and broadcasts a prepared transaction. Returns the transaction hash."""
        tx = dict(tx)
        tx.setdefault("from", self._account.address)
        tx.setdefault("nonce", self.w3.eth.get_transaction_count(self._account.address))
        tx.setdefault("chainId", self.w3.eth.chain_id)
        signed = self._account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return encode_hex(tx_hash)


class Deployer(Transactor):
    """
    Represents a deployer account plus the resolved parameters of a
    rollup deployment, plus validated/annotated execution.
    """

    def __init__(
        self,
        params: ChainParameters,
        w3: Web3,
        account: Optional[LocalAccount] = None,
        autosign: bool = False,
        deployments_dir: Path = DEPLOYMENTS_DIR,
    ):
        super().__init__(w3=w3, account=account or get_account(params.private_key), autosign=autosign)
        self.params = params
        self.deployments_dir = deployments_dir
        self.chain_config = prepare_chain_config(
            chain_id=params.chain_id,
            owner=self._account.address,
            data_availability_committee=params.data_availability.enabled,
        )

    @property
    def parent_chain(self) -> ParentChain:
        return self.params.parent_chain

    def check_balance(self, minimum: int = MIN_DEPLOYER_BALANCE) -> int:
        """Returns the deployer balance; raises InsufficientBalance below the minimum."""
        address = self._account.address
        balance = self.w3.eth.get_balance(address)
        if balance < minimum:
            raise InsufficientBalance(
                address=address,
                balance=balance,
                minimum=minimum,
                faucet_url=self.parent_chain.faucet_url,
            )
        return balance

    def create_rollup(self) -> str:
        """Builds and broadcasts the createRollup transaction. Does not wait for it."""
        params = self.params
        creator = RollupCreator.for_parent_chain(
            w3=self.w3, parent_chain_id=params.parent_chain_id, override=params.rollup_creator
        )
        if params.rollup_creator:
            print(f"Using custom RollupCreator: {params.rollup_creator}")

        deployment_params = prepare_deployment_params(
            params=params,
            owner=self._account.address,
            chain_config=self.chain_config,
            stake_token=self.parent_chain.stake_token,
        )
        if not self._autosign:
            _confirm_submission(params)

        tx = creator.prepare_transaction_request(
            deployment_params=deployment_params,
            sender=self._account.address,
            native_token=params.native_token,
        )
        print(f"\nSending createRollup transaction to {creator.address}...")
        tx_hash = self.transact(tx)
        print(f"Transaction sent: {tx_hash}")
        print(f"Explorer: {self.parent_chain.tx_url(tx_hash)}")
        return tx_hash

    def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        print("Waiting for confirmation (this may take several minutes)...")
        receipt = wait_for_receipt(self.w3, tx_hash)
        if receipt["status"] != 1:
            raise RollupReverted(
                f"Rollup creation transaction {tx_hash} reverted in block "
                f"{receipt['blockNumber']}. The chain id or chain name may already be taken; "
                f"try different parameters."
            )
        return receipt

    def deploy(self) -> Tuple[DeploymentRecord, Path, Reconciliation]:
        """
        Runs the deployment pipeline: balance check, submission, confirmation,
        event reconciliation and record persistence.
        """
        balance = self.check_balance()
        print(f"Balance: {Web3.from_wei(balance, 'ether')} ETH")

        tx_hash = self.create_rollup()
        receipt = self.wait_for_receipt(tx_hash)
        print(f"Confirmed in block {receipt['blockNumber']} (gas used: {receipt['gasUsed']})")

        reconciliation = reconcile(receipt)
        if reconciliation.found:
            print("(i) Found RollupCreated event")
        else:
            print("(!) Could not parse RollupCreated event")
            print("    Run parse_deployment to extract the addresses from the stored transaction.")

        record = create_record(
            params=self.params,
            tx_hash=tx_hash,
            receipt=receipt,
            reconciliation=reconciliation,
        )
        filepath = persist_record(record, directory=self.deployments_dir)
        print(f"Deployment record saved to {filepath}")
        return record, filepath, reconciliation

    def print_deployment_info(self) -> None:
        params = self.params
        print(
            f"Deployer: {self._account.address}",
            f"Parent Chain: {self.parent_chain.name} ({params.parent_chain_id})",
            f"Chain ID: {params.chain_id}",
            f"Chain Name: {params.chain_name}",
            f"Validators: {', '.join(params.validators)}",
            f"Batch Poster: {params.batch_poster}",
            f"DA Provider: {params.data_availability.url if params.data_availability.enabled else 'disabled'}",
            sep="\n",
        )
        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()
