import time
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

import requests

from orbit_deployment.constants import (
    ETHERSCAN_API_URL,
    VERIFIABLE_CONTRACTS,
    VERIFICATION_REQUEST_DELAY,
    VERIFICATION_STATUS_DELAY,
)
from orbit_deployment.networks import ParentChain


class VerificationStatus(Enum):
    ALREADY_VERIFIED = "already verified"
    VERIFIED = "verified"
    PENDING = "pending"
    REJECTED = "rejected"
    SKIPPED = "skipped"
    ERROR = "error"


class VerificationResult(NamedTuple):
    name: str
    address: str
    status: VerificationStatus
    detail: Optional[str] = None


class EtherscanError(RuntimeError):
    pass


class EtherscanClient:
    """Minimal Etherscan V2 client for proxy contract verification."""

    def __init__(
        self,
        api_key: str,
        chain_id: int,
        url: str = ETHERSCAN_API_URL,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        self.api_key = api_key
        self.chain_id = chain_id
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def _params(self, action: str, **kwargs) -> Dict[str, Any]:
        params = {
            "chainid": self.chain_id,
            "module": "contract",
            "action": action,
            "apikey": self.api_key,
        }
        params.update(kwargs)
        return params

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict) or "status" not in data:
            raise EtherscanError(f"Unexpected explorer response: {data}")
        return data

    def get(self, action: str, **kwargs) -> Dict[str, Any]:
        response = self.session.get(
            self.url, params=self._params(action, **kwargs), timeout=self.timeout
        )
        return self._json(response)

    def post(self, action: str, **kwargs) -> Dict[str, Any]:
        response = self.session.post(
            self.url, params=self._params(action, **kwargs), timeout=self.timeout
        )
        return self._json(response)

    def is_verified(self, address: str) -> bool:
        data = self.get("getsourcecode", address=address)
        if data["status"] != "1" or not data.get("result"):
            return False
        return bool(data["result"][0].get("SourceCode"))

    def verify_proxy(self, address: str) -> Dict[str, Any]:
        return self.post("verifyproxycontract", address=address)

    def check_proxy_verification(self, guid: str) -> Dict[str, Any]:
        return self.get("checkproxyverification", guid=guid)


def contracts_to_verify(contracts: Mapping[str, str]) -> List[VerificationResult]:
    """Verifiable contracts of a record, in verification order; unset roles are dropped."""
    pending = list()
    for role, name in VERIFIABLE_CONTRACTS.items():
        address = contracts.get(role)
        if address:
            pending.append(
                VerificationResult(name=name, address=address, status=VerificationStatus.PENDING)
            )
    return pending


def verify_contract(
    client: EtherscanClient,
    name: str,
    address: str,
    parent_chain: ParentChain,
    sleep: Callable[[float], None] = time.sleep,
) -> VerificationResult:
    print(f"\n(i) Verifying {name} at {address}...")

    try:
        if client.is_verified(address):
            print(f"(i) {name} is already verified")
            return VerificationResult(name, address, VerificationStatus.ALREADY_VERIFIED)
    except (requests.RequestException, EtherscanError, ValueError) as e:
        print(f"(!) Checking verification status failed ({e}); proceeding with verification...")

    try:
        submission = client.verify_proxy(address)
        if submission["status"] != "1":
            print(f"(!) {name} verification response: {submission.get('result')}")
            print(f"    You can manually verify at: {parent_chain.proxy_checker_url(address)}")
            return VerificationResult(
                name, address, VerificationStatus.REJECTED, str(submission.get("result"))
            )

        guid = submission["result"]
        print(f"(i) {name} proxy verification submitted (GUID: {guid})")
        sleep(VERIFICATION_STATUS_DELAY)

        status = client.check_proxy_verification(guid)
        if status["status"] == "1":
            print(f"(i) {name} verified successfully")
            return VerificationResult(
                name, address, VerificationStatus.VERIFIED, status.get("result")
            )
        print(f"(i) {name} verification pending...")
        print(f"    Check status: {parent_chain.address_url(address)}#code")
        return VerificationResult(name, address, VerificationStatus.PENDING, status.get("result"))

    except (requests.RequestException, EtherscanError, ValueError, KeyError) as e:
        print(f"x Error verifying {name}: {e}")
        print(f"    Manual verification: {parent_chain.proxy_checker_url(address)}")
        return VerificationResult(name, address, VerificationStatus.ERROR, str(e))


def verify_contracts(
    contracts: Mapping[str, str],
    parent_chain: ParentChain,
    api_key: Optional[str],
    client: Optional[EtherscanClient] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[VerificationResult]:
    """Submits every verifiable contract for proxy verification, pacing requests."""
    if api_key and client is None:
        client = EtherscanClient(api_key=api_key, chain_id=parent_chain.chain_id)

    results = list()
    for contract in contracts_to_verify(contracts):
        if not api_key:
            print(f"(!) Skipping {contract.name} - ETHERSCAN_API_KEY not set")
            results.append(contract._replace(status=VerificationStatus.SKIPPED))
            continue
        result = verify_contract(
            client=client,
            name=contract.name,
            address=contract.address,
            parent_chain=parent_chain,
            sleep=sleep,
        )
        results.append(result)
        sleep(VERIFICATION_REQUEST_DELAY)
    return results
