from typing import NamedTuple, Optional


class ParentChain(NamedTuple):
    """A chain an Orbit rollup can settle to."""

    chain_id: int
    name: str
    explorer_url: str
    faucet_url: Optional[str] = None
    is_arbitrum: bool = False
    stake_token: Optional[str] = None

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url}/address/{address}"

    def proxy_checker_url(self, address: str) -> str:
        return f"{self.explorer_url}/proxyContractChecker?a={address}"


SEPOLIA = ParentChain(
    chain_id=11155111,
    name="sepolia",
    explorer_url="https://sepolia.etherscan.io",
    faucet_url="https://sepoliafaucet.com/",
    # WETH on sepolia
    stake_token="0x980B62Da83eFf3D4576C647993b0c1D7faf17c73",
)

ARBITRUM_SEPOLIA = ParentChain(
    chain_id=421614,
    name="arbitrum-sepolia",
    explorer_url="https://sepolia.arbiscan.io",
    faucet_url="https://faucet.quicknode.com/arbitrum/sepolia",
    is_arbitrum=True,
)

PARENT_CHAINS = {chain.chain_id: chain for chain in (SEPOLIA, ARBITRUM_SEPOLIA)}

# node config generation is typed against this parent chain
DEFAULT_PARENT_CHAIN = SEPOLIA


def get_parent_chain(chain_id: int) -> ParentChain:
    """
    Returns the known parent chain for the given id, or a generic entry
    derived from the default parent chain when the id is not known.
    """
    try:
        return PARENT_CHAINS[chain_id]
    except KeyError:
        return DEFAULT_PARENT_CHAIN._replace(
            chain_id=chain_id, name=f"chain-{chain_id}", stake_token=None
        )


def is_known_parent_chain(chain_id: int) -> bool:
    return chain_id in PARENT_CHAINS
