"""
Chain configurations
Lookup table of every chain a registry record may reference
"""
from dataclasses import dataclass, field
from enum import Enum


class ChainId(Enum):
    """Blockchain chain IDs"""
    ETHEREUM = 1
    OPTIMISM = 10
    UNICHAIN = 130
    POLYGON = 137
    MONAD = 143
    STABLE = 988
    HYPEREVM = 999
    BASE = 8453
    ARBITRUM = 42161
    PLUME = 98866
    KATANA = 747474


@dataclass
class ChainConfig:
    """Configuration for a blockchain"""
    chain_id: ChainId
    name: str
    native_token: str
    native_decimals: int
    rpc_env_key: str
    explorer_url: str

    # Public fallbacks used when the env RPC URL is not set
    rpc_endpoints: list[str] = field(default_factory=list)

    # Wrapped native token, used when resolving ETH/WETH pair symbols
    wrapped_native: str | None = None


CHAINS: dict[ChainId, ChainConfig] = {
    ChainId.ETHEREUM: ChainConfig(
        chain_id=ChainId.ETHEREUM,
        name="Ethereum",
        native_token="ETH",
        native_decimals=18,
        rpc_env_key="RPC_URL_MAINNET",
        explorer_url="https://etherscan.io",
        rpc_endpoints=[
            "https://eth.llamarpc.com",
            "https://ethereum.publicnode.com",
            "https://eth.drpc.org",
        ],
        wrapped_native="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    ),

    ChainId.BASE: ChainConfig(
        chain_id=ChainId.BASE,
        name="Base",
        native_token="ETH",
        native_decimals=18,
        rpc_env_key="RPC_URL_BASE",
        explorer_url="https://basescan.org",
        rpc_endpoints=[
            "https://mainnet.base.org",
            "https://base.publicnode.com",
            "https://base.drpc.org",
        ],
        wrapped_native="0x4200000000000000000000000000000000000006",
    ),

    ChainId.OPTIMISM: ChainConfig(
        chain_id=ChainId.OPTIMISM,
        name="Optimism",
        native_token="ETH",
        native_decimals=18,
        rpc_env_key="RPC_URL_OP",
        explorer_url="https://optimistic.etherscan.io",
        rpc_endpoints=[
            "https://mainnet.optimism.io",
            "https://optimism.publicnode.com",
        ],
        wrapped_native="0x4200000000000000000000000000000000000006",
    ),

    ChainId.UNICHAIN: ChainConfig(
        chain_id=ChainId.UNICHAIN,
        name="Unichain",
        native_token="ETH",
        native_decimals=18,
        rpc_env_key="RPC_URL_UNICHAIN",
        explorer_url="https://uniscan.xyz",
        rpc_endpoints=["https://mainnet.unichain.org"],
        wrapped_native="0x4200000000000000000000000000000000000006",
    ),

    ChainId.POLYGON: ChainConfig(
        chain_id=ChainId.POLYGON,
        name="Polygon",
        native_token="POL",
        native_decimals=18,
        rpc_env_key="RPC_URL_POLYGON",
        explorer_url="https://polygonscan.com",
        rpc_endpoints=[
            "https://polygon-rpc.com",
            "https://polygon.publicnode.com",
        ],
        wrapped_native="0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",
    ),

    ChainId.MONAD: ChainConfig(
        chain_id=ChainId.MONAD,
        name="Monad",
        native_token="MON",
        native_decimals=18,
        rpc_env_key="RPC_URL_MONAD",
        explorer_url="https://monadscan.com",
    ),

    ChainId.STABLE: ChainConfig(
        chain_id=ChainId.STABLE,
        name="Stable",
        native_token="USDT0",
        native_decimals=18,
        rpc_env_key="RPC_URL_STABLE",
        explorer_url="https://stablescan.xyz",
    ),

    ChainId.HYPEREVM: ChainConfig(
        chain_id=ChainId.HYPEREVM,
        name="HyperEVM",
        native_token="HYPE",
        native_decimals=18,
        rpc_env_key="RPC_URL_HYPEREVM",
        explorer_url="https://hyperevmscan.io",
        rpc_endpoints=["https://rpc.hyperliquid.xyz/evm"],
        wrapped_native="0x5555555555555555555555555555555555555555",
    ),

    ChainId.ARBITRUM: ChainConfig(
        chain_id=ChainId.ARBITRUM,
        name="Arbitrum",
        native_token="ETH",
        native_decimals=18,
        rpc_env_key="RPC_URL_ARBITRUM",
        explorer_url="https://arbiscan.io",
        rpc_endpoints=[
            "https://arb1.arbitrum.io/rpc",
            "https://arbitrum.publicnode.com",
        ],
        wrapped_native="0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",
    ),

    ChainId.PLUME: ChainConfig(
        chain_id=ChainId.PLUME,
        name="Plume",
        native_token="PLUME",
        native_decimals=18,
        rpc_env_key="RPC_URL_PLUME",
        explorer_url="https://explorer.plume.org",
    ),

    ChainId.KATANA: ChainConfig(
        chain_id=ChainId.KATANA,
        name="Katana",
        native_token="ETH",
        native_decimals=18,
        rpc_env_key="RPC_URL_KATANA",
        explorer_url="https://katanascan.com",
    ),
}


# Chains a registry record may legitimately reference
VALID_CHAIN_IDS: frozenset[int] = frozenset({1, 8453, 10, 130, 137, 999, 747474, 42161, 143})
VALID_CHAIN_ID_STRINGS: frozenset[str] = frozenset(str(c) for c in VALID_CHAIN_IDS)


def get_chain(chain_id: ChainId) -> ChainConfig:
    """Get chain configuration by ID"""
    return CHAINS[chain_id]


def find_chain(chain_id: int) -> ChainConfig | None:
    """Get chain configuration by raw integer ID, None if unknown"""
    try:
        return CHAINS.get(ChainId(chain_id))
    except ValueError:
        return None
