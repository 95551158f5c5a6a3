"""
Registry catalogue
Maps each registry name to its JSON document and production chain subset
"""
from dataclasses import dataclass, field


@dataclass
class RegistryConfig:
    """Configuration for a registry document"""
    name: str
    file_name: str
    root_type: type = list  # list of records, or dict of named maps

    # Record fields holding chain ids, all of them must pass the allow-list
    chain_fields: tuple[str, ...] = ()

    # Production subset validated even if the file holds other chains
    allowed_chain_ids: frozenset[int] | None = None

    description: str = ""

    def accepts(self, record: dict) -> bool:
        """Check if a record belongs to the production chain subset"""
        if self.allowed_chain_ids is None or not self.chain_fields:
            return True
        return all(_is_allowed(record.get(f), self.allowed_chain_ids) for f in self.chain_fields)


def _is_allowed(chain_id, allowed: frozenset[int]) -> bool:
    # JSON numbers only, true must not pass as chain 1
    return isinstance(chain_id, (int, float)) and not isinstance(chain_id, bool) and chain_id in allowed


EIGHT_CHAINS = frozenset({1, 8453, 10, 130, 137, 999, 747474, 42161})


REGISTRIES: list[RegistryConfig] = [
    RegistryConfig(
        name="tokens",
        file_name="tokens.json",
        chain_fields=("chainId",),
        allowed_chain_ids=frozenset({1, 8453}),
        description="Listed and whitelisted ERC20 tokens",
    ),
    RegistryConfig(
        name="price-feeds",
        file_name="price-feeds.json",
        chain_fields=("chainId",),
        allowed_chain_ids=frozenset({1, 8453, 137, 130}),
        description="Oracle price feeds",
    ),
    RegistryConfig(
        name="oracle-vaults",
        file_name="oracle-vaults.json",
        chain_fields=("chainId",),
        allowed_chain_ids=EIGHT_CHAINS,
        description="ERC4626 vaults used as oracle sources",
    ),
    RegistryConfig(
        name="exchange-rates",
        file_name="exchange-rates.json",
        chain_fields=("assetChainId", "contractChainId"),
        allowed_chain_ids=EIGHT_CHAINS,
        description="Exchange rate price sources",
    ),
    RegistryConfig(
        name="spot-prices",
        file_name="spot-prices.json",
        chain_fields=("assetChainId", "contractChainId"),
        allowed_chain_ids=EIGHT_CHAINS,
        description="DEX spot price sources",
    ),
    RegistryConfig(
        name="oracle-prices",
        file_name="oracle-prices.json",
        chain_fields=("assetChainId", "contractChainId"),
        allowed_chain_ids=frozenset({1, 8453}),
        description="On-chain oracle price sources",
    ),
    RegistryConfig(
        name="curators",
        file_name="curators-listing.json",
        description="Verified vault curators",
    ),
    RegistryConfig(
        name="vaults",
        file_name="vaults-listing.json",
        description="Listed MetaMorpho vaults",
    ),
    RegistryConfig(
        name="vaults-v2",
        file_name="vaults-v2-listing.json",
        description="Listed V2 vaults",
    ),
    RegistryConfig(
        name="custom-warnings",
        file_name="custom-warnings.json",
        description="Custom vault and market warnings",
    ),
    RegistryConfig(
        name="points",
        file_name="points.json",
        root_type=dict,
        description="Points programs per vault, market and collateral token",
    ),
]

REGISTRY_NAMES: list[str] = [r.name for r in REGISTRIES]


def get_registry(name: str) -> RegistryConfig:
    """Get registry configuration by name"""
    for registry in REGISTRIES:
        if registry.name == name:
            return registry
    raise KeyError(f"Unknown registry: {name}")
