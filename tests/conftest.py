import json

import pytest

from factories import (
    FEED_A,
    FEED_B,
    MARKET_A,
    USDC,
    VAULT_A,
    VAULT_B,
    WETH,
    curator,
    empty_points,
    feed,
    market_warning,
    point,
    token,
    vault,
    vault_warning,
)


@pytest.fixture
def data_dir(tmp_path):
    """Directory with a minimal, fully consistent set of registries"""
    points = empty_points()
    points["vaultsWithPoints"] = {"1": {VAULT_A: [point()]}}
    points["marketsWithPoints"] = {"1": {MARKET_A: [point()]}}
    points["marketsWithPointsOnCollateralToken"] = {"1": {WETH: [point()]}}

    documents = {
        "tokens.json": [
            token(),
            token(WETH, name="Wrapped Ether", symbol="WETH", decimals=18,
                  metadata={"logoURI": "https://cdn.morpho.org/assets/logos/weth.svg"}),
        ],
        "price-feeds.json": [feed()],
        "oracle-vaults.json": [
            {"address": VAULT_B, "chainId": 1, "vendor": "Morpho", "pair": ["sUSDS", "USDS"]},
        ],
        "exchange-rates.json": [
            {
                "assetAddress": USDC, "assetChainId": 1,
                "contractAddress": VAULT_B, "contractChainId": 1,
                "data": json.dumps({
                    "abi": "function convertToAssets(uint256) view returns (uint256)",
                    "function": "convertToAssets",
                    "decimals": 6,
                    "args": [{"type": "bigint", "value": "1000000"}],
                }),
            },
        ],
        "spot-prices.json": [
            {
                "assetAddress": WETH, "assetChainId": 1,
                "contractAddress": FEED_B, "contractChainId": 1,
                "type": "uniswap_v3_twap", "order": 0,
                "data": json.dumps({"first_block_number": 12376729}),
            },
        ],
        "oracle-prices.json": [
            {
                "assetAddress": WETH, "assetChainId": 1,
                "contractAddress": FEED_A, "contractChainId": 1,
                "type": "chainlink_aggregator", "order": 0,
                "data": json.dumps({"decimals": 8}),
            },
        ],
        "curators-listing.json": [curator()],
        "vaults-listing.json": [vault()],
        "vaults-v2-listing.json": [vault(VAULT_B, description="V2 vault")],
        "custom-warnings.json": [vault_warning(), market_warning()],
        "points.json": points,
    }
    for name, content in documents.items():
        (tmp_path / name).write_text(json.dumps(content, indent=2), encoding="utf-8")
    return tmp_path
