import copy

from core.transforms import (
    TRANSFORMS,
    checksum_price_feeds,
    checksum_price_sources,
    checksum_tokens,
    encode_token_logo_uris,
    filter_tokens,
    strip_vault_fields,
)

from factories import FEED_A, USDC, VAULT_A, WETH, feed, token, vault


def test_checksum_tokens_does_not_mutate_input():
    tokens = [token(USDC.lower()), token(WETH), token("0x12")]
    original = copy.deepcopy(tokens)

    result, report = checksum_tokens(tokens)

    assert tokens == original
    assert [t["address"] for t in result] == [USDC, WETH, "0x12"]
    assert [(c.index, c.before, c.after) for c in report.changes] == [(0, USDC.lower(), USDC)]
    assert report.errors == ["index 2: invalid address '0x12'"]


def test_checksum_price_feeds_keeps_placeholder():
    placeholder = "0x" + "e" * 40
    result, report = checksum_price_feeds([feed(token_in=WETH.lower(), token_out=placeholder)])

    assert result[0]["tokenIn"]["address"] == WETH
    assert result[0]["tokenOut"]["address"] == placeholder
    assert [c.field for c in report.changes] == ["tokenIn.address"]


def test_checksum_price_sources():
    prices = [{"assetAddress": WETH.lower(), "contractAddress": FEED_A, "type": "chainlink_aggregator"}]
    result, report = checksum_price_sources(prices)
    assert result[0]["assetAddress"] == WETH
    assert len(report.changes) == 1


def test_encode_logo_uris():
    tokens = [
        token(metadata={"logoURI": "https://cdn.morpho.org/assets/logos/usd+.svg"}),
        token(metadata={"logoURI": "https://cdn.morpho.org/assets/logos/usdc.svg"}),
        token(metadata={"logoURI": "https://example.com/a b.svg"}),
    ]
    result, report = encode_token_logo_uris(tokens)

    assert result[0]["metadata"]["logoURI"] == "https://cdn.morpho.org/assets/logos/usd%2B.svg"
    assert result[2]["metadata"]["logoURI"] == "https://example.com/a b.svg"
    assert [c.index for c in report.changes] == [0]


def test_filter_tokens():
    tokens = [token(), token(WETH, chain_id=56), token(WETH, metadata={}), token(WETH, chain_id=143)]
    result, report = filter_tokens(tokens)

    assert [t["chainId"] for t in result] == [1, 143]
    assert report.removed == [1, 2]
    assert report.changed


def test_strip_vault_fields():
    vaults = [vault(curators=["steakhouse"], image="x.svg"), vault(VAULT_A)]
    result, report = strip_vault_fields(vaults)

    assert "curators" not in result[0] and "image" not in result[0]
    assert "curators" in vaults[0]
    assert report.summary() == "strip_vault_fields: 2 changes"


def test_transform_registry_names():
    assert TRANSFORMS["checksum-tokens"] is checksum_tokens
    assert TRANSFORMS["checksum-oracle-prices"] is checksum_price_sources


def test_filter_tokens_drops_non_numeric_chains():
    result, report = filter_tokens([token(), token(WETH, chain_id=[1]), token(WETH, chain_id=True)])

    assert [t["address"] for t in result] == [USDC]
    assert report.removed == [1, 2]
