import json

from core.consistency import ConsistencyChecker, RegistrySnapshot, build_lookup, chain_key, normalize_chain
from core.loader import load_registries
from core.violations import Category

from factories import (
    CURATOR_A,
    DAI,
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
    messages,
    point,
    token,
    vault,
    vault_warning,
)

checker = ConsistencyChecker()


def test_normalize_chain():
    assert normalize_chain("8453") == 8453
    assert normalize_chain(1) == 1
    assert normalize_chain("base") == "base"


def test_lookup_is_case_insensitive():
    lookup = build_lookup([token(USDC)])
    assert (1, USDC.lower()) in lookup


def test_consistent_registries_pass(data_dir):
    snapshot = RegistrySnapshot.from_registries(load_registries(
        ["tokens", "price-feeds", "vaults", "vaults-v2", "points", "custom-warnings", "curators"], data_dir,
    ))
    results = checker.run(snapshot)

    assert len(results) == 7
    assert all(r.ok and r.skipped is None for r in results)
    assert all(r.category is Category.REFERENTIAL for r in results)


def test_checks_without_inputs_are_skipped():
    results = checker.run(RegistrySnapshot(curators=[curator()]))
    skipped = [r for r in results if r.skipped]
    assert len(skipped) == 6
    assert skipped[0].skipped == "requires price_feeds, tokens"


def test_feed_token_not_listed():
    snapshot = RegistrySnapshot(tokens=[token(USDC)], price_feeds=[feed(token_in=DAI)])
    violations = checker.check_feed_tokens(snapshot)
    assert [(v.message, v.identifier) for v in violations] == [("tokenIn is not in tokens.json", DAI)]


def test_feed_token_lookup_ignores_case_and_placeholder():
    snapshot = RegistrySnapshot(
        tokens=[token(WETH.lower())],
        price_feeds=[feed(token_in=WETH, token_out="0x" + "e" * 40)],
    )
    assert checker.check_feed_tokens(snapshot) == []


def test_feed_token_must_be_on_same_chain():
    snapshot = RegistrySnapshot(tokens=[token(WETH, chain_id=8453), token(USDC)], price_feeds=[feed()])
    assert len(checker.check_feed_tokens(snapshot)) == 1


def test_points_vault_must_be_listed_in_either_listing():
    points = empty_points()
    points["vaultsWithPoints"] = {"1": {VAULT_A: [point()], VAULT_B: [point()]}, "8453": {VAULT_A: [point()]}}
    snapshot = RegistrySnapshot(points=points, vaults=[vault(VAULT_A)], vaults_v2=[vault(VAULT_B)])

    violations = checker.check_points_vaults(snapshot)
    assert [(v.identifier, v.chain_id) for v in violations] == [(VAULT_A, "8453")]


def test_points_collateral_tokens():
    points = empty_points()
    points["marketsWithPointsOnCollateralToken"] = {"1": {WETH: [point()]}}
    points["vaultsWithPointsOnMarketCollateralToken"] = {"1": {DAI: [point()]}}
    snapshot = RegistrySnapshot(points=points, tokens=[token(WETH)])
    assert [v.identifier for v in checker.check_points_tokens(snapshot)] == [DAI]


def test_points_market_ids():
    points = empty_points()
    points["marketsWithPoints"] = {"1": {MARKET_A: [point()], "0x12": [point()]}}
    assert [v.identifier for v in checker.check_points_market_ids(RegistrySnapshot(points=points))] == ["0x12"]


def test_warning_vault_must_be_listed():
    snapshot = RegistrySnapshot(warnings=[vault_warning(VAULT_A), vault_warning(VAULT_B)], vaults=[vault(VAULT_A)])
    assert [v.index for v in checker.check_warning_vaults(snapshot)] == [1]


def test_curator_address_shared_between_curators():
    snapshot = RegistrySnapshot(curators=[
        curator("a", "A", {"1": [CURATOR_A]}),
        curator("b", "B", {"8453": [CURATOR_A], "1": [CURATOR_A]}),
    ])
    violations = checker.check_curator_addresses(snapshot)
    assert len(violations) == 1
    assert violations[0].actual == [0, 1]
    assert "'A'" in violations[0].message


def test_alternative_oracles_must_be_known_feeds():
    tokens = [
        token(USDC, metadata={"alternativeOracles": [FEED_A, FEED_B, "pyth:ETH/USD"]}),
        # not a price feed chain
        token(WETH, chain_id=10, metadata={"alternativeOracles": [FEED_B]}),
    ]
    snapshot = RegistrySnapshot(tokens=tokens, price_feeds=[feed(FEED_A)])
    violations = checker.check_alternative_oracles(snapshot)
    assert [v.actual for v in violations] == [FEED_B]


def test_reference_sets_use_unfiltered_tokens(data_dir):
    tokens = json.loads((data_dir / "tokens.json").read_text())
    tokens.append(token(WETH, chain_id=10))
    (data_dir / "tokens.json").write_text(json.dumps(tokens))
    points = empty_points()
    points["marketsWithPointsOnCollateralToken"] = {"10": {WETH: [point()]}}
    (data_dir / "points.json").write_text(json.dumps(points))

    loaded = load_registries(["tokens", "points"], data_dir)
    assert len(loaded["tokens"].records) == 2

    snapshot = RegistrySnapshot.from_registries(loaded)
    assert checker.check_points_tokens(snapshot) == []


def test_chain_keys_need_numeric_chains():
    assert chain_key("1", USDC) == (1, USDC.lower())
    assert chain_key([1], USDC) is None
    assert chain_key(True, USDC) is None
    assert build_lookup([token(chain_id=[1]), token(WETH, chain_id={"id": 1})]) == set()


def test_unhashable_chain_ids_fail_lookups():
    snapshot = RegistrySnapshot(
        tokens=[token(USDC), token(WETH, chain_id=[1], metadata={"alternativeOracles": [FEED_A]})],
        price_feeds=[feed(token_in=USDC, token_out=USDC, tokenIn={"address": USDC, "chainId": [1]})],
        warnings=[vault_warning(chain_id=[1])],
        vaults=[vault()],
    )

    assert messages(checker.check_feed_tokens(snapshot)) == ["tokenIn is not in tokens.json"]
    assert checker.check_alternative_oracles(snapshot) == []
    assert len(checker.check_warning_vaults(snapshot)) == 1
