import json

import pytest

from core.payloads import PayloadError, decode_payload, parse_call_payload
from core.validators.exchange_rates import ExchangeRatesValidator, exchange_rate_problems
from core.validators.oracle_prices import OraclePricesValidator
from core.validators.spot_prices import SpotPricesValidator

from factories import FEED_A, FEED_B, USDC, VAULT_A, WETH, messages


def call_data(decimals=6, value="1000000", function="convertToAssets", abi=None, arg_type="bigint"):
    return json.dumps({
        "abi": abi or f"function {function}(uint256) view returns (uint256)",
        "function": function,
        "decimals": decimals,
        "args": [{"type": arg_type, "value": value}],
    })


def rate(asset=USDC, contract=VAULT_A, data=None, asset_chain=1, contract_chain=1):
    return {
        "assetAddress": asset, "assetChainId": asset_chain,
        "contractAddress": contract, "contractChainId": contract_chain,
        "data": data if data is not None else call_data(),
    }


def price(asset=WETH, contract=FEED_A, order=0, price_type="uniswap_v3_twap", data=None, chain_id=1):
    return {
        "assetAddress": asset, "assetChainId": chain_id,
        "contractAddress": contract, "contractChainId": chain_id,
        "type": price_type, "order": order,
        "data": data if data is not None else json.dumps({"first_block_number": 100}),
    }


# ==================== PAYLOADS ====================

def test_decode_payload_errors():
    with pytest.raises(PayloadError):
        decode_payload({"decimals": 6})
    with pytest.raises(PayloadError):
        decode_payload("{not json")
    with pytest.raises(PayloadError):
        decode_payload("[1, 2]")


def test_expected_unit():
    assert parse_call_payload(call_data(decimals=0)).expected_unit == "1"
    assert parse_call_payload(call_data(decimals=18)).expected_unit == "1" + "0" * 18
    assert parse_call_payload(call_data(decimals="6")).expected_unit is None


# ==================== EXCHANGE RATES ====================

def test_exchange_rate_arg_must_be_one_unit():
    data = (
        '{"decimals":6,"args":[{"type":"bigint","value":"100000"}],'
        '"abi":"function x(uint256) view returns (uint256)","function":"x"}'
    )
    problems = exchange_rate_problems(parse_call_payload(data))
    assert problems == [("invalid arg value", "1000000", "100000")]


def test_valid_exchange_rate_passes():
    assert all(r.ok for r in ExchangeRatesValidator().validate([rate()]))


def test_exchange_rate_problems_are_reported():
    records = [rate(data=call_data(
        decimals=19, value="1", arg_type="uint256", abi="function convertToAssets(uint256) returns (uint256)",
    ))]
    violations = ExchangeRatesValidator().check_data(records)
    assert messages(violations) == [
        "invalid decimals value",
        "invalid arg type",
        "invalid arg value",
        "invalid ABI string",
    ]


def test_exchange_rate_needs_exactly_one_arg():
    data = json.dumps({
        "abi": "function f(uint256) view returns (uint256)", "function": "f", "decimals": 6, "args": [],
    })
    assert messages(ExchangeRatesValidator().check_data([rate(data=data)])) == ["args must hold exactly one entry"]


def test_exchange_rate_unparseable_data():
    violations = ExchangeRatesValidator().check_data([rate(data="nope")])
    assert violations[0].message.startswith("failed to parse data")


def test_exchange_rate_uniqueness_uses_both_chains():
    validator = ExchangeRatesValidator()
    assert validator.check_unique([rate(), rate(contract_chain=8453)]) == []
    assert len(validator.check_unique([rate(), rate(asset=USDC.lower())])) == 1


# ==================== SPOT PRICES ====================

def test_valid_spot_prices_pass():
    records = [price(), price(contract=FEED_B, order=1, price_type="aerodrome")]
    assert all(r.ok for r in SpotPricesValidator().validate(records))


def test_order_sequence_gap():
    records = [price(order=0), price(contract=FEED_B, order=2)]
    violations = SpotPricesValidator().validate(records)
    order = next(r for r in violations if r.check == "pricing chains are valid")
    assert [(v.expected, v.actual) for v in order.violations] == [(1, 2)]


def test_order_sequence_repeat():
    records = [price(order=0), price(contract=FEED_B, order=0)]
    order = next(r for r in SpotPricesValidator().validate(records) if r.check == "pricing chains are valid")
    assert "duplicate orders" in messages(order.violations)


def test_spot_payload_rules():
    records = [
        price(data=json.dumps({"first_block_number": 0})),
        price(contract=FEED_B, order=1, data=json.dumps({"first_block_number": 5, "in_token": "0"})),
    ]
    assert messages(SpotPricesValidator().check_data(records)) == [
        "invalid first_block_number",
        "in_token must be a number",
    ]


def test_unknown_spot_type():
    results = SpotPricesValidator().validate([price(price_type="chainlink_aggregator")])
    types = next(r for r in results if r.check == "type field is valid")
    assert not types.ok


# ==================== ORACLE PRICES ====================

def test_oracle_price_decimals():
    validator = OraclePricesValidator()
    records = [
        price(price_type="chainlink_aggregator", data=json.dumps({"decimals": 8})),
        price(contract=FEED_B, order=1, price_type="chainlink_aggregator", data=json.dumps({})),
        price(asset=USDC, price_type="chainlink_aggregator", data=json.dumps({"decimals": 30})),
    ]
    assert messages(validator.check_decimals(records)) == ["missing or invalid decimals", "invalid decimals value"]


def test_oracle_price_chain_subset():
    results = OraclePricesValidator().validate([
        price(price_type="chainlink_aggregator", data=json.dumps({"decimals": 8}), chain_id=10),
    ])
    chains = next(r for r in results if r.check == "chain ids are valid")
    assert len(chains.violations) == 2


def test_exchange_rate_oracle_fields():
    validator = OraclePricesValidator()
    missing_args = json.dumps({
        "decimals": 18, "abi": "function convertToAssets(uint256) view returns (uint256)",
        "function": "convertToAssets",
    })
    no_function = json.dumps({"decimals": 18, "abi": "function x()"})
    other_function = json.dumps({"decimals": 18, "abi": "function rate()", "function": "getRate"})

    records = [
        price(price_type="exchange_rate", data=missing_args),
        price(contract=FEED_B, order=1, price_type="exchange_rate", data=no_function),
        price(asset=USDC, price_type="exchange_rate", data=other_function),
    ]
    assert messages(validator.check_exchange_rate_fields(records)) == [
        "missing or invalid args for convertToAssets",
        "missing function field",
    ]


def test_exchange_rate_oracle_arg_value():
    data = json.dumps({
        "decimals": 6, "abi": "function convertToAssets(uint256) view returns (uint256)",
        "function": "convertToAssets", "args": [{"type": "bigint", "value": "100000"}],
    })
    violations = OraclePricesValidator().check_exchange_rate_fields([price(price_type="exchange_rate", data=data)])
    assert [(v.expected, v.actual) for v in violations] == [("1000000", "100000")]


def test_unhashable_type_and_chain_are_violations():
    records = [price(price_type=["uniswap_v3_twap"]), price(contract=FEED_B, order=1, chain_id=[1])]
    results = {r.check: r for r in SpotPricesValidator().validate(records)}

    assert [v.index for v in results["type field is valid"].violations] == [0]
    assert {v.index for v in results["chain ids are valid"].violations} == {1}
    assert results["pricing chains are valid"].ok


def test_exchange_rates_with_unhashable_chain_are_not_keyed():
    records = [rate(asset_chain=[1]), rate(asset_chain=[1])]
    validator = ExchangeRatesValidator()

    assert validator.check_unique(records) == []
    assert any(r.check == "chain ids are valid" and not r.ok for r in validator.validate(records))
