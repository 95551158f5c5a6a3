"""
exchange-rates.json validator
"""
from config.chains import VALID_CHAIN_IDS
from core.payloads import CallPayload, PayloadError, parse_call_payload
from core.validators.base import (
    Check,
    RegistryValidator,
    check_chain_ids,
    check_checksums,
    find_duplicates,
    is_array,
    is_number,
)
from core.violations import Violation
from utils.address import address_key

ADDRESS_FIELDS = ("assetAddress", "contractAddress")
CHAIN_FIELDS = ("assetChainId", "contractChainId")


def exchange_rate_problems(payload: CallPayload) -> list[tuple[str, object, object]]:
    """
    (message, expected, actual) for every rule an exchange rate call breaks.
    The single bigint arg must be one unit of the token, "1" + "0" * decimals.
    """
    problems = []
    decimals = payload.decimals
    if not is_number(decimals) or not 0 <= decimals <= 18:
        problems.append(("invalid decimals value", "0..18", decimals))

    if not is_array(payload.args) or len(payload.args) != 1:
        problems.append(("args must hold exactly one entry", 1, payload.args))
    else:
        arg = payload.args[0]
        if arg.type != "bigint":
            problems.append(("invalid arg type", "bigint", arg.type))
        expected = payload.expected_unit
        if expected is None or arg.value != expected:
            problems.append(("invalid arg value", expected, arg.value))

    if payload.abi != payload.expected_abi:
        problems.append(("invalid ABI string", payload.expected_abi, payload.abi))
    return problems


class ExchangeRatesValidator(RegistryValidator):
    registry = "exchange-rates"

    def checks(self) -> dict[str, Check]:
        return {
            "addresses are checksummed": lambda r: check_checksums(
                "addresses are checksummed", r, ADDRESS_FIELDS, chain_field="assetChainId"
            ),
            "chain ids are valid": lambda r: check_chain_ids(
                "chain ids are valid", r, CHAIN_FIELDS, VALID_CHAIN_IDS, identifier_field="assetAddress"
            ),
            "data field has valid structure and values": self.check_data,
            "addresses are unique per chain combination": self.check_unique,
        }

    def check_data(self, records: list) -> list[Violation]:
        check = "data field has valid structure and values"
        violations = []
        for index, rate in enumerate(records):
            if not isinstance(rate, dict):
                continue
            asset = rate.get("assetAddress")
            try:
                payload = parse_call_payload(rate.get("data"))
            except PayloadError as e:
                violations.append(Violation(check, f"failed to parse data: {e}", index=index, identifier=asset))
                continue

            for message, expected, actual in exchange_rate_problems(payload):
                violations.append(Violation(
                    check, message, index=index, identifier=asset,
                    chain_id=rate.get("assetChainId"), expected=expected, actual=actual,
                ))
        return violations

    def check_unique(self, records: list) -> list[Violation]:
        def key(rate: dict):
            if not all(isinstance(rate.get(f), str) for f in ADDRESS_FIELDS):
                return None
            if not (is_number(rate.get("assetChainId")) and is_number(rate.get("contractChainId"))):
                return None
            return (
                rate.get("assetChainId"),
                rate.get("contractChainId"),
                address_key(rate["assetAddress"]),
                address_key(rate["contractAddress"]),
            )

        return find_duplicates(
            "addresses are unique per chain combination",
            records,
            key=key,
            identifier=lambda r: f"{r.get('assetAddress')}/{r.get('contractAddress')}",
            what="address pair-chainId combination",
            chain_field="assetChainId",
        )
