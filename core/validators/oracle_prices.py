"""
oracle-prices.json validator
"""
from config.registries import get_registry
from config.settings import ORACLE_PRICE_TYPES
from core.payloads import PayloadError, parse_oracle_payload
from core.validators.base import (
    Check,
    RegistryValidator,
    check_chain_ids,
    check_checksums,
    check_order_sequence,
    is_array,
    is_number,
)
from core.validators.spot_prices import ADDRESS_FIELDS, CHAIN_FIELDS, check_price_types
from core.violations import Violation

ORACLE_PRICE_CHAIN_IDS = get_registry("oracle-prices").allowed_chain_ids


class OraclePricesValidator(RegistryValidator):
    registry = "oracle-prices"

    def checks(self) -> dict[str, Check]:
        return {
            "addresses are checksummed": lambda r: check_checksums(
                "addresses are checksummed", r, ADDRESS_FIELDS, chain_field="assetChainId"
            ),
            "chain ids are valid": lambda r: check_chain_ids(
                "chain ids are valid", r, CHAIN_FIELDS, ORACLE_PRICE_CHAIN_IDS, identifier_field="assetAddress"
            ),
            "data field contains valid decimals": self.check_decimals,
            "pricing chains are valid": lambda r: check_order_sequence("pricing chains are valid", r),
            "type field is valid": lambda r: check_price_types("type field is valid", r, ORACLE_PRICE_TYPES),
            "exchange_rate type has required fields": self.check_exchange_rate_fields,
        }

    def check_decimals(self, records: list) -> list[Violation]:
        check = "data field contains valid decimals"
        violations = []
        for index, price in enumerate(records):
            if not isinstance(price, dict):
                continue
            asset = price.get("assetAddress")
            try:
                payload = parse_oracle_payload(price.get("data"))
            except PayloadError as e:
                violations.append(Violation(check, f"failed to parse data: {e}", index=index, identifier=asset))
                continue

            if not is_number(payload.decimals):
                violations.append(Violation(
                    check, "missing or invalid decimals", index=index, identifier=asset,
                    expected="number", actual=payload.decimals,
                ))
            elif not 0 <= payload.decimals <= 18:
                violations.append(Violation(
                    check, "invalid decimals value", index=index, identifier=asset,
                    expected="0..18", actual=payload.decimals,
                ))
        return violations

    def check_exchange_rate_fields(self, records: list) -> list[Violation]:
        check = "exchange_rate type has required fields"
        violations = []
        for index, price in enumerate(records):
            if not isinstance(price, dict) or price.get("type") != "exchange_rate":
                continue
            asset = price.get("assetAddress")
            try:
                call = parse_oracle_payload(price.get("data"), "exchange_rate").call
            except PayloadError as e:
                violations.append(Violation(check, f"failed to parse data: {e}", index=index, identifier=asset))
                continue

            if not call.abi:
                violations.append(Violation(check, "missing abi field", index=index, identifier=asset))
            if not call.function:
                violations.append(Violation(check, "missing function field", index=index, identifier=asset))
            # args are only required for convertToAssets
            if call.function == "convertToAssets" and not is_array(call.args):
                violations.append(Violation(
                    check, "missing or invalid args for convertToAssets", index=index,
                    identifier=asset, expected="array", actual=call.args,
                ))
            # A single argument is one unit of the token
            if is_array(call.args) and len(call.args) == 1 and call.expected_unit is not None:
                value = call.args[0].value
                if value != call.expected_unit:
                    violations.append(Violation(
                        check, "invalid arg value", index=index, identifier=asset,
                        expected=call.expected_unit, actual=value,
                    ))
        return violations
