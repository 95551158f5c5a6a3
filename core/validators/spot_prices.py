"""
spot-prices.json validator
"""
from config.chains import VALID_CHAIN_IDS
from config.settings import SPOT_PRICE_TYPES
from core.payloads import PayloadError, parse_spot_payload
from core.validators.base import (
    Check,
    RegistryValidator,
    check_chain_ids,
    check_checksums,
    check_order_sequence,
    is_number,
)
from core.violations import Violation

ADDRESS_FIELDS = ("assetAddress", "contractAddress")
CHAIN_FIELDS = ("assetChainId", "contractChainId")


def check_price_types(check: str, records: list, allowed: frozenset[str]) -> list[Violation]:
    """Shared by spot and oracle prices"""
    return [
        Violation(
            check, "invalid type", index=index,
            identifier=price.get("assetAddress") if isinstance(price, dict) else None,
            expected=sorted(allowed),
            actual=price.get("type") if isinstance(price, dict) else None,
        )
        for index, price in enumerate(records)
        if not isinstance(price, dict) or not isinstance(price.get("type"), str) or price["type"] not in allowed
    ]


class SpotPricesValidator(RegistryValidator):
    registry = "spot-prices"

    def checks(self) -> dict[str, Check]:
        return {
            "addresses are checksummed": lambda r: check_checksums(
                "addresses are checksummed", r, ADDRESS_FIELDS, chain_field="assetChainId"
            ),
            "chain ids are valid": lambda r: check_chain_ids(
                "chain ids are valid", r, CHAIN_FIELDS, VALID_CHAIN_IDS, identifier_field="assetAddress"
            ),
            "data field has valid structure": self.check_data,
            "pricing chains are valid": lambda r: check_order_sequence("pricing chains are valid", r),
            "type field is valid": lambda r: check_price_types("type field is valid", r, SPOT_PRICE_TYPES),
        }

    def check_data(self, records: list) -> list[Violation]:
        check = "data field has valid structure"
        violations = []
        for index, price in enumerate(records):
            if not isinstance(price, dict):
                continue
            asset = price.get("assetAddress")
            try:
                payload = parse_spot_payload(price.get("data"))
            except PayloadError as e:
                violations.append(Violation(check, f"failed to parse data: {e}", index=index, identifier=asset))
                continue

            if payload.has_in_token and not is_number(payload.in_token):
                violations.append(Violation(
                    check, "in_token must be a number", index=index, identifier=asset,
                    expected="number", actual=payload.in_token,
                ))
            block = payload.first_block_number
            if not is_number(block) or block <= 0:
                violations.append(Violation(
                    check, "invalid first_block_number", index=index, identifier=asset,
                    expected="> 0", actual=block,
                ))
        return violations
