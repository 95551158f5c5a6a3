"""
price-feeds.json validator
"""
from typing import Any

from config.registries import get_registry
from config.settings import ORACLE_VENDORS
from core.validators.base import (
    Check,
    RegistryValidator,
    address_chain_key,
    checksum_violation,
    find_duplicates,
    is_array,
    is_chain_in,
    is_non_empty_string,
    is_number,
    is_object,
)
from core.violations import Violation
from utils.address import is_placeholder

PRICE_FEED_CHAIN_IDS = get_registry("price-feeds").allowed_chain_ids

TOKEN_SIDES = ("tokenIn", "tokenOut")


def feed_tokens(feed: Any) -> list[tuple[str, dict]]:
    """(side, token) pairs present on a feed"""
    if not isinstance(feed, dict):
        return []
    return [(side, feed[side]) for side in TOKEN_SIDES if is_object(feed.get(side))]


class PriceFeedsValidator(RegistryValidator):
    registry = "price-feeds"

    def checks(self) -> dict[str, Check]:
        return {
            "addresses are checksummed": self.check_checksums,
            "chain ids are valid": self.check_chain_ids,
            "vendor is known": self.check_vendor,
            "string fields have correct types": self.check_string_fields,
            "tokenIn and tokenOut have consistent chain ids": self.check_token_chains,
            "addresses are unique per chain": self.check_unique,
        }

    def check_checksums(self, records: list) -> list[Violation]:
        check = "addresses are checksummed"
        violations = []
        for index, feed in enumerate(records):
            if not isinstance(feed, dict):
                continue
            violation = checksum_violation(check, feed.get("address"), index=index, chain_id=feed.get("chainId"))
            if violation:
                violations.append(violation)

            for side, token in feed_tokens(feed):
                address = token.get("address")
                # The native asset placeholder is accepted as written
                if is_placeholder(address):
                    continue
                violation = checksum_violation(
                    check, address, index=index, field=f"{side}.address",
                    chain_id=token.get("chainId"),
                )
                if violation:
                    violations.append(violation)
        return violations

    def check_chain_ids(self, records: list) -> list[Violation]:
        check = "chain ids are valid"
        allowed = sorted(PRICE_FEED_CHAIN_IDS)
        violations = []
        for index, feed in enumerate(records):
            if not isinstance(feed, dict):
                continue
            if not is_chain_in(feed.get("chainId"), PRICE_FEED_CHAIN_IDS):
                violations.append(Violation(
                    check, "invalid chainId", index=index, identifier=feed.get("address"),
                    expected=allowed, actual=feed.get("chainId"),
                ))
            for side, token in feed_tokens(feed):
                if not is_chain_in(token.get("chainId"), PRICE_FEED_CHAIN_IDS):
                    violations.append(Violation(
                        check, f"invalid {side} chainId", index=index, identifier=feed.get("address"),
                        expected=allowed, actual=token.get("chainId"),
                    ))
        return violations

    def check_vendor(self, records: list) -> list[Violation]:
        violations = []
        for index, feed in enumerate(records):
            vendor = feed.get("vendor") if isinstance(feed, dict) else None
            if not is_non_empty_string(vendor) or vendor not in ORACLE_VENDORS:
                violations.append(Violation(
                    "vendor is known", "invalid vendor", index=index,
                    identifier=feed.get("address") if isinstance(feed, dict) else None,
                    expected=sorted(ORACLE_VENDORS), actual=vendor,
                ))
        return violations

    def check_string_fields(self, records: list) -> list[Violation]:
        check = "string fields have correct types"
        violations = []
        for index, feed in enumerate(records):
            if not isinstance(feed, dict):
                violations.append(Violation(check, "record must be an object", index=index))
                continue
            address = feed.get("address")

            if not is_non_empty_string(feed.get("description")):
                violations.append(Violation(
                    check, "invalid description", index=index, identifier=address,
                    actual=feed.get("description"),
                ))

            pair = feed.get("pair")
            if pair is not None:
                if not is_array(pair) or not pair:
                    violations.append(Violation(
                        check, "invalid pair", index=index, identifier=address, actual=pair,
                    ))
                elif not all(is_non_empty_string(item) for item in pair):
                    violations.append(Violation(
                        check, "invalid pair elements", index=index, identifier=address, actual=pair,
                    ))

            if "decimals" in feed and not is_number(feed["decimals"]):
                violations.append(Violation(
                    check, "decimals must be a number", index=index, identifier=address,
                    expected="number", actual=feed["decimals"],
                ))
        return violations

    def check_token_chains(self, records: list) -> list[Violation]:
        violations = []
        for index, feed in enumerate(records):
            for side, token in feed_tokens(feed):
                if token.get("chainId") != feed.get("chainId"):
                    violations.append(Violation(
                        "tokenIn and tokenOut have consistent chain ids",
                        f"{side} chainId differs from feed chainId",
                        index=index, identifier=feed.get("address"),
                        expected=feed.get("chainId"), actual=token.get("chainId"),
                    ))
        return violations

    def check_unique(self, records: list) -> list[Violation]:
        return find_duplicates(
            "addresses are unique per chain",
            records,
            key=address_chain_key(),
            identifier=lambda r: r.get("address"),
            what="feed",
        )
