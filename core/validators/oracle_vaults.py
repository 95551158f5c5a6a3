"""
oracle-vaults.json validator
"""
from config.registries import EIGHT_CHAINS
from core.validators.base import (
    Check,
    RegistryValidator,
    address_chain_key,
    check_chain_ids,
    check_checksums,
    find_duplicates,
    is_array,
    is_non_empty_string,
    is_number,
)
from core.violations import Violation


class OracleVaultsValidator(RegistryValidator):
    registry = "oracle-vaults"

    def checks(self) -> dict[str, Check]:
        return {
            "addresses are checksummed": lambda r: check_checksums("addresses are checksummed", r, ["address"]),
            "addresses are unique per chain": self.check_unique,
            "chain ids are valid": lambda r: check_chain_ids("chain ids are valid", r, ["chainId"], EIGHT_CHAINS),
            "vendor is a non-empty string": self.check_vendor,
            "pair is two non-empty strings": self.check_pair,
            "diffDecimals is a number": self.check_diff_decimals,
        }

    def check_unique(self, records: list) -> list[Violation]:
        return find_duplicates(
            "addresses are unique per chain",
            records,
            key=address_chain_key(),
            identifier=lambda r: r.get("address"),
            what="address-chainId combination",
        )

    def check_vendor(self, records: list) -> list[Violation]:
        return [
            Violation(
                "vendor is a non-empty string", "invalid vendor", index=index,
                identifier=vault.get("address") if isinstance(vault, dict) else None,
                actual=vault.get("vendor") if isinstance(vault, dict) else vault,
            )
            for index, vault in enumerate(records)
            if not isinstance(vault, dict) or not is_non_empty_string(vault.get("vendor"))
        ]

    def check_pair(self, records: list) -> list[Violation]:
        check = "pair is two non-empty strings"
        violations = []
        for index, vault in enumerate(records):
            if not isinstance(vault, dict):
                continue
            pair = vault.get("pair")
            address = vault.get("address")
            if not is_array(pair):
                violations.append(Violation(check, "pair is not an array", index=index, identifier=address, actual=pair))
                continue
            if len(pair) != 2:
                violations.append(Violation(
                    check, "pair must have 2 elements", index=index, identifier=address,
                    expected=2, actual=len(pair),
                ))
                continue
            for position, token in enumerate(pair):
                if not is_non_empty_string(token):
                    violations.append(Violation(
                        check, f"invalid pair token at position {position}", index=index,
                        identifier=address, actual=token,
                    ))
        return violations

    def check_diff_decimals(self, records: list) -> list[Violation]:
        return [
            Violation(
                "diffDecimals is a number", "diffDecimals must be a number", index=index,
                identifier=vault.get("address"), expected="number", actual=vault["diffDecimals"],
            )
            for index, vault in enumerate(records)
            if isinstance(vault, dict) and "diffDecimals" in vault and not is_number(vault["diffDecimals"])
        ]
