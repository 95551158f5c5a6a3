"""
vaults-listing.json and vaults-v2-listing.json validators
"""
from config.chains import VALID_CHAIN_IDS
from core.validators.base import (
    Check,
    RegistryValidator,
    address_chain_key,
    check_chain_ids,
    check_checksums,
    check_required_fields,
    find_duplicates,
    is_array,
    is_number,
    is_object,
    is_string,
)
from core.violations import Violation


class VaultsValidator(RegistryValidator):
    """Listed vaults, v1 and v2 share the same schema"""

    registry = "vaults"

    def checks(self) -> dict[str, Check]:
        return {
            "addresses are checksummed": lambda r: check_checksums("addresses are checksummed", r, ["address"]),
            "addresses are unique per chain": self.check_unique,
            "required fields have correct types": lambda r: check_required_fields(
                "required fields have correct types",
                r,
                fields={"address": "string", "chainId": "number", "description": "string"},
                optional={"image": "string", "history": "array"},
            ),
            "chain ids are valid": lambda r: check_chain_ids("chain ids are valid", r, ["chainId"], VALID_CHAIN_IDS),
            "history entries are well formed": self.check_history,
        }

    def check_unique(self, records: list) -> list[Violation]:
        return find_duplicates(
            "addresses are unique per chain",
            records,
            key=address_chain_key(),
            identifier=lambda r: r.get("address"),
            what="address-chainId combination",
        )

    def check_history(self, records: list) -> list[Violation]:
        check = "history entries are well formed"
        violations = []
        for index, vault in enumerate(records):
            history = vault.get("history") if isinstance(vault, dict) else None
            if not is_array(history):
                continue
            for position, entry in enumerate(history):
                if not is_object(entry) or not is_string(entry.get("action")) or not is_number(entry.get("timestamp")):
                    violations.append(Violation(
                        check, f"history[{position}] must have a string action and a numeric timestamp",
                        index=index, identifier=vault.get("address"), chain_id=vault.get("chainId"),
                        actual=entry,
                    ))
        return violations


class VaultsV2Validator(VaultsValidator):
    registry = "vaults-v2"
