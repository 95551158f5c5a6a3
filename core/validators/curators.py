"""
curators-listing.json validator
"""
import re
from typing import Iterator

from config.chains import VALID_CHAIN_ID_STRINGS
from config.settings import CURATOR_IMAGE_CDN_PREFIX, CURATOR_SOCIAL_KEYS
from core.validators.base import (
    Check,
    RegistryValidator,
    checksum_violation,
    is_array,
    is_non_empty_string,
    is_object,
    is_string,
)
from core.violations import Violation

CURATOR_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")


def curator_addresses(curator: dict) -> Iterator[tuple[str, int, object]]:
    """(chain id string, position, address) for every listed address"""
    addresses = curator.get("addresses")
    if not is_object(addresses):
        return
    for chain_id, values in addresses.items():
        if not is_array(values):
            continue
        for position, address in enumerate(values):
            yield chain_id, position, address


class CuratorsValidator(RegistryValidator):
    registry = "curators"

    def checks(self) -> dict[str, Check]:
        return {
            "ids are well formed and unique": self.check_ids,
            "names are unique": self.check_names,
            "verified field is true": self.check_verified,
            "chain ids are valid": self.check_chain_ids,
            "addresses are checksummed": self.check_checksums,
            "socials are recognized": self.check_socials,
            "image URLs are valid": self.check_images,
        }

    def check_ids(self, records: list) -> list[Violation]:
        check = "ids are well formed and unique"
        seen: dict[str, int] = {}
        violations = []
        for index, curator in enumerate(records):
            curator_id = curator.get("id") if isinstance(curator, dict) else None
            if not is_string(curator_id) or not CURATOR_ID_PATTERN.match(curator_id):
                violations.append(Violation(
                    check, "invalid id", index=index, identifier=_name(curator),
                    expected="[a-z0-9-]+", actual=curator_id,
                ))
                continue
            if curator_id in seen:
                violations.append(Violation(
                    check, f"duplicate id, first seen at index {seen[curator_id]}", index=index,
                    identifier=curator_id, expected="unique", actual=[seen[curator_id], index],
                ))
            else:
                seen[curator_id] = index
        return violations

    def check_names(self, records: list) -> list[Violation]:
        check = "names are unique"
        seen: dict[str, int] = {}
        violations = []
        for index, curator in enumerate(records):
            name = _name(curator)
            if not is_non_empty_string(name):
                violations.append(Violation(check, "name must be a non-empty string", index=index, actual=name))
                continue
            if name in seen:
                violations.append(Violation(
                    check, f"duplicate name, first seen at index {seen[name]}", index=index,
                    identifier=name, expected="unique", actual=[seen[name], index],
                ))
            else:
                seen[name] = index
        return violations

    def check_verified(self, records: list) -> list[Violation]:
        return [
            Violation(
                "verified field is true", "curator must have verified: true", index=index,
                identifier=_name(curator), expected=True,
                actual=curator.get("verified") if isinstance(curator, dict) else None,
            )
            for index, curator in enumerate(records)
            if not isinstance(curator, dict) or curator.get("verified") is not True
        ]

    def check_chain_ids(self, records: list) -> list[Violation]:
        check = "chain ids are valid"
        violations = []
        for index, curator in enumerate(records):
            if not isinstance(curator, dict):
                continue
            addresses = curator.get("addresses")
            if not is_object(addresses):
                violations.append(Violation(
                    check, "addresses must be an object", index=index, identifier=_name(curator),
                    expected="object", actual=addresses,
                ))
                continue
            for chain_id, values in addresses.items():
                if chain_id not in VALID_CHAIN_ID_STRINGS:
                    violations.append(Violation(
                        check, "invalid chain id", index=index, identifier=_name(curator),
                        expected=sorted(VALID_CHAIN_ID_STRINGS, key=int), actual=chain_id,
                    ))
                if not is_array(values):
                    violations.append(Violation(
                        check, "addresses per chain must be an array", index=index,
                        identifier=_name(curator), chain_id=chain_id, expected="array", actual=values,
                    ))
        return violations

    def check_checksums(self, records: list) -> list[Violation]:
        violations = []
        for index, curator in enumerate(records):
            if not isinstance(curator, dict):
                continue
            for chain_id, _, address in curator_addresses(curator):
                violation = checksum_violation(
                    "addresses are checksummed", address, index=index, chain_id=chain_id,
                    identifier=f"{_name(curator)} {address}",
                )
                if violation:
                    violations.append(violation)
        return violations

    def check_socials(self, records: list) -> list[Violation]:
        check = "socials are recognized"
        violations = []
        for index, curator in enumerate(records):
            if not isinstance(curator, dict):
                continue
            socials = curator.get("socials")
            if not is_object(socials):
                violations.append(Violation(
                    check, "socials must be an object", index=index, identifier=_name(curator),
                    expected="object", actual=socials,
                ))
                continue
            for key, value in socials.items():
                if key not in CURATOR_SOCIAL_KEYS:
                    violations.append(Violation(
                        check, "unknown social key", index=index, identifier=_name(curator),
                        expected=sorted(CURATOR_SOCIAL_KEYS), actual=key,
                    ))
                elif not is_non_empty_string(value):
                    violations.append(Violation(
                        check, f"socials.{key} must be a non-empty string", index=index,
                        identifier=_name(curator), actual=value,
                    ))
        return violations

    def check_images(self, records: list) -> list[Violation]:
        violations = []
        for index, curator in enumerate(records):
            if not isinstance(curator, dict) or "image" not in curator:
                continue
            image = curator["image"]
            if not is_string(image) or not image.startswith(CURATOR_IMAGE_CDN_PREFIX):
                violations.append(Violation(
                    "image URLs are valid", "image must be hosted on the CDN", index=index,
                    identifier=_name(curator), expected=f"{CURATOR_IMAGE_CDN_PREFIX}...", actual=image,
                ))
        return violations


def _name(curator) -> object:
    return curator.get("name") if isinstance(curator, dict) else None
