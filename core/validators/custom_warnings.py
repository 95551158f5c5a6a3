"""
custom-warnings.json validator

A flat array of vault warnings (keyed by vaultAddress) and market warnings
(keyed by marketId). Metadata carries either a flat `content` string or a
`parts` sequence of inline text and link elements, never both.
"""
from collections import defaultdict
from typing import Any, Optional

from config.chains import VALID_CHAIN_IDS
from config.settings import WARNING_LEVELS
from core.validators.base import (
    Check,
    RegistryValidator,
    check_chain_ids,
    checksum_violation,
    is_array,
    is_bool,
    is_non_empty_string,
    is_number,
    is_object,
    is_string,
)
from core.violations import Violation
from utils.address import address_key, is_market_id

VAULT_KEY = "vaultAddress"
MARKET_KEY = "marketId"


def warning_kind(warning: Any) -> Optional[str]:
    """'vault', 'market', or None when the entry is neither or both"""
    if not isinstance(warning, dict):
        return None
    has_vault, has_market = VAULT_KEY in warning, MARKET_KEY in warning
    if has_vault == has_market:
        return None
    return "vault" if has_vault else "market"


def warning_target(warning: dict) -> Any:
    return warning.get(VAULT_KEY) if warning_kind(warning) == "vault" else warning.get(MARKET_KEY)


def part_problems(part: Any) -> list[str]:
    if not is_object(part):
        return ["part must be an object"]
    kind = part.get("type")
    if kind == "text":
        if not is_non_empty_string(part.get("content")):
            return ["text part must have non-empty content"]
        return []
    if kind == "link":
        problems = []
        if not is_non_empty_string(part.get("text")):
            problems.append("link part must have non-empty text")
        if not is_non_empty_string(part.get("href")):
            problems.append("link part must have non-empty href")
        if not is_bool(part.get("external")):
            problems.append("link part must have boolean external")
        return problems
    return [f"unknown part type {kind!r}"]


def metadata_problems(metadata: Any) -> list[str]:
    """Exactly one of content or parts, each well formed"""
    if not is_object(metadata):
        return ["metadata must be an object"]
    has_content, has_parts = "content" in metadata, "parts" in metadata
    if has_content and has_parts:
        return ["metadata must have either content or parts, not both"]
    if not has_content and not has_parts:
        return ["metadata must have content or parts"]

    if has_content:
        if not is_non_empty_string(metadata["content"]):
            return ["metadata.content must be a non-empty string"]
        return []

    parts = metadata["parts"]
    if not is_array(parts) or not parts:
        return ["metadata.parts must be a non-empty array"]
    problems = []
    for position, part in enumerate(parts):
        problems.extend(f"parts[{position}]: {p}" for p in part_problems(part))
    return problems


class CustomWarningsValidator(RegistryValidator):
    registry = "custom-warnings"

    def checks(self) -> dict[str, Check]:
        return {
            "each warning targets a vault or a market": self.check_kind,
            "vault addresses are checksummed": self.check_vault_checksums,
            "market ids are valid 32-byte hex strings": self.check_market_ids,
            "no duplicate vault warnings": lambda r: self.check_duplicates("no duplicate vault warnings", r, "vault"),
            "no duplicate market warnings": lambda r: self.check_duplicates("no duplicate market warnings", r, "market"),
            "chain ids are valid": lambda r: check_chain_ids(
                "chain ids are valid", [w for w in r if warning_kind(w)], ["chainId"], VALID_CHAIN_IDS,
                identifier_field=VAULT_KEY,
            ),
            "required fields have correct types": self.check_fields,
            "level is known": self.check_level,
            "metadata has content or parts": self.check_metadata,
        }

    def check_kind(self, records: list) -> list[Violation]:
        return [
            Violation(
                "each warning targets a vault or a market",
                f"warning must have exactly one of {VAULT_KEY} or {MARKET_KEY}",
                index=index,
            )
            for index, warning in enumerate(records)
            if warning_kind(warning) is None
        ]

    def check_vault_checksums(self, records: list) -> list[Violation]:
        violations = []
        for index, warning in enumerate(records):
            if warning_kind(warning) != "vault":
                continue
            violation = checksum_violation(
                "vault addresses are checksummed", warning.get(VAULT_KEY), index=index,
                field=VAULT_KEY, chain_id=warning.get("chainId"),
            )
            if violation:
                violations.append(violation)
        return violations

    def check_market_ids(self, records: list) -> list[Violation]:
        return [
            Violation(
                "market ids are valid 32-byte hex strings", "invalid marketId format", index=index,
                identifier=str(warning.get(MARKET_KEY)), chain_id=warning.get("chainId"),
                expected="0x + 64 hex characters", actual=warning.get(MARKET_KEY),
            )
            for index, warning in enumerate(records)
            if warning_kind(warning) == "market" and not is_market_id(warning.get(MARKET_KEY))
        ]

    def check_duplicates(self, check: str, records: list, kind: str) -> list[Violation]:
        """One violation per duplicated key listing every index that uses it"""
        indices: dict[tuple, list[int]] = defaultdict(list)
        targets: dict[tuple, str] = {}
        for index, warning in enumerate(records):
            if warning_kind(warning) != kind:
                continue
            target, chain_id = warning_target(warning), warning.get("chainId")
            if not isinstance(target, str) or not is_number(chain_id):
                continue
            key = (chain_id, address_key(target))
            indices[key].append(index)
            targets.setdefault(key, target)

        return [
            Violation(
                check, f"duplicate {kind} warning", index=found[1], identifier=targets[key],
                chain_id=key[0], expected="unique", actual=found,
            )
            for key, found in indices.items()
            if len(found) > 1
        ]

    def check_fields(self, records: list) -> list[Violation]:
        check = "required fields have correct types"
        violations = []
        for index, warning in enumerate(records):
            kind = warning_kind(warning)
            if kind is None:
                continue
            key = VAULT_KEY if kind == "vault" else MARKET_KEY
            problems = []
            if not is_non_empty_string(warning.get(key)):
                problems.append(f"{key} (string)")
            if not is_number(warning.get("chainId")):
                problems.append("chainId (number)")
            if not is_non_empty_string(warning.get("level")):
                problems.append("level (string)")
            if not is_object(warning.get("metadata")):
                problems.append("metadata (object)")
            if problems:
                violations.append(Violation(
                    check, f"{kind} warning is missing or has invalid fields: {', '.join(problems)}",
                    index=index, identifier=str(warning.get(key)),
                ))
        return violations

    def check_level(self, records: list) -> list[Violation]:
        return [
            Violation(
                "level is known", "invalid level", index=index, identifier=str(warning_target(warning)),
                chain_id=warning.get("chainId"), expected=sorted(WARNING_LEVELS), actual=warning.get("level"),
            )
            for index, warning in enumerate(records)
            if warning_kind(warning) and not (is_string(warning.get("level")) and warning["level"] in WARNING_LEVELS)
        ]

    def check_metadata(self, records: list) -> list[Violation]:
        violations = []
        for index, warning in enumerate(records):
            if warning_kind(warning) is None:
                continue
            for problem in metadata_problems(warning.get("metadata")):
                violations.append(Violation(
                    "metadata has content or parts", problem, index=index,
                    identifier=str(warning_target(warning)), chain_id=warning.get("chainId"),
                ))
        return violations
