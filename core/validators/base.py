"""
Base class and shared checks for registry schema validators
"""
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Hashable, Iterable, Optional

from core.violations import Category, CheckResult, Violation
from utils.address import MalformedAddressError, address_key, checksum
from utils.logger import get_logger

logger = get_logger(__name__)

Check = Callable[[list], list[Violation]]


# ==================== TYPE PREDICATES ====================

def is_number(value: Any) -> bool:
    """JSON number, booleans excluded"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_chain_in(value: Any, allowed: Iterable) -> bool:
    """Chain id membership, only JSON numbers can match"""
    return is_number(value) and value in allowed


def is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_array(value: Any) -> bool:
    return isinstance(value, list)


def json_type(value: Any) -> str:
    """Name of the JSON type of a decoded value"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


TYPE_PREDICATES: dict[str, Callable[[Any], bool]] = {
    "number": is_number,
    "string": is_string,
    "boolean": is_bool,
    "object": is_object,
    "array": is_array,
}


def field_of(record: Any, name: str) -> Any:
    return record.get(name) if isinstance(record, dict) else None


# ==================== SHARED CHECKS ====================

def check_required_fields(
    check: str,
    records: list,
    fields: dict[str, str],
    optional: Optional[dict[str, str]] = None,
    identifier_field: str = "address",
) -> list[Violation]:
    """
    Required fields must be present with the given JSON type, optional
    fields must have the type when present. One violation per record.
    """
    violations = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            violations.append(Violation(
                check, "record must be an object", index=index,
                expected="object", actual=json_type(record),
            ))
            continue

        problems = []
        for name, kind in fields.items():
            if not TYPE_PREDICATES[kind](record.get(name)):
                problems.append(f"{name} ({kind})")
        for name, kind in (optional or {}).items():
            if name in record and not TYPE_PREDICATES[kind](record[name]):
                problems.append(f"{name} ({kind})")

        if problems:
            violations.append(Violation(
                check,
                f"missing or invalid fields: {', '.join(problems)}",
                index=index,
                identifier=_identifier(record.get(identifier_field)),
            ))
    return violations


def checksum_violation(
    check: str,
    value: Any,
    index: Optional[int] = None,
    field: str = "address",
    chain_id: Any = None,
    identifier: Optional[str] = None,
) -> Optional[Violation]:
    """Violation when value is not a checksummed address, else None"""
    try:
        expected = checksum(value)
    except MalformedAddressError:
        return Violation(
            check, f"{field} is not a valid address", index=index,
            identifier=identifier or _identifier(value), chain_id=chain_id, actual=value,
        )
    if expected != value:
        return Violation(
            check, f"{field} is not checksummed", index=index,
            identifier=identifier or value, chain_id=chain_id,
            expected=expected, actual=value,
        )
    return None


def check_checksums(check: str, records: list, fields: Iterable[str], chain_field: str = "chainId") -> list[Violation]:
    """Every listed address field of every record must be checksummed"""
    fields = tuple(fields)
    violations = []
    for index, record in enumerate(records):
        for name in fields:
            violation = checksum_violation(
                check, field_of(record, name), index=index, field=name,
                chain_id=field_of(record, chain_field),
            )
            if violation:
                violations.append(violation)
    return violations


def find_duplicates(
    check: str,
    records: list,
    key: Callable[[dict], Optional[Hashable]],
    identifier: Callable[[dict], Any],
    what: str = "entry",
    chain_field: str = "chainId",
) -> list[Violation]:
    """
    Composite-key uniqueness. Keeps the first index seen for each key and
    reports every later record with the same key.
    """
    first_seen: dict[Hashable, int] = {}
    violations = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            continue
        record_key = key(record)
        if record_key is None:
            continue
        if record_key in first_seen:
            violations.append(Violation(
                check,
                f"duplicate {what}, first seen at index {first_seen[record_key]}",
                index=index,
                identifier=_identifier(identifier(record)),
                chain_id=record.get(chain_field),
                expected="unique",
                actual=[first_seen[record_key], index],
            ))
        else:
            first_seen[record_key] = index
    return violations


def address_chain_key(address_field: str = "address", chain_field: str = "chainId"):
    """Key function for the common (chainId, lower(address)) uniqueness"""
    def key(record: dict) -> Optional[tuple]:
        address, chain_id = record.get(address_field), record.get(chain_field)
        # Bad chain ids are reported by the chain id check
        if not isinstance(address, str) or not is_number(chain_id):
            return None
        return (chain_id, address_key(address))
    return key


def check_chain_ids(
    check: str,
    records: list,
    fields: Iterable[str],
    allowed: Iterable[int],
    identifier_field: str = "address",
) -> list[Violation]:
    """Each chain id field must be one of the allowed chains"""
    allowed = frozenset(allowed)
    fields = tuple(fields)
    violations = []
    for index, record in enumerate(records):
        for name in fields:
            value = field_of(record, name)
            if not is_chain_in(value, allowed):
                violations.append(Violation(
                    check, f"invalid {name}", index=index,
                    identifier=_identifier(field_of(record, identifier_field)),
                    expected=sorted(allowed), actual=value,
                ))
    return violations


def check_order_sequence(
    check: str,
    records: list,
    asset_field: str = "assetAddress",
    chain_field: str = "assetChainId",
) -> list[Violation]:
    """
    Price sources for one (asset, chain) must have orders forming exactly
    0..n-1 with no repeats
    """
    groups: dict[tuple, list[tuple[int, Any]]] = defaultdict(list)
    for index, record in enumerate(records):
        asset, chain_id = field_of(record, asset_field), field_of(record, chain_field)
        if not isinstance(asset, str) or not is_number(chain_id):
            continue
        groups[(address_key(asset), chain_id)].append((index, record.get("order")))

    violations = []
    for (asset, chain_id), members in groups.items():
        bad_type = [(i, o) for i, o in members if not is_number(o)]
        for index, order in bad_type:
            violations.append(Violation(
                check, "order must be a number", index=index,
                identifier=asset, chain_id=chain_id, expected="number", actual=order,
            ))

        orders = sorted((o, i) for i, o in members if is_number(o))
        for position, (order, index) in enumerate(orders):
            if order != position:
                violations.append(Violation(
                    check, "invalid order sequence", index=index,
                    identifier=asset, chain_id=chain_id, expected=position, actual=order,
                ))

        values = [o for o, _ in orders]
        if len(set(values)) != len(values):
            violations.append(Violation(
                check, "duplicate orders", identifier=asset, chain_id=chain_id,
                expected="unique", actual=values,
            ))
    return violations


def _identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


# ==================== VALIDATOR BASE ====================

class RegistryValidator(ABC):
    """
    A registry validator is a named set of independent checks. Each check
    takes the records and returns its own violations, data problems never
    raise.
    """

    registry: str = ""

    @abstractmethod
    def checks(self) -> dict[str, Check]:
        """Check name -> check function"""

    def validate(self, records: list) -> list[CheckResult]:
        results = []
        for name, check in self.checks().items():
            violations = check(records)
            results.append(CheckResult(
                registry=self.registry,
                check=name,
                category=Category.SCHEMA,
                violations=tuple(violations),
                checked=len(records),
            ))
            if violations:
                logger.debug(f"{self.registry}: {name} found {len(violations)} violations")
        return results
