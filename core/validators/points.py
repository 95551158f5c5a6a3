"""
points.json validator

points.json holds five parallel maps chainId -> entity -> [Point]. They are
flattened into PointEntry rows so every point is validated the same way.
"""
from dataclasses import dataclass
from typing import Any, Iterator

from config.chains import VALID_CHAIN_ID_STRINGS
from config.settings import POINTS_MAPS
from core.validators.base import (
    Check,
    RegistryValidator,
    is_array,
    is_bool,
    is_non_empty_string,
    is_object,
    is_string,
    json_type,
)
from core.violations import Violation


@dataclass(frozen=True)
class PointEntry:
    map_name: str
    chain_id: str
    address: str  # vault or token address, or market id
    point_index: int
    point: Any

    @property
    def location(self) -> str:
        return f"{self.map_name} -> chain {self.chain_id} -> {self.address} [{self.point_index}]"


def iter_entities(points: dict, map_name: str) -> Iterator[tuple[str, str, Any]]:
    """(chain id, entity key, point list) for one map, skipping malformed levels"""
    mapping = points.get(map_name) if isinstance(points, dict) else None
    if not is_object(mapping):
        return
    for chain_id, entities in mapping.items():
        if not is_object(entities):
            continue
        for entity, point_list in entities.items():
            yield chain_id, entity, point_list


def collect_points(map_name: str, points: dict) -> list[PointEntry]:
    """Flatten one map into PointEntry rows"""
    entries = []
    for chain_id, entity, point_list in iter_entities(points, map_name):
        if not is_array(point_list):
            continue
        for point_index, point in enumerate(point_list):
            entries.append(PointEntry(map_name, chain_id, entity, point_index, point))
    return entries


def collect_all_points(points: dict) -> list[PointEntry]:
    return [entry for name in POINTS_MAPS for entry in collect_points(name, points)]


class PointsValidator(RegistryValidator):
    registry = "points"

    def checks(self) -> dict[str, Check]:
        return {
            "maps are well formed": self.check_structure,
            "chain ids are valid": self.check_chain_ids,
            "point entries are not empty": self.check_entries,
            "optional fields have correct types": self.check_optional_fields,
        }

    def check_structure(self, points: dict) -> list[Violation]:
        check = "maps are well formed"
        violations = []
        for map_name in POINTS_MAPS:
            mapping = points.get(map_name)
            if not is_object(mapping):
                violations.append(Violation(
                    check, f"{map_name} must be an object", identifier=map_name,
                    expected="object", actual=json_type(mapping),
                ))
                continue
            for chain_id, entities in mapping.items():
                if not is_object(entities):
                    violations.append(Violation(
                        check, f"{map_name}.{chain_id} must be an object", identifier=map_name,
                        chain_id=chain_id, expected="object", actual=json_type(entities),
                    ))
                    continue
                for entity, point_list in entities.items():
                    if not is_array(point_list):
                        violations.append(Violation(
                            check, f"points for {entity} must be an array", identifier=map_name,
                            chain_id=chain_id, expected="array", actual=json_type(point_list),
                        ))

        for map_name in points:
            if map_name not in POINTS_MAPS:
                violations.append(Violation(
                    check, "unknown map", identifier=map_name, expected=list(POINTS_MAPS), actual=map_name,
                ))
        return violations

    def check_chain_ids(self, points: dict) -> list[Violation]:
        violations = []
        for map_name in POINTS_MAPS:
            mapping = points.get(map_name)
            if not is_object(mapping):
                continue
            for chain_id in mapping:
                if chain_id not in VALID_CHAIN_ID_STRINGS:
                    violations.append(Violation(
                        "chain ids are valid", "invalid chain id", identifier=map_name,
                        expected=sorted(VALID_CHAIN_ID_STRINGS, key=int), actual=chain_id,
                    ))
        return violations

    def check_entries(self, points: dict) -> list[Violation]:
        check = "point entries are not empty"
        violations = []
        for entry in collect_all_points(points):
            point = entry.point
            if not is_object(point):
                violations.append(Violation(check, f"{entry.location} is not an object", identifier=entry.address))
                continue
            for name in ("title", "label"):
                if not is_non_empty_string(point.get(name)):
                    violations.append(Violation(
                        check, f"{entry.location} has an empty {name}", identifier=entry.address,
                        chain_id=entry.chain_id, actual=point.get(name),
                    ))
            if "link" in point and not is_non_empty_string(point["link"]):
                violations.append(Violation(
                    check, f"{entry.location} has an empty link", identifier=entry.address,
                    chain_id=entry.chain_id, actual=point["link"],
                ))
        return violations

    def check_optional_fields(self, points: dict) -> list[Violation]:
        check = "optional fields have correct types"
        violations = []
        for entry in collect_all_points(points):
            point = entry.point
            if not is_object(point):
                continue
            if "value" in point and not is_string(point["value"]):
                violations.append(Violation(
                    check, f"{entry.location} value must be a string", identifier=entry.address,
                    chain_id=entry.chain_id, expected="string", actual=point["value"],
                ))
            if "noHoverCard" in point and not is_bool(point["noHoverCard"]):
                violations.append(Violation(
                    check, f"{entry.location} noHoverCard must be a boolean", identifier=entry.address,
                    chain_id=entry.chain_id, expected="boolean", actual=point["noHoverCard"],
                ))
        return violations
