"""
Cross-registry consistency checker
Every reference from one registry into another must resolve
"""
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from core.loader import Registry
from core.validators.base import is_chain_in, is_number
from core.validators.custom_warnings import VAULT_KEY, warning_kind
from core.validators.curators import curator_addresses
from core.validators.points import iter_entities
from core.validators.price_feeds import PRICE_FEED_CHAIN_IDS, feed_tokens
from core.violations import Category, CheckResult, Violation
from utils.address import ADDRESS_PATTERN, address_key, is_market_id, is_placeholder
from utils.logger import get_logger

logger = get_logger(__name__)

ChainKey = tuple[Any, str]


@dataclass
class RegistrySnapshot:
    """Registries loaded for one run, None when not loaded"""
    tokens: Optional[list] = None
    price_feeds: Optional[list] = None
    vaults: Optional[list] = None
    vaults_v2: Optional[list] = None
    points: Optional[dict] = None
    warnings: Optional[list] = None
    curators: Optional[list] = None

    @classmethod
    def from_registries(cls, registries: dict[str, Registry]) -> "RegistrySnapshot":
        """
        Referenced registries (tokens, vaults) are taken before the production
        chain filter, referencing ones as validated
        """
        def raw(name):
            return registries[name].raw if name in registries else None

        def records(name):
            return registries[name].records if name in registries else None

        return cls(
            tokens=raw("tokens"),
            price_feeds=records("price-feeds"),
            vaults=raw("vaults"),
            vaults_v2=raw("vaults-v2"),
            points=records("points"),
            warnings=records("custom-warnings"),
            curators=records("curators"),
        )

    @property
    def listed_vaults(self) -> Optional[list]:
        if self.vaults is None and self.vaults_v2 is None:
            return None
        return (self.vaults or []) + (self.vaults_v2 or [])


def normalize_chain(value: Any) -> Any:
    """Points and curator maps key chains by string"""
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def chain_key(chain_id: Any, address: Any) -> Optional[ChainKey]:
    """None when either part cannot be matched, the lookup then fails"""
    chain_id = normalize_chain(chain_id)
    if not isinstance(address, str) or not is_number(chain_id):
        return None
    return (chain_id, address_key(address))


def build_lookup(records: Iterable, address_field: str = "address", chain_field: str = "chainId") -> set[ChainKey]:
    """Case-insensitive (chainId, address) set"""
    keys = set()
    for record in records:
        if isinstance(record, dict):
            key = chain_key(record.get(chain_field), record.get(address_field))
            if key:
                keys.add(key)
    return keys


@dataclass
class ConsistencyCheck:
    name: str
    requires: tuple[str, ...]
    func: Callable[[RegistrySnapshot], list[Violation]]
    registry: str


class ConsistencyChecker:
    """Runs every cross-registry check whose registries are loaded"""

    def __init__(self):
        self._checks = [
            ConsistencyCheck("price feed tokens are listed", ("price_feeds", "tokens"),
                             self.check_feed_tokens, "price-feeds"),
            ConsistencyCheck("points vaults are listed", ("points", "listed_vaults"),
                             self.check_points_vaults, "points"),
            ConsistencyCheck("points collateral tokens are listed", ("points", "tokens"),
                             self.check_points_tokens, "points"),
            ConsistencyCheck("points market ids are well formed", ("points",),
                             self.check_points_market_ids, "points"),
            ConsistencyCheck("warning vaults are listed", ("warnings", "listed_vaults"),
                             self.check_warning_vaults, "custom-warnings"),
            ConsistencyCheck("curator addresses are unique per chain", ("curators",),
                             self.check_curator_addresses, "curators"),
            ConsistencyCheck("token alternative oracles are known feeds", ("tokens", "price_feeds"),
                             self.check_alternative_oracles, "tokens"),
        ]

    def run(self, snapshot: RegistrySnapshot) -> list[CheckResult]:
        results = []
        for check in self._checks:
            missing = [r for r in check.requires if getattr(snapshot, r) is None]
            if missing:
                results.append(CheckResult(
                    registry=check.registry, check=check.name, category=Category.REFERENTIAL,
                    skipped=f"requires {', '.join(missing)}",
                ))
                continue

            violations = check.func(snapshot)
            results.append(CheckResult(
                registry=check.registry,
                check=check.name,
                category=Category.REFERENTIAL,
                violations=tuple(violations),
                checked=1,
            ))
            logger.debug(f"Consistency check '{check.name}': {len(violations)} violations")
        return results

    # ==================== CHECKS ====================

    def check_feed_tokens(self, snapshot: RegistrySnapshot) -> list[Violation]:
        tokens = build_lookup(snapshot.tokens)
        violations = []
        for index, feed in enumerate(snapshot.price_feeds):
            for side, token in feed_tokens(feed):
                address = token.get("address")
                if is_placeholder(address):
                    continue
                key = chain_key(token.get("chainId"), address)
                if key not in tokens:
                    violations.append(_referential(
                        "price feed tokens are listed", f"{side} is not in tokens.json",
                        index=index, identifier=address, chain_id=token.get("chainId"),
                    ))
        return violations

    def check_points_vaults(self, snapshot: RegistrySnapshot) -> list[Violation]:
        vaults = build_lookup(snapshot.listed_vaults)
        return [
            _referential(
                "points vaults are listed",
                "vaultsWithPoints vault is not in vaults-listing.json or vaults-v2-listing.json",
                identifier=vault, chain_id=chain_id,
            )
            for chain_id, vault, _ in iter_entities(snapshot.points, "vaultsWithPoints")
            if chain_key(chain_id, vault) not in vaults
        ]

    def check_points_tokens(self, snapshot: RegistrySnapshot) -> list[Violation]:
        tokens = build_lookup(snapshot.tokens)
        violations = []
        for map_name in ("marketsWithPointsOnCollateralToken", "vaultsWithPointsOnMarketCollateralToken"):
            for chain_id, token, _ in iter_entities(snapshot.points, map_name):
                if chain_key(chain_id, token) not in tokens:
                    violations.append(_referential(
                        "points collateral tokens are listed", f"{map_name} token is not in tokens.json",
                        identifier=token, chain_id=chain_id,
                    ))
        return violations

    def check_points_market_ids(self, snapshot: RegistrySnapshot) -> list[Violation]:
        violations = []
        for map_name in ("marketsWithPoints", "vaultsWithPointsOnMarket"):
            for chain_id, market_id, _ in iter_entities(snapshot.points, map_name):
                if not is_market_id(market_id):
                    violations.append(_referential(
                        "points market ids are well formed", f"{map_name} key is not a market id",
                        identifier=market_id, chain_id=chain_id, expected="0x + 64 hex characters",
                    ))
        return violations

    def check_warning_vaults(self, snapshot: RegistrySnapshot) -> list[Violation]:
        vaults = build_lookup(snapshot.listed_vaults)
        return [
            _referential(
                "warning vaults are listed", "warning vault is not in a vault listing",
                index=index, identifier=warning.get(VAULT_KEY), chain_id=warning.get("chainId"),
            )
            for index, warning in enumerate(snapshot.warnings)
            if warning_kind(warning) == "vault"
            and chain_key(warning.get("chainId"), warning.get(VAULT_KEY)) not in vaults
        ]

    def check_curator_addresses(self, snapshot: RegistrySnapshot) -> list[Violation]:
        owners: dict[ChainKey, tuple[int, Any]] = {}
        violations = []
        for index, curator in enumerate(snapshot.curators):
            if not isinstance(curator, dict):
                continue
            for chain_id, _, address in curator_addresses(curator):
                key = chain_key(chain_id, address)
                if key is None:
                    continue
                if key in owners:
                    first_index, first_name = owners[key]
                    violations.append(_referential(
                        "curator addresses are unique per chain",
                        f"address already listed for curator {first_name!r}",
                        index=index, identifier=address, chain_id=chain_id,
                        expected="unique", actual=[first_index, index],
                    ))
                else:
                    owners[key] = (index, curator.get("name"))
        return violations

    def check_alternative_oracles(self, snapshot: RegistrySnapshot) -> list[Violation]:
        feeds = build_lookup(snapshot.price_feeds)
        violations = []
        for index, token in enumerate(snapshot.tokens):
            if not isinstance(token, dict) or not is_chain_in(token.get("chainId"), PRICE_FEED_CHAIN_IDS):
                continue
            metadata = token.get("metadata")
            oracles = metadata.get("alternativeOracles") if isinstance(metadata, dict) else None
            if not isinstance(oracles, list):
                continue
            for oracle in oracles:
                # Only plain address entries can be resolved against the feed registry
                if not isinstance(oracle, str) or not ADDRESS_PATTERN.match(oracle):
                    continue
                if chain_key(token.get("chainId"), oracle) not in feeds:
                    violations.append(_referential(
                        "token alternative oracles are known feeds",
                        f"alternative oracle {oracle} is not in price-feeds.json",
                        index=index, identifier=token.get("address"), chain_id=token.get("chainId"),
                        actual=oracle,
                    ))
        return violations


def _referential(check: str, message: str, **kwargs) -> Violation:
    return Violation(check, message, category=Category.REFERENTIAL, **kwargs)


# Global consistency checker instance
consistency_checker = ConsistencyChecker()
