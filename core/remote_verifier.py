"""
Remote existence verifier

Confirms that addresses and market ids in the registries correspond to real,
currently indexed entities, and that the addresses behind curators and
vault roles carry an acceptable risk level. Every check is gated by an
environment toggle and reports zero checks when skipped.
"""
import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from clients.morpho_api import MorphoApiClient
from clients.onchain import OnchainReader
from clients.risk_api import RiskApiClient, RiskAssessment
from config.secrets import SecretManager, secret_manager
from config.settings import RUN_TIMEOUT_SECONDS, ZERO_ADDRESS
from core.consistency import RegistrySnapshot, normalize_chain
from core.errors import RemoteRequestError
from core.validators.base import is_number
from core.validators.curators import curator_addresses
from core.validators.custom_warnings import MARKET_KEY, VAULT_KEY, warning_kind
from core.validators.points import iter_entities
from core.violations import Category, CheckResult, Violation
from utils.address import address_key
from utils.logger import get_logger
from utils.rate_limiter import BatchRunner

logger = get_logger(__name__)


class VerificationStatus(Enum):
    EXISTS = "exists"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class Verification:
    status: VerificationStatus
    entity: Optional[dict] = None
    error: Optional[str] = None


@dataclass
class AddressRoles:
    """Roles an address holds across listed vaults"""
    roles: set[str] = field(default_factory=set)
    vaults: list[str] = field(default_factory=list)


def _remote(check: str, message: str, **kwargs) -> Violation:
    return Violation(check, message, category=Category.REMOTE, **kwargs)


def _risk(check: str, message: str, **kwargs) -> Violation:
    return Violation(check, message, category=Category.RISK, **kwargs)


class RemoteVerifier:
    """
    Runs the network-bound checks. Collaborators are injected so tests can
    replace them with in-process fakes.
    """

    def __init__(
        self,
        morpho: MorphoApiClient | None = None,
        risk: RiskApiClient | None = None,
        onchain: OnchainReader | None = None,
        batch_runner: BatchRunner | None = None,
        secrets: SecretManager = secret_manager,
    ):
        self.morpho = morpho or MorphoApiClient()
        self.risk = risk or RiskApiClient()
        self.onchain = onchain or OnchainReader()
        self.batch_runner = batch_runner or BatchRunner()
        self.secrets = secrets

    # ==================== ENTITY LOOKUPS ====================

    async def verify_vault(self, address: str, chain_id: int) -> Verification:
        try:
            vault = await self.morpho.vault_by_address(address, chain_id)
        except RemoteRequestError as e:
            return Verification(VerificationStatus.ERROR, error=str(e))
        if not vault:
            return Verification(VerificationStatus.NOT_FOUND)
        return Verification(VerificationStatus.EXISTS, entity=vault)

    async def verify_market(self, market_id: str, chain_id: int) -> Verification:
        try:
            market = await self.morpho.market_by_unique_key(market_id, chain_id)
        except RemoteRequestError as e:
            return Verification(VerificationStatus.ERROR, error=str(e))
        if not market:
            return Verification(VerificationStatus.NOT_FOUND)
        return Verification(VerificationStatus.EXISTS, entity=market)

    async def risk_of(self, address: str) -> RiskAssessment:
        return await self.risk.assess(address)

    # ==================== RUN ====================

    async def run(self, snapshot: RegistrySnapshot, timeout: float = RUN_TIMEOUT_SECONDS) -> list[CheckResult]:
        """
        Run every remote check concurrently. Checks still pending when the
        timeout expires are reported as failed.
        """
        checks: list[tuple[str, str, Category, Callable[[], Awaitable[CheckResult]]]] = [
            ("custom-warnings", "warning vaults exist", Category.REMOTE,
             lambda: self.check_warning_vaults(snapshot)),
            ("custom-warnings", "warning markets exist", Category.REMOTE,
             lambda: self.check_warning_markets(snapshot)),
            ("points", "points markets exist and are whitelisted", Category.REMOTE,
             lambda: self.check_points_markets(snapshot)),
            ("curators", "curator addresses are low risk", Category.RISK,
             lambda: self.check_curator_risk(snapshot)),
            ("vaults", "vault roles are low risk", Category.RISK,
             lambda: self.check_vault_roles(snapshot)),
            ("price-feeds", "feed decimals match on-chain", Category.REMOTE,
             lambda: self.check_feed_decimals(snapshot)),
        ]

        tasks = [asyncio.create_task(factory()) for _, _, _, factory in checks]
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results = []
        for (registry, name, category, _), task in zip(checks, tasks):
            if task in pending:
                logger.warning(f"[yellow]Remote check '{name}' timed out after {timeout}s[/yellow]")
                results.append(CheckResult(
                    registry=registry, check=name, category=category,
                    violations=(_remote(name, f"check did not finish within {timeout}s"),),
                ))
            elif task.exception() is not None:
                error = task.exception()
                logger.error(f"Remote check '{name}' failed: {error}")
                results.append(CheckResult(
                    registry=registry, check=name, category=category,
                    violations=(_remote(name, f"check failed: {error}"),),
                ))
            else:
                results.append(task.result())
        return results

    # ==================== EXISTENCE CHECKS ====================

    async def check_warning_vaults(self, snapshot: RegistrySnapshot) -> CheckResult:
        check = "warning vaults exist"
        result = CheckResult("custom-warnings", check, Category.REMOTE)
        if self.secrets.skip_vaults_api():
            result.skipped = "SKIP_VAULTS_API_TESTS"
            return result
        if snapshot.warnings is None:
            result.skipped = "custom-warnings not loaded"
            return result

        warnings = [(i, w) for i, w in enumerate(snapshot.warnings)
                    if warning_kind(w) == "vault" and isinstance(w.get(VAULT_KEY), str)
                    and is_number(w.get("chainId"))]
        outcomes = await self.batch_runner.run(
            warnings, lambda item: self.verify_vault(item[1][VAULT_KEY], item[1].get("chainId"))
        )

        violations = []
        for (index, warning), outcome in zip(warnings, outcomes):
            address, chain_id = warning[VAULT_KEY], warning.get("chainId")
            violation = self._existence_violation(check, outcome, index, address, chain_id, "vault")
            if violation is None and address_key(outcome.entity.get("address")) != address_key(address):
                violation = _remote(
                    check, "API returned a different vault address", index=index, identifier=address,
                    chain_id=chain_id, expected=address, actual=outcome.entity.get("address"),
                )
            if violation:
                violations.append(violation)

        result.violations = tuple(violations)
        result.checked = len(warnings)
        return result

    async def check_warning_markets(self, snapshot: RegistrySnapshot) -> CheckResult:
        check = "warning markets exist"
        result = CheckResult("custom-warnings", check, Category.REMOTE)
        if self.secrets.skip_vaults_api():
            result.skipped = "SKIP_VAULTS_API_TESTS"
            return result
        if snapshot.warnings is None:
            result.skipped = "custom-warnings not loaded"
            return result

        warnings = [(i, w) for i, w in enumerate(snapshot.warnings)
                    if warning_kind(w) == "market" and isinstance(w.get(MARKET_KEY), str)
                    and is_number(w.get("chainId"))]
        outcomes = await self.batch_runner.run(
            warnings, lambda item: self.verify_market(item[1][MARKET_KEY], item[1].get("chainId"))
        )

        violations = []
        for (index, warning), outcome in zip(warnings, outcomes):
            market_id, chain_id = warning[MARKET_KEY], warning.get("chainId")
            violation = self._existence_violation(check, outcome, index, market_id, chain_id, "market")
            if violation is None and str(outcome.entity.get("uniqueKey")).lower() != market_id.lower():
                violation = _remote(
                    check, "API returned a different market", index=index, identifier=market_id,
                    chain_id=chain_id, expected=market_id, actual=outcome.entity.get("uniqueKey"),
                )
            if violation:
                violations.append(violation)

        result.violations = tuple(violations)
        result.checked = len(warnings)
        return result

    async def check_points_markets(self, snapshot: RegistrySnapshot) -> CheckResult:
        check = "points markets exist and are whitelisted"
        result = CheckResult("points", check, Category.REMOTE)
        if self.secrets.skip_markets_api():
            result.skipped = "SKIP_MARKETS_API_TESTS"
            return result
        if snapshot.points is None:
            result.skipped = "points not loaded"
            return result

        by_chain: dict[Any, list[str]] = defaultdict(list)
        for map_name in ("marketsWithPoints", "vaultsWithPointsOnMarket"):
            for chain_id, market_id, _ in iter_entities(snapshot.points, map_name):
                chain_id = normalize_chain(chain_id)
                if market_id not in by_chain[chain_id]:
                    by_chain[chain_id].append(market_id)

        violations = []
        for chain_id, market_ids in by_chain.items():
            markets = await self._markets_for_chain(chain_id, market_ids)
            for market_id in market_ids:
                market = markets.get(market_id.lower())
                if isinstance(market, BaseException):
                    violations.append(_remote(
                        check, f"market lookup failed: {market}", identifier=market_id, chain_id=chain_id,
                    ))
                elif not market:
                    violations.append(_remote(
                        check, "market not found", identifier=market_id, chain_id=chain_id,
                    ))
                elif market.get("whitelisted") is not True:
                    violations.append(_remote(
                        check, "market is not whitelisted", identifier=market_id, chain_id=chain_id,
                        expected=True, actual=market.get("whitelisted"),
                    ))

        result.violations = tuple(violations)
        result.checked = sum(len(ids) for ids in by_chain.values())
        return result

    async def _markets_for_chain(self, chain_id: Any, market_ids: list[str]) -> dict[str, Any]:
        """
        One bulk query per chain, one query per market when the bulk query
        fails. Keyed by lowercase market id.
        """
        try:
            markets = await self.morpho.markets_by_chain(chain_id)
            return {key.lower(): market for key, market in markets.items()}
        except RemoteRequestError as e:
            logger.warning(
                f"[yellow]Bulk markets query failed for chain {chain_id}, "
                f"falling back to per-market queries: {e}[/yellow]"
            )

        outcomes = await self.batch_runner.run(
            market_ids, lambda market_id: self.morpho.market_by_unique_key(market_id, chain_id)
        )
        return {market_id.lower(): outcome for market_id, outcome in zip(market_ids, outcomes)}

    def _existence_violation(
        self, check: str, outcome: Any, index: int, identifier: str, chain_id: Any, kind: str,
    ) -> Optional[Violation]:
        if isinstance(outcome, BaseException):
            return _remote(check, f"{kind} lookup failed: {outcome}", index=index,
                           identifier=identifier, chain_id=chain_id)
        if outcome.status is VerificationStatus.ERROR:
            return _remote(check, f"{kind} lookup failed: {outcome.error}", index=index,
                           identifier=identifier, chain_id=chain_id)
        if outcome.status is VerificationStatus.NOT_FOUND:
            return _remote(check, f"{kind} not found in Morpho API", index=index,
                           identifier=identifier, chain_id=chain_id)
        return None

    # ==================== RISK CHECKS ====================

    def _risk_gate(self) -> Optional[str]:
        if self.secrets.skip_risk_checks():
            return "SKIP_RISK_CHECKS"
        if not self.secrets.get_risk_api_token():
            return "CHAINALYSIS_API_TOKEN not configured"
        return None

    async def _assess_all(self, check: str, addresses: dict[str, str]) -> list[Violation]:
        """
        Risk-check every address once. addresses maps address -> description
        of where it is used.
        """
        items = list(addresses)
        outcomes = await self.batch_runner.run(items, self.risk_of)

        violations = []
        for address, outcome in zip(items, outcomes):
            used_by = addresses[address]
            if isinstance(outcome, BaseException):
                violations.append(_remote(
                    check, f"risk check failed ({used_by}): {outcome}", identifier=address,
                ))
            elif not outcome.complete:
                violations.append(_remote(
                    check, f"risk check incomplete ({used_by})", identifier=address,
                    expected="COMPLETE", actual=outcome.status,
                ))
            elif not outcome.acceptable:
                reason = f", reason: {outcome.risk_reason}" if outcome.risk_reason else ""
                violations.append(_risk(
                    check, f"address risk is {outcome.risk} ({used_by}{reason})", identifier=address,
                    expected="low", actual=outcome.risk,
                ))
        return violations

    async def check_curator_risk(self, snapshot: RegistrySnapshot) -> CheckResult:
        check = "curator addresses are low risk"
        result = CheckResult("curators", check, Category.RISK)
        reason = self._risk_gate()
        if reason:
            result.skipped = reason
            return result
        if snapshot.curators is None:
            result.skipped = "curators not loaded"
            return result

        addresses: dict[str, str] = {}
        for curator in snapshot.curators:
            if not isinstance(curator, dict):
                continue
            for _, _, address in curator_addresses(curator):
                if isinstance(address, str) and address not in addresses:
                    addresses[address] = f"curator {curator.get('name')}"

        result.violations = tuple(await self._assess_all(check, addresses))
        result.checked = len(addresses)
        return result

    async def check_vault_roles(self, snapshot: RegistrySnapshot) -> CheckResult:
        check = "vault roles are low risk"
        result = CheckResult("vaults", check, Category.RISK)
        reason = self._risk_gate()
        if reason is None and self.secrets.skip_onchain_checks():
            reason = "SKIP_ONCHAIN_CHECKS"
        if reason:
            result.skipped = reason
            return result
        if snapshot.listed_vaults is None:
            result.skipped = "vault listings not loaded"
            return result

        by_chain = self._group_by_chain(snapshot.listed_vaults)
        configured = {c: v for c, v in by_chain.items() if self.onchain.is_configured(c)}
        for chain_id in by_chain.keys() - configured.keys():
            logger.info(f"No RPC URL configured for chain {chain_id}, skipping its vault roles")
        if not configured:
            result.skipped = "no RPC URL configured"
            return result

        violations = []
        holders: dict[str, AddressRoles] = {}
        for chain_id, vaults in configured.items():
            try:
                roles = await self.onchain.vault_roles(chain_id, vaults)
            except RemoteRequestError as e:
                violations.append(_remote(check, f"could not read vault roles: {e}", chain_id=chain_id))
                continue

            for vault, vault_roles in roles.items():
                if vault_roles.owner is None:
                    violations.append(_remote(
                        check, "could not read vault owner", identifier=vault, chain_id=chain_id,
                    ))
                else:
                    self._add_role(holders, vault_roles.owner, "owner", vault)
                # A vault without a curator reports the zero address
                if vault_roles.curator and vault_roles.curator != ZERO_ADDRESS:
                    self._add_role(holders, vault_roles.curator, "curator", vault)

        described = {
            address: f"{', '.join(sorted(h.roles))} of {', '.join(h.vaults)}"
            for address, h in holders.items()
        }
        violations.extend(await self._assess_all(check, described))

        result.violations = tuple(violations)
        result.checked = len(holders)
        return result

    @staticmethod
    def _add_role(holders: dict[str, AddressRoles], address: str, role: str, vault: str):
        entry = holders.setdefault(address, AddressRoles())
        entry.roles.add(role)
        entry.vaults.append(vault)

    @staticmethod
    def _group_by_chain(records: list, address_field: str = "address") -> dict[Any, list[str]]:
        by_chain: dict[Any, list[str]] = defaultdict(list)
        for record in records:
            if not isinstance(record, dict) or not isinstance(record.get(address_field), str):
                continue
            if is_number(record.get("chainId")):
                by_chain[record["chainId"]].append(record[address_field])
        return by_chain

    # ==================== ON-CHAIN CHECKS ====================

    async def check_feed_decimals(self, snapshot: RegistrySnapshot) -> CheckResult:
        check = "feed decimals match on-chain"
        result = CheckResult("price-feeds", check, Category.REMOTE)
        if self.secrets.skip_onchain_checks():
            result.skipped = "SKIP_ONCHAIN_CHECKS"
            return result
        if snapshot.price_feeds is None:
            result.skipped = "price-feeds not loaded"
            return result

        feeds: dict[Any, list[tuple[int, dict]]] = defaultdict(list)
        for index, feed in enumerate(snapshot.price_feeds):
            if not isinstance(feed, dict) or "decimals" not in feed or not isinstance(feed.get("address"), str):
                continue
            if is_number(feed.get("chainId")):
                feeds[feed["chainId"]].append((index, feed))

        configured = {c: f for c, f in feeds.items() if self.onchain.is_configured(c)}
        if not configured:
            result.skipped = "no RPC URL configured" if feeds else None
            return result

        violations = []
        checked = 0
        for chain_id, chain_feeds in configured.items():
            addresses = [feed["address"] for _, feed in chain_feeds]
            try:
                decimals = await self.onchain.feed_decimals(chain_id, addresses)
            except RemoteRequestError as e:
                violations.append(_remote(check, f"could not read feed decimals: {e}", chain_id=chain_id))
                continue

            for index, feed in chain_feeds:
                checked += 1
                actual = decimals.get(feed["address"])
                if actual is None:
                    violations.append(_remote(
                        check, "decimals() call failed", index=index,
                        identifier=feed["address"], chain_id=chain_id,
                    ))
                elif actual != feed["decimals"]:
                    violations.append(_remote(
                        check, "decimals differ from on-chain value", index=index,
                        identifier=feed["address"], chain_id=chain_id,
                        expected=actual, actual=feed["decimals"],
                    ))

        result.violations = tuple(violations)
        result.checked = checked
        return result

    async def close(self):
        await self.morpho.close()
        await self.risk.close()
        await self.onchain.close()
