"""
Validation Engine
Loader -> schema validators -> cross-registry checks -> remote verifier -> report
"""
import asyncio
from pathlib import Path
from typing import Callable, Iterable, Optional

from config.registries import REGISTRY_NAMES
from config.settings import RUN_TIMEOUT_SECONDS
from core.consistency import ConsistencyChecker, RegistrySnapshot, consistency_checker
from core.loader import Registry, load_registries
from core.remote_verifier import RemoteVerifier
from core.report import ValidationReport
from core.validators.catalog import get_validator
from core.violations import CheckResult
from utils.logger import get_logger

logger = get_logger(__name__)


class ValidationEngine:
    """
    Runs one validation pass over the registries. Infrastructure errors
    (missing or unparseable files) abort the run, data violations are
    accumulated in the report.
    """

    def __init__(
        self,
        data_dir: str | Path | None = None,
        checker: ConsistencyChecker = consistency_checker,
        verifier_factory: Callable[[], RemoteVerifier] = RemoteVerifier,
        timeout: float = RUN_TIMEOUT_SECONDS,
    ):
        self.data_dir = data_dir
        self.checker = checker
        self.verifier_factory = verifier_factory
        self.timeout = timeout

    async def run(self, registries: Optional[Iterable[str]] = None, remote: bool = True) -> ValidationReport:
        names = list(registries) if registries else list(REGISTRY_NAMES)
        report = ValidationReport()

        logger.info(f"[bold blue]Loading {len(names)} registries...[/bold blue]")
        loaded = load_registries(names, self.data_dir)
        for registry in loaded.values():
            logger.info(f"  {registry.name}: {len(registry)} records ({registry.total} in file)")

        report.add(await self.validate_schemas(loaded))

        snapshot = RegistrySnapshot.from_registries(loaded)
        report.add(self.checker.run(snapshot))

        if remote:
            report.add(await self.verify_remote(snapshot))

        report.finish()
        if report.ok:
            logger.info(f"[bold green]All checks passed in {report.duration:.1f}s[/bold green]")
        else:
            logger.warning(f"[bold red]Found {len(report.violations)} violations[/bold red]")
        return report

    async def validate_schemas(self, loaded: dict[str, Registry]) -> list[CheckResult]:
        """Validators share no state, run them side by side"""
        batches = await asyncio.gather(*(
            asyncio.to_thread(get_validator(name).validate, registry.records)
            for name, registry in loaded.items()
        ))
        return [result for batch in batches for result in batch]

    async def verify_remote(self, snapshot: RegistrySnapshot) -> list[CheckResult]:
        verifier = self.verifier_factory()
        try:
            return await verifier.run(snapshot, timeout=self.timeout)
        finally:
            await verifier.close()


# Global engine instance
validation_engine = ValidationEngine()
