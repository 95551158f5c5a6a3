"""
Report aggregator
Collects every check result of a run into one structured report
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from core.errors import ValidationFailed
from core.violations import Category, CheckResult, Violation


@dataclass
class ValidationReport:
    """All check results of one run"""
    results: list[CheckResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    def add(self, results: Iterable[CheckResult]):
        self.results.extend(results)

    def finish(self) -> "ValidationReport":
        self.finished_at = datetime.now()
        return self

    @property
    def violations(self) -> list[Violation]:
        return [v for result in self.results for v in result.violations]

    @property
    def failed(self) -> list[CheckResult]:
        return [r for r in self.results if not r.ok]

    @property
    def skipped(self) -> list[CheckResult]:
        return [r for r in self.results if r.skipped]

    @property
    def ok(self) -> bool:
        """A run passes only with zero violations across every check"""
        return not self.violations

    @property
    def counts_by_category(self) -> dict[Category, int]:
        counts = Counter(v.category for v in self.violations)
        return {category: counts.get(category, 0) for category in Category}

    @property
    def counts_by_check(self) -> dict[str, int]:
        return {r.key: len(r.violations) for r in self.failed}

    @property
    def duration(self) -> float:
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()

    def summary(self) -> str:
        """Plain text listing counts per check and every violation"""
        if self.ok:
            return f"All {len(self.results)} checks passed"

        categories = ", ".join(
            f"{category.value}: {count}" for category, count in self.counts_by_category.items() if count
        )
        lines = [f"Found {len(self.violations)} violations ({categories})"]
        for result in self.failed:
            lines.append("")
            lines.append(f"{result.key} [{result.category.value}]: {len(result.violations)} violations")
            for violation in result.violations:
                lines.append(f"  - {violation.describe()}")
        return "\n".join(lines)

    def raise_for_violations(self):
        """
        Raises:
            ValidationFailed: if any check reported a violation
        """
        if not self.ok:
            raise ValidationFailed(self)
