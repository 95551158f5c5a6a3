"""
Violation model
Every check returns its own list of violations, merged by the caller
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Category(Enum):
    """Violation categories, reported separately"""
    SCHEMA = "schema"
    REFERENTIAL = "referential"
    REMOTE = "remote"
    RISK = "risk"


@dataclass(frozen=True)
class Violation:
    """A single problem found in a registry record"""
    check: str
    message: str
    category: Category = Category.SCHEMA
    index: Optional[int] = None
    identifier: Optional[str] = None  # address, market id, curator name...
    chain_id: Optional[Any] = None
    expected: Optional[Any] = None
    actual: Optional[Any] = None

    @property
    def location(self) -> str:
        """Human readable position of the offending record"""
        parts = []
        if self.index is not None:
            parts.append(f"index {self.index}")
        if self.identifier:
            parts.append(str(self.identifier))
        if self.chain_id is not None:
            parts.append(f"chain {self.chain_id}")
        return ", ".join(parts)

    def describe(self) -> str:
        text = f"{self.message}"
        if self.location:
            text = f"[{self.location}] {text}"
        if self.expected is not None or self.actual is not None:
            text += f" (expected: {self.expected!r}, actual: {self.actual!r})"
        return text


@dataclass
class CheckResult:
    """Outcome of one named check over one registry"""
    registry: str
    check: str
    category: Category = Category.SCHEMA
    violations: tuple[Violation, ...] = field(default_factory=tuple)
    checked: int = 0
    skipped: Optional[str] = None  # reason the check did not run

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def key(self) -> str:
        return f"{self.registry}: {self.check}"
