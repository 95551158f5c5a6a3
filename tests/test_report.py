import pytest

from core.errors import ValidationFailed
from core.report import ValidationReport
from core.violations import Category, CheckResult, Violation


def result(check, *violations, registry="tokens", category=Category.SCHEMA, skipped=None):
    return CheckResult(registry, check, category, violations=tuple(violations), skipped=skipped)


def test_empty_report_passes():
    report = ValidationReport().finish()
    assert report.ok
    assert report.summary() == "All 0 checks passed"
    report.raise_for_violations()


def test_counts():
    report = ValidationReport()
    report.add([
        result("checksum", Violation("checksum", "bad", index=0), Violation("checksum", "bad", index=1)),
        result("unique"),
        result("feed tokens", Violation("feed tokens", "missing", category=Category.REFERENTIAL),
               registry="price-feeds", category=Category.REFERENTIAL),
        result("risk", registry="curators", category=Category.RISK, skipped="SKIP_RISK_CHECKS"),
    ])

    assert not report.ok
    assert len(report.violations) == 3
    assert [r.key for r in report.failed] == ["tokens: checksum", "price-feeds: feed tokens"]
    assert [r.key for r in report.skipped] == ["curators: risk"]
    assert report.counts_by_category == {
        Category.SCHEMA: 2, Category.REFERENTIAL: 1, Category.REMOTE: 0, Category.RISK: 0,
    }
    assert report.counts_by_check == {"tokens: checksum": 2, "price-feeds: feed tokens": 1}


def test_summary_lists_every_violation():
    violation = Violation("checksum", "address is not checksummed", index=3, identifier="0xabc",
                          chain_id=1, expected="0xAbC", actual="0xabc")
    report = ValidationReport(results=[result("checksum", violation)])
    summary = report.summary()

    assert summary.startswith("Found 1 violations (schema: 1)")
    assert "[index 3, 0xabc, chain 1] address is not checksummed (expected: '0xAbC', actual: '0xabc')" in summary


def test_raise_for_violations():
    report = ValidationReport(results=[result("checksum", Violation("checksum", "bad"))])
    with pytest.raises(ValidationFailed) as excinfo:
        report.raise_for_violations()
    assert excinfo.value.report is report


def test_duration_uses_finish_time():
    report = ValidationReport()
    report.finish()
    assert report.duration >= 0
