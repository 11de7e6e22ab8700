"""Aggregation and source annotation for mutation testing reports."""

from leela_report.aggregate import PackageAggregate, sum_totals
from leela_report.driver import DriverState, ReportDriver, TestResult
from leela_report.errors import InconsistentTotals, LifecycleViolation, ReportError
from leela_report.models import (
    FileSummary,
    MutationMetaData,
    MutationRecord,
    MutationStatus,
    PackageSummary,
    Totals,
)

__all__ = [
    "DriverState",
    "FileSummary",
    "InconsistentTotals",
    "LifecycleViolation",
    "MutationMetaData",
    "MutationRecord",
    "MutationStatus",
    "PackageAggregate",
    "PackageSummary",
    "ReportDriver",
    "ReportError",
    "TestResult",
    "Totals",
    "sum_totals",
]
