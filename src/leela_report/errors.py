"""Exceptions raised by the report core."""

from __future__ import annotations


class ReportError(Exception):
    """Base class for report generation errors."""


class LifecycleViolation(ReportError):
    """An operation was invoked in a driver or aggregate state that forbids it."""


class InconsistentTotals(LifecycleViolation):
    """Totals whose generated count differs from killed + survived + no coverage."""
