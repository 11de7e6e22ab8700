"""Run-wide package aggregation of per-file summaries."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from leela_report.errors import LifecycleViolation
from leela_report.log import get_logger
from leela_report.models import FileSummary, PackageSummary, Totals, package_directory

logger = get_logger(__name__)

__all__ = ["PackageAggregate", "package_directory", "sum_totals"]


def sum_totals(totals: Iterable[Totals]) -> Totals:
    """Combine totals; the result of an empty iterable is ``Totals()``."""
    return sum(totals, Totals())


class PackageAggregate:
    """Package name -> PackageSummary for one reporting run.

    ``merge`` is a critical section per package: the registry lock only
    guards creation of entries, each package then has its own lock.
    """

    def __init__(self) -> None:
        self._packages: dict[str, PackageSummary] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._frozen = False

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, package_name: object) -> bool:
        return package_name in self._packages

    def __getitem__(self, package_name: str) -> PackageSummary:
        return self._packages[package_name]

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_open(self, package_name: str) -> None:
        if self._frozen:
            raise LifecycleViolation(
                f"cannot merge into package {package_name!r} after the run ended"
            )

    def _entry(self, package_name: str) -> tuple[PackageSummary, threading.Lock]:
        with self._registry_lock:
            self._check_open(package_name)
            if package_name not in self._packages:
                self._packages[package_name] = PackageSummary(
                    package_name=package_name,
                    output_directory=package_directory(package_name),
                )
                self._locks[package_name] = threading.Lock()
            return self._packages[package_name], self._locks[package_name]

    def merge(self, package_name: str, file_summary: FileSummary) -> PackageSummary:
        """Append ``file_summary`` to its package, creating the package if new.

        Summaries are never de-duplicated: reporting the same file twice
        counts its mutations twice.
        """
        summary, lock = self._entry(package_name)
        with lock:
            # freeze() may have run since _entry released the registry lock
            self._check_open(package_name)
            summary.file_summaries.append(file_summary)
        logger.debug(
            "merged %s into %s (%d files)",
            file_summary.file_name,
            package_name,
            len(summary.file_summaries),
        )
        return summary

    def values(self) -> list[PackageSummary]:
        """Package summaries in the order their packages were first merged."""
        with self._registry_lock:
            return list(self._packages.values())

    def totals(self) -> Totals:
        return sum_totals(p.totals for p in self.values())

    def freeze(self) -> None:
        """Reject any further merge and wait for merges already appending."""
        with self._registry_lock:
            self._frozen = True
            locks = list(self._locks.values())
        for lock in locks:
            with lock:
                pass
