"""Run lifecycle: turns test results into per-file and index reports."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Protocol, TypeVar

from leela_report.aggregate import PackageAggregate, sum_totals
from leela_report.annotate import create_annotated_source_file
from leela_report.coverage import CoverageDatabase
from leela_report.errors import LifecycleViolation
from leela_report.html_report import (
    render_global_index,
    render_package_index,
    render_source_file,
)
from leela_report.locators import SourceLocator
from leela_report.log import get_logger
from leela_report.models import FileSummary, MutationMetaData, PackageSummary, Totals
from leela_report.output import ResultOutputStrategy, format_json_summary
from leela_report.summary import build_file_summary

logger = get_logger(__name__)

T = TypeVar("T")


class DriverState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINALIZING = "finalizing"
    DONE = "done"


class ResultValues(Protocol):
    def value(self, kind: type[T]) -> T | None: ...


@dataclass
class TestResult:
    """A finished test together with values attached by the test runner."""

    __test__ = False

    test_id: str
    outcome: str = "passed"
    values: Mapping[type, Any] = field(default_factory=dict)

    def value(self, kind: type[T]) -> T | None:
        found = self.values.get(kind)
        return found if isinstance(found, kind) else None


class ReportDriver:
    """Listener that aggregates mutation results and writes the report.

    The driver moves through IDLE -> RUNNING -> FINALIZING -> DONE.  Each
    test result carrying ``MutationMetaData`` is summarised, merged into the
    package aggregate and written as an annotated source page straight
    away; the package and global indexes are written at run end.
    """

    def __init__(
        self,
        coverage: CoverageDatabase,
        output: ResultOutputStrategy,
        locators: Iterable[SourceLocator] = (),
    ) -> None:
        self.coverage = coverage
        self.output = output
        self.locators: tuple[SourceLocator, ...] = tuple(locators)
        self.packages = PackageAggregate()
        self.state = DriverState.IDLE
        self._global_totals: Totals | None = None

    def _require(self, state: DriverState, action: str) -> None:
        if self.state is not state:
            raise LifecycleViolation(
                f"cannot {action} while the report driver is {self.state.value}"
            )

    @property
    def global_totals(self) -> Totals:
        if self._global_totals is None:
            raise LifecycleViolation("global totals are only available after the run ended")
        return self._global_totals

    def on_run_start(self) -> None:
        self._require(DriverState.IDLE, "start a run")
        self.state = DriverState.RUNNING

    def on_test_start(self, test_id: str) -> None:
        pass

    def on_test_result(self, result: ResultValues) -> FileSummary | None:
        """Process one finished test; returns the new summary, if any."""
        self._require(DriverState.RUNNING, "process a test result")
        metadata = result.value(MutationMetaData)
        if metadata is None:
            return None
        return self.process_metadata(metadata)

    on_test_success = on_test_result
    on_test_failure = on_test_result
    on_test_error = on_test_result
    on_test_skipped = on_test_result

    def process_metadata(self, metadata: MutationMetaData) -> FileSummary:
        self._require(DriverState.RUNNING, "process mutation results")
        summary = build_file_summary(
            metadata.package_name,
            metadata.file_name,
            metadata.classes,
            metadata.records,
            metadata.tests,
            metadata.mutators,
            self.coverage,
        )
        package = self.packages.merge(metadata.package_name, summary)
        self.generate_annotated_source_file(package, summary)
        return summary

    def generate_annotated_source_file(
        self, package: PackageSummary, summary: FileSummary
    ) -> None:
        self._require(DriverState.RUNNING, "write a source report")
        source_file = create_annotated_source_file(self.locators, summary, self.coverage)
        self._write(
            f"{package.output_directory}/{summary.file_name}.html",
            lambda: render_source_file(source_file, summary),
        )

    def on_run_end(self) -> Totals:
        """Write the package and global indexes and return the global totals."""
        self._require(DriverState.RUNNING, "end the run")
        self.state = DriverState.FINALIZING
        self.packages.freeze()

        packages = self.packages.values()
        totals = sum_totals(p.totals for p in packages).check()
        for package in packages:
            package.file_summaries.sort(key=attrgetter("file_name"))
            self._write(
                f"{package.output_directory}/index.html",
                lambda package=package: render_package_index(package),
            )
        self._write("index.html", lambda: render_global_index(totals, packages))
        self._write("summary.json", lambda: format_json_summary(totals, packages))

        self._global_totals = totals
        self.state = DriverState.DONE
        logger.info(
            "mutation report: %d/%d killed, %d survived, %d without coverage",
            totals.killed,
            totals.generated,
            totals.survived,
            totals.no_coverage,
        )
        return totals

    def _write(self, relative_path: str, render: Callable[[], str]) -> bool:
        """Write one report; failures are logged and the report skipped."""
        if self.state not in (DriverState.RUNNING, DriverState.FINALIZING):
            raise LifecycleViolation(
                f"cannot write {relative_path} while the report driver is {self.state.value}"
            )
        content = render()
        try:
            with self.output.create_writer(relative_path) as writer:
                writer.write(content)
        except (OSError, ValueError):
            logger.exception("error while writing report %s", relative_path)
            return False
        logger.debug("wrote %s", relative_path)
        return True
