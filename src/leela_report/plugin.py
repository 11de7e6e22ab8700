"""pytest plugin entry point: builds the mutation report from test reports."""

from __future__ import annotations

from typing import Any

import pytest

from leela_report.coverage import CoverageMap
from leela_report.driver import DriverState, ReportDriver, TestResult
from leela_report.locators import DirectorySourceLocator, SourceLocator, SysPathSourceLocator
from leela_report.log import get_logger, set_global_log_level
from leela_report.models import MutationMetaData
from leela_report.output import DirectoryOutputStrategy, format_terminal_summary

logger = get_logger(__name__)

METADATA_PROPERTY = "mutation_metadata"


def pytest_addoption(parser):  # type: ignore[no-untyped-def]
    group = parser.getgroup("mutation-report", "mutation report")
    group.addoption(
        "--mutation-report",
        default=None,
        metavar="DIR",
        help="Write the mutation report to DIR (enables the plugin)",
    )
    group.addoption(
        "--mutation-source-root",
        action="append",
        default=[],
        metavar="DIR",
        help="Directory to search for mutated sources (repeatable, searched in order)",
    )
    group.addoption(
        "--mutation-coverage",
        default=None,
        metavar="FILE",
        help="JSON line coverage per class: {class: {line: [test ids]}}",
    )
    group.addoption(
        "--mutation-log-level",
        default=None,
        help="Log level for the mutation report",
    )


def pytest_configure(config):  # type: ignore[no-untyped-def]
    if config.getoption("mutation_report", default=None):
        config.pluginmanager.register(MutationReportPlugin(config), "mutation-report-plugin")


@pytest.fixture
def record_mutation_metadata(record_property):  # type: ignore[no-untyped-def]
    """Attach mutation results to the current test's report."""

    def record(metadata: MutationMetaData | dict[str, Any]) -> None:
        record_property(METADATA_PROPERTY, metadata)

    return record


def _build_locators(config) -> list[SourceLocator]:  # type: ignore[no-untyped-def]
    locators: list[SourceLocator] = [
        DirectorySourceLocator(root)
        for root in config.getoption("mutation_source_root", default=[])
    ]
    locators.append(DirectorySourceLocator(str(config.rootpath)))
    locators.append(SysPathSourceLocator())
    return locators


def _metadata_from_report(report) -> list[MutationMetaData]:  # type: ignore[no-untyped-def]
    found: list[MutationMetaData] = []
    for name, value in getattr(report, "user_properties", ()):
        if name != METADATA_PROPERTY:
            continue
        if isinstance(value, MutationMetaData):
            found.append(value)
        elif isinstance(value, dict):
            found.append(MutationMetaData.from_dict(value))
        else:
            logger.warning(
                "ignoring %s on %s: expected MutationMetaData or dict, got %s",
                METADATA_PROPERTY,
                report.nodeid,
                type(value).__name__,
            )
    return found


def _is_final_phase(report) -> bool:  # type: ignore[no-untyped-def]
    """One report per test: the call phase, or setup when the test never ran."""
    if report.when == "call":
        return True
    return report.when == "setup" and not report.passed


class MutationReportPlugin:
    def __init__(self, config):  # type: ignore[no-untyped-def]
        self.config = config
        log_level = config.getoption("mutation_log_level", default=None)
        if log_level:
            set_global_log_level(log_level)

        coverage_path = config.getoption("mutation_coverage", default=None)
        coverage = CoverageMap.load(coverage_path) if coverage_path else CoverageMap()

        self.driver = ReportDriver(
            coverage,
            DirectoryOutputStrategy(config.getoption("mutation_report")),
            locators=_build_locators(config),
        )

    def pytest_sessionstart(self, session):  # type: ignore[no-untyped-def]
        self.driver.on_run_start()

    def pytest_runtest_logreport(self, report):  # type: ignore[no-untyped-def]
        if not _is_final_phase(report):
            return
        for metadata in _metadata_from_report(report):
            self.driver.on_test_result(
                TestResult(
                    test_id=report.nodeid,
                    outcome=report.outcome,
                    values={MutationMetaData: metadata},
                )
            )

    def pytest_sessionfinish(self, session, exitstatus):  # type: ignore[no-untyped-def]
        self.driver.on_run_end()

    def pytest_terminal_summary(self, terminalreporter):  # type: ignore[no-untyped-def]
        if self.driver.state is DriverState.DONE:
            terminalreporter.write(
                format_terminal_summary(
                    self.driver.global_totals, self.driver.packages.values()
                )
            )
