"""Per-file mutation summaries and the killed/survived/no-coverage rule."""

from __future__ import annotations

import enum
from collections.abc import Iterable

from leela_report.coverage import CoverageDatabase, is_covered
from leela_report.models import FileSummary, MutationRecord, Totals


class Outcome(enum.Enum):
    KILLED = "killed"
    SURVIVED = "survived"
    NO_COVERAGE = "no_coverage"


def effective_outcome(record: MutationRecord, covered: bool) -> Outcome:
    """Classify a mutation for reporting.

    Every status other than SURVIVED counts as detected. A survivor on a
    line no test executed is a coverage gap rather than a weak test.
    """
    if record.status.detected:
        return Outcome.KILLED
    if covered:
        return Outcome.SURVIVED
    return Outcome.NO_COVERAGE


def count_outcomes(outcomes: Iterable[Outcome]) -> Totals:
    killed = survived = no_coverage = 0
    for outcome in outcomes:
        if outcome is Outcome.KILLED:
            killed += 1
        elif outcome is Outcome.SURVIVED:
            survived += 1
        else:
            no_coverage += 1
    return Totals(
        generated=killed + survived + no_coverage,
        killed=killed,
        survived=survived,
        no_coverage=no_coverage,
    )


def build_file_summary(
    package_name: str,
    file_name: str,
    classes: Iterable[str],
    records: Iterable[MutationRecord],
    tests: Iterable[str],
    mutators: Iterable[str],
    coverage: CoverageDatabase,
) -> FileSummary:
    """Summarise the mutations of one source file."""
    classes = frozenset(classes)
    records = tuple(records)
    covered_lines: dict[int, bool] = {}
    outcomes = []
    for record in records:
        if record.lineno not in covered_lines:
            covered_lines[record.lineno] = is_covered(coverage, classes, record.lineno)
        outcomes.append(effective_outcome(record, covered_lines[record.lineno]))

    return FileSummary(
        package_name=package_name,
        file_name=file_name,
        classes=classes,
        records=records,
        tests=tuple(tests),
        mutators=frozenset(mutators),
        totals=count_outcomes(outcomes),
    )
