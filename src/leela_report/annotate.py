"""Annotate source lines with coverage and mutation results."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from leela_report.coverage import CoverageDatabase, covering_tests, is_covered
from leela_report.grouping import group_by_line
from leela_report.locators import SourceLocator, find_source
from leela_report.log import get_logger
from leela_report.models import AnnotatedSourceReport, FileSummary, Line, MutationRecord
from leela_report.summary import Outcome, effective_outcome

logger = get_logger(__name__)


def split_source_lines(text: str) -> list[str]:
    """Split on \\n, \\r and \\r\\n only, the way compilers number lines.

    ``str.splitlines`` also breaks on form feeds and unicode separators,
    which would shift every later line number.
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def annotate(
    source_lines: Sequence[str],
    grouping: Mapping[int, Sequence[MutationRecord]],
    classes: Iterable[str],
    coverage: CoverageDatabase,
    file_name: str = "<unknown>",
) -> list[Line]:
    """Build one ``Line`` per source line, numbered from 1."""
    classes = frozenset(classes)
    lines = [
        Line(
            number=number,
            text=text,
            covered=is_covered(coverage, classes, number),
            mutations=tuple(grouping.get(number, ())),
            tests=tuple(covering_tests(coverage, classes, number)),
        )
        for number, text in enumerate(source_lines, start=1)
    ]

    orphaned = sorted(n for n in grouping if n > len(lines))
    if orphaned:
        logger.warning(
            "%s has %d source lines but mutations were recorded on lines %s",
            file_name,
            len(lines),
            ", ".join(str(n) for n in orphaned),
        )
    return lines


def create_annotated_source_lines(
    locators: Sequence[SourceLocator],
    file_name: str,
    records: Sequence[MutationRecord],
    classes: Iterable[str],
    coverage: CoverageDatabase,
    grouping: Mapping[int, Sequence[MutationRecord]] | None = None,
) -> list[Line]:
    """Annotated lines of ``file_name``, or ``[]`` when no locator finds it."""
    classes = frozenset(classes)
    text = find_source(locators, classes, file_name)
    if text is None:
        logger.warning(
            "source for %s (classes %s) not found, report will have no lines",
            file_name,
            ", ".join(sorted(classes)) or "-",
        )
        return []
    if grouping is None:
        grouping = group_by_line(records)
    return annotate(split_source_lines(text), grouping, classes, coverage, file_name=file_name)


def create_annotated_source_file(
    locators: Sequence[SourceLocator],
    summary: FileSummary,
    coverage: CoverageDatabase,
) -> AnnotatedSourceReport:
    grouping = group_by_line(summary.records)
    lines = create_annotated_source_lines(
        locators,
        summary.file_name,
        summary.records,
        summary.classes,
        coverage,
        grouping=grouping,
    )
    return AnnotatedSourceReport(
        file_name=summary.file_name, lines=lines, mutations_by_line=grouping
    )


def line_status(line: Line) -> str:
    """CSS-style class for a line: killed, survived, uncovered or ``""``."""
    if not line.mutations:
        return ""
    outcomes = {effective_outcome(m, line.covered) for m in line.mutations}
    if Outcome.NO_COVERAGE in outcomes:
        return "uncovered"
    if Outcome.SURVIVED in outcomes:
        return "survived"
    return "killed"
