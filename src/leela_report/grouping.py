"""Group mutation records by source line."""

from __future__ import annotations

from collections.abc import Iterable

from leela_report.models import MutationRecord


def group_by_line(records: Iterable[MutationRecord]) -> dict[int, list[MutationRecord]]:
    """Map each line number to its records, in input order.

    Lines without mutations are absent from the result.
    """
    by_line: dict[int, list[MutationRecord]] = {}
    for record in records:
        if record.lineno not in by_line:
            by_line[record.lineno] = []
        by_line[record.lineno].append(record)
    return by_line
