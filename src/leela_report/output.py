"""Report destinations and plain-text summaries."""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from typing import Protocol, TextIO

from leela_report.models import PackageSummary, Totals


class ResultOutputStrategy(Protocol):
    """Creates writers for report paths relative to the report root."""

    def create_writer(self, relative_path: str) -> TextIO: ...


class DirectoryOutputStrategy:
    """Writes reports below a directory, creating subdirectories as needed."""

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)

    def __repr__(self) -> str:
        return f"DirectoryOutputStrategy({self.root!r})"

    def path_for(self, relative_path: str) -> str:
        path = os.path.normpath(os.path.join(self.root, relative_path))
        if os.path.commonpath([self.root, path]) != self.root:
            raise ValueError(f"report path escapes {self.root}: {relative_path}")
        return path

    def create_writer(self, relative_path: str) -> TextIO:
        path = self.path_for(relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        return open(path, "w", encoding="utf-8")


def format_terminal_summary(totals: Totals, packages: Sequence[PackageSummary]) -> str:
    """Format a terminal-friendly summary of a finished run."""
    lines: list[str] = []

    lines.append("")
    lines.append("=" * 70)
    lines.append("mutation report")
    lines.append("=" * 70)

    for package in sorted(packages, key=lambda p: p.package_name):
        t = package.totals
        n_files = len(package.file_summaries)
        file_label = "file" if n_files == 1 else "files"
        lines.append(
            f"  {package.package_name or '(default)':<30s} {t.killed}/{t.generated} killed "
            f"({t.mutation_score:.1f}%), {t.survived} survived, "
            f"{t.no_coverage} no coverage [{n_files} {file_label}]"
        )

    lines.append("")
    lines.append(
        f"Overall: {totals.killed}/{totals.generated} killed "
        f"({totals.mutation_score:.1f}%), {totals.survived} survived, "
        f"{totals.no_coverage} without coverage"
    )
    lines.append("")

    return "\n".join(lines)


def format_json_summary(totals: Totals, packages: Sequence[PackageSummary]) -> str:
    """Format the run summary as JSON."""
    data = {
        "totals": totals.as_dict(),
        "packages": [
            {
                "package": p.package_name,
                "directory": p.output_directory,
                "files": sorted({fs.file_name for fs in p.file_summaries}),
                "totals": p.totals.as_dict(),
            }
            for p in packages
        ],
    }
    return json.dumps(data, indent=2)
