"""Per-class line coverage consumed by the report core."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol


class CoverageDatabase(Protocol):
    """Answers which tests executed a line of a class."""

    def is_line_covered(self, class_name: str, lineno: int) -> bool: ...

    def tests_for(self, class_name: str, lineno: int) -> set[str]: ...


@dataclass
class CoverageMap:
    """Maps (class name, line) to the tests that execute it."""

    line_to_tests: dict[tuple[str, int], set[str]] = field(default_factory=dict)

    def tests_for(self, class_name: str, lineno: int) -> set[str]:
        return self.line_to_tests.get((class_name, lineno), set())

    def add(self, class_name: str, lineno: int, test_id: str) -> None:
        key = (class_name, lineno)
        if key not in self.line_to_tests:
            self.line_to_tests[key] = set()
        self.line_to_tests[key].add(test_id)

    def is_line_covered(self, class_name: str, lineno: int) -> bool:
        return bool(self.line_to_tests.get((class_name, lineno)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Iterable[str]]]) -> CoverageMap:
        """Load ``{"pkg.Class": {"12": ["test id", ...]}}``."""
        coverage = cls()
        for class_name, lines in data.items():
            for lineno, test_ids in lines.items():
                for test_id in test_ids:
                    coverage.add(class_name, int(lineno), test_id)
        return coverage

    @classmethod
    def load(cls, path: str) -> CoverageMap:
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


def is_covered(coverage: CoverageDatabase, classes: Iterable[str], lineno: int) -> bool:
    """True when any of ``classes`` reports ``lineno`` as executed.

    A single physical line may belong to several compiled classes (nested
    or inner classes), so coverage is the disjunction over all of them.
    """
    return any(coverage.is_line_covered(c, lineno) for c in sorted(classes))


def covering_tests(coverage: CoverageDatabase, classes: Iterable[str], lineno: int) -> list[str]:
    """Sorted ids of the tests that execute ``lineno`` in any of ``classes``."""
    tests: set[str] = set()
    for class_name in classes:
        tests.update(coverage.tests_for(class_name, lineno))
    return sorted(tests)
