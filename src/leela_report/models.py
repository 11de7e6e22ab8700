"""Data models for mutation testing reports."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from leela_report.errors import InconsistentTotals


class MutationStatus(enum.Enum):
    """Outcome reported by the mutation engine for one mutant."""

    KILLED = "KILLED"
    SURVIVED = "SURVIVED"
    TIMED_OUT = "TIMED_OUT"
    NON_VIABLE = "NON_VIABLE"
    MEMORY_ERROR = "MEMORY_ERROR"
    RUN_ERROR = "RUN_ERROR"

    @property
    def detected(self) -> bool:
        return self is not MutationStatus.SURVIVED


@dataclass(frozen=True)
class MutationRecord:
    """One mutation outcome on a single source line."""

    status: MutationStatus
    lineno: int
    mutator: str
    owner_class: str
    method: str = ""
    killing_test: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if self.lineno < 1:
            raise ValueError(f"line numbers start at 1, got {self.lineno}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MutationRecord:
        return cls(
            status=MutationStatus[str(data["status"]).upper()],
            lineno=int(data["lineno"]),
            mutator=data["mutator"],
            owner_class=data["owner_class"],
            method=data.get("method", ""),
            killing_test=data.get("killing_test"),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class Totals:
    """Mutation counts, combinable with ``+`` (identity is ``Totals()``)."""

    generated: int = 0
    killed: int = 0
    survived: int = 0
    no_coverage: int = 0

    def __add__(self, other: Totals) -> Totals:
        if not isinstance(other, Totals):
            return NotImplemented
        return Totals(
            generated=self.generated + other.generated,
            killed=self.killed + other.killed,
            survived=self.survived + other.survived,
            no_coverage=self.no_coverage + other.no_coverage,
        )

    def check(self) -> Totals:
        """Return self, or raise if the counts do not add up."""
        if min(self.generated, self.killed, self.survived, self.no_coverage) < 0:
            raise InconsistentTotals(f"negative mutation count in {self}")
        if self.generated != self.killed + self.survived + self.no_coverage:
            raise InconsistentTotals(
                f"{self.generated} mutations generated but "
                f"{self.killed} killed + {self.survived} survived + "
                f"{self.no_coverage} without coverage"
            )
        return self

    @property
    def mutation_score(self) -> float:
        """Percentage of generated mutations that were killed."""
        if self.generated == 0:
            return 100.0
        return self.killed / self.generated * 100.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "generated": self.generated,
            "killed": self.killed,
            "survived": self.survived,
            "no_coverage": self.no_coverage,
            "mutation_score": round(self.mutation_score, 2),
        }


@dataclass(frozen=True)
class FileSummary:
    """Aggregate state for one source file, built from one test event."""

    package_name: str
    file_name: str
    classes: frozenset[str]
    records: tuple[MutationRecord, ...]
    tests: tuple[str, ...]
    mutators: frozenset[str]
    totals: Totals

    def __post_init__(self) -> None:
        self.totals.check()


def package_directory(package_name: str) -> str:
    """Output directory for a package: ``com.example`` -> ``com/example``."""
    if not package_name:
        return "default"
    return package_name.replace(".", "/")


@dataclass
class PackageSummary:
    """Accumulated file summaries of one package.

    ``totals`` is folded from ``file_summaries`` on every read, so it can
    never disagree with the collection.
    """

    package_name: str
    output_directory: str
    file_summaries: list[FileSummary] = field(default_factory=list)

    @property
    def totals(self) -> Totals:
        return sum((fs.totals for fs in self.file_summaries), Totals())


@dataclass(frozen=True)
class Line:
    """A source line annotated with coverage and its mutations."""

    number: int
    text: str
    covered: bool
    mutations: tuple[MutationRecord, ...] = ()
    tests: tuple[str, ...] = ()

    @property
    def has_mutations(self) -> bool:
        return bool(self.mutations)


@dataclass(frozen=True)
class AnnotatedSourceReport:
    """Line-indexed view of one source file."""

    file_name: str
    lines: list[Line]
    mutations_by_line: dict[int, list[MutationRecord]]


@dataclass(frozen=True)
class MutationMetaData:
    """Mutation results for one source file, attached to a test result."""

    package_name: str
    file_name: str
    classes: frozenset[str]
    records: tuple[MutationRecord, ...]
    tests: tuple[str, ...] = ()
    mutators: frozenset[str] = frozenset()

    @classmethod
    def create(
        cls,
        package_name: str,
        file_name: str,
        classes: Iterable[str],
        records: Iterable[MutationRecord],
        tests: Iterable[str] = (),
        mutators: Iterable[str] | None = None,
    ) -> MutationMetaData:
        records = tuple(records)
        if mutators is None:
            mutators = (r.mutator for r in records)
        return cls(
            package_name=package_name,
            file_name=file_name,
            classes=frozenset(classes),
            records=records,
            tests=tuple(tests),
            mutators=frozenset(mutators),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MutationMetaData:
        """Build metadata from a JSON-like mapping (statuses given by name)."""
        return cls.create(
            package_name=data["package_name"],
            file_name=data["file_name"],
            classes=data.get("classes", ()),
            records=(MutationRecord.from_dict(m) for m in data.get("mutations", ())),
            tests=data.get("tests", ()),
            mutators=data.get("mutators"),
        )
