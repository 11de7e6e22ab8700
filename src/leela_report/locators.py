"""Strategies for finding the source text of a mutated file."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Sequence
from typing import Protocol

from leela_report.log import get_logger

logger = get_logger(__name__)


class SourceLocator(Protocol):
    def locate(self, class_names: Sequence[str], file_name: str) -> str | None: ...


def _candidate_paths(root: str, class_names: Sequence[str], file_name: str) -> list[str]:
    """Paths under ``root`` where ``file_name`` may live, most specific first.

    ``pkg.sub.Outer$Inner`` and ``pkg.sub.Outer`` both point at
    ``root/pkg/sub/<file_name>``.
    """
    candidates: list[str] = []
    for class_name in class_names:
        package, _, _ = class_name.rpartition(".")
        parts = [p for p in package.split(".") if p]
        path = os.path.join(root, *parts, file_name)
        if path not in candidates:
            candidates.append(path)
    bare = os.path.join(root, file_name)
    if bare not in candidates:
        candidates.append(bare)
    return candidates


def _read_text(path: str) -> str | None:
    if not os.path.isfile(path):
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("could not read source %s: %s", path, exc)
        return None


class DirectorySourceLocator:
    """Looks for sources below a single directory, laid out by package."""

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)

    def __repr__(self) -> str:
        return f"DirectorySourceLocator({self.root!r})"

    def locate(self, class_names: Sequence[str], file_name: str) -> str | None:
        for path in _candidate_paths(self.root, class_names, file_name):
            text = _read_text(path)
            if text is not None:
                return text
        return None


class SysPathSourceLocator:
    """Applies the directory strategy to each ``sys.path`` entry in order."""

    def __init__(self, paths: Iterable[str] | None = None) -> None:
        self.paths = list(paths) if paths is not None else None

    def __repr__(self) -> str:
        return f"SysPathSourceLocator({self.paths!r})"

    def locate(self, class_names: Sequence[str], file_name: str) -> str | None:
        entries = self.paths if self.paths is not None else list(sys.path)
        for entry in entries:
            # "" on sys.path means the current directory
            if not os.path.isdir(entry or "."):
                continue
            text = DirectorySourceLocator(entry or ".").locate(class_names, file_name)
            if text is not None:
                return text
        return None


def find_source(
    locators: Sequence[SourceLocator], class_names: Iterable[str], file_name: str
) -> str | None:
    """Source text from the first locator that finds ``file_name``."""
    names = sorted(class_names)
    for locator in locators:
        text = locator.locate(names, file_name)
        if text is not None:
            return text
    return None
