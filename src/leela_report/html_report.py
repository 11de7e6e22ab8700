"""HTML rendering of the per-file, per-package and global report payloads.

Each page is a small static document: a table for people and the payload
as inline JSON for tooling.
"""

from __future__ import annotations

import html
import json
import re
from collections.abc import Iterable, Sequence
from typing import Any

from leela_report.annotate import line_status
from leela_report.models import (
    AnnotatedSourceReport,
    FileSummary,
    MutationRecord,
    PackageSummary,
    Totals,
)


_JUNIT_DESCRIPTION = re.compile(r"^(?P<method>[^()\s]+)\((?P<cls>[\w.$]+)\)$")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _split_suffix(part: str) -> tuple[str, str]:
    """Split off a parametrize suffix such as ``[param1]``."""
    if "[" in part:
        idx = part.index("[")
        return part[:idx], part[idx:]
    return part, ""


def _format_pytest_id(parts: list[str]) -> list[str]:
    cleaned: list[str] = []
    for part in parts:
        part, suffix = _split_suffix(part)
        for prefix in ("test_", "describe_", "it_", "context_"):
            if part.startswith(prefix):
                part = part[len(prefix):]
                break
        part = part.replace("_", " ")
        if part:
            cleaned.append(part + suffix)
    return cleaned


def _format_junit_id(test_id: str) -> list[str]:
    match = _JUNIT_DESCRIPTION.match(test_id)
    if match:
        class_name, method = match.group("cls"), match.group("method")
    else:
        class_name, _, method = test_id.rpartition(".")
        if not class_name:
            return []
        if method[:1].isupper():
            # no method: the whole id is a class name
            return [method]

    method, suffix = _split_suffix(method)
    if method.startswith("test") and method[4:5].isupper():
        method = method[4:]
    elif method.startswith("test_"):
        method = method[5:]
    words = _CAMEL_BOUNDARY.sub(" ", method).replace("_", " ").strip().lower()
    simple_class = class_name.rpartition(".")[2]
    if not words:
        return [simple_class]
    return [simple_class, words + suffix]


def format_test_name(test_id: str) -> str:
    """Pretty-print a test identifier for human consumption.

    pytest node IDs are split on ``::`` and lose their ``test_``,
    ``describe_``, ``it_`` and ``context_`` prefixes.  JUnit identifiers,
    either ``pkg.FooTest.testBar`` or ``testBar(pkg.FooTest)``, become the
    simple class name and the method name in words.  Anything else is
    returned unchanged.

    Examples::

        "tests/describe_foo.py::describe_bar::it_does_thing" -> "bar > does thing"
        "tests/test_x.py::TestClass::test_method[param1]" -> "TestClass > method[param1]"
        "com.example.FooTest.testAddsTwoNumbers" -> "FooTest > adds two numbers"
        "shouldReject(com.example.FooTest)" -> "FooTest > should reject"
    """
    if "::" in test_id:
        cleaned = _format_pytest_id(test_id.split("::")[1:])
    else:
        cleaned = _format_junit_id(test_id)

    if not cleaned:
        return test_id

    return " > ".join(cleaned)


def _escape_json_for_html(json_str: str) -> str:
    """Escape JSON for safe embedding in HTML script tags.

    Replaces ``</`` with ``<\\/`` to prevent premature script tag closure.
    ``\\/`` is valid JSON (RFC 8259 section 7) and evaluates to ``/`` at runtime.
    """
    return json_str.replace("</", "<\\/")


def _mutation_data(record: MutationRecord) -> dict[str, Any]:
    return {
        "status": record.status.value,
        "lineno": record.lineno,
        "mutator": record.mutator,
        "class": record.owner_class,
        "method": record.method,
        "description": record.description,
        "killing_test": (
            {"display": format_test_name(record.killing_test), "id": record.killing_test}
            if record.killing_test
            else None
        ),
    }


def _package_data(package: PackageSummary) -> dict[str, Any]:
    return {
        "package": package.package_name,
        "directory": package.output_directory,
        "totals": package.totals.as_dict(),
        "files": [
            {"file": fs.file_name, "totals": fs.totals.as_dict()}
            for fs in package.file_summaries
        ],
    }


def build_source_file_payload(
    source_file: AnnotatedSourceReport, summary: FileSummary
) -> dict[str, Any]:
    """Payload of a per-file report."""
    return {
        "source_file": {
            "file": source_file.file_name,
            "lines": [
                {
                    "number": line.number,
                    "text": line.text,
                    "covered": line.covered,
                    "status": line_status(line),
                    "mutations": [_mutation_data(m) for m in line.mutations],
                    "tests": [{"display": format_test_name(t), "id": t} for t in line.tests],
                }
                for line in source_file.lines
            ],
            "mutations_by_line": {
                str(n): [_mutation_data(m) for m in records]
                for n, records in sorted(source_file.mutations_by_line.items())
            },
        },
        "tests": [{"display": format_test_name(t), "id": t} for t in summary.tests],
        "mutators": sorted(summary.mutators),
        "mutated_classes": sorted(summary.classes),
        "totals": summary.totals.as_dict(),
    }


def build_package_index_payload(package: PackageSummary) -> dict[str, Any]:
    return {"package_data": _package_data(package)}


def build_global_index_payload(
    totals: Totals, packages: Sequence[PackageSummary]
) -> dict[str, Any]:
    return {
        "totals": totals.as_dict(),
        "package_summaries": [_package_data(p) for p in packages],
    }


def _totals_row(label: str, totals: Totals, href: str | None = None) -> str:
    name = html.escape(label)
    if href is not None:
        name = f'<a href="{html.escape(href)}">{name}</a>'
    return (
        f"<tr><td>{name}</td><td>{totals.generated}</td><td>{totals.killed}</td>"
        f"<td>{totals.survived}</td><td>{totals.no_coverage}</td>"
        f"<td>{totals.mutation_score:.1f}%</td></tr>"
    )


_TOTALS_HEADER = (
    "<tr><th>Name</th><th>Mutations</th><th>Killed</th><th>Survived</th>"
    "<th>No coverage</th><th>Score</th></tr>"
)


def _page(title: str, body: Iterable[str], payload: dict[str, Any]) -> str:
    data = _escape_json_for_html(json.dumps(payload))
    body_html = "\n".join(body)
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{html.escape(title)}</title>
<style>
body {{ font-family: -apple-system, "Segoe UI", Roboto, Helvetica, Arial, sans-serif; }}
table {{ border-collapse: collapse; }}
td, th {{ padding: 2px 8px; text-align: left; }}
pre {{ margin: 0; }}
tr.killed {{ background: #a6e3a1; }}
tr.survived {{ background: #f38ba8; }}
tr.uncovered {{ background: #fab387; }}
td.covered {{ border-left: 3px solid #a6e3a1; }}
</style>
</head>
<body>
<h1>{html.escape(title)}</h1>
{body_html}
<script id="report-data" type="application/json">{data}</script>
</body>
</html>
"""


def render_source_file(source_file: AnnotatedSourceReport, summary: FileSummary) -> str:
    """Annotated source listing of one file."""
    payload = build_source_file_payload(source_file, summary)
    body = ["<table>", _TOTALS_HEADER, _totals_row(summary.file_name, summary.totals), "</table>"]

    body.append("<table class=\"source\">")
    for line in source_file.lines:
        status = line_status(line)
        row_class = f' class="{status}"' if status else ""
        cell_class = ' class="covered"' if line.covered else ""
        notes = "<br>".join(
            html.escape(f"{m.status.value}: {m.description or m.mutator}")
            for m in line.mutations
        )
        body.append(
            f"<tr{row_class}><td{cell_class}>{line.number}</td>"
            f"<td><pre>{html.escape(line.text)}</pre></td><td>{notes}</td></tr>"
        )
    body.append("</table>")

    body.append("<h2>Mutators</h2><ul>")
    body.extend(f"<li>{html.escape(m)}</li>" for m in sorted(summary.mutators))
    body.append("</ul><h2>Tests examined</h2><ul>")
    body.extend(f"<li>{html.escape(format_test_name(t))}</li>" for t in summary.tests)
    body.append("</ul>")
    return _page(summary.file_name, body, payload)


def render_package_index(package: PackageSummary) -> str:
    body = ["<table>", _TOTALS_HEADER]
    body.extend(
        _totals_row(fs.file_name, fs.totals, href=f"{fs.file_name}.html")
        for fs in package.file_summaries
    )
    body.append(_totals_row("Total", package.totals))
    body.append("</table>")
    return _page(package.package_name or "(default)", body, build_package_index_payload(package))


def render_global_index(totals: Totals, packages: Sequence[PackageSummary]) -> str:
    body = ["<table>", _TOTALS_HEADER]
    body.extend(
        _totals_row(
            p.package_name or "(default)", p.totals, href=f"{p.output_directory}/index.html"
        )
        for p in packages
    )
    body.append(_totals_row("Total", totals))
    body.append("</table>")
    return _page("Mutation report", body, build_global_index_payload(totals, packages))
