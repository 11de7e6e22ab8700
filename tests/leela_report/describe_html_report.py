"""Tests for leela_report.html_report — report pages and payloads."""

import json

from leela_report.html_report import (
    _escape_json_for_html,
    build_global_index_payload,
    build_package_index_payload,
    build_source_file_payload,
    format_test_name,
    render_global_index,
    render_package_index,
    render_source_file,
)
from leela_report.models import (
    AnnotatedSourceReport,
    FileSummary,
    Line,
    MutationRecord,
    MutationStatus,
    PackageSummary,
    Totals,
)

FOO = "com.example.Foo"


def _make_summary(file_name: str = "Foo.java", totals: Totals = Totals(2, 1, 1, 0)) -> FileSummary:
    return FileSummary(
        package_name="com.example",
        file_name=file_name,
        classes=frozenset({FOO}),
        records=(),
        tests=("tests/describe_foo.py::describe_foo::it_adds",),
        mutators=frozenset({"NEGATE", "MATH"}),
        totals=totals,
    )


def _make_source_file() -> AnnotatedSourceReport:
    killed = MutationRecord(MutationStatus.KILLED, 1, "MATH", FOO, killing_test="t::test_add")
    survived = MutationRecord(MutationStatus.SURVIVED, 2, "NEGATE", FOO, description="</script>")
    return AnnotatedSourceReport(
        file_name="Foo.java",
        lines=[
            Line(1, "int a = b + c;", True, (killed,), ("com.example.FooTest.testAdd",)),
            Line(2, "return -a;", True, (survived,)),
            Line(3, "}", False),
        ],
        mutations_by_line={1: [killed], 2: [survived]},
    )


def _make_package() -> PackageSummary:
    return PackageSummary(
        "com.example",
        "com/example",
        [_make_summary("Foo.java"), _make_summary("Bar.java", Totals(1, 1, 0, 0))],
    )


def describe_format_test_name():
    def it_strips_test_and_describe_prefixes():
        assert format_test_name("tests/test_views.py::TestHomeView::test_get") == "TestHomeView > get"
        assert (
            format_test_name("tests/describe_foo.py::describe_bar::it_does_thing")
            == "bar > does thing"
        )

    def it_handles_parametrized_tests():
        assert format_test_name("tests/test_x.py::TestClass::test_method[param1]") == (
            "TestClass > method[param1]"
        )

    def describe_junit_ids():
        def it_shows_the_simple_class_and_method_in_words():
            assert format_test_name("com.example.FooTest.testAdd") == "FooTest > add"
            assert (
                format_test_name("com.example.FooTest.testAddsTwoNumbers")
                == "FooTest > adds two numbers"
            )

        def it_reads_the_method_of_class_description():
            assert format_test_name("shouldReject(com.example.FooTest)") == "FooTest > should reject"

        def it_keeps_parametrized_suffixes():
            assert format_test_name("com.example.FooTest.testAdd[2]") == "FooTest > add[2]"

        def it_shows_a_bare_class_name():
            assert format_test_name("com.example.FooTest") == "FooTest"

    def it_returns_unrecognised_ids_unchanged():
        assert format_test_name("bare_name") == "bare_name"

    def it_returns_raw_id_when_nothing_remains():
        assert format_test_name("tests/test_x.py::test_") == "tests/test_x.py::test_"


def describe_escape_json_for_html():
    def it_escapes_closing_tags():
        assert _escape_json_for_html('"</script>"') == '"<\\/script>"'

    def it_keeps_valid_json():
        assert json.loads(_escape_json_for_html(json.dumps("</b>"))) == "</b>"


def describe_build_source_file_payload():
    def it_describes_every_line():
        payload = build_source_file_payload(_make_source_file(), _make_summary())
        lines = payload["source_file"]["lines"]
        assert [l["number"] for l in lines] == [1, 2, 3]
        assert [l["status"] for l in lines] == ["killed", "survived", ""]
        assert lines[0]["mutations"][0]["killing_test"] == {"display": "add", "id": "t::test_add"}
        assert lines[1]["mutations"][0]["killing_test"] is None

    def it_lists_the_tests_covering_each_line():
        lines = build_source_file_payload(_make_source_file(), _make_summary())["source_file"]["lines"]
        assert lines[0]["tests"] == [
            {"display": "FooTest > add", "id": "com.example.FooTest.testAdd"}
        ]
        assert lines[2]["tests"] == []

    def it_lists_tests_mutators_and_classes():
        payload = build_source_file_payload(_make_source_file(), _make_summary())
        assert payload["tests"] == [
            {"display": "foo > adds", "id": "tests/describe_foo.py::describe_foo::it_adds"}
        ]
        assert payload["mutators"] == ["MATH", "NEGATE"]
        assert payload["mutated_classes"] == [FOO]

    def it_keys_mutations_by_line():
        payload = build_source_file_payload(_make_source_file(), _make_summary())
        assert list(payload["source_file"]["mutations_by_line"]) == ["1", "2"]


def describe_index_payloads():
    def it_reports_package_totals_and_files():
        data = build_package_index_payload(_make_package())["package_data"]
        assert data["totals"] == Totals(3, 2, 1, 0).as_dict()
        assert [f["file"] for f in data["files"]] == ["Foo.java", "Bar.java"]

    def it_reports_global_totals_and_packages():
        package = _make_package()
        payload = build_global_index_payload(package.totals, [package])
        assert payload["totals"] == package.totals.as_dict()
        assert payload["package_summaries"][0]["directory"] == "com/example"


def describe_render():
    def it_escapes_source_text_and_embedded_data():
        page = render_source_file(_make_source_file(), _make_summary())
        assert "int a = b + c;" in page
        assert page.count("</script>") == 1
        assert 'class="survived"' in page

    def it_links_files_from_the_package_index():
        page = render_package_index(_make_package())
        assert 'href="Foo.java.html"' in page
        assert 'href="Bar.java.html"' in page

    def it_links_packages_from_the_global_index():
        package = _make_package()
        page = render_global_index(package.totals, [package])
        assert 'href="com/example/index.html"' in page
        assert "66.7%" in page
