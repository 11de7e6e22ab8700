"""Tests for leela_report.aggregate — package aggregation and totals."""

import threading

import pytest

from leela_report.aggregate import PackageAggregate, sum_totals
from leela_report.errors import LifecycleViolation
from leela_report.models import FileSummary, Totals


def _make_summary(
    file_name: str = "Foo.java",
    totals: Totals = Totals(4, 2, 1, 1),
    package_name: str = "com.example",
) -> FileSummary:
    return FileSummary(
        package_name=package_name,
        file_name=file_name,
        classes=frozenset({f"{package_name}.{file_name.split('.')[0]}"}),
        records=(),
        tests=(),
        mutators=frozenset(),
        totals=totals,
    )


def describe_sum_totals():
    def it_returns_identity_for_nothing():
        assert sum_totals([]) == Totals()

    def it_combines_all_totals():
        assert sum_totals([Totals(1, 1, 0, 0), Totals(2, 0, 1, 1)]) == Totals(3, 1, 1, 1)

    def it_does_not_depend_on_order():
        items = [Totals(1, 1, 0, 0), Totals(2, 0, 1, 1), Totals(5, 3, 2, 0)]
        assert sum_totals(items) == sum_totals(reversed(items))


def describe_package_aggregate():
    def describe_merge():
        def it_creates_a_package_on_first_merge():
            agg = PackageAggregate()
            fs = _make_summary()
            ps = agg.merge("com.example", fs)
            assert "com.example" in agg
            assert ps.output_directory == "com/example"
            assert ps.file_summaries == [fs]
            assert ps.totals == fs.totals

        def it_appends_to_an_existing_package():
            agg = PackageAggregate()
            agg.merge("com.example", _make_summary("Foo.java"))
            ps = agg.merge("com.example", _make_summary("Bar.java", Totals(1, 1, 0, 0)))
            assert len(agg) == 1
            assert [fs.file_name for fs in ps.file_summaries] == ["Foo.java", "Bar.java"]
            assert ps.totals == Totals(5, 3, 1, 1)

        def it_returns_the_same_summary_object_for_a_package():
            agg = PackageAggregate()
            assert agg.merge("p", _make_summary()) is agg.merge("p", _make_summary())

        def it_counts_the_same_file_twice_when_merged_twice():
            agg = PackageAggregate()
            fs = _make_summary()
            agg.merge("com.example", fs)
            ps = agg.merge("com.example", fs)
            assert ps.totals == Totals(8, 4, 2, 2)

        def it_rejects_merges_after_freeze():
            agg = PackageAggregate()
            agg.freeze()
            with pytest.raises(LifecycleViolation):
                agg.merge("com.example", _make_summary())
            assert len(agg) == 0

        def it_rejects_a_merge_frozen_between_lookup_and_append(monkeypatch):
            agg = PackageAggregate()
            agg.merge("p", _make_summary())
            lookup = agg._entry

            def lookup_then_freeze(package_name):
                entry = lookup(package_name)
                agg._frozen = True
                return entry

            monkeypatch.setattr(agg, "_entry", lookup_then_freeze)
            with pytest.raises(LifecycleViolation):
                agg.merge("p", _make_summary("Late.java"))
            assert [fs.file_name for fs in agg["p"].file_summaries] == ["Foo.java"]

        def it_loses_no_updates_under_concurrent_merges():
            agg = PackageAggregate()
            start = threading.Barrier(8)

            def worker(n):
                start.wait()
                for i in range(50):
                    agg.merge(f"pkg{i % 3}", _make_summary(f"F{n}_{i}.java", Totals(1, 1, 0, 0)))

            threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
            assert agg.totals() == Totals(400, 400, 0, 0)
            assert sum(len(p.file_summaries) for p in agg.values()) == 400

    def it_keeps_packages_in_first_merge_order():
        agg = PackageAggregate()
        for name in ("b", "a", "b", "c"):
            agg.merge(name, _make_summary(package_name=name))
        assert [p.package_name for p in agg.values()] == ["b", "a", "c"]

    def it_folds_global_totals_regardless_of_merge_order():
        summaries = [
            ("a", _make_summary("A.java", Totals(3, 1, 1, 1), "a")),
            ("b", _make_summary("B.java", Totals(2, 2, 0, 0), "b")),
            ("a", _make_summary("C.java", Totals(1, 0, 1, 0), "a")),
        ]
        forward, backward = PackageAggregate(), PackageAggregate()
        for name, fs in summaries:
            forward.merge(name, fs)
        for name, fs in reversed(summaries):
            backward.merge(name, fs)
        assert forward.totals() == backward.totals() == Totals(6, 3, 2, 1)

    def it_keeps_package_totals_equal_to_the_fold_of_its_files():
        agg = PackageAggregate()
        for i in range(5):
            ps = agg.merge("p", _make_summary(f"F{i}.java", Totals(i + 1, i, 1, 0)))
            assert ps.totals == sum_totals(fs.totals for fs in ps.file_summaries)

    def it_reports_frozen_state():
        agg = PackageAggregate()
        assert agg.frozen is False
        agg.freeze()
        assert agg.frozen is True

    def describe_freeze():
        def it_waits_for_a_merge_that_is_appending():
            agg = PackageAggregate()
            agg.merge("p", _make_summary())
            package_lock = agg._locks["p"]
            package_lock.acquire()
            freezer = threading.Thread(target=agg.freeze)
            try:
                freezer.start()
                freezer.join(timeout=0.1)
                assert freezer.is_alive()
            finally:
                package_lock.release()
            freezer.join(timeout=5)
            assert not freezer.is_alive()
            assert agg.frozen is True
