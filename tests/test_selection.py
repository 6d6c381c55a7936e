"""Tests for query number extraction and query selection."""

from __future__ import annotations

import pytest

from tests.conftest import make_config
from tpcdsbench.benchmark.selection import QuerySelector, query_number


class TestQueryNumber:
    """Tests for query_number()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("q1", 1),
            ("q14a", 14),
            ("q14b", 14),
            ("q99", 99),
            ("qNoDigits", 0),
            ("q", 0),
            ("", 0),
            ("xq7", 7),
            ("q2x", 2),
        ],
    )
    def test_extraction(self, name, expected):
        assert query_number(name) == expected

    def test_suffix_marker_cuts_before_digits(self):
        # "a" comes before any digit, so nothing numeric is left
        assert query_number("qa12") == 0

    def test_only_first_q_counts(self):
        assert query_number("q5q6") == 5


class TestQuerySelector:
    """Tests for QuerySelector."""

    def test_cherry_pick_overrides_everything(self):
        selector = QuerySelector(
            query_offset=50,
            query_limit=0,
            skipped=frozenset({3, 7}),
            cherry_picked=frozenset({3, 7}),
        )
        assert selector.select(["q1", "q3", "q5", "q7"]) == ["q3", "q7"]

    def test_range_and_skip(self):
        selector = QuerySelector(query_offset=5, query_limit=10, skipped=frozenset({7}))
        assert selector.accepts(6)
        assert not selector.accepts(7)
        assert not selector.accepts(16)

    def test_range_is_inclusive(self):
        selector = QuerySelector(query_offset=5, query_limit=10)
        assert selector.accepts(5)
        assert selector.accepts(15)
        assert not selector.accepts(4)

    def test_defaults_run_everything(self):
        selector = QuerySelector()
        assert all(selector.accepts(n) for n in range(1, 100))

    def test_defaults_skip_unnumbered(self):
        assert not QuerySelector().should_run("qNoDigits")

    def test_variants_share_number(self):
        selector = QuerySelector(skipped=frozenset({14}))
        assert selector.select(["q13", "q14a", "q14b", "q15"]) == ["q13", "q15"]

    def test_select_sorts_lexically(self):
        assert QuerySelector().select(["q2", "q10", "q1"]) == ["q1", "q10", "q2"]

    def test_from_config(self):
        cfg = make_config(
            query_offset=3,
            query_limit=4,
            skipped_queries="5",
            cherry_picked_queries="",
        )
        selector = QuerySelector.from_config(cfg)
        assert selector == QuerySelector(
            query_offset=3, query_limit=4, skipped=frozenset({5}), cherry_picked=frozenset()
        )
        assert not cfg.cherry_pick_mode
