"""
Unit tests for PostgREST query encoding.
"""

from datetime import date

import pytest

from basecamp.store import Query
from basecamp.store.query import format_value, quote_value


class TestFormatValue:
    """Scalar rendering."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "null"),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (date(2026, 1, 10), "2026-01-10"),
            ("approved", "approved"),
        ],
    )
    def test_format(self, value, expected):
        assert format_value(value) == expected

    def test_quote_only_reserved(self):
        assert quote_value("plain") == "plain"
        assert quote_value("a,b") == '"a,b"'
        assert quote_value('say "hi"') == '"say \\"hi\\""'


class TestToParams:
    """Full GET parameter lists."""

    def test_default_projection(self):
        assert Query("tracks").to_params() == [("select", "*")]

    def test_select_strips_whitespace(self):
        query = Query("weeks").select("""
            *,
            lessons(*),
            assignments(*)
        """)

        assert query.columns == "*,lessons(*),assignments(*)"

    def test_filters_order_and_limit(self):
        query = (
            Query("submissions")
            .eq("status", "in_review")
            .gte("submitted_at", "2026-01-01")
            .is_("reviewed_at", None)
            .order("submitted_at", ascending=False)
            .order("id")
            .limit(10)
        )

        assert query.to_params() == [
            ("select", "*"),
            ("status", "eq.in_review"),
            ("submitted_at", "gte.2026-01-01"),
            ("reviewed_at", "is.null"),
            ("order", "submitted_at.desc,id.asc"),
            ("limit", "10"),
        ]

    def test_in_list_quotes_members(self):
        query = Query("submissions").in_("id", ["a", "b,c"])

        assert query.filter_params() == [("id", 'in.(a,"b,c")')]

    def test_or_expression(self):
        query = Query("accountability_partners").or_("student1_id.eq.s1,student2_id.eq.s1")

        assert query.filter_params() == [("or", "(student1_id.eq.s1,student2_id.eq.s1)")]

    def test_filter_params_omit_projection_and_order(self):
        query = Query("tracks").select("id").eq("id", "t1").order("name").limit(1)

        assert query.filter_params() == [("id", "eq.t1")]
