"""
Unit tests for in-process joins.
"""

from basecamp.store import attach, group_count, index_by


class TestJoin:
    """index_by / attach / group_count."""

    def test_index_by_skips_missing_keys(self):
        rows = [{"id": "a"}, {"name": "no id"}, {"id": "b"}]

        assert list(index_by(rows)) == ["a", "b"]

    def test_attach_copies_and_leaves_unmatched_none(self):
        enrollments = [{"user_id": "s1"}, {"user_id": "ghost"}]
        profiles = index_by([{"id": "s1", "full_name": "Ada"}])

        joined = attach(enrollments, profiles, "user_id", "user")

        assert joined[0]["user"]["full_name"] == "Ada"
        assert joined[1]["user"] is None
        assert "user" not in enrollments[0]

    def test_group_count_in_first_seen_order(self):
        rows = [
            {"track_id": "t2"},
            {"track_id": "t1"},
            {"track_id": "t2"},
            {"track_id": None},
        ]

        assert group_count(rows, "track_id") == [
            {"value": "t2", "count": 2},
            {"value": "t1", "count": 1},
        ]
