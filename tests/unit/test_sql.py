"""Tests for the parameterized SQL fragment builders."""

from datetime import datetime

import pytest

from device_factory.common.exceptions import InvalidInputError
from device_factory.querying.sql import (
    SqlFragment,
    build_like_clause,
    build_order_by_clause,
    build_predicate,
    build_range_clause,
    join_fragments,
    split_list,
)


class TestBuildPredicate:
    def test_fields_in_insertion_order(self):
        fragment = build_predicate("WHERE", "AND", {"imei": "123", "serial_number": "SN1"})
        assert fragment.sql == 'WHERE "imei" = ? AND "serial_number" = ?'
        assert fragment.params == ["123", "SN1"]

    def test_prefix_and_operator_are_trimmed(self):
        fragment = build_predicate(" WHERE ", " OR ", {"a": 1, "b": 2})
        assert fragment.sql == 'WHERE "a" = ? OR "b" = ?'

    def test_empty_fields_returns_none(self):
        assert build_predicate("WHERE", "AND", {}) is None

    def test_blank_prefix_returns_none(self):
        assert build_predicate("  ", "AND", {"a": 1}) is None
        assert build_predicate(None, "AND", {"a": 1}) is None

    def test_values_never_inlined(self):
        fragment = build_predicate("WHERE", "AND", {"imei": "1' OR '1'='1"})
        assert "OR '1'" not in fragment.sql
        assert fragment.params == ["1' OR '1'='1"]


class TestLikeClause:
    def test_single_field(self):
        fragment = build_like_clause(["imei"], ["123"])
        assert fragment.sql == 'lower(CAST("imei" AS VARCHAR)) LIKE lower(?)'
        assert fragment.params == ["%123%"]

    def test_multiple_fields_joined_with_and(self):
        fragment = build_like_clause(["imei", "model"], ["12", "X"], table_alias="f")
        assert fragment.sql.count(" AND ") == 1
        assert 'f."model"' in fragment.sql
        assert fragment.params == ["%12%", "%X%"]

    def test_mismatched_lengths_empty(self):
        assert not build_like_clause(["imei", "model"], ["12"])

    def test_no_fields_empty(self):
        assert not build_like_clause([], [])
        assert not build_like_clause(None, None)


class TestRangeClause:
    def test_inclusive_bounds(self):
        fragment = build_range_clause(["created_date"], ["0_86400000"])
        assert fragment.sql == '"created_date" >= ? AND "created_date" <= ?'
        assert fragment.params == [datetime(1970, 1, 1), datetime(1970, 1, 2)]

    def test_value_without_separator_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            build_range_clause(["created_date"], ["1000"])
        assert exc_info.value.code == "dfd-025"

    def test_non_numeric_bound_rejected(self):
        with pytest.raises(InvalidInputError):
            build_range_clause(["created_date"], ["abc_1000"])

    def test_mismatched_lengths_empty(self):
        assert not build_range_clause(["created_date", "record_date"], ["0_1"])


class TestOrderByClause:
    def test_desc(self):
        assert build_order_by_clause("imei", "desc").sql == 'ORDER BY "imei" DESC'

    def test_defaults_to_asc(self):
        assert build_order_by_clause("imei").sql == 'ORDER BY "imei" ASC'
        assert build_order_by_clause("imei", "sideways").sql == 'ORDER BY "imei" ASC'

    def test_with_alias(self):
        assert build_order_by_clause("device_id", "DESC", "a").sql == 'ORDER BY a."device_id" DESC'

    def test_no_field_empty(self):
        assert not build_order_by_clause(None, "desc")
        assert not build_order_by_clause("  ")


class TestFragments:
    def test_join_skips_empty(self):
        joined = join_fragments([
            SqlFragment("SELECT 1"),
            SqlFragment(),
            SqlFragment("LIMIT ?", [5]),
        ])
        assert joined.sql == "SELECT 1 LIMIT ?"
        assert joined.params == [5]

    def test_to_text_numbers_bind_params(self):
        clause = SqlFragment("a = ? AND b = ?", [1, "x"]).to_text()
        assert str(clause) == "a = :p0 AND b = :p1"

    def test_to_text_rejects_param_mismatch(self):
        with pytest.raises(ValueError):
            SqlFragment("a = ?", []).to_text()

    def test_split_list(self):
        assert split_list("imei, model ,,state") == ["imei", "model", "state"]
        assert split_list(None) == []


class TestRangeValueParts:
    def test_three_parts_rejected(self):
        with pytest.raises(InvalidInputError):
            build_range_clause(["record_date"], ["1_1_1"])

    def test_two_parts_accepted(self):
        fragment = build_range_clause(["record_date"], ["1_2"])
        assert len(fragment.params) == 2
