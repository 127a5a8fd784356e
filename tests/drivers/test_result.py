"""Tests for raw result transformation."""

import pytest
from sqldeck.drivers.result import (
    MAX_SAFE_INTEGER,
    RawResult,
    normalize_integer,
    resolve_header_names,
    transform_raw_result,
)
from sqldeck.drivers.type_mappers import ColumnType, MySQLTypeMapper
from sqldeck.errors import TransformError


class TestHeaderNames:
    """Test duplicate column name resolution."""

    def test_duplicate_names_get_suffix(self):
        """Test a repeated column is renamed with the first free suffix."""
        assert resolve_header_names(["id", "name", "id"]) == ["id", "name", "__id_0"]

    def test_suffix_skips_taken_names(self):
        """Test the suffix search skips names already present."""
        assert resolve_header_names(["a", "__a_0", "a"]) == ["a", "__a_0", "__a_1"]

    def test_many_duplicates(self):
        """Test several duplicates get successive suffixes."""
        assert resolve_header_names(["x", "x", "x"]) == ["x", "__x_0", "__x_1"]

    def test_exhausted_suffixes_raise(self):
        """Test running out of rename suffixes raises TransformError."""
        columns = ["c"] + [f"__c_{i}" for i in range(20)] + ["c"]
        with pytest.raises(TransformError):
            resolve_header_names(columns)


class TestTransformRawResult:
    """Test conversion of raw results into ResultSets."""

    def test_duplicate_columns_keep_display_name(self):
        """Test renamed headers keep the original display name and every value survives."""
        raw = RawResult(
            columns=["id", "name", "id"],
            column_types=["INTEGER", "TEXT", "INTEGER"],
            rows=[[1, "a", 2]],
        )
        result = transform_raw_result(raw)

        assert [h.name for h in result.headers] == ["id", "name", "__id_0"]
        assert [h.display_name for h in result.headers] == ["id", "name", "id"]
        assert result.rows == [{"id": 1, "name": "a", "__id_0": 2}]

    def test_header_types(self):
        """Test headers carry the original and canonical types."""
        raw = RawResult(columns=["n", "t"], column_types=["BIGINT", None], rows=[])
        result = transform_raw_result(raw)

        assert result.headers[0].original_type == "BIGINT"
        assert result.headers[0].type == ColumnType.INTEGER
        assert result.headers[1].original_type is None
        assert result.headers[1].type == ColumnType.UNKNOWN

    def test_custom_type_mapper(self):
        """Test the type mapper can be swapped for another dialect."""
        raw = RawResult(columns=["flag"], column_types=["tinyint(1)"], rows=[[1]])
        result = transform_raw_result(raw, MySQLTypeMapper())
        assert result.headers[0].type == ColumnType.BOOLEAN

    def test_empty_result(self):
        """Test a result with no rows keeps its headers."""
        raw = RawResult(columns=["id"], column_types=["INTEGER"], rows=[])
        result = transform_raw_result(raw)

        assert len(result.headers) == 1
        assert result.rows == []

    def test_missing_stats_are_none(self):
        """Test unsupported statistics stay None rather than being omitted."""
        result = transform_raw_result(RawResult(rows_affected=3))
        stats = result.to_dict()["stat"]

        assert stats == {
            "rowsAffected": 3,
            "rowsRead": None,
            "rowsWritten": None,
            "queryDurationMs": None,
        }

    def test_binary_cells_become_byte_lists(self):
        """Test binary values are converted to lists of byte values."""
        raw = RawResult(columns=["data"], column_types=["BLOB"], rows=[[b"\x01\xff"]])
        result = transform_raw_result(raw)
        assert result.rows[0]["data"] == [1, 255]

    def test_missing_column_types(self):
        """Test an empty type list is treated as all types unknown."""
        raw = RawResult(columns=["a", "b"], rows=[[1, 2]])
        result = transform_raw_result(raw)
        assert [h.original_type for h in result.headers] == [None, None]

    def test_type_list_mismatch_raises(self):
        """Test a type list of the wrong length raises TransformError."""
        raw = RawResult(columns=["a", "b"], column_types=["INTEGER"], rows=[])
        with pytest.raises(TransformError):
            transform_raw_result(raw)

    def test_short_row_raises(self):
        """Test a row with too few values raises TransformError."""
        raw = RawResult(columns=["a", "b"], column_types=[None, None], rows=[[1]])
        with pytest.raises(TransformError):
            transform_raw_result(raw)

    def test_last_insert_rowid(self):
        """Test the last insert rowid is normalised to a number."""
        result = transform_raw_result(RawResult(last_insert_rowid="42"))
        assert result.last_insert_rowid == 42

    def test_last_insert_rowid_absent(self):
        """Test a missing last insert rowid stays None."""
        assert transform_raw_result(RawResult()).last_insert_rowid is None


class TestNormalizeInteger:
    """Test wide integer handling."""

    def test_safe_integer_unchanged(self):
        """Test integers in the safe range stay exact ints."""
        assert normalize_integer(MAX_SAFE_INTEGER) == MAX_SAFE_INTEGER
        assert isinstance(normalize_integer("123"), int)

    def test_wide_integer_becomes_float(self):
        """Test integers beyond the safe range become floats outside big-int mode."""
        value = normalize_integer(str(2 ** 60))
        assert isinstance(value, float)
        assert value == float(2 ** 60)

    def test_big_int_mode_keeps_exact(self):
        """Test big-int mode keeps wide integers exact."""
        assert normalize_integer(str(2 ** 60), big_int=True) == 2 ** 60
