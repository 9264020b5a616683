"""Tests for column classification and value parsing."""

from datetime import datetime

import numpy as np
import pandas as pd

from core.schema import (
    AnalysisFrame,
    classify_columns,
    parse_date,
    parse_number,
)


class TestParseNumber:
    """Tests for numeric coercion with skip reasons."""

    def test_parses_numbers_and_numeric_strings(self):
        assert parse_number(12).value == 12.0
        assert parse_number("12.5").value == 12.5
        assert parse_number(" 7 ").value == 7.0
        assert parse_number(np.int64(3)).value == 3.0

    def test_reports_skip_reasons(self):
        assert parse_number(None).reason == "missing"
        assert parse_number("").reason == "missing"
        assert parse_number(True).reason == "boolean"
        assert parse_number("abc").reason == "not_numeric"
        assert parse_number("12abc").reason == "not_numeric"
        assert parse_number("inf").reason == "non_finite"
        assert parse_number(float("nan")).reason == "non_finite"
        assert parse_number(["1"]).reason == "not_numeric"

    def test_digit_separators_are_rejected(self):
        assert parse_number("1_000").reason == "not_numeric"
        assert classify_columns([{"A": "1_000"}]).kinds["A"] == "other"

    def test_ok_flag(self):
        assert parse_number("1").ok
        assert not parse_number("x").ok


class TestParseDate:
    """Tests for date coercion."""

    def test_parses_iso_strings(self):
        parsed = parse_date("2024-01-05")
        assert parsed.ok
        assert parsed.value == pd.Timestamp("2024-01-05")

    def test_accepts_datetime_objects(self):
        parsed = parse_date(datetime(2024, 3, 1, 12, 30))
        assert parsed.value == pd.Timestamp("2024-03-01 12:30")

    def test_numbers_are_epoch_milliseconds(self):
        assert parse_date(5).value == pd.Timestamp(5, unit="ms")
        assert parse_date("2024").value == pd.Timestamp(2024, unit="ms")
        assert parse_date(0).value == pd.Timestamp(0, unit="ms")

    def test_out_of_range_numbers_are_unparsable(self):
        assert parse_date(1e20).reason == "unparsable_date"

    def test_unparsable_and_missing(self):
        assert parse_date("banana").reason == "unparsable_date"
        assert parse_date("").reason == "missing"
        assert parse_date(None).reason == "missing"

    def test_timezone_aware_values_become_naive_utc(self):
        parsed = parse_date("2024-01-01T00:00:00+02:00")
        assert parsed.value == pd.Timestamp("2023-12-31 22:00")
        assert parsed.value.tzinfo is None


class TestClassifyColumns:
    """Tests for first-record column classification."""

    def test_classifies_numeric_and_date_columns(self):
        records = [{"Date": "2024-01-01", "Region": "North", "Revenue": "100", "Units": 5}]
        schema = classify_columns(records)

        assert schema.columns == ["Date", "Region", "Revenue", "Units"]
        assert schema.numeric_columns == ["Revenue", "Units"]
        assert schema.date_column == "Date"
        assert schema.kinds["Region"] == "other"

    def test_first_date_column_wins(self):
        records = [{"Created": "2024-01-01", "Shipped": "2024-01-03", "Qty": 1}]
        schema = classify_columns(records)

        assert schema.date_column == "Created"
        assert schema.kinds["Shipped"] == "date"

    def test_leading_numeric_column_is_the_date_column(self):
        records = [{"Id": 1, "Date": "2024-01-10", "Revenue": 0}]
        schema = classify_columns(records)

        assert schema.date_column == "Id"
        assert schema.numeric_columns == ["Id", "Revenue"]
        assert schema.kinds["Date"] == "date"

    def test_zero_is_not_date_like(self):
        schema = classify_columns([{"X": 0, "Created": "2024-01-01"}])

        assert schema.date_column == "Created"
        assert schema.numeric_columns == ["X"]

    def test_only_first_record_is_inspected(self):
        records = [{"Value": "abc"}, {"Value": "10"}, {"Value": "20"}]
        assert classify_columns(records).numeric_columns == []

    def test_empty_dataset(self):
        schema = classify_columns([])
        assert schema.columns == []
        assert schema.numeric_columns == []
        assert schema.date_column is None


class TestAnalysisFrame:
    """Tests for parsed column access."""

    def test_valid_values_drop_unparsable_rows(self):
        records = [{"Revenue": "100"}, {"Revenue": "n/a"}, {"Revenue": 300}, {"Revenue": None}]
        frame = AnalysisFrame.from_records(records)

        assert frame.valid_values("Revenue").tolist() == [100.0, 300.0]
        assert frame.skipped("Revenue") == {1: "not_numeric", 3: "missing"}

    def test_time_series_sorted_by_date(self):
        records = [
            {"Date": "2024-01-03", "Sales": 30},
            {"Date": "2024-01-01", "Sales": 10},
            {"Date": "bad", "Sales": 99},
            {"Date": "2024-01-02", "Sales": "x"},
            {"Date": "2024-01-04", "Sales": 40},
        ]
        frame = AnalysisFrame.from_records(records)
        series = frame.time_series("Sales")

        assert [point.value for point in series] == [10.0, 30.0, 40.0]
        assert series[0].date == pd.Timestamp("2024-01-01")
        assert frame.skipped("Date") == {2: "unparsable_date"}

    def test_time_series_without_date_column(self):
        frame = AnalysisFrame.from_records([{"A": 0}, {"A": 2}])
        assert frame.schema.date_column is None
        assert frame.time_series("A") == []

    def test_numeric_date_column_keeps_numeric_skip_reasons(self):
        frame = AnalysisFrame.from_records([{"Id": 1}, {"Id": "n/a"}, {"Id": 3}])

        assert frame.schema.date_column == "Id"
        assert frame.skipped("Id") == {1: "not_numeric"}
        assert [point.value for point in frame.time_series("Id")] == [1.0, 3.0]

    def test_missing_keys_are_skipped(self):
        records = [{"A": 1, "B": 2}, {"A": 3}]
        frame = AnalysisFrame.from_records(records)

        assert frame.valid_values("B").tolist() == [2.0]
        assert frame.row_count == 2
