from __future__ import annotations

import math

from sheet_ai.chart import SeriesPoint, infer_series, series_frame, value_column
from sheet_ai.models import Sheet


def test_keyword_header_selects_value_column() -> None:
    sheet = Sheet(name="S", headers=["Item", "Total"], rows=[["A", 10], ["B", 20]])

    points = infer_series(sheet)

    assert points == [SeriesPoint("A", 10), SeriesPoint("B", 20)]


def test_keyword_match_is_case_insensitive_and_substring() -> None:
    sheet = Sheet(name="S", headers=["Name", "Note", "Quantity"], rows=[["x", "n", 1]])

    assert value_column(sheet) == 2


def test_numeric_first_row_cell_used_without_keyword() -> None:
    sheet = Sheet(name="S", headers=["City", "Country", "Pop"], rows=[["Lima", "PE", 9.7]])

    assert value_column(sheet) == 2
    assert infer_series(sheet) == [SeriesPoint("Lima", 9.7)]


def test_falls_back_to_second_column() -> None:
    sheet = Sheet(name="S", headers=["City", "Pop"], rows=[["Lima", "9"], ["Quito", "abc"]])

    assert value_column(sheet) == 1
    assert infer_series(sheet) == [SeriesPoint("Lima", 9), SeriesPoint("Quito", 0)]


def test_fewer_than_two_headers_yields_nothing() -> None:
    assert infer_series(Sheet(name="S", headers=["Only"], rows=[["a"]])) == []
    assert infer_series(Sheet(name="S")) == []
    assert infer_series(None) == []


def test_rows_with_empty_name_are_skipped() -> None:
    sheet = Sheet(name="S", headers=["Item", "Total"], rows=[["", 5], [], ["C", 7]])

    assert infer_series(sheet) == [SeriesPoint("C", 7)]


def test_non_finite_and_missing_values_become_zero() -> None:
    sheet = Sheet(
        name="S",
        headers=["Item", "Total"],
        rows=[["inf", math.inf], ["nan", float("nan")], ["short"], ["text", "n/a"]],
    )

    values = [p.value for p in infer_series(sheet)]

    assert values == [0, 0, 0, 0]


def test_numeric_strings_and_booleans_coerce() -> None:
    sheet = Sheet(
        name="S", headers=["Item", "Total"], rows=[["a", " 12.5 "], ["b", True], ["c", ""]]
    )

    assert [p.value for p in infer_series(sheet)] == [12.5, 1, 0]


def test_series_frame_has_name_and_value_columns() -> None:
    frame = series_frame([SeriesPoint("A", 10), SeriesPoint("B", 2.5)])

    assert list(frame.columns) == ["name", "value"]
    assert frame["name"].tolist() == ["A", "B"]
    assert frame["value"].tolist() == [10, 2.5]
    assert series_frame([]).empty
