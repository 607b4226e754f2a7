"""Tests for the pure document transformations."""

from __future__ import annotations

import pytest

from sheet_ai import document as ops
from sheet_ai.models import Document, Sheet


def _doc() -> Document:
    return Document(
        sheets=[
            Sheet(name="Sales", headers=["Item", "Total"], rows=[["A", 10], ["B", 20]]),
            Sheet(name="Costs", headers=["Item", "Cost"], rows=[["C", 5]]),
        ]
    )


def test_operations_never_modify_their_input() -> None:
    doc = _doc()
    before = Document.from_dict(doc.to_dict())

    ops.set_cell(doc, 0, 0, 1, 99)
    ops.add_row(doc, 0)
    ops.add_column(doc, 0)
    ops.delete_row(doc, 0, 0)
    ops.delete_column(doc, 0, 0)
    ops.duplicate_sheet(doc, 0)
    ops.delete_sheet(doc, 0)

    assert doc == before


def test_set_cell_replaces_one_value() -> None:
    out = ops.set_cell(_doc(), 0, 1, 1, 25)

    assert out.sheets[0].rows == [["A", 10], ["B", 25]]


def test_set_cell_pads_short_row_within_header_width() -> None:
    doc = Document(sheets=[Sheet(name="S", headers=["a", "b", "c"], rows=[["x"]])])

    out = ops.set_cell(doc, 0, 0, 2, "z")

    assert out.sheets[0].rows == [["x", "", "z"]]


@pytest.mark.parametrize(
    ("sheet", "row", "col"),
    [(2, 0, 0), (0, 2, 0), (0, 0, 2), (-1, 0, 0), (0, -1, 0)],
)
def test_set_cell_rejects_out_of_range_indices(sheet: int, row: int, col: int) -> None:
    with pytest.raises(IndexError):
        ops.set_cell(_doc(), sheet, row, col, "v")


def test_set_cell_rejects_non_cell_values() -> None:
    with pytest.raises(TypeError):
        ops.set_cell(_doc(), 0, 0, 0, ["nested"])  # type: ignore[arg-type]


def test_add_row_uses_header_width() -> None:
    out = ops.add_row(_doc(), 0)

    assert out.sheets[0].rows[-1] == ["", ""]


def test_add_row_falls_back_to_first_row_then_one() -> None:
    doc = Document(
        sheets=[
            Sheet(name="NoHeaders", rows=[["a", "b", "c"]]),
            Sheet(name="Blank"),
            Sheet(name="EmptyFirst", rows=[[]]),
        ]
    )

    assert ops.add_row(doc, 0).sheets[0].rows[-1] == ["", "", ""]
    assert ops.add_row(doc, 1).sheets[1].rows == [[""]]
    assert ops.add_row(doc, 2).sheets[2].rows[-1] == [""]


def test_add_column_names_header_and_extends_every_row() -> None:
    doc = Document(sheets=[Sheet(name="S", headers=["a", "b"], rows=[["1", "2"], ["1"]])])

    out = ops.add_column(doc, 0)

    assert out.sheets[0].headers == ["a", "b", "Column 3"]
    # Ragged rows keep their mismatch: each row grows by exactly one cell.
    assert out.sheets[0].rows == [["1", "2", ""], ["1", ""]]


def test_delete_row_removes_by_position() -> None:
    out = ops.delete_row(_doc(), 0, 0)

    assert out.sheets[0].rows == [["B", 20]]


def test_delete_column_skips_rows_too_short() -> None:
    doc = Document(
        sheets=[Sheet(name="S", headers=["a", "b", "c"], rows=[["1", "2", "3"], ["1"]])]
    )

    out = ops.delete_column(doc, 0, 2)

    assert out.sheets[0].headers == ["a", "b"]
    assert out.sheets[0].rows == [["1", "2"], ["1"]]


def test_delete_column_out_of_range_raises() -> None:
    with pytest.raises(IndexError):
        ops.delete_column(_doc(), 0, 5)


def test_duplicate_sheet_inserts_copy_after_original() -> None:
    out = ops.duplicate_sheet(_doc(), 0)

    assert [s.name for s in out.sheets] == ["Sales", "Sales (copy)", "Costs"]
    assert out.active == 1
    assert out.sheets[1].rows == out.sheets[0].rows
    out.sheets[1].rows[0][0] = "changed"
    assert out.sheets[0].rows[0][0] == "A"


def test_duplicate_sheet_name_is_sanitized_and_truncated() -> None:
    doc = Document(sheets=[Sheet(name="x" * 31)])

    out = ops.duplicate_sheet(doc, 0)

    assert out.sheets[1].name == "x" * 31


def test_delete_sheet_activates_previous_sheet() -> None:
    out = ops.delete_sheet(_doc(), 1)

    assert [s.name for s in out.sheets] == ["Sales"]
    assert out.active == 0


def test_deleting_only_sheet_leaves_empty_document() -> None:
    doc = Document(sheets=[Sheet(name="Only")])

    out = ops.delete_sheet(doc, 0)

    assert out.sheets == []
    assert out.active == 0


def test_sheet_operations_on_empty_document_are_noops() -> None:
    empty = Document()

    assert ops.add_row(empty, 0) == empty
    assert ops.add_column(empty, 3) == empty
    assert ops.set_cell(empty, 0, 0, 0, "x") == empty
    assert ops.delete_sheet(empty, 0) == empty
    assert ops.duplicate_sheet(empty, 0) == empty


def test_append_and_replace_sheets() -> None:
    appended = ops.append_sheet(_doc(), Sheet(name="New"))
    replaced = ops.replace_sheets(_doc(), [Sheet(name="Only")])

    assert appended.active == 2
    assert appended.sheets[-1].name == "New"
    assert [s.name for s in replaced.sheets] == ["Only"]
    assert replaced.active == 0


def test_select_sheet_is_bounds_checked() -> None:
    assert ops.select_sheet(_doc(), 1).active == 1
    with pytest.raises(IndexError):
        ops.select_sheet(_doc(), 2)
