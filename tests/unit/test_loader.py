"""Unit tests for CSV/XLSX table loading."""

from unittest.mock import patch

import pandas as pd
import pytest

from dupscan.errors import TableLoadError
from dupscan.loader import load_table, read_dataframe, table_from_dataframe


class TestLoadCsv:
    def test_load_csv(self, tmp_path):
        path = tmp_path / "people.csv"
        path.write_text("name,age\nAlice,30\nAlice,30\n , \nBob,\n", encoding="utf-8")

        table = load_table(path)

        assert table.headers == ["name", "age"]
        assert table.rows == [
            {"name": "Alice", "age": "30"},
            {"name": "Alice", "age": "30"},
            {"name": "Bob", "age": None},
        ]

    def test_values_stay_text(self, tmp_path):
        path = tmp_path / "codes.csv"
        path.write_text("code,amount\n007,1.50\n", encoding="utf-8")

        assert load_table(path).rows == [{"code": "007", "amount": "1.50"}]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_bytes(b"")

        table = load_table(path)

        assert table.headers == []
        assert len(table) == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(TableLoadError):
            load_table(tmp_path / "missing.csv")


class TestLoadXlsx:
    def test_load_xlsx(self, tmp_path):
        path = tmp_path / "people.xlsx"
        pd.DataFrame({"name": ["Alice", "Bob"], "city": ["Lisbon", None]}).to_excel(path, index=False)

        table = load_table(path)

        assert table.headers == ["name", "city"]
        assert table.rows == [
            {"name": "Alice", "city": "Lisbon"},
            {"name": "Bob", "city": None},
        ]


class TestUnsupported:
    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("name\nAlice\n", encoding="utf-8")

        with pytest.raises(TableLoadError, match="Unsupported file format"):
            read_dataframe(path)


def test_table_from_dataframe_blank_cells():
    df = pd.DataFrame({"name": ["  Alice ", ""], "age": [float("nan"), "30"]})

    table = table_from_dataframe(df)

    assert table.rows == [{"name": "Alice", "age": None}, {"name": None, "age": "30"}]


def test_blank_rows_are_reported(tmp_path):
    path = tmp_path / "gaps.csv"
    path.write_text("name,age\nAlice,30\n,\n,\n", encoding="utf-8")

    with patch("dupscan.loader.log_warning") as mock_warning:
        table = load_table(path)

    assert len(table) == 1
    mock_warning.assert_called_once_with("Blank rows skipped", file="gaps.csv", count=2)


class TestUnreadableWorkbook:
    def test_text_saved_as_xlsx(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_text("name,age\nAlice,30\n", encoding="utf-8")

        with pytest.raises(TableLoadError, match="broken.xlsx"):
            load_table(path)

    def test_empty_xlsx(self, tmp_path):
        path = tmp_path / "empty.xlsx"
        path.write_bytes(b"")

        with pytest.raises(TableLoadError):
            load_table(path)
