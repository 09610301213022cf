"""Tests for CSV parsing and dataset profiling."""

import io

import pytest

from src.data_pipeline.csv_loader import UploadError, load_csv, profile_dataset


def test_blank_headers_and_rows_dropped():
    dataset = load_csv(b"a,,b\n1,x,2\n,,\n3,y,4\n")
    assert dataset.columns == ("a", "b")
    assert list(dataset.rows) == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]


def test_row_with_only_dropped_column_content_is_removed():
    dataset = load_csv(b"a,,b\n1,x,2\n,keep?,\n")
    assert len(dataset) == 1


def test_cells_stay_raw_strings():
    dataset = load_csv(b"id,flag,note\n001,NA,\n002,null,hello\n")
    assert dataset.rows[0] == {"id": "001", "flag": "NA", "note": ""}
    assert dataset.rows[1]["flag"] == "null"


def test_short_rows_are_padded():
    dataset = load_csv(b"a,b,c\n1,2,3\n4,5\n")
    assert dataset.rows[1] == {"a": "4", "b": "5", "c": ""}


def test_empty_file():
    with pytest.raises(UploadError, match="empty"):
        load_csv(b"")


def test_header_only():
    with pytest.raises(UploadError, match="empty"):
        load_csv(b"a,b,c\n")


def test_no_named_columns():
    with pytest.raises(UploadError, match="No valid columns"):
        load_csv(b" ,,\n1,2,3\n")


def test_missing_path(tmp_path):
    with pytest.raises(UploadError):
        load_csv(tmp_path / "missing.csv")


def test_path_and_file_object(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("x,y\n1,2\n3,4\n", encoding="utf-8")
    assert len(load_csv(path)) == 2
    assert len(load_csv(str(path))) == 2
    assert len(load_csv(io.BytesIO(b"x,y\n1,2\n"))) == 1


def test_profile(xyz_dataset):
    profile = profile_dataset(xyz_dataset)
    assert profile["rows"] == 10
    assert profile["columns"] == ["a", "b", "c", "group"]
    assert profile["type_counts"] == {"numeric": 3, "temporal": 0, "categorical": 1, "mixed": 0}
    assert profile["column_types"]["a"]["min"] == 0.0
    assert profile["column_types"]["group"]["categories"] == ["alpha", "beta", "gamma"]
    assert len(profile["sample"]) == 5


def test_duplicate_header_keeps_first_column():
    dataset = load_csv(b"v,v,w\n1,2,3\n")
    assert dataset.columns == ("v", "w")
    assert dataset.rows[0] == {"v": "1", "w": "3"}
