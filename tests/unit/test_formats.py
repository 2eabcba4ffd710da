"""Tests for output writers and in-memory conversions."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path

import msgpack
import numpy as np
import pytest

from flowengineer.output.formats import StreamingWriter, to_dataframe, to_numpy

ROWS = [
    {"SRC_IP": "10.0.0.1", "BYTES": 10, "PPI_PKT_LENGTHS": [60, 1500], "BYTES_RATIO": 2.0},
    {"SRC_IP": "10.0.0.2", "BYTES": 20, "PPI_PKT_LENGTHS": [], "BYTES_RATIO": 0.0},
]


class TestStreamingWriter:
    """Tests for StreamingWriter."""

    def test_jsonl(self, tmp_path: Path) -> None:
        """Test JSON Lines output to a file."""
        path = tmp_path / "out.jsonl"
        with StreamingWriter(path, format="jsonl") as writer:
            writer.write_many(ROWS)

        lines = path.read_text().splitlines()
        assert writer.rows_written == 2
        assert [json.loads(line) for line in lines] == ROWS

    def test_csv_arrays_as_json(self, tmp_path: Path) -> None:
        """Test that arrays are written as JSON text in CSV."""
        path = tmp_path / "out.csv"
        with StreamingWriter(path, format="csv") as writer:
            for row in ROWS:
                writer.write(row)

        with path.open(newline="") as f:
            rows = list(csv.DictReader(f))
        assert list(rows[0]) == list(ROWS[0])
        assert json.loads(rows[0]["PPI_PKT_LENGTHS"]) == [60, 1500]
        assert rows[1]["BYTES"] == "20"

    def test_msgpack_to_file_object(self) -> None:
        """Test MessagePack output to an open binary stream."""
        buffer = io.BytesIO()
        with StreamingWriter(buffer, format="msgpack") as writer:
            writer.write({"BYTES": 1, "PPI_PKT_TIMES": (1, 2)})

        buffer.seek(0)
        assert list(msgpack.Unpacker(buffer, raw=False)) == [{"BYTES": 1, "PPI_PKT_TIMES": [1, 2]}]
        assert not buffer.closed

    def test_numpy_values_serialised(self) -> None:
        """Test that numpy scalars become plain numbers."""
        buffer = io.StringIO()
        with StreamingWriter(buffer, format="jsonl") as writer:
            writer.write({"A": np.int64(3), "B": np.float64(0.5), "C": np.array([1, 2])})

        assert json.loads(buffer.getvalue()) == {"A": 3, "B": 0.5, "C": [1, 2]}

    def test_unknown_format(self, tmp_path: Path) -> None:
        """Test that unknown formats are rejected."""
        with pytest.raises(ValueError, match="Unknown format: xml"):
            StreamingWriter(tmp_path / "out.xml", format="xml")

    def test_parquet(self, tmp_path: Path) -> None:
        """Test Parquet output in row groups."""
        pd = pytest.importorskip("pandas")
        pytest.importorskip("pyarrow")
        path = tmp_path / "out.parquet"
        with StreamingWriter(path, format="parquet", parquet_row_group_size=1) as writer:
            writer.write_many(ROWS)

        df = pd.read_parquet(path)
        assert len(df) == 2
        assert json.loads(df["PPI_PKT_LENGTHS"].iloc[0]) == [60, 1500]

    def test_parquet_requires_path(self) -> None:
        """Test that Parquet cannot be streamed to a file object."""
        pytest.importorskip("pyarrow")
        writer = StreamingWriter(io.BytesIO(), format="parquet")
        writer.write(ROWS[0])
        with pytest.raises(ValueError, match="requires a file path"):
            writer.close()


class TestConversions:
    """Tests for to_dataframe and to_numpy."""

    def test_to_dataframe(self) -> None:
        """Test that array and address columns are kept as objects."""
        df = to_dataframe(ROWS)
        assert list(df.columns) == list(ROWS[0])
        assert df["PPI_PKT_LENGTHS"].iloc[0] == [60, 1500]
        assert df["BYTES"].dtype.kind == "i"

    def test_to_dataframe_empty(self) -> None:
        assert to_dataframe([]).empty

    def test_to_numpy(self) -> None:
        """Test that only numeric columns are converted."""
        array, columns = to_numpy(ROWS)
        assert columns == ["BYTES", "BYTES_RATIO"]
        assert array.shape == (2, 2)
        assert array[0, 1] == 2.0
