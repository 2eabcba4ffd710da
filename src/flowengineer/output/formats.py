"""Output format handlers for augmented flow records."""

from __future__ import annotations

import csv
import json
import sys
from pathlib import Path
from types import TracebackType
from typing import IO, Any, Iterable

import msgpack
import numpy as np
import pandas as pd

STDIO = "-"


class StreamingWriter:
    """Incrementally writes output records so memory stays flat on long streams.

    Supports CSV, JSON Lines, MessagePack and Parquet (in row groups).
    Use as a context manager to ensure proper cleanup.

    Example:
        >>> with StreamingWriter("augmented.jsonl", format="jsonl") as writer:
        ...     for record in pipeline.iter_process(records):
        ...         writer.write(record)
    """

    def __init__(
        self,
        path: str | Path | IO[Any],
        format: str = "jsonl",
        parquet_row_group_size: int = 10000,
        compression: str | None = None,
    ) -> None:
        """Initialize the streaming writer.

        Args:
            path: Output file path, ``"-"`` for stdout, or an open file object
                (text for csv/jsonl, binary for msgpack). Open file objects
                are flushed but not closed.
            format: Output format ("csv", "jsonl", "msgpack", "parquet").
            parquet_row_group_size: Number of rows per Parquet row group.
            compression: Compression for Parquet files.
        """
        self.format = format.lower()
        if self.format not in ("csv", "jsonl", "msgpack", "parquet"):
            raise ValueError(f"Unknown format: {format}")

        self._external = not isinstance(path, (str, Path))
        self.path: str | Path | IO[Any] = path if self._external else Path(path)
        self.parquet_row_group_size = parquet_row_group_size
        self.compression = compression or ("snappy" if self.format == "parquet" else None)

        self._file: IO[Any] | None = None
        self._owns_file = False
        self._csv_writer: csv.DictWriter[Any] | None = None
        self._packer = msgpack.Packer()
        self._row_count = 0

        # For Parquet buffering
        self._parquet_buffer: list[dict[str, Any]] = []
        self._parquet_writer: Any | None = None

    def __enter__(self) -> StreamingWriter:
        """Open the output file."""
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the output file and flush any remaining data."""
        self.close()

    def open(self) -> None:
        """Open the underlying stream (Parquet opens lazily on first flush)."""
        if self.format == "parquet" or self._file is not None:
            return

        binary = self.format == "msgpack"
        if self._external:
            self._file = self.path  # type: ignore[assignment]
        elif str(self.path) == STDIO:
            self._file = sys.stdout.buffer if binary else sys.stdout
        else:
            path = Path(self.path)  # type: ignore[arg-type]
            if binary:
                self._file = path.open("wb")
            else:
                self._file = path.open("w", newline="" if self.format == "csv" else None, encoding="utf-8")
            self._owns_file = True

    def write(self, record: dict[str, Any]) -> None:
        """Write a single output record.

        Args:
            record: Output record for one flow.
        """
        if self.format == "csv":
            self._write_csv(record)
        elif self.format == "jsonl":
            self._write_jsonl(record)
        elif self.format == "msgpack":
            self._write_msgpack(record)
        else:
            self._write_parquet(record)
        self._row_count += 1

    def write_many(self, records: Iterable[dict[str, Any]]) -> int:
        """Write multiple output records from an iterable.

        Args:
            records: Iterable of output records.

        Returns:
            Number of rows written.
        """
        for record in records:
            self.write(record)
        return self._row_count

    def _write_csv(self, record: dict[str, Any]) -> None:
        """Write a row to CSV."""
        if self._file is None:
            raise RuntimeError("CSV writer is not opened")
        if self._csv_writer is None:
            self._csv_writer = csv.DictWriter(self._file, fieldnames=list(record.keys()))
            self._csv_writer.writeheader()

        self._csv_writer.writerow(_flatten_row(record))

    def _write_jsonl(self, record: dict[str, Any]) -> None:
        """Write a row to JSON Lines."""
        if self._file is None:
            raise RuntimeError("JSONL writer is not opened")
        self._file.write(json.dumps(_serialize_row(record)) + "\n")

    def _write_msgpack(self, record: dict[str, Any]) -> None:
        """Write a row as one MessagePack map."""
        if self._file is None:
            raise RuntimeError("MessagePack writer is not opened")
        self._file.write(self._packer.pack(_serialize_row(record)))

    def _write_parquet(self, record: dict[str, Any]) -> None:
        """Buffer and write to Parquet in row groups."""
        self._parquet_buffer.append(record)

        if len(self._parquet_buffer) >= self.parquet_row_group_size:
            self._flush_parquet_buffer()

    def _flush_parquet_buffer(self) -> None:
        """Flush the Parquet buffer to disk."""
        if not self._parquet_buffer:
            return

        try:
            import pyarrow as pa
            import pyarrow.parquet as pq
        except ImportError as e:
            raise ImportError(
                "pyarrow is required for Parquet output. "
                "Install with: pip install pyarrow"
            ) from e

        if self._external or str(self.path) == STDIO:
            raise ValueError("Parquet output requires a file path")

        df = to_dataframe(self._parquet_buffer)

        # Arrays are stored as JSON text
        for col in df.columns:
            if df[col].dtype == object and isinstance(df[col].iloc[0], list):
                df[col] = df[col].apply(lambda x: json.dumps(x) if isinstance(x, list) else x)

        table = pa.Table.from_pandas(df, preserve_index=False)

        if self._parquet_writer is None:
            self._parquet_writer = pq.ParquetWriter(
                str(self.path), table.schema, compression=self.compression
            )

        self._parquet_writer.write_table(table)
        self._parquet_buffer = []

    def close(self) -> None:
        """Close the writer and flush any remaining data."""
        if self.format == "parquet":
            self._flush_parquet_buffer()
            if self._parquet_writer is not None:
                self._parquet_writer.close()
                self._parquet_writer = None
        elif self._file is not None:
            if self._owns_file:
                self._file.close()
            else:
                self._file.flush()
            self._file = None

    @property
    def rows_written(self) -> int:
        """Return the number of rows written so far."""
        return self._row_count


def to_dataframe(records: list[dict[str, Any]]) -> pd.DataFrame:
    """Convert output records to a pandas DataFrame.

    Args:
        records: List of output records (one per flow).

    Returns:
        DataFrame with fields as columns and flows as rows.
    """
    if not records:
        return pd.DataFrame()

    df = pd.DataFrame(records)

    for col in df.columns:
        if df[col].dtype == object:
            # Array columns stay as lists; IP addresses stay as strings
            if isinstance(df[col].iloc[0], (list, str)):
                continue
            try:
                df[col] = pd.to_numeric(df[col])
            except (ValueError, TypeError):
                pass

    return df


def to_numpy(
    records: list[dict[str, Any]],
) -> tuple[np.ndarray, list[str]]:
    """Convert output records to a NumPy array.

    Non-numeric columns (IP addresses, packet arrays) are excluded.

    Args:
        records: List of output records.

    Returns:
        Tuple of (array, column_names) where array has shape
        (n_flows, n_numeric_fields).
    """
    if not records:
        return np.array([]), []

    df = to_dataframe(records)
    numeric_cols = df.select_dtypes(include=[np.number]).columns.tolist()

    if not numeric_cols:
        return np.array([]), []

    array = df[numeric_cols].to_numpy(dtype=np.float64)
    return array, numeric_cols


def _flatten_row(row: dict[str, Any]) -> dict[str, Any]:
    """Make a row CSV-safe: arrays become JSON text."""
    processed: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, (list, tuple)):
            processed[key] = json.dumps(list(value))
        elif isinstance(value, np.ndarray):
            processed[key] = json.dumps(value.tolist())
        elif isinstance(value, np.integer):
            processed[key] = int(value)
        elif isinstance(value, np.floating):
            processed[key] = float(value)
        else:
            processed[key] = value
    return processed


def _serialize_row(row: dict[str, Any]) -> dict[str, Any]:
    """Serialize an output row to JSON/MessagePack-compatible types.

    Args:
        row: Output record.

    Returns:
        Dictionary with plain Python values.
    """
    result: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, np.integer):
            result[key] = int(value)
        elif isinstance(value, np.floating):
            result[key] = float(value)
        elif isinstance(value, np.ndarray):
            result[key] = value.tolist()
        elif isinstance(value, tuple):
            result[key] = list(value)
        elif value is None or isinstance(value, (str, int, float, bool, list)):
            result[key] = value
        else:
            result[key] = str(value)
    return result
