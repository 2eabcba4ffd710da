#!/usr/bin/env python3
"""Basic augmentation of flow records.

This example demonstrates the simplest ways to add derived features to
flow records with flowengineer.

Usage:
    python basic_augmentation.py flows.jsonl
"""

from __future__ import annotations

import sys

import flowengineer as fe
from flowengineer.transport import iter_records


def main() -> None:
    """Augment flow records from a JSON Lines file."""
    if len(sys.argv) < 2:
        print("Usage: python basic_augmentation.py <flows.jsonl>")
        sys.exit(1)

    path = sys.argv[1]

    # Method 1: In-memory batch into a DataFrame
    print("Method 1: Batch augmentation")
    print("-" * 40)
    records = list(iter_records(path))
    df = fe.augment(records, output_format="dataframe")
    print(f"Augmented {len(df)} flows with {len(df.columns)} fields")
    print()

    # Method 2: Streaming with a configuration
    print("Method 2: Streaming to a file")
    print("-" * 40)
    config = fe.Config(drop_packet_series=True, output_format="csv")
    pipeline = fe.Pipeline(config)
    written = pipeline.process_stream(path, "augmented.csv")
    print(f"Wrote {written} records to augmented.csv ({pipeline.stats.skipped} skipped)")
    print()

    # Method 3: Engine only
    print("Method 3: Engine only")
    print("-" * 40)
    scalars = fe.FlowScalars(bytes=1000, bytes_rev=500, packets=10, packets_rev=5, time_first=0, time_last=100_000_000)
    series = fe.PacketSeries(
        directions=(1, 1, -1),
        lengths=(100, 200, 300),
        timestamps=(0, 10_000_000, 30_000_000),
        flags=(2, 18, 16),
    )
    for name, value in fe.compute_features(scalars, series).to_record().items():
        print(f"  {name}: {value}")


if __name__ == "__main__":
    main()
