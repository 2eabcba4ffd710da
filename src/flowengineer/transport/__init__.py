"""Record stream transport."""

from __future__ import annotations

from .readers import iter_jsonl, iter_msgpack, iter_records, open_source

__all__ = [
    "iter_jsonl",
    "iter_msgpack",
    "iter_records",
    "open_source",
]
