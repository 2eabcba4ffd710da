"""Output writers for augmented flow records."""

from __future__ import annotations

from .formats import StreamingWriter, to_dataframe, to_numpy

__all__ = [
    "StreamingWriter",
    "to_dataframe",
    "to_numpy",
]
