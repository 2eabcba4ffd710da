"""flowengineer - Flow Record Feature Engineering.

flowengineer augments bidirectional flow records with derived features:
byte and packet ratios, totals and rates, flow duration, and statistics over
the sampled per-packet arrays (direction shares, length min/max/mean/variance,
mean inter-arrival time).

Example:
    >>> import flowengineer as fe
    >>> df = fe.augment(records, output_format="dataframe")
    >>> print(df["BYTES_RATIO"])

Pipeline usage:
    >>> import flowengineer as fe
    >>> config = fe.Config(time_format="ms", drop_packet_series=True)
    >>> pipeline = fe.Pipeline(config)
    >>> pipeline.process_stream("flows.jsonl", "augmented.jsonl")

Engine only:
    >>> scalars = fe.FlowScalars(1000, 500, 10, 5, 0, 100_000_000)
    >>> fe.compute_features(scalars, fe.PacketSeries()).bytes_ratio
    2.0
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version


def _resolve_version() -> str:
    """Resolve the installed package version."""
    try:
        return _pkg_version("flowengineer")
    except PackageNotFoundError:
        # Source checkout without an installed distribution.
        return "0.0.0"


__version__ = _resolve_version()

# Core classes at top level
from .core.config import Config
from .core.engine import compute_features
from .core.record import FeatureSet, FlowScalars, PacketSeries
from .core.pipeline import Pipeline, augment

# Submodules available as fe.records, fe.output, etc.
from . import core
from . import extractors
from . import monitoring
from . import output
from . import records
from . import schema
from . import transport

__all__ = [
    "__version__",
    "Config",
    "FeatureSet",
    "FlowScalars",
    "PacketSeries",
    "Pipeline",
    "augment",
    "compute_features",
    "core",
    "extractors",
    "monitoring",
    "output",
    "records",
    "schema",
    "transport",
]
