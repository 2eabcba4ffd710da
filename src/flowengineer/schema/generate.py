"""Schema generator for output records."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from ..core.config import Config
from ..records.template import input_template, output_template
from .registry import all_feature_meta, get_feature_ids_ordered


def generate_schema(config: Config | None = None) -> dict[str, Any]:
    """Describe the output record produced under a configuration.

    Args:
        config: Configuration; defaults are used if None.

    Returns:
        Schema dictionary with the ordered output fields and feature metadata.
    """
    from .. import __version__

    config = config or Config()
    source = input_template(extra_fields=config.extra_fields)
    template = output_template(source, drop_packet_series=config.drop_packet_series)
    feature_meta = all_feature_meta()

    fields = [
        {
            "name": f.name,
            "type": f.type.name,
            "description": f.description,
            "unit": f.unit or None,
        }
        for f in template
    ]

    return {
        "title": "flowengineer output record",
        "version": __version__,
        "input_template": source.spec,
        "output_template": template.spec,
        "time_format": config.time_format,
        "total_fields": len(fields),
        "fields": fields,
        "features": {fid: asdict(feature_meta[fid]) for fid in get_feature_ids_ordered()},
    }


def write_schema(path: str | Path, config: Config | None = None) -> None:
    """Write the output schema as JSON.

    Args:
        path: Output file path.
        config: Configuration; defaults are used if None.
    """
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump(generate_schema(config), f, indent=2)
