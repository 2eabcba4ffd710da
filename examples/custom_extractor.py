#!/usr/bin/env python3
"""Creating and using a custom feature extractor.

This example demonstrates how to add a feature next to the built-in ones.
The extra output field must be declared in the field registry so that the
output template knows its type.

Usage:
    python custom_extractor.py flows.jsonl
"""

from __future__ import annotations

import sys
from typing import Any

from flowengineer.core.config import Config
from flowengineer.core.pipeline import Pipeline
from flowengineer.extractors import FeatureExtractor, PacketSeriesExtractor
from flowengineer.records.codec import DecodedFlow
from flowengineer.records.fields import FIELD_TYPES, FIELDS, FieldDef
from flowengineer.schema.registry import FeatureMeta

FIELDS["SYN_COUNT"] = FieldDef("SYN_COUNT", FIELD_TYPES["uint16"], "Sampled packets with the SYN flag set", "count")


class SynCountExtractor(FeatureExtractor):
    """Count sampled packets that carry the TCP SYN flag."""

    def extract(self, flow: DecodedFlow) -> dict[str, Any]:
        return {"SYN_COUNT": sum(1 for flags in flow.series.flags if flags & 0x02)}

    @property
    def feature_names(self) -> list[str]:
        return ["SYN_COUNT"]

    @property
    def extractor_id(self) -> str:
        return "syn"

    def feature_meta(self) -> dict[str, FeatureMeta]:
        return {
            "syn.SYN_COUNT": FeatureMeta(
                id="syn.SYN_COUNT",
                dtype="int64",
                field_type="uint16",
                units="count",
                source="packet_series",
                direction="bidir",
                missing_policy="zero",
                description=FIELDS["SYN_COUNT"].description,
            )
        }


def main() -> None:
    """Augment records with the built-in features plus SYN_COUNT."""
    if len(sys.argv) < 2:
        print("Usage: python custom_extractor.py <flows.jsonl>")
        sys.exit(1)

    pipeline = Pipeline(
        Config(drop_packet_series=True),
        extractors=[PacketSeriesExtractor(), SynCountExtractor()],
    )
    print(f"Output fields: {pipeline.output_template.spec}")
    written = pipeline.process_stream(sys.argv[1], "-")
    print(f"Augmented {written} records", file=sys.stderr)


if __name__ == "__main__":
    main()
