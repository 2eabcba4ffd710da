"""Flow decoder and encoder.

The decoder turns a raw record (a mapping read from the transport) into the
typed inputs of the feature engine, and the encoder lays the original fields
plus the computed features out in output-template order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..core.record import FeatureSet, FlowScalars, PacketSeries, SeriesLengthError
from ..core.timestamps import TimeFormat, to_nanoseconds
from .template import Template


class DecodeError(ValueError):
    """Raised when a record does not satisfy the input template."""


class EncodeError(ValueError):
    """Raised when an output record cannot be populated."""


@dataclass(frozen=True)
class DecodedFlow:
    """A validated input record.

    Attributes:
        scalars: Counters and time span for the engine.
        series: Packet arrays for the engine.
        fields: Every input-template field and its validated value, in
            template order. These are copied unchanged to the output.
    """

    scalars: FlowScalars
    series: PacketSeries
    fields: dict[str, Any]


def decode_flow(
    record: Mapping[str, Any],
    template: Template,
    time_format: TimeFormat = "s",
) -> DecodedFlow:
    """Decode a raw record against the input template.

    Args:
        record: Field name to raw value.
        template: Input template; must contain the engine's required fields.
        time_format: Encoding of numeric timestamps.

    Returns:
        DecodedFlow ready for feature computation.

    Raises:
        DecodeError: If a field is missing or malformed, the packet arrays
            differ in length, or timestamps run backwards.
    """
    fields: dict[str, Any] = {}
    for field_def in template:
        if field_def.name not in record:
            raise DecodeError(f"Missing field: {field_def.name}")
        try:
            fields[field_def.name] = field_def.type.convert(record[field_def.name], time_format)
        except ValueError as e:
            raise DecodeError(f"Invalid value for {field_def.name}: {e}") from e

    time_first = to_nanoseconds(fields["TIME_FIRST"], time_format)
    time_last = to_nanoseconds(fields["TIME_LAST"], time_format)
    if time_last < time_first:
        raise DecodeError("TIME_LAST precedes TIME_FIRST")

    timestamps = tuple(to_nanoseconds(t, time_format) for t in fields["PPI_PKT_TIMES"])
    for index in range(1, len(timestamps)):
        if timestamps[index] < timestamps[index - 1]:
            raise DecodeError(f"PPI_PKT_TIMES decreases at index {index}")

    try:
        series = PacketSeries(
            directions=fields["PPI_PKT_DIRECTIONS"],
            lengths=fields["PPI_PKT_LENGTHS"],
            timestamps=timestamps,
            flags=fields["PPI_PKT_FLAGS"],
        )
    except SeriesLengthError as e:
        raise DecodeError(str(e)) from e

    scalars = FlowScalars(
        bytes=fields["BYTES"],
        bytes_rev=fields["BYTES_REV"],
        packets=fields["PACKETS"],
        packets_rev=fields["PACKETS_REV"],
        time_first=time_first,
        time_last=time_last,
    )
    return DecodedFlow(scalars=scalars, series=series, fields=fields)


def encode_flow(
    decoded: DecodedFlow,
    features: FeatureSet | Mapping[str, Any],
    template: Template,
) -> dict[str, Any]:
    """Build an output record.

    Args:
        decoded: The decoded input flow; its fields are copied unchanged.
        features: Computed features, either a FeatureSet or a mapping keyed
            by output field name.
        template: Output template.

    Returns:
        Output record in template order. Arrays are emitted as lists.

    Raises:
        EncodeError: If a template field has no value or a feature value
            does not fit its declared type.
    """
    values = features.to_record() if isinstance(features, FeatureSet) else dict(features)
    output: dict[str, Any] = {}

    for field_def in template:
        name = field_def.name
        if name in decoded.fields:
            value = decoded.fields[name]
        elif name in values:
            try:
                value = field_def.type.convert(values[name])
            except ValueError as e:
                raise EncodeError(f"Invalid value for {name}: {e}") from e
        else:
            raise EncodeError(f"No value for output field: {name}")
        output[name] = list(value) if isinstance(value, tuple) else value

    return output
