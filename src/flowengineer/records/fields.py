"""Field types and the registry of known record fields."""

from __future__ import annotations

import ipaddress
import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from ..core.timestamps import TimeFormat, to_nanoseconds


@dataclass(frozen=True)
class FieldType:
    """A named record field type.

    Attributes:
        name: Type name as written in field definitions (e.g. "uint16*").
        python_type: Python type of a decoded element ("int", "float", "str").
        min_value: Inclusive lower bound for integer types.
        max_value: Inclusive upper bound for integer types (None = unbounded).
        is_array: Whether the field holds a variable-length sequence.
    """

    name: str
    python_type: str
    min_value: int | None = None
    max_value: int | None = None
    is_array: bool = False

    @property
    def element_name(self) -> str:
        """Type name of one element (strips the array marker)."""
        return self.name.rstrip("*")

    def convert(self, value: Any, time_format: TimeFormat = "s") -> Any:
        """Validate and normalise a raw value of this type.

        Arrays come back as tuples. Time values are validated but keep
        their raw representation; use ``to_nanoseconds`` for arithmetic.

        Raises:
            ValueError: If the value does not fit the type.
        """
        if self.is_array:
            if isinstance(value, (str, bytes, dict)) or not isinstance(value, Sequence):
                if not hasattr(value, "tolist"):
                    raise ValueError(f"Expected an array of {self.element_name}, got {type(value).__name__}")
                value = value.tolist()
            return tuple(self._convert_element(v, time_format) for v in value)
        return self._convert_element(value, time_format)

    def _convert_element(self, value: Any, time_format: TimeFormat) -> Any:
        converter = _ELEMENT_CONVERTERS[self.python_type]
        return converter(self, value, time_format)


def _convert_int(ftype: FieldType, value: Any, time_format: TimeFormat) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"Expected {ftype.element_name}, got {type(value).__name__}: {value!r}")
    if not isinstance(value, numbers.Integral):
        number = float(value)
        if not math.isfinite(number) or not number.is_integer():
            raise ValueError(f"Expected {ftype.element_name}, got non-integer {value!r}")
        value = int(number)
    result = int(value)
    if ftype.min_value is not None and result < ftype.min_value:
        raise ValueError(f"Value {result} below {ftype.element_name} range")
    if ftype.max_value is not None and result > ftype.max_value:
        raise ValueError(f"Value {result} above {ftype.element_name} range")
    return result


def _convert_float(ftype: FieldType, value: Any, time_format: TimeFormat) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"Expected {ftype.element_name}, got {type(value).__name__}: {value!r}")
    return float(value)


def _convert_time(ftype: FieldType, value: Any, time_format: TimeFormat) -> Any:
    to_nanoseconds(value, time_format)
    return value


def _convert_ipaddr(ftype: FieldType, value: Any, time_format: TimeFormat) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Expected an IP address string, got {type(value).__name__}: {value!r}")
    return str(ipaddress.ip_address(value))


def _convert_string(ftype: FieldType, value: Any, time_format: TimeFormat) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Expected a string, got {type(value).__name__}: {value!r}")
    return value


_ELEMENT_CONVERTERS: dict[str, Callable[[FieldType, Any, TimeFormat], Any]] = {
    "int": _convert_int,
    "float": _convert_float,
    "time": _convert_time,
    "ipaddr": _convert_ipaddr,
    "str": _convert_string,
}


def _int_type(name: str, bits: int, signed: bool = False) -> FieldType:
    if signed:
        return FieldType(name, "int", -(1 << (bits - 1)), (1 << (bits - 1)) - 1)
    return FieldType(name, "int", 0, (1 << bits) - 1)


FIELD_TYPES: dict[str, FieldType] = {
    "int8": _int_type("int8", 8, signed=True),
    "uint8": _int_type("uint8", 8),
    "uint16": _int_type("uint16", 16),
    "uint32": _int_type("uint32", 32),
    "uint64": _int_type("uint64", 64),
    "uint": FieldType("uint", "int", 0, None),
    "double": FieldType("double", "float"),
    "time": FieldType("time", "time"),
    "ipaddr": FieldType("ipaddr", "ipaddr"),
    "string": FieldType("string", "str"),
    "int8*": FieldType("int8*", "int", -128, 127, is_array=True),
    "uint8*": FieldType("uint8*", "int", 0, 255, is_array=True),
    "uint16*": FieldType("uint16*", "int", 0, 65535, is_array=True),
    "time*": FieldType("time*", "time", is_array=True),
}


@dataclass(frozen=True)
class FieldDef:
    """A named field bound to its type.

    Attributes:
        name: Record field name.
        type: Field type.
        description: Human-readable description.
        unit: Unit of measurement, empty if dimensionless.
    """

    name: str
    type: FieldType
    description: str = ""
    unit: str = ""


def _field(name: str, type_name: str, description: str, unit: str = "") -> FieldDef:
    return FieldDef(name=name, type=FIELD_TYPES[type_name], description=description, unit=unit)


# Registry of every field a template may reference.
FIELDS: dict[str, FieldDef] = {
    f.name: f
    for f in (
        # Flow identification
        _field("SRC_IP", "ipaddr", "Source IP address"),
        _field("DST_IP", "ipaddr", "Destination IP address"),
        _field("SRC_PORT", "uint16", "Source transport port"),
        _field("DST_PORT", "uint16", "Destination transport port"),
        _field("PROTOCOL", "uint8", "IP protocol number"),
        _field("TCP_FLAGS", "uint8", "Cumulative TCP flags, forward direction"),
        _field("TCP_FLAGS_REV", "uint8", "Cumulative TCP flags, backward direction"),
        _field("LINK_BIT_FIELD", "uint64", "Bit field of links the flow was observed on"),
        _field("DIR_BIT_FIELD", "uint8", "Bit field of interface directions"),
        # Flow counters
        _field("BYTES", "uint64", "Bytes in the forward direction", "bytes"),
        _field("BYTES_REV", "uint64", "Bytes in the backward direction", "bytes"),
        _field("PACKETS", "uint32", "Packets in the forward direction", "count"),
        _field("PACKETS_REV", "uint32", "Packets in the backward direction", "count"),
        _field("TIME_FIRST", "time", "Timestamp of the first packet"),
        _field("TIME_LAST", "time", "Timestamp of the last packet"),
        # Per-packet information
        _field("PPI_PKT_DIRECTIONS", "int8*", "Direction of each sampled packet (1 = forward)"),
        _field("PPI_PKT_LENGTHS", "uint16*", "Length of each sampled packet", "bytes"),
        _field("PPI_PKT_TIMES", "time*", "Capture time of each sampled packet"),
        _field("PPI_PKT_FLAGS", "uint8*", "TCP flags of each sampled packet"),
        # Derived features
        _field("BYTES_RATIO", "double", "Forward to backward byte ratio (0 if no backward bytes)"),
        _field("PACKETS_RATIO", "double", "Forward to backward packet ratio (0 if no backward packets)"),
        _field("BYTES_TOTAL", "uint", "Bytes in both directions", "bytes"),
        _field("PACKETS_TOTAL", "uint64", "Packets in both directions", "count"),
        _field("TIME_DUR_MS", "double", "Flow duration", "ms"),
        _field("BYTES_PER_MS", "double", "Total bytes per millisecond of flow duration", "bytes/ms"),
        _field("PACKETS_PER_MS", "double", "Total packets per millisecond of flow duration", "count/ms"),
        _field("SENT_PERCENTAGE", "double", "Fraction of sampled packets sent forward"),
        _field("RECV_PERCENTAGE", "double", "Fraction of sampled packets received (backward)"),
        _field("MIN_PKT_LEN", "uint16", "Minimum sampled packet length", "bytes"),
        _field("MAX_PKT_LEN", "uint16", "Maximum sampled packet length", "bytes"),
        _field("MEAN_PKT_LENGTH", "double", "Mean sampled packet length", "bytes"),
        _field("VAR_PKT_LENGTH", "double", "Population variance of sampled packet length", "bytes^2"),
        _field("MEAN_TIME_BETWEEN_PKTS", "double", "Mean inter-arrival time of sampled packets", "ms"),
    )
}

PACKET_SERIES_FIELDS: tuple[str, ...] = (
    "PPI_PKT_DIRECTIONS",
    "PPI_PKT_LENGTHS",
    "PPI_PKT_TIMES",
    "PPI_PKT_FLAGS",
)


def get_field(name: str) -> FieldDef:
    """Look up a field definition by name.

    Raises:
        KeyError: If the field is unknown.
    """
    return FIELDS[name]
