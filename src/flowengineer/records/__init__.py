"""Record templates and the flow decoder/encoder."""

from __future__ import annotations

from .codec import DecodedFlow, DecodeError, EncodeError, decode_flow, encode_flow
from .fields import FIELD_TYPES, FIELDS, PACKET_SERIES_FIELDS, FieldDef, FieldType, get_field
from .template import (
    DEFAULT_INPUT_SPEC,
    FEATURE_SPEC,
    REQUIRED_FIELDS,
    Template,
    TemplateError,
    input_template,
    output_template,
)

__all__ = [
    # Codec
    "DecodedFlow",
    "DecodeError",
    "EncodeError",
    "decode_flow",
    "encode_flow",
    # Fields
    "FIELD_TYPES",
    "FIELDS",
    "PACKET_SERIES_FIELDS",
    "FieldDef",
    "FieldType",
    "get_field",
    # Templates
    "DEFAULT_INPUT_SPEC",
    "FEATURE_SPEC",
    "REQUIRED_FIELDS",
    "Template",
    "TemplateError",
    "input_template",
    "output_template",
]
