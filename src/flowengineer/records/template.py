"""Record templates: ordered lists of named, typed fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from ..core.record import OUTPUT_FIELD_NAMES
from .fields import FIELDS, PACKET_SERIES_FIELDS, FieldDef

DEFAULT_INPUT_SPEC = (
    "DST_IP,SRC_IP,BYTES,BYTES_REV,TIME_FIRST,TIME_LAST,PACKETS,PACKETS_REV,"
    "PPI_PKT_DIRECTIONS,PPI_PKT_LENGTHS,PPI_PKT_TIMES,PPI_PKT_FLAGS"
)
FEATURE_SPEC = ",".join(OUTPUT_FIELD_NAMES.values())

# Fields the feature engine reads from every input record.
REQUIRED_FIELDS: tuple[str, ...] = (
    "BYTES",
    "BYTES_REV",
    "PACKETS",
    "PACKETS_REV",
    "TIME_FIRST",
    "TIME_LAST",
    *PACKET_SERIES_FIELDS,
)


class TemplateError(ValueError):
    """Raised for an invalid template definition."""


@dataclass(frozen=True)
class Template:
    """An ordered, duplicate-free list of record fields."""

    fields: tuple[FieldDef, ...]

    @classmethod
    def from_names(cls, names: Iterable[str]) -> Template:
        """Build a template from field names.

        Raises:
            TemplateError: If a name is unknown or repeated.
        """
        seen: set[str] = set()
        fields: list[FieldDef] = []
        for raw in names:
            name = raw.strip()
            if not name:
                continue
            if name not in FIELDS:
                raise TemplateError(f"Unknown field: {name}")
            if name in seen:
                raise TemplateError(f"Duplicate field: {name}")
            seen.add(name)
            fields.append(FIELDS[name])
        return cls(tuple(fields))

    @classmethod
    def from_spec(cls, spec: str) -> Template:
        """Parse a comma-separated field list such as ``"BYTES,PACKETS"``."""
        return cls.from_names(spec.split(","))

    @property
    def names(self) -> list[str]:
        """Field names in template order."""
        return [f.name for f in self.fields]

    @property
    def spec(self) -> str:
        """Comma-separated field list."""
        return ",".join(self.names)

    def extend(self, names: Iterable[str]) -> Template:
        """Return a new template with ``names`` appended."""
        return Template.from_names([*self.names, *names])

    def without(self, names: Iterable[str]) -> Template:
        """Return a new template with ``names`` removed."""
        excluded = set(names)
        return Template(tuple(f for f in self.fields if f.name not in excluded))

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self.fields)

    def __iter__(self) -> Iterator[FieldDef]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


def input_template(
    spec: str = DEFAULT_INPUT_SPEC,
    extra_fields: Sequence[str] = (),
) -> Template:
    """Build the input template.

    Args:
        spec: Base field list.
        extra_fields: Additional pass-through fields.

    Raises:
        TemplateError: If a field is unknown, repeated, a feature field, or
            a field the engine needs is missing.
    """
    template = Template.from_spec(spec).extend(extra_fields)

    features = [name for name in template.names if name in OUTPUT_FIELD_NAMES.values()]
    if features:
        raise TemplateError(f"Input template cannot contain feature fields: {', '.join(features)}")

    missing = [name for name in REQUIRED_FIELDS if name not in template]
    if missing:
        raise TemplateError(f"Input template is missing required fields: {', '.join(missing)}")
    return template


def output_template(
    source: Template,
    drop_packet_series: bool = False,
    features: Iterable[str] | None = None,
) -> Template:
    """Build the output template: input fields followed by feature fields.

    Args:
        source: Input template whose fields are copied.
        drop_packet_series: Whether to leave the per-packet arrays out.
        features: Feature field names; defaults to the engine's output fields.
    """
    base = source.without(PACKET_SERIES_FIELDS) if drop_packet_series else source
    return base.extend(OUTPUT_FIELD_NAMES.values() if features is None else features)
