"""Contract between the pipeline and the code that derives features."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..records.fields import FieldDef, get_field

if TYPE_CHECKING:
    from ..records.codec import DecodedFlow
    from ..schema.registry import FeatureMeta


class FeatureExtractor(ABC):
    """Derives a group of output fields from one decoded flow.

    The pipeline appends ``feature_names`` to the output template, so each
    name must be registered in ``records.fields.FIELDS`` and must not also
    appear in the input template. ``extract`` is called once per record and
    returns exactly those names, in the same order. An instance keeps no
    per-flow state and serves every record of a stream.

    Feature IDs have the form ``"<extractor_id>.<FIELD_NAME>"`` and key the
    schema registry.
    """

    @abstractmethod
    def extract(self, flow: DecodedFlow) -> dict[str, Any]:
        """Return the output fields of ``flow`` keyed in ``feature_names`` order."""

    @property
    @abstractmethod
    def feature_names(self) -> list[str]:
        """Output field names appended to every record."""

    @property
    @abstractmethod
    def extractor_id(self) -> str:
        """Prefix of this extractor's feature IDs, e.g. ``"ppi"``."""

    @abstractmethod
    def feature_meta(self) -> dict[str, FeatureMeta]:
        """Schema metadata keyed by feature ID."""

    def feature_id(self, name: str) -> str:
        return f"{self.extractor_id}.{name}"

    def feature_ids(self) -> list[str]:
        """Feature IDs in output order."""
        return [self.feature_id(name) for name in self.feature_names]

    def output_fields(self) -> list[FieldDef]:
        """Field definitions of ``feature_names``, in output order.

        Raises:
            KeyError: If a feature name is not a registered field.
        """
        return [get_field(name) for name in self.feature_names]
