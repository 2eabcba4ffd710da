"""Record processing loop: decode, compute features, encode."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Iterable, Iterator, Literal, Mapping, overload

import pandas as pd

from ..extractors.packet_series import PacketSeriesExtractor
from ..output.formats import StreamingWriter, to_dataframe, to_numpy
from ..records.codec import DecodeError, EncodeError, decode_flow, encode_flow
from ..records.template import input_template, output_template
from ..transport.readers import iter_records
from .config import Config

if TYPE_CHECKING:
    import numpy as np

    from ..extractors.base import FeatureExtractor
    from ..monitoring.base import MetricsSink
    from ..records.codec import DecodedFlow

logger = logging.getLogger(__name__)


@dataclass
class PipelineStats:
    """Running record counts for a pipeline.

    Attributes:
        processed: Records decoded, augmented and emitted.
        skipped: Records dropped because they could not be read, decoded
            or encoded.
    """

    processed: int = 0
    skipped: int = 0


class Pipeline:
    """Augments flow records with derived features.

    For every input record the pipeline decodes it against the input
    template, runs the feature extractors once, and encodes the original
    fields plus the features into an output record. Records are handled
    one at a time and independently of each other.

    Example:
        >>> import flowengineer as fe
        >>> pipeline = fe.Pipeline(fe.Config(time_format="ms"))
        >>> pipeline.process_stream("flows.jsonl", "augmented.jsonl")
    """

    def __init__(
        self,
        config: Config | None = None,
        metrics: MetricsSink | None = None,
        extractors: list[FeatureExtractor] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Configuration options. Uses defaults if None.
            metrics: Optional metrics sink for monitoring.
            extractors: Feature extractors to run. Defaults to the packet
                series extractor.

        Raises:
            TemplateError: If the configured templates are invalid.
        """
        self.config = config or Config()
        self.metrics = metrics
        self.extractors = extractors if extractors is not None else [PacketSeriesExtractor()]
        self.input_template = input_template(extra_fields=self.config.extra_fields)
        self.output_template = output_template(
            self.input_template,
            drop_packet_series=self.config.drop_packet_series,
            features=self.get_feature_names(),
        )
        self.stats = PipelineStats()
        logger.info("Input template is set as %s", self.input_template.spec)

    def _record_output(self, flow: DecodedFlow) -> None:
        """Record output metrics if enabled."""
        if self.metrics:
            self.metrics.observe_record(len(flow.series))

    def _record_error(self, stage: str, error: Exception | None = None) -> None:
        """Record error metrics if enabled."""
        if self.metrics:
            self.metrics.observe_error(stage, error)

    def _record_processing_time(self, mode: str, seconds: float) -> None:
        """Record processing duration metrics if enabled."""
        if self.metrics:
            self.metrics.observe_processing_time(mode, seconds)

    def _handle_error(self, stage: str, error: ValueError) -> None:
        """Apply the configured error policy to a malformed record.

        Raises:
            ValueError: The original error, when ``on_error`` is "abort".
        """
        self._record_error(stage, error)
        if self.config.on_error == "abort":
            logger.error("Aborting on %s error: %s", stage, error)
            raise error
        self.stats.skipped += 1
        logger.warning("Skipping record (%s): %s", stage, error)

    def _extract_features(self, flow: DecodedFlow) -> dict[str, Any]:
        """Run all extractors on a decoded flow."""
        features: dict[str, Any] = {}
        for extractor in self.extractors:
            features.update(extractor.extract(flow))
        return features

    def get_feature_names(self) -> list[str]:
        """Get all feature field names that will be added to each record.

        Returns:
            List of output field names.
        """
        names: list[str] = []
        for extractor in self.extractors:
            names.extend(extractor.feature_names)
        return names

    def process_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Augment a single raw record.

        Args:
            record: Field name to raw value.

        Returns:
            Output record in output-template order.

        Raises:
            DecodeError: If the record does not satisfy the input template.
            EncodeError: If the output record cannot be populated.
        """
        flow = decode_flow(record, self.input_template, self.config.time_format)
        output = encode_flow(flow, self._extract_features(flow), self.output_template)
        self._record_output(flow)
        return output

    def iter_process(
        self,
        records: Iterable[Mapping[str, Any]],
        stop_event: threading.Event | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Augment records one at a time.

        The stop event is checked before each record is fetched, so setting
        it ends the loop after the record currently in flight.

        Args:
            records: Raw input records.
            stop_event: Optional event that requests a clean stop.

        Yields:
            Output records, in input order.

        Raises:
            DecodeError: For a malformed record when ``on_error`` is "abort".
            EncodeError: For an unencodable record when ``on_error`` is "abort".
        """
        iterator = iter(records)
        while stop_event is None or not stop_event.is_set():
            try:
                record = next(iterator)
            except StopIteration:
                return

            try:
                output = self.process_record(record)
            except DecodeError as e:
                self._handle_error("decode", e)
                continue
            except EncodeError as e:
                self._handle_error("encode", e)
                continue

            self.stats.processed += 1
            yield output

        logger.info("Stop requested after %d records", self.stats.processed)

    def process_stream(
        self,
        source: str | Path | IO[Any],
        destination: str | Path | IO[Any],
        input_format: str | None = None,
        output_format: str | None = None,
        stop_event: threading.Event | None = None,
    ) -> int:
        """Read records from a source and write augmented records out.

        Output is written incrementally, so arbitrarily long streams are
        processed in constant memory.

        Args:
            source: Input path, ``"-"`` for stdin, or an open file object.
            destination: Output path, ``"-"`` for stdout, or an open file object.
            input_format: Overrides ``config.input_format``.
            output_format: Overrides ``config.output_format``.
            stop_event: Optional event that requests a clean stop.

        Returns:
            Number of records written.
        """
        input_format = input_format or self.config.input_format
        output_format = output_format or self.config.output_format

        logger.info("Processing %s records from %s", input_format, source)
        start_time = time.time()

        records = iter_records(
            source,
            input_format,
            on_invalid=lambda error: self._handle_error("read", error),
        )
        with StreamingWriter(destination, format=output_format) as writer:
            for output in self.iter_process(records, stop_event):
                writer.write(output)

        elapsed = time.time() - start_time
        self._record_processing_time("stream", elapsed)
        logger.info(
            f"Augmented {writer.rows_written} records ({self.stats.skipped} skipped) in {elapsed:.2f}s"
        )
        return writer.rows_written

    @overload
    def process_records(
        self,
        records: Iterable[Mapping[str, Any]],
        output_format: Literal["dict"] = "dict",
    ) -> list[dict[str, Any]]: ...

    @overload
    def process_records(
        self,
        records: Iterable[Mapping[str, Any]],
        output_format: Literal["numpy"],
    ) -> np.ndarray: ...

    @overload
    def process_records(
        self,
        records: Iterable[Mapping[str, Any]],
        output_format: Literal["dataframe"],
    ) -> pd.DataFrame: ...

    def process_records(
        self,
        records: Iterable[Mapping[str, Any]],
        output_format: str = "dict",
    ) -> pd.DataFrame | np.ndarray | list[dict[str, Any]]:
        """Augment an in-memory batch of records.

        Args:
            records: Raw input records.
            output_format: "dict", "dataframe" or "numpy".

        Returns:
            Augmented records in the requested format.
        """
        outputs = list(self.iter_process(records))

        if output_format == "dict":
            return outputs
        elif output_format == "numpy":
            array, _ = to_numpy(outputs)
            return array
        elif output_format == "dataframe":
            return to_dataframe(outputs)
        raise ValueError(f"Unknown output format: {output_format}")


def augment(
    records: Iterable[Mapping[str, Any]],
    config: Config | None = None,
    output_format: str = "dict",
) -> pd.DataFrame | np.ndarray | list[dict[str, Any]]:
    """Augment flow records with derived features.

    This is a convenience function that creates a Pipeline and runs it
    over an in-memory batch.

    Args:
        records: Raw input records (mappings of field name to value).
        config: Optional configuration.
        output_format: "dict", "dataframe" or "numpy".

    Returns:
        Augmented records in the requested format.

    Example:
        >>> import flowengineer as fe
        >>> df = fe.augment(records, fe.Config(time_format="ms"), output_format="dataframe")
    """
    return Pipeline(config).process_records(records, output_format)
