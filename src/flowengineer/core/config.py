"""Configuration classes for flowengineer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from .timestamps import TIME_FORMATS, TimeFormat

ErrorPolicy = Literal["skip", "abort"]
InputFormat = Literal["jsonl", "msgpack"]
OutputFormat = Literal["jsonl", "msgpack", "csv", "parquet"]

INPUT_FORMATS: tuple[str, ...] = ("jsonl", "msgpack")
OUTPUT_FORMATS: tuple[str, ...] = ("jsonl", "msgpack", "csv", "parquet")
ERROR_POLICIES: tuple[str, ...] = ("skip", "abort")


@dataclass
class Config:
    """Configuration for flow record augmentation.

    Attributes:
        time_format: Encoding of numeric timestamps in input records
            ("unirec", "s", "ms", "us", "ns"). ISO 8601 strings are always
            accepted.
        extra_fields: Additional fields to read from input records and copy
            to the output, on top of the default input template.
        drop_packet_series: Whether to omit the per-packet arrays from
            output records.
        on_error: What to do with a malformed record: "skip" logs and moves
            on, "abort" stops processing with the error.
        input_format: Input record stream format.
        output_format: Output record stream format.
    """

    time_format: TimeFormat = "s"
    extra_fields: list[str] = field(default_factory=list)
    drop_packet_series: bool = False
    on_error: ErrorPolicy = "skip"
    input_format: InputFormat = "jsonl"
    output_format: OutputFormat = "jsonl"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.time_format not in TIME_FORMATS:
            raise ValueError(f"time_format must be one of {', '.join(TIME_FORMATS)}")
        if self.on_error not in ERROR_POLICIES:
            raise ValueError(f"on_error must be one of {', '.join(ERROR_POLICIES)}")
        if self.input_format not in INPUT_FORMATS:
            raise ValueError(f"input_format must be one of {', '.join(INPUT_FORMATS)}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {', '.join(OUTPUT_FORMATS)}")
        if isinstance(self.extra_fields, str):
            raise ValueError("extra_fields must be a list of field names")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return {
            "time_format": self.time_format,
            "extra_fields": list(self.extra_fields),
            "drop_packet_series": self.drop_packet_series,
            "on_error": self.on_error,
            "input_format": self.input_format,
            "output_format": self.output_format,
        }

    def to_json(self, path: str | Path) -> None:
        """Save configuration to JSON file.

        Args:
            path: Path to output JSON file.
        """
        path = Path(path)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path to output YAML file.

        Raises:
            ImportError: If PyYAML is not installed.
        """
        try:
            import yaml
        except ImportError as e:
            raise ImportError("PyYAML is required for YAML config files. Install with: pip install pyyaml") from e

        path = Path(path)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create configuration from dictionary.

        Args:
            data: Dictionary with configuration values.

        Returns:
            Config instance.

        Raises:
            ValueError: If the dictionary holds unknown keys or is not a
                mapping.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")
        unknown = set(data) - set(cls().to_dict())
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        return cls(
            time_format=data.get("time_format", "s"),
            extra_fields=list(data.get("extra_fields") or []),
            drop_packet_series=bool(data.get("drop_packet_series", False)),
            on_error=data.get("on_error", "skip"),
            input_format=data.get("input_format", "jsonl"),
            output_format=data.get("output_format", "jsonl"),
        )

    @classmethod
    def from_json(cls, path: str | Path) -> Config:
        """Load configuration from JSON file.

        Args:
            path: Path to JSON configuration file.

        Returns:
            Config instance.

        Raises:
            FileNotFoundError: If file does not exist.
            json.JSONDecodeError: If file is not valid JSON.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Config instance.

        Raises:
            FileNotFoundError: If file does not exist.
            ImportError: If PyYAML is not installed.
        """
        try:
            import yaml
        except ImportError as e:
            raise ImportError("PyYAML is required for YAML config files. Install with: pip install pyyaml") from e

        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load configuration from file (auto-detect format).

        Supports JSON (.json) and YAML (.yaml, .yml) files.

        Args:
            path: Path to configuration file.

        Returns:
            Config instance.

        Raises:
            ValueError: If file extension is not recognized.
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == ".json":
            return cls.from_json(path)
        elif suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        else:
            raise ValueError(f"Unsupported config file format: {suffix}. Use .json or .yaml/.yml")
