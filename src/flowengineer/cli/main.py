"""Command-line interface for flowengineer."""

from __future__ import annotations

import json
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

import click

from .. import __version__
from ..core.config import ERROR_POLICIES, INPUT_FORMATS, OUTPUT_FORMATS, Config
from ..core.pipeline import Pipeline
from ..core.timestamps import TIME_FORMATS

if TYPE_CHECKING:
    from ..monitoring.prometheus import PrometheusMetrics

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _start_prometheus_metrics(port: int | None, addr: str) -> PrometheusMetrics | None:
    if port is None:
        return None
    try:
        from ..monitoring.prometheus import PrometheusMetrics, start_prometheus_server

        metrics = PrometheusMetrics()
        start_prometheus_server(port, addr=addr, registry=metrics.registry)
    except (ImportError, OSError) as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Prometheus metrics available at http://{addr}:{port}", err=True)
    return metrics


@contextmanager
def _stop_on_signal() -> Iterator[threading.Event]:
    """Set an event on SIGINT/SIGTERM; a second signal interrupts immediately."""
    stop_event = threading.Event()

    def handler(signum: int, frame: Any) -> None:
        if stop_event.is_set():
            raise KeyboardInterrupt
        logger.info("Received signal %d, stopping", signum)
        stop_event.set()

    if threading.current_thread() is not threading.main_thread():
        yield stop_event
        return

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield stop_event
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def _load_config(config_file: str | None, overrides: dict[str, Any]) -> Config:
    """Build a Config from an optional file, then apply explicit options."""
    if config_file:
        try:
            data = Config.from_file(config_file).to_dict()
        except (OSError, ValueError, ImportError) as e:
            raise click.ClickException(f"Failed to load config file: {e}")
        click.echo(f"Loaded config from: {config_file}", err=True)
    else:
        data = Config().to_dict()

    # CLI options override config file
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return Config.from_dict(data)
    except ValueError as e:
        raise click.ClickException(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="flowengineer")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """flowengineer: Flow Record Feature Engineering.

    Augment flow records with ratio, rate and per-packet statistics features.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.argument("input_path", default="-", type=click.Path(allow_dash=True))
@click.option(
    "-o",
    "--output",
    type=click.Path(allow_dash=True),
    default="-",
    help="Output file path. Defaults to stdout.",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Output format (parquet requires pyarrow and a file path).",
)
@click.option(
    "--input-format",
    type=click.Choice(INPUT_FORMATS),
    default=None,
    help="Input record format.",
)
@click.option(
    "--time-format",
    type=click.Choice(TIME_FORMATS),
    default=None,
    help="Encoding of numeric timestamps in input records.",
)
@click.option(
    "--extra-field",
    "extra_fields",
    multiple=True,
    help="Additional field to read and pass through (can specify multiple).",
)
@click.option(
    "--drop-series/--keep-series",
    default=None,
    help="Omit the per-packet arrays from output records.",
)
@click.option(
    "--on-error",
    type=click.Choice(ERROR_POLICIES),
    default=None,
    help="Skip or abort on a malformed record.",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    help="Configuration file (JSON or YAML).",
)
@click.option(
    "--prometheus-port",
    type=int,
    default=None,
    help="Expose Prometheus metrics on this port.",
)
@click.option(
    "--prometheus-addr",
    type=str,
    default="0.0.0.0",
    help="Prometheus bind address.",
)
@click.pass_context
def process(
    ctx: click.Context,
    input_path: str,
    output: str,
    output_format: str | None,
    input_format: str | None,
    time_format: str | None,
    extra_fields: tuple[str, ...],
    drop_series: bool | None,
    on_error: str | None,
    config_file: str | None,
    prometheus_port: int | None,
    prometheus_addr: str,
) -> None:
    """Augment flow records read from INPUT_PATH (stdin by default).

    Examples:

        flowengineer process flows.jsonl -o augmented.jsonl

        flowengineer process --time-format ms -f csv < flows.jsonl > out.csv
    """
    config = _load_config(
        config_file,
        {
            "time_format": time_format,
            "extra_fields": list(extra_fields) or None,
            "drop_packet_series": drop_series,
            "on_error": on_error,
            "input_format": input_format,
            "output_format": output_format,
        },
    )
    metrics = _start_prometheus_metrics(prometheus_port, prometheus_addr)

    try:
        pipeline = Pipeline(config, metrics=metrics)
        with _stop_on_signal() as stop_event:
            written = pipeline.process_stream(input_path, output, stop_event=stop_event)
    except (OSError, ValueError, ImportError) as e:
        raise click.ClickException(str(e))
    except KeyboardInterrupt:
        click.echo("\nProcessing interrupted by user.", err=True)
        sys.exit(130)

    click.echo(f"Augmented {written} records, skipped {pipeline.stats.skipped}", err=True)
    if stop_event.is_set():
        click.echo("Stopped on signal before end of input.", err=True)


@cli.command()
@click.pass_context
def features(ctx: click.Context) -> None:
    """List the feature fields added to each record."""
    from ..schema.registry import get_extractors

    for extractor in get_extractors():
        for field_def in extractor.output_fields():
            unit = f" [{field_def.unit}]" if field_def.unit else ""
            click.echo(f"{field_def.name:<24} {field_def.type.name:<8} {field_def.description}{unit}")


@cli.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(),
    help="Output file path (defaults to stdout).",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="json",
    help="Schema output format.",
)
@click.option(
    "--extra-field",
    "extra_fields",
    multiple=True,
    help="Additional pass-through field (can specify multiple).",
)
@click.option(
    "--drop-series",
    is_flag=True,
    help="Describe records without the per-packet arrays.",
)
@click.pass_context
def schema(
    ctx: click.Context,
    output: str | None,
    output_format: str,
    extra_fields: tuple[str, ...],
    drop_series: bool,
) -> None:
    """Print the output record schema.

    Examples:

        flowengineer schema -o schema.json

        flowengineer schema -f text --drop-series
    """
    from ..schema.generate import generate_schema

    try:
        document = generate_schema(Config(extra_fields=list(extra_fields), drop_packet_series=drop_series))
    except ValueError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        content = json.dumps(document, indent=2)
    else:
        lines = [f"# {document['title']} ({document['version']})", f"# {document['output_template']}"]
        for f in document["fields"]:
            unit = f" [{f['unit']}]" if f["unit"] else ""
            lines.append(f"{f['name']:<24} {f['type']:<8} {f['description']}{unit}")
        content = "\n".join(lines)

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(content + "\n")
        click.echo(f"Schema written to: {output}", err=True)
    else:
        click.echo(content)


if __name__ == "__main__":
    cli()
