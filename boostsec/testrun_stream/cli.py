"""CLI entry point for inspecting test run result streams."""

import asyncio
import logging
import sys
from pathlib import Path

import typer

from boostsec.testrun_stream.codec import event_to_json
from boostsec.testrun_stream.config_loader import load_recorder_config
from boostsec.testrun_stream.paths import resolve_stream_path
from boostsec.testrun_stream.reader import follow_events, read_events
from boostsec.testrun_stream.summary import summarize_events

# Configure logging - force reconfiguration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
    force=True,
)
logger = logging.getLogger(__name__)

app = typer.Typer()

STREAM_HELP = "Result stream file, or directory holding testrun_results_stream.jsos"
CONFIG_HELP = "YAML recorder configuration used when no stream is given"


def _stream_path(
    stream: Path | None, config_file: Path | None, must_exist: bool = True
) -> Path:
    """Resolve the stream to read from the argument or the configuration."""
    if stream is not None:
        path = resolve_stream_path(stream)
    else:
        try:
            path = load_recorder_config(config_file).stream_path
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Failed to load configuration: {e}")
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)

    if must_exist and not path.is_file():
        typer.echo(f"Error: Result stream not found: {path}", err=True)
        raise typer.Exit(code=1)
    return path


@app.command()
def show(
    stream: Path | None = typer.Argument(None, help=STREAM_HELP),  # noqa: B008
    config_file: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),  # noqa: B008
    include_trailing: bool = typer.Option(
        False, help="Also show a final record missing its separator"
    ),
) -> None:
    """Print every complete record as one JSON line."""
    path = _stream_path(stream, config_file)
    for event in read_events(path, include_trailing=include_trailing):
        typer.echo(event_to_json(event))


@app.command()
def summary(
    stream: Path | None = typer.Argument(None, help=STREAM_HELP),  # noqa: B008
    config_file: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),  # noqa: B008
) -> None:
    """Summarize test outcomes; exit 1 if any test failed or never finished."""
    path = _stream_path(stream, config_file)
    logger.info(f"Reading result stream: {path}")

    run_summary = summarize_events(read_events(path))
    for name in run_summary.incomplete:
        logger.error(f"✗ {name}: started but never finished")
    if run_summary.unmatched:
        logger.warning(
            f"{len(run_summary.unmatched)} completion records had no start record"
        )

    typer.echo(run_summary.model_dump_json(indent=2))

    if run_summary.has_failures:
        bad_count = (
            run_summary.failed + run_summary.errored + len(run_summary.incomplete)
        )
        logger.error(f"Tests failed: {bad_count}/{run_summary.total}")
        raise typer.Exit(code=1)


@app.command()
def tail(
    stream: Path | None = typer.Argument(None, help=STREAM_HELP),  # noqa: B008
    config_file: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),  # noqa: B008
    poll_interval: float = typer.Option(1.0, help="Seconds between reads"),
    idle_timeout: float | None = typer.Option(
        None, help="Stop after this many seconds without new records"
    ),
) -> None:
    """Follow a live result stream, printing records as they are written."""
    path = _stream_path(stream, config_file, must_exist=False)
    logger.info(f"Following result stream: {path}")
    asyncio.run(_print_followed(path, poll_interval, idle_timeout))


async def _print_followed(
    path: Path, poll_interval: float, idle_timeout: float | None
) -> None:
    async for event in follow_events(
        path, poll_interval=poll_interval, idle_timeout=idle_timeout
    ):
        typer.echo(event_to_json(event))


if __name__ == "__main__":  # pragma: no cover
    app()
