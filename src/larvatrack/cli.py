"""larvatrack CLI -- thin wrapper over TrackingSession."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import click

from larvatrack.engine import (
    ConsoleObserver,
    RecordWriterObserver,
    TimingObserver,
    TrackerConfig,
    TrackingSession,
    load_config,
    serialize_config,
)
from larvatrack.engine.observers import Observer
from larvatrack.io import VideoFrameSource


def _parse_overrides(overrides: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=value`` strings into a dot-notation override dict."""
    parsed: dict[str, Any] = {}
    for item in overrides:
        key, sep, value = item.partition("=")
        if not key or not sep:
            raise click.BadParameter(
                f"expected key=value, got {item!r}", param_hint="--set"
            )
        parsed[key.strip()] = value.strip()
    return parsed


def _build_observers(
    config: TrackerConfig, verbose: bool, write_records: bool
) -> list[Observer]:
    output_dir = Path(config.output_dir)
    observers: list[Observer] = [
        ConsoleObserver(verbose=verbose),
        TimingObserver(output_path=output_dir / "timing.txt"),
    ]
    if write_records:
        observers.append(RecordWriterObserver(output_dir=output_dir))
    return observers


@click.group()
def cli() -> None:
    """larvatrack -- real-time larva posture and kinematics from video frames."""


@cli.command()
@click.argument("video", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config",
    "-c",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to session config YAML.",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    help="Config override as key=val (e.g. --set analysis.n_harmonics=9).",
)
@click.option(
    "--output-dir",
    "-o",
    default=None,
    type=click.Path(file_okay=False),
    help="Directory for data.txt, legend.txt, timing.txt and config.yaml.",
)
@click.option(
    "--stop-frame",
    default=None,
    type=click.IntRange(min=1),
    help="Stop before this frame index.",
)
@click.option(
    "--no-records", is_flag=True, default=False, help="Do not write data.txt."
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Verbose output.")
def analyze(
    video: str,
    config: str | None,
    overrides: tuple[str, ...],
    output_dir: str | None,
    stop_frame: int | None,
    no_records: bool,
    verbose: bool,
) -> None:
    """Replay VIDEO through the tracker and write per-frame records."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cli_overrides = _parse_overrides(overrides)
    if output_dir is not None:
        cli_overrides["output_dir"] = output_dir

    try:
        session_config = load_config(yaml_path=config, cli_overrides=cli_overrides)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    session = TrackingSession(
        config=session_config,
        observers=_build_observers(session_config, verbose, not no_records),
    )

    try:
        with VideoFrameSource(
            video,
            interval_ms=session_config.session.frame_interval_ms,
            stop_frame=stop_frame,
        ) as frames:
            analyzed, skipped = session.run(frames)
    except Exception as exc:
        sys.stderr.write(f"Error: {exc}\n")
        sys.exit(1)

    click.echo(f"{analyzed} frames analyzed, {skipped} skipped -> {session_config.output_dir}")


@cli.command("init-config")
@click.option(
    "--output",
    "-o",
    default="larvatrack.yaml",
    type=click.Path(),
    help="Output file path (default: larvatrack.yaml).",
)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Overwrite existing file.",
)
def init_config(output: str, force: bool) -> None:
    """Generate a template YAML config with every analysis default."""
    output_path = Path(output)
    if output_path.exists() and not force:
        raise click.ClickException(
            f"'{output}' already exists. Use --force to overwrite."
        )
    output_path.write_text(serialize_config(TrackerConfig()))
    click.echo(f"Config written to {output}")


def main() -> None:
    """Entry point for the ``larvatrack`` console script."""
    cli()
