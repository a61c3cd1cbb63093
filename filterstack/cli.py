"""Command-line front end: list filters, render one edit, or build a comparison set."""

from __future__ import annotations

import re
from dataclasses import replace
from pathlib import Path

import click

from .config import ConfigError, build_session, load_config
from .engine import RenderError
from .filters import ORIGINAL_LABEL, FilterId, list_filters, lookup
from .image import LoadError, encode_image
from .log import setup_console_logging
from .session import EditSession


def _parse_filter(name: str | None) -> FilterId | None:
    if name is None or name.strip().lower() in ("", "none", ORIGINAL_LABEL.lower()):
        return None
    try:
        return lookup(name)
    except KeyError:
        choices = ", ".join(label for label, _ in list_filters())
        raise click.BadParameter(f"unknown filter {name!r} (choose from {ORIGINAL_LABEL}, {choices})") from None


def _parse_variant(spec: str) -> tuple[FilterId | None, float]:
    name, sep, value = spec.rpartition(":")
    if not sep:
        return _parse_filter(spec), 0.0
    try:
        brightness = float(value)
    except ValueError:
        raise click.BadParameter(f"bad brightness in variant {spec!r}") from None
    return _parse_filter(name), brightness


def _slug(label: str) -> str:
    return re.sub(r"[^a-z0-9+-]+", "_", label.lower()).strip("_")


def _open_session(ctx: click.Context, source: Path) -> EditSession:
    session = build_session(replace(ctx.obj["config"], async_render=False))
    try:
        session.load_bytes(source.read_bytes())
    except (LoadError, OSError) as e:
        raise click.ClickException(f"Cannot load {source}: {e}") from e
    return session


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="YAML config file (defaults to $FILTERSTACK_CONFIG).")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """Non-destructive filter and exposure previews."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    setup_console_logging(log_level or config.log_level, color=config.color_logs)
    ctx.obj = {"config": config}


@cli.command("filters")
def filters_cmd() -> None:
    """List the available filters."""
    for label, filter_id in list_filters():
        click.echo(f"{label}\t{filter_id.value}")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-f", "--filter", "filter_name", default=None, help="Filter label or id.")
@click.option("-b", "--brightness", type=float, default=0.0, show_default=True,
              help="Exposure in stops, clamped to [-1, 1].")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), required=True)
@click.pass_context
def render(ctx: click.Context, source: Path, filter_name: str | None, brightness: float, output: Path) -> None:
    """Render SOURCE with one filter and brightness setting."""
    filter_id = _parse_filter(filter_name)
    session = _open_session(ctx, source)
    try:
        session.select_filter(filter_id)
        session.set_brightness(brightness)
    except RenderError as e:
        raise click.ClickException(str(e)) from e
    output.write_bytes(encode_image(session.preview, format="PNG"))
    click.echo(f"{output}")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-v", "--variant", "variants", multiple=True, required=True,
              help="FILTER[:BRIGHTNESS], repeatable, e.g. sepia:0.2")
@click.option("-o", "--output-dir", type=click.Path(file_okay=False, path_type=Path), required=True)
@click.pass_context
def compare(ctx: click.Context, source: Path, variants: tuple[str, ...], output_dir: Path) -> None:
    """Save several edits of SOURCE side by side, newest first."""
    parsed = [_parse_variant(v) for v in variants]
    session = _open_session(ctx, source)
    for filter_id, brightness in parsed:
        try:
            session.select_filter(filter_id)
            session.set_brightness(brightness)
        except RenderError as e:
            raise click.ClickException(str(e)) from e
        session.commit()

    output_dir.mkdir(parents=True, exist_ok=True)
    for index, snapshot in enumerate(session.gallery):
        path = output_dir / f"{index:02d}-{_slug(snapshot.label)}.png"
        path.write_bytes(encode_image(snapshot.image, format="PNG"))
        click.echo(f"{snapshot.label}\t{path}")


def main() -> None:
    cli(prog_name="filterstack")
