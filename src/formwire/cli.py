"""Command-line entry point for encoding request bodies from the shell."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from .config_loader import ConfigError, config_from_env, load_config
from .datatypes import BodyDescriptor, EncoderConfig, FormField
from .encoder import BodyEncoder
from .entity import Entity
from .errors import BodyError
from .modes import MultipartMode

__all__ = ["main"]

logger = logging.getLogger(__name__)

_MODE_CHOICES = [member.value for member in MultipartMode]


def _split_assignment(raw: str, option: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise click.BadParameter(f"expected NAME=VALUE, got {raw!r}", param_hint=option)
    return name, value


def _build_descriptor(
    text: Optional[str],
    fields: Sequence[str],
    files: Sequence[str],
    charset: Optional[str],
    mode: Optional[str],
) -> Optional[BodyDescriptor]:
    if text is not None and (fields or files):
        raise click.UsageError("--text cannot be combined with --field or --file.")
    if text is not None:
        return BodyDescriptor.text(text, charset=charset)
    if not fields and not files:
        return None
    entries: list[FormField] = []
    for raw in fields:
        name, value = _split_assignment(raw, "--field")
        entries.append(FormField(name, value))
    for raw in files:
        name, value = _split_assignment(raw, "--file")
        path = Path(value)
        if not path.is_file():
            raise click.BadParameter(f"file not found: {value}", param_hint="--file")
        entries.append(FormField(name, path))
    return BodyDescriptor.form(entries, charset=charset, mode=mode)


def _summary(entity: Entity, descriptor: Optional[BodyDescriptor]) -> Table:
    table = Table(title="Encoded body", show_header=False, box=None)
    table.add_column("key", style="cyan")
    table.add_column("value")
    table.add_row("route", entity.route.value)
    table.add_row("content-type", entity.content_type or "-")
    table.add_row("content-length", "unknown" if entity.content_length is None else str(entity.content_length))
    table.add_row("charset", entity.charset or "-")
    if descriptor is not None and descriptor.is_multipart:
        for part in descriptor.multi_parts:
            table.add_row("part", part.describe())
    return table


@click.group()
@click.option("--verbose", is_flag=True, help="Show debug logging on stderr.")
def main(verbose: bool) -> None:
    """Encode HTTP request bodies the way the formwire encoder sends them."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command("encode")
@click.option("--text", "text", default=None, help="Send a unified text body.")
@click.option("--field", "fields", multiple=True, metavar="NAME=VALUE", help="Add a form field (repeatable).")
@click.option("--file", "files", multiple=True, metavar="NAME=PATH", help="Attach a file part (repeatable).")
@click.option("--charset", default=None, help="Charset for text and form fields (default UTF-8).")
@click.option(
    "--mode",
    type=click.Choice(_MODE_CHOICES, case_sensitive=False),
    default=None,
    help="Multipart header mode.",
)
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False), help="TOML file with an [encoder] table.")
@click.option("--boundary", default=None, help="Fixed multipart boundary instead of a random one.")
@click.option("--output", "output_path", default=None, type=click.Path(dir_okay=False), help="Write the body to a file instead of stdout.")
@click.option("--quiet", is_flag=True, help="Do not print the summary table.")
def encode_command(
    text: Optional[str],
    fields: tuple[str, ...],
    files: tuple[str, ...],
    charset: Optional[str],
    mode: Optional[str],
    config_path: Optional[str],
    boundary: Optional[str],
    output_path: Optional[str],
    quiet: bool,
) -> None:
    """Encode a body and write the wire bytes to stdout or --output."""

    try:
        cfg = load_config(config_path) if config_path else EncoderConfig()
        cfg = config_from_env(os.environ, cfg)
    except (ConfigError, OSError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc

    try:
        descriptor = _build_descriptor(text, fields, files, charset, mode)
        with BodyEncoder(cfg).encode(descriptor, boundary=boundary) as entity:
            payload = entity.read()
    except BodyError as exc:
        raise click.ClickException(str(exc)) from exc

    if output_path:
        Path(output_path).write_bytes(payload)
    else:
        stdout = click.get_binary_stream("stdout")
        stdout.write(payload)
        stdout.flush()
    logger.debug("Wrote %d encoded byte(s) to %s", len(payload), output_path or "stdout")

    if not quiet:
        Console(stderr=True, highlight=False).print(_summary(entity, descriptor))


if __name__ == "__main__":
    main()
