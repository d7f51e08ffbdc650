"""CLI entry point for director-rsrc.

Usage:
    director-rsrc list <file>                   List every resource in a file
    director-rsrc show <file> <TYPE:NUM>        Decode one resource as JSON
    director-rsrc pattern <file> <NUM> <png>    Save a 'PAT ' resource as an image
"""

from __future__ import annotations

import contextlib
import dataclasses
import enum
import json
import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import Settings
from .director import (
    CastMap,
    CastRegistry,
    FilmLoopProperties,
    Member,
    MemberMetadata,
    ScriptProperties,
    ShapeProperties,
)
from .director.chunks import CONFIG_VERSION_D5
from .errors import ResourceError, ResourceNotFoundError
from .resources import ResourceManager
from .toolbox import OsType, Pattern, PString, ResourceFile, ResourceId, ScriptCode, StringList, Version
from .toolbox.intl import set_active_script
from .vfs import HostFileSource, HostFileSystem
from .vfs.host import parse_loose_resource_name

log = logging.getLogger(__name__)

# Decoders selectable with --kind.  Tags map to the kind stored under them.
KINDS = {
    "vers": Version,
    "STR#": StringList,
    "STR ": PString,
    "PAT ": Pattern,
    "CASt": Member,
    "CAS*": CastMap,
    "VWCR": CastRegistry,
    "VWCI": MemberMetadata,
    "shape": ShapeProperties,
    "film-loop": FilmLoopProperties,
    "script": ScriptProperties,
}

# Kinds whose decoder takes the movie's config version.
VERSIONED_KINDS = (Member, CastRegistry)


def _open_source(file: str):
    """Open *file* as loose resources, a resource fork, or a bare resource file.

    The result is a context manager; leaving it closes any open fork.
    """
    path = Path(file)
    if path.is_dir() or parse_loose_resource_name(path.name) is not None:
        return contextlib.nullcontext(HostFileSource(path))
    try:
        try:
            return HostFileSystem().open_resource_file(path)
        except ResourceNotFoundError:
            # No separate fork; the data fork may itself be a resource file
            log.debug("No resource fork for %s, reading the data fork", path)
            return ResourceFile(open(path, "rb"), name=str(path), close=True)
    except ResourceError as e:
        raise click.ClickException(str(e)) from e


def _to_json(value):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, enum.IntFlag):
        return {"value": int(value), "flags": [f.name for f in type(value) if f in value]}
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    if isinstance(value, OsType):
        return str(value)
    return value


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--script", default=None, help="Script for Pascal strings (e.g. roman, japanese)")
@click.option("--skip-broken", is_flag=True, help="Skip sources that fail to read")
@click.pass_context
def main(ctx: click.Context, verbose: bool, script: str | None, skip_broken: bool) -> None:
    """Inspect classic Mac OS resource files and Director cast resources."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(name)s %(levelname)s: %(message)s",
    )
    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="DIRECTOR_RSRC_SCRIPT") from e
    if script is not None:
        try:
            script_code = ScriptCode.from_name(script)
            set_active_script(script_code)
        except (ValueError, ResourceError) as e:
            raise click.BadParameter(str(e), param_hint="--script") from e
        settings = dataclasses.replace(settings, script=script_code)
    if skip_broken:
        settings = dataclasses.replace(settings, skip_source_errors=True)
    ctx.obj = settings


@main.command(name="list")
@click.argument("file", type=click.Path(exists=True))
def list_resources(file: str) -> None:
    """List every resource in FILE with its size and name."""
    with _open_source(file) as source:
        count = 0
        for rid in source.ids():
            try:
                _, size = source.load_bytes(rid)
                size_text = f"{size:8d} bytes"
            except ResourceError as e:
                log.warning("%s", e)
                size_text = f"{'?':>8s} bytes"
            name = source.name_of(rid) if isinstance(source, ResourceFile) else None
            label = f"  {name.decode('mac_roman')!r}" if name is not None else ""
            click.echo(f"  {str(rid.os_type):6s} {rid.num:6d}  {size_text}{label}")
            count += 1
        click.echo(f"{count} resources in {source.name}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.argument("resource")
@click.option("--kind", "kind_name", type=click.Choice(sorted(KINDS)), default=None,
              help="Decoder to use (default: chosen by resource type)")
@click.option("--config-version", type=int, default=CONFIG_VERSION_D5, show_default=True,
              help="Director config version for CASt/VWCR")
@click.pass_obj
def show(settings: Settings, file: str, resource: str, kind_name: str | None, config_version: int) -> None:
    """Decode RESOURCE (TYPE:NUM) from FILE and print it as JSON."""
    try:
        rid = ResourceId.parse(resource)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="RESOURCE") from e

    kind = KINDS.get(kind_name or str(rid.os_type))
    if kind is None:
        raise click.UsageError(f"no decoder for {rid.os_type}; pick one with --kind")

    args = (config_version,) if kind in VERSIONED_KINDS else ()
    with _open_source(file) as source:
        manager = ResourceManager([source], settings)
        try:
            value = manager.load_args(rid, kind, *args)
        except ResourceError as e:
            raise click.ClickException(str(e)) from e

    out = json.dumps(_to_json(value), indent=2, ensure_ascii=False)
    sys.stdout.buffer.write(out.encode("utf-8"))
    sys.stdout.buffer.write(b"\n")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.argument("num", type=int)
@click.argument("output", type=click.Path())
@click.option("--scale", type=int, default=8, show_default=True, help="Pixels per pattern bit")
@click.pass_obj
def pattern(settings: Settings, file: str, num: int, output: str, scale: int) -> None:
    """Render 'PAT ' resource NUM from FILE to a PNG."""
    with _open_source(file) as source:
        try:
            pat = ResourceManager([source], settings).load_num(num, Pattern)
        except ResourceError as e:
            raise click.ClickException(str(e)) from e
    img = pat.to_image()
    if scale > 1:
        img = img.resize((8 * scale, 8 * scale))
    img.save(output)
    click.echo(f"Saved {output}")


if __name__ == "__main__":
    main()
