"""Typer-based CLI that externalizes the source map of a bundle."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer

from exorcist.errors import ExorcistError
from exorcist.models import RewriteOptions
from exorcist.transform import Exorcist

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="exorcist: move the inline source map of a bundle into its own file",
)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(verbose: bool) -> None:
    """Route library logging to stderr so stdout stays the bundle."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _echo_missing_map(message: str) -> None:
    typer.echo(message, err=True)


@app.command()
def main(
    ctx: typer.Context,
    map_file: Path | None = typer.Argument(None, help="Path of the map file to write", show_default=False),
    output: Path | None = typer.Argument(None, help="Output file (default: stdout)", show_default=False),
    input_file: Path | None = typer.Argument(
        None, metavar="INPUT", help="Input file (default: stdin)", show_default=False
    ),
    url: str | None = typer.Option(
        None, "--url", "-u", envvar="EXORCIST_URL", help="Full URL to the map file, set as sourceMappingURL"
    ),
    root: str | None = typer.Option(
        None, "--root", "-r", envvar="EXORCIST_ROOT", help="Root URL for loading relative source paths"
    ),
    base: str | None = typer.Option(
        None, "--base", "-b", envvar="EXORCIST_BASE", help="Base path for calculating relative source paths"
    ),
    error_on_missing: bool = typer.Option(
        False, "--error-on-missing", help="Fail instead of passing through when no map is found"
    ),
    map_dir: Path | None = typer.Option(
        None, "--map-dir", help="Directory used to resolve an external sourceMappingURL"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
) -> None:
    """Externalize the source map of the bundle read from INPUT (or stdin)."""
    _configure_logging(verbose)

    if map_file is None:
        typer.echo("Missing map file", err=True)
        typer.echo(ctx.get_help())
        return

    options = RewriteOptions(
        destination=map_file.resolve(),
        url=url,
        root=root,
        base=base,
        error_on_missing=error_on_missing,
        map_dir=map_dir,
    )

    try:
        exorcist = Exorcist(options, on_missing_map=_echo_missing_map)
        if input_file is not None:
            source_text = input_file.read_bytes().decode("utf-8")
        else:
            source_text = sys.stdin.buffer.read().decode("utf-8")
        result = exorcist.transform(source_text)

        payload = result.body.encode("utf-8")
        if output is not None:
            output.write_bytes(payload)
        else:
            sys.stdout.buffer.write(payload)
            sys.stdout.buffer.flush()
    except (ExorcistError, OSError, UnicodeDecodeError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
