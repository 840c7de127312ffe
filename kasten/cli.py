"""CLI entrypoint for kasten."""

import logging
import sys
from pathlib import Path

import click
from rich.logging import RichHandler

from . import __version__
from .errors import KastenError


@click.group()
@click.version_option(__version__, prog_name="kasten")
@click.option(
    "--dir",
    "-d",
    "notes_dir",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the notes directory (defaults to the current directory)",
)
@click.option("--verbose", is_flag=True, help="Log debug output")
@click.pass_context
def cli(ctx: click.Context, notes_dir: Path | None, verbose: bool) -> None:
    """kasten - build a link graph from a directory of zettels."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_time=False, show_path=verbose)],
    )

    ctx.ensure_object(dict)
    if notes_dir is None:
        notes_dir = Path.cwd()

    if not notes_dir.exists() or not notes_dir.is_dir():
        raise click.BadParameter(f"Directory '{notes_dir}' does not exist.", param_hint="--dir / -d")

    ctx.obj["notes_dir"] = notes_dir.resolve()


@cli.command()
@click.option(
    "--output",
    "-o",
    "out_dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Output directory (defaults to .kasten/output inside the notes directory)",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with error if any zettel has errors",
)
@click.pass_context
def gen(ctx: click.Context, out_dir: Path | None, strict: bool) -> None:
    """Build the zettelkasten and write every route.

    Zettels with duplicate IDs, parse errors or broken links are reported
    at the end; they do not stop the build.
    """
    from .commands.gen import run_gen

    notes_dir = ctx.obj["notes_dir"]
    if out_dir is None:
        out_dir = notes_dir / ".kasten" / "output"

    try:
        exit_code = run_gen(notes_dir, out_dir, strict=strict)
    except KastenError as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


@cli.command()
@click.option(
    "--cached",
    is_flag=True,
    help="Read the graph of the last build instead of rebuilding",
)
@click.option(
    "--id",
    "zettel_id",
    type=str,
    default=None,
    metavar="ID",
    help="Only show this zettel and its links",
)
@click.pass_context
def query(ctx: click.Context, cached: bool, zettel_id: str | None) -> None:
    """Print the zettel graph as JSON.

    Examples:

        kasten query

        kasten query --cached --id 2011401
    """
    from .commands.query import run_query

    try:
        exit_code = run_query(ctx.obj["notes_dir"], cached=cached, zettel_id=zettel_id)
    except KastenError as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
