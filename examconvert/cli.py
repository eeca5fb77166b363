"""
Command-line interface for examconvert.
"""

import base64
import mimetypes
import os
import sys

import click
from rich.console import Console
from rich.table import Table

from examconvert import __version__
from examconvert.engine import ConversionEngine
from examconvert.exceptions import UnknownProfileError
from examconvert.profiles import get_profile, list_profiles
from examconvert.types import ConversionRequest, DocumentPayload, TargetFormat
from examconvert.utils import format_file_size, parse_size

console = Console()

FALLBACK_MIME_TYPE = "application/octet-stream"


def guess_mime_type(path):
    mime_type, _ = mimetypes.guess_type(path)
    if mime_type is None and path.lower().endswith(".webp"):
        return "image/webp"
    return mime_type or FALLBACK_MIME_TYPE


def read_payload(path):
    with open(path, "rb") as handle:
        content = handle.read()
    return DocumentPayload(
        name=os.path.basename(path),
        content=base64.b64encode(content).decode("ascii"),
        mime_type=guess_mime_type(path),
    )


def unique_output_name(name, used):
    """Return ``name``, or ``name`` suffixed with _2, _3, ... when already written this run."""
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    candidate = name
    counter = 2
    while candidate in used:
        candidate = f"{stem}_{counter}{dot}{ext}"
        counter += 1
    used.add(candidate)
    return candidate


def parse_max_sizes(values):
    """Turn ``FORMAT=SIZE`` options into a ceiling mapping."""
    max_sizes = {}
    for value in values:
        if "=" not in value:
            raise click.BadParameter(f"Expected FORMAT=SIZE, got '{value}'", param_hint="--max-size")
        fmt, size = value.split("=", 1)
        target = TargetFormat.parse(fmt)
        if target is None:
            raise click.BadParameter(f"Unknown format '{fmt}'", param_hint="--max-size")
        try:
            max_sizes[target.value] = parse_size(size)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--max-size")
    return max_sizes


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    examconvert - Convert documents to exam portal formats and size limits.
    """
    pass


@cli.command(name="convert")
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--profile', '-p',
    default=None,
    help='Exam profile supplying formats and size limits (see "profiles")',
    type=str
)
@click.option(
    '--format', '-f', 'formats',
    multiple=True,
    help='Target format (PDF, JPEG, PNG, DOCX); may be repeated',
    type=str
)
@click.option(
    '--max-size', '-m', 'max_sizes',
    multiple=True,
    help="Size limit per format, e.g. 'JPEG=500KB'; may be repeated",
    type=str
)
@click.option(
    '--output-dir', '-o',
    default='./converted',
    help='Output directory for converted files',
    type=click.Path(file_okay=False)
)
def convert(files, profile, formats, max_sizes, output_dir):
    """
    Convert FILES to the requested formats.

    Examples:

        examconvert convert photo.png --profile neet

        examconvert convert notes.txt -f PDF -f DOCX

        examconvert convert scan.jpg -f JPEG -m JPEG=200KB -o out
    """
    try:
        ceilings = parse_max_sizes(max_sizes)
        target_formats = []
        for fmt in formats:
            target = TargetFormat.parse(fmt)
            if target is None:
                raise click.BadParameter(f"Unknown format '{fmt}'", param_hint="--format")
            target_formats.append(target.value)

        exam_type = None
        if profile:
            exam = get_profile(profile)
            exam_type = exam.key
            target_formats = target_formats or list(exam.formats)
            ceilings = {**exam.max_sizes, **ceilings}
            console.print(f"\n[bold cyan]Using exam profile:[/bold cyan] {exam.name}")

        if not target_formats:
            console.print("\n[bold red]✗ Error:[/bold red] Give --format or --profile")
            sys.exit(1)

        request = ConversionRequest(
            documents=[read_payload(path) for path in files],
            target_formats=target_formats,
            max_sizes=ceilings,
            exam_type=exam_type,
        )

        console.print(
            f"\n[bold cyan]Converting {len(files)} file(s) to {', '.join(request.target_formats)}...[/bold cyan]"
        )
        engine = ConversionEngine()
        response = engine.run(request)

        if not response.success:
            console.print(f"\n[bold red]✗ Error:[/bold red] {response.error}")
            sys.exit(1)

        os.makedirs(output_dir, exist_ok=True)
        written = set()

        table = Table(title="Conversion Results")
        table.add_column("Source", style="cyan")
        table.add_column("Format", style="magenta")
        table.add_column("Output", style="green")
        table.add_column("Size", justify="right")
        table.add_column("Limit", justify="right")

        for outcome in response.files:
            limit = request.ceiling_for(outcome.format)
            limit_text = format_file_size(limit) if limit is not None else "-"
            if outcome.is_error:
                table.add_row(
                    outcome.original_name,
                    outcome.format,
                    f"[red]✗ {outcome.error}[/red]",
                    "-",
                    limit_text,
                )
                continue
            output_name = unique_output_name(outcome.generated_name, written)
            with open(os.path.join(output_dir, output_name), "wb") as handle:
                handle.write(engine.fetch_stored(outcome.storage_handle))
            table.add_row(
                outcome.original_name,
                outcome.format,
                output_name,
                format_file_size(outcome.byte_size),
                limit_text,
            )

        console.print()
        console.print(table)

        engine.clear_all()

        if response.failed:
            console.print(f"\n[bold red]✗ {response.failed} conversion(s) failed[/bold red]")
        if response.successful:
            console.print(f"\n[bold green]✓ {response.successful} file(s) written[/bold green]")
            console.print(f"[dim]Output directory: {os.path.abspath(output_dir)}[/dim]")
        console.print()

        sys.exit(0 if response.failed == 0 else 1)

    except click.BadParameter:
        raise
    except UnknownProfileError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="profiles")
def show_profiles():
    """
    List the built-in exam profiles.

    Example:

        examconvert profiles
    """
    table = Table(title="Exam Profiles")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Exam", style="green")
    table.add_column("Formats", style="magenta")
    table.add_column("Size Limits")

    for profile in list_profiles():
        limits = ", ".join(
            f"{fmt} {format_file_size(size)}" for fmt, size in profile.max_sizes.items()
        )
        table.add_row(profile.key, profile.name, ", ".join(profile.formats), limits)

    console.print()
    console.print(table)
    console.print()


@cli.command(name="formats")
def show_formats():
    """
    Show which source types convert to which formats.

    Example:

        examconvert formats
    """
    table = Table(title="Supported Conversions")
    table.add_column("Source MIME Type", style="cyan")
    table.add_column("Target Formats", style="green")

    matrix = {}
    for mime_type, target in ConversionEngine().supported_conversions():
        matrix.setdefault(mime_type, []).append(target)
    for mime_type, targets in matrix.items():
        table.add_row(mime_type, ", ".join(targets))

    console.print()
    console.print(table)
    console.print()


if __name__ == '__main__':
    cli()
