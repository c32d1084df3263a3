"""Command-line front end for the SCL analyzer using Typer."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import ValidationError

from sclx.analyze import AnalyzerConfig, SclAnalyzer, classify
from sclx.model.snapshot import build_snapshot

app = typer.Typer(
    name="sclx",
    help="Explain SCL logic against a snapshot of PLC tag values.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

CodeArgument = Annotated[
    str,
    typer.Argument(help="SCL source file, or '-' to read from stdin"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def read_code(source: str) -> str:
    """Read SCL text from a file path, or stdin for ``-``."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def load_tags(path: Path) -> dict[str, Any]:
    """
    Load a tag snapshot from JSON. Accepts an object keyed by tag name or a
    list of records carrying ``tag_name`` (or ``name``).
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return data
    if isinstance(data, list):
        tags: dict[str, Any] = {}
        for record in data:
            if not isinstance(record, dict):
                raise ValueError(f"Tag records must be objects, got {type(record).__name__}")
            name = record.get("tag_name") or record.get("name")
            if not name:
                raise ValueError(f"Tag record without a name: {record!r}")
            tags[name] = record
        return tags
    raise ValueError("Tags file must hold a JSON object or list")


# ============================================================================
# Commands
# ============================================================================

@app.command()
def analyze(
    code_file: CodeArgument,
    tags: Annotated[Optional[Path], typer.Option("--tags", help="JSON file with the tag snapshot")] = None,
    json_output: JsonOption = False,
    report_unresolved: Annotated[bool, typer.Option("--report-unresolved", help="List identifiers missing from the snapshot")] = False,
    decimal_places: Annotated[int, typer.Option("--decimal-places", help="Decimals shown for REAL values")] = 2,
    verbose: VerboseOption = False,
) -> None:
    """
    Analyze an SCL snippet and print its step-by-step explanation.

    Exits with 1 when the analysis itself failed, 2 when input is unreadable.
    """
    setup_logging(verbose)

    try:
        code = read_code(code_file)
        snapshot = build_snapshot(load_tags(tags)) if tags is not None else {}
        config = AnalyzerConfig(
            report_unresolved_tags=report_unresolved,
            decimal_places=decimal_places,
        )
    except (OSError, TypeError, ValueError, ValidationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    logger.debug("Analyzing %d chars of SCL with %d snapshot entries", len(code), len(snapshot))
    result = SclAnalyzer(config).analyze(code, snapshot)

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    else:
        typer.echo(f"Tipo: {result.classified_type.value}")
        typer.echo(f"Resumo: {result.summary}")
        if result.tags_referenced:
            typer.echo("Tags:")
            for record in result.tags_referenced:
                marker = "" if record.found_in_snapshot else " (não encontrada)"
                typer.echo(f"  {record.name} [{record.declared_type}] = {record.value}{marker}")
        if result.narrative:
            typer.echo("")
            typer.echo(result.narrative)

    if not result.success:
        raise typer.Exit(1)


@app.command("classify")
def classify_command(
    code_file: CodeArgument,
    verbose: VerboseOption = False,
) -> None:
    """
    Print the dominant construct of an SCL snippet (IF, FOR, TIMER, ...).
    """
    setup_logging(verbose)

    try:
        code = read_code(code_file)
    except OSError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    construct = classify(code)
    if construct.instruction:
        typer.echo(f"{construct.kind.value} ({construct.instruction})")
    else:
        typer.echo(construct.kind.value)


if __name__ == "__main__":
    app()
