"""Typer CLI entrypoint for xmlcheck."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import ValidatorConfig, apply_overrides, load_config
from .engine import (
    SchemaValidator,
    ValidationOptions,
    expand_patterns,
    format_result,
    run_batch,
)
from .exceptions import ConfigError, PatternError, SchemaError


EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILED = 1
EXIT_USAGE_ERROR = 2


app = typer.Typer(help="Batch XML well-formedness and schema validator")
config_app = typer.Typer(help="Configuration inspection")
app.add_typer(config_app, name="config")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="XMLCHECK_LOG_LEVEL",
        help="Logging level for diagnostics on stderr",
    ),
) -> None:
    """Configure logging shared by all commands."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


@app.command("validate")
def validate_command(
    patterns: Optional[List[str]] = typer.Argument(
        None,
        help="Glob patterns to validate; prefix with '!' to ignore matches",
    ),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        "-x",
        help="Additional ignore pattern (repeatable)",
    ),
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        file_okay=False,
        help="Directory that patterns are relative to",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to xmlcheck.toml or pyproject.toml",
    ),
    encoding: Optional[str] = typer.Option(
        None,
        "--encoding",
        help="Encoding for documents without a BOM or encoding declaration",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-file time limit in seconds",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-j",
        help="Number of files validated in parallel",
    ),
    schema_file: Optional[Path] = typer.Option(
        None,
        "--schema",
        help="XSD, DTD or RELAX NG file for structural validation",
    ),
    show_warnings: bool = typer.Option(
        False,
        "--warnings",
        help="Print warning diagnostics as well as errors",
    ),
    report_path: Optional[Path] = typer.Option(
        None,
        "--report",
        help="Optional path for a JSON report",
    ),
) -> None:
    """Validate every file matched by the given glob patterns."""

    try:
        config = _resolve_config(
            config_path,
            root=root,
            patterns=patterns,
            exclude=exclude,
            encoding=encoding,
            timeout=timeout,
            workers=workers,
            schema_file=schema_file,
        )
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}", err=True)
        raise typer.Exit(EXIT_USAGE_ERROR) from exc

    try:
        files = expand_patterns(config.patterns, root=config.root, exclude=config.exclude)
    except PatternError as exc:
        typer.echo(f"Pattern error: {exc}", err=True)
        raise typer.Exit(EXIT_USAGE_ERROR) from exc
    if not files:
        typer.echo(
            f"No files matched {', '.join(config.patterns)} under {config.root}",
            err=True,
        )
        raise typer.Exit(EXIT_USAGE_ERROR)

    schema = None
    if config.schema_file is not None:
        try:
            schema = SchemaValidator(config.schema_file)
        except SchemaError as exc:
            typer.echo(f"Schema error: {exc}", err=True)
            raise typer.Exit(EXIT_USAGE_ERROR) from exc

    options = ValidationOptions(
        default_encoding=config.encoding,
        timeout=config.timeout,
        schema=schema,
    )
    report = run_batch(files, root=config.root, options=options, workers=config.workers)

    warnings = show_warnings or config.show_warnings
    for result in report.results:
        for line in format_result(result, show_warnings=warnings):
            typer.echo(line)

    if report_path is not None:
        json_payload = json.dumps(report.as_dict(), indent=2)
        try:
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(json_payload + "\n", encoding="utf-8")
        except OSError as exc:
            typer.echo(f"Failed to write report {report_path}: {exc}", err=True)
            raise typer.Exit(EXIT_USAGE_ERROR) from exc

    if report.has_failures:
        raise typer.Exit(EXIT_VALIDATION_FAILED)


@config_app.command("show")
def config_show(
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        file_okay=False,
        help="Directory searched for configuration",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to xmlcheck.toml or pyproject.toml",
    ),
) -> None:
    """Print the effective configuration as JSON."""

    try:
        config = _resolve_config(config_path, root=root)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}", err=True)
        raise typer.Exit(EXIT_USAGE_ERROR) from exc

    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, sort_keys=True))


def _resolve_config(
    config_path: Optional[Path],
    *,
    root: Optional[Path],
    patterns: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
    **overrides: object,
) -> ValidatorConfig:
    config = load_config(config_path, search_dir=root or Path("."))
    merged_exclude = None
    if exclude:
        merged_exclude = [*config.exclude, *exclude]
    return apply_overrides(
        config,
        root=root,
        patterns=patterns or None,
        exclude=merged_exclude,
        **overrides,
    )
