#!/usr/bin/env python3
"""Main CLI entry point for tracelens using Typer.

Provides commands to classify the network requests of a recorded devtools
log by entity and to run the audits built on that classification.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import typer
from pydantic import ValidationError

from .. import __version__
from ..audit.audits import AuditRunner
from ..audit.computed import ComputedContext, EntityClassification
from ..audit.config import AnalysisConfig, ConfigManager, ConfigurationError
from ..audit.entities import KnownEntityDatasetError
from ..audit.models import Artifacts, EntityClassificationResult, PageURL, load_devtools_log


logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tracelens",
    help="tracelens - attribute page requests to the organizations serving them",
    add_completion=False,
)


@app.callback()
def main():
    """
    tracelens - entity classification for recorded browser telemetry.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"tracelens v{__version__}")


def _setup_logging(config: AnalysisConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_inputs(log_path: Path, final_url: str, main_document_url: Optional[str],
                 config_path: Optional[Path], verbose: bool) -> Tuple[AnalysisConfig, Artifacts]:
    """Load configuration and artifacts, exiting with code 1 on bad input."""
    try:
        config = ConfigManager(config_path).load_config()
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    _setup_logging(config, verbose)

    try:
        devtools_log = load_devtools_log(log_path)
    except (OSError, ValueError, ValidationError) as e:
        typer.echo(f"Could not read devtools log {log_path}: {e}", err=True)
        raise typer.Exit(1)

    artifacts = Artifacts(
        url=PageURL(main_document_url=main_document_url, final_displayed_url=final_url),
        devtools_log=devtools_log,
    )
    return config, artifacts


def _print_classification(result: EntityClassificationResult) -> None:
    if not result.entities:
        typer.echo("No requests could be attributed to an entity.")

    for entity in result.entities:
        urls = sorted(result.urls_by_entity[entity])
        marker = "[1P]" if entity is result.first_party else "[3P]"
        category = entity.category or ("unrecognized" if entity.is_unrecognized else "uncategorized")
        typer.echo(f"{marker} {entity.name} ({category}) - {len(urls)} URL(s)")
        for url in urls:
            typer.echo(f"       {url}")

    first_party = result.first_party.name if result.first_party else "unknown"
    typer.echo(f"\nFirst party: {first_party}")


@app.command()
def classify(
    log: Annotated[
        Path,
        typer.Argument(help="Path to a devtools log (JSON array of protocol events)")
    ],
    final_url: Annotated[
        str,
        typer.Option("--final-url", "-u", help="Final displayed URL of the page")
    ],
    main_document_url: Annotated[
        Optional[str],
        typer.Option("--main-document-url", help="Main document URL (navigations)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file")
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the classification as JSON")
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
):
    """Group the requests of a devtools log by entity."""
    analysis_config, artifacts = _load_inputs(log, final_url, main_document_url, config, verbose)

    async def _classify() -> EntityClassificationResult:
        async with ComputedContext(config=analysis_config) as context:
            return await EntityClassification.request(artifacts, context)

    try:
        result = asyncio.run(_classify())
    except KnownEntityDatasetError as e:
        typer.echo(f"Known entity dataset error: {e}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_classification(result)


@app.command()
def audit(
    log: Annotated[
        Path,
        typer.Argument(help="Path to a devtools log (JSON array of protocol events)")
    ],
    final_url: Annotated[
        str,
        typer.Option("--final-url", "-u", help="Final displayed URL of the page")
    ],
    main_document_url: Annotated[
        Optional[str],
        typer.Option("--main-document-url", help="Main document URL (navigations)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file")
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print audit results as JSON")
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
):
    """Run the enabled audits against a devtools log."""
    analysis_config, artifacts = _load_inputs(log, final_url, main_document_url, config, verbose)

    results = asyncio.run(AuditRunner(analysis_config).run(artifacts))

    if as_json:
        payload = {audit_id: result.model_dump(mode='json') for audit_id, result in results.items()}
        typer.echo(json.dumps(payload, indent=2))
        return

    for audit_id, result in results.items():
        if not result.success:
            typer.echo(f"ERROR {audit_id}: {result.error_message}")
        elif result.not_applicable:
            typer.echo(f"N/A   {audit_id}: {result.title}")
        else:
            summary = f" - {result.display_value}" if result.display_value else ""
            typer.echo(f"{result.score:.2f}  {audit_id}: {result.title}{summary}")


if __name__ == "__main__":
    app()
