#!/usr/bin/env python3
"""
trueredact CLI - Permanently redact regions of PDF documents
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .config import EngineConfig
from .errors import ConfigurationError, InvalidDocumentError, InvalidRegionError
from .models import RedactionOptions, RedactionRegion
from .pipeline import RedactionPipeline
from .utils import format_file_size, verify_redaction


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_areas(areas_path: Path) -> Tuple[List[RedactionRegion], Dict[str, Any]]:
    """
    Read regions (and optional options) from a JSON file

    The file holds either a list of regions or an object with ``areas``
    and, optionally, ``options``.
    """
    with open(areas_path, "r") as f:
        payload = json.load(f)

    if isinstance(payload, list):
        raw_areas, raw_options = payload, {}
    elif isinstance(payload, dict):
        raw_areas, raw_options = payload.get("areas", []), payload.get("options") or {}
    else:
        raise click.BadParameter("expected a list of areas or an object with 'areas'", param_hint="--areas")

    try:
        regions = [RedactionRegion.from_dict(area) for area in raw_areas]
    except (InvalidRegionError, TypeError, AttributeError) as e:
        raise click.BadParameter(str(e), param_hint="--areas")

    return regions, raw_options


def _engine_config(workers: Optional[int]) -> EngineConfig:
    overrides = {} if workers is None else {"max_workers": workers}
    try:
        return EngineConfig.from_env(**overrides)
    except ConfigurationError as e:
        raise click.ClickException(str(e))


@click.command()
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_pdf", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--areas", "areas_path", required=True, type=click.Path(exists=True, path_type=Path),
              help="JSON file with the regions to redact")
@click.option("--dpi", type=int, help="Rasterization resolution (default 150)")
@click.option("--fill", help="Fill color: name or hex (default black)")
@click.option("--label", is_flag=True, help="Draw a label over each block")
@click.option("--label-text", help="Label text (default REDACTED)")
@click.option("--operator", help="Operator identity recorded in the audit trail")
@click.option("--document-id", help="Document identifier for logging")
@click.option("--preserve-metadata", is_flag=True, help="Keep title/author/subject/keywords")
@click.option("--audit", "audit_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Write the audit trail to this JSON file")
@click.option("--workers", type=int, help="Rasterize pages in this many processes")
@click.option("--verify", is_flag=True, help="Re-check sanitized pages in the output")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def apply(input_pdf, output_pdf, areas_path, dpi, fill, label, label_text, operator,
          document_id, preserve_metadata, audit_path, workers, verify, verbose):
    """
    Permanently redact regions by rasterizing the pages they fall on.

    \b
    Example areas.json:
      [{"page": 0, "x": 72, "y": 540, "width": 248, "height": 25, "reason": "SSN"}]
    """
    _configure_logging(verbose)
    regions, file_options = _load_areas(areas_path)

    overrides = {
        "resolution_dpi": dpi,
        "fill_color": fill,
        "add_label": label or None,
        "label_text": label_text,
        "operator_id": operator,
        "document_id": document_id,
        "preserve_metadata": preserve_metadata or None,
    }
    merged = dict(file_options)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        options = RedactionOptions.from_dict(merged)
    except (TypeError, ValueError) as e:
        raise click.BadParameter(str(e))

    pipeline = RedactionPipeline(_engine_config(workers))
    result = pipeline.apply(input_pdf.read_bytes(), regions, options)

    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)

    if not result.success:
        click.echo(f"Error ({result.error_kind}): {result.error}", err=True)
        sys.exit(1)

    output_pdf.write_bytes(result.output_bytes)

    if audit_path:
        with open(audit_path, "w") as f:
            json.dump(result.to_dict(), f, indent=2)

    if verify:
        sanitized = sorted({r.page for r in regions} - {r.page for r in result.skipped_regions})
        problems = verify_redaction(result.output_bytes, sanitized)
        if problems:
            for problem in problems:
                click.echo(f"  - {problem}", err=True)
            sys.exit(1)
        click.echo("✓ Verification passed: sanitized pages hold only a raster image")

    click.echo(f"✓ Redaction complete: {output_pdf} ({result.redaction_count} areas, "
               f"{format_file_size(len(result.output_bytes))})")


@click.command()
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_pdf", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--areas", "areas_path", required=True, type=click.Path(exists=True, path_type=Path),
              help="JSON file with the regions to preview")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def preview(input_pdf, output_pdf, areas_path, verbose):
    """
    Draw translucent boxes where redactions would go.

    The preview does NOT remove anything; use `apply` for the final document.
    """
    _configure_logging(verbose)
    regions, _ = _load_areas(areas_path)

    result = RedactionPipeline(_engine_config(None)).preview(input_pdf.read_bytes(), regions)
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)

    if not result.success:
        click.echo(f"Error ({result.error_kind}): {result.error}", err=True)
        sys.exit(1)

    output_pdf.write_bytes(result.output_bytes)
    click.echo(f"✓ Preview written: {output_pdf} (content is NOT removed)")


@click.command()
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def info(input_pdf):
    """Print page count, page sizes and structural warnings as JSON."""
    try:
        details = RedactionPipeline(_engine_config(None)).info(input_pdf.read_bytes())
    except InvalidDocumentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(details, indent=2))


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host, port):
    """Run the HTTP API."""
    import uvicorn

    from .api import create_app

    config = _engine_config(None)
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    uvicorn.run(create_app(config), host=host, port=port)


@click.group()
@click.version_option(package_name="trueredact")
def cli():
    """trueredact - Permanently remove content from regions of PDFs"""
    pass


cli.add_command(apply)
cli.add_command(preview)
cli.add_command(info)
cli.add_command(serve)


if __name__ == "__main__":
    cli()
