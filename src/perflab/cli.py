"""Command-line interface for perflab.

Works on JSON exports produced by ``BenchmarkHarness.export("json")``:

    perflab show      Display the ranked report for an export
    perflab convert   Re-serialize an export as JSON or CSV
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from perflab import __version__
from perflab.bench.results import BenchmarkResult, ExportMeta, load_export
from perflab.logging import setup_logging

log = logging.getLogger("perflab")


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a DEBUG-level log to this file.",
)
def main(verbose: bool, quiet: bool, log_file: Path | None) -> None:
    """perflab — statistical benchmarking harness."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)


def _load(results_json: Path) -> tuple[ExportMeta, list[BenchmarkResult]]:
    """Load an export, exiting with status 1 if it is malformed."""
    try:
        return load_export(results_json.read_bytes())
    except ValueError as exc:
        click.echo(f"Error: {results_json}: {exc}", err=True)
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@main.command()
@click.argument("results_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--detail", is_flag=True, help="Also show per-benchmark statistics.")
def show(results_json: Path, detail: bool) -> None:
    """Display the ranked report for an exported results file.

    RESULTS_JSON is a file written from ``harness.export("json")``.
    """
    from perflab.bench.display import format_report, format_result

    meta, results = _load(results_json)

    host = meta.host
    header = ", ".join(v for v in (host.platform, host.architecture, host.runtime) if v)
    if meta.timestamp:
        click.echo(f"Recorded: {meta.timestamp}")
    if header:
        click.echo(f"Host: {header}")
    click.echo(format_report(results))

    if detail:
        for r in results:
            click.echo()
            click.echo(format_result(r))


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------


@main.command()
@click.argument("results_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "csv"]),
    default="csv",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: stdout).",
)
def convert(results_json: Path, fmt: str, output: Path | None) -> None:
    """Re-serialize an exported results file.

    \b
    Examples:
        perflab convert results/benchmark.json --format csv > results.csv
        perflab convert results/benchmark.json --format csv -o results.csv
    """
    from perflab.bench.export import export_results

    meta, results = _load(results_json)
    payload = export_results(fmt, results, host=meta.host, timestamp=meta.timestamp or None)

    if output:
        output.write_bytes(payload)
        log.debug("Wrote %d bytes to %s", len(payload), output)
        click.echo(f"Exported to {output}")
    else:
        click.echo(payload.decode("utf-8"), nl=False)


if __name__ == "__main__":
    main()
