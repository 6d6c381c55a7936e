"""tpcdsbench CLI."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tpcdsbench import __version__
from tpcdsbench._constants import DEFAULT_OUTPUT_DIR, RESULT_METRIC_NAME
from tpcdsbench.config import (
    BenchmarkConfig,
    ConfigError,
    generate_example_config_yaml,
    load_yaml,
    parse_options,
)

# Default config file name for auto-discovery
DEFAULT_CONFIG = "tpcdsbench.yaml"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tpcdsbench",
    help="Run the TPC-DS query benchmark against Spark SQL",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Workflow: init -> queries -> run -> results[/dim]",
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def resolve_config_path(file_option: Path | None) -> Path | None:
    """Resolve the config file, falling back to ./tpcdsbench.yaml if present.

    A config file is optional: every setting can come from flags.
    """
    if file_option is not None:
        return file_option

    default = Path(DEFAULT_CONFIG)
    if default.exists():
        return default
    return None


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]OK[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]ERROR[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]...[/blue] {message}")


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich; DEBUG with --verbose, else WARNING."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # py4j logs every gateway round trip at DEBUG
    logging.getLogger("py4j").setLevel(logging.WARNING)


# =============================================================================
# Shared options
# =============================================================================

FileOpt = Annotated[
    Path | None,
    typer.Option("--file", "-f", help="Path to configuration YAML file (flags override it)"),
]
FormatOpt = Annotated[
    str | None,
    typer.Option("--format", help="Spark's short name for the table format (e.g. parquet)"),
]
ScaleOpt = Annotated[
    str | None,
    typer.Option("--scale-in-gb", help="Scale of the TPC-DS dataset in GB"),
]
BenchmarkPathOpt = Annotated[
    str | None,
    typer.Option(
        "--benchmark-path", help="Cloud path of the benchmark tables (database location)"
    ),
]
DbNameOpt = Annotated[
    str | None,
    typer.Option("--db-name", help="Database to query (default: tpcds_sf<scale>_<format>)"),
]
IterationsOpt = Annotated[
    str | None,
    typer.Option("--iterations", help="Number of times to run the queries (default: 3)"),
]
OffsetOpt = Annotated[
    str | None,
    typer.Option("--queryOffset", help="Lowest query number to run (default: 1)"),
]
LimitOpt = Annotated[
    str | None,
    typer.Option("--queryLimit", help="Run queries up to queryOffset + queryLimit"),
]
SkippedOpt = Annotated[
    str | None,
    typer.Option("--skippedQueries", help="Comma-separated query numbers to skip"),
]
CherryPickedOpt = Annotated[
    str | None,
    typer.Option(
        "--cherryPickedQueries",
        help="Comma-separated query numbers to run; ignores offset, limit and skip",
    ),
]
EngineOpt = Annotated[
    str | None,
    typer.Option("--engine", "-e", help="Query engine: spark or spark-thrift"),
]
JdbcUrlOpt = Annotated[
    str | None,
    typer.Option("--jdbc-url", help="Spark Thrift Server JDBC URL (spark-thrift engine)"),
]
OutputDirOpt = Annotated[
    str | None,
    typer.Option("--output-dir", "-o", help="Directory for run reports"),
]
VerboseOpt = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging"),
]


def build_config(file_option: Path | None, **options: str | None) -> BenchmarkConfig:
    """Merge the optional YAML file with command-line values.

    Prints the problem and exits with status 1 on any configuration error.
    """
    config_path = resolve_config_path(file_option)
    try:
        base: dict[str, Any] = load_yaml(config_path) if config_path else {}
        cfg = parse_options(options, base=base)
        # Derived names must resolve before anything runs
        cfg.db_name  # noqa: B018
    except (ConfigError, ValueError) as e:
        print_error(f"Config error: {e}")
        raise typer.Exit(1)  # noqa: B904
    return cfg


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"tpcdsbench version {__version__}")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path for configuration",
        ),
    ] = Path(DEFAULT_CONFIG),
    scale_in_gb: Annotated[
        int,
        typer.Option("--scale-in-gb", "-s", help="Scale of the TPC-DS dataset in GB"),
    ] = 1000,
    file_format: Annotated[
        str,
        typer.Option("--format", help="Table format"),
    ] = "parquet",
    benchmark_path: Annotated[
        str,
        typer.Option(
            "--benchmark-path", help="Cloud path of the benchmark tables (database location)"
        ),
    ] = "s3://my-bucket/tpcds",
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing file",
        ),
    ] = False,
) -> None:
    """Generate an example configuration file."""
    if output.exists() and not force:
        print_error(f"File {output} already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    content = generate_example_config_yaml(
        scale_in_gb=scale_in_gb,
        file_format=file_format,
        benchmark_path=benchmark_path,
    )
    output.write_text(content)
    print_success(f"Created configuration file: {output}")
    print_info(f"Next: tpcdsbench run -f {output}")


@app.command()
def queries(
    file_option: FileOpt = None,
    file_format: FormatOpt = None,
    scale_in_gb: ScaleOpt = None,
    benchmark_path: BenchmarkPathOpt = None,
    db_name: DbNameOpt = None,
    query_offset: OffsetOpt = None,
    query_limit: LimitOpt = None,
    skipped_queries: SkippedOpt = None,
    cherry_picked_queries: CherryPickedOpt = None,
) -> None:
    """List the catalog for a scale and which queries would run.

    Nothing is executed; use this to check selection flags.

    Examples:

        tpcdsbench queries --format parquet --scale-in-gb 1000 --benchmark-path s3://b/tpcds

        tpcdsbench queries -f tpcdsbench.yaml --cherryPickedQueries 3,7
    """
    from tpcdsbench.benchmark import QuerySelector, query_number, select_catalog
    from tpcdsbench.benchmark.queries import tier_for_scale

    cfg = build_config(
        file_option,
        format=file_format,
        scale_in_gb=scale_in_gb,
        benchmark_path=benchmark_path,
        user_defined_db_name=db_name,
        query_offset=query_offset,
        query_limit=query_limit,
        skipped_queries=skipped_queries,
        cherry_picked_queries=cherry_picked_queries,
    )

    try:
        catalog = select_catalog(cfg.scale_in_gb)
    except FileNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    selector = QuerySelector.from_config(cfg)
    tier = tier_for_scale(cfg.scale_in_gb)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Query", style="cyan")
    table.add_column("Number", justify="right")
    table.add_column("Runs")

    selected = 0
    for name in sorted(catalog):
        runs = selector.should_run(name)
        selected += runs
        table.add_row(
            name,
            str(query_number(name)),
            "[green]yes[/green]" if runs else "[dim]no[/dim]",
        )

    console.print(table)
    console.print(f"\n  Database: {cfg.db_name}")
    console.print(f"  Catalog tier: {tier.name}")
    console.print(f"  {selected} of {len(catalog)} queries selected")


@app.command()
def run(
    file_option: FileOpt = None,
    file_format: FormatOpt = None,
    scale_in_gb: ScaleOpt = None,
    benchmark_path: BenchmarkPathOpt = None,
    db_name: DbNameOpt = None,
    iterations: IterationsOpt = None,
    query_offset: OffsetOpt = None,
    query_limit: LimitOpt = None,
    skipped_queries: SkippedOpt = None,
    cherry_picked_queries: CherryPickedOpt = None,
    engine: EngineOpt = None,
    jdbc_url: JdbcUrlOpt = None,
    output_dir: OutputDirOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Run the TPC-DS benchmark.

    Runs every selected query once per iteration, in name order, and
    reports the sum of per-query median durations as
    tpcds-result-seconds. The metric is omitted when any query failed.

    Examples:

        tpcdsbench run --format parquet --scale-in-gb 1000 --benchmark-path s3://b/tpcds

        tpcdsbench run -f tpcdsbench.yaml --iterations 5

        tpcdsbench run -f tpcdsbench.yaml --skippedQueries 14,23

        tpcdsbench run -f tpcdsbench.yaml --engine spark-thrift --jdbc-url jdbc:hive2://sts:10000
    """
    from tpcdsbench.benchmark import BenchmarkRunner, get_executor, select_catalog
    from tpcdsbench.benchmark.queries import tier_for_scale
    from tpcdsbench.metrics import QueryRunResult, ReportStorage

    setup_logging(verbose)

    cfg = build_config(
        file_option,
        format=file_format,
        scale_in_gb=scale_in_gb,
        benchmark_path=benchmark_path,
        user_defined_db_name=db_name,
        iterations=iterations,
        query_offset=query_offset,
        query_limit=query_limit,
        skipped_queries=skipped_queries,
        cherry_picked_queries=cherry_picked_queries,
        engine=engine,
        jdbc_url=jdbc_url,
        output_dir=output_dir,
    )

    selection = (
        f"cherry-picked {sorted(cfg.cherry_picked_queries)}"
        if cfg.cherry_pick_mode
        else f"q{cfg.query_offset}..q{cfg.query_offset + cfg.query_limit}"
        + (f" skipping {sorted(cfg.skipped_queries)}" if cfg.skipped_queries else "")
    )
    console.print(
        Panel(
            f"TPC-DS Benchmark\n"
            f"{'=' * 16}\n"
            f"Database: {cfg.db_name} ({cfg.db_location})\n"
            f"Scale: {cfg.scale_in_gb} GB (catalog tier {tier_for_scale(cfg.scale_in_gb).name})\n"
            f"Engine: {cfg.engine.value}\n"
            f"Iterations: {cfg.iterations}\n"
            f"Queries: {selection}",
            expand=False,
        )
    )

    def _print_result(result: QueryRunResult) -> None:
        if result.success:
            assert result.duration_ms is not None
            console.print(
                f"  {result.name:<6} iter {result.iteration:>2}  "
                f"{result.duration_ms / 1000:>9.2f}s  {result.rows_returned:>8} rows   "
                "[green]PASS[/green]"
            )
        else:
            console.print(
                f"  {result.name:<6} iter {result.iteration:>2}  [red]FAIL[/red] "
                f"{escape(result.error_message or '')}"
            )

    try:
        catalog = select_catalog(cfg.scale_in_gb)
        executor = get_executor(cfg)
    except (FileNotFoundError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    try:
        runner = BenchmarkRunner(cfg, executor=executor, catalog=catalog, on_result=_print_result)
        report = runner.run()
    finally:
        executor.close()

    storage = ReportStorage(cfg.output_dir)
    path = storage.save_run(report)

    _display_run_summary(report.query_results, cfg.iterations, report.extra_metrics)
    print_info(f"Report saved to {path}")


def _display_run_summary(
    results: list[Any],
    iterations: int,
    extra_metrics: dict[str, float],
) -> None:
    """Per-query table of iteration durations and the summary metric."""
    from tpcdsbench.metrics import lower_median

    by_name: dict[str, list[Any]] = defaultdict(list)
    for r in results:
        by_name[r.name].append(r)

    console.print()
    if not by_name:
        print_warning("No queries were selected")
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Query", style="cyan")
        for i in range(1, iterations + 1):
            table.add_column(f"Iter {i} (s)", justify="right")
        table.add_column("Median (s)", justify="right")
        table.add_column("Status")

        for name, runs in sorted(by_name.items()):
            cells = [
                f"{r.duration_ms / 1000:.2f}" if r.success else "[red]FAIL[/red]"
                for r in sorted(runs, key=lambda r: r.iteration)
            ]
            ok = all(r.success for r in runs)
            median = lower_median([r.duration_ms for r in runs]) / 1000 if ok else None
            table.add_row(
                name,
                *cells,
                f"{median:.2f}" if median is not None else "-",
                "[green]OK[/green]" if ok else "[red]FAIL[/red]",
            )
        console.print(table)

    value = extra_metrics.get(RESULT_METRIC_NAME)
    if value is None:
        print_warning(f"{RESULT_METRIC_NAME} not reported: at least one query failed")
    else:
        console.print(f"\n  [bold]{RESULT_METRIC_NAME}: {value:.3f}[/bold]")


@app.command()
def results(
    output_dir: Annotated[
        Path,
        typer.Option(
            "--output-dir",
            "-o",
            help="Directory containing the runs/ subdirectory",
        ),
    ] = Path(DEFAULT_OUTPUT_DIR),
    run_id: Annotated[
        str | None,
        typer.Option(
            "--run",
            "-r",
            help="Specific run ID (default: latest)",
        ),
    ] = None,
    list_runs: Annotated[
        bool,
        typer.Option(
            "--list",
            "-l",
            help="List saved runs instead of showing one",
        ),
    ] = False,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table, json",
        ),
    ] = "table",
) -> None:
    """Display saved benchmark results."""
    from tpcdsbench.metrics import ReportStorage

    storage = ReportStorage(output_dir)

    if list_runs:
        runs = storage.list_runs()
        if not runs:
            print_warning(f"No runs found in {storage.runs_dir}")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Run ID", style="cyan")
        table.add_column("Started")
        table.add_column("Database")
        table.add_column("Iter", justify="right")
        table.add_column("Runs", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Result (s)", justify="right")

        for r in runs:
            result_seconds = r.get("result_seconds")
            table.add_row(
                r["benchmark_id"],
                (r.get("start_time") or "")[:19],
                r.get("db_name") or "-",
                str(r.get("iterations") or "-"),
                str(r["query_runs"]),
                str(r["failed_runs"]),
                f"{result_seconds:.3f}" if result_seconds is not None else "-",
            )
        console.print(table)
        return

    report = storage.load_run(run_id) if run_id else storage.get_latest_run()
    if report is None:
        print_error("No run found" + (f" with ID {run_id}" if run_id else ""))
        print_info("Use 'tpcdsbench results --list' to see available runs")
        raise typer.Exit(1)

    if output_format == "json":
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    specs = report.benchmark_specs
    console.print(
        Panel(
            f"[bold]Run:[/bold] {report.benchmark_id}\n"
            f"Database: {specs.get('db_name', '-')} | "
            f"Scale: {specs.get('scale_in_gb', '-')} GB | "
            f"Elapsed: {report.total_elapsed_seconds:.1f}s",
            expand=False,
        )
    )
    _display_run_summary(
        report.query_results,
        int(specs.get("iterations") or 1),
        report.extra_metrics,
    )


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
