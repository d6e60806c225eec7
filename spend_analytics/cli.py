"""CLI for the ``spend_analytics`` package.

Exposes plain command handlers (``cmd_summary``, ``cmd_categories``,
``cmd_trends``, ``cmd_export``) and a Typer console interface that wraps
them. A local ``.env`` is loaded with ``python-dotenv`` before logging is
configured, so ``SPEND_ANALYTICS_LOG_LEVEL`` can live there. All analysis
logic lives in the library modules; this file only formats output.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import OptionInfo

from .aggregation import (
    calculate_categories,
    calculate_net_spending_by_category,
    calculate_spending_trends,
    calculate_summary_statistics,
)
from .config import DateStyle, ExportConfig, IngestConfig, default_export_filename
from .export import write_export
from .filters import FilterSpec, apply_filters, describe_filters
from .ingest import ingest_path
from .issues import IngestResult
from .logging_setup import configure_logging

# Module-level option object so no call sits in a parameter default.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a transaction CSV export.",
    dir_okay=False,
    file_okay=True,
    exists=False,
)

_MAX_ISSUES_SHOWN = 20


# ---- Helpers -----------------------------------------------------------------


def _money(value: object) -> str:
    return f"${value:,.2f}"


def _load(csv_path: Path, *, strict: bool, max_rows: int | None) -> IngestResult | None:
    """Ingest ``csv_path`` and report issues; ``None`` means nothing usable."""

    try:
        cfg = IngestConfig(
            strict_mode=strict,
            **({"max_transactions": max_rows} if max_rows is not None else {}),
        )
    except ValidationError as e:
        typer.echo(f"Error: invalid ingest options: {e}", err=True)
        return None

    result = ingest_path(csv_path, cfg)
    for issue in result.errors[:_MAX_ISSUES_SHOWN]:
        where = f"row {issue.row}: " if issue.row else ""
        typer.echo(f"Error: {where}{issue.kind}: {issue.message}", err=True)
    for warning in result.warnings[:_MAX_ISSUES_SHOWN]:
        typer.echo(f"Warning: {warning.kind}: {warning.message}", err=True)
    hidden = max(len(result.errors) - _MAX_ISSUES_SHOWN, 0) + max(
        len(result.warnings) - _MAX_ISSUES_SHOWN, 0
    )
    if hidden > 0:
        typer.echo(f"... and more issues not shown ({hidden})", err=True)

    if result.rejected:
        return None
    return result


# ---- Command handlers --------------------------------------------------------


def cmd_summary(csv_path: Path, *, strict: bool = False, max_rows: int | None = None) -> int:
    result = _load(csv_path, strict=strict, max_rows=max_rows)
    if result is None:
        return 1
    stats = calculate_summary_statistics(result.transactions)
    start = stats.date_range_start.date().isoformat() if stats.date_range_start else "-"
    end = stats.date_range_end.date().isoformat() if stats.date_range_end else "-"
    typer.echo(f"Transactions:   {stats.total_transactions}")
    typer.echo(f"Date range:     {start} to {end}")
    typer.echo(f"Total spending: {_money(stats.total_spending)}")
    typer.echo(f"Total cashback: {_money(stats.total_cashback)}")
    typer.echo(f"Net spending:   {_money(stats.net_spending)}")
    typer.echo(f"Categories:     {stats.unique_categories}")
    typer.echo(f"Errors:         {len(result.errors)}")
    return 0


def cmd_categories(
    csv_path: Path, *, net: bool = False, strict: bool = False, max_rows: int | None = None
) -> int:
    result = _load(csv_path, strict=strict, max_rows=max_rows)
    if result is None:
        return 1
    aggregate = calculate_net_spending_by_category if net else calculate_categories
    for cat in aggregate(result.transactions):
        typer.echo(
            f"{cat.name}\t{_money(cat.total_amount)}\t{cat.transaction_count}"
            f"\t{cat.percentage_of_total:.1f}%"
        )
    return 0


def cmd_trends(csv_path: Path, *, strict: bool = False, max_rows: int | None = None) -> int:
    result = _load(csv_path, strict=strict, max_rows=max_rows)
    if result is None:
        return 1
    for trend in calculate_spending_trends(result.transactions):
        p = trend.period
        typer.echo(
            f"{p.period_label}\t{_money(p.total_spending)}\t{p.transaction_count}"
            f"\t{_money(p.average_transaction)}\t{trend.month_over_month_change:+.1f}%"
        )
    return 0


def cmd_export(
    csv_path: Path,
    out_dir: Path,
    *,
    spec: FilterSpec,
    columns: str | None = None,
    date_format: DateStyle = DateStyle.ISO,
    include_headers: bool = True,
    filename: str | None = None,
    strict: bool = False,
    max_rows: int | None = None,
) -> int:
    result = _load(csv_path, strict=strict, max_rows=max_rows)
    if result is None:
        return 1
    try:
        export_cfg = ExportConfig(
            date_format=date_format,
            include_headers=include_headers,
            filename=filename or default_export_filename(),
            **({"columns": columns} if columns else {}),
        )
    except ValidationError as e:
        typer.echo(f"Error: invalid export options: {e}", err=True)
        return 1

    selected = apply_filters(result.transactions, spec)
    try:
        target = write_export(selected, out_dir, export_cfg)
    except OSError as e:
        typer.echo(f"Error: could not write export: {e}", err=True)
        return 1
    typer.echo(f"Filters: {describe_filters(spec)}")
    typer.echo(f"Exported {len(selected)} of {len(result.transactions)} transactions to {target}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Summarize, aggregate, filter and re-export card transaction CSVs.",
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("summary")
def summary_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    strict: bool = typer.Option(False, help="Reject the whole file when any warning is raised."),
    max_rows: int | None = typer.Option(None, help="Advisory row count before warning."),
) -> None:
    """Print totals, date range and category count."""

    _exit(cmd_summary(csv_path, strict=strict, max_rows=max_rows))


@app.command("categories")
def categories_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    net: bool = typer.Option(False, help="Subtract cashback from each category."),
    strict: bool = typer.Option(False, help="Reject the whole file when any warning is raised."),
    max_rows: int | None = typer.Option(None, help="Advisory row count before warning."),
) -> None:
    """Print spending per category, largest first."""

    _exit(cmd_categories(csv_path, net=net, strict=strict, max_rows=max_rows))


@app.command("trends")
def trends_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    strict: bool = typer.Option(False, help="Reject the whole file when any warning is raised."),
    max_rows: int | None = typer.Option(None, help="Advisory row count before warning."),
) -> None:
    """Print monthly totals with month-over-month change."""

    _exit(cmd_trends(csv_path, strict=strict, max_rows=max_rows))


@app.command("export")
def export_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    out: Path = typer.Option(Path("."), "--out", file_okay=False, help="Output directory."),
    search: str | None = typer.Option(None, help="Case-insensitive description search."),
    category: list[str] | None = typer.Option(None, help="Category to keep (repeatable)."),
    start: datetime | None = typer.Option(None, formats=["%Y-%m-%d"], help="First day."),
    end: datetime | None = typer.Option(None, formats=["%Y-%m-%d"], help="Last day (inclusive)."),
    columns: str | None = typer.Option(None, help="Comma-separated columns to export."),
    date_format: DateStyle = typer.Option(DateStyle.ISO, help="Timestamp style."),
    headers: bool = typer.Option(True, "--headers/--no-headers", help="Emit a header row."),
    filename: str | None = typer.Option(None, help="Output file name."),
    strict: bool = typer.Option(False, help="Reject the whole file when any warning is raised."),
    max_rows: int | None = typer.Option(None, help="Advisory row count before warning."),
) -> None:
    """Filter transactions and write them to a BOM-prefixed CSV."""

    spec = FilterSpec(
        search_term=search,
        selected_categories=tuple(category or ()),
        date_range_start=start.date() if start else None,
        date_range_end=end.date() if end else None,
    )
    _exit(
        cmd_export(
            csv_path,
            out,
            spec=spec,
            columns=columns,
            date_format=date_format,
            include_headers=headers,
            filename=filename,
            strict=strict,
            max_rows=max_rows,
        )
    )


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to SPEND_ANALYTICS_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging once."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def main() -> None:  # pragma: no cover - console script shim
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
