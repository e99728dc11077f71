"""Command line entry points for SpendWise."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click

from .domain.errors import SpendWiseError
from .services import export

_DATE = click.DateTime(formats=["%Y-%m-%d"])


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def _fail(err: SpendWiseError) -> click.ClickException:
    return click.ClickException(f"{err.kind.value}: {err.message}")


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """Budget and report tooling."""

    if ctx.obj is None:
        # Deferred so importing the CLI module stays cheap
        from .config import BaseConfig
        from .context import create_app_context
        from .logging_config import setup_logging

        config = BaseConfig()
        setup_logging(config)
        ctx.obj = create_app_context(config)


@main.group()
def budgets() -> None:
    """Budget lifecycle commands."""


@budgets.command("list")
@click.option("--user", "owner", type=int, required=True, help="Owner id")
@click.pass_obj
def list_budgets(app, owner: int) -> None:
    """List budgets with clamped progress (archives expired ones first)."""

    for view in app.budgets.list_budgets(owner):
        status = "archived" if view.archived else "active"
        click.echo(
            f"#{view.id} {view.category_name or 'Overall Budget'} "
            f"{view.start_date}..{view.end_date} {view.spent}/{view.amount} "
            f"({view.progress_percentage}%) {status}"
        )


@budgets.command("archive")
@click.option("--user", "owner", type=int, required=True, help="Owner id")
@click.option("--as-of", type=_DATE, default=None, help="Cutoff date (default: today)")
@click.pass_obj
def archive(app, owner: int, as_of: Optional[datetime]) -> None:
    """Archive budgets whose period has ended."""

    archived = app.budgets.archive_expired(owner, _as_date(as_of))
    click.echo(f"Archived {len(archived)} budget(s).")


@budgets.command("rollover")
@click.argument("budget_id", type=int)
@click.option("--user", "owner", type=int, required=True, help="Owner id")
@click.pass_obj
def rollover(app, budget_id: int, owner: int) -> None:
    """Create the next-period budget for an ended one."""

    try:
        created = app.budgets.rollover(budget_id, owner)
    except SpendWiseError as err:
        raise _fail(err) from err
    click.echo(f"Created budget #{created.id}: {created.start_date}..{created.end_date}")


@main.group()
def reports() -> None:
    """Report generation commands."""


def _range_options(func):
    func = click.option("--to", "end", type=_DATE, default=None, help="Inclusive end date")(func)
    func = click.option("--from", "start", type=_DATE, default=None, help="Start date")(func)
    return click.option("--user", "owner", type=int, required=True, help="Owner id")(func)


@reports.command("dashboard")
@_range_options
@click.pass_obj
def dashboard(app, owner: int, start: Optional[datetime], end: Optional[datetime]) -> None:
    """Print income/expense totals and category breakdowns."""

    try:
        report = app.reports.generate_dashboard(owner, _as_date(start), _as_date(end))
    except SpendWiseError as err:
        raise _fail(err) from err
    if report.empty_data:
        click.echo("No transactions in this period.")
        return
    click.echo(f"Income:  {report.total_income}")
    click.echo(f"Expense: {report.total_expense}")
    click.echo(f"Balance: {report.balance}")
    for summary in report.expense_by_category:
        click.echo(f"  - {summary.category_name}: {summary.total_amount}")


@reports.command("quick-stats")
@_range_options
@click.pass_obj
def quick_stats(app, owner: int, start: Optional[datetime], end: Optional[datetime]) -> None:
    """Print the dashboard cards (defaults to the current month)."""

    try:
        stats = app.reports.get_quick_stats(owner, _as_date(start), _as_date(end))
    except SpendWiseError as err:
        raise _fail(err) from err
    click.echo(f"Net cash flow: {stats.net_cash_flow}")
    click.echo(f"Savings rate: {stats.savings_rate}%")
    click.echo(f"Active budgets: {stats.active_budgets}")
    click.echo(f"Active saving goals: {stats.active_saving_goals}")


@reports.command("export")
@_range_options
@click.option("--format", "fmt", type=click.Choice(["csv", "pdf"]), default="csv", show_default=True)
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None)
@click.pass_obj
def export_report(
    app,
    owner: int,
    start: Optional[datetime],
    end: Optional[datetime],
    fmt: str,
    output_dir: Optional[Path],
) -> None:
    """Write the full report to CSV or PDF."""

    try:
        report = app.reports.generate_report(owner, _as_date(start), _as_date(end))
    except SpendWiseError as err:
        raise _fail(err) from err
    target_dir = output_dir or app.config.EXPORTS_DIR
    if fmt == "pdf":
        path = export.export_report_pdf(report=report, output_path=target_dir / export.pdf_filename(report))
    else:
        path = export.export_report_csv(report=report, output_path=target_dir / export.csv_filename(report))
    click.echo(f"Export written: {path}")


if __name__ == "__main__":  # pragma: no cover
    main()
