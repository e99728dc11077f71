"""CSV and PDF writers for an already-generated :class:`FinancialReport`.

Nothing here aggregates; the report object is serialized as-is.
"""

from __future__ import annotations

import csv
from decimal import Decimal
from pathlib import Path
from typing import Iterable

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.backends.backend_pdf import PdfPages  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from ..domain.values import CategorySummary, FinancialReport  # noqa: E402
from ..logging_config import get_logger  # noqa: E402

logger = get_logger("export")

CSV_HEADERS = ["Category", "Type", "Amount"]
PDF_FILENAME_FORMAT = "financial-report-{start}-to-{end}.pdf"
CSV_FILENAME_FORMAT = "financial-data-{start}-to-{end}.csv"


def pdf_filename(report: FinancialReport) -> str:
    return PDF_FILENAME_FORMAT.format(start=report.from_date.isoformat(), end=report.to_date.isoformat())


def csv_filename(report: FinancialReport) -> str:
    return CSV_FILENAME_FORMAT.format(start=report.from_date.isoformat(), end=report.to_date.isoformat())


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def export_report_csv(*, report: FinancialReport, output_path: Path) -> Path:
    """Write one row per expense category, then per income category.

    Returns the path written.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(CSV_HEADERS)
        for summary in report.expense_by_category:
            writer.writerow([summary.category_name, "Expense", _money(summary.total_amount)])
        for summary in report.income_by_category:
            writer.writerow([summary.category_name, "Income", _money(summary.total_amount)])

    logger.info(
        "Exported report CSV",
        extra={"path": str(output_path), "from": report.from_date, "to": report.to_date},
    )
    return output_path


def build_category_chart(categories: Iterable[CategorySummary], *, title: str) -> Figure:
    """Donut chart of category totals with a legend of amounts and shares."""

    items = [c for c in categories if c.total_amount > 0]
    grand_total = float(sum(c.total_amount for c in items))
    sizes = [float(c.total_amount) for c in items]

    fig, ax = plt.subplots(figsize=(8.27, 5.5))
    if sizes:
        cmap = plt.get_cmap("tab20c")
        colors = [cmap(i / max(len(sizes), 1)) for i in range(len(sizes))]
        wedges, _texts, autotexts = ax.pie(
            sizes,
            labels=None,
            autopct=lambda pct: f"{pct:.1f}%" if pct > 4 else "",
            wedgeprops=dict(width=0.45, edgecolor="white", linewidth=1.5),
            startangle=90,
            colors=colors,
            pctdistance=0.78,
        )
        for autotext in autotexts:
            autotext.set_fontsize(9)
            autotext.set_color("white")

        ax.text(0, 0, f"{grand_total:,.2f}", ha="center", va="center", fontsize=14, fontweight="bold")
        ax.legend(
            wedges,
            [
                f"{c.category_name}: {float(c.total_amount):,.2f} ({size / grand_total * 100:.1f}%)"
                for c, size in zip(items, sizes)
            ],
            loc="center left",
            bbox_to_anchor=(1.02, 0.5),
            fontsize=9,
        )
        ax.axis("equal")
    else:
        ax.text(0.5, 0.5, "No data", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")
    ax.set_title(title, fontsize=14, fontweight="bold")
    fig.tight_layout()
    return fig


def _summary_page(report: FinancialReport) -> Figure:
    fig = plt.figure(figsize=(8.27, 11.69))
    fig.suptitle(
        f"Financial report {report.from_date.isoformat()} to {report.to_date.isoformat()}",
        fontsize=16,
        fontweight="bold",
    )

    totals_ax = fig.add_axes([0.08, 0.78, 0.84, 0.12])
    totals_ax.axis("off")
    totals_ax.table(
        cellText=[
            ["Total income", _money(report.total_income)],
            ["Total expense", _money(report.total_expense)],
            ["Balance", _money(report.balance)],
        ],
        colLabels=["", "Amount"],
        loc="center",
    )

    budget_ax = fig.add_axes([0.08, 0.45, 0.84, 0.28])
    budget_ax.axis("off")
    budget_ax.set_title("Budgets", loc="left")
    if report.budgets:
        budget_ax.table(
            cellText=[
                [
                    row.budget_name,
                    _money(row.amount),
                    _money(row.spent),
                    f"{row.progress_percentage:.2f}%",
                    "yes" if row.exceeded else "no",
                ]
                for row in report.budgets
            ],
            colLabels=["Budget", "Amount", "Spent", "Progress", "Exceeded"],
            loc="upper center",
        )
    else:
        budget_ax.text(0.5, 0.5, "No budgets in this period", ha="center", va="center")

    goal_ax = fig.add_axes([0.08, 0.08, 0.84, 0.30])
    goal_ax.axis("off")
    goal_ax.set_title("Saving goals", loc="left")
    if report.saving_goals:
        goal_ax.table(
            cellText=[
                [
                    goal.name,
                    _money(goal.target_amount),
                    _money(goal.current_amount),
                    f"{goal.progress_percentage:.2f}%",
                    "yes" if goal.achieved else "no",
                ]
                for goal in report.saving_goals
            ],
            colLabels=["Goal", "Target", "Saved", "Progress", "Achieved"],
            loc="upper center",
        )
    else:
        goal_ax.text(0.5, 0.5, "No saving goals", ha="center", va="center")
    return fig


def export_report_pdf(*, report: FinancialReport, output_path: Path) -> Path:
    """Render the report summary and category charts to a multi-page PDF."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    figures = [
        _summary_page(report),
        build_category_chart(report.expense_by_category, title="Expenses by category"),
        build_category_chart(report.income_by_category, title="Income by category"),
    ]
    try:
        with PdfPages(output_path) as pdf:
            for fig in figures:
                pdf.savefig(fig)
    finally:
        for fig in figures:
            plt.close(fig)

    logger.info(
        "Exported report PDF",
        extra={"path": str(output_path), "from": report.from_date, "to": report.to_date},
    )
    return output_path
