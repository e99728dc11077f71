"""Reporting and export endpoints."""

from __future__ import annotations

from datetime import date
from typing import Optional

from flask import jsonify, request, send_file

from ...services import export
from ...services.reports import resolve_preset
from .. import app_context, current_owner, parse_date, to_json
from . import bp


def _requested_range() -> tuple[Optional[date], Optional[date]]:
    """Read ``from``/``to`` (or a named ``preset``) from the query string."""

    start = parse_date(request.args.get("from"))
    end = parse_date(request.args.get("to"))
    preset = request.args.get("preset")
    if preset:
        return resolve_preset(preset, app_context().reports.today(), start=start, end=end)
    return start, end


@bp.get("/dashboard")
def dashboard():
    start, end = _requested_range()
    return jsonify(to_json(app_context().reports.generate_dashboard(current_owner(), start, end)))


@bp.get("/reports")
def full_report():
    start, end = _requested_range()
    return jsonify(to_json(app_context().reports.generate_report(current_owner(), start, end)))


@bp.get("/quick-stats")
def quick_stats():
    start, end = _requested_range()
    return jsonify(to_json(app_context().reports.get_quick_stats(current_owner(), start, end)))


@bp.get("/trends/monthly")
def monthly_trends():
    start, end = _requested_range()
    return jsonify(to_json(app_context().reports.get_monthly_trends(current_owner(), start, end)))


@bp.get("/categories/breakdown")
def category_breakdown():
    start, end = _requested_range()
    kind = request.args.get("type", "EXPENSE")
    result = app_context().reports.get_category_breakdown(current_owner(), start, end, kind)
    return jsonify(to_json(result))


@bp.get("/budgets/performance")
def budget_performance():
    start, end = _requested_range()
    return jsonify(to_json(app_context().reports.get_budget_performance(current_owner(), start, end)))


@bp.get("/reports/export/csv")
def export_csv():
    start, end = _requested_range()
    ctx = app_context()
    report = ctx.reports.generate_report(current_owner(), start, end)
    name = export.csv_filename(report)
    path = export.export_report_csv(report=report, output_path=ctx.config.EXPORTS_DIR / name)
    return send_file(path, mimetype="text/csv", as_attachment=True, download_name=name)


@bp.get("/reports/export/pdf")
def export_pdf():
    start, end = _requested_range()
    ctx = app_context()
    report = ctx.reports.generate_report(current_owner(), start, end)
    name = export.pdf_filename(report)
    path = export.export_report_pdf(report=report, output_path=ctx.config.EXPORTS_DIR / name)
    return send_file(path, mimetype="application/pdf", as_attachment=True, download_name=name)
