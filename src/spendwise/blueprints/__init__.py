"""Shared helpers for the JSON blueprints."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from flask import Flask, abort, current_app, jsonify, request

from ..domain.errors import NotFoundError, SpendWiseError
from ..logging_config import get_logger

logger = get_logger("web")

OWNER_HEADER = "X-User-Id"


def app_context():
    """Return the :class:`~spendwise.context.AppContext` bound to the running app."""

    return current_app.extensions["spendwise"]


def current_owner() -> int:
    """Owner id supplied by the fronting auth layer."""

    raw = request.headers.get(OWNER_HEADER, "")
    try:
        return int(raw)
    except ValueError:
        abort(401)


def parse_date(raw: str | None) -> date | None:
    """ISO ``YYYY-MM-DD`` to :class:`date`; blank means missing."""

    if raw is None or not raw.strip():
        return None
    return date.fromisoformat(raw.strip())


def to_json(value: Any) -> Any:
    """Recursively turn report dataclasses into JSON-friendly structures."""

    if is_dataclass(value) and not isinstance(value, type):
        data = {f.name: to_json(getattr(value, f.name)) for f in fields(value)}
        period = getattr(value, "period", None)
        if isinstance(period, str):
            data["period"] = period
        return data
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(SpendWiseError)
    def _service_error(err: SpendWiseError):
        status = 404 if isinstance(err, NotFoundError) else 400
        logger.info("Request rejected", extra={"kind": err.kind.value, "status": status})
        return jsonify(err.to_dict()), status

    @app.errorhandler(ValueError)
    def _bad_value(err: ValueError):
        return jsonify({"error": "BAD_REQUEST", "message": str(err)}), 400
