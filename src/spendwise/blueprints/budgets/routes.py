"""Budget CRUD, archival and rollover endpoints."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from flask import jsonify, request

from .. import app_context, current_owner, parse_date, to_json
from . import bp


def _flag(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false")
    return value


def _budget_fields(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Pull the editable fields out of a JSON body, raising ValueError on bad input."""

    start = parse_date(payload.get("start_date"))
    end = parse_date(payload.get("end_date"))
    if start is None or end is None:
        raise ValueError("start_date and end_date are required")
    try:
        amount = Decimal(str(payload.get("amount")))
    except InvalidOperation as exc:
        raise ValueError("amount must be a decimal number") from exc
    category_id = payload.get("category_id")
    return {
        "category_id": int(category_id) if category_id is not None else None,
        "amount": amount,
        "start": start,
        "end": end,
        "rollover": _flag(payload, "rollover"),
    }


@bp.get("")
def list_budgets():
    owner = current_owner()
    return jsonify(to_json(app_context().budgets.list_budgets(owner)))


@bp.get("/<int:budget_id>")
def get_budget(budget_id: int):
    owner = current_owner()
    return jsonify(to_json(app_context().budgets.get_budget(budget_id, owner)))


@bp.post("")
def create_budget():
    owner = current_owner()
    fields = _budget_fields(request.get_json(force=True) or {})
    manager = app_context().budgets
    budget = manager.create(owner, **fields)
    return jsonify(to_json(manager.get_budget(budget.id, owner))), 201


@bp.put("/<int:budget_id>")
def update_budget(budget_id: int):
    owner = current_owner()
    payload = request.get_json(force=True) or {}
    fields = _budget_fields(payload)
    manager = app_context().budgets
    budget = manager.update(budget_id, owner, archived=_flag(payload, "archived"), **fields)
    return jsonify(to_json(manager.get_budget(budget.id, owner)))


@bp.delete("/<int:budget_id>")
def delete_budget(budget_id: int):
    app_context().budgets.delete(budget_id, current_owner())
    return "", 204


@bp.post("/archive")
def archive_expired():
    archived = app_context().budgets.archive_expired(current_owner())
    return jsonify({"archived": [budget.id for budget in archived]})


@bp.get("/expired")
def expired_budgets():
    owner = current_owner()
    return jsonify(to_json(app_context().budgets.list_expired(owner)))


@bp.post("/<int:budget_id>/rollover")
def rollover_budget(budget_id: int):
    owner = current_owner()
    manager = app_context().budgets
    created = manager.rollover(budget_id, owner)
    return jsonify(to_json(manager.get_budget(created.id, owner))), 201
