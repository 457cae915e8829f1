from helpers import _coerce_bool
from routes.resources import (
    ResourceFamily, handle_create, handle_delete, handle_get, handle_list, handle_update,
)


def _line_items(value):
    return value if isinstance(value, list) else []


def _build_budget(body):
    fields = {
        "name": body["name"],
        "isActive": _coerce_bool(body.get("isActive"), True),
        "income": _line_items(body.get("income")),
        "expenses": _line_items(body.get("expenses")),
    }
    if body.get("planId"):
        fields["planId"] = body["planId"]
    return fields


BUDGETS = ResourceFamily(
    name="budgets",
    label="Budget",
    required=("name", "isActive"),
    build=_build_budget,
    id_param="budgetId",
)


def handle_get_budgets(services, event, budget_id=None):
    if budget_id:
        return handle_get(services, BUDGETS, event, budget_id)
    return handle_list(services, BUDGETS, event)


def handle_create_budget(services, event):
    return handle_create(services, BUDGETS, event)


def handle_update_budget(services, event, budget_id):
    return handle_update(services, BUDGETS, event, budget_id)


def handle_delete_budget(services, event, budget_id):
    return handle_delete(services, BUDGETS, event, budget_id)
