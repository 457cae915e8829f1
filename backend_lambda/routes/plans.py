from helpers import _coerce_bool
from routes.resources import (
    ResourceFamily, handle_create, handle_delete, handle_get, handle_list, handle_update,
)


def _build_plan(body):
    months = body.get("months")
    return {
        "name": body["name"],
        "description": body.get("description") or "",
        "isActive": _coerce_bool(body.get("isActive"), True),
        "months": months if isinstance(months, list) else [],
    }


PLANS = ResourceFamily(
    name="plans",
    label="Plan",
    required=("name",),
    build=_build_plan,
    id_param="planId",
)


def handle_get_plans(services, event, plan_id=None):
    """Single plan when an id is in the path, otherwise every plan the caller owns."""
    if plan_id:
        return handle_get(services, PLANS, event, plan_id)
    return handle_list(services, PLANS, event)


def handle_create_plan(services, event):
    return handle_create(services, PLANS, event)


def handle_update_plan(services, event, plan_id):
    return handle_update(services, PLANS, event, plan_id)


def handle_delete_plan(services, event, plan_id):
    return handle_delete(services, PLANS, event, plan_id)
