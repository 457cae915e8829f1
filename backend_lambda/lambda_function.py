"""
lambda_function.py — API Gateway entry points
==============================================
One handler per resource family (wired to its own API Gateway resource),
plus `lambda_handler`, which picks the family from the path prefix when a
single function serves the whole API.

Every entry point:
  - answers OPTIONS with the CORS headers, no auth needed
  - dispatches GET/POST/PUT/DELETE to the family's handlers
  - answers any other verb with 405
  - turns any escaping exception into a generic 500
"""

from auth import get_user_id
from config import log_ctx, logger
from helpers import error, options_response, request_method, request_path
from routes.assets import (
    ASSETS, handle_create_asset, handle_delete_asset, handle_get_assets, handle_update_asset,
)
from routes.budgets import (
    BUDGETS, handle_create_budget, handle_delete_budget, handle_get_budgets, handle_update_budget,
)
from routes.debts import (
    DEBTS, handle_create_debt, handle_delete_debt, handle_get_debts, handle_update_debt,
)
from routes.feedback import handle_budget_feedback
from routes.plans import (
    PLANS, handle_create_plan, handle_delete_plan, handle_get_plans, handle_update_plan,
)
from routes.resources import path_record_id
from routes.users import (
    handle_create_user, handle_get_current_user, handle_get_user_versions,
    handle_update_current_user,
)
from services import build_services

_services = None


def get_services():
    global _services
    if _services is None:
        _services = build_services()
    return _services


def _method_not_allowed():
    return error(405, "Method not allowed")


def _dispatch(event, context, route, services=None):
    method = request_method(event)
    path = request_path(event)
    request_id = getattr(context, "aws_request_id", None) or (event.get("requestContext") or {}).get("requestId", "-")
    if method == "OPTIONS":
        return options_response()
    try:
        return route(services or get_services(), event, method, path)
    except Exception as exc:
        logger.error(
            f"Unhandled error: {exc}",
            extra=log_ctx(
                request_id=request_id, user_id=get_user_id(event) or "-",
                method=method, path=path, module_name="router",
            ),
            exc_info=True,
        )
        return error(500, "Internal server error")


# ══════════════════════════════════════════════════════════════════
#  Per-family routes
# ══════════════════════════════════════════════════════════════════

def _crud_route(family, get_handler, create_handler, update_handler, delete_handler):
    def route(services, event, method, path):
        record_id = path_record_id(event, family)
        if method == "GET":
            return get_handler(services, event, record_id)
        if method == "POST":
            return create_handler(services, event)
        if method == "PUT":
            return update_handler(services, event, record_id)
        if method == "DELETE":
            return delete_handler(services, event, record_id)
        return _method_not_allowed()
    return route


route_plans = _crud_route(PLANS, handle_get_plans, handle_create_plan, handle_update_plan, handle_delete_plan)
route_budgets = _crud_route(BUDGETS, handle_get_budgets, handle_create_budget, handle_update_budget, handle_delete_budget)
route_assets = _crud_route(ASSETS, handle_get_assets, handle_create_asset, handle_update_asset, handle_delete_asset)
route_debts = _crud_route(DEBTS, handle_get_debts, handle_create_debt, handle_update_debt, handle_delete_debt)


def route_users(services, event, method, path):
    if "/versions" in path:
        if method == "GET":
            return handle_get_user_versions(services, event)
        return _method_not_allowed()
    if "/me" in path:
        if method == "GET":
            return handle_get_current_user(services, event)
        if method == "PUT":
            return handle_update_current_user(services, event)
        return _method_not_allowed()
    if method == "GET":
        return handle_get_current_user(services, event)
    if method == "POST":
        return handle_create_user(services, event)
    if method == "PUT":
        return handle_update_current_user(services, event)
    return _method_not_allowed()


def route_budget_feedback(services, event, method, path):
    if method == "POST":
        return handle_budget_feedback(services, event)
    return _method_not_allowed()


# ══════════════════════════════════════════════════════════════════
#  Entry points
# ══════════════════════════════════════════════════════════════════

def users_handler(event, context, services=None):
    return _dispatch(event, context, route_users, services)


def plans_handler(event, context, services=None):
    return _dispatch(event, context, route_plans, services)


def budgets_handler(event, context, services=None):
    return _dispatch(event, context, route_budgets, services)


def assets_handler(event, context, services=None):
    return _dispatch(event, context, route_assets, services)


def debts_handler(event, context, services=None):
    return _dispatch(event, context, route_debts, services)


def budget_feedback_handler(event, context, services=None):
    return _dispatch(event, context, route_budget_feedback, services)


ROUTES = {
    "users": route_users,
    "plans": route_plans,
    "budgets": route_budgets,
    "assets": route_assets,
    "debts": route_debts,
    "budget-feedback": route_budget_feedback,
    "bedrock": route_budget_feedback,
}


def _family_from_path(path):
    parts = [p for p in (path or "").split("/") if p]
    if parts and parts[0] == "api":
        parts = parts[1:]
    if not parts:
        return None
    # Budget feedback lives under /budgets/feedback as well as /budget-feedback.
    if parts[0] == "budgets" and len(parts) > 1 and parts[1] == "feedback":
        return "budget-feedback"
    return parts[0]


def lambda_handler(event, context, services=None):
    route = ROUTES.get(_family_from_path(request_path(event)))
    if route is None:
        if request_method(event) == "OPTIONS":
            return options_response()
        return error(404, "Endpoint not found")
    return _dispatch(event, context, route, services)
