"""
resources.py — Owner-scoped CRUD shared by plans, budgets, assets and debts
===========================================================================
Every family gets the same four operations:

  list/get  → 401 without identity, 404 when absent or owned by someone else
  create    → 400 with the missing-field list, 201 with the stored record
  update    → immutable fields stripped, version + 1, 200
  delete    → hard delete, 200 with a confirmation message

A foreign record and a missing record produce the same 404.
"""

from auth import get_user_id
from config import log_ctx, logger
from db import strip_immutable
from helpers import (
    InvalidBodyError, error, event_body, request_method, request_path, success, validate_required,
)

UNAUTHORIZED_MESSAGE = "Unauthorized access"
INVALID_BODY_MESSAGE = "Invalid request body"


class ResourceFamily:
    def __init__(self, name, label, required, build, id_param):
        self.name = name            # services attribute / table family
        self.label = label          # "Asset"
        self.required = tuple(required)
        self.build = build          # body -> dict of persisted fields
        self.id_param = id_param    # "assetId"

    def store(self, services):
        return getattr(services, self.name)

    @property
    def not_found(self):
        return f"{self.label} not found"


def path_record_id(event, family):
    params = event.get("pathParameters") or {}
    for key in (family.id_param, "id"):
        value = params.get(key)
        if value:
            return str(value)
    parts = [p for p in request_path(event).split("/") if p]
    if family.name in parts:
        idx = parts.index(family.name)
        if idx + 1 < len(parts):
            return parts[idx + 1]
    return None


def _ctx(event, family, user_id, **extra):
    return log_ctx(
        request_id=(event.get("requestContext") or {}).get("requestId", "-"),
        user_id=user_id or "-",
        method=request_method(event) or "-",
        path=request_path(event),
        module_name=family.name,
        **extra,
    )


def _owned(store, record_id, user_id):
    record = store.get_by_id(record_id)
    if record is None or record.get("ownerId") != user_id:
        return None
    return record


def handle_list(services, family, event):
    user_id = get_user_id(event)
    if not user_id:
        return error(401, UNAUTHORIZED_MESSAGE)
    records = family.store(services).list_by_owner(user_id)
    logger.info(f"{family.label} list fetched", extra=_ctx(event, family, user_id, count=len(records)))
    return success(records)


def handle_get(services, family, event, record_id):
    user_id = get_user_id(event)
    if not user_id:
        return error(401, UNAUTHORIZED_MESSAGE)
    if not record_id:
        return error(400, f"{family.label} ID is required")
    record = _owned(family.store(services), record_id, user_id)
    if record is None:
        return error(404, family.not_found)
    return success(record)


def handle_create(services, family, event):
    user_id = get_user_id(event)
    if not user_id:
        return error(401, UNAUTHORIZED_MESSAGE)
    try:
        body = event_body(event)
    except InvalidBodyError:
        return error(400, INVALID_BODY_MESSAGE)
    missing = validate_required(body, family.required)
    if missing:
        return error(400, "Missing required fields", {"missingFields": missing})
    fields = family.build(body)
    fields["ownerId"] = user_id
    record = family.store(services).create(fields)
    logger.info(f"{family.label} created", extra=_ctx(event, family, user_id, record_id=record["id"]))
    return success(record, 201)


def handle_update(services, family, event, record_id):
    user_id = get_user_id(event)
    if not user_id:
        return error(401, UNAUTHORIZED_MESSAGE)
    if not record_id:
        return error(400, f"{family.label} ID is required")
    store = family.store(services)
    existing = _owned(store, record_id, user_id)
    if existing is None:
        return error(404, family.not_found)
    try:
        body = event_body(event)
    except InvalidBodyError:
        return error(400, INVALID_BODY_MESSAGE)
    record = store.update(record_id, strip_immutable(body), current=existing)
    logger.info(
        f"{family.label} updated",
        extra=_ctx(event, family, user_id, record_id=record_id, version=record["version"]),
    )
    return success(record)


def handle_delete(services, family, event, record_id):
    user_id = get_user_id(event)
    if not user_id:
        return error(401, UNAUTHORIZED_MESSAGE)
    if not record_id:
        return error(400, f"{family.label} ID is required")
    store = family.store(services)
    if _owned(store, record_id, user_id) is None:
        return error(404, family.not_found)
    store.delete(record_id, owner_id=user_id)
    logger.info(f"{family.label} deleted", extra=_ctx(event, family, user_id, record_id=record_id))
    return success({"message": f"{family.label} deleted successfully"})
