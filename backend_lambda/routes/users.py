from auth import get_identity
from config import (
    DEFAULT_BIRTHDAY, DEFAULT_DISPLAY_NAME, DEFAULT_EMAIL, DEFAULT_RETIREMENT_AGE,
    log_ctx, logger,
)
from db import strip_immutable
from helpers import (
    InvalidBodyError, error, event_body, request_method, request_path, success, validate_required,
)
from routes.resources import INVALID_BODY_MESSAGE, UNAUTHORIZED_MESSAGE

USER_REQUIRED_FIELDS = ("displayName", "email")


def _ctx(event, user_id, **extra):
    return log_ctx(
        request_id=(event.get("requestContext") or {}).get("requestId", "-"),
        user_id=user_id,
        method=request_method(event) or "-",
        path=request_path(event),
        module_name="users",
        **extra,
    )


def provisioned_user_fields(identity):
    """Profile for a first-time caller, seeded from token claims."""
    return {
        "ownerId": identity.subject,
        "email": identity.email or DEFAULT_EMAIL,
        "displayName": identity.display_name or DEFAULT_DISPLAY_NAME,
        "birthday": identity.birthdate or DEFAULT_BIRTHDAY,
        "retirementAge": DEFAULT_RETIREMENT_AGE,
    }


def provision_user(services, identity):
    user = services.users.create(provisioned_user_fields(identity), id_override=identity.subject)
    services.user_versions.record_user_created(identity.subject)
    logger.info(
        "User auto-provisioned",
        extra=log_ctx(module_name="users", user_id=identity.subject, email=user["email"]),
    )
    return user


def get_or_provision_user(services, identity):
    """Read the caller's profile, creating it from claims on the first read."""
    user = services.users.get_by_id(identity.subject)
    if user is not None:
        return user
    return provision_user(services, identity)


def handle_get_current_user(services, event):
    identity = get_identity(event)
    if identity is None:
        return error(401, UNAUTHORIZED_MESSAGE)
    return success(get_or_provision_user(services, identity))


def handle_create_user(services, event):
    identity = get_identity(event)
    if identity is None:
        return error(401, UNAUTHORIZED_MESSAGE)
    try:
        body = event_body(event)
    except InvalidBodyError:
        return error(400, INVALID_BODY_MESSAGE)
    missing = validate_required(body, USER_REQUIRED_FIELDS)
    if missing:
        return error(400, "Missing required fields", {"missingFields": missing})
    retirement_age = body.get("retirementAge")
    fields = {
        "ownerId": identity.subject,
        "displayName": body["displayName"],
        "email": body["email"],
        "birthday": body.get("birthday") or DEFAULT_BIRTHDAY,
        "retirementAge": DEFAULT_RETIREMENT_AGE if retirement_age is None else retirement_age,
    }
    user = services.users.create(fields, id_override=identity.subject)
    services.user_versions.record_user_created(identity.subject)
    logger.info("User created", extra=_ctx(event, identity.subject))
    return success(user, 201)


def handle_update_current_user(services, event):
    identity = get_identity(event)
    if identity is None:
        return error(401, UNAUTHORIZED_MESSAGE)
    existing = services.users.get_by_id(identity.subject)
    if existing is None or existing.get("ownerId") != identity.subject:
        return error(404, "User not found")
    try:
        body = event_body(event)
    except InvalidBodyError:
        return error(400, INVALID_BODY_MESSAGE)
    user = services.users.update(identity.subject, strip_immutable(body), current=existing)
    services.user_versions.record_user_updated(identity.subject, user["version"])
    logger.info("User updated", extra=_ctx(event, identity.subject, version=user["version"]))
    return success(user)


def handle_get_user_versions(services, event):
    identity = get_identity(event)
    if identity is None:
        return error(401, UNAUTHORIZED_MESSAGE)
    snapshot = services.user_versions.latest(identity.subject)
    if snapshot is None:
        snapshot = services.user_versions.record_user_created(identity.subject)
    return success(snapshot)
