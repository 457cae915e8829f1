from fakes import Context, body_of, make_event
from lambda_function import lambda_handler, users_handler

CLAIMS = {"email": "ann@example.com", "name": "Ann", "birthdate": "1988-04-12"}


def call(services, method, path, **kwargs):
    return users_handler(make_event(method, path, **kwargs), Context(), services=services)


def test_first_read_provisions_from_claims(services):
    resp = call(services, "GET", "/users/me", user="sub-1", claims=CLAIMS)
    assert resp["statusCode"] == 200
    user = body_of(resp)
    assert user["id"] == "sub-1"
    assert user["ownerId"] == "sub-1"
    assert user["email"] == "ann@example.com"
    assert user["displayName"] == "Ann"
    assert user["birthday"] == "1988-04-12"
    assert user["retirementAge"] == 65
    assert user["version"] == 1
    assert services.user_versions.latest("sub-1")["globalVersion"] == 1


def test_provisioning_falls_back_to_defaults(services):
    user = body_of(call(services, "GET", "/users/me", user="sub-2"))
    assert user["email"] == "unknown@example.com"
    assert user["displayName"] == "User"
    assert user["birthday"] == "1990-01-01"


def test_second_read_returns_existing_user(services):
    first = body_of(call(services, "GET", "/users/me", user="sub-1", claims=CLAIMS))
    second = body_of(call(services, "GET", "/users", user="sub-1", claims={"email": "changed@example.com"}))
    assert second == first
    assert len(services.user_versions.table.items) == 1


def test_unauthenticated_user_routes(services):
    for method, path in (("GET", "/users/me"), ("PUT", "/users/me"), ("POST", "/users"), ("GET", "/users/versions")):
        resp = call(services, method, path, user=None, body={})
        assert resp["statusCode"] == 401


def test_create_user_requires_fields(services):
    resp = call(services, "POST", "/users", user="sub-3", body={"displayName": "Bo"})
    assert resp["statusCode"] == 400
    assert body_of(resp)["details"]["missingFields"] == ["email"]


def test_create_user_is_keyed_by_identity(services):
    resp = call(services, "POST", "/users", user="sub-3", body={"displayName": "Bo", "email": "bo@example.com", "id": "nope"})
    assert resp["statusCode"] == 201
    user = body_of(resp)
    assert user["id"] == "sub-3"
    assert user["retirementAge"] == 65


def test_update_self_strips_immutable_and_appends_snapshot(services):
    call(services, "GET", "/users/me", user="sub-1", claims=CLAIMS)
    resp = call(services, "PUT", "/users/me", user="sub-1", body={
        "displayName": "Annie", "retirementAge": 60, "ownerId": "sub-9", "version": 42, "createdAt": "x",
    })
    assert resp["statusCode"] == 200
    user = body_of(resp)
    assert user["displayName"] == "Annie"
    assert user["retirementAge"] == 60
    assert user["ownerId"] == "sub-1"
    assert user["version"] == 2
    assert user["createdAt"] != "x"
    snapshot = body_of(call(services, "GET", "/users/versions", user="sub-1"))
    assert snapshot["globalVersion"] == 2
    assert snapshot["usersVersion"] == 2
    assert len(services.user_versions.table.items) == 2


def test_update_unknown_user_is_404(services):
    resp = call(services, "PUT", "/users/me", user="ghost", body={"displayName": "Boo"})
    assert resp["statusCode"] == 404
    assert body_of(resp) == {"error": "User not found"}


def test_versions_for_new_user_start_at_one(services):
    snapshot = body_of(call(services, "GET", "/users/versions", user="fresh"))
    assert snapshot["globalVersion"] == 1
    assert snapshot["debtsVersion"] == 1


def test_users_routing_method_rules(services):
    assert call(services, "POST", "/users/versions")["statusCode"] == 405
    assert call(services, "DELETE", "/users/me")["statusCode"] == 405
    assert call(services, "DELETE", "/users")["statusCode"] == 405
    resp = lambda_handler(make_event("GET", "/api/users/me"), Context(), services=services)
    assert resp["statusCode"] == 200


def test_create_user_after_plan_activity_keeps_counters(services):
    for name in ("Baseline", "Stretch"):
        resp = lambda_handler(make_event("POST", "/plans", user="sub-4", body={"name": name}), Context(), services=services)
        assert resp["statusCode"] == 201
    resp = call(services, "POST", "/users", user="sub-4", body={"displayName": "Cy", "email": "cy@example.com"})
    assert resp["statusCode"] == 201
    snapshot = services.user_versions.latest("sub-4")
    assert snapshot["globalVersion"] == 3
    assert snapshot["usersVersion"] == 1
    assert snapshot["plansVersion"] == 2
    assert len([key for key in services.user_versions.table.items if key[0] == "sub-4"]) == 3
