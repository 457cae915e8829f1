from auth import get_birthdate, get_display_name, get_email, get_identity, get_user_id


def _event(authorizer):
    return {"requestContext": {"authorizer": authorizer}}


def test_rest_api_cognito_claims():
    event = _event({"claims": {"sub": "abc", "email": "a@b.com", "name": "Ann", "birthdate": "1985-02-03"}})
    identity = get_identity(event)
    assert identity.subject == "abc"
    assert get_user_id(event) == "abc"
    assert get_email(event) == "a@b.com"
    assert get_display_name(event) == "Ann"
    assert get_birthdate(event) == "1985-02-03"


def test_http_api_jwt_claims():
    event = _event({"jwt": {"claims": {"sub": "xyz", "cognito:username": "xyz-user"}}})
    assert get_user_id(event) == "xyz"
    assert get_display_name(event) == "xyz-user"
    assert get_email(event) is None
    assert get_birthdate(event) is None


def test_lambda_authorizer_principal_id():
    assert get_user_id(_event({"principalId": "p-1"})) == "p-1"


def test_missing_or_blank_identity_is_none():
    assert get_identity({}) is None
    assert get_identity({"requestContext": {}}) is None
    assert get_identity(_event({"claims": {"sub": "  "}})) is None
    assert get_identity(_event("not-a-dict")) is None
    assert get_email({}) is None
