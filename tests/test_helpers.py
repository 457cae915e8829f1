import base64
import json
from decimal import Decimal

import pytest

from helpers import (
    InvalidBodyError, api_response, error, from_dynamo, parse_body, success, to_dynamo,
    validate_present, validate_required,
)


def test_success_envelope_has_cors_headers_and_json_body():
    resp = success({"id": "a1", "version": Decimal("1")}, 201)
    assert resp["statusCode"] == 201
    assert resp["headers"]["Content-Type"] == "application/json"
    assert resp["headers"]["Access-Control-Allow-Origin"] == "*"
    assert "PUT" in resp["headers"]["Access-Control-Allow-Methods"]
    assert "Authorization" in resp["headers"]["Access-Control-Allow-Headers"]
    assert json.loads(resp["body"]) == {"id": "a1", "version": 1}


def test_error_envelope_includes_details_only_when_given():
    assert json.loads(error(404, "Asset not found")["body"]) == {"error": "Asset not found"}
    body = json.loads(error(400, "Missing required fields", {"missingFields": ["name"]})["body"])
    assert body == {"error": "Missing required fields", "details": {"missingFields": ["name"]}}


def test_empty_body_for_none():
    assert api_response(200, None)["body"] == ""


def test_validate_required_treats_falsy_values_as_missing():
    missing = validate_required({"name": "x", "currentValue": 0}, ["name", "currentValue", "annualAPY"])
    assert missing == ["currentValue", "annualAPY"]


@pytest.mark.parametrize("value", [0, "", False, None, []])
def test_validate_required_falsy_variants(value):
    assert validate_required({"field": value}, ["field"]) == ["field"]


def test_validate_present_accepts_zero_and_empty_lists():
    body = {"totalIncome": 0, "income": [], "budgetName": None}
    assert validate_present(body, ["totalIncome", "income", "budgetName", "expenses"]) == ["budgetName", "expenses"]


@pytest.mark.parametrize("raw", [None, "", "   ", "null"])
def test_parse_body_empty_inputs(raw):
    assert parse_body(raw) == {}


def test_parse_body_decodes_json_and_base64():
    assert parse_body('{"name": "Savings"}') == {"name": "Savings"}
    encoded = base64.b64encode(b'{"name": "Savings"}').decode()
    assert parse_body(encoded, is_base64=True) == {"name": "Savings"}


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"text"'])
def test_parse_body_rejects_malformed_or_non_object(raw):
    with pytest.raises(InvalidBodyError):
        parse_body(raw)


@pytest.mark.parametrize("raw", ['{"currentValue": NaN}', '{"currentValue": Infinity}', '{"currentValue": -Infinity}'])
def test_parse_body_rejects_non_finite_numbers(raw):
    with pytest.raises(InvalidBodyError):
        parse_body(raw)


def test_dynamo_conversion_handles_nested_floats():
    item = to_dynamo({"currentValue": 1000.5, "months": [{"amount": 0.03}], "flag": True, "n": 3})
    assert item == {"currentValue": Decimal("1000.5"), "months": [{"amount": Decimal("0.03")}], "flag": True, "n": 3}
    assert from_dynamo(item) == {"currentValue": 1000.5, "months": [{"amount": 0.03}], "flag": True, "n": 3}
    assert isinstance(from_dynamo(Decimal("2")), int)
