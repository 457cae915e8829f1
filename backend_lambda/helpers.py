import base64
import binascii
import decimal
import json
from datetime import date, datetime

from config import (
    ALLOWED_HEADERS, ALLOWED_METHODS, ALLOWED_ORIGIN, BEDROCK_INPUT_TOKEN_PRICE,
    BEDROCK_OUTPUT_TOKEN_PRICE, METRICS_NAMESPACE, logger,
)


class InvalidBodyError(ValueError):
    """Request body is not a decodable JSON object."""


def _json_default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    return str(value)


def cors_headers():
    return {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": ALLOWED_ORIGIN,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "X-Content-Type-Options": "nosniff",
        "Cache-Control": "no-store",
    }


def api_response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": cors_headers(),
        "body": "" if body is None else json.dumps(body, default=_json_default, ensure_ascii=False),
    }


def success(data, status_code=200):
    return api_response(status_code, data)


def error(status_code, message, details=None):
    payload = {"error": message}
    if details is not None:
        payload["details"] = details
    return api_response(status_code, payload)


def options_response():
    return api_response(200, None)


def validate_required(obj, fields):
    """
    Names of `fields` that are absent or falsy in `obj`.

    0, "", False and [] all count as missing.
    """
    obj = obj or {}
    return [field for field in fields if not obj.get(field)]


def validate_present(obj, fields):
    """Names of `fields` that are absent or null in `obj`."""
    obj = obj or {}
    return [field for field in fields if obj.get(field) is None]


def _reject_constant(name):
    raise InvalidBodyError(f"Invalid number in request body: {name}")


def parse_body(raw_body, is_base64=False):
    if raw_body is None or raw_body == "":
        return {}
    if isinstance(raw_body, dict):
        return raw_body
    if is_base64:
        try:
            raw_body = base64.b64decode(raw_body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise InvalidBodyError("Invalid request body") from exc
    if not raw_body.strip():
        return {}
    try:
        body = json.loads(raw_body, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise InvalidBodyError("Invalid request body") from exc
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidBodyError("Invalid request body")
    return body


def event_body(event):
    return parse_body(event.get("body"), bool(event.get("isBase64Encoded")))


def _safe_float(value, default=0.0):
    if value is None:
        return default
    try:
        out = float(value)
        if out != out or out in (float("inf"), float("-inf")):
            return default
        return out
    except (ValueError, TypeError):
        return default


def _coerce_bool(value, default=None):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


def to_dynamo(value):
    """Floats become Decimal; DynamoDB rejects Python floats."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return decimal.Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value):
    if isinstance(value, decimal.Decimal):
        return _json_default(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [from_dynamo(v) for v in value]
    if isinstance(value, set):
        return [from_dynamo(v) for v in sorted(value, key=str)]
    return value


def emit_bedrock_metrics(cw_client, endpoint, input_tokens, output_tokens):
    if cw_client is None:
        return
    try:
        cost = (input_tokens * BEDROCK_INPUT_TOKEN_PRICE) + (output_tokens * BEDROCK_OUTPUT_TOKEN_PRICE)
        cw_client.put_metric_data(
            Namespace=METRICS_NAMESPACE,
            MetricData=[
                {"MetricName": "InputTokens", "Value": input_tokens, "Unit": "Count", "Dimensions": [{"Name": "Endpoint", "Value": endpoint}]},
                {"MetricName": "OutputTokens", "Value": output_tokens, "Unit": "Count", "Dimensions": [{"Name": "Endpoint", "Value": endpoint}]},
                {"MetricName": "EstimatedCost", "Value": cost, "Unit": "None", "Dimensions": [{"Name": "Endpoint", "Value": endpoint}]},
            ]
        )
    except Exception as e:
        logger.warning(f"Failed to emit Bedrock metrics: {e}")


def request_method(event):
    method = event.get("httpMethod") or ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return (method or "").upper()


def request_path(event):
    return event.get("path") or event.get("rawPath") or "/"
