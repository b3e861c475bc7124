# Overview: Helpers shared by the API blueprints.

from __future__ import annotations

from flask import request

from ..errors import (
    ConflictError,
    DecodeError,
    NotFoundError,
    ShopBillError,
    TransactionFailure,
    ValidationError,
)
from ..time_utils import parse_iso_datetime

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (DecodeError, 500),
    (TransactionFailure, 500),
)


def error_response(e: ShopBillError):
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(e, cls):
            break
    else:
        status = 500
    body = {"error": str(e)}
    if e.details and status < 500:
        body["details"] = e.details
    return body, status


def json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def required_datetime_arg(name: str):
    raw = request.args.get(name)
    try:
        value = parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")
    if value is None:
        raise ValidationError(f"{name} is required")
    return value
