from __future__ import annotations

from typing import Any, Dict

from flask import request

from app.errors import ValidationError
from app.freight.parsing import parse_optional_int


def request_payload() -> Dict[str, Any]:
    """JSON body or form fields of the current request as a plain dict."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError(code="payload_invalid", http_status=400, critical=False)
        return payload
    if request.form:
        return request.form.to_dict()
    if request.get_data(cache=True):
        raise ValidationError(code="payload_invalid", http_status=400, critical=False)
    return {}


def payload_id(payload: Dict[str, Any], key: str) -> int | None:
    value = parse_optional_int(payload.get(key))
    if value is None or value <= 0:
        return None
    return value
