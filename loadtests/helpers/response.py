"""Turn stock ledger API error bodies into one-line failure messages.

Bodies the API produces:

- request schema errors (422): ``{"detail": [{"loc": [...], "msg": "..."}]}``
- domain errors (400/404): ``{"error": {"quantity": ["Cannot return 5: ..."]}}``
  or ``{"error": "..."}``
- row lock timeouts (409): ``{"error": "...", "retryable": true}``
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

MAX_DETAIL = 300


def _field_messages(errors: dict) -> str:
    parts = []
    for field_name, messages in errors.items():
        if isinstance(messages, list):
            messages = "; ".join(str(m) for m in messages)
        parts.append(f"{field_name}: {messages}")
    return " | ".join(parts)


def _schema_errors(detail: list) -> str:
    parts = []
    for err in detail:
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg', err)}" if location else str(err.get("msg", err)))
    return " | ".join(parts)


def extract_error_detail(response: Response) -> str:
    """Best-effort summary of an error response, never raising."""
    try:
        body = response.json()
    except ValueError:
        return (getattr(response, "text", "") or "(empty response body)")[:MAX_DETAIL]

    if not isinstance(body, dict):
        return str(body)[:MAX_DETAIL]

    if isinstance(body.get("detail"), list):
        return _schema_errors(body["detail"])

    error = body.get("error")
    if isinstance(error, dict):
        return _field_messages(error)
    if error is not None:
        return f"{error} (retryable)" if body.get("retryable") else str(error)

    return str(body)[:MAX_DETAIL]
