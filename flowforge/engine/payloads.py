from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any

from flowforge.engine.models import TriggerType


DEFAULT_EMAIL_BODY = "Customer inquiry about service."
DEFAULT_AI_TEXT = "Sample content."

# Payload field naming the firing event, and the label used when it is empty.
_TRIGGER_LABEL_FIELDS: dict[TriggerType, tuple[str, str]] = {
    TriggerType.SCHEDULE: ("dateTime", "scheduled"),
    TriggerType.EMAIL_RECEIVED: ("subject", "email"),
    TriggerType.FORM_SUBMITTED: ("formName", "form"),
    TriggerType.PURCHASE_MADE: ("vendor", "purchase"),
}
GENERIC_TRIGGER_LABEL = "event"

_SAMPLE_PAYLOADS: dict[TriggerType, dict[str, Any]] = {
    TriggerType.SCHEDULE: {"dateTime": "2026-01-05T09:00", "timezone": "UTC"},
    TriggerType.EMAIL_RECEIVED: {
        "from": "customer@example.com",
        "subject": "Question about my invoice",
        "body": "Hi, I was charged twice for my subscription. Can you issue a refund?",
    },
    TriggerType.FORM_SUBMITTED: {
        "formName": "Contact us",
        "responses": {"name": "Jordan", "message": "Please call me back about a meeting."},
    },
    TriggerType.PURCHASE_MADE: {
        "vendor": "Office Supply Co",
        "amount": "149.90",
        "items": ["paper", "toner"],
        "notes": "Quarterly restock",
    },
}


@dataclass(frozen=True)
class TextInputs:
    email_body: str
    text_for_ai: str


def trigger_label(trigger_type: TriggerType, payload: dict[str, Any]) -> str:
    spec = _TRIGGER_LABEL_FIELDS.get(trigger_type)
    if spec is None:
        return GENERIC_TRIGGER_LABEL
    field_name, fallback = spec
    value = payload.get(field_name)
    return str(value) if value else fallback


def _first_text(payload: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = payload.get(key)
        if value:
            return str(value)
    return None


def resolve_text_inputs(payload: dict[str, Any]) -> TextInputs:
    """Pick the text handed to the reply generator and to the AI actions."""
    body = _first_text(payload, "body", "emailBody", "text")
    text_for_ai = body
    if text_for_ai is None:
        responses = payload.get("responses")
        if isinstance(responses, str) and responses:
            text_for_ai = responses
        elif responses:
            text_for_ai = json.dumps(responses, ensure_ascii=False)
    if text_for_ai is None:
        text_for_ai = _first_text(payload, "notes")
    return TextInputs(
        email_body=body or DEFAULT_EMAIL_BODY,
        text_for_ai=text_for_ai or DEFAULT_AI_TEXT,
    )


def sample_payload(trigger_type: TriggerType | str | None) -> dict[str, Any]:
    kind = trigger_type if isinstance(trigger_type, TriggerType) else TriggerType.parse(trigger_type)
    if kind not in _SAMPLE_PAYLOADS:
        kind = TriggerType.EMAIL_RECEIVED
    return build_test_payload(kind, _SAMPLE_PAYLOADS[kind])


def build_test_payload(trigger_type: TriggerType | str | None, fields: dict[str, Any]) -> dict[str, Any]:
    """Normalize raw builder fields into the payload shape the executor reads."""
    kind = trigger_type if isinstance(trigger_type, TriggerType) else TriggerType.parse(trigger_type)
    payload: dict[str, Any] = {}

    if kind == TriggerType.SCHEDULE:
        for key in ("dateTime", "timezone"):
            if key in fields:
                payload[key] = fields[key]
    elif kind == TriggerType.EMAIL_RECEIVED:
        for key in ("from", "subject"):
            if key in fields:
                payload[key] = fields[key]
        if "body" in fields:
            payload["body"] = payload["emailBody"] = payload["text"] = fields["body"]
    elif kind == TriggerType.FORM_SUBMITTED:
        if "formName" in fields:
            payload["formName"] = fields["formName"]
        if "responses" in fields:
            payload["responses"] = _parse_responses(fields["responses"])
    elif kind == TriggerType.PURCHASE_MADE:
        for key in ("vendor", "amount", "notes"):
            if key in fields:
                payload[key] = fields[key]
        if "items" in fields:
            payload["items"] = _split_items(fields["items"])
        parts = [
            payload.get("vendor"),
            payload.get("amount"),
            " ".join(payload.get("items") or []),
            payload.get("notes"),
        ]
        payload["text"] = " ".join(str(p) for p in parts if p)
    else:
        payload = dict(fields)
    return payload


def _parse_responses(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _split_items(raw: Any) -> list[str]:
    if isinstance(raw, (list, tuple)):
        return [str(item).strip() for item in raw if str(item).strip()]
    if not raw:
        return []
    return [item.strip() for item in str(raw).split(",")]
