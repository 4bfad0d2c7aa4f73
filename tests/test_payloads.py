from __future__ import annotations

from flowforge.engine.payloads import (
    DEFAULT_AI_TEXT,
    DEFAULT_EMAIL_BODY,
    build_test_payload,
    resolve_text_inputs,
    sample_payload,
)


def test_resolve_text_inputs_prefers_body() -> None:
    inputs = resolve_text_inputs({"body": "Hello", "text": "other", "notes": "n"})
    assert inputs.email_body == "Hello"
    assert inputs.text_for_ai == "Hello"


def test_resolve_text_inputs_uses_form_responses() -> None:
    inputs = resolve_text_inputs({"responses": {"message": "call me"}})
    assert inputs.email_body == DEFAULT_EMAIL_BODY
    assert inputs.text_for_ai == '{"message": "call me"}'


def test_resolve_text_inputs_falls_back_to_notes_then_default() -> None:
    assert resolve_text_inputs({"notes": "restock"}).text_for_ai == "restock"
    assert resolve_text_inputs({}).text_for_ai == DEFAULT_AI_TEXT


def test_build_email_payload_mirrors_body() -> None:
    payload = build_test_payload(
        "email_received", {"from": "a@b.io", "subject": "Hi", "body": "Hello"}
    )
    assert payload == {
        "from": "a@b.io",
        "subject": "Hi",
        "body": "Hello",
        "emailBody": "Hello",
        "text": "Hello",
    }


def test_build_form_payload_parses_json_responses() -> None:
    parsed = build_test_payload("form_submitted", {"formName": "F", "responses": '{"a": 1}'})
    raw = build_test_payload("form_submitted", {"responses": "not json"})
    assert parsed["responses"] == {"a": 1}
    assert raw["responses"] == "not json"


def test_build_purchase_payload_composes_text() -> None:
    payload = build_test_payload(
        "purchase_made",
        {"vendor": "ACME", "amount": "12.50", "items": "pens, paper", "notes": ""},
    )
    assert payload["items"] == ["pens", "paper"]
    assert payload["text"] == "ACME 12.50 pens paper"


def test_sample_payload_defaults_to_email_for_unknown_trigger() -> None:
    assert sample_payload("webhook") == sample_payload("email_received")
    assert "subject" in sample_payload("email_received")
