from __future__ import annotations

from flowforge.engine.choice import first_choice
from flowforge.engine.dispatcher import ActionContext, build_default_dispatcher, step_result_text
from flowforge.engine.models import (
    FALLBACK_MALFORMED_CONFIG,
    FALLBACK_UNKNOWN_ACTION,
    FALLBACK_UNKNOWN_TONE,
    Action,
    StepKind,
    Tone,
)
from flowforge.redaction import EMAIL_MARKER, PHONE_MARKER


def build_context(**overrides) -> ActionContext:
    values = {
        "email_body": "Hello",
        "text_for_ai": "Please refund my invoice",
        "tone": Tone.PROFESSIONAL,
        "payload": {"vendor": "ACME", "amount": "42.00"},
        "chooser": first_choice,
    }
    values.update(overrides)
    return ActionContext(**values)


def test_step_result_text_replaces_underscores() -> None:
    assert step_result_text("classify_request") == "classify request completed"


def test_classify_action_uses_text_for_ai() -> None:
    step = build_default_dispatcher().dispatch(
        Action(id="a1", type="classify_request"), build_context()
    )
    assert step.kind == StepKind.ACTION
    assert step.result == "classify request completed"
    assert step.action_type == "classify_request"
    assert step.ai_output["classification"] == "Billing"
    assert step.fallback is None


def test_templated_echo_actions_use_config_defaults() -> None:
    dispatcher = build_default_dispatcher()
    context = build_context()

    send = dispatcher.dispatch(Action(id="a1", type="send_email"), context)
    task = dispatcher.dispatch(
        Action(id="a2", type="create_task", config={"title": "Call back"}), context
    )
    expense = dispatcher.dispatch(Action(id="a3", type="log_expense"), context)

    assert send.ai_output == {"sent": True, "to": "recipient", "template": "default"}
    assert task.ai_output == {"created": True, "title": "Call back", "priority": "medium"}
    assert expense.ai_output == {
        "logged": True,
        "category": "general",
        "amount": "42.00",
        "vendor": "ACME",
    }


def test_action_config_tone_overrides_context_tone() -> None:
    step = build_default_dispatcher().dispatch(
        Action(id="a1", type="generate_reply", config={"tone": "friendly"}),
        build_context(tone=Tone.DIRECT),
    )
    assert step.ai_output["tone"] == "friendly"


def test_unknown_tone_in_config_is_tagged() -> None:
    step = build_default_dispatcher().dispatch(
        Action(id="a1", type="generate_reply", config={"tone": "sarcastic"}),
        build_context(),
    )
    assert step.ai_output["tone"] == "professional"
    assert step.fallback == FALLBACK_UNKNOWN_TONE


def test_unknown_action_type_yields_null_output() -> None:
    step = build_default_dispatcher().dispatch(
        Action(id="a1", type="Send_Email"), build_context()
    )
    assert step.ai_output is None
    assert step.result == "Send Email completed"
    assert step.fallback == FALLBACK_UNKNOWN_ACTION


def test_malformed_config_json_degrades_to_empty_config() -> None:
    step = build_default_dispatcher().dispatch(
        Action(id="a1", type="create_task", config="{not json"), build_context()
    )
    assert step.ai_output == {"created": True, "title": "Task", "priority": "medium"}
    assert step.fallback == FALLBACK_MALFORMED_CONFIG


def test_config_json_text_is_decoded() -> None:
    step = build_default_dispatcher().dispatch(
        Action(id="a1", type="send_email", config='{"to": "ops", "template": "alert"}'),
        build_context(),
    )
    assert step.ai_output == {"sent": True, "to": "ops", "template": "alert"}
    assert step.fallback is None


def test_mask_enabled_scrubs_action_output() -> None:
    step = build_default_dispatcher().dispatch(
        Action(
            id="a1",
            type="send_email",
            config={"to": "boss@example.com", "template": "call 555-123-4567"},
        ),
        build_context(mask_enabled=True),
    )
    assert step.ai_output == {"sent": True, "to": EMAIL_MARKER, "template": f"call {PHONE_MARKER}"}
