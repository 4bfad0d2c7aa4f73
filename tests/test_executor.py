from __future__ import annotations

import logging

from flowforge.engine.choice import first_choice
from flowforge.engine.dispatcher import ActionDispatcher
from flowforge.engine.executor import RunExecutor, simulate_run
from flowforge.engine.generators import REPLY_TEMPLATES
from flowforge.engine.models import (
    Action,
    ActionType,
    Automation,
    Condition,
    RunOptions,
    StepKind,
    Tone,
    Trigger,
)
from flowforge.redaction import EMAIL_MARKER


def build_automation(trigger_type: str = "email_received", **overrides) -> Automation:
    values = {
        "id": "auto-1",
        "name": "Support triage",
        "trigger": Trigger(type=trigger_type),
        "conditions": (),
        "actions": (),
    }
    values.update(overrides)
    return Automation(**values)


def test_email_reply_run_produces_trigger_and_action_steps() -> None:
    automation = build_automation(actions=(Action(id="a1", type="generate_reply"),))

    result = simulate_run(
        automation,
        {"subject": "Hi", "body": "Hello"},
        RunOptions(tone=Tone.DIRECT),
        chooser=first_choice,
    )

    assert result.status == "success"
    assert len(result.steps) == 2
    assert result.steps[0].kind == StepKind.TRIGGER
    assert result.steps[0].result == "Trigger fired: Hi"
    assert result.steps[0].ai_output is None
    assert result.steps[1].ai_output["body"] in REPLY_TEMPLATES[Tone.DIRECT]
    assert result.duration_ms >= 0


def test_conditions_are_described_in_declaration_order() -> None:
    automation = build_automation(
        conditions=(
            Condition(id="c1", field="subject_contains", operator="contains", value="help"),
            Condition(id="c2", field="amount", operator="greater_than", value="100"),
        ),
        actions=(Action(id="a1", type="summarize_text"),),
    )

    result = simulate_run(automation, {}, chooser=first_choice)

    kinds = [step.kind for step in result.steps]
    assert kinds == [StepKind.TRIGGER, StepKind.CONDITION, StepKind.CONDITION, StepKind.ACTION]
    assert result.steps[1].result == "subject_contains contains help"
    assert result.steps[2].result == "amount greater_than 100"
    assert result.steps[1].ai_output is None


def test_trigger_labels_per_trigger_type() -> None:
    cases = [
        ("schedule", {"dateTime": "2026-01-05T09:00"}, "Trigger fired: 2026-01-05T09:00"),
        ("schedule", {}, "Trigger fired: scheduled"),
        ("email_received", {}, "Trigger fired: email"),
        ("form_submitted", {"formName": "Contact"}, "Trigger fired: Contact"),
        ("purchase_made", {"vendor": "ACME"}, "Trigger fired: ACME"),
        ("webhook", {"subject": "ignored"}, "Trigger fired: event"),
    ]
    for trigger_type, payload, expected in cases:
        result = simulate_run(build_automation(trigger_type), payload, chooser=first_choice)
        assert result.steps[0].result == expected


def test_unknown_action_does_not_fail_run() -> None:
    automation = build_automation(
        actions=(
            Action(id="a1", type="post_to_slack"),
            Action(id="a2", type="create_task"),
        )
    )

    result = simulate_run(automation, {}, chooser=first_choice)

    assert result.status == "success"
    assert result.steps[1].ai_output is None
    assert result.steps[2].ai_output["created"] is True


def test_mask_option_scrubs_generated_content() -> None:
    automation = build_automation(
        actions=(Action(id="a1", type="send_email", config={"to": "lead@example.com"}),)
    )

    result = simulate_run(automation, {}, RunOptions(mask_pii=True), chooser=first_choice)

    assert result.steps[1].ai_output["to"] == EMAIL_MARKER


def test_execute_builds_run_record_with_snapshot_name() -> None:
    executor = RunExecutor(
        chooser=first_choice,
        id_factory=lambda: "run-1",
        clock=lambda: "2026-02-01T12:00:00+00:00",
    )
    automation = build_automation(actions=(Action(id="a1", type="classify_request"),))

    record = executor.execute(automation, {"body": "invoice"}, RunOptions())

    assert record.run_id == "run-1"
    assert record.automation_id == "auto-1"
    assert record.automation_name == "Support triage"
    assert record.timestamp == "2026-02-01T12:00:00+00:00"
    data = record.to_dict()
    assert data["stepsExecuted"][1]["aiOutput"]["classification"] == "Billing"
    assert data["stepsExecuted"][1]["actionType"] == "classify_request"


def test_custom_dispatcher_handlers_are_used() -> None:
    dispatcher = ActionDispatcher()
    dispatcher.register(ActionType.CREATE_TASK, lambda config, context: {"custom": True})
    executor = RunExecutor(dispatcher, chooser=first_choice)
    automation = build_automation(
        actions=(Action(id="a1", type="create_task"), Action(id="a2", type="send_email"))
    )

    result = executor.simulate_run(automation, {}, RunOptions())

    assert result.steps[1].ai_output == {"custom": True}
    assert result.steps[2].ai_output is None


def test_run_logs_start_and_end_events(caplog) -> None:
    automation = build_automation(actions=(Action(id="a1", type="send_email"),))
    with caplog.at_level(logging.INFO, logger="flowforge.engine.executor"):
        simulate_run(automation, {}, chooser=first_choice)
    events = [getattr(record, "event", None) for record in caplog.records]
    assert "run_start" in events
    assert "run_end" in events
