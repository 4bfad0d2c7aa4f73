from __future__ import annotations

import json

from flowforge.engine.models import (
    Action,
    Automation,
    Condition,
    Feedback,
    RunRecord,
    Step,
    StepKind,
    Trigger,
    UserSettings,
)
from flowforge.engine.reports import client_summary_text, export_automation_json, run_report_text


def build_run() -> RunRecord:
    return RunRecord(
        run_id="r1",
        automation_id="a1",
        automation_name="Support triage",
        status="success",
        steps=(
            Step(kind=StepKind.TRIGGER, result="Trigger fired: Hi"),
            Step(
                kind=StepKind.ACTION,
                result="classify request completed",
                ai_output={"classification": "Billing"},
                action_type="classify_request",
            ),
        ),
        duration_ms=3,
        timestamp="2026-02-01T12:00:00+00:00",
        feedback=Feedback.DOWN,
    )


def test_run_report_lists_step_trace() -> None:
    text = run_report_text(build_run())
    lines = text.splitlines()
    assert lines[0] == "FlowForge Run Report"
    assert "Automation: Support triage" in lines
    assert "Duration: 3 ms" in lines
    assert "  - trigger: Trigger fired: Hi" in lines
    assert '    AI: {"classification": "Billing"}' in lines


def test_client_summary_includes_metrics_and_governance() -> None:
    text = client_summary_text([], [build_run()], UserSettings(demo_mode=True))
    assert text.startswith("FLOWFORGE CLIENT SUMMARY")
    assert "Total runs: 1" in text
    assert "Helpful rate: 0%" in text
    assert "Flagged runs: 0" in text
    assert "Demo mode: on" in text
    assert "Mask PII in logs: no" in text


def test_client_summary_without_ratings_reports_na() -> None:
    text = client_summary_text([], [], UserSettings())
    assert "Helpful rate: N/A" in text
    assert "Success rate: 100%" in text


def test_export_automation_json_round_trips() -> None:
    automation = Automation(
        id="a1",
        name="Receipts",
        trigger=Trigger(type="email_received", config={"folder": "inbox"}),
        conditions=(Condition(id="c1", field="subject_contains", operator="contains", value="receipt"),),
        actions=(Action(id="x1", type="log_expense", config={"category": "auto"}),),
    )
    data = json.loads(export_automation_json(automation))
    assert data["trigger"] == {"type": "email_received", "config": {"folder": "inbox"}}
    assert data["status"] == "paused"
    assert Automation.from_dict(data) == automation
