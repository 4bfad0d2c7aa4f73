from __future__ import annotations

import json
from typing import Sequence

from flowforge.engine.insights import (
    MINUTES_SAVED_PER_RUN,
    active_count,
    executive_summary,
    success_rate,
    tally_feedback,
)
from flowforge.engine.models import Automation, RunRecord, UserSettings


def run_report_text(run: RunRecord) -> str:
    duration = f"{run.duration_ms} ms" if run.duration_ms is not None else "-"
    lines = [
        "FlowForge Run Report",
        "====================",
        f"Automation: {run.automation_name or '-'}",
        f"Timestamp: {run.timestamp or '-'}",
        f"Status: {run.status or '-'}",
        f"Duration: {duration}",
        "",
        "Step trace:",
    ]
    for step in run.steps:
        lines.append(f"  - {step.kind.value}: {step.result}")
        if step.ai_output:
            lines.append(f"    AI: {json.dumps(step.ai_output, ensure_ascii=False)}")
    return "\n".join(lines)


def client_summary_text(
    automations: Sequence[Automation],
    runs: Sequence[RunRecord],
    settings: UserSettings,
) -> str:
    feedback = tally_feedback(runs)
    helpful = f"{feedback.helpful_rate}%" if feedback.helpful_rate is not None else "N/A"
    lines = [
        "FLOWFORGE CLIENT SUMMARY",
        "========================",
        "",
        executive_summary(automations, runs, settings),
        "",
        "KEY METRICS",
        "-----------",
        f"Active automations: {active_count(automations)}",
        f"Total runs: {len(runs)}",
        f"Success rate: {success_rate(runs)}%",
        f"Estimated minutes saved: ~{len(runs) * MINUTES_SAVED_PER_RUN}",
        f"Helpful rate: {helpful}",
        f"Flagged runs: {feedback.flags}",
        "",
        "GOVERNANCE SETTINGS",
        "-------------------",
        f"Tone: {settings.tone or 'professional'}",
        f"Risk level: {settings.risk_level or 'low'}",
        f"Mask PII in logs: {'yes' if settings.mask_pii_in_logs else 'no'}",
        f"Demo mode: {'on' if settings.demo_mode else 'off'}",
    ]
    return "\n".join(lines)


def export_automation_json(automation: Automation) -> str:
    return json.dumps(automation.to_dict(), indent=2, ensure_ascii=False)
