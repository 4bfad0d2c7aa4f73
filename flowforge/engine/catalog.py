"""Static automation templates and the demo seed set."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable

from flowforge.engine.models import (
    Action,
    Automation,
    AutomationStatus,
    Condition,
    Trigger,
)


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    trigger: dict[str, Any]
    conditions: tuple[dict[str, Any], ...]
    actions: tuple[dict[str, Any], ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "trigger": deepcopy(self.trigger),
            "conditions": deepcopy(list(self.conditions)),
            "actions": deepcopy(list(self.actions)),
        }


def _cond(field_name: str, operator: str, value: str) -> dict[str, Any]:
    return {"field": field_name, "operator": operator, "value": value}


def _act(action_type: str, **config: Any) -> dict[str, Any]:
    return {"type": action_type, "config": config}


TEMPLATES: tuple[Template, ...] = (
    Template(
        id="tpl_landlord",
        name="Auto-reply to landlords",
        description=(
            "Send a polite, professional reply when you receive a rental inquiry or "
            "landlord message."
        ),
        trigger={"type": "email_received", "config": {"folder": "inbox"}},
        conditions=(_cond("subject_contains", "contains", "rental"),),
        actions=(_act("generate_reply", tone="professional", context="rental_inquiry"),),
    ),
    Template(
        id="tpl_job_followup",
        name="Job application follow-up helper",
        description="Remind you to follow up on job applications after 1 week.",
        trigger={"type": "schedule", "config": {"cron": "weekly", "day": "monday"}},
        conditions=(_cond("tag", "equals", "application_sent"),),
        actions=(_act("create_task", title="Follow up on job application", priority="high"),),
    ),
    Template(
        id="tpl_receipts",
        name="Receipts to expense log",
        description=(
            "When you receive an email with a receipt, classify and log it as an expense."
        ),
        trigger={"type": "email_received", "config": {"hasAttachment": True}},
        conditions=(_cond("subject_contains", "contains", "receipt"),),
        actions=(
            _act("classify_request"),
            _act("log_expense", category="auto", fromAttachment=True),
        ),
    ),
    Template(
        id="tpl_gym_meal",
        name="Gym meal plan reminder",
        description="Daily reminder to log your meals and workout.",
        trigger={"type": "schedule", "config": {"cron": "daily", "time": "08:00"}},
        conditions=(),
        actions=(_act("send_email", template="meal_reminder", to="self"),),
    ),
    Template(
        id="tpl_support_triage",
        name="Customer support triage",
        description="Classify incoming support emails and suggest a reply.",
        trigger={"type": "email_received", "config": {"folder": "inbox"}},
        conditions=(_cond("from_domain", "not_equals", "internal"),),
        actions=(
            _act("classify_request"),
            _act("summarize_text"),
            _act("generate_reply", tone="helpful"),
        ),
    ),
    Template(
        id="tpl_missed_appt",
        name="Missed appointment rescheduler",
        description="When someone misses an appointment, send a gentle reschedule offer.",
        trigger={"type": "form_submitted", "config": {"formId": "no_show"}},
        conditions=(_cond("event", "equals", "no_show"),),
        actions=(
            _act("generate_reply", tone="friendly", template="reschedule_offer"),
            _act("create_task", title="Follow up: reschedule", priority="medium"),
        ),
    ),
    Template(
        id="tpl_purchase_summary",
        name="Purchase confirmation summarizer",
        description="Summarize purchase confirmations and log key details.",
        trigger={"type": "purchase_made", "config": {}},
        conditions=(),
        actions=(_act("summarize_text"), _act("log_expense", category="purchase")),
    ),
    Template(
        id="tpl_weekly_digest",
        name="Weekly digest",
        description="Every Monday, create a summary of last week's key emails and tasks.",
        trigger={
            "type": "schedule",
            "config": {"cron": "weekly", "day": "monday", "time": "09:00"},
        },
        conditions=(),
        actions=(_act("summarize_text", mode="weekly_digest"),),
    ),
)

SEED_AUTOMATIONS: tuple[Template, ...] = (
    Template(
        id="seed_meeting_followup",
        name="Meeting follow-up",
        description="",
        trigger={"type": "schedule", "config": {"cron": "after_meeting", "interval": "15m"}},
        conditions=(_cond("has_attendees", "equals", "true"),),
        actions=(_act("send_email", template="meeting_summary", to="attendees"),),
    ),
    Template(
        id="seed_support_triage",
        name="Support triage",
        description="",
        trigger={"type": "email_received", "config": {"folder": "inbox", "from": "any"}},
        conditions=(_cond("subject_contains", "contains", "help"),),
        actions=(_act("classify_request"), _act("generate_reply", tone="professional")),
    ),
)


def get_templates() -> tuple[Template, ...]:
    return TEMPLATES


def find_template(template_id: str) -> Template | None:
    return next((t for t in TEMPLATES if t.id == template_id), None)


def instantiate(
    template: Template,
    *,
    new_id: Callable[[], str],
    status: AutomationStatus = AutomationStatus.PAUSED,
    timestamp: str | None = None,
) -> Automation:
    """Build a fresh automation from a template; every id is newly generated."""
    return Automation(
        id=new_id(),
        name=template.name,
        trigger=Trigger.from_dict(deepcopy(template.trigger)),
        conditions=tuple(
            Condition.from_dict({**c, "id": new_id()}) for c in template.conditions
        ),
        actions=tuple(
            Action.from_dict({**deepcopy(a), "id": new_id()}) for a in template.actions
        ),
        status=status,
        created_at=timestamp,
        updated_at=timestamp,
    )
