"""Template-based content generators.

Each generator is a pure function of its inputs plus an injected chooser.
Output is always drawn from the fixed candidate pools below, so a
deterministic chooser gives byte-for-byte reproducible payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
import re
from typing import Any, Sequence

from flowforge.engine.choice import Chooser, default_chooser
from flowforge.engine.models import Tone, TriggerType


CATEGORIES = ("Billing", "Scheduling", "Complaint", "General")

_CATEGORY_KEYWORDS = {
    "Billing": ("bill", "invoice", "payment", "charge", "refund", "subscription"),
    "Scheduling": ("meeting", "schedule", "appointment", "calendar", "reschedule", "time"),
    "Complaint": ("issue", "problem", "wrong", "unhappy", "disappointed", "fix"),
}

_CATEGORY_PATTERNS = {
    category: re.compile(r"\b(" + "|".join(words) + r")\b", re.IGNORECASE)
    for category, words in _CATEGORY_KEYWORDS.items()
}

GENERAL_BASELINE_SCORE = 1

# 0.75, 0.76, ... 0.95
CONFIDENCE_STEPS = tuple(round(0.75 + step / 100, 2) for step in range(21))

MAX_ALTERNATIVES = 2

REPLY_TEMPLATES: dict[Tone, tuple[str, ...]] = {
    Tone.PROFESSIONAL: (
        "Thank you for your message. I have received your request and will look into it "
        "shortly. I will get back to you within 24 hours.",
        "Thanks for reaching out. I've noted the details and will follow up with you by end "
        "of day. Please let me know if you have any urgent questions in the meantime.",
    ),
    Tone.FRIENDLY: (
        "Hi! Thanks for getting in touch. I'll look into this and get back to you soon. "
        "Have a great day!",
        "Hey there – received your message. I'll circle back with a proper response shortly. "
        "Thanks!",
    ),
    Tone.DIRECT: (
        "Received. We will respond within 24 hours.",
        "Request noted. Expect a follow-up by end of day.",
    ),
    Tone.HELPFUL: (
        "Thank you for contacting us. Based on your message, here are the next steps: "
        "1) We'll verify the details, 2) Process your request within 1–2 business days. "
        "You'll receive a confirmation email once complete.",
        "Thanks for reaching out. I've forwarded this to the right team. You should hear "
        "back within 24 hours. In the meantime, you can check our help center for common "
        "answers.",
    ),
}

# Checked in order; only the first phrase found is substituted, once.
PHRASE_VARIANTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Thank you", ("Thanks", "Thank you", "Many thanks")),
    ("I will", ("I'll", "I will", "I'd be glad to")),
    ("please", ("please", "kindly", "when you can")),
)

PREVIEW_LENGTH = 80
ELLIPSIS = "…"

BULLET_SETS: tuple[tuple[str, str, str], ...] = (
    (
        "Key request or topic identified.",
        "Sender is asking for a response or action.",
        "Suggested next step: reply or assign.",
    ),
    (
        "Main point summarized in one line.",
        "Additional context or detail noted.",
        "Follow-up recommended within 48 hours.",
    ),
    (
        "Topic: inquiry or feedback.",
        "Action needed: response or internal routing.",
        "Priority: normal unless keywords suggest otherwise.",
    ),
)

FOLLOW_UP_QUESTIONS = (
    "Do you want to reply now or schedule for later?",
    "Should this be escalated or handled in-house?",
    "Any specific deadline or SLA to meet?",
)

MAX_CONDITIONS_FOR_SUGGESTION = 5
MAX_ACTIONS_FOR_SUGGESTION = 6


@dataclass(frozen=True)
class Suggestion:
    type: str
    label: str
    field: str | None = None
    operator: str | None = None
    value: str | None = None
    type_id: str | None = None
    config: dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "label": self.label,
            "field": self.field,
            "operator": self.operator,
            "value": self.value,
            "typeId": self.type_id,
            "config": dict(self.config),
        }


def _condition(label: str, field_name: str, operator: str, value: str) -> Suggestion:
    return Suggestion(type="condition", label=label, field=field_name, operator=operator, value=value)


def _action(label: str, type_id: str, **config: Any) -> Suggestion:
    return Suggestion(type="action", label=label, type_id=type_id, config=config)


SUGGESTIONS: dict[TriggerType, tuple[Suggestion, ...]] = {
    TriggerType.SCHEDULE: (
        _condition("Only on weekdays", "weekday", "in", "mon-fri"),
        _condition("Only if no conflict", "calendar_free", "equals", "true"),
        _action("Create task", "create_task", title="Scheduled follow-up", priority="medium"),
        _action("Send email", "send_email", template="reminder"),
    ),
    TriggerType.EMAIL_RECEIVED: (
        _condition("Subject contains keyword", "subject_contains", "contains", "urgent"),
        _condition("From external domain", "from_domain", "not_equals", "internal"),
        _action("Classify request", "classify_request"),
        _action("Summarize email", "summarize_text"),
        _action("Generate reply", "generate_reply", tone="professional"),
    ),
    TriggerType.FORM_SUBMITTED: (
        _condition("Form type equals", "form_type", "equals", "contact"),
        _action(
            "Create task from submission",
            "create_task",
            title="New form submission",
            priority="high",
        ),
        _action("Send confirmation email", "send_email", template="form_confirmation"),
    ),
    TriggerType.PURCHASE_MADE: (
        _condition("Amount above", "amount", "greater_than", "100"),
        _action("Log expense", "log_expense", category="purchase"),
        _action("Summarize purchase", "summarize_text"),
    ),
}


def score_categories(text: str) -> dict[str, int]:
    scores = {
        category: len(pattern.findall(text or ""))
        for category, pattern in _CATEGORY_PATTERNS.items()
    }
    scores["General"] = GENERAL_BASELINE_SCORE
    return scores


def classify_request(text: str | None, *, chooser: Chooser = default_chooser) -> dict[str, Any]:
    scores = score_categories(text or "")
    best_score = max(scores.values())
    winner = next(c for c in CATEGORIES if scores[c] == best_score)
    alternatives = [c for c in CATEGORIES if c != winner and scores[c] > 0]
    return {
        "classification": winner,
        "confidence": chooser(CONFIDENCE_STEPS),
        "alternatives": alternatives[:MAX_ALTERNATIVES],
    }


def vary_phrasing(sentence: str, *, chooser: Chooser = default_chooser) -> str:
    for phrase, variants in PHRASE_VARIANTS:
        if phrase in sentence:
            return sentence.replace(phrase, chooser(variants), 1)
    return sentence


def build_preview(body: str) -> str:
    if len(body) > PREVIEW_LENGTH:
        return body[:PREVIEW_LENGTH] + ELLIPSIS
    return body


def generate_reply(
    message: str | None,
    *,
    tone: Tone | str = Tone.PROFESSIONAL,
    chooser: Chooser = default_chooser,
) -> dict[str, Any]:
    # The inbound message only gives context; replies come from the tone pool.
    del message
    resolved = tone if isinstance(tone, Tone) else Tone.parse(tone)
    body = vary_phrasing(chooser(REPLY_TEMPLATES[resolved]), chooser=chooser)
    return {"body": body, "tone": resolved.value, "preview": build_preview(body)}


def summarize_text(text: str | None, *, chooser: Chooser = default_chooser) -> dict[str, Any]:
    del text
    bullets = list(chooser(BULLET_SETS))
    follow_up = chooser(FOLLOW_UP_QUESTIONS)
    return {
        "bullets": bullets,
        "followUpQuestions": [follow_up],
        "summary": " ".join(bullets),
    }


def suggestion_candidates(trigger_type: TriggerType | str | None) -> tuple[Suggestion, ...]:
    kind = trigger_type if isinstance(trigger_type, TriggerType) else TriggerType.parse(trigger_type)
    return SUGGESTIONS.get(kind, SUGGESTIONS[TriggerType.EMAIL_RECEIVED])


def suggest_next_step(
    trigger_type: TriggerType | str | None,
    existing_conditions: Sequence[Any],
    existing_actions: Sequence[Any],
    *,
    chooser: Chooser = default_chooser,
) -> Suggestion:
    candidates = suggestion_candidates(trigger_type)
    conditions_open = len(existing_conditions) < MAX_CONDITIONS_FOR_SUGGESTION
    actions_open = len(existing_actions) < MAX_ACTIONS_FOR_SUGGESTION
    available = [
        s
        for s in candidates
        if (conditions_open if s.type == "condition" else actions_open)
    ]
    return chooser(available or list(candidates))
