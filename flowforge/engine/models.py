from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
import json
from typing import Any


class TriggerType(str, Enum):
    SCHEDULE = "schedule"
    EMAIL_RECEIVED = "email_received"
    FORM_SUBMITTED = "form_submitted"
    PURCHASE_MADE = "purchase_made"
    # Any declared type outside the catalogue.
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> "TriggerType":
        if not raw:
            return cls.EMAIL_RECEIVED
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


class ActionType(str, Enum):
    SEND_EMAIL = "send_email"
    CREATE_TASK = "create_task"
    SUMMARIZE_TEXT = "summarize_text"
    CLASSIFY_REQUEST = "classify_request"
    GENERATE_REPLY = "generate_reply"
    LOG_EXPENSE = "log_expense"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> "ActionType":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


class Tone(str, Enum):
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    DIRECT = "direct"
    HELPFUL = "helpful"

    @classmethod
    def parse(cls, raw: str | None) -> "Tone":
        try:
            return cls(raw)
        except ValueError:
            return cls.PROFESSIONAL


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AutomationStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"


class StepKind(str, Enum):
    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"


class Feedback(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAG = "flag"


# Tags recorded on a step whenever a default arm replaced the declared value.
FALLBACK_UNKNOWN_ACTION = "unknown_action_type"
FALLBACK_MALFORMED_CONFIG = "malformed_config"
FALLBACK_UNKNOWN_TONE = "unknown_tone"

RUN_STATUS_SUCCESS = "success"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_config(raw: Any) -> tuple[dict[str, Any], bool]:
    """Normalize an action/trigger config.

    Returns ``(config, malformed)``. JSON text is decoded; anything that is
    not a JSON object degrades to an empty mapping with ``malformed=True``.
    """
    if raw is None or raw == "":
        return {}, False
    if isinstance(raw, dict):
        return dict(raw), False
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            return {}, True
        if isinstance(decoded, dict):
            return decoded, False
    return {}, True


@dataclass(frozen=True)
class Trigger:
    type: str
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> TriggerType:
        return TriggerType.parse(self.type)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Trigger":
        data = data or {}
        config, _ = parse_config(data.get("config"))
        return cls(type=str(data.get("type") or TriggerType.EMAIL_RECEIVED.value), config=config)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "config": dict(self.config)}


@dataclass(frozen=True)
class Condition:
    id: str
    field: str
    operator: str
    value: str

    def describe(self) -> str:
        return f"{self.field} {self.operator} {self.value}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Condition":
        return cls(
            id=str(data.get("id", "")),
            field=str(data.get("field", "")),
            operator=str(data.get("operator", "")),
            value=str(data.get("value", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "field": self.field,
            "operator": self.operator,
            "value": self.value,
        }


@dataclass(frozen=True)
class Action:
    id: str
    type: str
    # Either a mapping or raw JSON text typed into the builder.
    config: dict[str, Any] | str = field(default_factory=dict)

    @property
    def kind(self) -> ActionType:
        return ActionType.parse(self.type)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Action":
        config = data.get("config")
        return cls(
            id=str(data.get("id", "")),
            type=str(data.get("type", "")),
            config=config if isinstance(config, (dict, str)) else {},
        )

    def to_dict(self) -> dict[str, Any]:
        config = dict(self.config) if isinstance(self.config, dict) else self.config
        return {"id": self.id, "type": self.type, "config": config}


@dataclass(frozen=True)
class Automation:
    id: str
    name: str
    trigger: Trigger
    conditions: tuple[Condition, ...] = ()
    actions: tuple[Action, ...] = ()
    status: AutomationStatus = AutomationStatus.PAUSED
    created_at: str | None = None
    updated_at: str | None = None
    test_payload: dict[str, Any] | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AutomationStatus.ACTIVE

    def with_status(self, status: AutomationStatus | str) -> "Automation":
        return replace(self, status=AutomationStatus(status))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Automation":
        raw_status = str(data.get("status") or AutomationStatus.PAUSED.value)
        try:
            status = AutomationStatus(raw_status)
        except ValueError:
            status = AutomationStatus.PAUSED
        payload = data.get("testPayload")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or "Untitled automation"),
            trigger=Trigger.from_dict(data.get("trigger")),
            conditions=tuple(Condition.from_dict(c) for c in data.get("conditions") or []),
            actions=tuple(Action.from_dict(a) for a in data.get("actions") or []),
            status=status,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            test_payload=payload if isinstance(payload, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "trigger": self.trigger.to_dict(),
            "conditions": [c.to_dict() for c in self.conditions],
            "actions": [a.to_dict() for a in self.actions],
            "status": self.status.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.test_payload is not None:
            data["testPayload"] = dict(self.test_payload)
        return data


@dataclass(frozen=True)
class Step:
    kind: StepKind
    result: str
    ai_output: Any = None
    action_type: str | None = None
    fallback: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        raw_kind = data.get("step") or data.get("kind") or StepKind.ACTION.value
        return cls(
            kind=StepKind(raw_kind),
            result=str(data.get("result", "")),
            ai_output=data.get("aiOutput"),
            action_type=data.get("actionType"),
            fallback=data.get("fallback"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "step": self.kind.value,
            "result": self.result,
            "aiOutput": self.ai_output,
        }
        if self.action_type is not None:
            data["actionType"] = self.action_type
        if self.fallback is not None:
            data["fallback"] = self.fallback
        return data


@dataclass(frozen=True)
class RunOptions:
    """Settings echoed into one simulated run."""

    tone: Tone = Tone.PROFESSIONAL
    risk_level: str = RiskLevel.LOW.value
    mask_pii: bool = False

    @classmethod
    def from_user_settings(cls, settings: "UserSettings") -> "RunOptions":
        return cls(
            tone=Tone.parse(settings.tone),
            risk_level=settings.risk_level,
            mask_pii=settings.mask_pii_in_logs,
        )


@dataclass(frozen=True)
class SimulationResult:
    status: str
    steps: tuple[Step, ...]
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "stepsExecuted": [s.to_dict() for s in self.steps],
            "durationMs": self.duration_ms,
        }


@dataclass(frozen=True)
class RunRecord:
    run_id: str
    automation_id: str
    automation_name: str
    status: str
    steps: tuple[Step, ...]
    duration_ms: int
    timestamp: str
    feedback: Feedback | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunRecord":
        raw_feedback = data.get("feedback")
        return cls(
            run_id=str(data.get("runId", "")),
            automation_id=str(data.get("automationId", "")),
            automation_name=str(data.get("automationName", "")),
            status=str(data.get("status", RUN_STATUS_SUCCESS)),
            steps=tuple(Step.from_dict(s) for s in data.get("stepsExecuted") or []),
            duration_ms=int(data.get("durationMs") or 0),
            timestamp=str(data.get("timestamp", "")),
            feedback=Feedback(raw_feedback) if raw_feedback else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "runId": self.run_id,
            "automationId": self.automation_id,
            "automationName": self.automation_name,
            "status": self.status,
            "stepsExecuted": [s.to_dict() for s in self.steps],
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp,
        }
        if self.feedback is not None:
            data["feedback"] = self.feedback.value
        return data


@dataclass(frozen=True)
class UserSettings:
    name: str = "Demo User"
    email: str = "demo@example.com"
    notifications: bool = True
    privacy_share_analytics: bool = False
    tone: str = Tone.PROFESSIONAL.value
    risk_level: str = RiskLevel.LOW.value
    mask_pii_in_logs: bool = False
    demo_mode: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], defaults: "UserSettings | None" = None) -> "UserSettings":
        base = defaults or cls()

        def pick(key: str, fallback: Any) -> Any:
            value = data.get(key)
            return fallback if value is None else value

        return cls(
            name=str(pick("name", base.name)),
            email=str(pick("email", base.email)),
            notifications=bool(pick("notifications", base.notifications)),
            privacy_share_analytics=bool(
                pick("privacyShareAnalytics", base.privacy_share_analytics)
            ),
            tone=str(pick("tone", base.tone)),
            risk_level=str(pick("riskLevel", base.risk_level)),
            mask_pii_in_logs=bool(pick("maskPIIInLogs", base.mask_pii_in_logs)),
            demo_mode=bool(pick("demoMode", base.demo_mode)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "notifications": self.notifications,
            "privacyShareAnalytics": self.privacy_share_analytics,
            "tone": self.tone,
            "riskLevel": self.risk_level,
            "maskPIIInLogs": self.mask_pii_in_logs,
            "demoMode": self.demo_mode,
        }
