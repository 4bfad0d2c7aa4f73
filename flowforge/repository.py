from __future__ import annotations

from dataclasses import replace
import logging
import secrets
import string
from time import time
from typing import Any, Protocol

from flowforge.engine.catalog import SEED_AUTOMATIONS, find_template, instantiate
from flowforge.engine.executor import RunExecutor
from flowforge.engine.models import (
    RUN_STATUS_SUCCESS,
    Automation,
    AutomationStatus,
    Feedback,
    RunOptions,
    RunRecord,
    Step,
    StepKind,
    UserSettings,
    utc_now_iso,
)


logger = logging.getLogger(__name__)

KEY_PREFIX = "flowforge_"
AUTOMATIONS_KEY = KEY_PREFIX + "automations"
RUNS_KEY = KEY_PREFIX + "runs"
USER_KEY = KEY_PREFIX + "user"
ONBOARDING_DONE_KEY = KEY_PREFIX + "onboarding_done"

DEFAULT_RUN_HISTORY_LIMIT = 500

_ID_ALPHABET = string.ascii_lowercase + string.digits


class Store(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> bool: ...


def new_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"id_{int(time() * 1000)}_{suffix}"


class FlowForgeRepository:
    def __init__(
        self,
        store: Store,
        *,
        run_history_limit: int = DEFAULT_RUN_HISTORY_LIMIT,
        user_defaults: UserSettings | None = None,
    ) -> None:
        if run_history_limit < 1:
            raise ValueError("run_history_limit must be at least 1.")
        self._store = store
        self._run_history_limit = run_history_limit
        self._user_defaults = user_defaults or UserSettings()

    # Automations

    def list_automations(
        self, *, trigger_type: str | None = None, query: str | None = None
    ) -> list[Automation]:
        """Stored automations, optionally narrowed to one trigger type and a name substring."""
        items = [Automation.from_dict(item) for item in self._store.get(AUTOMATIONS_KEY, [])]
        if trigger_type:
            items = [a for a in items if a.trigger.type == trigger_type]
        if query:
            needle = query.lower()
            items = [a for a in items if needle in a.name.lower()]
        return items

    def get_automation(self, automation_id: str) -> Automation | None:
        return next((a for a in self.list_automations() if a.id == automation_id), None)

    def save_automation(self, automation: Automation) -> Automation:
        now = utc_now_iso()
        saved = replace(
            automation,
            created_at=automation.created_at or now,
            updated_at=now,
        )
        items = self.list_automations()
        for index, existing in enumerate(items):
            if existing.id == saved.id:
                items[index] = saved
                break
        else:
            items.append(saved)
        self._write_automations(items)
        return saved

    def delete_automation(self, automation_id: str) -> bool:
        items = self.list_automations()
        remaining = [a for a in items if a.id != automation_id]
        self._write_automations(remaining)
        return len(remaining) != len(items)

    def duplicate_automation(self, automation_id: str) -> Automation | None:
        original = self.get_automation(automation_id)
        if original is None:
            return None
        copy = replace(
            original,
            id=new_id(),
            name=f"{original.name} (copy)",
            conditions=tuple(replace(c, id=new_id()) for c in original.conditions),
            actions=tuple(replace(a, id=new_id()) for a in original.actions),
            created_at=None,
        )
        return self.save_automation(copy)

    def set_automation_status(
        self, automation_id: str, status: AutomationStatus | str
    ) -> Automation | None:
        try:
            resolved = AutomationStatus(status)
        except ValueError as exc:
            raise ValueError(f"Invalid status '{status}': expected active or paused.") from exc
        automation = self.get_automation(automation_id)
        if automation is None:
            return None
        return self.save_automation(automation.with_status(resolved))

    def toggle_automation(self, automation_id: str) -> Automation | None:
        automation = self.get_automation(automation_id)
        if automation is None:
            return None
        target = AutomationStatus.PAUSED if automation.is_active else AutomationStatus.ACTIVE
        return self.save_automation(automation.with_status(target))

    def import_template(self, template_id: str) -> Automation | None:
        template = find_template(template_id)
        if template is None:
            return None
        return self.save_automation(instantiate(template, new_id=new_id))

    def _write_automations(self, items: list[Automation]) -> None:
        self._store.set(AUTOMATIONS_KEY, [a.to_dict() for a in items])

    # Runs

    def list_runs(self) -> list[RunRecord]:
        return [RunRecord.from_dict(item) for item in self._store.get(RUNS_KEY, [])]

    def get_run(self, run_id: str) -> RunRecord | None:
        return next((r for r in self.list_runs() if r.run_id == run_id), None)

    def add_run(self, record: RunRecord) -> RunRecord:
        stored = replace(
            record,
            run_id=record.run_id or new_id(),
            timestamp=record.timestamp or utc_now_iso(),
        )
        items = [stored.to_dict(), *self._store.get(RUNS_KEY, [])]
        evicted = len(items) - self._run_history_limit
        if evicted > 0:
            items = items[: self._run_history_limit]
            logger.info(
                "run history trimmed",
                extra={"event": "runs_evicted", "run_id": stored.run_id, "evicted": evicted},
            )
        self._store.set(RUNS_KEY, items)
        return stored

    def update_run_feedback(self, run_id: str, feedback: Feedback | str) -> RunRecord | None:
        try:
            resolved = Feedback(feedback)
        except ValueError as exc:
            raise ValueError(f"Invalid feedback '{feedback}': expected up, down or flag.") from exc
        items = self.list_runs()
        for index, run in enumerate(items):
            if run.run_id == run_id:
                items[index] = replace(run, feedback=resolved)
                self._store.set(RUNS_KEY, [r.to_dict() for r in items])
                return items[index]
        return None

    def execute_automation(
        self,
        automation: Automation,
        payload: dict[str, Any] | None,
        executor: RunExecutor,
    ) -> RunRecord:
        options = RunOptions.from_user_settings(self.get_user_settings())
        return self.add_run(executor.execute(automation, payload, options))

    # User settings and onboarding

    def get_user_settings(self) -> UserSettings:
        raw = self._store.get(USER_KEY, {})
        if not isinstance(raw, dict):
            raw = {}
        return UserSettings.from_dict(raw, defaults=self._user_defaults)

    def save_user_settings(self, settings: UserSettings) -> UserSettings:
        self._store.set(USER_KEY, settings.to_dict())
        return settings

    def is_onboarding_done(self) -> bool:
        return self._store.get(ONBOARDING_DONE_KEY, False) is True

    def set_onboarding_done(self, done: bool = True) -> None:
        self._store.set(ONBOARDING_DONE_KEY, done)

    # Demo data

    def seed_if_empty(self) -> bool:
        if self.list_automations():
            return False
        now = utc_now_iso()
        meeting, triage = (
            instantiate(t, new_id=new_id, status=AutomationStatus.ACTIVE, timestamp=now)
            for t in SEED_AUTOMATIONS
        )
        self._write_automations([meeting, triage])
        if not self.list_runs():
            self.add_run(
                _sample_run(
                    meeting,
                    duration_ms=420,
                    steps=(
                        Step(kind=StepKind.TRIGGER, result="Schedule fired"),
                        Step(kind=StepKind.CONDITION, result="has_attendees = true"),
                        Step(
                            kind=StepKind.ACTION,
                            result="Email sent",
                            ai_output={"summary": "Meeting summary sent to 3 attendees."},
                        ),
                    ),
                )
            )
            self.add_run(
                _sample_run(
                    triage,
                    duration_ms=890,
                    steps=(
                        Step(kind=StepKind.TRIGGER, result="Email received"),
                        Step(kind=StepKind.CONDITION, result='subject contains "help"'),
                        Step(
                            kind=StepKind.ACTION,
                            result="Classified",
                            ai_output={"classification": "General", "confidence": 0.92},
                        ),
                        Step(
                            kind=StepKind.ACTION,
                            result="Reply generated",
                            ai_output={
                                "preview": "Thank you for reaching out. We will look into this..."
                            },
                        ),
                    ),
                )
            )
        logger.info("demo data seeded", extra={"event": "seed", "status": "ok"})
        return True

    def reset_demo_data(self) -> None:
        self._store.set(AUTOMATIONS_KEY, [])
        self._store.set(RUNS_KEY, [])
        self._store.set(ONBOARDING_DONE_KEY, False)
        self.seed_if_empty()


def _sample_run(automation: Automation, *, duration_ms: int, steps: tuple[Step, ...]) -> RunRecord:
    return RunRecord(
        run_id="",
        automation_id=automation.id,
        automation_name=automation.name,
        status=RUN_STATUS_SUCCESS,
        steps=steps,
        duration_ms=duration_ms,
        timestamp="",
    )

