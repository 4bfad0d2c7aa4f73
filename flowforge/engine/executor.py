from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Callable
import uuid

from flowforge.engine.choice import Chooser, default_chooser
from flowforge.engine.dispatcher import ActionContext, ActionDispatcher, build_default_dispatcher
from flowforge.engine.models import (
    RUN_STATUS_SUCCESS,
    Automation,
    RunOptions,
    RunRecord,
    SimulationResult,
    Step,
    StepKind,
    utc_now_iso,
)
from flowforge.engine.payloads import resolve_text_inputs, trigger_label


logger = logging.getLogger(__name__)


class RunExecutor:
    """Walks trigger, conditions and actions of one automation in order.

    There is no branching: conditions are described, never evaluated, and
    every declared action is dispatched. A run always ends in ``success``.
    """

    def __init__(
        self,
        dispatcher: ActionDispatcher | None = None,
        *,
        chooser: Chooser = default_chooser,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self._dispatcher = dispatcher or build_default_dispatcher()
        self._chooser = chooser
        self._id_factory = id_factory or (lambda: f"run_{uuid.uuid4().hex[:12]}")
        self._clock = clock

    def simulate_run(
        self,
        automation: Automation,
        payload: dict[str, Any] | None,
        options: RunOptions,
        *,
        run_id: str = "-",
    ) -> SimulationResult:
        payload = payload or {}
        trigger_type = automation.trigger.kind
        logger.info(
            "run started",
            extra={
                "event": "run_start",
                "run_id": run_id,
                "automation_id": automation.id,
                "trigger": automation.trigger.type,
            },
        )
        start = perf_counter()

        steps: list[Step] = [
            Step(
                kind=StepKind.TRIGGER,
                result=f"Trigger fired: {trigger_label(trigger_type, payload)}",
            )
        ]

        for condition in automation.conditions:
            steps.append(Step(kind=StepKind.CONDITION, result=condition.describe()))

        inputs = resolve_text_inputs(payload)
        context = ActionContext(
            email_body=inputs.email_body,
            text_for_ai=inputs.text_for_ai,
            tone=options.tone,
            risk_level=options.risk_level,
            mask_enabled=options.mask_pii,
            payload=payload,
            chooser=self._chooser,
            run_id=run_id,
        )
        for action in automation.actions:
            steps.append(self._dispatcher.dispatch(action, context))

        elapsed_ms = int((perf_counter() - start) * 1000)
        logger.info(
            "run finished",
            extra={
                "event": "run_end",
                "run_id": run_id,
                "automation_id": automation.id,
                "status": RUN_STATUS_SUCCESS,
                "step_count": len(steps),
                "latency_ms": elapsed_ms,
            },
        )
        return SimulationResult(
            status=RUN_STATUS_SUCCESS,
            steps=tuple(steps),
            duration_ms=elapsed_ms,
        )

    def execute(
        self,
        automation: Automation,
        payload: dict[str, Any] | None,
        options: RunOptions,
    ) -> RunRecord:
        run_id = self._id_factory()
        result = self.simulate_run(automation, payload, options, run_id=run_id)
        return RunRecord(
            run_id=run_id,
            automation_id=automation.id,
            automation_name=automation.name,
            status=result.status,
            steps=result.steps,
            duration_ms=result.duration_ms,
            timestamp=self._clock(),
        )


def simulate_run(
    automation: Automation,
    payload: dict[str, Any] | None,
    options: RunOptions | None = None,
    *,
    chooser: Chooser = default_chooser,
) -> SimulationResult:
    return RunExecutor(chooser=chooser).simulate_run(automation, payload, options or RunOptions())
