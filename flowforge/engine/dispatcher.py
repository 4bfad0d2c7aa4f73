from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable

from flowforge.engine.choice import Chooser, default_chooser
from flowforge.engine.generators import classify_request, generate_reply, summarize_text
from flowforge.engine.models import (
    FALLBACK_MALFORMED_CONFIG,
    FALLBACK_UNKNOWN_ACTION,
    FALLBACK_UNKNOWN_TONE,
    Action,
    ActionType,
    Step,
    StepKind,
    Tone,
    parse_config,
)
from flowforge.redaction import mask_deep


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionContext:
    email_body: str
    text_for_ai: str
    tone: Tone = Tone.PROFESSIONAL
    risk_level: str = "low"
    mask_enabled: bool = False
    payload: dict[str, Any] = field(default_factory=dict)
    chooser: Chooser = default_chooser
    run_id: str = "-"


ActionHandler = Callable[[dict[str, Any], ActionContext], Any]


def _classify(config: dict[str, Any], context: ActionContext) -> Any:
    del config
    return classify_request(context.text_for_ai, chooser=context.chooser)


def _reply(config: dict[str, Any], context: ActionContext) -> Any:
    tone = Tone.parse(config.get("tone")) if config.get("tone") else context.tone
    return generate_reply(context.email_body, tone=tone, chooser=context.chooser)


def _summarize(config: dict[str, Any], context: ActionContext) -> Any:
    del config
    return summarize_text(context.text_for_ai, chooser=context.chooser)


def _send_email(config: dict[str, Any], context: ActionContext) -> Any:
    del context
    return {
        "sent": True,
        "to": config.get("to") or "recipient",
        "template": config.get("template") or "default",
    }


def _create_task(config: dict[str, Any], context: ActionContext) -> Any:
    del context
    return {
        "created": True,
        "title": config.get("title") or "Task",
        "priority": config.get("priority") or "medium",
    }


def _log_expense(config: dict[str, Any], context: ActionContext) -> Any:
    payload = context.payload
    return {
        "logged": True,
        "category": config.get("category") or "general",
        "amount": payload.get("amount", config.get("amount")),
        "vendor": payload.get("vendor", config.get("vendor")),
    }


def step_result_text(action_type: str) -> str:
    return f"{action_type.replace('_', ' ')} completed"


class ActionDispatcher:
    def __init__(self) -> None:
        self._handlers: dict[ActionType, ActionHandler] = {}

    def register(self, action_type: ActionType, handler: ActionHandler) -> None:
        self._handlers[action_type] = handler

    def handler_for(self, action_type: ActionType) -> ActionHandler | None:
        return self._handlers.get(action_type)

    def dispatch(self, action: Action, context: ActionContext) -> Step:
        config, malformed = parse_config(action.config)
        fallback: str | None = FALLBACK_MALFORMED_CONFIG if malformed else None
        if config.get("tone") and Tone.parse(config["tone"]).value != config["tone"]:
            fallback = fallback or FALLBACK_UNKNOWN_TONE

        handler = self.handler_for(action.kind)
        if handler is None:
            ai_output = None
            fallback = FALLBACK_UNKNOWN_ACTION
        else:
            ai_output = handler(config, context)

        if context.mask_enabled and ai_output is not None:
            ai_output = mask_deep(ai_output)

        if fallback is not None:
            logger.warning(
                "action dispatched with fallback",
                extra={
                    "event": "action_fallback",
                    "run_id": context.run_id,
                    "action_type": action.type,
                    "fallback": fallback,
                },
            )
        return Step(
            kind=StepKind.ACTION,
            result=step_result_text(action.type),
            ai_output=ai_output,
            action_type=action.type,
            fallback=fallback,
        )


def build_default_dispatcher() -> ActionDispatcher:
    dispatcher = ActionDispatcher()
    dispatcher.register(ActionType.CLASSIFY_REQUEST, _classify)
    dispatcher.register(ActionType.GENERATE_REPLY, _reply)
    dispatcher.register(ActionType.SUMMARIZE_TEXT, _summarize)
    dispatcher.register(ActionType.SEND_EMAIL, _send_email)
    dispatcher.register(ActionType.CREATE_TASK, _create_task)
    dispatcher.register(ActionType.LOG_EXPENSE, _log_expense)
    return dispatcher
