"""Automation simulation engine: generators, dispatch, execution and insights."""

from flowforge.engine.dispatcher import ActionDispatcher, build_default_dispatcher
from flowforge.engine.executor import RunExecutor, simulate_run
from flowforge.engine.insights import dashboard_insights, dashboard_metrics, executive_summary
from flowforge.engine.models import (
    Action,
    Automation,
    Condition,
    RunOptions,
    RunRecord,
    Step,
    Trigger,
    UserSettings,
)

__all__ = [
    "Action",
    "ActionDispatcher",
    "Automation",
    "Condition",
    "RunExecutor",
    "RunOptions",
    "RunRecord",
    "Step",
    "Trigger",
    "UserSettings",
    "build_default_dispatcher",
    "dashboard_insights",
    "dashboard_metrics",
    "executive_summary",
    "simulate_run",
]
