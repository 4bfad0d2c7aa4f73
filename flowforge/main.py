from __future__ import annotations

from argparse import ArgumentParser, Namespace
from dataclasses import replace
import json
import sys
from typing import Any

from flowforge.config import Settings, load_settings
from flowforge.engine.catalog import get_templates
from flowforge.engine.choice import default_chooser, seeded_chooser
from flowforge.engine.executor import RunExecutor
from flowforge.engine.generators import suggest_next_step
from flowforge.engine.insights import dashboard_insights, dashboard_metrics, executive_summary
from flowforge.engine.models import Automation, RiskLevel, Tone
from flowforge.engine.payloads import sample_payload
from flowforge.engine.reports import client_summary_text, export_automation_json, run_report_text
from flowforge.logging_utils import configure_logging
from flowforge.repository import FlowForgeRepository
from flowforge.state_store import KeyValueStore


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="FlowForge automation simulator.")
    parser.add_argument("--db", dest="db_path", default=None, help="Override FLOWFORGE_DB_PATH.")
    parser.add_argument("--json", action="store_true", dest="as_json")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("seed", help="Create demo automations when none exist.")
    subparsers.add_parser("reset", help="Wipe automations and runs, then reseed.")
    list_cmd = subparsers.add_parser("list", help="List automations.")
    list_cmd.add_argument(
        "--trigger", dest="trigger_type", default=None, help="Only this trigger type."
    )
    list_cmd.add_argument("--query", default=None, help="Case-insensitive name filter.")
    subparsers.add_parser("templates", help="List importable templates.")

    import_cmd = subparsers.add_parser("import", help="Import a template as a paused automation.")
    import_cmd.add_argument("template_id")

    for name, help_text in (
        ("toggle", "Switch an automation between active and paused."),
        ("duplicate", "Copy an automation with fresh ids."),
        ("delete", "Delete an automation."),
        ("export", "Print an automation as JSON."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("automation_id")

    run = subparsers.add_parser("run", help="Simulate an automation and record the run.")
    run.add_argument("automation_id")
    run.add_argument("--payload", default=None, help="Test payload as a JSON object.")
    run.add_argument("--seed", type=int, default=None, help="Seed generator choices.")

    runs = subparsers.add_parser("runs", help="Show run history, newest first.")
    runs.add_argument("--limit", type=int, default=10)

    feedback = subparsers.add_parser("feedback", help="Rate a run.")
    feedback.add_argument("run_id")
    feedback.add_argument("value", choices=["up", "down", "flag"])

    report = subparsers.add_parser("report", help="Print a run report.")
    report.add_argument("run_id")

    subparsers.add_parser("insights", help="Dashboard insight cards.")
    subparsers.add_parser("metrics", help="Dashboard metrics.")
    subparsers.add_parser("summary", help="Executive summary.")
    subparsers.add_parser("client-summary", help="Client summary with key metrics.")

    suggest = subparsers.add_parser("suggest", help="Suggest the next builder step.")
    suggest.add_argument("trigger_type")
    suggest.add_argument("--automation", dest="automation_id", default=None)
    suggest.add_argument("--seed", type=int, default=None)

    settings_cmd = subparsers.add_parser("settings", help="Show or update user settings.")
    settings_cmd.add_argument("--tone", choices=[t.value for t in Tone])
    settings_cmd.add_argument("--risk-level", choices=[r.value for r in RiskLevel])
    settings_cmd.add_argument("--mask-pii", dest="mask_pii", action="store_true", default=None)
    settings_cmd.add_argument("--no-mask-pii", dest="mask_pii", action="store_false")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings()
        if args.db_path:
            settings = replace(settings, state_db_path=args.db_path)
        configure_logging(settings.log_level, mask_pii=True, stream=sys.stderr)
        store = KeyValueStore(settings.state_db_path)
    except Exception as exc:
        return _print_error_and_exit(exc, as_json=args.as_json)

    try:
        repository = FlowForgeRepository(
            store,
            run_history_limit=settings.run_history_limit,
            user_defaults=settings.user_defaults(),
        )
        if settings.seed_demo_data and args.command not in {"reset", "seed"}:
            repository.seed_if_empty()
        return _dispatch(args, repository, settings)
    except Exception as exc:
        return _print_error_and_exit(exc, as_json=args.as_json)
    finally:
        store.close()


def _dispatch(args: Namespace, repository: FlowForgeRepository, settings: Settings) -> int:
    command = args.command

    if command == "seed":
        created = repository.seed_if_empty()
        return _emit(args, {"seeded": created}, "Demo data created." if created else "Nothing to do.")

    if command == "reset":
        repository.reset_demo_data()
        return _emit(args, {"reset": True}, "Demo data reset.")

    if command == "list":
        automations = repository.list_automations(
            trigger_type=args.trigger_type, query=args.query
        )
        lines = [
            f"{a.id} | {a.status.value} | {a.trigger.type} | {a.name}" for a in automations
        ]
        return _emit(args, {"automations": [a.to_dict() for a in automations]}, "\n".join(lines))

    if command == "templates":
        templates = get_templates()
        lines = [f"{t.id} | {t.name}: {t.description}" for t in templates]
        return _emit(args, {"templates": [t.to_dict() for t in templates]}, "\n".join(lines))

    if command == "import":
        automation = repository.import_template(args.template_id)
        if automation is None:
            raise LookupError(f"template not found: {args.template_id}")
        return _emit_automation(args, automation, "Imported")

    if command in {"toggle", "duplicate", "delete", "export"}:
        return _automation_command(args, repository)

    if command == "run":
        automation = _require_automation(repository, args.automation_id)
        payload = _parse_payload(args.payload) if args.payload else None
        if payload is None:
            payload = automation.test_payload or sample_payload(automation.trigger.kind)
        chooser = seeded_chooser(args.seed) if args.seed is not None else default_chooser
        record = repository.execute_automation(automation, payload, RunExecutor(chooser=chooser))
        return _emit(args, record.to_dict(), run_report_text(record))

    if command == "runs":
        runs = repository.list_runs()[: max(1, args.limit)]
        lines = [
            f"{r.timestamp} | {r.status} | {r.automation_name} | {r.duration_ms} ms | "
            f"{r.run_id} | feedback={r.feedback.value if r.feedback else '-'}"
            for r in runs
        ]
        return _emit(args, {"runs": [r.to_dict() for r in runs]}, "\n".join(lines))

    if command == "feedback":
        record = repository.update_run_feedback(args.run_id, args.value)
        if record is None:
            raise LookupError(f"run not found: {args.run_id}")
        return _emit(args, record.to_dict(), "Feedback recorded.")

    if command == "report":
        record = repository.get_run(args.run_id)
        if record is None:
            raise LookupError(f"run not found: {args.run_id}")
        return _emit(args, record.to_dict(), run_report_text(record))

    automations = repository.list_automations()
    runs = repository.list_runs()
    user = repository.get_user_settings()

    if command == "insights":
        insights = dashboard_insights(automations, runs)
        lines = [f"[{i.type}] {i.title}: {i.text}" for i in insights]
        return _emit(args, {"insights": [i.to_dict() for i in insights]}, "\n".join(lines))

    if command == "metrics":
        metrics = dashboard_metrics(automations, runs, tz=settings.report_tzinfo())
        payload = metrics.to_dict()
        lines = [f"{key}: {value}" for key, value in payload.items()]
        return _emit(args, payload, "\n".join(lines))

    if command == "summary":
        text = executive_summary(automations, runs, user)
        return _emit(args, {"summary": text}, text)

    if command == "client-summary":
        text = client_summary_text(automations, runs, user)
        return _emit(args, {"summary": text}, text)

    if command == "suggest":
        conditions: tuple[Any, ...] = ()
        actions: tuple[Any, ...] = ()
        if args.automation_id:
            automation = _require_automation(repository, args.automation_id)
            conditions, actions = automation.conditions, automation.actions
        chooser = seeded_chooser(args.seed) if args.seed is not None else default_chooser
        suggestion = suggest_next_step(args.trigger_type, conditions, actions, chooser=chooser)
        return _emit(args, suggestion.to_dict(), f"{suggestion.type}: {suggestion.label}")

    if command == "settings":
        updates: dict[str, Any] = {}
        if args.tone:
            updates["tone"] = args.tone
        if args.risk_level:
            updates["risk_level"] = args.risk_level
        if args.mask_pii is not None:
            updates["mask_pii_in_logs"] = args.mask_pii
        if updates:
            user = repository.save_user_settings(replace(user, **updates))
        payload = user.to_dict()
        lines = [f"{key}: {value}" for key, value in payload.items()]
        return _emit(args, payload, "\n".join(lines))

    raise ValueError(f"invalid command: {command}")


def _automation_command(args: Namespace, repository: FlowForgeRepository) -> int:
    if args.command == "toggle":
        automation = repository.toggle_automation(args.automation_id)
        if automation is None:
            raise LookupError(f"automation not found: {args.automation_id}")
        return _emit_automation(args, automation, f"Now {automation.status.value}")
    if args.command == "duplicate":
        automation = repository.duplicate_automation(args.automation_id)
        if automation is None:
            raise LookupError(f"automation not found: {args.automation_id}")
        return _emit_automation(args, automation, "Created")
    if args.command == "delete":
        deleted = repository.delete_automation(args.automation_id)
        if not deleted:
            raise LookupError(f"automation not found: {args.automation_id}")
        return _emit(args, {"deleted": args.automation_id}, "Deleted.")
    automation = _require_automation(repository, args.automation_id)
    text = export_automation_json(automation)
    print(text)
    return 0


def _require_automation(repository: FlowForgeRepository, automation_id: str) -> Automation:
    automation = repository.get_automation(automation_id)
    if automation is None:
        raise LookupError(f"automation not found: {automation_id}")
    return automation


def _parse_payload(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid --payload: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Invalid --payload: expected a JSON object.")
    return payload


def _emit_automation(args: Namespace, automation: Automation, verb: str) -> int:
    return _emit(args, automation.to_dict(), f"{verb}: {automation.id} ({automation.name})")


def _emit(args: Namespace, payload: Any, text: str) -> int:
    if args.as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(text)
    return 0


def _print_error_and_exit(exc: Exception | str, *, as_json: bool) -> int:
    message = str(exc)
    if as_json:
        print(json.dumps({"ok": False, "error": message}, ensure_ascii=False))
    else:
        print(f"ERROR: {message}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
