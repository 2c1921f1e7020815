"""CLI entrypoint for inspecting, validating and exercising stored workflows."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from crm_automation import __version__
from crm_automation.automation.bootstrap import create_engine, load_workflows
from crm_automation.automation.definitions import WorkflowDefinitionStore
from crm_automation.automation.exceptions import AutomationError, WorkflowValidationError
from crm_automation.automation.workflow import ExecutionResult
from crm_automation.config import AutomationSettings
from crm_automation.logging import configure_logging

logger = logging.getLogger(__name__)


def _parse_payload(value: str) -> dict[str, object]:
    try:
        payload = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"payload is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise argparse.ArgumentTypeError("payload must be a JSON object")
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crm-automation",
        description="Rule-based CRM workflow automation engine",
    )
    parser.add_argument("--version", action="version", version=f"crm-automation {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-types", help="List registered trigger and step types")

    validate = subparsers.add_parser("validate", help="Build every stored workflow definition")
    validate.add_argument(
        "--workflows",
        default=None,
        help="Path to the workflow definitions JSON file (defaults to AUTOMATION_WORKFLOWS_PATH)",
    )

    fire = subparsers.add_parser(
        "fire",
        help="Load stored workflows, then dispatch one event through the event bus",
    )
    fire.add_argument("event", help="Event name, e.g. 'transaction_updated'")
    fire.add_argument(
        "--payload",
        type=_parse_payload,
        default={},
        help='Event payload as a JSON object, e.g. \'{"id": 1, "data": {"status": "paid"}}\'',
    )
    fire.add_argument("--correlation-id", default=None, help="Optional correlating identifier")
    fire.add_argument(
        "--workflows",
        default=None,
        help="Path to the workflow definitions JSON file (defaults to AUTOMATION_WORKFLOWS_PATH)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = AutomationSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    engine = create_engine(settings)

    if args.command == "list-types":
        for slug, trigger_class in sorted(engine.get_registered_triggers().items()):
            print(f"{'trigger':<9} {slug}  (event: {trigger_class.event})")
        for slug, step_class in sorted(engine.get_registered_steps().items()):
            print(f"{step_class.type or 'step':<9} {slug}")
        return 0

    path = Path(args.workflows) if args.workflows else settings.workflows_path
    store = WorkflowDefinitionStore(path)

    if args.command == "validate":
        failures = 0
        entries = store.load_entries()
        for entry in entries:
            try:
                workflow = engine.build_workflow(entry)
            except WorkflowValidationError as e:
                failures += 1
                print(f"INVALID {e.workflow_id}: {e}", file=sys.stderr)
            else:
                print(f"OK      {workflow.id}")
        print(f"{len(entries) - failures}/{len(entries)} workflow(s) valid")
        return 1 if failures else 0

    if args.command == "fire":
        try:
            load_workflows(engine, store, init=True)
        except AutomationError as e:
            print(f"Failed to load workflows: {e}", file=sys.stderr)
            return 1

        result = engine.event_bus.dispatch(args.event, args.payload, args.correlation_id)
        for item in result.results:
            if isinstance(item, ExecutionResult):
                path_taken = " -> ".join(item.executed_step_ids) or "(no steps)"
                print(f"{item.workflow_id} [{item.trigger}]: {path_taken}")
        for error in result.errors:
            print(f"ERROR: {error}", file=sys.stderr)
        if not result.delivered and not result.errors:
            print(f"No workflow listens to {args.event!r}")
        return 1 if result.errors else 0

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
