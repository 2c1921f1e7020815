#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the automation components directly:

* load settings from `.env`
* build an engine with the built-in triggers and steps
* add a workflow that tags contacts whose transaction was paid
* dispatch a `transaction_updated` event and inspect the result
"""

from __future__ import annotations

import argparse
from typing import Sequence

from crm_automation.automation.bootstrap import create_engine
from crm_automation.automation.contacts import InMemoryContactStore
from crm_automation.automation.exceptions import WorkflowValidationError
from crm_automation.config import AutomationSettings
from crm_automation.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a paid-transaction workflow (programmatic example).")
    parser.add_argument("--contact-id", type=int, default=1, help="Contact the transaction belongs to")
    parser.add_argument("--status", default="paid", help='Transaction status, e.g. "paid" or "draft"')
    parser.add_argument(
        "--tags",
        default="customer,paid",
        help='Comma-separated tags to add when the transaction is paid',
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    tags = [tag.strip() for tag in args.tags.split(",") if tag.strip()]

    settings = AutomationSettings()
    configure_logging(settings.log_level)

    contacts = InMemoryContactStore()
    engine = create_engine(settings, data_access=contacts)

    definition = {
        "id": "tag-paid-customers",
        "name": "Tag paid customers",
        "triggers": ["crm/transaction_updated", "crm/transaction_created"],
        "initial_step": "is_paid",
        "steps": {
            "is_paid": {
                "slug": "crm/condition/transaction_field",
                "attributes": {"field": "status", "operator": "is", "value": "paid"},
                "next_step_true": "tag",
            },
            "tag": {
                "slug": "crm/add_remove_contact_tag",
                "attributes": {"mode": "append", "tags": tags},
                "next_step": "note",
            },
            "note": {
                "slug": "crm/add_contact_log",
                "attributes": {"type": "note", "short_description": "Transaction paid"},
            },
        },
    }

    try:
        engine.build_add_workflow(definition, init=True)
    except WorkflowValidationError as exc:
        print(str(exc))
        return 1

    result = engine.event_bus.dispatch(
        "transaction_updated",
        {"id": args.contact_id, "data": {"status": args.status}},
    )
    result.raise_for_errors()

    for execution in result.results:
        print(f"{execution.workflow_id}: {' -> '.join(execution.executed_step_ids)}")
    print(f"Tags: {contacts.get_tags(args.contact_id)}")
    print(f"Logs: {[log.short_description for log in contacts.get_logs(args.contact_id)]}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
