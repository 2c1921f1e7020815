"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from crm_automation.automation.bootstrap import register_builtin_types
from crm_automation.automation.contacts import InMemoryContactStore
from crm_automation.automation.engine import AutomationEngine
from crm_automation.automation.logger import AutomationLogger
from crm_automation.automation.steps import Action

_SETTINGS_ENV_VARS = (
    "LOG_LEVEL",
    "AUTOMATION_MAX_WORKFLOW_STEPS",
    "AUTOMATION_STRICT_STEP_REGISTRATION",
    "AUTOMATION_WORKFLOWS_PATH",
    "AUTOMATION_AUTO_INIT_WORKFLOWS",
)


class RecordingAction(Action):
    """Test action that forwards every payload to ``data_access.record``."""

    slug = "test/recording_action"
    title = "Recording Action"
    description = "Records each call on the engine's data access collaborator"
    type = "test"

    def execute(self, payload: Mapping[str, Any]) -> None:
        self.data_access.record(payload)


@pytest.fixture(autouse=True)
def isolated_settings_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep settings independent of the developer's environment and `.env`."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def automation_logger() -> AutomationLogger:
    return AutomationLogger()


@pytest.fixture
def contacts() -> InMemoryContactStore:
    return InMemoryContactStore()


@pytest.fixture
def engine(automation_logger: AutomationLogger, contacts: InMemoryContactStore) -> AutomationEngine:
    """An engine with the built-in types registered and an in-memory contact store."""
    engine = AutomationEngine(
        data_access=contacts,
        automation_logger=automation_logger,
        max_workflow_steps=20,
    )
    register_builtin_types(engine)
    return engine


@pytest.fixture
def recorder() -> Mock:
    return Mock()


@pytest.fixture
def recording_engine(automation_logger: AutomationLogger, recorder: Mock) -> AutomationEngine:
    """An engine whose data access collaborator is a mock, with RecordingAction registered."""
    engine = AutomationEngine(
        data_access=recorder,
        automation_logger=automation_logger,
        max_workflow_steps=20,
    )
    register_builtin_types(engine)
    engine.register_step(RecordingAction)
    return engine


def paid_workflow_definition(
    *,
    workflow_id: str = "wf-paid",
    trigger: str = "crm/transaction_updated",
    true_step: str = "crm/add_contact_log",
    true_attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Condition ``status is paid`` whose true branch runs one action."""
    return {
        "id": workflow_id,
        "name": "Paid transactions",
        "triggers": [trigger],
        "initial_step": "check_paid",
        "steps": {
            "check_paid": {
                "slug": "crm/condition/transaction_field",
                "attributes": {"field": "status", "operator": "is", "value": "paid"},
                "next_step_true": "on_paid",
            },
            "on_paid": {
                "slug": true_step,
                "attributes": true_attributes
                if true_attributes is not None
                else {"type": "note", "short_description": "Transaction paid"},
            },
        },
    }


@pytest.fixture
def make_paid_definition():
    return paid_workflow_definition
