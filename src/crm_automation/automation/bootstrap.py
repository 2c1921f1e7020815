"""Process-start wiring: build the engine and register the built-in types."""

from __future__ import annotations

import logging
from typing import Any

from crm_automation.automation.commons.actions import BUILTIN_ACTIONS
from crm_automation.automation.commons.conditions import BUILTIN_CONDITIONS
from crm_automation.automation.commons.triggers import BUILTIN_TRIGGERS
from crm_automation.automation.contacts import InMemoryContactStore
from crm_automation.automation.definitions import WorkflowDefinitionStore
from crm_automation.automation.engine import AutomationEngine
from crm_automation.automation.events import EventBus
from crm_automation.automation.logger import AutomationLogger
from crm_automation.config import AutomationSettings

logger = logging.getLogger(__name__)


def register_builtin_types(engine: AutomationEngine) -> None:
    for trigger_class in BUILTIN_TRIGGERS:
        engine.register_trigger(trigger_class)
    for step_class in (*BUILTIN_CONDITIONS, *BUILTIN_ACTIONS):
        engine.register_step(step_class)


def create_engine(
    settings: AutomationSettings | None = None,
    *,
    data_access: Any = None,
    event_bus: EventBus | None = None,
    automation_logger: AutomationLogger | None = None,
    register_builtins: bool = True,
) -> AutomationEngine:
    """Build an engine from settings.

    Without an explicit ``data_access`` collaborator the engine gets an
    :class:`InMemoryContactStore`.
    """

    settings = settings or AutomationSettings()
    engine = AutomationEngine(
        event_bus=event_bus,
        data_access=data_access if data_access is not None else InMemoryContactStore(),
        automation_logger=automation_logger,
        max_workflow_steps=settings.max_workflow_steps,
        strict_step_registration=settings.strict_step_registration,
    )
    if register_builtins:
        register_builtin_types(engine)

    logger.info(
        "Automation engine created",
        extra={
            "triggers": len(engine.get_registered_triggers()),
            "steps": len(engine.get_registered_steps()),
            "max_workflow_steps": engine.max_workflow_steps,
        },
    )
    return engine


def load_workflows(
    engine: AutomationEngine,
    store: WorkflowDefinitionStore,
    *,
    init: bool = True,
) -> int:
    """Build and add every stored workflow, then bind triggers in one pass.

    Definitions are all built before any trigger is bound, so a bad
    definition aborts the load with nothing listening. Malformed entries and
    definitions that fail build validation both raise
    :class:`WorkflowValidationError`.
    """

    workflows = [engine.build_workflow(definition) for definition in store.load()]
    for workflow in workflows:
        engine.add_workflow(workflow)
    if init:
        for workflow in workflows:
            workflow.init_triggers()

    logger.info(
        "Workflows loaded",
        extra={"path": str(store.path), "count": len(workflows), "init": init},
    )
    return len(workflows)
