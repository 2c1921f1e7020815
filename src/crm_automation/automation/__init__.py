"""Trigger/step registry and workflow execution model.

Plugin authors subclass :class:`Trigger`, :class:`Condition` or
:class:`Action`, give the class a unique ``slug``, and register it on the
engine during bootstrap, before any workflow is built.
"""

from crm_automation.automation.bootstrap import (
    create_engine,
    load_workflows,
    register_builtin_types,
)
from crm_automation.automation.definitions import (
    StepDefinition,
    WorkflowDefinition,
    WorkflowDefinitionStore,
)
from crm_automation.automation.engine import AutomationEngine
from crm_automation.automation.events import DispatchResult, EventBus
from crm_automation.automation.exceptions import AutomationError, ErrorCode
from crm_automation.automation.logger import AutomationLogger
from crm_automation.automation.steps import Action, Condition, Step
from crm_automation.automation.triggers import Trigger, TriggerState
from crm_automation.automation.workflow import ExecutionResult, StepOutcome, Workflow

__all__ = [
    "Action",
    "AutomationEngine",
    "AutomationError",
    "AutomationLogger",
    "Condition",
    "DispatchResult",
    "ErrorCode",
    "EventBus",
    "ExecutionResult",
    "Step",
    "StepDefinition",
    "StepOutcome",
    "Trigger",
    "TriggerState",
    "Workflow",
    "WorkflowDefinition",
    "WorkflowDefinitionStore",
    "create_engine",
    "load_workflows",
    "register_builtin_types",
]
