"""Automation engine: type registries, step/trigger factories and active workflows.

One engine is built at process start (see
:func:`crm_automation.automation.bootstrap.create_engine`) and handed to every
component that needs type resolution or the trace logger. Registration happens
during bootstrap; afterwards the registries are read-mostly.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import threading
from collections.abc import Mapping
from typing import Any

from crm_automation.automation.definitions import WorkflowDefinition
from crm_automation.automation.events import EventBus
from crm_automation.automation.exceptions import (
    ErrorCode,
    NotFound,
    SlugEmpty,
    SlugExists,
    StepClassNotFound,
    StepInterfaceMissing,
    StepNotFound,
    TriggerInterfaceMissing,
    TriggerNotFound,
)
from crm_automation.automation.logger import AutomationLogger
from crm_automation.automation.steps import Step
from crm_automation.automation.triggers import Trigger
from crm_automation.automation.workflow import Workflow

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKFLOW_STEPS = 100


def _resolve(identifier: type | str) -> object | None:
    """Resolve a class object or ``"pkg.module:Name"`` / ``"pkg.module.Name"`` path."""

    if not isinstance(identifier, str):
        return identifier

    path = identifier.strip()
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        return None

    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    return getattr(module, attr, None)


def _implements(obj: object, capability: type) -> bool:
    return inspect.isclass(obj) and issubclass(obj, capability) and not inspect.isabstract(obj)


def _name(identifier: type | str) -> str:
    if isinstance(identifier, str):
        return identifier
    return getattr(identifier, "__qualname__", repr(identifier))


class AutomationEngine:
    """Registry and factory for triggers and steps, and owner of active workflows."""

    def __init__(
        self,
        *,
        event_bus: EventBus | None = None,
        data_access: Any = None,
        automation_logger: AutomationLogger | None = None,
        max_workflow_steps: int = DEFAULT_MAX_WORKFLOW_STEPS,
        strict_step_registration: bool = False,
    ) -> None:
        if max_workflow_steps < 1:
            raise ValueError("max_workflow_steps must be at least 1")

        self.event_bus = event_bus or EventBus()
        self.data_access = data_access
        self.max_workflow_steps = max_workflow_steps
        self.strict_step_registration = strict_step_registration

        self._automation_logger = automation_logger
        self._lock = threading.RLock()
        self._triggers_map: dict[str, type[Trigger]] = {}
        self._steps_map: dict[str, type[Step]] = {}
        self._workflows: list[Workflow] = []

    # Logger and collaborators

    def set_logger(self, automation_logger: AutomationLogger) -> None:
        self._automation_logger = automation_logger

    def get_logger(self) -> AutomationLogger:
        return self._automation_logger or AutomationLogger.instance()

    def get_data_access(self) -> Any:
        if self.data_access is None:
            raise RuntimeError("No data access collaborator is configured on the engine")
        return self.data_access

    # Registration

    def register_trigger(self, identifier: type[Trigger] | str) -> str:
        """Register a trigger class and return its slug."""

        trigger_class = _resolve(identifier)
        if trigger_class is None:
            raise TriggerNotFound(_name(identifier))
        if not _implements(trigger_class, Trigger):
            raise TriggerInterfaceMissing(_name(identifier))

        slug = (trigger_class.slug or "").strip()  # type: ignore[attr-defined]
        if not slug:
            raise SlugEmpty("The trigger must have a non-empty slug", ErrorCode.TRIGGER_SLUG_EMPTY)

        with self._lock:
            if slug in self._triggers_map:
                raise SlugExists(slug, ErrorCode.TRIGGER_SLUG_EXISTS)
            self._triggers_map[slug] = trigger_class  # type: ignore[assignment]

        logger.debug("Trigger registered", extra={"slug": slug})
        return slug

    def register_step(self, identifier: type[Step] | str) -> str:
        """Register a step class and return its slug.

        A duplicate slug replaces the existing entry unless the engine was
        built with ``strict_step_registration``.
        """

        step_class = _resolve(identifier)
        if step_class is None:
            raise StepNotFound(_name(identifier))
        if not _implements(step_class, Step):
            raise StepInterfaceMissing(_name(identifier))

        slug = (step_class.slug or "").strip()  # type: ignore[attr-defined]
        if not slug:
            raise SlugEmpty("The step must have a non-empty slug", ErrorCode.STEP_SLUG_EMPTY)

        with self._lock:
            existing = self._steps_map.get(slug)
            if existing is not None and existing is not step_class:
                if self.strict_step_registration:
                    raise SlugExists(slug, ErrorCode.STEP_SLUG_EXISTS)
                logger.warning(
                    "Step slug already registered; replacing",
                    extra={
                        "slug": slug,
                        "previous": existing.__qualname__,
                        "replacement": step_class.__qualname__,  # type: ignore[attr-defined]
                    },
                )
            self._steps_map[slug] = step_class  # type: ignore[assignment]

        logger.debug("Step registered", extra={"slug": slug})
        return slug

    # Lookups and factories

    def get_trigger_class(self, slug: str) -> type[Trigger]:
        with self._lock:
            trigger_class = self._triggers_map.get(slug)
        if trigger_class is None:
            raise NotFound(slug, ErrorCode.TRIGGER_NOT_FOUND)
        return trigger_class

    def get_step_class(self, slug: str) -> type[Step]:
        with self._lock:
            step_class = self._steps_map.get(slug)
        if step_class is None:
            raise NotFound(slug, ErrorCode.STEP_NOT_FOUND)
        return step_class

    def get_registered_triggers(self) -> dict[str, type[Trigger]]:
        with self._lock:
            return dict(self._triggers_map)

    def get_registered_steps(self) -> dict[str, type[Step]]:
        with self._lock:
            return dict(self._steps_map)

    def create_trigger(self, slug: str) -> Trigger:
        return self.get_trigger_class(slug)()

    def get_registered_step(
        self, slug: str, step_data: Mapping[str, Any] | None = None
    ) -> Step:
        """Build a new instance of the step registered under ``slug``."""

        step_class = self.get_step_class(slug)
        # The registry may have been mutated into an unusable state since registration.
        if not _implements(step_class, Step):
            raise StepClassNotFound(slug)
        return step_class(step_data or {}, context=self)

    # Workflows

    def add_workflow(self, workflow: Workflow, init: bool = False) -> Workflow:
        with self._lock:
            self._workflows.append(workflow)
        logger.info(
            "Workflow added",
            extra={"workflow_id": workflow.id, "triggers": workflow.trigger_slugs, "init": init},
        )
        if init:
            workflow.init_triggers()
        return workflow

    def build_workflow(self, definition: WorkflowDefinition | Mapping[str, Any]) -> Workflow:
        return Workflow(definition, self)

    def build_add_workflow(
        self, definition: WorkflowDefinition | Mapping[str, Any], init: bool = False
    ) -> Workflow:
        return self.add_workflow(self.build_workflow(definition), init=init)

    def init_workflows(self) -> None:
        for workflow in self.get_workflows():
            workflow.init_triggers()

    def get_workflows(self) -> list[Workflow]:
        with self._lock:
            return list(self._workflows)

    def get_workflow(self, workflow_id: str) -> Workflow | None:
        for workflow in self.get_workflows():
            if workflow.id == workflow_id:
                return workflow
        return None
