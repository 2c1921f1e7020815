"""Workflow graph: validated at build time, walked once per trigger firing."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from crm_automation.automation.definitions import (
    StepDefinition,
    WorkflowDefinition,
    coerce_definition,
)
from crm_automation.automation.exceptions import (
    NotFound,
    WorkflowStepLimitExceeded,
    WorkflowValidationError,
)
from crm_automation.automation.steps import Action, Condition, Step
from crm_automation.automation.triggers import Trigger

if TYPE_CHECKING:
    from crm_automation.automation.engine import AutomationEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StepOutcome:
    step_id: str
    slug: str
    # None for actions.
    condition_met: bool | None = None


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    workflow_id: str
    trigger: str
    correlation_id: str | None = None
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def executed_step_ids(self) -> list[str]:
        return [outcome.step_id for outcome in self.steps]


class Workflow:
    """A graph of steps reachable from one or more triggers.

    Building a workflow validates the whole definition against the engine's
    registries; nothing is subscribed until :meth:`init_triggers` runs.
    """

    def __init__(
        self,
        definition: WorkflowDefinition | Mapping[str, Any],
        engine: AutomationEngine,
    ) -> None:
        self.engine = engine
        self.definition = coerce_definition(definition)
        self.id = self.definition.id
        self.name = self.definition.name
        self.active = self.definition.active
        self.initial_step = self.definition.initial_step

        self._validate()
        self.triggers: list[Trigger] = [
            engine.create_trigger(slug) for slug in self.definition.triggers
        ]

    @property
    def trigger_slugs(self) -> list[str]:
        return list(self.definition.triggers)

    def init_triggers(self) -> None:
        if not self.active:
            logger.info("Skipping trigger init for inactive workflow", extra={"workflow_id": self.id})
            return
        for trigger in self.triggers:
            trigger.init(self, self.engine.event_bus)

    def get_step(self, step_id: str) -> Step:
        """Build a fresh instance of the step stored under ``step_id``."""
        step_def = self.definition.steps[step_id]
        return self.engine.get_registered_step(step_def.slug, self.definition.step_data(step_id))

    def execute(
        self,
        trigger: Trigger,
        payload: Mapping[str, Any],
        correlation_id: str | None = None,
    ) -> ExecutionResult:
        """Walk the step graph from the initial step with ``payload``.

        Conditions route on their outcome; actions advance to their single
        successor. The walk stops when the next reference is empty. Errors
        raised by a step are logged and propagate unchanged.
        """

        limit = self.engine.max_workflow_steps
        outcomes: list[StepOutcome] = []
        context = {
            "workflow_id": self.id,
            "trigger": trigger.slug,
            "correlation_id": correlation_id,
        }
        logger.info("Workflow execution started", extra=context)

        step_id: str | None = self.initial_step
        while step_id is not None:
            if len(outcomes) >= limit:
                logger.error("Workflow exceeded step limit", extra={**context, "limit": limit})
                raise WorkflowStepLimitExceeded(self.id, limit)

            try:
                step = self.get_step(step_id)
                step.execute(payload)
            except Exception:
                logger.exception(
                    "Workflow step failed",
                    extra={
                        **context,
                        "step_id": step_id,
                        "step": self.definition.steps[step_id].slug,
                    },
                )
                raise

            if isinstance(step, Condition):
                outcomes.append(
                    StepOutcome(step_id=step_id, slug=step.slug, condition_met=step.is_met())
                )
            else:
                outcomes.append(StepOutcome(step_id=step_id, slug=step.slug))
            step_id = step.next_step_id()

        logger.info("Workflow execution finished", extra={**context, "steps": len(outcomes)})
        return ExecutionResult(
            workflow_id=self.id,
            trigger=trigger.slug,
            correlation_id=correlation_id,
            steps=outcomes,
        )

    def _validate(self) -> None:
        problems: list[str] = []
        definition = self.definition

        for slug in definition.triggers:
            try:
                self.engine.get_trigger_class(slug)
            except NotFound:
                problems.append(f"unknown trigger {slug!r}")

        if definition.initial_step not in definition.steps:
            problems.append(f"initial step {definition.initial_step!r} is not defined")

        for step_id, step_def in definition.steps.items():
            try:
                step_class = self.engine.get_step_class(step_def.slug)
            except NotFound:
                problems.append(f"step {step_id!r} uses unknown step type {step_def.slug!r}")
                continue
            problems.extend(_step_problems(step_id, step_def, step_class, definition))

        if problems:
            logger.warning(
                "Workflow definition rejected",
                extra={"workflow_id": definition.id, "problems": problems},
            )
            raise WorkflowValidationError(definition.id, problems)

def _step_problems(
    step_id: str,
    step_def: StepDefinition,
    step_class: type[Step],
    definition: WorkflowDefinition,
) -> list[str]:
    problems: list[str] = []

    if issubclass(step_class, Action):
        if step_def.next_step_true is not None or step_def.next_step_false is not None:
            problems.append(f"action {step_id!r} cannot use conditional successors")
        successors = [step_def.next_step]
    elif issubclass(step_class, Condition):
        if step_def.next_step is not None:
            problems.append(f"condition {step_id!r} must use next_step_true/next_step_false")
        successors = [step_def.next_step_true, step_def.next_step_false]
        operator = step_def.attributes.get("operator")
        if operator is not None and operator not in step_class.valid_operators:
            problems.append(f"condition {step_id!r} uses invalid operator {operator!r}")
    else:
        successors = []

    for successor in successors:
        if successor is not None and successor not in definition.steps:
            problems.append(f"step {step_id!r} points to undefined step {successor!r}")

    for attribute in step_class.required_attributes:
        if attribute not in step_def.attributes:
            problems.append(f"step {step_id!r} is missing required attribute {attribute!r}")

    for trigger_slug in definition.triggers:
        if not step_class.allows_trigger(trigger_slug):
            problems.append(
                f"step {step_id!r} ({step_class.slug}) does not allow trigger {trigger_slug!r}"
            )

    return problems
