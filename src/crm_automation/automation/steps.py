"""Step capability shared by conditions and actions.

A step is one node in a workflow graph. There are exactly two variants:

- :class:`Condition` evaluates the payload and routes to one of two successors.
- :class:`Action` performs a side effect and routes to its single successor.

Concrete steps declare their identity metadata as class attributes so the
engine can read them at registration time without building an instance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Protocol

from crm_automation.automation.exceptions import InvalidOperatorError, StepAttributeError
from crm_automation.automation.logger import AutomationLogger


class StepContext(Protocol):
    """What a step may look up from the engine that built it."""

    def get_logger(self) -> AutomationLogger: ...

    def get_data_access(self) -> Any: ...


class Step(ABC):
    """Base capability for every workflow step."""

    slug: ClassVar[str] = ""
    title: ClassVar[str] = ""
    description: ClassVar[str] = ""
    type: ClassVar[str] = ""
    category: ClassVar[str] = ""

    # Trigger slugs this step may be attached to. Empty means unrestricted.
    allowed_triggers: ClassVar[frozenset[str]] = frozenset()

    # Attribute keys a workflow definition must provide for this step.
    required_attributes: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        step_data: Mapping[str, Any] | None = None,
        *,
        context: StepContext | None = None,
    ) -> None:
        data = dict(step_data or {})
        self.id: str | None = data.get("id")
        self.attributes: dict[str, Any] = dict(data.get("attributes") or {})
        self.context = context

    @property
    def logger(self) -> AutomationLogger:
        if self.context is not None:
            return self.context.get_logger()
        return AutomationLogger.instance()

    @classmethod
    def allows_trigger(cls, trigger_slug: str) -> bool:
        return not cls.allowed_triggers or trigger_slug in cls.allowed_triggers

    @classmethod
    def describe(cls) -> dict[str, object]:
        return {
            "slug": cls.slug,
            "title": cls.title,
            "description": cls.description,
            "type": cls.type,
            "category": cls.category,
            "allowed_triggers": sorted(cls.allowed_triggers),
        }

    def require_attribute(self, name: str) -> Any:
        if name not in self.attributes:
            raise StepAttributeError(self.slug, name)
        return self.attributes[name]

    @abstractmethod
    def execute(self, payload: Mapping[str, Any]) -> None:
        """Run the step against an event payload."""

    @abstractmethod
    def next_step_id(self) -> str | None:
        """Id of the step to run after this one, or None to stop."""


class Condition(Step):
    """A step that evaluates an operator and branches on the outcome.

    After :meth:`execute`, :attr:`condition_met` holds the result and
    :meth:`next_step_id` follows the matching branch.
    """

    type: ClassVar[str] = "condition"
    category: ClassVar[str] = "conditions"

    valid_operators: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        step_data: Mapping[str, Any] | None = None,
        *,
        context: StepContext | None = None,
    ) -> None:
        super().__init__(step_data, context=context)
        data = dict(step_data or {})
        self.condition_met = False
        self.next_step_on_true: str | None = data.get("next_step_true")
        self.next_step_on_false: str | None = data.get("next_step_false")

    def is_met(self) -> bool:
        return self.condition_met

    def check_for_valid_operator(self, operator: str) -> None:
        if operator not in self.valid_operators:
            raise InvalidOperatorError(operator)

    def next_step_id(self) -> str | None:
        return self.next_step_on_true if self.condition_met else self.next_step_on_false


class Action(Step):
    """A step that performs one side effect.

    Actions have no branching outcome. Errors from the data-access collaborator
    are not caught here.
    """

    category: ClassVar[str] = "actions"

    def __init__(
        self,
        step_data: Mapping[str, Any] | None = None,
        *,
        context: StepContext | None = None,
    ) -> None:
        super().__init__(step_data, context=context)
        data = dict(step_data or {})
        self.next_step: str | None = data.get("next_step")

    @property
    def data_access(self) -> Any:
        if self.context is None:
            raise RuntimeError(f"Action {self.slug} has no engine context")
        return self.context.get_data_access()

    def next_step_id(self) -> str | None:
        return self.next_step
