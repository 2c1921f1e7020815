"""Trigger capability: binds one external event to a workflow's entry point."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from crm_automation.automation.events import EventBus, Subscription
from crm_automation.automation.exceptions import TriggerNotBound

if TYPE_CHECKING:
    from crm_automation.automation.workflow import ExecutionResult, Workflow

logger = logging.getLogger(__name__)


class TriggerState(str, Enum):
    UNBOUND = "unbound"
    BOUND = "bound"


class Trigger:
    """Listens for one event and starts workflow execution with its payload.

    Triggers are instantiated per workflow. Subclasses set :attr:`slug` and
    :attr:`event`; override :meth:`listen_to_event` only when binding needs
    more than a plain bus subscription.
    """

    slug: ClassVar[str] = ""
    title: ClassVar[str] = ""
    description: ClassVar[str] = ""
    category: ClassVar[str] = ""

    # Name of the bus event this trigger listens to.
    event: ClassVar[str] = ""

    def __init__(self) -> None:
        self.workflow: Workflow | None = None
        self.state = TriggerState.UNBOUND
        self.subscriptions: list[Subscription] = []

    @classmethod
    def describe(cls) -> dict[str, object]:
        return {
            "slug": cls.slug,
            "title": cls.title,
            "description": cls.description,
            "category": cls.category,
            "event": cls.event,
        }

    @property
    def is_bound(self) -> bool:
        return self.state is TriggerState.BOUND

    def init(self, workflow: Workflow, bus: EventBus) -> None:
        """Bind to ``workflow`` and start listening on ``bus``.

        Calling this again subscribes again; each subscription fires the
        workflow independently.
        """
        self.workflow = workflow
        self.listen_to_event(bus)
        self.state = TriggerState.BOUND
        logger.info(
            "Trigger bound",
            extra={
                "trigger": self.slug,
                "event": self.event,
                "workflow_id": workflow.id,
                "subscriptions": len(self.subscriptions),
            },
        )

    def listen_to_event(self, bus: EventBus) -> None:
        self.subscriptions.append(bus.subscribe(self.event, self.execute_workflow))

    def execute_workflow(
        self, payload: Mapping[str, Any], correlation_id: str | None = None
    ) -> ExecutionResult:
        if self.workflow is None or not self.is_bound:
            raise TriggerNotBound(self.slug)
        return self.workflow.execute(self, payload, correlation_id=correlation_id)
