"""Stored workflow definitions and a JSON-file backed store for them."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from crm_automation.automation.exceptions import WorkflowValidationError

logger = logging.getLogger(__name__)


class StepDefinition(BaseModel):
    """One node of a stored workflow graph.

    Actions use ``next_step``. Conditions use ``next_step_true`` and
    ``next_step_false``. Any successor may be omitted to end that branch.
    """

    model_config = ConfigDict(extra="forbid")

    slug: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    next_step: str | None = Field(default=None)
    next_step_true: str | None = Field(default=None)
    next_step_false: str | None = Field(default=None)


class WorkflowDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    description: str = Field(default="")
    active: bool = Field(default=True)
    triggers: list[str] = Field(min_length=1)
    initial_step: str
    steps: dict[str, StepDefinition] = Field(default_factory=dict)

    def step_data(self, step_id: str) -> dict[str, Any]:
        """Configuration handed to a step factory for ``step_id``."""
        step = self.steps[step_id]
        return {"id": step_id, **step.model_dump(exclude={"slug"})}


def coerce_definition(definition: WorkflowDefinition | Mapping[str, Any]) -> WorkflowDefinition:
    """Validate a raw stored definition, reporting every schema problem at once."""

    if isinstance(definition, WorkflowDefinition):
        return definition
    if not isinstance(definition, Mapping):
        raise WorkflowValidationError(
            "<unknown>", [f"definition must be an object, got {type(definition).__name__}"]
        )
    try:
        return WorkflowDefinition.model_validate(dict(definition))
    except ValidationError as e:
        workflow_id = str(definition.get("id", "<unknown>"))
        problems = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise WorkflowValidationError(workflow_id, problems) from e


class WorkflowDefinitionStore:
    """JSON-file backed store for workflow definitions."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load_entries(self) -> list[Any]:
        """Raw entries of the definitions file, not yet validated."""

        if not self._path.exists():
            return []

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Workflow definitions file is not valid JSON; treating as empty",
                extra={"path": str(self._path)},
            )
            return []

        if raw is None:
            return []

        if not isinstance(raw, list):
            logger.warning(
                "Workflow definitions file has unexpected shape; treating as empty",
                extra={"path": str(self._path)},
            )
            return []

        return raw

    def load(self) -> list[WorkflowDefinition]:
        """Validate every stored entry.

        Raises :class:`WorkflowValidationError` for the first malformed entry.
        """
        return [coerce_definition(entry) for entry in self.load_entries()]

    def save(self, definitions: list[WorkflowDefinition]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [d.model_dump(mode="json", exclude_none=True) for d in definitions]
        self._path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def find_by_id(self, workflow_id: str) -> WorkflowDefinition | None:
        for definition in self.load():
            if definition.id == workflow_id:
                return definition
        return None
