"""Typed errors raised by the automation engine.

Every error carries a stable :class:`ErrorCode` so callers (CLI, HTTP ingress,
host applications) can branch on the kind without matching on message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    TRIGGER_CLASS_NOT_FOUND = "trigger_class_not_found"
    TRIGGER_INTERFACE_MISSING = "trigger_interface_missing"
    TRIGGER_SLUG_EMPTY = "trigger_slug_empty"
    TRIGGER_SLUG_EXISTS = "trigger_slug_exists"
    TRIGGER_NOT_FOUND = "trigger_not_found"
    TRIGGER_NOT_BOUND = "trigger_not_bound"

    STEP_CLASS_NOT_FOUND = "step_class_not_found"
    STEP_INTERFACE_MISSING = "step_interface_missing"
    STEP_SLUG_EMPTY = "step_slug_empty"
    STEP_SLUG_EXISTS = "step_slug_exists"
    STEP_NOT_FOUND = "step_not_found"
    STEP_CLASS_MISSING = "step_class_missing"
    STEP_ATTRIBUTE_MISSING = "step_attribute_missing"

    CONDITION_INVALID_OPERATOR = "condition_invalid_operator"
    CONDITION_OPERATOR_NOT_IMPLEMENTED = "condition_operator_not_implemented"

    WORKFLOW_INVALID = "workflow_invalid"
    WORKFLOW_STEP_LIMIT_EXCEEDED = "workflow_step_limit_exceeded"


class AutomationError(Exception):
    """Base class for every error raised by the automation engine."""

    code: ErrorCode

    def __init__(self, message: str, code: ErrorCode) -> None:
        super().__init__(message)
        self.code = code


# Registration-time errors.


class TriggerNotFound(AutomationError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Trigger class {identifier} does not exist", ErrorCode.TRIGGER_CLASS_NOT_FOUND
        )


class TriggerInterfaceMissing(AutomationError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Trigger class {identifier} does not implement the Trigger interface",
            ErrorCode.TRIGGER_INTERFACE_MISSING,
        )


class StepNotFound(AutomationError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"Step class {identifier} does not exist", ErrorCode.STEP_CLASS_NOT_FOUND)


class StepInterfaceMissing(AutomationError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Step class {identifier} does not implement the Step interface",
            ErrorCode.STEP_INTERFACE_MISSING,
        )


class SlugEmpty(AutomationError):
    """Raised when a trigger or step class declares a blank slug."""


class SlugExists(AutomationError):
    """Raised when a slug is already taken in the target registry."""

    def __init__(self, slug: str, code: ErrorCode) -> None:
        super().__init__(f"Slug already exists: {slug}", code)
        self.slug = slug


# Lookup errors.


class NotFound(AutomationError):
    """Raised when a slug is absent from the trigger or step registry."""

    def __init__(self, slug: str, code: ErrorCode) -> None:
        kind = "Trigger" if code is ErrorCode.TRIGGER_NOT_FOUND else "Step"
        super().__init__(f"{kind} {slug} does not exist", code)
        self.slug = slug


class StepClassNotFound(AutomationError):
    """Raised when a registered step factory is no longer usable at instantiation time."""

    def __init__(self, slug: str) -> None:
        super().__init__(
            f"Step class registered for {slug} does not exist", ErrorCode.STEP_CLASS_MISSING
        )
        self.slug = slug


# Execution-time errors.


class InvalidOperatorError(AutomationError):
    def __init__(self, operator: str) -> None:
        super().__init__(f"Invalid operator: {operator}", ErrorCode.CONDITION_INVALID_OPERATOR)
        self.operator = operator


class UnimplementedOperatorError(AutomationError):
    """Raised when an operator is declared valid but no branch evaluates it."""

    def __init__(self, operator: str) -> None:
        super().__init__(
            f"Valid but unimplemented operator: {operator}",
            ErrorCode.CONDITION_OPERATOR_NOT_IMPLEMENTED,
        )
        self.operator = operator


class StepAttributeError(AutomationError):
    def __init__(
        self, slug: str, attribute: str, reason: str = "is missing required attribute"
    ) -> None:
        super().__init__(
            f"Step {slug} {reason}: {attribute}",
            ErrorCode.STEP_ATTRIBUTE_MISSING,
        )
        self.slug = slug
        self.attribute = attribute


class TriggerNotBound(AutomationError):
    def __init__(self, slug: str) -> None:
        super().__init__(
            f"Trigger {slug} is not bound to a workflow", ErrorCode.TRIGGER_NOT_BOUND
        )


class WorkflowValidationError(AutomationError):
    """Raised when a workflow definition cannot be built.

    All problems found during the build are collected in :attr:`problems`.
    """

    def __init__(self, workflow_id: str, problems: list[str]) -> None:
        joined = "; ".join(problems)
        super().__init__(f"Workflow {workflow_id} is invalid: {joined}", ErrorCode.WORKFLOW_INVALID)
        self.workflow_id = workflow_id
        self.problems = problems


class WorkflowStepLimitExceeded(AutomationError):
    def __init__(self, workflow_id: str, limit: int) -> None:
        super().__init__(
            f"Workflow {workflow_id} exceeded the step limit of {limit}",
            ErrorCode.WORKFLOW_STEP_LIMIT_EXCEEDED,
        )
        self.workflow_id = workflow_id
        self.limit = limit
