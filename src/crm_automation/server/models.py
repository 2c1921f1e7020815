"""Pydantic models for the REST server."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ApiTrigger(BaseModel):
    slug: str
    title: str
    description: str
    category: str
    event: str


class ApiStep(BaseModel):
    slug: str
    title: str
    description: str
    type: str
    category: str
    allowed_triggers: list[str] = Field(default_factory=list)


class ApiWorkflow(BaseModel):
    id: str
    name: str
    active: bool
    triggers: list[str]
    bound: bool


class EventRequest(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict)
    correlation_id: str | None = None


class ApiExecution(BaseModel):
    workflow_id: str
    trigger: str
    steps: list[str]


class ApiError(BaseModel):
    code: str | None = None
    message: str


class EventResponse(BaseModel):
    event: str
    delivered: int
    executions: list[ApiExecution] = Field(default_factory=list)
    errors: list[ApiError] = Field(default_factory=list)
