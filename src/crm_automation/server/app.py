"""FastAPI app factory.

Endpoints are intentionally thin wrappers over the automation engine.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from crm_automation import __version__
from crm_automation.automation.bootstrap import create_engine, load_workflows
from crm_automation.automation.definitions import WorkflowDefinitionStore
from crm_automation.automation.engine import AutomationEngine
from crm_automation.automation.exceptions import AutomationError
from crm_automation.automation.workflow import ExecutionResult
from crm_automation.config import AutomationSettings
from crm_automation.server.models import (
    ApiError,
    ApiExecution,
    ApiStep,
    ApiTrigger,
    ApiWorkflow,
    EventRequest,
    EventResponse,
)

logger = logging.getLogger(__name__)


def _to_api_error(error: Exception) -> ApiError:
    if isinstance(error, AutomationError):
        return ApiError(code=error.code.value, message=str(error))
    return ApiError(code=None, message=str(error))


def create_app(
    engine: AutomationEngine | None = None,
    settings: AutomationSettings | None = None,
) -> FastAPI:
    """Build the app.

    Without an explicit ``engine`` one is created from settings and the stored
    workflow definitions are loaded from ``settings.workflows_path``; an invalid
    stored definition raises :class:`WorkflowValidationError` and no app is built.
    """

    settings = settings or AutomationSettings()
    if engine is None:
        engine = create_engine(settings)
        load_workflows(
            engine,
            WorkflowDefinitionStore(settings.workflows_path),
            init=settings.auto_init_workflows,
        )

    app = FastAPI(
        title="CRM Automation",
        version=__version__,
        description="Event ingress and introspection for the CRM automation engine.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings
    app.state.engine = engine

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/v1/triggers", response_model=list[ApiTrigger])
    def list_triggers() -> list[ApiTrigger]:
        return [
            ApiTrigger.model_validate(trigger_class.describe())
            for _, trigger_class in sorted(engine.get_registered_triggers().items())
        ]

    @app.get("/api/v1/steps", response_model=list[ApiStep])
    def list_steps() -> list[ApiStep]:
        return [
            ApiStep.model_validate(step_class.describe())
            for _, step_class in sorted(engine.get_registered_steps().items())
        ]

    @app.get("/api/v1/workflows", response_model=list[ApiWorkflow])
    def list_workflows() -> list[ApiWorkflow]:
        return [
            ApiWorkflow(
                id=workflow.id,
                name=workflow.name,
                active=workflow.active,
                triggers=workflow.trigger_slugs,
                bound=any(trigger.is_bound for trigger in workflow.triggers),
            )
            for workflow in engine.get_workflows()
        ]

    @app.post("/api/v1/events/{event}", response_model=EventResponse)
    def dispatch_event(event: str, req: EventRequest) -> EventResponse:
        if not event.strip():
            raise HTTPException(status_code=400, detail="Event name is required")

        result = engine.event_bus.dispatch(event, req.payload, req.correlation_id)
        executions = [
            ApiExecution(
                workflow_id=item.workflow_id,
                trigger=item.trigger,
                steps=item.executed_step_ids,
            )
            for item in result.results
            if isinstance(item, ExecutionResult)
        ]
        return EventResponse(
            event=event,
            delivered=result.delivered,
            executions=executions,
            errors=[_to_api_error(error) for error in result.errors],
        )

    return app
