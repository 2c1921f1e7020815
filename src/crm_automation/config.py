"""Configuration for the automation engine.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Pydantic-settings supports overriding the env file in tests via
`AutomationSettings(_env_file=path_to_env)`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AutomationSettings(BaseSettings):
    """Settings for the automation engine, CLI and event ingress server.

    Environment variables:
    - LOG_LEVEL                               (optional)
    - AUTOMATION_MAX_WORKFLOW_STEPS           (optional)
    - AUTOMATION_STRICT_STEP_REGISTRATION     (optional)
    - AUTOMATION_WORKFLOWS_PATH               (optional)
    - AUTOMATION_AUTO_INIT_WORKFLOWS          (optional)
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    max_workflow_steps: int = Field(
        default=100,
        ge=1,
        validation_alias="AUTOMATION_MAX_WORKFLOW_STEPS",
        description="Maximum number of steps a single workflow execution may run",
    )

    strict_step_registration: bool = Field(
        default=False,
        validation_alias="AUTOMATION_STRICT_STEP_REGISTRATION",
        description=(
            "Reject duplicate step slugs at registration time. "
            "When false, a later registration replaces the earlier one."
        ),
    )

    workflows_path: Path = Field(
        default=Path("workflows.json"),
        validation_alias="AUTOMATION_WORKFLOWS_PATH",
        description="JSON file holding stored workflow definitions",
    )

    auto_init_workflows: bool = Field(
        default=True,
        validation_alias="AUTOMATION_AUTO_INIT_WORKFLOWS",
        description="Bind triggers of loaded workflows as soon as they are added",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown log level: {value}")
        return level
