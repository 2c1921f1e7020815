"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from crm_automation.config import AutomationSettings


def test_settings_defaults() -> None:
    settings = AutomationSettings()

    assert settings.log_level == "INFO"
    assert settings.max_workflow_steps == 100
    assert settings.strict_step_registration is False
    assert settings.workflows_path == Path("workflows.json")
    assert settings.auto_init_workflows is True


def test_settings_loads_from_dotenv(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "LOG_LEVEL=debug",
                "AUTOMATION_MAX_WORKFLOW_STEPS=25",
                "AUTOMATION_STRICT_STEP_REGISTRATION=true",
                "AUTOMATION_WORKFLOWS_PATH=config/workflows.json",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = AutomationSettings()

    assert settings.log_level == "DEBUG"
    assert settings.max_workflow_steps == 25
    assert settings.strict_step_registration is True
    assert settings.workflows_path == Path("config/workflows.json")


def test_settings_reject_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTOMATION_MAX_WORKFLOW_STEPS", "0")
    with pytest.raises(ValidationError):
        AutomationSettings()

    monkeypatch.setenv("AUTOMATION_MAX_WORKFLOW_STEPS", "10")
    monkeypatch.setenv("LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        AutomationSettings()
