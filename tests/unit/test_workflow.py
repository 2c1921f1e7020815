"""Unit tests for workflow building, trigger binding and execution."""

from __future__ import annotations

import logging
from unittest.mock import Mock

import pytest

from crm_automation.automation.contacts import InMemoryContactStore
from crm_automation.automation.definitions import WorkflowDefinition
from crm_automation.automation.engine import AutomationEngine
from crm_automation.automation.exceptions import (
    ErrorCode,
    StepClassNotFound,
    TriggerNotBound,
    WorkflowStepLimitExceeded,
    WorkflowValidationError,
)
from crm_automation.automation.triggers import TriggerState

PAID = {"id": 1, "data": {"status": "paid"}}
DRAFT = {"id": 1, "data": {"status": "draft"}}


def test_end_to_end_condition_gates_action(
    recording_engine: AutomationEngine, recorder: Mock, make_paid_definition
) -> None:
    recording_engine.build_add_workflow(
        make_paid_definition(true_step="test/recording_action", true_attributes={}),
        init=True,
    )

    result = recording_engine.event_bus.dispatch("transaction_updated", PAID)
    assert result.ok
    recorder.record.assert_called_once_with(PAID)

    recorder.reset_mock()
    result = recording_engine.event_bus.dispatch("transaction_updated", DRAFT)
    assert result.ok
    recorder.record.assert_not_called()


def test_execution_result_reports_path(engine: AutomationEngine, make_paid_definition) -> None:
    workflow = engine.build_add_workflow(make_paid_definition(), init=True)

    paid = workflow.triggers[0].execute_workflow(PAID, correlation_id="evt-1")
    assert paid.workflow_id == "wf-paid"
    assert paid.trigger == "crm/transaction_updated"
    assert paid.correlation_id == "evt-1"
    assert paid.executed_step_ids == ["check_paid", "on_paid"]
    assert paid.steps[0].condition_met is True
    assert paid.steps[1].condition_met is None

    draft = workflow.triggers[0].execute_workflow(DRAFT)
    assert draft.executed_step_ids == ["check_paid"]
    assert draft.steps[0].condition_met is False


def test_missing_field_follows_false_branch(engine: AutomationEngine) -> None:
    definition = {
        "id": "wf-branch",
        "name": "Branching",
        "triggers": ["crm/transaction_updated"],
        "initial_step": "check",
        "steps": {
            "check": {
                "slug": "crm/condition/transaction_field",
                "attributes": {"field": "status", "operator": "is", "value": "paid"},
                "next_step_true": "paid_log",
                "next_step_false": "unpaid_log",
            },
            "paid_log": {"slug": "crm/add_contact_log", "attributes": {"type": "paid"}},
            "unpaid_log": {"slug": "crm/add_contact_log", "attributes": {"type": "unpaid"}},
        },
    }
    workflow = engine.build_add_workflow(definition, init=True)

    result = workflow.triggers[0].execute_workflow({"id": 5, "data": {}})

    assert result.executed_step_ids == ["check", "unpaid_log"]
    assert isinstance(engine.data_access, InMemoryContactStore)
    assert [log.type for log in engine.data_access.get_logs(5)] == ["unpaid"]


def test_actions_chain_to_next_step(engine: AutomationEngine, contacts: InMemoryContactStore) -> None:
    definition = WorkflowDefinition.model_validate(
        {
            "id": "wf-chain",
            "name": "Chain",
            "triggers": ["crm/contact_created"],
            "initial_step": "log",
            "steps": {
                "log": {
                    "slug": "crm/add_contact_log",
                    "attributes": {"type": "welcome"},
                    "next_step": "tag",
                },
                "tag": {
                    "slug": "crm/add_remove_contact_tag",
                    "attributes": {"mode": "append", "tags": ["new"]},
                },
            },
        }
    )
    engine.build_add_workflow(definition, init=True)

    result = engine.event_bus.dispatch("contact_created", {"id": 9})

    assert result.ok
    assert len(contacts.get_logs(9)) == 1
    assert contacts.get_tags(9) == ["new"]


def test_incompatible_trigger_fails_validation(engine: AutomationEngine, make_paid_definition) -> None:
    with pytest.raises(WorkflowValidationError) as exc_info:
        engine.build_add_workflow(make_paid_definition(trigger="crm/contact_updated"))

    assert exc_info.value.code is ErrorCode.WORKFLOW_INVALID
    assert any("does not allow trigger 'crm/contact_updated'" in p for p in exc_info.value.problems)
    assert engine.get_workflows() == []


def test_validation_collects_every_problem(engine: AutomationEngine) -> None:
    definition = {
        "id": "wf-broken",
        "name": "Broken",
        "triggers": ["crm/unknown_trigger"],
        "initial_step": "start",
        "steps": {
            "cond": {
                "slug": "crm/condition/transaction_field",
                "attributes": {"field": "status", "operator": "matches", "value": "x"},
                "next_step": "act",
            },
            "act": {
                "slug": "crm/add_contact_log",
                "attributes": {},
                "next_step_true": "cond",
                "next_step": "ghost",
            },
            "mystery": {"slug": "crm/not_registered"},
        },
    }

    with pytest.raises(WorkflowValidationError) as exc_info:
        engine.build_workflow(definition)

    problems = exc_info.value.problems
    assert "unknown trigger 'crm/unknown_trigger'" in problems
    assert "initial step 'start' is not defined" in problems
    assert "condition 'cond' must use next_step_true/next_step_false" in problems
    assert "condition 'cond' uses invalid operator 'matches'" in problems
    assert "action 'act' cannot use conditional successors" in problems
    assert "step 'act' points to undefined step 'ghost'" in problems
    assert "step 'act' is missing required attribute 'type'" in problems
    assert "step 'mystery' uses unknown step type 'crm/not_registered'" in problems


def test_malformed_definition_is_a_validation_error(engine: AutomationEngine) -> None:
    with pytest.raises(WorkflowValidationError) as exc_info:
        engine.build_workflow({"id": "wf-empty", "name": "No triggers", "triggers": []})

    assert exc_info.value.workflow_id == "wf-empty"
    assert exc_info.value.problems


def test_add_workflow_without_init_leaves_triggers_unbound(
    engine: AutomationEngine, make_paid_definition
) -> None:
    workflow = engine.build_add_workflow(make_paid_definition())

    assert [t.state for t in workflow.triggers] == [TriggerState.UNBOUND]
    assert engine.event_bus.subscribers("transaction_updated") == []
    with pytest.raises(TriggerNotBound):
        workflow.triggers[0].execute_workflow(PAID)

    engine.init_workflows()

    assert [t.state for t in workflow.triggers] == [TriggerState.BOUND]
    assert len(engine.event_bus.subscribers("transaction_updated")) == 1
    assert engine.get_workflow("wf-paid") is workflow


def test_inactive_workflow_is_not_bound(engine: AutomationEngine, make_paid_definition) -> None:
    definition = make_paid_definition()
    definition["active"] = False

    workflow = engine.build_add_workflow(definition, init=True)

    assert not workflow.triggers[0].is_bound
    assert engine.event_bus.subscribers("transaction_updated") == []


def test_reinitializing_subscribes_again(
    recording_engine: AutomationEngine, recorder: Mock, make_paid_definition
) -> None:
    workflow = recording_engine.build_add_workflow(
        make_paid_definition(true_step="test/recording_action", true_attributes={}),
        init=True,
    )
    workflow.init_triggers()

    recording_engine.event_bus.dispatch("transaction_updated", PAID)

    assert recorder.record.call_count == 2


def test_multiple_triggers_bind_to_their_own_events(
    recording_engine: AutomationEngine, recorder: Mock, make_paid_definition
) -> None:
    definition = make_paid_definition(true_step="test/recording_action", true_attributes={})
    definition["triggers"] = ["crm/transaction_updated", "crm/transaction_created"]
    recording_engine.build_add_workflow(definition, init=True)

    recording_engine.event_bus.dispatch("transaction_created", PAID)
    recording_engine.event_bus.dispatch("transaction_updated", PAID)
    recording_engine.event_bus.dispatch("transaction_deleted", PAID)

    assert recorder.record.call_count == 2


def test_step_limit_stops_cycles(engine: AutomationEngine) -> None:
    definition = {
        "id": "wf-loop",
        "name": "Loop",
        "triggers": ["crm/transaction_updated"],
        "initial_step": "check",
        "steps": {
            "check": {
                "slug": "crm/condition/transaction_field",
                "attributes": {"field": "status", "operator": "is", "value": "paid"},
                "next_step_true": "log",
            },
            "log": {
                "slug": "crm/add_contact_log",
                "attributes": {"type": "loop"},
                "next_step": "check",
            },
        },
    }
    workflow = engine.build_add_workflow(definition, init=True)

    with pytest.raises(WorkflowStepLimitExceeded) as exc_info:
        workflow.triggers[0].execute_workflow(PAID)

    assert exc_info.value.limit == engine.max_workflow_steps
    assert exc_info.value.code is ErrorCode.WORKFLOW_STEP_LIMIT_EXCEEDED


def test_failing_workflow_does_not_affect_siblings(
    engine: AutomationEngine, contacts: InMemoryContactStore, make_paid_definition
) -> None:
    failing = make_paid_definition(
        workflow_id="wf-failing",
        true_step="crm/add_remove_contact_tag",
        true_attributes={"mode": "explode", "tags": ["x"]},
    )
    engine.build_add_workflow(failing, init=True)
    engine.build_add_workflow(make_paid_definition(workflow_id="wf-ok"), init=True)

    result = engine.event_bus.dispatch("transaction_updated", PAID)

    assert result.delivered == 1
    assert len(result.errors) == 1
    assert result.errors[0].code is ErrorCode.STEP_ATTRIBUTE_MISSING  # type: ignore[attr-defined]
    assert [r.workflow_id for r in result.results] == ["wf-ok"]  # type: ignore[attr-defined]
    assert len(contacts.get_logs(1)) == 1


def test_collaborator_error_halts_walk(engine: AutomationEngine, make_paid_definition) -> None:
    engine.data_access = Mock()
    engine.data_access.add_contact_log.side_effect = RuntimeError("db down")
    workflow = engine.build_add_workflow(make_paid_definition(), init=True)

    with pytest.raises(RuntimeError, match="db down"):
        workflow.triggers[0].execute_workflow(PAID)

    result = engine.event_bus.dispatch("transaction_updated", PAID)
    assert isinstance(result.errors[0], RuntimeError)
    with pytest.raises(RuntimeError):
        result.raise_for_errors()


def test_steps_are_built_fresh_for_each_run(engine: AutomationEngine, make_paid_definition) -> None:
    workflow = engine.build_add_workflow(make_paid_definition())

    first = workflow.get_step("check_paid")
    second = workflow.get_step("check_paid")

    assert first is not second
    assert first.id == "check_paid"


def test_unknown_definition_keys_are_rejected(engine: AutomationEngine, make_paid_definition) -> None:
    definition = make_paid_definition()
    step = definition["steps"]["check_paid"]
    step["next_step_on_true"] = step.pop("next_step_true")
    definition["owner"] = "sales"

    with pytest.raises(WorkflowValidationError) as exc_info:
        engine.build_add_workflow(definition, init=True)

    problems = exc_info.value.problems
    assert any(p.startswith("steps.check_paid.next_step_on_true:") for p in problems)
    assert any(p.startswith("owner:") for p in problems)
    assert engine.get_workflows() == []


def test_step_build_failure_is_logged_with_context(
    engine: AutomationEngine, make_paid_definition, caplog: pytest.LogCaptureFixture
) -> None:
    workflow = engine.build_add_workflow(make_paid_definition(), init=True)
    engine._steps_map["crm/add_contact_log"] = object()  # type: ignore[assignment]

    with caplog.at_level(logging.ERROR, logger="crm_automation.automation.workflow"):
        with pytest.raises(StepClassNotFound):
            workflow.triggers[0].execute_workflow(PAID)

    failures = [r for r in caplog.records if r.getMessage() == "Workflow step failed"]
    assert len(failures) == 1
    assert failures[0].workflow_id == "wf-paid"
    assert failures[0].step_id == "on_paid"
    assert failures[0].step == "crm/add_contact_log"
    assert failures[0].trigger == "crm/transaction_updated"
