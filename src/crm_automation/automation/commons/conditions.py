"""Built-in field conditions for transactions and contacts."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from crm_automation.automation.exceptions import UnimplementedOperatorError
from crm_automation.automation.steps import Condition


def _strict_equals(left: Any, right: Any) -> bool:
    # 1 == True and 1 == 1.0 in Python; field comparisons must also match on type.
    return type(left) is type(right) and left == right


class FieldCondition(Condition):
    """Compares one field of ``payload["data"]`` against a configured value.

    Attributes:
        field: key inside ``payload["data"]`` to read.
        operator: one of :attr:`valid_operators`.
        value: value to compare against.

    A payload without an ``id``, a ``data`` mapping or the configured field is
    not an error: the mismatch is logged and the condition is not met.
    """

    valid_operators: ClassVar[tuple[str, ...]] = (
        "is",
        "is_not",
        "contains",
        "does_not_contain",
    )
    required_attributes: ClassVar[tuple[str, ...]] = ("field", "operator", "value")

    # Used in trace messages, e.g. "transaction".
    subject: ClassVar[str] = "record"

    def execute(self, payload: Mapping[str, Any]) -> None:
        field = self.require_attribute("field")
        operator = self.require_attribute("operator")
        value = self.require_attribute("value")

        if not self.is_valid_data(payload, field):
            self.logger.log(
                f"Invalid {self.subject} field condition data",
                dict(payload) if isinstance(payload, Mapping) else {"payload": payload},
            )
            self.condition_met = False
            return

        self.check_for_valid_operator(operator)
        actual = payload["data"][field]
        self.logger.log(f"Condition: {field} {operator} {value} => {actual}")

        self.condition_met = self.evaluate(operator, actual, value)
        self.logger.log(f"Condition met?: {'true' if self.condition_met else 'false'}")

    def evaluate(self, operator: str, actual: Any, expected: Any) -> bool:
        if operator == "is":
            return _strict_equals(actual, expected)
        if operator == "is_not":
            return not _strict_equals(actual, expected)
        if operator == "contains":
            return str(expected) in str(actual)
        if operator == "does_not_contain":
            return str(expected) not in str(actual)
        raise UnimplementedOperatorError(operator)

    @staticmethod
    def is_valid_data(payload: Mapping[str, Any], field: str) -> bool:
        if not isinstance(payload, Mapping) or payload.get("id") is None:
            return False
        data = payload.get("data")
        return isinstance(data, Mapping) and data.get(field) is not None


class TransactionField(FieldCondition):
    slug = "crm/condition/transaction_field"
    title = "Transaction Field"
    description = "Checks if a transaction field matches an expected value"
    category = "transaction"
    subject = "transaction"
    allowed_triggers = frozenset(
        {
            "crm/transaction_status_updated",
            "crm/transaction_updated",
            "crm/transaction_created",
        }
    )


class ContactField(FieldCondition):
    slug = "crm/condition/contact_field"
    title = "Contact Field"
    description = "Checks if a contact field matches an expected value"
    category = "contact"
    subject = "contact"
    allowed_triggers = frozenset({"crm/contact_created", "crm/contact_updated"})


BUILTIN_CONDITIONS: tuple[type[Condition], ...] = (TransactionField, ContactField)
