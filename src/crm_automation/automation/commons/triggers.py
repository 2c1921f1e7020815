"""Built-in transaction and contact triggers."""

from __future__ import annotations

from crm_automation.automation.triggers import Trigger


class TransactionCreated(Trigger):
    slug = "crm/transaction_created"
    title = "Transaction Created"
    description = "Triggered when a transaction is created"
    category = "transaction"
    event = "transaction_created"


class TransactionUpdated(Trigger):
    slug = "crm/transaction_updated"
    title = "Transaction Updated"
    description = "Triggered when a transaction is updated"
    category = "transaction"
    event = "transaction_updated"


class TransactionStatusUpdated(Trigger):
    slug = "crm/transaction_status_updated"
    title = "Transaction Status Updated"
    description = "Triggered when the status of a transaction changes"
    category = "transaction"
    event = "transaction_status_updated"


class TransactionDeleted(Trigger):
    slug = "crm/transaction_deleted"
    title = "Transaction Deleted"
    description = "Triggered when a transaction is deleted"
    category = "transaction"
    event = "transaction_deleted"


class ContactCreated(Trigger):
    slug = "crm/contact_created"
    title = "Contact Created"
    description = "Triggered when a contact is created"
    category = "contact"
    event = "contact_created"


class ContactUpdated(Trigger):
    slug = "crm/contact_updated"
    title = "Contact Updated"
    description = "Triggered when a contact is updated"
    category = "contact"
    event = "contact_updated"


class ContactDeleted(Trigger):
    slug = "crm/contact_deleted"
    title = "Contact Deleted"
    description = "Triggered when a contact is deleted"
    category = "contact"
    event = "contact_deleted"


BUILTIN_TRIGGERS: tuple[type[Trigger], ...] = (
    TransactionCreated,
    TransactionUpdated,
    TransactionStatusUpdated,
    TransactionDeleted,
    ContactCreated,
    ContactUpdated,
    ContactDeleted,
)
