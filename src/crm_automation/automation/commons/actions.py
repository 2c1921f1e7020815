"""Built-in contact actions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, get_args

from crm_automation.automation.contacts import ContactLog, ContactsDataAccess, TagMode
from crm_automation.automation.exceptions import StepAttributeError
from crm_automation.automation.steps import Action


class ContactAction(Action):
    """Base for actions whose subject is a single contact.

    The contact id comes from the ``contact_id`` attribute when configured,
    otherwise from the payload's ``id``.
    """

    type: ClassVar[str] = "contacts"

    def contact_id(self, payload: Mapping[str, Any]) -> int | str:
        contact_id = self.attributes.get("contact_id")
        if contact_id is None and isinstance(payload, Mapping):
            contact_id = payload.get("id")
        if contact_id is None:
            raise StepAttributeError(self.slug, "contact_id")
        return contact_id

    @property
    def contacts(self) -> ContactsDataAccess:
        return self.data_access


class AddContactLog(ContactAction):
    slug = "crm/add_contact_log"
    title = "Add Contact Log Action"
    description = "Action to add a log to a contact"
    required_attributes = ("type",)

    def execute(self, payload: Mapping[str, Any]) -> None:
        contact_id = self.contact_id(payload)
        log = ContactLog(
            type=self.require_attribute("type"),
            short_description=self.attributes.get("short_description", ""),
            long_description=self.attributes.get("long_description", ""),
        )
        self.logger.log(f"Adding log to contact {contact_id}", {"type": log.type})
        self.contacts.add_contact_log(contact_id, log)


class AddRemoveContactTag(ContactAction):
    slug = "crm/add_remove_contact_tag"
    title = "Add / Remove Contact Tag Action"
    description = "Action to add or remove the contact tag"
    required_attributes = ("mode", "tags")

    def execute(self, payload: Mapping[str, Any]) -> None:
        contact_id = self.contact_id(payload)
        mode = self.require_attribute("mode")
        if mode not in get_args(TagMode):
            raise StepAttributeError(self.slug, "mode", "has an invalid value for attribute")

        tags = self.require_attribute("tags")
        if isinstance(tags, str):
            tags = [tags]

        self.logger.log(
            f"Updating tags on contact {contact_id}", {"mode": mode, "tags": list(tags)}
        )
        self.contacts.update_contact_tags(contact_id, list(tags), mode)


BUILTIN_ACTIONS: tuple[type[Action], ...] = (AddContactLog, AddRemoveContactTag)
