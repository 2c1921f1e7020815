"""CRM automation engine.

Rule-based workflows for a customer-management application:
- triggers bind external domain events to workflows
- conditions branch on the event payload
- actions perform side effects against contact records
"""

__version__ = "0.1.0"

from crm_automation.config import AutomationSettings

__all__ = ["__version__", "AutomationSettings"]
