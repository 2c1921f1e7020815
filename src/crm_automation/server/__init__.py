"""FastAPI adapter exposing an event ingress over the automation engine.

Design intent:
- Keep business logic in `crm_automation.automation.*`
- Keep server-specific concerns (routing, request/response shapes) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from crm_automation.server.app import create_app
