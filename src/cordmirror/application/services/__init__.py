"""Application services."""

from cordmirror.application.services.event_application import EventApplicationService

__all__ = ["EventApplicationService"]
