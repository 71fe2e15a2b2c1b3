"""Delta ingestion infrastructure."""

from cordmirror.infrastructure.events.loop import DeltaLoop
from cordmirror.infrastructure.events.queue import DeltaQueue

__all__ = ["DeltaLoop", "DeltaQueue"]
