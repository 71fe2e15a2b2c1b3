"""Gateway payload conversion."""

from cordmirror.infrastructure.gateway.payload_adapter import GatewayPayloadAdapter

__all__ = ["GatewayPayloadAdapter"]
