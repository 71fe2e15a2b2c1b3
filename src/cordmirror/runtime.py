"""Runtime wiring.

Builds the cache registry, the event application service, the gateway
adapter and the ingestion loop from a :class:`~cordmirror.config.Config`.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from cordmirror.application.services import EventApplicationService
from cordmirror.config import Config, configure_logging, load_config
from cordmirror.infrastructure.cache import MessageCacheRegistry
from cordmirror.infrastructure.cache.channel_message_cache import Clock
from cordmirror.infrastructure.events import DeltaLoop, DeltaQueue
from cordmirror.infrastructure.gateway import GatewayPayloadAdapter

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Wired set of collaborators.

    Attributes:
        config: The configuration the runtime was built from.
        caches: Registry of channel caches.
        service: Event application layer.
        adapter: Gateway payload adapter.
        queue: Delta queue fed by the transport.
        loop: Ingestion loop applying queued deltas.
    """

    config: Config
    caches: MessageCacheRegistry
    service: EventApplicationService
    adapter: GatewayPayloadAdapter
    queue: DeltaQueue
    loop: DeltaLoop


def build_runtime(
    config: Config | None = None, clock: Clock = time.monotonic
) -> Runtime:
    """Build a runtime from configuration.

    Args:
        config: Configuration. Defaults to Config().
        clock: Monotonic clock used by the caches.

    Returns:
        The wired runtime.
    """
    if config is None:
        config = Config()

    caches = MessageCacheRegistry(config.cache, clock=clock)
    service = EventApplicationService(
        caches, late_reaction_policy=config.events.late_reaction_policy
    )
    adapter = GatewayPayloadAdapter(self_user_id=config.self_user_id)
    queue = DeltaQueue(maxsize=config.events.queue_size)
    loop = DeltaLoop(queue, service, adapter)

    logger.info(
        "Runtime built: capacity=%s, max_age=%ss, %d channel override(s), "
        "late reaction policy=%s",
        config.cache.default.capacity,
        config.cache.default.max_age_seconds,
        len(config.cache.channels),
        config.events.late_reaction_policy.value,
    )
    return Runtime(
        config=config,
        caches=caches,
        service=service,
        adapter=adapter,
        queue=queue,
        loop=loop,
    )


def runtime_from_file(path: str | Path) -> Runtime:
    """Load config from a YAML file, apply its logging settings and build a runtime.

    Args:
        path: Path of the config file.

    Returns:
        The wired runtime.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the configuration is invalid.
    """
    config = load_config(path)
    configure_logging(config.logging)
    return build_runtime(config)
