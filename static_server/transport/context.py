"""Context object shared across worker threads."""

from dataclasses import dataclass
from typing import Optional

from static_server.bootstrap.config import ServerConfig
from static_server.domain.connection_id import ConnectionLoggerAdapter
from static_server.lifecycle.state import ServerLifecycle
from static_server.transport.admission import AdmissionLimiter


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads."""

    config: ServerConfig
    admission: Optional[AdmissionLimiter] = None
    lifecycle: Optional[ServerLifecycle] = None
    logger: Optional[ConnectionLoggerAdapter] = None
