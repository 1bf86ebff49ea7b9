"""Per-connection identifiers carried through log records using contextvars."""

import contextvars
import logging
import uuid
from typing import Any, MutableMapping, Optional

LOGGER_NAMESPACE = "static_server."

_connection_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "connection_id", default=None
)


def generate_connection_id() -> str:
    """Return a short random identifier for a newly accepted connection."""
    return uuid.uuid4().hex[:12]


def get_connection_id() -> Optional[str]:
    """Retrieve the connection ID bound to the current worker context."""
    return _connection_id_var.get()


def set_connection_id(connection_id: str) -> None:
    """Bind a connection ID to the current worker context."""
    _connection_id_var.set(connection_id)


def clear_connection_id() -> None:
    """Unbind the connection ID once the worker is done with the connection."""
    _connection_id_var.set(None)


class ConnectionLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps records with the connection ID and component."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        if "extra" not in kwargs:
            kwargs["extra"] = {}
        else:
            kwargs["extra"] = dict(kwargs["extra"])

        connection_id = get_connection_id()
        kwargs["extra"]["connection_id"] = (
            connection_id if connection_id is not None else "-"
        )

        logger_name = self.logger.name
        if logger_name.startswith(LOGGER_NAMESPACE):
            component = logger_name[len(LOGGER_NAMESPACE) :]
        else:
            component = logger_name
        kwargs["extra"]["component"] = component

        return msg, kwargs


def get_component_logger(component: str) -> ConnectionLoggerAdapter:
    """Return the adapter for a component logger under the project namespace."""
    return ConnectionLoggerAdapter(
        logging.getLogger(f"{LOGGER_NAMESPACE}{component}"), {}
    )
