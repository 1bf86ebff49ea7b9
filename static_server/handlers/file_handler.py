"""Static file serving."""

import logging
import os
from pathlib import PurePosixPath

from static_server.domain.connection_id import get_component_logger
from static_server.domain.content_types import content_type_for
from static_server.domain.http_types import HttpResponse
from static_server.domain.response_builders import file_response, not_found_response
from static_server.domain.sandbox import ForbiddenPath, resolve_under_root

FILE_LOGGER = get_component_logger("handlers.file")


def serve_file(request_path: str, root_directory: str, logger=None) -> HttpResponse:
    """Resolve ``request_path`` under the root and build the matching response.

    Anything that is not a regular file under the root maps to 404: missing
    targets, directories, special files and paths escaping the root.
    The Content-Type follows the requested name, not a symlink target.
    The file is opened here, before anything is written to the client, so a
    permission error surfaces while a 500 can still be sent. Errors raised
    by ``open`` propagate to the connection handler.
    """
    logger = logger or FILE_LOGGER
    try:
        resolved_path = resolve_under_root(root_directory, request_path)
    except ForbiddenPath:
        logger.warning(
            "Request path escapes the root directory",
            extra={"event": "path_outside_root", "path": request_path},
        )
        return not_found_response()

    if not os.path.isfile(resolved_path):
        logger.info(
            "File not found",
            extra={"event": "file_not_found", "path": resolved_path.as_posix()},
        )
        return not_found_response()

    content_type = content_type_for(PurePosixPath(request_path).name)
    file_handle = open(resolved_path, "rb")  # pylint: disable=consider-using-with
    try:
        size = os.fstat(file_handle.fileno()).st_size
    except OSError:
        file_handle.close()
        raise

    if logger.logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "File opened for streaming",
            extra={
                "event": "file_served",
                "path": resolved_path.as_posix(),
                "content_type": content_type,
                "bytes_out": size,
            },
        )
    return file_response(content_type, file_handle, size)
