"""File name suffix to MIME type mapping."""

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Matched in order against the end of the file name, case-sensitively.
CONTENT_TYPES = (
    (".html", "text/html"),
    (".css", "text/css"),
    (".js", "application/javascript"),
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".jpeg", "image/jpeg"),
)


def content_type_for(file_name: str) -> str:
    """Return the MIME type for ``file_name`` based on its exact suffix."""
    for suffix, content_type in CONTENT_TYPES:
        if file_name.endswith(suffix):
            return content_type
    return DEFAULT_CONTENT_TYPE
