"""
Exceptions raised by the harvesting pipeline.

A missing element or attribute is never an error: locators return ``None``
and records carry empty values. Exceptions are reserved for failures that
make a whole page unusable.
"""


class HarvesterError(Exception):
    """Base class for all Harvester errors."""


class RetrievalError(HarvesterError):
    """
    A page could not be retrieved.

    Raised for non-success HTTP responses and for transport failures
    (timeouts, refused connections), which carry a status code of 0.
    """

    def __init__(self, url: str, status_code: int, reason: str | None = None):
        self.url = url
        self.status_code = status_code
        self.reason = reason

        message = f"Failed to retrieve {url} (status {status_code})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedMarkupError(HarvesterError):
    """Markup that the permissive parser could not turn into a tree."""


class InteractionError(HarvesterError):
    """A browser interaction could not locate or act on its element."""

    def __init__(self, by: str, value: str, reason: str | None = None):
        self.by = by
        self.value = value
        self.reason = reason

        message = f"Interaction failed for element {by}={value!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
