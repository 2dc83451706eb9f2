"""Error kinds surfaced by the chat core.

Every failure crossing a component boundary is one of these. The ``code``
attribute is the stable identifier sent to clients in error events.
"""


class ChatError(Exception):
    code = "error"


class Unauthenticated(ChatError):
    """Missing, malformed, tampered, or expired credential."""

    code = "unauthenticated"


class ValidationFailed(ChatError):
    """A required field is empty or otherwise invalid."""

    code = "validation_error"


class NotFound(ChatError):
    """A referenced user does not exist."""

    code = "not_found"


class StorageError(ChatError):
    """The underlying database failed."""

    code = "storage_error"
