"""Error taxonomy for gcov-server.

Request-scoped errors (persistence, serialization, rendering) are turned into
an HTTP 500 at the request boundary. Startup errors terminate the process with
their ``exit_code``.
"""


class GcovServerError(Exception):
    """Base class for every error raised by gcov-server."""
    exit_code: int = 1


# -- Request-scoped --

class PersistenceError(GcovServerError):
    """The store could not be reached, or a query or write failed."""


class SerializationError(GcovServerError):
    """A payload or stored blob does not have the expected shape."""


class RenderError(GcovServerError):
    """A template failed to render."""


# -- Fatal at startup --

class ConfigurationError(GcovServerError):
    """A required environment variable is missing or malformed."""
    exit_code = 2

    def __init__(self, key: str, reason: str = 'not set'):
        self.key = key
        super().__init__(
            f"${key} {reason}. This is required for the program to function.",
        )


class LoggingSetupError(GcovServerError):
    exit_code = 1


class TemplateError(GcovServerError):
    """A template failed to parse while loading the template set."""
    exit_code = 1


class BindError(GcovServerError):
    exit_code = 2


class DatabaseStartupError(GcovServerError):
    exit_code = 3
