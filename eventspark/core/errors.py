"""Error types returned by event sources and raised by storage."""


class AppError(Exception):
    """Base exception for application-level errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DatabaseError(AppError):
    """Backend or network failure.

    Attributes:
        code: Machine-readable code from the backend, when one was given
            (e.g. a Postgres SQLSTATE or a PostgREST error code).
        details: Backend-provided detail text, kept for logging.
    """

    def __init__(self, message: str, code: str | None = None, details: str | None = None):
        super().__init__(message)
        self.code = code
        self.details = details


class NotFoundError(AppError):
    """A requested resource does not exist."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f'{resource} with id "{resource_id}" not found')
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(AppError):
    """Input failed a schema or cross-field rule.

    ``errors`` maps a field path to its message so forms can show the
    message beside the field. ``field`` is the first failing field.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.errors = dict(errors or {})
        if field and field not in self.errors:
            self.errors[field] = message
        self.field = field or next(iter(self.errors), None)


class StorageError(AppError):
    """The key/value storage behind the decision store could not be written."""
