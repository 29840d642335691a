"""Error kinds raised by the relation engine and its collaborators."""

from __future__ import annotations


class TetherError(Exception):
    """Base error; carries an envelope code and an HTTP-ish status."""

    code = "INTERNAL_ERROR"
    status_code = 500
    message = "Internal error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        if message:
            self.message = message
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)


class IntegrityError(TetherError):
    """The request's integrity token did not verify."""

    code = "INTEGRITY_ERROR"
    status_code = 403
    message = "Security error"


class FormValidationError(TetherError):
    """A configured validation rule rejected the submission."""

    code = "VALIDATION_ERROR"
    status_code = 422
    message = "Form Validation Error"


class StorageError(TetherError):
    """The record store refused a create or update."""

    code = "STORAGE_ERROR"
    status_code = 400

    def __init__(self, messages: list[str] | str):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__(self.messages[0] if self.messages else "Storage error")


class BadRequest(TetherError):
    code = "BAD_REQUEST"
    status_code = 400
    message = "Bad request"


class RouteNotFound(TetherError):
    code = "NOT_FOUND"
    status_code = 404
    message = "Not found"


class ConfigError(TetherError):
    """Raised when a config declaration cannot be turned into a relation."""

    code = "CONFIG_ERROR"
