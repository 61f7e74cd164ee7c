"""Errors raised by the goal lifecycle."""


class ProcrastinotError(Exception):
    """Base error for the application."""


class ValidationError(ProcrastinotError, ValueError):
    """Goal creation input was malformed."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")
