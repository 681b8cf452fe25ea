from __future__ import annotations


class InvalidFieldError(ValueError):
    """A draft write named an unknown field or carried a value of the wrong shape."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class PersistenceError(RuntimeError):
    """The response store could not record a submission. Always retryable."""
