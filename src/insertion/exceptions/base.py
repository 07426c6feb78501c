"""
Custom exceptions for insert dispatching.
"""

# canonical insertion-level exceptions

class InsertionError(Exception):
    """
    Base exception for insert/build dispatching errors.

    - message: human-friendly message
    - class_name: optional name of the handler class that raised or propagated the
      error; rendered as a "(ClassName) " prefix so logs point at the handler.
    """

    def __init__(self, message: str | None = None, *, class_name: str | type | None = None):
        super().__init__(message)
        self.message = message if message is not None else ""
        # accept the handler class itself as a convenience
        if isinstance(class_name, type):
            class_name = class_name.__name__
        self.class_name = class_name

    def __str__(self) -> str:
        if self.class_name:
            return f"({self.class_name}) {self.message}"
        return self.message


class InsertionArgumentError(InsertionError, TypeError):
    """
    Raised when a custom handler rejects the keyword attributes it was constructed with.

    Also a TypeError, so callers that already guard against bad call signatures keep working.
    """


class NestingDepthError(InsertionError):
    """Raised when nested insert/build calls go deeper than the configured limit."""


class HandlerRegistrationError(InsertionError):
    """Raised for invalid or colliding handler registrations."""


class ModelNotFoundError(LookupError):
    """
    Raised when a model name does not resolve to any mapped class.

    Not an InsertionError: an unknown model is a programming error and is never wrapped.
    """

    def __init__(self, model_name: str):
        super().__init__(f"No mapped class named '{model_name}'")
        self.model_name = model_name


__all__ = [
    "InsertionError",
    "InsertionArgumentError",
    "NestingDepthError",
    "HandlerRegistrationError",
    "ModelNotFoundError",
]
