from collections.abc import (
    Sequence,
)


class BaseRoutingError(Exception):
    pass


class ValidationError(BaseRoutingError):
    """Raised when something does not pass a validation check."""


class ParseError(BaseRoutingError):
    pass


class MultiError(BaseRoutingError):
    r"""
    A combined error that wraps multiple exceptions into a single error object.
    This error is raised when several concurrent operations fail together,
    for example when batches of a large provide are sent in parallel.

    Example\:
    ---------
        >>> from delegated_routing.exceptions import MultiError
        >>> errors = [
        ...     ValueError("Invalid input"),
        ...     RuntimeError("Operation failed")
        ... ]
        >>> print(MultiError(errors))
        Error 1: Invalid input
        Error 2: Operation failed

    """

    def __init__(self, errors: Sequence[Exception]) -> None:
        super().__init__(errors)
        self.errors = errors

    def __str__(self) -> str:
        return "\n".join(
            f"Error {i + 1}: {error}" for i, error in enumerate(self.errors)
        )
