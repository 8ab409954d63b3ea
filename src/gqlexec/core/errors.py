"""
Custom exceptions for the gqlexec engine.

Two families matter at runtime:

- FieldError subclasses carry a message that is safe to show to clients.
  They are caught at the field boundary and reported in the response envelope.
- Everything else raised by a resolver is treated as internal: it is logged
  and reported with a sanitized message.
"""

from __future__ import annotations

from typing import Any, Optional


class GraphExecError(Exception):
    """Base exception for all gqlexec errors."""
    pass


class SchemaError(GraphExecError):
    """Raised when a type system definition is invalid."""
    pass


class OperationError(GraphExecError):
    """Raised when an operation cannot be executed at all (request error)."""
    pass


class ServiceError(GraphExecError):
    """Raised when a remote batch source call fails."""

    def __init__(self, service: str, status_code: int, message: str):
        self.service = service
        self.status_code = status_code
        super().__init__(f"Service '{service}' returned {status_code}: {message}")


class FieldError(GraphExecError):
    """
    Error raised while resolving or completing a single field.

    The message is reported to clients as-is.
    """

    def __init__(self, message: str, extensions: Optional[dict[str, Any]] = None):
        self.message = message
        self.extensions = extensions
        super().__init__(message)


class ResolverError(FieldError):
    """Raised by resolvers to report a client-facing error."""
    pass


class ArgumentCoercionError(FieldError):
    """An argument or variable value does not fit its declared input type."""

    def __init__(self, message: str, node: Any = None):
        self.node = node
        super().__init__(message)


class ScalarSerializationError(FieldError):
    """A resolved value cannot be serialized by its scalar or enum type."""
    pass


class ListCoercionError(FieldError):
    """A list field resolved to something that is not a sequence."""
    pass


class AmbiguousTypeError(FieldError):
    """A discriminator returned a type that is not a possible type."""
    pass


class UnknownFieldError(FieldError):
    """A selected field is not defined on the parent type."""
    pass


class BatchSizeMismatchError(FieldError):
    """A batch function returned a different number of values than keys."""

    def __init__(self, expected: int, received: int, loader: Optional[str] = None):
        self.expected = expected
        self.received = received
        name = f" '{loader}'" if loader else ""
        super().__init__(
            f"Batch loader{name} returned {received} values for {expected} keys."
        )


class ExecutionTimeoutError(FieldError):
    """The operation deadline passed before the field resolved."""
    pass


class DepthLimitError(FieldError):
    """A field is nested deeper than the configured limit."""
    pass


class NonNullSafetyError(FieldError):
    """
    Null reached a non-null position.

    Raised where the violation happens and re-raised upward until a nullable
    field or list element absorbs it. ``reported`` is set once the originating
    error has been added to the error list so bubbling never reports twice.
    """

    def __init__(self, message: str, path: Optional[list[str | int]] = None):
        self.path = path
        self.reported = False
        super().__init__(message)
