from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base class for errors that cross an engine boundary."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(EngineError):
    """A referenced menu item, restaurant or user does not exist."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} with identifier {identifier} not found",
            details={"resource": resource, "identifier": str(identifier)},
        )
        self.resource = resource
        self.identifier = identifier


class UpstreamUnavailableError(EngineError):
    """The data accessor failed even after a retry."""

    def __init__(self, operation: str):
        super().__init__(
            f"Data source unavailable during {operation}",
            details={"operation": operation},
        )
        self.operation = operation
