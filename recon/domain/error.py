"""Domain layer errors."""

from typing import Any, Sequence


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class FetchFailureError(DomainError):
    """Raised when a backing store cannot be read or written.

    Distinct from NotFoundError: the store did not answer, so nothing is
    known about whether the record exists.
    """

    def __init__(self, store: str, cause: str):
        self.store = store
        self.cause = cause
        super().__init__(f"{store} unavailable: {cause}")


class ConstraintViolationError(DomainError):
    """Raised when a write violates a uniqueness or foreign key constraint."""

    def __init__(self, constraint: str, detail: str):
        self.constraint = constraint
        self.detail = detail
        super().__init__(f"Constraint {constraint} violated: {detail}")


class AmbiguousStateError(DomainError):
    """Raised when stored state needs an operator decision."""

    def __init__(self, message: str, records: Sequence[Any] = ()):
        self.records = list(records)
        super().__init__(message)


class RepairAbortedError(DomainError):
    """Raised when an id rewrite stops before deleting the old user row."""

    def __init__(self, step: str, completed_steps: Sequence[str], cause: Exception):
        self.step = step
        self.completed_steps = list(completed_steps)
        self.cause = cause
        super().__init__(f"Repair aborted at step '{step}': {cause}")
