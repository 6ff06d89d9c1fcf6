"""
Exceptions raised by the AnnoFlow workflow engine.

Every failure a caller can observe derives from WorkflowError so that an
outer layer (HTTP routes, the CLI) can map the whole family in one place.
"""


class WorkflowError(Exception):
    """Base class for all workflow errors."""


class NotFoundError(WorkflowError):
    """A project, member, assignment or submission does not exist."""


class ForbiddenError(WorkflowError):
    """The actor lacks the role or ownership required for the operation."""


class ConflictError(WorkflowError):
    """A state precondition was violated."""


class InvalidRequestError(WorkflowError):
    """The request is malformed or cannot be satisfied (empty pool, non-member target)."""


class StorageError(WorkflowError):
    """The backing datastore failed (timeout, disconnect, write error)."""
