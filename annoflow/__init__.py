"""
AnnoFlow - assignment distribution and review workflow for image annotation.

This package decides which images go to which annotator, tracks per-user
and per-project progress, and drives the submit, review and redistribute
lifecycle while keeping image, assignment, submission and project records
consistent.
"""

# Client interface (main entry point)
from annoflow.client.annoflow import AnnoFlow

# Factory for wiring the services
from annoflow.factories.workflow_factory import AnnoFlowFactory, WorkflowServices

# Errors raised to callers
from annoflow.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    StorageError,
    WorkflowError,
)

# Package metadata
__all__ = [
    # Main client interface
    "AnnoFlow",
    # Factories
    "AnnoFlowFactory",
    "WorkflowServices",
    # Errors
    "WorkflowError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "InvalidRequestError",
    "StorageError",
]
