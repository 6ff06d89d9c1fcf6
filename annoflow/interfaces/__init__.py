"""
Abstract interfaces for the AnnoFlow workflow engine.

These interfaces define the contracts that concrete implementations
must adhere to, following the Dependency Inversion Principle.

This package contains:
- Repository interfaces for data access
- Provider interfaces for storage and audit adapters
- Service interfaces for workflow components
"""
