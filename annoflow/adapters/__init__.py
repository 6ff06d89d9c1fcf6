"""
Adapters for external systems.

These adapters implement the provider interfaces defined in
annoflow.interfaces.providers for MongoDB storage and activity logging.
"""
