"""
Repository implementations for data access.

This package contains MongoDB repositories for the workflow records.
"""

from annoflow.repositories.project import *
from annoflow.repositories.image import *
from annoflow.repositories.assignment import *
from annoflow.repositories.submission import *
