"""
Service implementations for the AnnoFlow workflow engine.

These services implement the workflow interfaces defined in
annoflow.interfaces.services.
"""

from annoflow.services.locking import *
from annoflow.services.image_pool import *
from annoflow.services.project_aggregator import *
from annoflow.services.assignment_ledger import *
from annoflow.services.distribution import *
from annoflow.services.submission import *
from annoflow.services.project import *
