"""
Domain models for the AnnoFlow workflow engine.

This package contains the records the workflow keeps consistent
(projects, members, images, assignments, submissions) and the value
types its services return.
"""

from annoflow.domains.enums import *
from annoflow.domains.projects import *
from annoflow.domains.images import *
from annoflow.domains.assignments import *
from annoflow.domains.submissions import *
from annoflow.domains.activity import *
