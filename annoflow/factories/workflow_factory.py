"""
Factory for creating and wiring components of the AnnoFlow system.

This module handles the creation and dependency injection for all
services and components used in the workflow engine.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Service imports
from annoflow.services.assignment_ledger import AssignmentLedgerService
from annoflow.services.distribution import DistributionService
from annoflow.services.image_pool import ImagePoolService
from annoflow.services.locking import ProjectLockRegistry
from annoflow.services.project import ProjectService
from annoflow.services.project_aggregator import ProjectAggregatorService
from annoflow.services.submission import SubmissionService

# Repository imports
from annoflow.repositories.assignment import MongoAssignmentRepository
from annoflow.repositories.image import MongoImageRepository
from annoflow.repositories.project import MongoMemberRepository, MongoProjectRepository
from annoflow.repositories.submission import MongoSubmissionRepository

# Adapter imports
from annoflow.adapters.activity_adapter import MongoActivityLogAdapter, NullActivityLogAdapter
from annoflow.adapters.mongodb_adapter import MongoDBAdapter
from annoflow.interfaces.providers.data_storage import DataStorageProvider

# Setup logger for this module
logger = logging.getLogger(__name__)


@dataclass
class WorkflowServices:
    """Wired services sharing one datastore and one lock registry."""

    db_adapter: DataStorageProvider
    locks: ProjectLockRegistry
    image_repository: MongoImageRepository
    image_pool: ImagePoolService
    aggregator: ProjectAggregatorService
    assignment_ledger: AssignmentLedgerService
    distribution: DistributionService
    submissions: SubmissionService
    projects: ProjectService


class AnnoFlowFactory:
    """Factory for creating and wiring components of the AnnoFlow system."""

    @staticmethod
    def _configure_logging(config: Dict[str, Any]) -> None:
        level = config.get("logging", {}).get("level")
        if not level:
            return
        numeric = logging.getLevelName(str(level).upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown logging level: {level}")
        logging.getLogger("annoflow").setLevel(numeric)

    @staticmethod
    def create_from_config(
        config: Dict[str, Any], db_adapter: Optional[DataStorageProvider] = None
    ) -> WorkflowServices:
        """Create the workflow services from configuration.

        Args:
            config: Configuration dictionary
            db_adapter: Optional ready-made storage adapter; when omitted one
                is built from the mongo section

        Returns:
            Wired WorkflowServices
        """
        AnnoFlowFactory._configure_logging(config)

        if db_adapter is None:
            if "mongo" not in config:
                raise ValueError("MongoDB configuration is required.")
            if "connection_string" not in config["mongo"]:
                raise ValueError("MongoDB connection string is required.")
            if "database" not in config["mongo"]:
                raise ValueError("MongoDB database name is required.")
            db_adapter = MongoDBAdapter(
                connection_string=config["mongo"]["connection_string"],
                database_name=config["mongo"]["database"],
            )

        activity_config = config.get("activity_log", {})
        if activity_config.get("enabled", True):
            activity_log = MongoActivityLogAdapter(
                db_adapter, collection=activity_config.get("collection", "activity_logs"))
        else:
            logger.info("Activity logging disabled")
            activity_log = NullActivityLogAdapter()

        # Create repositories
        project_repo = MongoProjectRepository(db_adapter)
        member_repo = MongoMemberRepository(db_adapter)
        image_repo = MongoImageRepository(db_adapter)
        assignment_repo = MongoAssignmentRepository(db_adapter)
        submission_repo = MongoSubmissionRepository(db_adapter)

        # Create services
        locks = ProjectLockRegistry()
        image_pool = ImagePoolService(project_repo, image_repo)
        aggregator = ProjectAggregatorService(project_repo, image_repo)
        ledger = AssignmentLedgerService(
            assignment_repository=assignment_repo,
            image_repository=image_repo,
            member_repository=member_repo,
            submission_repository=submission_repo,
            project_repository=project_repo,
            locks=locks,
        )
        distribution = DistributionService(
            member_repository=member_repo,
            image_repository=image_repo,
            image_pool=image_pool,
            assignment_ledger=ledger,
            locks=locks,
            activity_log=activity_log,
        )
        submissions = SubmissionService(
            project_repository=project_repo,
            member_repository=member_repo,
            image_repository=image_repo,
            assignment_repository=assignment_repo,
            submission_repository=submission_repo,
            aggregator=aggregator,
            locks=locks,
            activity_log=activity_log,
        )
        projects = ProjectService(
            project_repository=project_repo,
            member_repository=member_repo,
            submission_repository=submission_repo,
            assignment_ledger=ledger,
            aggregator=aggregator,
            locks=locks,
            activity_log=activity_log,
        )

        return WorkflowServices(
            db_adapter=db_adapter,
            locks=locks,
            image_repository=image_repo,
            image_pool=image_pool,
            aggregator=aggregator,
            assignment_ledger=ledger,
            distribution=distribution,
            submissions=submissions,
            projects=projects,
        )
