from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from annoflow.domains import ActivityAction


class ActivityLogProvider(ABC):
    """Interface for audit/activity log sinks."""

    @abstractmethod
    def record(
        self,
        user_id: str,
        action: ActivityAction,
        project_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a mutating call. Implementations may raise; callers ignore failures."""
        pass
