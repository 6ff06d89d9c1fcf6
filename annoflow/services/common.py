"""
Helpers shared by the workflow services.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from annoflow.domains import ActivityAction, Actor
from annoflow.exceptions import ForbiddenError, InvalidRequestError
from annoflow.interfaces.providers.activity_log import ActivityLogProvider

logger = logging.getLogger(__name__)


def round_ratio(numerator: int, denominator: int) -> int:
    """Integer division rounding halves up; 0 when the denominator is 0."""
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def percentage(part: int, whole: int) -> int:
    return round_ratio(100 * part, whole)


def page_bounds(page: int, limit: int) -> Tuple[int, int]:
    """Translate a 1-based page and a page size into (skip, limit)."""
    if page < 1 or limit < 1:
        raise InvalidRequestError("page and limit must be positive")
    return (page - 1) * limit, limit


def require_admin(actor: Actor, operation: str) -> None:
    if not actor.is_admin:
        raise ForbiddenError(f"Only admins can {operation}")


def record_activity(
    activity_log: Optional[ActivityLogProvider],
    user_id: str,
    action: ActivityAction,
    project_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Write an audit entry without letting a logging failure fail the caller."""
    if activity_log is None:
        return
    try:
        activity_log.record(user_id, action, project_id=project_id, details=details)
    except Exception as e:
        logger.warning(f"Failed to record activity {action} for project {project_id}: {e}")
