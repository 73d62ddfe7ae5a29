"""
Activity Service

Audit trail of discipline events (warnings, terminations, complaints).
Writes are best-effort: dispatch_activity hands the write to the background
dispatcher so a logging failure never affects the request that caused it.
"""

from typing import Optional, Dict, Any
import logging
import json
from datetime import timedelta
from models import db, ActivityLog, ActivityAction, ActivityEntityType
from utils.background_tasks import dispatch
from utils.pagination import paginate_query
from timezone_utils import get_local_time_naive
from .errors import NotFoundError

logger = logging.getLogger(__name__)

ACTIVITY_NOT_FOUND = "Activity log not found"

class ActivityService:
    """Service class for the activity log"""

    @staticmethod
    def log_activity(action: ActivityAction,
                     entity_type: ActivityEntityType,
                     description: str,
                     entity_id: Optional[str] = None,
                     franchise_id: Optional[str] = None,
                     driver_id: Optional[str] = None,
                     staff_id: Optional[str] = None,
                     user_id: Optional[str] = None,
                     details: Optional[Dict[str, Any]] = None) -> Optional[ActivityLog]:
        """
        Write one activity log entry and commit it.

        Args:
            action: What happened (e.g. WARNING_ISSUED)
            entity_type: Kind of entity the entry is about
            description: Human-readable summary
            entity_id: ID of the entity
            franchise_id, driver_id, staff_id: Scope for filtering
            user_id: Actor, if known
            details: Extra structured data, stored as JSON

        Returns:
            The created ActivityLog, or None if the write failed
        """
        try:
            entry = ActivityLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                franchise_id=franchise_id,
                driver_id=driver_id,
                staff_id=staff_id,
                user_id=user_id,
                description=description,
                details=json.dumps(details, default=str) if details else None,
            )
            db.session.add(entry)
            db.session.commit()

            logger.debug(f"Activity logged: {action.name} on {entity_type.name} {entity_id}")
            return entry

        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to create activity log '{action.name}': {str(e)}")
            return None

    @staticmethod
    def dispatch_activity(**kwargs) -> None:
        """Fire-and-forget variant of log_activity"""
        dispatch(ActivityService.log_activity, **kwargs)

    @staticmethod
    def get_activity(activity_id: str) -> Dict[str, Any]:
        entry = db.session.get(ActivityLog, activity_id)
        if not entry:
            raise NotFoundError(ACTIVITY_NOT_FOUND)
        return entry.to_dict()

    @staticmethod
    def list_activities_paginated(page: int, limit: int,
                                  action: Optional[ActivityAction] = None,
                                  entity_type: Optional[ActivityEntityType] = None,
                                  driver_id: Optional[str] = None,
                                  staff_id: Optional[str] = None,
                                  franchise_id: Optional[str] = None) -> Dict[str, Any]:
        """Newest-first page of activity entries matching the filters"""
        query = ActivityLog.query
        if action:
            query = query.filter(ActivityLog.action == action)
        if entity_type:
            query = query.filter(ActivityLog.entity_type == entity_type)
        if driver_id:
            query = query.filter(ActivityLog.driver_id == driver_id)
        if staff_id:
            query = query.filter(ActivityLog.staff_id == staff_id)
        if franchise_id:
            query = query.filter(ActivityLog.franchise_id == franchise_id)

        query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id)
        return paginate_query(query, page, limit, ActivityLog.to_dict)

    @staticmethod
    def cleanup_old_logs(days_to_keep: int = 180) -> int:
        """
        Delete activity entries older than the retention window.

        Returns:
            int: Number of records deleted
        """
        try:
            cutoff_date = get_local_time_naive() - timedelta(days=days_to_keep)

            count = ActivityLog.query.filter(ActivityLog.created_at < cutoff_date).count()

            if count > 0:
                ActivityLog.query.filter(ActivityLog.created_at < cutoff_date).delete()
                db.session.commit()

                logger.info(f"Cleaned up {count} activity log records older than {days_to_keep} days")

            return count

        except Exception as e:
            db.session.rollback()
            logger.error(f"Error cleaning up activity logs: {str(e)}")
            return 0
