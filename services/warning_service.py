"""
Warning Service

Issues disciplinary warnings and escalates: once a driver or staff member
reaches the warning threshold they are automatically terminated/fired.

Issuing is a sequence of independently committed steps. Only validation and
target lookup can fail the request; the counter increment, the escalation
and the activity log are best-effort and degrade to a logged error.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, Mapping
import logging
from flask import current_app
from models import (db, DisciplinaryWarning, WarningPriority, Franchise,
                    ActivityAction, ActivityEntityType)
from utils.validators import parse_single_target, require_text, parse_enum
from utils.pagination import paginate_query
from .errors import NotFoundError
from .transaction_helper import TransactionHelper
from .driver_service import DriverService, DRIVER_NOT_FOUND
from .staff_service import StaffService, STAFF_NOT_FOUND
from .activity_service import ActivityService

logger = logging.getLogger(__name__)

# Process-wide default; overridden by app.config['WARNING_THRESHOLD'] and
# per franchise by Franchise.warning_threshold
WARNING_THRESHOLD = 3

WARNING_NOT_FOUND = "Warning not found"
REASON_MAX_LENGTH = 500


def resolve_warning_threshold(franchise: Optional[Franchise] = None) -> int:
    """Franchise override, else app config, else the module default"""
    if franchise is not None and franchise.warning_threshold:
        return franchise.warning_threshold
    return current_app.config.get('WARNING_THRESHOLD', WARNING_THRESHOLD)


@dataclass
class WarningTarget:
    kind: str  # 'driver' or 'staff'
    id: str
    warning_count: int
    franchise_id: Optional[str]
    threshold: int

    @property
    def is_driver(self) -> bool:
        return self.kind == 'driver'

    @property
    def label(self) -> str:
        return 'Driver' if self.is_driver else 'Staff'


class WarningService:
    """Service class for issuing and managing warnings"""

    def __init__(self):
        self.driver_service = DriverService()
        self.staff_service = StaffService()

    def issue_warning(self, payload: Mapping[str, Any], created_by: Optional[str] = None) -> Dict[str, Any]:
        """
        Issue a warning against a driver or staff member.

        Args:
            payload: {driverId?, staffId?, reason, priority?}
            created_by: ID of the acting user

        Returns:
            dict: {message, data, autoFired}

        Raises:
            InvalidWarningTarget: both or neither of driverId/staffId
            ValidationError: bad reason or priority
            NotFoundError: target driver/staff does not exist
        """
        target_ids = parse_single_target(payload)
        reason = require_text(payload, 'reason', 'Reason', REASON_MAX_LENGTH)
        priority = parse_enum(WarningPriority, payload.get('priority'), 'Priority',
                              default=WarningPriority.MEDIUM)

        target = self._resolve_target(target_ids['driver_id'], target_ids['staff_id'])

        warning = self._create_warning_record(target, reason, priority, created_by)

        new_warning_count = self._increment_warning_count(target)

        auto_fired = False
        if new_warning_count >= target.threshold:
            auto_fired = self._escalate(target, warning.id, new_warning_count)

        logger.info(
            f"Warning {warning.id} issued to {target.kind} {target.id} "
            f"(count={new_warning_count}, threshold={target.threshold}, auto_fired={auto_fired})"
        )

        data = warning.to_dict()

        ActivityService.dispatch_activity(
            action=ActivityAction.WARNING_ISSUED,
            entity_type=ActivityEntityType.DRIVER if target.is_driver else ActivityEntityType.STAFF,
            entity_id=target.id,
            franchise_id=target.franchise_id,
            driver_id=target_ids['driver_id'],
            staff_id=target_ids['staff_id'],
            user_id=created_by,
            description=f"Warning issued: {reason}{' (Auto-fired)' if auto_fired else ''}",
            details={
                'warningId': warning.id,
                'reason': reason,
                'priority': priority.name,
                'warningCount': new_warning_count,
                'threshold': target.threshold,
                'autoFired': auto_fired,
            },
        )

        if auto_fired:
            message = (
                f"Warning issued successfully. {target.label} has been automatically fired "
                f"due to {target.threshold} warnings."
            )
        else:
            message = "Warning issued successfully"

        return {'message': message, 'data': data, 'autoFired': auto_fired}

    def _resolve_target(self, driver_id: Optional[str], staff_id: Optional[str]) -> WarningTarget:
        if driver_id:
            entity = self.driver_service.get_driver(driver_id)
            if not entity:
                raise NotFoundError(DRIVER_NOT_FOUND)
            kind, target_id = 'driver', driver_id
        else:
            entity = self.staff_service.get_staff(staff_id)
            if not entity:
                raise NotFoundError(STAFF_NOT_FOUND)
            kind, target_id = 'staff', staff_id

        return WarningTarget(
            kind=kind,
            id=target_id,
            warning_count=entity.warning_count or 0,
            franchise_id=entity.franchise_id,
            threshold=resolve_warning_threshold(entity.franchise),
        )

    @TransactionHelper.with_transaction
    def _create_warning_record(self, target: WarningTarget, reason: str,
                               priority: WarningPriority, created_by: Optional[str]) -> DisciplinaryWarning:
        warning = DisciplinaryWarning(
            driver_id=target.id if target.is_driver else None,
            staff_id=None if target.is_driver else target.id,
            reason=reason,
            priority=priority,
            created_by=created_by,
        )
        db.session.add(warning)
        db.session.flush()
        return warning

    def _increment_warning_count(self, target: WarningTarget) -> int:
        """
        Bump the persisted counter and return the value to branch on.

        Uses the count returned by the atomic increment; if the increment
        fails, falls back to the count read at lookup time plus one.
        """
        increment = (self.driver_service.increment_warning_count if target.is_driver
                     else self.staff_service.increment_warning_count)
        success, new_count, _ = TransactionHelper.run_isolated(
            f"Incrementing {target.kind} {target.id} warning count", increment, target.id
        )
        if success and new_count is not None:
            return new_count
        return target.warning_count + 1

    def _escalate(self, target: WarningTarget, warning_id: str, warning_count: int) -> bool:
        """Apply the terminal state; True only if this call made the transition"""
        transition = self.driver_service.terminate_driver if target.is_driver else self.staff_service.fire_staff
        success, transitioned, _ = TransactionHelper.run_isolated(
            f"Auto-firing {target.kind} {target.id}", transition, target.id
        )
        auto_fired = bool(success and transitioned)

        if auto_fired:
            logger.info(
                f"{target.label} {target.id} auto-fired due to warnings threshold "
                f"(warning_count={warning_count}, warning_id={warning_id})"
            )
            ActivityService.dispatch_activity(
                action=ActivityAction.DRIVER_TERMINATED if target.is_driver else ActivityAction.STAFF_FIRED,
                entity_type=ActivityEntityType.DRIVER if target.is_driver else ActivityEntityType.STAFF,
                entity_id=target.id,
                franchise_id=target.franchise_id,
                driver_id=target.id if target.is_driver else None,
                staff_id=None if target.is_driver else target.id,
                description=f"{target.label} automatically fired after {warning_count} warnings",
                details={'warningId': warning_id, 'warningCount': warning_count,
                         'threshold': target.threshold},
            )

        return auto_fired

    def list_warnings(self, driver_id: Optional[str] = None, staff_id: Optional[str] = None) -> list:
        """All warnings matching the filters, newest first"""
        query = self._filtered_query(driver_id, staff_id)
        return [warning.to_dict() for warning in query.all()]

    def list_warnings_paginated(self, page: int, limit: int,
                                driver_id: Optional[str] = None,
                                staff_id: Optional[str] = None) -> Dict[str, Any]:
        query = self._filtered_query(driver_id, staff_id)
        return paginate_query(query, page, limit, DisciplinaryWarning.to_dict)

    def _filtered_query(self, driver_id: Optional[str], staff_id: Optional[str]):
        query = DisciplinaryWarning.query.options(
            db.joinedload(DisciplinaryWarning.driver),
            db.joinedload(DisciplinaryWarning.staff),
        )
        if driver_id:
            query = query.filter(DisciplinaryWarning.driver_id == driver_id)
        if staff_id:
            query = query.filter(DisciplinaryWarning.staff_id == staff_id)
        return query.order_by(DisciplinaryWarning.created_at.desc(), DisciplinaryWarning.id)

    def get_warning(self, warning_id: str) -> Dict[str, Any]:
        warning = db.session.get(DisciplinaryWarning, warning_id)
        if not warning:
            raise NotFoundError(WARNING_NOT_FOUND)
        return warning.to_dict()

    def delete_warning(self, warning_id: str, deleted_by: Optional[str] = None) -> Dict[str, str]:
        """
        Hard-delete a warning. The target's warning counter is not decremented.
        """
        warning = db.session.get(DisciplinaryWarning, warning_id)
        if not warning:
            raise NotFoundError(WARNING_NOT_FOUND)

        target = warning.driver or warning.staff
        franchise_id = target.franchise_id if target else None
        driver_id, staff_id, reason = warning.driver_id, warning.staff_id, warning.reason

        self._delete_record(warning)

        logger.info(f"Warning {warning_id} deleted")

        ActivityService.dispatch_activity(
            action=ActivityAction.WARNING_DELETED,
            entity_type=ActivityEntityType.WARNING,
            entity_id=warning_id,
            franchise_id=franchise_id,
            driver_id=driver_id,
            staff_id=staff_id,
            user_id=deleted_by,
            description=f"Warning deleted: {reason}",
            details={'warningId': warning_id},
        )

        return {'message': "Warning deleted successfully"}

    @TransactionHelper.with_transaction
    def _delete_record(self, warning: DisciplinaryWarning) -> None:
        db.session.delete(warning)
