"""
Complaint Service

Complaints against a driver or staff member. Creation mirrors warning
issuance without escalation; status updates are unrestricted (any status
from any status) and stamp resolution details when a complaint is resolved
or closed. A resolution action (WARNING or FIRE) is applied to the target
on a best-effort basis.
"""

from typing import Optional, Dict, Any, Mapping
import logging
from models import (db, Complaint, ComplaintStatus, ComplaintSeverity, ResolutionAction,
                    ActivityAction, ActivityEntityType)
from utils.validators import (parse_single_target, require_text, optional_text, parse_enum)
from utils.pagination import paginate_query
from timezone_utils import get_local_time_naive
from .errors import NotFoundError, ValidationError
from .transaction_helper import TransactionHelper
from .driver_service import DriverService, DRIVER_NOT_FOUND
from .staff_service import StaffService, STAFF_NOT_FOUND
from .activity_service import ActivityService
from .warning_service import WarningService, resolve_warning_threshold

logger = logging.getLogger(__name__)

COMPLAINT_NOT_FOUND = "Complaint not found"

TERMINAL_STATUSES = (ComplaintStatus.RESOLVED, ComplaintStatus.CLOSED)

RESOLUTION_REASON_MAX = 500


class ComplaintService:
    """Service class for complaint intake and resolution"""

    def __init__(self):
        self.driver_service = DriverService()
        self.staff_service = StaffService()
        self.warning_service = WarningService()

    def create_complaint(self, payload: Mapping[str, Any], reported_by: Optional[str] = None) -> Dict[str, Any]:
        """
        Record a complaint against a driver or staff member.

        Args:
            payload: {driverId?, staffId?, title, description, severity?}
            reported_by: ID of the reporting user

        Returns:
            dict: {message, data}
        """
        target_ids = parse_single_target(payload)
        title = require_text(payload, 'title', 'Title', 200)
        description = require_text(payload, 'description', 'Description', 1000)
        severity = parse_enum(ComplaintSeverity, payload.get('severity'), 'Severity',
                              default=ComplaintSeverity.MEDIUM)

        driver_id, staff_id = target_ids['driver_id'], target_ids['staff_id']
        if driver_id:
            target = self.driver_service.get_driver(driver_id)
            if not target:
                raise NotFoundError(DRIVER_NOT_FOUND)
        else:
            target = self.staff_service.get_staff(staff_id)
            if not target:
                raise NotFoundError(STAFF_NOT_FOUND)
        franchise_id = target.franchise_id

        complaint = self._create_record(driver_id, staff_id, title, description, severity, reported_by)

        # Staff have no complaint counter
        if driver_id:
            TransactionHelper.run_isolated(
                f"Incrementing driver {driver_id} complaint count",
                self.driver_service.increment_complaint_count, driver_id
            )

        logger.info(f"Complaint {complaint.id} created against {'driver ' + driver_id if driver_id else 'staff ' + staff_id}")

        data = complaint.to_dict()

        ActivityService.dispatch_activity(
            action=ActivityAction.COMPLAINT_CREATED,
            entity_type=ActivityEntityType.COMPLAINT,
            entity_id=complaint.id,
            franchise_id=franchise_id,
            driver_id=driver_id,
            staff_id=staff_id,
            user_id=reported_by,
            description=f"Complaint created: {title} - {severity.name} severity",
            details={'complaintId': complaint.id, 'title': title, 'severity': severity.name},
        )

        return {'message': "Complaint created successfully", 'data': data}

    @TransactionHelper.with_transaction
    def _create_record(self, driver_id, staff_id, title, description, severity, reported_by) -> Complaint:
        complaint = Complaint(
            driver_id=driver_id,
            staff_id=staff_id,
            title=title,
            description=description,
            severity=severity,
            status=ComplaintStatus.OPEN,
            reported_by=reported_by,
        )
        db.session.add(complaint)
        db.session.flush()
        return complaint

    def list_complaints(self, driver_id: Optional[str] = None, staff_id: Optional[str] = None,
                        status: Optional[ComplaintStatus] = None) -> list:
        query = self._filtered_query(driver_id, staff_id, status)
        return [complaint.to_dict() for complaint in query.all()]

    def list_complaints_paginated(self, page: int, limit: int,
                                  driver_id: Optional[str] = None,
                                  staff_id: Optional[str] = None,
                                  status: Optional[ComplaintStatus] = None) -> Dict[str, Any]:
        query = self._filtered_query(driver_id, staff_id, status)
        return paginate_query(query, page, limit, Complaint.to_dict)

    def _filtered_query(self, driver_id, staff_id, status):
        query = Complaint.query
        if driver_id:
            query = query.filter(Complaint.driver_id == driver_id)
        if staff_id:
            query = query.filter(Complaint.staff_id == staff_id)
        if status:
            query = query.filter(Complaint.status == status)
        return query.order_by(Complaint.created_at.desc(), Complaint.id)

    def get_complaint(self, complaint_id: str) -> Dict[str, Any]:
        complaint = db.session.get(Complaint, complaint_id)
        if not complaint:
            raise NotFoundError(COMPLAINT_NOT_FOUND)
        return complaint.to_dict()

    def update_complaint_status(self, complaint_id: str, payload: Mapping[str, Any],
                                resolved_by: Optional[str] = None) -> Dict[str, Any]:
        """
        Set a complaint's status. No transition rules are enforced.

        Moving to RESOLVED or CLOSED stamps resolved_at/resolved_by and records
        resolution, resolutionAction and resolutionReason when supplied.

        Args:
            complaint_id: ID of the complaint
            payload: {status, resolution?, resolutionAction?, resolutionReason?}
            resolved_by: ID of the acting user

        Returns:
            dict: {message, data}
        """
        status = parse_enum(ComplaintStatus, payload.get('status'), 'Status')
        if status is None:
            raise ValidationError("Status is required")
        resolution = optional_text(payload, 'resolution', 'Resolution', 500)
        action = parse_enum(ResolutionAction, payload.get('resolutionAction'), 'Resolution action')
        action_reason = optional_text(payload, 'resolutionReason', 'Resolution reason', 500)

        complaint = db.session.get(Complaint, complaint_id)
        if not complaint:
            raise NotFoundError(COMPLAINT_NOT_FOUND)

        previous_status = complaint.status
        resolving = status in TERMINAL_STATUSES

        self._apply_status(complaint, status, resolving, resolution, action, action_reason, resolved_by)

        logger.info(f"Complaint {complaint_id} status {previous_status.name} -> {status.name}")

        applied_action = action
        if resolving and action is not None:
            applied_action = self._apply_resolution_action(complaint, action, action_reason, resolved_by)

        data = complaint.to_dict()
        target = complaint.driver or complaint.staff

        ActivityService.dispatch_activity(
            action=ActivityAction.COMPLAINT_STATUS_UPDATED,
            entity_type=ActivityEntityType.COMPLAINT,
            entity_id=complaint_id,
            franchise_id=target.franchise_id if target else None,
            driver_id=complaint.driver_id,
            staff_id=complaint.staff_id,
            user_id=resolved_by,
            description=f"Complaint status changed from {previous_status.name} to {status.name}",
            details={
                'complaintId': complaint_id,
                'previousStatus': previous_status.name,
                'status': status.name,
                'resolutionAction': applied_action.name if applied_action else None,
            },
        )

        return {'message': "Complaint status updated successfully", 'data': data}

    @TransactionHelper.with_transaction
    def _apply_status(self, complaint, status, resolving, resolution, action, action_reason, resolved_by):
        complaint.status = status
        if resolving:
            complaint.resolved_at = get_local_time_naive()
            complaint.resolved_by = resolved_by
            if resolution is not None:
                complaint.resolution = resolution
            if action is not None:
                complaint.resolution_action = action
            if action_reason is not None:
                complaint.resolution_reason = action_reason

    def _apply_resolution_action(self, complaint: Complaint, action: ResolutionAction,
                                 reason: Optional[str], acted_by: Optional[str]) -> ResolutionAction:
        """
        Warn or fire the complaint's target. Failures are logged only.

        A WARNING that pushes the target over its threshold fires them; the
        complaint is then re-recorded as FIRE with an auto-fired reason.

        Returns:
            ResolutionAction: the action that actually took effect
        """
        if action == ResolutionAction.WARNING:
            warning_reason = reason or f"Complaint resolved: {complaint.title}"
            payload = {
                'driverId': complaint.driver_id,
                'staffId': complaint.staff_id,
                'reason': warning_reason,
                'priority': complaint.severity.name,
            }
            success, issued, _ = TransactionHelper.run_isolated(
                f"Issuing warning for complaint {complaint.id}",
                self.warning_service.issue_warning, payload, acted_by
            )
            if success and issued['autoFired']:
                target = complaint.driver or complaint.staff
                threshold = resolve_warning_threshold(target.franchise if target else None)
                TransactionHelper.run_isolated(
                    f"Recording auto-fire on complaint {complaint.id}",
                    self._record_auto_fire, complaint, warning_reason, threshold
                )
                return ResolutionAction.FIRE
            return action
        elif complaint.driver_id:
            success, transitioned, _ = TransactionHelper.run_isolated(
                f"Terminating driver {complaint.driver_id} for complaint {complaint.id}",
                self.driver_service.terminate_driver, complaint.driver_id
            )
            if success and transitioned:
                self._dispatch_fired(complaint, acted_by)
        else:
            success, transitioned, _ = TransactionHelper.run_isolated(
                f"Firing staff {complaint.staff_id} for complaint {complaint.id}",
                self.staff_service.fire_staff, complaint.staff_id
            )
            if success and transitioned:
                self._dispatch_fired(complaint, acted_by)
        return action

    @TransactionHelper.with_transaction
    def _record_auto_fire(self, complaint: Complaint, warning_reason: str, threshold: int) -> None:
        suffix = f" (auto-fired: {threshold}+ warnings)"
        complaint.resolution_action = ResolutionAction.FIRE
        complaint.resolution_reason = warning_reason[:RESOLUTION_REASON_MAX - len(suffix)] + suffix
        logger.info(f"Complaint {complaint.id} resolution recorded as FIRE after auto-fire")

    def _dispatch_fired(self, complaint: Complaint, acted_by: Optional[str]) -> None:
        target = complaint.driver or complaint.staff
        is_driver = complaint.driver_id is not None
        ActivityService.dispatch_activity(
            action=ActivityAction.DRIVER_TERMINATED if is_driver else ActivityAction.STAFF_FIRED,
            entity_type=ActivityEntityType.DRIVER if is_driver else ActivityEntityType.STAFF,
            entity_id=complaint.driver_id or complaint.staff_id,
            franchise_id=target.franchise_id if target else None,
            driver_id=complaint.driver_id,
            staff_id=complaint.staff_id,
            user_id=acted_by,
            description=f"{'Driver' if is_driver else 'Staff'} fired on resolution of complaint: {complaint.title}",
            details={'complaintId': complaint.id},
        )
