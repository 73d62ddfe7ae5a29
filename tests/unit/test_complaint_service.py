"""
Unit tests for ComplaintService
"""

import uuid
import pytest

from models import (db, Driver, Staff, Complaint, DisciplinaryWarning, ActivityLog,
                    ComplaintStatus, ResolutionAction, DriverStatus, StaffStatus, ActivityAction)
from services.errors import InvalidWarningTarget, ValidationError, NotFoundError
from services.complaint_service import ComplaintService
from services.driver_service import DriverService
from services.warning_service import WarningService
from tests.factories import ComplaintFactory, DriverFactory, StaffFactory, FranchiseFactory


class TestCreateComplaint:

    def test_create_for_driver(self, db_session, driver):
        result = ComplaintService().create_complaint(
            {'driverId': driver.id, 'title': 'Rude', 'description': 'Shouted at a passenger'},
            reported_by='admin-1'
        )

        assert result['message'] == "Complaint created successfully"
        data = result['data']
        assert data['status'] == 'OPEN'
        assert data['severity'] == 'MEDIUM'
        assert data['reportedBy'] == 'admin-1'
        assert data['resolvedAt'] is None
        assert db.session.get(Driver, driver.id).complaint_count == 1
        assert ActivityLog.query.filter_by(action=ActivityAction.COMPLAINT_CREATED).count() == 1

    def test_create_for_staff(self, db_session, staff_member):
        result = ComplaintService().create_complaint(
            {'staffId': staff_member.id, 'title': 'Late', 'description': 'Late again', 'severity': 'HIGH'}
        )

        assert result['data']['staffId'] == staff_member.id
        assert result['data']['severity'] == 'HIGH'

    def test_both_targets_rejected(self, db_session, driver, staff_member):
        with pytest.raises(InvalidWarningTarget):
            ComplaintService().create_complaint(
                {'driverId': driver.id, 'staffId': staff_member.id, 'title': 'x', 'description': 'y'}
            )

        assert Complaint.query.count() == 0

    def test_title_too_long(self, db_session, driver):
        with pytest.raises(ValidationError) as exc_info:
            ComplaintService().create_complaint(
                {'driverId': driver.id, 'title': 't' * 201, 'description': 'y'}
            )

        assert exc_info.value.message == "Title must be less than 200 characters"

    def test_missing_description(self, db_session, driver):
        with pytest.raises(ValidationError) as exc_info:
            ComplaintService().create_complaint({'driverId': driver.id, 'title': 'Rude'})

        assert exc_info.value.message == "Description is required"

    def test_unknown_driver(self, db_session):
        with pytest.raises(NotFoundError):
            ComplaintService().create_complaint(
                {'driverId': str(uuid.uuid4()), 'title': 'Rude', 'description': 'y'}
            )

        assert Complaint.query.count() == 0

    def test_complaint_count_failure_does_not_fail_create(self, db_session, driver, monkeypatch):
        def broken_increment(self, driver_id):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(DriverService, 'increment_complaint_count', broken_increment)

        result = ComplaintService().create_complaint(
            {'driverId': driver.id, 'title': 'Rude', 'description': 'Shouted at a passenger'}
        )

        assert result['message'] == "Complaint created successfully"
        assert Complaint.query.count() == 1
        assert db.session.get(Complaint, result['data']['id']).driver_id == driver.id
        assert db.session.get(Driver, driver.id).complaint_count == 0
        assert ActivityLog.query.filter_by(action=ActivityAction.COMPLAINT_CREATED).count() == 1


class TestListAndGet:

    def test_filter_by_status(self, db_session, driver):
        ComplaintFactory(driver=driver)
        ComplaintFactory(driver=driver, status=ComplaintStatus.RESOLVED)

        service = ComplaintService()

        assert len(service.list_complaints()) == 2
        resolved = service.list_complaints(status=ComplaintStatus.RESOLVED)
        assert [c['status'] for c in resolved] == ['RESOLVED']

    def test_paginated(self, db_session, driver):
        for _ in range(12):
            ComplaintFactory(driver=driver)

        result = ComplaintService().list_complaints_paginated(2, 10, driver_id=driver.id)

        assert len(result['data']) == 2
        assert result['pagination']['totalPages'] == 2
        assert result['pagination']['hasNext'] is False

    def test_get_unknown(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            ComplaintService().get_complaint(str(uuid.uuid4()))

        assert exc_info.value.message == "Complaint not found"


class TestUpdateStatus:

    def test_any_transition_allowed(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver, status=ComplaintStatus.CLOSED)

        result = ComplaintService().update_complaint_status(complaint.id, {'status': 'OPEN'})

        assert result['message'] == "Complaint status updated successfully"
        assert result['data']['status'] == 'OPEN'

    def test_in_progress_does_not_stamp_resolution(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver)

        result = ComplaintService().update_complaint_status(
            complaint.id, {'status': 'IN_PROGRESS', 'resolution': 'ignored'}
        )

        assert result['data']['resolvedAt'] is None
        assert result['data']['resolution'] is None

    def test_resolve_stamps_details(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver)

        result = ComplaintService().update_complaint_status(
            complaint.id, {'status': 'RESOLVED', 'resolution': 'Apologised'}, resolved_by='admin-1'
        )

        data = result['data']
        assert data['status'] == 'RESOLVED'
        assert data['resolvedBy'] == 'admin-1'
        assert data['resolvedAt'] is not None
        assert data['resolution'] == 'Apologised'
        entry = ActivityLog.query.filter_by(action=ActivityAction.COMPLAINT_STATUS_UPDATED).one()
        assert entry.get_details()['previousStatus'] == 'OPEN'

    def test_missing_status(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver)

        with pytest.raises(ValidationError) as exc_info:
            ComplaintService().update_complaint_status(complaint.id, {})

        assert exc_info.value.message == "Status is required"

    def test_invalid_status(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver)

        with pytest.raises(ValidationError):
            ComplaintService().update_complaint_status(complaint.id, {'status': 'RECEIVED'})

    def test_unknown_complaint(self, db_session):
        with pytest.raises(NotFoundError):
            ComplaintService().update_complaint_status(str(uuid.uuid4()), {'status': 'CLOSED'})

    def test_warning_action_issues_warning(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver, title='Rude')

        result = ComplaintService().update_complaint_status(
            complaint.id,
            {'status': 'RESOLVED', 'resolutionAction': 'WARNING', 'resolutionReason': 'Verbal abuse'},
            resolved_by='admin-1'
        )

        assert result['data']['resolutionAction'] == 'WARNING'
        warning = DisciplinaryWarning.query.one()
        assert warning.driver_id == driver.id
        assert warning.reason == 'Verbal abuse'
        assert warning.created_by == 'admin-1'
        assert db.session.get(Driver, driver.id).warning_count == 1

    def test_warning_action_can_escalate(self, db_session, franchise):
        driver = DriverFactory(franchise=franchise, warning_count=2)
        complaint = ComplaintFactory(driver=driver)

        ComplaintService().update_complaint_status(
            complaint.id, {'status': 'CLOSED', 'resolutionAction': 'warning'}
        )

        assert db.session.get(Driver, driver.id).status == DriverStatus.TERMINATED

    def test_escalating_warning_recorded_as_fire(self, db_session, franchise):
        driver = DriverFactory(franchise=franchise, warning_count=2)
        complaint = ComplaintFactory(driver=driver)

        result = ComplaintService().update_complaint_status(
            complaint.id,
            {'status': 'RESOLVED', 'resolutionAction': 'WARNING', 'resolutionReason': 'rude'}
        )

        assert result['data']['resolutionAction'] == 'FIRE'
        assert result['data']['resolutionReason'] == 'rude (auto-fired: 3+ warnings)'
        stored = db.session.get(Complaint, complaint.id)
        assert stored.resolution_action == ResolutionAction.FIRE
        assert db.session.get(Driver, driver.id).status == DriverStatus.TERMINATED
        entry = ActivityLog.query.filter_by(action=ActivityAction.COMPLAINT_STATUS_UPDATED).one()
        assert entry.get_details()['resolutionAction'] == 'FIRE'

    def test_auto_fire_reason_uses_franchise_threshold(self, db_session):
        strict = FranchiseFactory(warning_threshold=1)
        staff = StaffFactory(franchise=strict)
        complaint = ComplaintFactory(driver=None, staff=staff, title='Theft')

        result = ComplaintService().update_complaint_status(
            complaint.id, {'status': 'CLOSED', 'resolutionAction': 'WARNING'}
        )

        assert result['data']['resolutionReason'] == 'Complaint resolved: Theft (auto-fired: 1+ warnings)'
        assert db.session.get(Staff, staff.id).status == StaffStatus.FIRED

    def test_non_escalating_warning_keeps_action(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver)

        result = ComplaintService().update_complaint_status(
            complaint.id,
            {'status': 'RESOLVED', 'resolutionAction': 'WARNING', 'resolutionReason': 'rude'}
        )

        assert result['data']['resolutionAction'] == 'WARNING'
        assert result['data']['resolutionReason'] == 'rude'

    def test_fire_action_terminates_driver(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver)

        ComplaintService().update_complaint_status(
            complaint.id, {'status': 'RESOLVED', 'resolutionAction': 'FIRE'}
        )

        refreshed = db.session.get(Driver, driver.id)
        assert refreshed.status == DriverStatus.TERMINATED
        assert refreshed.blacklisted is True
        assert ActivityLog.query.filter_by(action=ActivityAction.DRIVER_TERMINATED).count() == 1

    def test_fire_action_fires_staff(self, db_session, staff_member):
        complaint = ComplaintFactory(driver=None, staff=staff_member)

        ComplaintService().update_complaint_status(
            complaint.id, {'status': 'RESOLVED', 'resolutionAction': 'FIRE'}
        )

        assert db.session.get(Staff, staff_member.id).status == StaffStatus.FIRED

    def test_action_ignored_when_not_resolving(self, db_session, driver):
        complaint = ComplaintFactory(driver=driver)

        ComplaintService().update_complaint_status(
            complaint.id, {'status': 'IN_PROGRESS', 'resolutionAction': 'FIRE'}
        )

        assert db.session.get(Driver, driver.id).status == DriverStatus.ACTIVE

    def test_action_failure_does_not_fail_update(self, db_session, driver, monkeypatch):
        complaint = ComplaintFactory(driver=driver)

        def broken_issue(self, payload, created_by=None):
            raise RuntimeError("warning store down")

        monkeypatch.setattr(WarningService, 'issue_warning', broken_issue)

        result = ComplaintService().update_complaint_status(
            complaint.id, {'status': 'RESOLVED', 'resolutionAction': 'WARNING'}
        )

        assert result['data']['status'] == 'RESOLVED'
        assert result['data']['resolutionAction'] == 'WARNING'
        assert DisciplinaryWarning.query.count() == 0
