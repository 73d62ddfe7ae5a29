
import json
import uuid
from enum import Enum

from sqlalchemy import Index, CheckConstraint

from app import db
from timezone_utils import get_local_time_naive, to_iso


def generate_uuid():
    return str(uuid.uuid4())


# Enums for better data integrity
class DriverStatus(Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    SUSPENDED = 'suspended'
    TERMINATED = 'terminated'

class StaffStatus(Enum):
    ACTIVE = 'active'
    SUSPENDED = 'suspended'
    FIRED = 'fired'

class WarningPriority(Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'

class ComplaintSeverity(Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'

class ComplaintStatus(Enum):
    OPEN = 'open'
    IN_PROGRESS = 'in_progress'
    RESOLVED = 'resolved'
    CLOSED = 'closed'

class ResolutionAction(Enum):
    WARNING = 'warning'
    FIRE = 'fire'

class ActivityAction(Enum):
    WARNING_ISSUED = 'warning_issued'
    WARNING_DELETED = 'warning_deleted'
    DRIVER_TERMINATED = 'driver_terminated'
    STAFF_FIRED = 'staff_fired'
    COMPLAINT_CREATED = 'complaint_created'
    COMPLAINT_STATUS_UPDATED = 'complaint_status_updated'

class ActivityEntityType(Enum):
    DRIVER = 'driver'
    STAFF = 'staff'
    WARNING = 'warning'
    COMPLAINT = 'complaint'


class Franchise(db.Model):
    __tablename__ = 'franchises'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(100), nullable=False, index=True)
    code = db.Column(db.String(20), nullable=False, unique=True)
    city = db.Column(db.String(50), index=True)
    is_active = db.Column(db.Boolean, default=True, index=True)

    # Per-tenant override of the app-wide WARNING_THRESHOLD (NULL = use default)
    warning_threshold = db.Column(db.Integer)

    created_at = db.Column(db.DateTime, default=get_local_time_naive)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    # Relationships
    drivers = db.relationship('Driver', backref='franchise', lazy=True)
    staff_members = db.relationship('Staff', backref='franchise', lazy=True)

    __table_args__ = (
        CheckConstraint('warning_threshold IS NULL OR warning_threshold >= 1', name='ck_franchise_threshold_positive'),
    )

    def __repr__(self):
        return f'<Franchise {self.name}>'

class Driver(db.Model):
    __tablename__ = 'drivers'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    franchise_id = db.Column(db.String(36), db.ForeignKey('franchises.id'), nullable=False, index=True)
    driver_code = db.Column(db.String(20), unique=True, nullable=False)

    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    phone = db.Column(db.String(20), index=True)

    # Employment state
    status = db.Column(db.Enum(DriverStatus), nullable=False, default=DriverStatus.ACTIVE, index=True)
    blacklisted = db.Column(db.Boolean, nullable=False, default=False)
    terminated_at = db.Column(db.DateTime)

    # Discipline counters
    warning_count = db.Column(db.Integer, nullable=False, default=0)
    complaint_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=get_local_time_naive)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    __table_args__ = (
        Index('idx_driver_status_franchise', 'status', 'franchise_id'),
        CheckConstraint('warning_count >= 0', name='ck_driver_warning_count'),
        CheckConstraint('complaint_count >= 0', name='ck_driver_complaint_count'),
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_terminal(self):
        return self.blacklisted or self.status == DriverStatus.TERMINATED

    def to_summary(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'driverCode': self.driver_code,
            'warningCount': self.warning_count or 0,
        }

    def to_dict(self):
        data = self.to_summary()
        data.update({
            'franchiseId': self.franchise_id,
            'phone': self.phone,
            'status': self.status.name,
            'blacklisted': bool(self.blacklisted),
            'complaintCount': self.complaint_count or 0,
            'terminatedAt': to_iso(self.terminated_at),
            'createdAt': to_iso(self.created_at),
            'updatedAt': to_iso(self.updated_at),
        })
        return data

    def __repr__(self):
        return f'<Driver {self.driver_code}>'

class Staff(db.Model):
    __tablename__ = 'staff'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    franchise_id = db.Column(db.String(36), db.ForeignKey('franchises.id'), nullable=False, index=True)

    name = db.Column(db.String(100), nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone = db.Column(db.String(20))

    status = db.Column(db.Enum(StaffStatus), nullable=False, default=StaffStatus.ACTIVE, index=True)
    fired_at = db.Column(db.DateTime)

    warning_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=get_local_time_naive)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    __table_args__ = (
        CheckConstraint('warning_count >= 0', name='ck_staff_warning_count'),
    )

    @property
    def is_terminal(self):
        return self.status == StaffStatus.FIRED

    def to_summary(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'warningCount': self.warning_count or 0,
        }

    def to_dict(self):
        data = self.to_summary()
        data.update({
            'franchiseId': self.franchise_id,
            'phone': self.phone,
            'status': self.status.name,
            'firedAt': to_iso(self.fired_at),
            'createdAt': to_iso(self.created_at),
            'updatedAt': to_iso(self.updated_at),
        })
        return data

    def __repr__(self):
        return f'<Staff {self.email}>'

class DisciplinaryWarning(db.Model):
    """Disciplinary warning against exactly one driver or staff member"""
    __tablename__ = 'warnings'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    driver_id = db.Column(db.String(36), db.ForeignKey('drivers.id', ondelete='CASCADE'), index=True)
    staff_id = db.Column(db.String(36), db.ForeignKey('staff.id', ondelete='CASCADE'), index=True)

    reason = db.Column(db.String(500), nullable=False)
    priority = db.Column(db.Enum(WarningPriority), nullable=False, default=WarningPriority.MEDIUM)
    created_by = db.Column(db.String(64))

    created_at = db.Column(db.DateTime, default=get_local_time_naive, index=True)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    # Relationships
    driver = db.relationship('Driver', backref=db.backref('warnings', passive_deletes=True))
    staff = db.relationship('Staff', backref=db.backref('warnings', passive_deletes=True))

    __table_args__ = (
        CheckConstraint(
            '(driver_id IS NOT NULL AND staff_id IS NULL) OR (driver_id IS NULL AND staff_id IS NOT NULL)',
            name='ck_warning_single_target'
        ),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'driverId': self.driver_id,
            'staffId': self.staff_id,
            'reason': self.reason,
            'priority': self.priority.name,
            'createdBy': self.created_by,
            'createdAt': to_iso(self.created_at),
            'updatedAt': to_iso(self.updated_at),
            'driver': self.driver.to_summary() if self.driver else None,
            'staff': self.staff.to_summary() if self.staff else None,
        }

class Complaint(db.Model):
    __tablename__ = 'complaints'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    driver_id = db.Column(db.String(36), db.ForeignKey('drivers.id', ondelete='CASCADE'), index=True)
    staff_id = db.Column(db.String(36), db.ForeignKey('staff.id', ondelete='CASCADE'), index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    severity = db.Column(db.Enum(ComplaintSeverity), nullable=False, default=ComplaintSeverity.MEDIUM)
    status = db.Column(db.Enum(ComplaintStatus), nullable=False, default=ComplaintStatus.OPEN, index=True)
    reported_by = db.Column(db.String(64))

    # Resolution
    resolved_at = db.Column(db.DateTime)
    resolved_by = db.Column(db.String(64))
    resolution = db.Column(db.String(500))
    resolution_action = db.Column(db.Enum(ResolutionAction))
    resolution_reason = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=get_local_time_naive, index=True)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    driver = db.relationship('Driver', backref=db.backref('complaints', passive_deletes=True))
    staff = db.relationship('Staff', backref=db.backref('complaints', passive_deletes=True))

    __table_args__ = (
        CheckConstraint(
            '(driver_id IS NOT NULL AND staff_id IS NULL) OR (driver_id IS NULL AND staff_id IS NOT NULL)',
            name='ck_complaint_single_target'
        ),
        Index('idx_complaint_status_created', 'status', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'driverId': self.driver_id,
            'staffId': self.staff_id,
            'title': self.title,
            'description': self.description,
            'severity': self.severity.name,
            'status': self.status.name,
            'reportedBy': self.reported_by,
            'resolvedAt': to_iso(self.resolved_at),
            'resolvedBy': self.resolved_by,
            'resolution': self.resolution,
            'resolutionAction': self.resolution_action.name if self.resolution_action else None,
            'resolutionReason': self.resolution_reason,
            'createdAt': to_iso(self.created_at),
            'updatedAt': to_iso(self.updated_at),
        }

class ActivityLog(db.Model):
    __tablename__ = 'activity_logs'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)

    # Action details
    action = db.Column(db.Enum(ActivityAction), nullable=False, index=True)
    entity_type = db.Column(db.Enum(ActivityEntityType), nullable=False, index=True)
    entity_id = db.Column(db.String(36))

    # Scope (no foreign keys: log rows outlive the entities they describe)
    franchise_id = db.Column(db.String(36), index=True)
    driver_id = db.Column(db.String(36), index=True)
    staff_id = db.Column(db.String(36), index=True)
    user_id = db.Column(db.String(64))

    description = db.Column(db.Text, nullable=False)
    details = db.Column(db.Text)  # JSON

    created_at = db.Column(db.DateTime, default=get_local_time_naive, index=True)

    __table_args__ = (
        Index('idx_activity_entity', 'entity_type', 'entity_id'),
    )

    def get_details(self):
        if self.details:
            try:
                return json.loads(self.details)
            except json.JSONDecodeError:
                return {}
        return {}

    def to_dict(self):
        return {
            'id': self.id,
            'action': self.action.name,
            'entityType': self.entity_type.name,
            'entityId': self.entity_id,
            'franchiseId': self.franchise_id,
            'driverId': self.driver_id,
            'staffId': self.staff_id,
            'userId': self.user_id,
            'description': self.description,
            'metadata': self.get_details(),
            'createdAt': to_iso(self.created_at),
        }
