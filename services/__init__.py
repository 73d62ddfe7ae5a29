"""
Service Layer Architecture

Business logic for the discipline workflow lives here, not in the route
handlers. Services own transaction boundaries, raise ServiceError subclasses
that the app maps to JSON error responses, and log what they change.

Services Architecture:
- **WarningService** (warning_service): Warning issuance, threshold escalation, listing, deletion
- **ComplaintService** (complaint_service): Complaint intake, status updates, resolution actions
- **DriverService** (driver_service): Driver lookups, atomic counters, termination
- **StaffService** (staff_service): Staff lookups, atomic warning counter, firing
- **ActivityService** (activity_service): Activity log writes (fire-and-forget), queries, retention

Service modules are imported directly (``from services.warning_service import
WarningService``); only the error types and the transaction helper are
re-exported here, since utils.validators depends on services.errors.
"""

from .errors import ServiceError, ValidationError, InvalidWarningTarget, NotFoundError
from .transaction_helper import TransactionHelper

__all__ = [
    'ServiceError',
    'ValidationError',
    'InvalidWarningTarget',
    'NotFoundError',
    'TransactionHelper'
]
