"""
Staff Service

Staff lookups, the atomic warning counter and firing.
"""

from typing import Optional
import logging
from sqlalchemy import update, select, func
from models import db, Staff, StaffStatus
from .errors import NotFoundError
from .transaction_helper import TransactionHelper
from timezone_utils import get_local_time_naive

logger = logging.getLogger(__name__)

STAFF_NOT_FOUND = "Staff not found"

class StaffService:
    """Service class for staff discipline state"""

    def get_staff(self, staff_id: str) -> Optional[Staff]:
        return db.session.get(Staff, staff_id)

    def get_staff_or_404(self, staff_id: str) -> Staff:
        staff = self.get_staff(staff_id)
        if not staff:
            raise NotFoundError(STAFF_NOT_FOUND)
        return staff

    @TransactionHelper.with_transaction
    def increment_warning_count(self, staff_id: str) -> int:
        """
        Atomically add one to the staff member's warning counter.

        Returns:
            int: the counter value after this increment
        """
        db.session.execute(
            update(Staff)
            .where(Staff.id == staff_id)
            .values(warning_count=func.coalesce(Staff.warning_count, 0) + 1)
            .execution_options(synchronize_session=False)
        )
        new_value = db.session.execute(
            select(Staff.warning_count).where(Staff.id == staff_id)
        ).scalar_one()
        logger.debug(f"Staff {staff_id} warning_count incremented to {new_value}")
        return new_value

    @TransactionHelper.with_transaction
    def fire_staff(self, staff_id: str) -> bool:
        """
        Move a staff member to FIRED. No-op if already fired.

        Returns:
            bool: True if this call performed the transition
        """
        result = db.session.execute(
            update(Staff)
            .where(Staff.id == staff_id, Staff.status != StaffStatus.FIRED)
            .values(status=StaffStatus.FIRED, fired_at=get_local_time_naive())
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            logger.debug(f"Staff {staff_id} not fired: missing or already fired")
            return False

        logger.info(f"Staff {staff_id} fired")
        return True
