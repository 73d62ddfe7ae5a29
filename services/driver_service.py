"""
Driver Service

Driver lookups and the discipline-related state changes: atomic warning and
complaint counters, and termination (the terminal employment state).
"""

from typing import Optional
import logging
from sqlalchemy import update, select, func
from models import db, Driver, DriverStatus
from .errors import NotFoundError
from .transaction_helper import TransactionHelper
from timezone_utils import get_local_time_naive

logger = logging.getLogger(__name__)

DRIVER_NOT_FOUND = "Driver not found"

class DriverService:
    """Service class for driver discipline state"""

    def get_driver(self, driver_id: str) -> Optional[Driver]:
        return db.session.get(Driver, driver_id)

    def get_driver_or_404(self, driver_id: str) -> Driver:
        driver = self.get_driver(driver_id)
        if not driver:
            raise NotFoundError(DRIVER_NOT_FOUND)
        return driver

    @TransactionHelper.with_transaction
    def increment_warning_count(self, driver_id: str) -> int:
        """
        Atomically add one to the driver's warning counter.

        Returns:
            int: the counter value after this increment
        """
        return self._increment(driver_id, Driver.warning_count, 'warning_count')

    @TransactionHelper.with_transaction
    def increment_complaint_count(self, driver_id: str) -> int:
        """Atomically add one to the driver's complaint counter"""
        return self._increment(driver_id, Driver.complaint_count, 'complaint_count')

    def _increment(self, driver_id: str, column, column_name: str) -> int:
        db.session.execute(
            update(Driver)
            .where(Driver.id == driver_id)
            .values({column_name: func.coalesce(column, 0) + 1})
            .execution_options(synchronize_session=False)
        )
        # Same transaction as the UPDATE, so this reads our own row-locked write
        new_value = db.session.execute(
            select(column).where(Driver.id == driver_id)
        ).scalar_one()
        logger.debug(f"Driver {driver_id} {column_name} incremented to {new_value}")
        return new_value

    @TransactionHelper.with_transaction
    def terminate_driver(self, driver_id: str) -> bool:
        """
        Move a driver to the terminal state (TERMINATED + blacklisted).

        Idempotent: a driver already blacklisted or terminated is left alone.
        The check and the write are one conditional UPDATE, so concurrent
        callers see exactly one True.

        Returns:
            bool: True if this call performed the transition
        """
        result = db.session.execute(
            update(Driver)
            .where(
                Driver.id == driver_id,
                Driver.status != DriverStatus.TERMINATED,
                Driver.blacklisted.is_(False),
            )
            .values(
                status=DriverStatus.TERMINATED,
                blacklisted=True,
                terminated_at=get_local_time_naive(),
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            logger.debug(f"Driver {driver_id} not terminated: missing or already terminal")
            return False

        logger.info(f"Driver {driver_id} terminated")
        return True
