import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.customer_service.repository import SQLAlchemyCustomerLookup
from services.inventory_service.repository import SQLAlchemyInventoryRepository

from .exceptions import ConcurrencyConflictError, PersistenceError
from .repository import SQLAlchemyOrderRepository, SQLAlchemyStatusHistoryRepository

logger = structlog.get_logger(__name__)


class SQLAlchemyUnitOfWork:
    """One database transaction spanning orders, items, stock and history.

    Usage::

        async with uow:
            ...  # repository calls
        # committed here; any exception inside rolled everything back

    Driver errors leave as PersistenceError, unique-constraint races as
    ConcurrencyConflictError. Domain errors pass through untouched.
    """

    def __init__(self, db: AsyncSession, business_id: str):
        self.db = db
        self.business_id = business_id
        self.orders = SQLAlchemyOrderRepository(db, business_id)
        self.inventory = SQLAlchemyInventoryRepository(db, business_id)
        self.history = SQLAlchemyStatusHistoryRepository(db)
        self.customers = SQLAlchemyCustomerLookup(db, business_id)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            await self.db.rollback()
            if isinstance(exc, IntegrityError):
                logger.warning("uow_integrity_conflict", error=str(exc.orig))
                raise ConcurrencyConflictError("Conflicting concurrent write; re-read and retry") from exc
            if isinstance(exc, SQLAlchemyError):
                logger.error("uow_persistence_failed", error=str(exc))
                raise PersistenceError(str(exc)) from exc
            return False

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConcurrencyConflictError("Conflicting concurrent write; re-read and retry") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("uow_commit_failed", error=str(e))
            raise PersistenceError(str(e)) from e
        return False

    async def refresh(self, instance):
        """Reload server-side values (timestamps, eager relationships) after commit."""
        try:
            await self.db.refresh(instance)
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e
        return instance
