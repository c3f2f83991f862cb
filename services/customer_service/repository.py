from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Customer
from .schemas import CustomerSummary


class SQLAlchemyCustomerLookup:
    def __init__(self, db: AsyncSession, business_id: str):
        self.db = db
        self.business_id = business_id

    async def resolve(self, customer_id: int) -> Optional[CustomerSummary]:
        result = await self.db.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .where(Customer.business_id == self.business_id)
        )
        customer = result.scalars().first()
        if customer is None:
            return None
        return CustomerSummary.model_validate(customer)
