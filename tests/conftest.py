import os

# Must be in place before any shared.* module reads the environment
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ORDER_TAX_RATE", "0.10")
os.environ.setdefault("OTEL_TRACING_ENABLED", "false")
os.environ["INTERNAL_API_KEY"] = "test-internal-key"

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from shared.config.database import Base
from services.customer_service.models import Customer
from services.inventory_service.models import InventoryItem
from services.order_service import models as order_models  # noqa: F401
from services.order_service.service import OrderService
from services.order_service.unit_of_work import SQLAlchemyUnitOfWork

BUSINESS_ID = "biz-1"
OTHER_BUSINESS_ID = "biz-2"
ACTOR_ID = "user-1"
TODAY = date(2026, 1, 15)
TAX_RATE = Decimal("0.10")


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_service(db):
    def factory(business_id: str = BUSINESS_ID) -> OrderService:
        return OrderService(SQLAlchemyUnitOfWork(db, business_id), TAX_RATE, today=lambda: TODAY)
    return factory


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def seed_inventory(session_factory):
    async def seed(name="Widget", current_quantity=10, low_stock_alert=2, business_id=BUSINESS_ID):
        async with session_factory() as session:
            item = InventoryItem(
                business_id=business_id,
                name=name,
                current_quantity=current_quantity,
                low_stock_alert=low_stock_alert,
            )
            session.add(item)
            await session.commit()
            return item.id
    return seed


@pytest.fixture
def seed_customer(session_factory):
    async def seed(name="Ada Lovelace", email="ada@example.com", business_id=BUSINESS_ID):
        async with session_factory() as session:
            customer = Customer(business_id=business_id, name=name, email=email, phone="555-0100")
            session.add(customer)
            await session.commit()
            return customer.id
    return seed


@pytest.fixture
def stock_of(session_factory):
    async def read(inventory_id: int) -> int:
        async with session_factory() as session:
            item = await session.get(InventoryItem, inventory_id)
            return item.current_quantity
    return read
