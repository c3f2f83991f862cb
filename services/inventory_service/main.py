from fastapi import FastAPI
from shared.config.database import engine, Base
from .router import router, public_router
from .models import InventoryItem, InventoryTransaction  # noqa: F401  registers models with Base

inventory_app = FastAPI(
    title="Inventory Service",
    version="1.0.0"
)

inventory_app.include_router(public_router)
inventory_app.include_router(router)

@inventory_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
