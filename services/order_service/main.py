from fastapi import FastAPI
from shared.config.database import engine, Base
from .errors import register_exception_handlers
from .router import router, public_router
from .models import Order, OrderItem, OrderStatusHistory  # noqa: F401  registers models with Base

order_app = FastAPI(title="Order Service", version="1.0.0")

register_exception_handlers(order_app)

order_app.include_router(public_router)
order_app.include_router(router)

@order_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
