from fastapi import FastAPI
from shared.config.database import engine, Base
from shared.observability import setup_observability

# IMPORTANT: import models so they register with Base
from services.customer_service import models as customer_models  # noqa: F401
from services.inventory_service import models as inventory_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401

from services.inventory_service.main import inventory_app
from services.order_service.main import order_app

app = FastAPI(title="BizPilot Orders")

# --- OBSERVABILITY BOOTSTRAP ---
# Once, on the outer app: mounted apps share this process and its registry.
setup_observability(app, "bizpilot_orders")

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)

app.mount("/orders", order_app)
app.mount("/inventory", inventory_app)
