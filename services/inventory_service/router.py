from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.security.dependencies import get_actor_id, get_business_id, verify_internal_api_key
from .schemas import InventoryItemCreate, InventoryItemResponse, InventoryTransactionResponse
from .service import InventoryService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health")
async def health_check():
    return {"service": "inventory", "status": "running"}


@router.post("/", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: InventoryItemCreate,
    business_id: str = Depends(get_business_id),
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await InventoryService.create_item(db, business_id, payload, actor_id)

@router.get("/{inventory_id}", response_model=InventoryItemResponse)
async def get_item(
    inventory_id: int,
    business_id: str = Depends(get_business_id),
    db: AsyncSession = Depends(get_db),
):
    item = await InventoryService.get_item(db, business_id, inventory_id)
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item

@router.get("/{inventory_id}/transactions", response_model=list[InventoryTransactionResponse])
async def list_transactions(
    inventory_id: int,
    business_id: str = Depends(get_business_id),
    db: AsyncSession = Depends(get_db),
):
    item = await InventoryService.get_item(db, business_id, inventory_id)
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return await InventoryService.list_transactions(db, business_id, inventory_id)
