from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import get_tax_rate
from shared.security.dependencies import get_actor_id, get_business_id, verify_internal_api_key

from .schemas import (
    InventoryCheckRequest,
    InventoryValidation,
    OrderCreate,
    OrderFilters,
    OrderResponse,
    OrderStatusValue,
    OrderTotals,
    OrderUpdate,
    PaymentStatusValue,
    StatusHistoryResponse,
    StatusUpdate,
    TotalsRequest,
)
from .service import OrderService
from .unit_of_work import SQLAlchemyUnitOfWork

# THIS PROTECTS THE ENTIRE SERVICE
router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)


def get_order_service(
    business_id: str = Depends(get_business_id),
    db: AsyncSession = Depends(get_db),
) -> OrderService:
    return OrderService(SQLAlchemyUnitOfWork(db, business_id), tax_rate=get_tax_rate())


@public_router.get("/health")
async def health_check():
    return {"service": "order", "status": "running"}


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    actor_id: Optional[str] = Depends(get_actor_id),
    service: OrderService = Depends(get_order_service),
):
    return await service.create_order(payload, actor_id)

@router.get("/", response_model=List[OrderResponse])
async def list_orders(
    status_filter: Optional[List[OrderStatusValue]] = Query(default=None, alias="status"),
    payment_status: Optional[List[PaymentStatusValue]] = Query(default=None),
    customer_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: OrderService = Depends(get_order_service),
):
    filters = OrderFilters(
        status=status_filter,
        payment_status=payment_status,
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        limit=limit,
        offset=offset,
    )
    return await service.list_orders(filters)

# Preview endpoints for order forms; neither writes anything
@router.post("/totals", response_model=OrderTotals)
async def calculate_totals(payload: TotalsRequest, service: OrderService = Depends(get_order_service)):
    return service.preview_totals(payload.items, payload.discount_amount)

@router.post("/inventory-check", response_model=InventoryValidation)
async def check_inventory(payload: InventoryCheckRequest, service: OrderService = Depends(get_order_service)):
    return await service.validate_inventory(payload.items)

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, service: OrderService = Depends(get_order_service)):
    return await service.get_order(order_id)

@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    payload: OrderUpdate,
    actor_id: Optional[str] = Depends(get_actor_id),
    service: OrderService = Depends(get_order_service),
):
    return await service.update_order(order_id, payload, actor_id)

@router.post("/{order_id}/status", response_model=OrderResponse)
async def advance_status(
    order_id: int,
    payload: StatusUpdate,
    actor_id: Optional[str] = Depends(get_actor_id),
    service: OrderService = Depends(get_order_service),
):
    return await service.advance_status(order_id, payload.status, actor_id, payload.notes)

@router.get("/{order_id}/history", response_model=List[StatusHistoryResponse])
async def get_status_history(order_id: int, service: OrderService = Depends(get_order_service)):
    return await service.get_status_history(order_id)

# Administrative escape hatch; normal flow cancels instead
@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: int,
    actor_id: Optional[str] = Depends(get_actor_id),
    service: OrderService = Depends(get_order_service),
):
    await service.delete_order(order_id, actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
