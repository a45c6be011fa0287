from fastapi import APIRouter, Depends, status

from app.models.common import envelope
from app.models.order import OrderCreateRequest, PaymentRequest
from app.models.user import User
from app.permissions import Capability
from app.services import orders as order_service
from app.services.auth import require_capability
from app.services.database import get_storage
from app.services.payment_provider import PaymentProvider, get_payment_provider
from app.services.storage import MarketplaceStorage

router = APIRouter(prefix="/api", tags=["orders"])


@router.get("/orders")
async def get_orders(
    current_user: User = Depends(require_capability(Capability.CHECKOUT)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(order_service.get_orders_with_items(storage, current_user))


@router.post("/orders", status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreateRequest,
    current_user: User = Depends(require_capability(Capability.CHECKOUT)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(order_service.create_order(storage, current_user, payload))


@router.post("/orders/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    current_user: User = Depends(require_capability(Capability.CHECKOUT)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(order_service.cancel_order(storage, current_user, order_id))


@router.post("/payments")
async def create_payment(
    payload: PaymentRequest,
    current_user: User = Depends(require_capability(Capability.CHECKOUT)),
    storage: MarketplaceStorage = Depends(get_storage),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    payment = order_service.pay_order(storage, provider, current_user, payload.order_id, payload.payment_method)
    return envelope(payment)
