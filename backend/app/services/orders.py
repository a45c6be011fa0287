"""Checkout, payment, cancellation and refund.

Order lines snapshot the listing price at checkout, so later price edits
never change historical orders. Each order has at most one Payment; a FAILED
payment is retried in place rather than creating a second row.
"""
from typing import List, Optional, Tuple

from app.config import settings
from app.errors import InvalidStatus, NotFound, PaymentExists, PaymentFailed, ValidationFailed
from app.models.enums import ListingStatus, OrderStatus, PaymentStatus
from app.models.order import Order, OrderCreateRequest, OrderItem, OrderWithItems, Payment
from app.models.user import User
from app.services.payment_provider import PaymentProvider
from app.services.storage import MarketplaceStorage
from app.utils.logger import logger


def create_order(storage: MarketplaceStorage, user: User, payload: OrderCreateRequest) -> OrderWithItems:
    if not payload.items:
        raise ValidationFailed("Order must contain at least one item")

    lines: List[Tuple[int, int, float]] = []
    for item in payload.items:
        listing = storage.get_listing(item.listing_id)
        if listing is None:
            raise NotFound(f"Listing {item.listing_id} not found")
        if listing.status != ListingStatus.ACTIVE:
            raise ValidationFailed(f"Listing {item.listing_id} is not available")
        lines.append((listing.id, item.quantity, listing.price))

    total = round(sum(price * qty for _, qty, price in lines), 2)
    order = storage.create_order({
        "user_id": user.id,
        "status": OrderStatus.CREATED,
        "total_amount": total,
        "currency": (payload.currency or settings.DEFAULT_CURRENCY).upper(),
        "delivery_details": payload.delivery_details,
    })
    items: List[OrderItem] = [
        storage.create_order_item({
            "order_id": order.id,
            "listing_id": listing_id,
            "quantity": qty,
            "unit_price": price,
        })
        for listing_id, qty, price in lines
    ]
    logger.info(f"Order {order.id} created user_id={user.id} items={len(items)} total={total} {order.currency}")
    return OrderWithItems(**order.model_dump(), items=items)


def get_orders_with_items(storage: MarketplaceStorage, user: User) -> List[OrderWithItems]:
    return [
        OrderWithItems(**order.model_dump(), items=storage.get_order_items_by_order_id(order.id))
        for order in storage.get_orders_by_user_id(user.id)
    ]


def _owned_order(storage: MarketplaceStorage, user: User, order_id: int) -> Order:
    order = storage.get_order(order_id)
    # Other users' orders are reported as missing.
    if order is None or order.user_id != user.id:
        raise NotFound("Order not found")
    return order


def pay_order(
    storage: MarketplaceStorage,
    provider: PaymentProvider,
    user: User,
    order_id: int,
    payment_method: str,
) -> Payment:
    order = _owned_order(storage, user, order_id)

    payment: Optional[Payment] = storage.get_payment_by_order_id(order.id)
    if payment is not None and payment.status != PaymentStatus.FAILED:
        raise PaymentExists()
    if order.status != OrderStatus.CREATED:
        raise InvalidStatus(f"Order is {order.status.value} and cannot be paid")

    if payment is None:
        payment = storage.create_payment({
            "order_id": order.id,
            "amount": order.total_amount,
            "currency": order.currency,
            "status": PaymentStatus.PENDING,
            "payment_method": payment_method,
            "transaction_id": None,
        })
    else:
        payment = storage.update_payment(payment.id, {
            "status": PaymentStatus.PENDING,
            "payment_method": payment_method,
            "transaction_id": None,
        })

    result = provider.authorize(order.id, order.total_amount, order.currency, payment_method)
    if result.success:
        result = provider.capture(result.reference)

    if not result.success:
        storage.update_payment(payment.id, {"status": PaymentStatus.FAILED})
        logger.warning(f"Payment {payment.id} failed for order {order.id} via {provider.name}: {result.message}")
        raise PaymentFailed(result.message or PaymentFailed.default_message)

    payment = storage.update_payment(payment.id, {
        "status": PaymentStatus.COMPLETED,
        "transaction_id": result.reference,
    })
    storage.update_order_status(order.id, OrderStatus.PAID.value)
    logger.info(f"Payment {payment.id} completed for order {order.id} via {provider.name}")
    return payment


def cancel_order(storage: MarketplaceStorage, user: User, order_id: int) -> Order:
    order = _owned_order(storage, user, order_id)
    if order.status != OrderStatus.CREATED:
        raise InvalidStatus(f"Order is {order.status.value} and cannot be cancelled")
    updated = storage.update_order_status(order.id, OrderStatus.CANCELLED.value)
    logger.info(f"Order {order.id} cancelled by user {user.id}")
    return updated


def refund_order(storage: MarketplaceStorage, provider: PaymentProvider, order_id: int) -> Payment:
    order = storage.get_order(order_id)
    if order is None:
        raise NotFound("Order not found")
    payment = storage.get_payment_by_order_id(order.id)
    if order.status != OrderStatus.PAID or payment is None or payment.status != PaymentStatus.COMPLETED:
        raise InvalidStatus("Only paid orders can be refunded")

    result = provider.refund(payment.transaction_id, payment.amount)
    if not result.success:
        raise PaymentFailed(result.message or "Refund was declined")

    payment = storage.update_payment(payment.id, {"status": PaymentStatus.REFUNDED})
    storage.update_order_status(order.id, OrderStatus.REFUNDED.value)
    logger.info(f"Order {order.id} refunded via {provider.name}")
    return payment
