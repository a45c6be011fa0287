from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import uuid

from app.config import settings
from app.utils.logger import logger


@dataclass
class PaymentResult:
    """Outcome of a single provider call.

    ``reference`` is the authorization id for ``authorize`` and the
    transaction id for ``capture`` / ``refund``.
    """

    success: bool
    reference: Optional[str] = None
    message: Optional[str] = None


class PaymentProvider:
    """Interface for external payment gateways.

    Concrete implementations (Stripe, PayPal, ...) subclass this and implement
    the three methods below. The order flow calls ``authorize`` then
    ``capture`` at checkout, and ``refund`` when an admin refunds a paid order.
    """

    name = "abstract"

    def authorize(self, order_id: int, amount: float, currency: str, payment_method: str) -> PaymentResult:  # pragma: no cover - interface
        raise NotImplementedError

    def capture(self, authorization_id: str) -> PaymentResult:  # pragma: no cover - interface
        raise NotImplementedError

    def refund(self, transaction_id: str, amount: float) -> PaymentResult:  # pragma: no cover - interface
        raise NotImplementedError


class MockPaymentProvider(PaymentProvider):
    """Local provider that never talks to an external service.

    Every payment method succeeds except ``"decline"``, which is refused at
    authorization so the failure path can be exercised end to end.
    """

    name = "mock"
    DECLINE_METHOD = "decline"

    def authorize(self, order_id: int, amount: float, currency: str, payment_method: str) -> PaymentResult:
        if payment_method.strip().lower() == self.DECLINE_METHOD:
            logger.info(f"Mock payment declined order_id={order_id}")
            return PaymentResult(success=False, message="Card declined")
        return PaymentResult(success=True, reference=f"auth-{uuid.uuid4().hex[:12]}")

    def capture(self, authorization_id: str) -> PaymentResult:
        return PaymentResult(success=True, reference=f"mock-{uuid.uuid4().hex[:16]}")

    def refund(self, transaction_id: str, amount: float) -> PaymentResult:
        return PaymentResult(success=True, reference=f"refund-{transaction_id}")


_PROVIDERS = {
    MockPaymentProvider.name: MockPaymentProvider,
}


def get_payment_provider() -> PaymentProvider:
    """FastAPI dependency returning the configured provider."""
    try:
        return _PROVIDERS[settings.PAYMENT_PROVIDER]()
    except KeyError:
        raise RuntimeError(f"Unknown PAYMENT_PROVIDER '{settings.PAYMENT_PROVIDER}'")
