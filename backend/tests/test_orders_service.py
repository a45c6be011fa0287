import pytest

from app.errors import InvalidStatus, NotFound, PaymentExists, PaymentFailed, ValidationFailed
from app.models.enums import ListingStatus, OrderStatus, PaymentStatus, UserRole, UserStatus, VendorVerificationStatus
from app.models.order import OrderCreateRequest, OrderItemRequest
from app.models.user import RegisterRequest
from app.services.auth import register_user
from app.services.orders import cancel_order, create_order, get_orders_with_items, pay_order, refund_order
from app.services.payment_provider import MockPaymentProvider, PaymentResult


class FailingCaptureProvider(MockPaymentProvider):
    name = "failing-capture"

    def capture(self, authorization_id):
        return PaymentResult(success=False, message="Capture timed out")


@pytest.fixture
def catalog(any_storage):
    owner = any_storage.create_user({
        "email": "vendor@x.com", "password": "scrypt$x", "role": UserRole.VENDOR, "status": UserStatus.ACTIVE,
    })
    vendor = any_storage.create_vendor_profile({
        "user_id": owner.id, "company_name": "Acme", "verification_status": VendorVerificationStatus.APPROVED,
    })

    def listing(price, status=ListingStatus.ACTIVE):
        return any_storage.create_listing({
            "vendor_id": vendor.id, "title_en": "Svc", "title_zh": "服务", "description_en": "d",
            "description_zh": "描述", "price": price, "status": status,
        })

    buyer = register_user(any_storage, RegisterRequest(email="buyer@x.com", password="secret1"))
    return any_storage, buyer, listing


def _order(storage, buyer, *lines):
    payload = OrderCreateRequest(items=[OrderItemRequest(listing_id=l.id, quantity=q) for l, q in lines])
    return create_order(storage, buyer, payload)


def test_checkout_snapshots_prices(catalog):
    storage, buyer, listing = catalog
    ten, five = listing(10.0), listing(5.0)

    order = _order(storage, buyer, (ten, 2), (five, 1))

    assert order.status == OrderStatus.CREATED
    assert order.total_amount == 25.0
    assert order.currency == "USD"
    assert [(i.listing_id, i.unit_price, i.quantity) for i in order.items] == [(ten.id, 10.0, 2), (five.id, 5.0, 1)]

    storage.update_listing(ten.id, {"price": 99.0})
    stored = get_orders_with_items(storage, buyer)[0]
    assert stored.total_amount == 25.0
    assert [i.unit_price for i in stored.items] == [10.0, 5.0]


def test_checkout_ignores_client_price_and_rounds(catalog):
    storage, buyer, listing = catalog
    odd = listing(0.1)
    payload = OrderCreateRequest(items=[OrderItemRequest(listing_id=odd.id, quantity=3, unit_price=0.01)])

    order = create_order(storage, buyer, payload)

    assert order.total_amount == 0.3
    assert order.items[0].unit_price == 0.1


def test_checkout_validation(catalog):
    storage, buyer, listing = catalog
    pending = listing(10.0, status=ListingStatus.PENDING)

    with pytest.raises(ValidationFailed):
        create_order(storage, buyer, OrderCreateRequest(items=[]))
    with pytest.raises(ValidationFailed):
        _order(storage, buyer, (pending, 1))
    with pytest.raises(NotFound):
        create_order(storage, buyer, OrderCreateRequest(items=[OrderItemRequest(listing_id=999)]))


def test_successful_payment_marks_order_paid(catalog):
    storage, buyer, listing = catalog
    order = _order(storage, buyer, (listing(10.0), 1))

    payment = pay_order(storage, MockPaymentProvider(), buyer, order.id, "card")

    assert payment.status == PaymentStatus.COMPLETED
    assert payment.amount == 10.0
    assert payment.transaction_id.startswith("mock-")
    assert storage.get_order(order.id).status == OrderStatus.PAID
    with pytest.raises(PaymentExists):
        pay_order(storage, MockPaymentProvider(), buyer, order.id, "card")


def test_declined_payment_can_be_retried(catalog):
    storage, buyer, listing = catalog
    order = _order(storage, buyer, (listing(10.0), 1))

    with pytest.raises(PaymentFailed):
        pay_order(storage, MockPaymentProvider(), buyer, order.id, "decline")

    failed = storage.get_payment_by_order_id(order.id)
    assert failed.status == PaymentStatus.FAILED
    assert storage.get_order(order.id).status == OrderStatus.CREATED

    retried = pay_order(storage, MockPaymentProvider(), buyer, order.id, "card")
    assert retried.id == failed.id
    assert retried.status == PaymentStatus.COMPLETED


def test_capture_failure_marks_payment_failed(catalog):
    storage, buyer, listing = catalog
    order = _order(storage, buyer, (listing(10.0), 1))

    with pytest.raises(PaymentFailed) as exc:
        pay_order(storage, FailingCaptureProvider(), buyer, order.id, "card")

    assert exc.value.message == "Capture timed out"
    assert storage.get_payment_by_order_id(order.id).status == PaymentStatus.FAILED


def test_cannot_pay_someone_elses_order(catalog):
    storage, buyer, listing = catalog
    order = _order(storage, buyer, (listing(10.0), 1))
    other = register_user(storage, RegisterRequest(email="other@x.com", password="secret1"))

    with pytest.raises(NotFound):
        pay_order(storage, MockPaymentProvider(), other, order.id, "card")
    with pytest.raises(NotFound):
        pay_order(storage, MockPaymentProvider(), buyer, 999, "card")


def test_cancel_order(catalog):
    storage, buyer, listing = catalog
    order = _order(storage, buyer, (listing(10.0), 1))

    assert cancel_order(storage, buyer, order.id).status == OrderStatus.CANCELLED
    with pytest.raises(InvalidStatus):
        cancel_order(storage, buyer, order.id)
    with pytest.raises(InvalidStatus):
        pay_order(storage, MockPaymentProvider(), buyer, order.id, "card")


def test_refund_paid_order(catalog):
    storage, buyer, listing = catalog
    order = _order(storage, buyer, (listing(10.0), 1))

    with pytest.raises(InvalidStatus):
        refund_order(storage, MockPaymentProvider(), order.id)

    pay_order(storage, MockPaymentProvider(), buyer, order.id, "card")
    refunded = refund_order(storage, MockPaymentProvider(), order.id)

    assert refunded.status == PaymentStatus.REFUNDED
    assert storage.get_order(order.id).status == OrderStatus.REFUNDED
    with pytest.raises(InvalidStatus):
        refund_order(storage, MockPaymentProvider(), order.id)
    with pytest.raises(NotFound):
        refund_order(storage, MockPaymentProvider(), 999)
