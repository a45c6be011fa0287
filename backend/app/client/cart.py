from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.client.local_store import CART_STORAGE_KEY, LocalStore
from app.utils.logger import logger


def _as_listing_dict(listing: Any) -> Dict[str, Any]:
    if isinstance(listing, BaseModel):
        return listing.model_dump(by_alias=True, mode="json")
    return dict(listing)


class CartStore:
    """Shopping cart kept in local storage under ``cimplico_cart``.

    Lines are ``{"listing": <listing json>, "quantity": n}``. Prices shown in
    the cart are the ones captured when the listing was added; the server
    re-prices every line at checkout.
    """

    def __init__(self, store: LocalStore):
        self.store = store
        self.items: List[Dict[str, Any]] = []

    def load(self) -> List[Dict[str, Any]]:
        items = self.store.get(CART_STORAGE_KEY, [])
        self.items = [i for i in items if isinstance(i, dict) and "listing" in i] if isinstance(items, list) else []
        return self.items

    def save(self) -> None:
        self.store.set(CART_STORAGE_KEY, self.items)

    def _find(self, listing_id: int) -> Optional[Dict[str, Any]]:
        for item in self.items:
            if item["listing"].get("id") == listing_id:
                return item
        return None

    def add(self, listing: Any, quantity: int = 1) -> None:
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        data = _as_listing_dict(listing)
        existing = self._find(data["id"])
        if existing:
            existing["quantity"] += quantity
        else:
            self.items.append({"listing": data, "quantity": quantity})
        logger.debug(f"Cart add listing={data['id']} qty={quantity}")
        self.save()

    def remove(self, listing_id: int) -> None:
        self.items = [i for i in self.items if i["listing"].get("id") != listing_id]
        self.save()

    def update_quantity(self, listing_id: int, quantity: int) -> None:
        if quantity <= 0:
            self.remove(listing_id)
            return
        item = self._find(listing_id)
        if item:
            item["quantity"] = quantity
            self.save()

    def clear(self) -> None:
        self.items = []
        self.save()

    @property
    def total_items(self) -> int:
        return sum(i["quantity"] for i in self.items)

    @property
    def total_price(self) -> float:
        return round(sum(float(i["listing"]["price"]) * i["quantity"] for i in self.items), 2)

    def to_order_request(self, currency: Optional[str] = None, delivery_details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "items": [
                {"listingId": i["listing"]["id"], "quantity": i["quantity"], "unitPrice": i["listing"]["price"]}
                for i in self.items
            ],
        }
        if currency:
            request["currency"] = currency
        if delivery_details:
            request["deliveryDetails"] = delivery_details
        return request
