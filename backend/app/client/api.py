"""Typed-ish wrapper around the marketplace REST API.

Every response is the JSON envelope ``{success, data}`` /
``{success: false, error}``. ``MarketplaceClient`` unwraps ``data`` and turns
errors into :class:`ApiError` so callers switch on ``exc.code``. The session
cookie lives in the underlying ``httpx.Client`` cookie jar, so one client
object is one logged-in browser.
"""
from typing import Any, Dict, List, Optional

import httpx

from app.utils.logger import logger

DEFAULT_TIMEOUT = httpx.Timeout(15.0, connect=5.0)


class ApiError(Exception):
    def __init__(self, code: str, message: str, status: int, details: Any = None):
        self.code = code
        self.message = message
        self.status = status
        self.details = details
        super().__init__(f"{code} ({status}): {message}")


class MarketplaceClient:
    def __init__(self, base_url: str = "http://localhost:8000", http: Optional[httpx.Client] = None):
        # Any httpx.Client works, including starlette's TestClient.
        self.http = http or httpx.Client(base_url=base_url, timeout=DEFAULT_TIMEOUT)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "MarketplaceClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = self.http.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            logger.error(f"Marketplace API request error {method} {path}: {exc}")
            raise ApiError("NETWORK_ERROR", str(exc), 0)

        try:
            body = resp.json()
        except ValueError:
            raise ApiError("SERVER_ERROR", resp.text or "Invalid response", resp.status_code)

        if not isinstance(body, dict):
            raise ApiError("SERVER_ERROR", "Unexpected response shape", resp.status_code)
        if not body.get("success"):
            error = body.get("error") or {}
            raise ApiError(
                error.get("code", "SERVER_ERROR"),
                error.get("message", "Request failed"),
                resp.status_code,
                error.get("details"),
            )
        return body.get("data")

    # Auth
    def register(self, email: str, password: str, first_name: Optional[str] = None, last_name: Optional[str] = None) -> Dict[str, Any]:
        payload = {"email": email, "password": password, "firstName": first_name, "lastName": last_name}
        return self._request("POST", "/api/register", json=payload)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/api/login", json={"email": email, "password": password})

    def logout(self) -> Dict[str, Any]:
        return self._request("POST", "/api/logout")

    def current_user(self) -> Optional[Dict[str, Any]]:
        """Return the logged-in user, or None when there is no session."""
        try:
            return self._request("GET", "/api/user")
        except ApiError as exc:
            if exc.code == "NOT_AUTHENTICATED":
                return None
            raise

    def update_profile(self, **fields) -> Dict[str, Any]:
        return self._request("PATCH", "/api/user", json=fields)

    # Catalog
    def categories(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/categories")

    def category(self, slug: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/categories/{slug}")

    def listings(self, limit: Optional[int] = None, offset: int = 0) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"offset": offset}
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/api/listings", params=params)

    def featured_listings(self, limit: int = 8) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/listings/featured", params={"limit": limit})

    def top_rated_listings(self, limit: int = 4) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/listings/top-rated", params={"limit": limit})

    def search(self, query: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/listings/search", params={"q": query})

    def listings_by_category(self, category_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/listings/category/{category_id}")

    def listing(self, listing_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/listings/{listing_id}")

    def comments(self, listing_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/listings/{listing_id}/comments")

    def rating(self, listing_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/listings/{listing_id}/rating")

    def add_comment(self, listing_id: int, content: str, rating: int) -> Dict[str, Any]:
        return self._request("POST", f"/api/listings/{listing_id}/comments", json={"content": content, "rating": rating})

    # Favorites
    def favorites(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/favorites")

    def add_favorite(self, listing_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/api/favorites/{listing_id}")

    def remove_favorite(self, listing_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/favorites/{listing_id}")

    # Orders & payments
    def orders(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/orders")

    def create_order(self, order_request: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders", json=order_request)

    def cancel_order(self, order_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/api/orders/{order_id}/cancel")

    def pay(self, order_id: int, payment_method: str) -> Dict[str, Any]:
        return self._request("POST", "/api/payments", json={"orderId": order_id, "paymentMethod": payment_method})

    # Vendors
    def apply_as_vendor(self, company_name: str, **fields) -> Dict[str, Any]:
        return self._request("POST", "/api/vendors", json={"companyName": company_name, **fields})

    def vendor_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/api/vendors/profile")

    def create_listing(self, listing: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/vendors/listings", json=listing)

    def vendor_listings(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/vendors/listings")

    # Admin
    def pending_vendors(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/admin/vendors/pending")

    def review_vendor(self, vendor_id: int, status: str, rejection_reason: Optional[str] = None) -> Dict[str, Any]:
        payload = {"verificationStatus": status, "rejectionReason": rejection_reason}
        return self._request("PATCH", f"/api/admin/vendors/{vendor_id}", json=payload)

    def pending_listings(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/admin/listings/pending")

    def review_listing(self, listing_id: int, status: str, rejection_reason: Optional[str] = None) -> Dict[str, Any]:
        payload = {"status": status, "rejectionReason": rejection_reason}
        return self._request("PATCH", f"/api/admin/listings/{listing_id}", json=payload)

    def pending_comments(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/admin/comments/pending")

    def review_comment(self, comment_id: int, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/admin/comments/{comment_id}", json={"status": status})

    def users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/admin/users")

    def set_user_status(self, user_id: int, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/admin/users/{user_id}", json={"status": status})

    def refund_order(self, order_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/api/admin/orders/{order_id}/refund")
