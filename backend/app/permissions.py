"""Capability checks shared by the API dependencies and the client route guards.

Role comparisons happen here and nowhere else: routers ask
``require_capability(Capability.MODERATE)`` and the client asks
``route_guard(user, Capability.MANAGE_LISTINGS)``; both end up in ``can``.
"""
from enum import Enum
from typing import Any, Optional

from app.models.enums import UserRole, UserStatus, VendorVerificationStatus


class Capability(str, Enum):
    BROWSE = "browse"
    COMMENT = "comment"
    FAVORITE = "favorite"
    CHECKOUT = "checkout"
    APPLY_VENDOR = "apply_vendor"
    MANAGE_LISTINGS = "manage_listings"
    MODERATE = "moderate"


_ANY_ACTIVE_USER = {
    Capability.COMMENT,
    Capability.FAVORITE,
    Capability.CHECKOUT,
    Capability.APPLY_VENDOR,
}


def _field(obj: Any, name: str) -> Any:
    # Works for pydantic records and for the camelCase dicts the client holds.
    if isinstance(obj, dict):
        camel = name.split("_")[0] + "".join(p.title() for p in name.split("_")[1:])
        return obj.get(name, obj.get(camel))
    return getattr(obj, name, None)


def can(user: Optional[Any], capability: Capability, vendor_profile: Optional[Any] = None) -> bool:
    if capability == Capability.BROWSE:
        return True
    if user is None or _field(user, "status") != UserStatus.ACTIVE:
        return False

    role = _field(user, "role")
    if capability in _ANY_ACTIVE_USER:
        return True
    if capability == Capability.MODERATE:
        return role == UserRole.ADMIN
    if capability == Capability.MANAGE_LISTINGS:
        if role not in (UserRole.VENDOR, UserRole.ADMIN):
            return False
        if vendor_profile is None:
            return True
        return _field(vendor_profile, "verification_status") == VendorVerificationStatus.APPROVED
    return False


def route_guard(user: Optional[Any], capability: Capability) -> Optional[str]:
    """Return the path to redirect to, or None when the route may render."""
    if capability != Capability.BROWSE and user is None:
        return "/auth"
    if not can(user, capability):
        return "/"
    return None
