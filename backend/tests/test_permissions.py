import pytest

from app.permissions import Capability, can, route_guard

USER = {"id": 1, "role": "USER", "status": "ACTIVE"}
VENDOR = {"id": 2, "role": "VENDOR", "status": "ACTIVE"}
ADMIN = {"id": 3, "role": "ADMIN", "status": "ACTIVE"}
SUSPENDED = {"id": 4, "role": "ADMIN", "status": "SUSPENDED"}


def test_browse_is_public():
    assert can(None, Capability.BROWSE)
    assert route_guard(None, Capability.BROWSE) is None


@pytest.mark.parametrize("capability", [
    Capability.COMMENT, Capability.FAVORITE, Capability.CHECKOUT, Capability.APPLY_VENDOR,
])
def test_any_active_user_capabilities(capability):
    assert not can(None, capability)
    assert can(USER, capability)
    assert can(VENDOR, capability)
    assert not can(SUSPENDED, capability)


def test_moderate_requires_admin():
    assert can(ADMIN, Capability.MODERATE)
    assert not can(VENDOR, Capability.MODERATE)
    assert not can(USER, Capability.MODERATE)
    assert not can(SUSPENDED, Capability.MODERATE)


def test_manage_listings_checks_vendor_profile():
    approved = {"verificationStatus": "APPROVED"}
    pending = {"verification_status": "PENDING"}

    assert not can(USER, Capability.MANAGE_LISTINGS)
    assert can(VENDOR, Capability.MANAGE_LISTINGS)
    assert can(VENDOR, Capability.MANAGE_LISTINGS, approved)
    assert not can(VENDOR, Capability.MANAGE_LISTINGS, pending)
    assert can(ADMIN, Capability.MANAGE_LISTINGS, approved)


def test_route_guard_redirects():
    assert route_guard(None, Capability.MODERATE) == "/auth"
    assert route_guard(USER, Capability.MODERATE) == "/"
    assert route_guard(ADMIN, Capability.MODERATE) is None
    assert route_guard(USER, Capability.CHECKOUT) is None


def test_can_accepts_models(storage):
    admin = storage.get_user_by_email("admin@cimplico.com")
    assert can(admin, Capability.MODERATE)
    assert route_guard(admin, Capability.MANAGE_LISTINGS) is None
