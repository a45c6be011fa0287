from fastapi import APIRouter, Depends, status

from app.errors import NotFound
from app.models.catalog import ListingCreateRequest
from app.models.common import envelope
from app.models.user import User
from app.models.vendor import VendorApplicationRequest
from app.permissions import Capability
from app.services.auth import get_current_user, require_capability
from app.services.database import get_storage
from app.services.moderation import submit_listing, submit_vendor_application
from app.services.storage import MarketplaceStorage

router = APIRouter(prefix="/api/vendors", tags=["vendors"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def apply_as_vendor(
    payload: VendorApplicationRequest,
    current_user: User = Depends(require_capability(Capability.APPLY_VENDOR)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(submit_vendor_application(storage, current_user, payload))


@router.get("/profile")
async def get_vendor_profile(
    current_user: User = Depends(get_current_user),
    storage: MarketplaceStorage = Depends(get_storage),
):
    profile = storage.get_vendor_profile_by_user_id(current_user.id)
    if profile is None:
        raise NotFound("Vendor profile not found")
    return envelope(profile)


@router.post("/listings", status_code=status.HTTP_201_CREATED)
async def create_listing(
    payload: ListingCreateRequest,
    current_user: User = Depends(get_current_user),
    storage: MarketplaceStorage = Depends(get_storage),
):
    return envelope(submit_listing(storage, current_user, payload))


@router.get("/listings")
async def get_vendor_listings(
    current_user: User = Depends(get_current_user),
    storage: MarketplaceStorage = Depends(get_storage),
):
    profile = storage.get_vendor_profile_by_user_id(current_user.id)
    if profile is None:
        raise NotFound("Vendor profile not found")
    return envelope(storage.get_listings_by_vendor_id(profile.id))
