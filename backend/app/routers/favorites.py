from fastapi import APIRouter, Depends, status

from app.errors import NotFound
from app.models.comment import FavoriteWithListing
from app.models.common import envelope
from app.models.user import User
from app.permissions import Capability
from app.services.auth import require_capability
from app.services.database import get_storage
from app.services.moderation import listing_visible_to
from app.services.storage import MarketplaceStorage

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


@router.get("")
async def list_favorites(
    user: User = Depends(require_capability(Capability.FAVORITE)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    favorites = []
    for saved in storage.get_user_saved_listings(user.id):
        listing = storage.get_listing(saved.listing_id)
        # A listing taken down after it was saved keeps its row but not its content
        if listing is not None and not listing_visible_to(storage, listing, user):
            listing = None
        favorites.append(FavoriteWithListing(**saved.model_dump(), listing=listing))
    return envelope(favorites)


@router.post("/{listing_id}", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    listing_id: int,
    user: User = Depends(require_capability(Capability.FAVORITE)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    listing = storage.get_listing(listing_id)
    if listing is None or not listing_visible_to(storage, listing, user):
        raise NotFound("Listing not found")
    return envelope(storage.create_user_saved_listing(user.id, listing_id))


@router.delete("/{listing_id}")
async def remove_favorite(
    listing_id: int,
    user: User = Depends(require_capability(Capability.FAVORITE)),
    storage: MarketplaceStorage = Depends(get_storage),
):
    if not storage.delete_user_saved_listing(user.id, listing_id):
        raise NotFound("Favorite not found")
    return envelope({"message": "Removed from favorites"})
