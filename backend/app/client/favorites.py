from typing import Any, Dict, List

from app.client.api import ApiError, MarketplaceClient
from app.utils.logger import logger


class FavoritesStore:
    """Saved listings of the logged-in user, mirrored from ``/api/favorites``.

    Every mutation goes to the server and then refreshes the local copy.
    """

    def __init__(self, api: MarketplaceClient):
        self.api = api
        self.favorites: List[Dict[str, Any]] = []

    def refresh(self) -> List[Dict[str, Any]]:
        self.favorites = self.api.favorites()
        return self.favorites

    def is_favorite(self, listing_id: int) -> bool:
        return any(f.get("listingId") == listing_id for f in self.favorites)

    def add(self, listing_id: int) -> None:
        self.api.add_favorite(listing_id)
        self.refresh()

    def remove(self, listing_id: int) -> None:
        try:
            self.api.remove_favorite(listing_id)
        except ApiError as exc:
            # Already gone on the server; the refresh below resyncs.
            if exc.code != "NOT_FOUND":
                raise
            logger.info(f"Favorite for listing {listing_id} was already removed")
        self.refresh()

    def toggle(self, listing_id: int) -> bool:
        """Flip the saved state and return the new one."""
        if self.is_favorite(listing_id):
            self.remove(listing_id)
        else:
            self.add(listing_id)
        return self.is_favorite(listing_id)
